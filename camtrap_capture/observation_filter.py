"""
observation_filter.py

Clean the observation table before temporal independence analysis.

Key idea: administrative tags (Blank, Human, ...) are not animals and repeated
rows of the same (deployment, time, tag) are the same detection, so both are
removed before the scan. The scan itself relies on rows of one
(deployment, tag) being contiguous and ordered by time, which canonical_sort
guarantees.
"""

from camtrap_capture.errors import MissingColumnError, NoDataError
from camtrap_capture.records import DEFAULT_EXCLUDE_TAGS, TagType


def exclude_tags(df, target, exclude=DEFAULT_EXCLUDE_TAGS, no_exclude=False):
    """
    Drop rows that cannot or should not take part in the analysis.

    Rows with a missing deployment, time or tag are always dropped. Rows whose
    tag is in `exclude` are dropped unless `no_exclude` is set.

    Args:
        df: observation table (path, deployment, time, <tag>)
        target: TagType or name of the tag column
        exclude: iterable of tag values to remove
        no_exclude: keep excluded tags (null rows are still dropped)

    Returns:
        Filtered copy of df; may be empty
    """
    tag_col = TagType.parse(target).col_name
    missing = [c for c in ('path', 'deployment', 'time', tag_col) if c not in df.columns]
    if missing:
        raise MissingColumnError(
            f"Observation table is missing required column(s): {', '.join(missing)}"
        )
    cleaned = df.dropna(subset=['deployment', 'time', tag_col])
    if not no_exclude:
        cleaned = cleaned[~cleaned[tag_col].isin(list(exclude))]
    return cleaned.copy()


def drop_duplicate_observations(df, target):
    """Keep one row per (deployment, time, tag)."""
    tag_col = TagType.parse(target).col_name
    return df.drop_duplicates(subset=['deployment', 'time', tag_col], keep='first')


def canonical_sort(df, target):
    """
    Order rows by deployment, then tag, then time.

    Three stable sorts, least significant key first, so earlier orderings
    survive as tie-breaks.
    """
    tag_col = TagType.parse(target).col_name
    ordered = df.sort_values('time', kind='stable')
    ordered = ordered.sort_values(tag_col, kind='stable')
    ordered = ordered.sort_values('deployment', kind='stable')
    return ordered.reset_index(drop=True)


def dedup_and_sort(df, target):
    """Deduplicate and sort an already filtered table; empty input is an error."""
    if len(df) == 0:
        raise NoDataError(
            "No records to analyze: every record was removed by filtering "
            "(missing deployment/time/tag or excluded tag). Check the tags CSV."
        )
    return canonical_sort(drop_duplicate_observations(df, target), target)


def prepare_observations(df, target, exclude=DEFAULT_EXCLUDE_TAGS, no_exclude=False):
    """Exclusion filter, deduplication and canonical sort in one call."""
    filtered = exclude_tags(df, target, exclude=exclude, no_exclude=no_exclude)
    return dedup_and_sort(filtered, target)
