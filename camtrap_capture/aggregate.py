"""
aggregate.py

Count tables and the plain text summary of a capture run.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from camtrap_capture.records import TagType


@dataclass
class StageCounts:
    """Number of records left after each pipeline stage."""
    loaded: int
    filtered: int
    deduplicated: int
    independent: int
    deployments: int
    events_assigned: Optional[int] = None

    @property
    def excluded(self):
        return self.loaded - self.filtered

    @property
    def duplicates(self):
        return self.filtered - self.deduplicated


def count_by_deployment(independent, target):
    """Independent events per (deployment, tag), in first-seen order."""
    tag_col = TagType.parse(target).col_name
    return (
        independent.groupby(['deployment', tag_col], sort=False)
        .size()
        .reset_index(name='count')
    )


def count_all(independent, target=TagType.SPECIES):
    """Independent events per tag over all deployments, in first-seen order."""
    tag_col = TagType.parse(target).col_name
    return (
        independent.groupby(tag_col, sort=False)
        .size()
        .reset_index(name='count')
    )


def generate_summary_report(output_path, config, stage_counts, counts_by_deployment):
    """Write a human readable summary of one capture run."""
    tag_col = config.target.col_name
    totals = counts_by_deployment.groupby(tag_col, sort=False)['count'].sum()

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write("TEMPORAL INDEPENDENCE ANALYSIS SUMMARY\n")
        f.write("=" * 60 + "\n\n")
        f.write(f"GENERATED: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")

        f.write("PARAMETERS:\n")
        f.write(f"  Target: {tag_col}\n")
        f.write(f"  Minimum time difference: {config.min_delta_time} minutes\n")
        f.write(f"  Compared with: {config.policy.value} ({config.policy.abbr})\n")
        if config.deployment_index is not None:
            f.write(f"  Deployment path level: {config.deployment_index}\n")
        if config.no_exclude:
            f.write("  Excluded tags: none\n")
        else:
            excluded = ', '.join(repr(t) for t in config.exclude_tags)
            f.write(f"  Excluded tags: {excluded}\n")
        f.write("\n")

        f.write("RECORDS:\n")
        f.write(f"  Loaded: {stage_counts.loaded}\n")
        f.write(f"  Removed by filtering: {stage_counts.excluded}\n")
        f.write(f"  Duplicates removed: {stage_counts.duplicates}\n")
        f.write(f"  Analyzed: {stage_counts.deduplicated}\n")
        f.write(f"  Independent: {stage_counts.independent}\n")
        f.write(f"  Deployments: {stage_counts.deployments}\n")
        if stage_counts.events_assigned is not None:
            f.write(f"  Records assigned to an event: {stage_counts.events_assigned}\n")
        f.write("\n")

        f.write(f"INDEPENDENT EVENTS BY {tag_col.upper()}:\n")
        for tag, total in totals.items():
            f.write(f"  {tag}: {total}\n")
