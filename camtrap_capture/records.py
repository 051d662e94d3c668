"""
records.py

The flat observation table every stage of the capture pipeline works on:
one row per (path, deployment, time, tag) detection.

Expected tags CSV format (header, extra columns are ignored):
    path,datetime,species,individual

Assumptions:
    - datetime is a naive local timestamp 'yyyy-MM-dd HH:mm:ss'; timezone
      designators are stripped, only the wall-clock part is compared.
    - the deployment (camera/site) is one fixed segment of the path.
    - older exports name the timestamp column 'datetime_original'.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import pandas as pd

from camtrap_capture.errors import CaptureError, MissingColumnError, ParameterError, TimeFormatError

TIME_FORMAT = '%Y-%m-%d %H:%M:%S'
TIME_FORMAT_HINT = 'yyyy-MM-dd HH:mm:ss'
ACCEPTED_TIME_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M')

DEFAULT_EXCLUDE_TAGS = (
    "",
    "Blank",
    "Useless data",
    "Unidentified",
    "Human",
    "Unknown",
    "Blur",
)

OBSERVATION_COLUMNS = ('path', 'deployment', 'time')

_TIMEZONE_SUFFIX = r'(?:Z|[+-]\d{2}:?\d{2})$'
_ISO_SEPARATOR = r'^(\d{4}-\d{2}-\d{2})T'


class TagType(Enum):
    """Which tag column the analysis runs on."""
    SPECIES = 'species'
    INDIVIDUAL = 'individual'

    @property
    def col_name(self):
        return self.value

    @classmethod
    def parse(cls, value):
        """Accept a TagType, its name/value in any case, or the menu number (1/2)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in ('1', 'species'):
            return cls.SPECIES
        if text in ('2', 'individual'):
            return cls.INDIVIDUAL
        raise ParameterError(
            f"Invalid target '{value}': expected 'species' or 'individual'"
        )


@dataclass
class Observation:
    """One detection record handed over by the metadata extraction step."""
    path: str
    deployment: str
    time: datetime
    tag: str


def observations_to_frame(observations, target=TagType.SPECIES):
    """Build the observation table from a list of Observation records."""
    target = TagType.parse(target)
    rows = [
        {'path': o.path, 'deployment': o.deployment, 'time': o.time, target.col_name: o.tag}
        for o in observations
    ]
    df = pd.DataFrame(rows, columns=list(OBSERVATION_COLUMNS) + [target.col_name])
    df['time'] = pd.to_datetime(df['time'])
    return df


# --------------------------
# Timestamps
# --------------------------

def ignore_timezone(text):
    """Drop a trailing 'Z' or '+hh:mm' / '-hh:mm' offset from a timestamp string."""
    return re.sub(_TIMEZONE_SUFFIX, '', text.strip())


def parse_timestamps(series):
    """
    Parse a column of timestamp strings into naive datetimes.

    Empty cells become NaT (they are dropped by the exclusion filter later).
    Any other value that does not match 'yyyy-MM-dd HH:mm:ss' (or the minute
    resolution 'yyyy-MM-dd HH:mm') is an error: we never guess a format.

    Args:
        series: pandas Series of strings (or already datetimes)

    Returns:
        Series of dtype datetime64[ns]
    """
    if pd.api.types.is_datetime64_any_dtype(series):
        if getattr(series.dt, 'tz', None) is not None:
            return series.dt.tz_localize(None)
        return series

    text = series.where(series.notna(), '').astype(str).str.strip()
    text = text.map(ignore_timezone)
    text = text.str.replace(_ISO_SEPARATOR, r'\1 ', regex=True)
    present = text != ''

    parsed = pd.Series(pd.NaT, index=series.index, dtype='datetime64[ns]')
    for fmt in ACCEPTED_TIME_FORMATS:
        pending = present & parsed.isna()
        if not pending.any():
            break
        parsed.loc[pending] = pd.to_datetime(text[pending], format=fmt, errors='coerce')

    unparsed = present & parsed.isna()
    if unparsed.any():
        samples = ', '.join(repr(v) for v in text[unparsed].unique()[:3])
        raise TimeFormatError(
            f"Datetime column parsing failed for {int(unparsed.sum())} value(s) (e.g. {samples}).\n"
            f"Hint: Ensure the datetime format in your file matches the pattern '{TIME_FORMAT_HINT}'."
        )
    return parsed


# --------------------------
# Paths / deployments
# --------------------------

def _split_path(path):
    return str(path).replace('\\', '/').split('/')


def path_levels(path):
    """List (index, segment) pairs of a path, skipping empty segments."""
    return [(i, part) for i, part in enumerate(_split_path(path)) if part]


def deployment_from_path(path, index):
    """Return the path segment at `index`, or None when there is none."""
    parts = _split_path(path)
    if 0 <= index < len(parts) and parts[index]:
        return parts[index]
    return None


def derive_deployments(paths, index):
    """Vectorized deployment_from_path over a Series of paths."""
    segments = paths.astype(str).str.replace('\\', '/', regex=False).str.split('/').str.get(index)
    return segments.where(segments.notna() & (segments != ''), None)


# --------------------------
# Loading
# --------------------------

def load_tags_csv(csv_path):
    """
    Load a tags CSV as text columns.

    Only empty cells are treated as missing, so tags like 'NA' survive.
    'datetime_original' (older exports) is renamed to 'datetime'.
    """
    try:
        df = pd.read_csv(csv_path, dtype=str, encoding='utf-8-sig',
                         keep_default_na=False, na_values=[''])
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CaptureError(f"Failed to read or parse CSV file {csv_path}: {e}") from e

    if 'datetime' not in df.columns and 'datetime_original' in df.columns:
        df = df.rename(columns={'datetime_original': 'datetime'})

    missing = [c for c in ('path', 'datetime') if c not in df.columns]
    if missing:
        raise MissingColumnError(
            f"{csv_path} is missing required column(s): {', '.join(missing)}"
        )
    return df


def build_observation_frame(df, target, deployment_index=None):
    """
    Select the columns the analysis needs from a tags table.

    Args:
        df: tags table as returned by load_tags_csv
        target: TagType (or its name) of the column to analyze
        deployment_index: path segment index holding the deployment; when None,
            an existing 'deployment' column is used instead

    Returns:
        DataFrame with columns path, deployment, time, <target column>
    """
    target = TagType.parse(target)
    tag_col = target.col_name

    missing = [c for c in ('path', 'datetime', tag_col) if c not in df.columns]
    if missing:
        raise MissingColumnError(
            f"Input table is missing required column(s): {', '.join(missing)}"
        )

    if deployment_index is not None:
        deployment = derive_deployments(df['path'], deployment_index)
    elif 'deployment' in df.columns:
        deployment = df['deployment']
    else:
        raise ParameterError(
            "deployment_index is required when the table has no 'deployment' column"
        )

    return pd.DataFrame({
        'path': df['path'],
        'deployment': deployment,
        'time': parse_timestamps(df['datetime']),
        tag_col: df[tag_col],
    })
