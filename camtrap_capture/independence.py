"""
independence.py

Temporal independence of camera-trap detections.

Two detections of the same tag at the same deployment are not independent
events when they are too close in time. The minimum time difference can be
compared with:

  LastIndependentRecord (LIR, default)
      a running gap test. Each (deployment, tag) partition carries a cursor
      with the time of its last independent record; a record is independent
      when it is the first of its partition or when more than
      `min_delta_time` minutes (strictly) passed since the cursor. The cursor
      only moves on independent records, so a chain of close detections
      collapses to its first record.

  LastRecord (LR)
      a local window test. A record is independent when it is the only record
      of its partition in the window (t - min_delta_time, t]. Earlier
      classifications play no part.

The two boundary conventions differ on purpose: a gap of exactly
`min_delta_time` is independent under LR and not under LIR.
"""

from enum import Enum

import numpy as np
import pandas as pd

from camtrap_capture.errors import MissingColumnError, NoDataError, ParameterError, TimeFormatError
from camtrap_capture.observation_filter import canonical_sort
from camtrap_capture.records import TIME_FORMAT_HINT, TagType

MINUTES_PER_WEEK = 10080


class Policy(Enum):
    """What the minimum time difference is compared with."""
    LAST_INDEPENDENT_RECORD = 'LastIndependentRecord'
    LAST_RECORD = 'LastRecord'

    @property
    def abbr(self):
        return 'LIR' if self is Policy.LAST_INDEPENDENT_RECORD else 'LR'

    @classmethod
    def parse(cls, value):
        """Accept a Policy, its full name, its abbreviation or the menu number (1/2)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in ('1', 'lir', 'lastindependentrecord'):
            return cls.LAST_INDEPENDENT_RECORD
        if text in ('2', 'lr', 'lastrecord'):
            return cls.LAST_RECORD
        raise ParameterError(
            f"Invalid policy '{value}': expected LastIndependentRecord (LIR) or LastRecord (LR)"
        )


def check_min_delta_time(value):
    """Return `value` as a positive int of minutes or raise ParameterError."""
    if isinstance(value, bool):
        raise ParameterError(f"Invalid time difference {value!r}: must be a whole number of minutes")
    try:
        minutes = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        raise ParameterError(
            f"Invalid time difference {value!r}: please enter a valid number of minutes"
        ) from None
    if minutes != value and not isinstance(value, str):
        raise ParameterError(f"Invalid time difference {value!r}: must be a whole number of minutes")
    if minutes <= 0:
        raise ParameterError(f"Invalid time difference {minutes}: must be greater than 0")
    return minutes


def validate_observations(df, target, min_delta_time):
    """
    Fail fast on input the classifier cannot handle.

    Raises:
        MissingColumnError: path/deployment/time/tag column absent
        TimeFormatError: time column did not parse into datetimes
        ParameterError: min_delta_time not a positive int
        NoDataError: empty table
    """
    tag_col = TagType.parse(target).col_name
    missing = [c for c in ('path', 'deployment', 'time', tag_col) if c not in df.columns]
    if missing:
        raise MissingColumnError(
            f"Observation table is missing required column(s): {', '.join(missing)}"
        )
    if not pd.api.types.is_datetime64_any_dtype(df['time']):
        raise TimeFormatError(
            f"Time column parsing failed: column contains {df['time'].dtype} data instead of datetime values.\n"
            f"Hint: Ensure the datetime format in your file matches the pattern '{TIME_FORMAT_HINT}'."
        )
    check_min_delta_time(min_delta_time)
    if len(df) == 0:
        raise NoDataError("No records to analyze.")


def _partitions(df, tag_col):
    """Yield time-ordered row positions of every (deployment, tag) partition."""
    times = df['time'].to_numpy()
    for key, positions in df.groupby(['deployment', tag_col], sort=False).indices.items():
        order = np.argsort(times[positions], kind='stable')
        yield key, positions[order]


def classify_last_independent_record(df, target, min_delta_time):
    """
    Mark records independent under the LastIndependentRecord policy.

    Returns:
        Boolean Series aligned with df
    """
    tag_col = TagType.parse(target).col_name
    delta = np.timedelta64(check_min_delta_time(min_delta_time), 'm')
    times = df['time'].to_numpy()
    independent = np.zeros(len(df), dtype=bool)

    for _, positions in _partitions(df, tag_col):
        last_independent_time = None
        for pos in positions:
            t = times[pos]
            if last_independent_time is None or t - last_independent_time > delta:
                independent[pos] = True
                last_independent_time = t

    return pd.Series(independent, index=df.index, name='independent')


def classify_last_record(df, target, min_delta_time):
    """
    Mark records independent under the LastRecord policy.

    For every record count the records of its partition with time in
    (t - min_delta_time, t]; it is independent when that count is 1.

    Returns:
        Boolean Series aligned with df
    """
    tag_col = TagType.parse(target).col_name
    delta = np.timedelta64(check_min_delta_time(min_delta_time), 'm')
    times = df['time'].to_numpy()
    independent = np.zeros(len(df), dtype=bool)

    for _, positions in _partitions(df, tag_col):
        group_times = times[positions]
        window_start = np.searchsorted(group_times, group_times - delta, side='right')
        window_end = np.searchsorted(group_times, group_times, side='right')
        independent[positions] = (window_end - window_start) == 1

    return pd.Series(independent, index=df.index, name='independent')


def detect_independent(df, target, min_delta_time, policy=Policy.LAST_INDEPENDENT_RECORD):
    """
    Select the temporally independent records of an observation table.

    The canonical sort is applied here, whatever order the caller passes in.

    Args:
        df: filtered, deduplicated observation table
        target: TagType or name of the tag column
        min_delta_time: minimum time difference in minutes (> 0)
        policy: Policy or its name/abbreviation

    Returns:
        DataFrame with columns path, deployment, time, <tag>, in canonical order
    """
    target = TagType.parse(target)
    policy = Policy.parse(policy)
    validate_observations(df, target, min_delta_time)

    ordered = canonical_sort(df, target)
    if policy is Policy.LAST_RECORD:
        mask = classify_last_record(ordered, target, min_delta_time)
    else:
        mask = classify_last_independent_record(ordered, target, min_delta_time)

    columns = ['path', 'deployment', 'time', target.col_name]
    return ordered.loc[mask.to_numpy(), columns].reset_index(drop=True)
