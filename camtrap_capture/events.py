"""
events.py

Event IDs for independent detections.

Every independent record opens an event. Non-independent records (repeat
detections) belong to the most recent event of the same deployment and tag
at or before their own time.
"""

import numpy as np
import pandas as pd

from camtrap_capture.observation_filter import canonical_sort
from camtrap_capture.records import TagType


def assign_event_ids(independent):
    """Number independent records 1..n in their current row order."""
    events = independent.reset_index(drop=True).copy()
    events.insert(0, 'event_id', np.arange(1, len(events) + 1, dtype='int64'))
    return events


def attach_event_ids(raw, events, target):
    """
    Give every raw record the event_id of its event.

    Backward as-of join on time, keyed by (deployment, tag): each record takes
    the latest event whose time is <= its own. Records with no such event keep
    a null event_id.

    Args:
        raw: filtered (not deduplicated) observation table
        events: output of assign_event_ids
        target: TagType or name of the tag column

    Returns:
        DataFrame path, deployment, time, <tag>, event_id (Int64) in canonical order
    """
    tag_col = TagType.parse(target).col_name
    columns = ['path', 'deployment', 'time', tag_col]

    records = canonical_sort(raw[columns], target)
    records['_row'] = np.arange(len(records))

    # merge_asof needs both sides ordered on the join key
    left = records.sort_values('time', kind='stable')
    right = events[['deployment', tag_col, 'time', 'event_id']].sort_values('time', kind='stable')

    merged = pd.merge_asof(
        left,
        right,
        on='time',
        by=['deployment', tag_col],
        direction='backward',
        allow_exact_matches=True,
    )
    merged = merged.sort_values('_row').drop(columns='_row').reset_index(drop=True)
    merged['event_id'] = merged['event_id'].astype('Int64')
    return merged[columns + ['event_id']]
