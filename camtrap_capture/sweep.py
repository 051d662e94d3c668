#!/usr/bin/env python3
"""
sweep.py

How sensitive are the independent event counts to the minimum time
difference? Runs the independence analysis for several intervals and tabulates
the number of independent events per tag.

Usage:
    camtrap-capture-sweep tags.csv --deployment-index 5
    camtrap-capture-sweep tags.csv --deployment-index 5 --intervals 5 15 30 60 --policy LR
"""

import argparse
import sys
from pathlib import Path

import pandas as pd
from tqdm import tqdm

from camtrap_capture.config import DEFAULT_OUTPUT_DIR
from camtrap_capture.errors import CaptureError, ParameterError
from camtrap_capture.independence import Policy, check_min_delta_time, detect_independent
from camtrap_capture.observation_filter import prepare_observations
from camtrap_capture.records import DEFAULT_EXCLUDE_TAGS, TagType, build_observation_frame, load_tags_csv

DEFAULT_INTERVALS = [1, 5, 10, 15, 30, 60, 120, 1440]


def sweep_intervals(df, target, intervals=DEFAULT_INTERVALS, policy=Policy.LAST_INDEPENDENT_RECORD,
                    exclude=DEFAULT_EXCLUDE_TAGS, no_exclude=False, show_progress=True):
    """
    Count independent events per tag for every interval.

    Args:
        df: observation table (path, deployment, time, <tag>)
        target: TagType or name of the tag column
        intervals: minimum time differences in minutes
        policy: Policy or its name/abbreviation

    Returns:
        (long, pivot): long has columns min_delta_time, policy, <tag>, count;
        pivot has one row per tag and one column per interval
    """
    target = TagType.parse(target)
    policy = Policy.parse(policy)
    tag_col = target.col_name

    intervals = sorted({check_min_delta_time(m) for m in intervals})
    if not intervals:
        raise ParameterError("At least one interval is required")

    # filtering and deduplication do not depend on the interval
    prepared = prepare_observations(df, target, exclude=exclude, no_exclude=no_exclude)

    frames = []
    for minutes in tqdm(intervals, desc="Intervals", disable=not show_progress):
        independent = detect_independent(prepared, target, minutes, policy)
        counts = independent.groupby(tag_col, sort=False).size().reset_index(name='count')
        counts.insert(0, 'policy', policy.abbr)
        counts.insert(0, 'min_delta_time', minutes)
        frames.append(counts)

    long = pd.concat(frames, ignore_index=True)
    pivot = (
        long.pivot_table(index=tag_col, columns='min_delta_time', values='count',
                         aggfunc='sum', fill_value=0)
        .reindex(columns=intervals, fill_value=0)
        .astype('int64')
    )
    pivot.columns = [f"{m}m" for m in pivot.columns]
    return long, pivot.reset_index()


def print_sweep_table(pivot, tag_col):
    print("\n" + "=" * 80)
    print("INDEPENDENT EVENTS PER INTERVAL")
    print("=" * 80)
    print(pivot.to_string(index=False))

    totals = pivot.drop(columns=tag_col).sum()
    print("-" * 80)
    print("Total: " + "  ".join(f"{col}={int(total)}" for col, total in totals.items()))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Independent event counts for a range of minimum time differences'
    )
    parser.add_argument('csv_path', help='Path for tags.csv')
    parser.add_argument('--intervals', type=int, nargs='+', default=DEFAULT_INTERVALS,
                        help=f'Minimum time differences in minutes (default: {DEFAULT_INTERVALS})')
    parser.add_argument('--policy', type=str, default='LIR',
                        help='LastIndependentRecord (LIR, default) or LastRecord (LR)')
    parser.add_argument('--target', choices=['species', 'individual'], default='species')
    parser.add_argument('--deployment-index', dest='deployment_index', type=int,
                        help='Index of the path segment naming the deployment')
    parser.add_argument('--no-exclude', dest='no_exclude', action='store_true',
                        help='Do not exclude default tags')
    parser.add_argument('-o', '--output', type=str, default=str(DEFAULT_OUTPUT_DIR),
                        help=f'Output directory (default: {DEFAULT_OUTPUT_DIR})')
    args = parser.parse_args(argv)

    try:
        target = TagType.parse(args.target)
        policy = Policy.parse(args.policy)

        tags = load_tags_csv(args.csv_path)
        observations = build_observation_frame(tags, target, args.deployment_index)
        print(f"Loaded {len(observations)} records from {args.csv_path}")

        long, pivot = sweep_intervals(observations, target, args.intervals, policy,
                                      no_exclude=args.no_exclude)
    except (CaptureError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    print_sweep_table(pivot, target.col_name)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"interval_sweep_{target.col_name}_{policy.abbr}.csv"
    pivot.to_csv(output_path, index=False, encoding='utf-8-sig')
    long.to_csv(output_dir / f"interval_sweep_{target.col_name}_{policy.abbr}_long.csv",
                index=False, encoding='utf-8-sig')
    print(f"\nSaved sweep results to {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
