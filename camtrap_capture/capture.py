#!/usr/bin/env python3
"""
capture.py

Temporal independence analysis on a tags CSV.

Usage:
    camtrap-capture serval_output/tags.csv --min-delta-time 30 --deployment-index 5
    camtrap-capture tags.csv --config capture.yaml --event --plot
    python -m camtrap_capture.capture tags.csv    # asks for missing parameters

Expected input CSV format (header):
    path,datetime,species,individual

Pipeline:
    - drop records without deployment/time/tag and with excluded tags
    - drop duplicate (deployment, time, tag) records, sort by deployment, tag, time
    - keep temporally independent records (LastIndependentRecord or LastRecord)
    - optionally give every filtered record the event_id of its independent event
    - count independent events by deployment (and over all deployments for species)

Output Structure:
    <output_dir>/
        temporal-independence_<target>_<N>m_<LIR|LR>.csv
        events_<target>_<N>m_<LIR|LR>.csv      (--event)
        count_by_deployment.csv
        count_all.csv                          (species only)
        capture_summary.txt
        count_by_deployment.png, count_all.png (--plot)

Every table is computed before anything is written.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import pandas as pd

from camtrap_capture.aggregate import StageCounts, count_all, count_by_deployment, generate_summary_report
from camtrap_capture.config import DEFAULT_OUTPUT_DIR, CaptureConfig, config_from_settings, load_config
from camtrap_capture.errors import CaptureError
from camtrap_capture.events import assign_event_ids, attach_event_ids
from camtrap_capture.independence import check_min_delta_time, detect_independent
from camtrap_capture.observation_filter import dedup_and_sort, exclude_tags
from camtrap_capture.plotting import plot_count_all, plot_counts_by_deployment
from camtrap_capture.prompt import fill_missing
from camtrap_capture.records import TIME_FORMAT, TagType, build_observation_frame, load_tags_csv


@dataclass
class CaptureResult:
    """Every table produced by one capture run."""
    config: CaptureConfig
    observations: pd.DataFrame
    independent: pd.DataFrame
    count_by_deployment: pd.DataFrame
    stage_counts: StageCounts
    events: Optional[pd.DataFrame] = None
    count_all: Optional[pd.DataFrame] = None
    output_files: List[Path] = field(default_factory=list)


def write_csv(df, path):
    """CSV with a byte-order mark and 'yyyy-MM-dd HH:mm:ss' timestamps."""
    df.to_csv(path, index=False, encoding='utf-8-sig', date_format=TIME_FORMAT)
    return path


def analyze_observations(observations, config, verbose=True):
    """
    Run the analysis on an observation table without writing anything.

    Args:
        observations: DataFrame path, deployment, time, <target column>
        config: CaptureConfig

    Returns:
        CaptureResult
    """
    target = config.target
    filtered = exclude_tags(observations, target, exclude=config.exclude_tags,
                            no_exclude=config.no_exclude)
    prepared = dedup_and_sort(filtered, target)
    if verbose:
        print(f"Loaded {len(observations)} records, {len(filtered)} after filtering, "
              f"{len(prepared)} after removing duplicates")

    independent = detect_independent(prepared, target, config.min_delta_time, config.policy)
    if verbose:
        print(f"Independent records ({config.policy.value}, {config.min_delta_time} min): "
              f"{len(independent)}")
        print(independent.head())

    events = None
    if config.event:
        events = attach_event_ids(filtered, assign_event_ids(independent), target)

    by_deployment = count_by_deployment(independent, target)
    overall = count_all(independent, target) if target is TagType.SPECIES else None
    if verbose:
        print(by_deployment.head())

    stage_counts = StageCounts(
        loaded=len(observations),
        filtered=len(filtered),
        deduplicated=len(prepared),
        independent=len(independent),
        deployments=int(prepared['deployment'].nunique()),
        events_assigned=int(events['event_id'].notna().sum()) if events is not None else None,
    )

    return CaptureResult(
        config=config,
        observations=filtered,
        independent=independent,
        count_by_deployment=by_deployment,
        stage_counts=stage_counts,
        events=events,
        count_all=overall,
    )


def write_outputs(result, verbose=True):
    """Write the tables of a CaptureResult into config.output_dir."""
    config = result.config
    output_dir = config.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = config.output_suffix

    outputs = [
        ("independent records", result.independent, output_dir / f"temporal-independence{suffix}"),
    ]
    if result.events is not None:
        outputs.append(("event IDs", result.events, output_dir / f"events{suffix}"))
    outputs.append(("counts by deployment", result.count_by_deployment, output_dir / "count_by_deployment.csv"))
    if result.count_all is not None:
        outputs.append(("overall counts", result.count_all, output_dir / "count_all.csv"))

    for label, df, path in outputs:
        write_csv(df, path)
        result.output_files.append(path)
        if verbose:
            print(f"Saved {label} to", path)

    report_path = output_dir / "capture_summary.txt"
    generate_summary_report(report_path, config, result.stage_counts, result.count_by_deployment)
    result.output_files.append(report_path)
    if verbose:
        print(f"Saved summary report to {report_path}")

    if config.plot:
        plot_path = plot_counts_by_deployment(result.count_by_deployment, config.target,
                                              output_dir / "count_by_deployment.png")
        result.output_files.append(plot_path)
        if result.count_all is not None:
            result.output_files.append(
                plot_count_all(result.count_all, output_dir / "count_all.png", config.target)
            )
        if verbose:
            print(f"Saved plots to {output_dir}")

    return result.output_files


def run_capture(source, config, verbose=True):
    """
    Full capture run: load, analyze, write.

    Args:
        source: path of a tags CSV, a tags DataFrame (path, datetime, <tag>...)
            or an observation DataFrame (path, deployment, time, <tag>)
        config: CaptureConfig

    Returns:
        CaptureResult with output_files filled in
    """
    tags = source if isinstance(source, pd.DataFrame) else load_tags_csv(source)
    if 'datetime' in tags.columns:
        observations = build_observation_frame(tags, config.target, config.deployment_index)
    else:
        observations = tags

    result = analyze_observations(observations, config, verbose=verbose)
    write_outputs(result, verbose=verbose)
    return result


# --------------------------
# CLI
# --------------------------

def build_parser():
    parser = argparse.ArgumentParser(
        description='Temporal independence analysis on a tags CSV',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Everything on the command line
  camtrap-capture tags.csv --min-delta-time 30 --deployment-index 5 --event

  # Compare with the last record instead of the last independent record
  camtrap-capture tags.csv --min-delta-time 30 --policy LastRecord --deployment-index 5

  # Parameters from a YAML file, missing ones are asked for
  camtrap-capture tags.csv --config capture.yaml
        """
    )
    parser.add_argument('csv_path', help='Path for tags.csv')
    parser.add_argument('--config', type=str, help='Path to YAML configuration file')
    parser.add_argument('--min-delta-time', dest='min_delta_time', type=int,
                        help='Minimum time difference (minutes) between independent records')
    parser.add_argument('--policy', type=str,
                        help='Compare with LastIndependentRecord (LIR, default) or LastRecord (LR)')
    parser.add_argument('--target', choices=['species', 'individual'],
                        help='Tag column to analyze (default: species)')
    parser.add_argument('--deployment-index', dest='deployment_index', type=int,
                        help="Index of the path segment naming the deployment")
    parser.add_argument('--event', action='store_true', help='Create event IDs')
    parser.add_argument('--no-exclude', dest='no_exclude', action='store_true',
                        help='Do not exclude default tags (Blank, Useless data, Unidentified, '
                             'Human, Unknown, Blur)')
    parser.add_argument('--exclude', dest='exclude_tags', nargs='+', metavar='TAG',
                        help='Tags to exclude instead of the default list')
    parser.add_argument('-o', '--output', type=str,
                        help=f'Output directory (default: {DEFAULT_OUTPUT_DIR})')
    parser.add_argument('--plot', action='store_true', help='Save bar charts of the counts')
    parser.add_argument('--no-input', dest='no_input', action='store_true',
                        help='Never prompt; fail when a required parameter is missing')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        settings = load_config(args.config, args)
        given_delta = settings.get('capture', {}).get('min_delta_time')
        if given_delta is not None:
            check_min_delta_time(given_delta)

        tags = load_tags_csv(args.csv_path)
        print(f"Loaded {len(tags)} rows from {args.csv_path}")

        if not args.no_input and sys.stdin.isatty():
            paths = tags['path'].dropna()
            fill_missing(
                settings,
                sample_path=paths.iloc[0] if len(paths) > 0 else None,
                has_deployment_column='deployment' in tags.columns,
            )

        config = config_from_settings(settings)
        run_capture(tags, config)

    except (CaptureError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1
    except (EOFError, KeyboardInterrupt):
        print("\nCancelled")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
