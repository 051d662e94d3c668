"""
config.py

Parameters of a capture run.

Values come from an optional YAML file and the command line (command line
wins); whatever is still missing can be asked for interactively (see
prompt.py) before the CaptureConfig is built. CaptureConfig validates every
field on construction, so the pipeline never sees a bad parameter.

Example config.yaml:

    capture:
      min_delta_time: 30
      policy: LastIndependentRecord   # or LastRecord / LIR / LR
      target: species                 # or individual
      deployment_index: 5
      event: true
      exclude_tags: ["", Blank, Human]
    paths:
      output_dir: results/capture
"""

import argparse
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from camtrap_capture.errors import ParameterError
from camtrap_capture.independence import MINUTES_PER_WEEK, Policy, check_min_delta_time
from camtrap_capture.records import DEFAULT_EXCLUDE_TAGS, TagType

DEFAULT_OUTPUT_DIR = Path('./camtrap_output/capture')

CAPTURE_KEYS = (
    'min_delta_time',
    'policy',
    'target',
    'deployment_index',
    'no_exclude',
    'exclude_tags',
    'event',
    'plot',
)


@dataclass
class CaptureConfig:
    """Validated parameters of the temporal independence analysis."""
    min_delta_time: int
    policy: Policy = Policy.LAST_INDEPENDENT_RECORD
    target: TagType = TagType.SPECIES
    deployment_index: Optional[int] = None
    no_exclude: bool = False
    exclude_tags: Tuple[str, ...] = DEFAULT_EXCLUDE_TAGS
    event: bool = False
    output_dir: Path = DEFAULT_OUTPUT_DIR
    plot: bool = False

    def __post_init__(self):
        self.min_delta_time = check_min_delta_time(self.min_delta_time)
        if self.min_delta_time > MINUTES_PER_WEEK:
            print(f"Note: {self.min_delta_time} minutes is unusually large (> 1 week)")
        self.policy = Policy.parse(self.policy)
        self.target = TagType.parse(self.target)
        if self.deployment_index is not None:
            self.deployment_index = check_deployment_index(self.deployment_index)
        if isinstance(self.exclude_tags, str):
            self.exclude_tags = (self.exclude_tags,)
        self.exclude_tags = tuple('' if t is None else str(t) for t in self.exclude_tags)
        self.no_exclude = check_flag('no_exclude', self.no_exclude)
        self.event = check_flag('event', self.event)
        self.plot = check_flag('plot', self.plot)
        self.output_dir = Path(self.output_dir)

    @property
    def output_suffix(self):
        """'_<target>_<N>m_<LIR|LR>.csv', shared by the independence and event files."""
        return f"_{self.target.col_name}_{self.min_delta_time}m_{self.policy.abbr}.csv"


def check_flag(name, value):
    """Only real booleans are accepted; a quoted "false" is not False."""
    if not isinstance(value, bool):
        raise ParameterError(f"Invalid value {value!r} for {name}: must be true or false")
    return value


def check_deployment_index(value):
    """Return `value` as a non-negative int or raise ParameterError."""
    if isinstance(value, bool):
        raise ParameterError(f"Invalid deployment index {value!r}: must be a whole number >= 0")
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise ParameterError(f"Invalid deployment index {value!r}: must be a whole number >= 0") from None
    if index < 0:
        raise ParameterError(f"Invalid deployment index {index}: must be >= 0")
    return index


def load_config(config_path: Optional[Path] = None, args: Optional[argparse.Namespace] = None) -> Dict:
    """
    Load settings from a YAML file and/or command-line arguments.
    CLI arguments override config file values.
    """
    config = {}

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ParameterError(f"Config file not found: {config_path}")
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ParameterError(f"Config file {config_path} must contain a mapping")
        print(f"Loaded configuration from: {config_path}")

    if args:
        capture = config.setdefault('capture', {})
        for key in CAPTURE_KEYS:
            value = getattr(args, key, None)
            # store_true flags only override when set
            if value is None or value is False:
                continue
            capture[key] = value
        if getattr(args, 'output', None):
            config.setdefault('paths', {})['output_dir'] = args.output

    return config


def config_from_settings(settings: Dict) -> CaptureConfig:
    """Build a CaptureConfig from the dict returned by load_config."""
    capture = dict(settings.get('capture') or {})
    paths = settings.get('paths') or {}

    unknown = sorted(set(capture) - set(CAPTURE_KEYS))
    if unknown:
        raise ParameterError(f"Unknown capture setting(s): {', '.join(unknown)}")
    if capture.get('min_delta_time') is None:
        raise ParameterError(
            "min_delta_time is required: pass --min-delta-time or set capture.min_delta_time"
        )

    known = {f.name for f in fields(CaptureConfig)}
    kwargs = {k: v for k, v in capture.items() if k in known and v is not None}
    if paths.get('output_dir'):
        kwargs['output_dir'] = paths['output_dir']
    return CaptureConfig(**kwargs)
