# stash_watch/utils/config.py

"""
Configuration management for stash-watch
"""
import argparse
import json
import os
import yaml
from pydantic import ValidationError
from pathlib import Path
from typing import Dict, Any, Mapping, Optional, Sequence, Union
from dataclasses import dataclass, field, asdict
import logging

from ..core.stash_client import ScanOptions, StashConfig
from ..watchdog.roots import WatchRoots
from .errors import ConfigError

logger = logging.getLogger(__name__)

# Presence-only switches: set to anything (even empty) to enable
ENV_DEBUG = "STASH_WATCH_DEBUG"
ENV_VERBOSE = "STASH_WATCH_VERBOSE"
ENV_DO_AUTH = "STASH_WATCH_DO_AUTH"
SCAN_FLAG_ENV = {
    "rescan": "STASH_WATCH_FORCE_RESCAN",
    "scanGenerateClipPreviews": "STASH_WATCH_GEN_CLIP_PREV",
    "scanGenerateCovers": "STASH_WATCH_GEN_COVER",
    "scanGenerateImagePreviews": "STASH_WATCH_GEN_IMAGE_PREV",
    "scanGeneratePhashes": "STASH_WATCH_GEN_PHASH",
    "scanGeneratePreviews": "STASH_WATCH_GEN_PREV",
    "scanGenerateSprites": "STASH_WATCH_GEN_SPRITE",
    "scanGenerateThumbnails": "STASH_WATCH_GEN_THUMB",
}

ENV_ENDPOINT = "STASH_API_ENDPOINT"
ENV_API_KEY = "STASH_API_KEY"
ENV_INTERVAL = "STASH_SCAN_INTERVAL_MINS"


@dataclass
class WatchConfig:
    """File watching configuration"""
    roots: list = field(default_factory=list)
    debounce_time: float = 0.1  # seconds
    coalesce_paths: bool = False
    fail_on_register_error: bool = False


@dataclass
class ScheduleConfig:
    """Backstop scan schedule"""
    interval_minutes: int = 30


@dataclass
class Config:
    """Main configuration class"""
    watch: WatchConfig = field(default_factory=WatchConfig)
    stash: StashConfig = field(default_factory=StashConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    log_level: str = "INFO"
    log_format: str = "text"  # text, json, or color
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, with secrets masked"""
        data = {
            'watch': asdict(self.watch),
            'stash': self.stash.model_dump(),
            'schedule': asdict(self.schedule),
            'log_level': self.log_level,
            'log_format': self.log_format,
            'log_file': self.log_file,
        }
        data['watch']['roots'] = [str(root) for root in self.watch.roots]
        if data['stash'].get('api_key'):
            data['stash']['api_key'] = '***'
        return data

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def update_from_dict(self, data: Dict[str, Any]):
        """Update config from a parsed config file"""
        for key, value in data.items():
            if key == 'watch' and isinstance(value, dict):
                for name, item in value.items():
                    if hasattr(self.watch, name):
                        setattr(self.watch, name, item)
            elif key == 'schedule' and isinstance(value, dict):
                for name, item in value.items():
                    if hasattr(self.schedule, name):
                        setattr(self.schedule, name, item)
            elif key == 'stash' and isinstance(value, dict):
                merged = {**self.stash.model_dump(), **value}
                if isinstance(value.get('scan'), dict):
                    merged['scan'] = {**self.stash.scan.model_dump(), **value['scan']}
                self.stash = build_stash_config(merged)
            elif key in ('log_level', 'log_format', 'log_file'):
                setattr(self, key, value)
            else:
                logger.warning(f"Unknown configuration key: {key}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stash-watch",
        description="Watch directories and trigger Stash library scans on change.",
    )
    parser.add_argument(
        "--watcher", action="append", default=[], metavar="PATH",
        help="Path(s) to add watchers to (may be specified multiple times).",
    )
    parser.add_argument("--config", metavar="FILE", help="YAML or JSON configuration file.")
    parser.add_argument("--debounce", metavar="SECONDS", help="Quiet window per path.")
    parser.add_argument("--log-format", choices=("text", "json", "color"))
    parser.add_argument("--log-file", metavar="FILE")
    return parser


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Parse a YAML or JSON configuration file"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"could not read configuration from {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"configuration file {path} must contain a mapping")
    return data


def build_stash_config(values: Dict[str, Any]) -> StashConfig:
    """Validate Stash settings, reporting bad values as ConfigError"""
    try:
        return StashConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigError(f"invalid stash configuration ({problems})") from e


def parse_interval(value: Any) -> int:
    try:
        minutes = int(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"scan interval must be a whole number of minutes, got {value!r}")
    if minutes <= 0:
        raise ConfigError(f"scan interval must be positive, got {minutes}")
    return minutes


def parse_debounce(value: Any) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"debounce time must be a number of seconds, got {value!r}")
    if seconds <= 0:
        raise ConfigError(f"debounce time must be positive, got {seconds}")
    return seconds


def apply_environment(config: Config, environ: Mapping[str, str]):
    """Overlay environment variables onto config"""
    if ENV_DEBUG in environ:
        config.log_level = "DEBUG"
    elif ENV_VERBOSE in environ:
        config.log_level = "VERBOSE"

    stash = config.stash.model_dump()
    if ENV_DO_AUTH in environ:
        stash['do_auth'] = True
    if ENV_API_KEY in environ:
        stash['api_key'] = environ[ENV_API_KEY]
    if ENV_ENDPOINT in environ:
        stash['endpoint'] = environ[ENV_ENDPOINT]
    for option, variable in SCAN_FLAG_ENV.items():
        if variable in environ:
            stash['scan'][option] = True
    config.stash = build_stash_config(stash)

    if ENV_INTERVAL in environ:
        config.schedule.interval_minutes = environ[ENV_INTERVAL]


def load_config(argv: Optional[Sequence[str]] = None,
                environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build configuration from defaults, config file, environment and flags

    Raises:
        ConfigError: configuration is incomplete or invalid
    """
    if environ is None:
        environ = os.environ

    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    if extra:
        raise ConfigError(f"Unknown arguments: {' '.join(extra)}")

    config = Config()

    if args.config:
        logger.info(f"Loading configuration from {args.config}")
        config.update_from_dict(read_config_file(args.config))

    apply_environment(config, environ)

    if args.debounce is not None:
        config.watch.debounce_time = args.debounce
    if args.log_format:
        config.log_format = args.log_format
    if args.log_file:
        config.log_file = args.log_file

    if not isinstance(config.watch.roots, (list, tuple)):
        raise ConfigError(
            f"watch.roots must be a list of directories, got {config.watch.roots!r}"
        )

    roots = WatchRoots()
    for path in list(config.watch.roots) + list(args.watcher):
        roots.add(path)
    if not roots:
        raise ConfigError(
            "no watcher arguments provided. "
            "Use '--watcher <PATH>' to start watching directories."
        )
    config.watch.roots = list(roots)

    config.watch.debounce_time = parse_debounce(config.watch.debounce_time)
    config.schedule.interval_minutes = parse_interval(config.schedule.interval_minutes)

    if not config.stash.endpoint:
        raise ConfigError(f"Stash API endpoint is unset (set {ENV_ENDPOINT})")

    return config
