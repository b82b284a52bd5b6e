"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import LiveFileConfig


def load_config(cli_path: str | None = None) -> LiveFileConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./livefile.yaml"),
        Path.home() / ".livefile" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ValueError(f"Invalid config in {path}: expected a mapping")
                raw = _expand_env_vars(raw)
                return LiveFileConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return LiveFileConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `livefile config init`
DEFAULT_CONFIG_TEMPLATE = """\
# livefile.yaml

# Minimum seconds between two accepted reloads
watcher_delay: 0.25

# Text encoding used when reading the watched file
encoding: "utf-8"

# Queue at most one follow-up read behind the one in flight
# instead of letting reads overlap
single_flight: false

# Threads used for asynchronous reads
read_workers: 2

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
