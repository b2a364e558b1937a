"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import ScissorsConfig

_ENV_RE = re.compile(r"\$\{(\w+)\}")


def config_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths = [Path("./scissors.yaml"), Path.home() / ".scissors" / "config.yaml"]
    if cli_path:
        paths.insert(0, Path(cli_path))
    return paths


def load_config(cli_path: str | None = None) -> ScissorsConfig:
    """Load the first config file found: --config, ./scissors.yaml, ~/.scissors/config.yaml.

    An empty file falls through to the next candidate. A --config path
    that does not exist is an error.
    """
    if cli_path and not Path(cli_path).is_file():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            return ScissorsConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e

    return ScissorsConfig()


def _read_yaml(path: Path) -> dict[str, Any] | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")
    return raw


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings. Unset variables become ""."""
    if isinstance(obj, str):
        return _ENV_RE.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `scissors config init`
DEFAULT_CONFIG_TEMPLATE = """\
# scissors.yaml

# Parsing
parser:
  strict: true                 # reject stylesheets with top-level syntax errors
  less_command: ["lessc", "-"] # compiler reading LESS on stdin, CSS on stdout
  less_timeout: 30

# File watching (scissors watch)
watch:
  patterns: ["*.css", "*.less"]
  # ignore_parts: [.git, node_modules, __pycache__, .venv]

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
