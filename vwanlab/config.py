"""
Settings for the lab tooling.

Values are resolved from built-in defaults, an optional appsettings.json in
the working directory, VWANLAB_* environment variables and finally explicit
command-line overrides.
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "VWANLAB_"
SETTINGS_FILE = "appsettings.json"


@dataclass(frozen=True)
class LabSettings:
    """Resolved settings for a single command invocation."""
    location: str = "East US"
    template_file: str = "bicep/main.bicep"
    parameters_file: str = "bicep/parameters/lab.bicepparam"
    poll_interval: float = 10.0
    operation_timeout: float = 7200.0
    log_level: str = "INFO"

    def with_overrides(self, **overrides: Any) -> "LabSettings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


def _coerce(name: str, raw: Any) -> Any:
    """Convert a raw value to the type of the named settings field."""
    if name in ("poll_interval", "operation_timeout"):
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Setting {name} must be a number, got {raw!r}")
    return str(raw)


def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid settings file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings file {path}: expected a JSON object")

    logger.debug(f"Loaded settings from {path}")
    return data


def load_settings(
    settings_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> LabSettings:
    """
    Load settings from the settings file and environment.

    Args:
        settings_path: Path to the JSON settings file; defaults to ./appsettings.json
        environ: Environment mapping; defaults to os.environ

    Returns:
        LabSettings with file and environment values applied over the defaults

    Raises:
        ValueError: If a value cannot be converted
    """
    environ = os.environ if environ is None else environ
    file_values = _read_settings_file(settings_path or Path(SETTINGS_FILE))

    values: Dict[str, Any] = {}
    for f in fields(LabSettings):
        if f.name in file_values:
            values[f.name] = _coerce(f.name, file_values[f.name])
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            values[f.name] = _coerce(f.name, environ[env_key])

    return LabSettings(**values)
