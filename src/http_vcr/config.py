"""Recorder configuration.

Config JSON: either a flat object or one nested under ``"recorder"``:

    { "recorder": { "speed": "lower" } }

``HTTP_VCR_SPEED`` overrides the speed when read through from_env().
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_SPEED = "fastest"
SPEED_ENV_VAR = "HTTP_VCR_SPEED"


class RecorderConfig(BaseModel):
    """Resolved recorder settings read by the replay engine."""

    speed: str = Field(
        default=DEFAULT_SPEED,
        description="Replay speed: fastest, lower, lowest, fast, or anything else for original pace",
    )

    @classmethod
    def from_env(
        cls, base: Optional[RecorderConfig] = None, environ: Optional[Mapping[str, str]] = None
    ) -> RecorderConfig:
        """Apply environment overrides on top of ``base``.

        Args:
            base: Starting configuration (defaults if None)
            environ: Environment mapping (os.environ if None)

        Returns:
            New RecorderConfig
        """
        environ = os.environ if environ is None else environ
        config = base or cls()
        speed = environ.get(SPEED_ENV_VAR)
        if speed:
            config = config.model_copy(update={"speed": speed})
        return config


def load_config(path: str | Path) -> RecorderConfig:
    """Load recorder configuration from a JSON file.

    Args:
        path: Path to config JSON

    Returns:
        RecorderConfig with file values applied over defaults

    Raises:
        IOError: If file cannot be read
        ValueError: If config format is invalid
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data: Any = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Config must be a JSON object")
    section = data.get("recorder", data)
    if not isinstance(section, dict):
        raise ValueError("Config 'recorder' must be an object")
    return RecorderConfig.model_validate(section)


__all__ = [
    "RecorderConfig",
    "load_config",
    "DEFAULT_SPEED",
    "SPEED_ENV_VAR",
]
