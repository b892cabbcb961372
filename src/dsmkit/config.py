"""
Global Configuration and Safe Defaults.

This module centralizes the tuning constants of the matrix engine and the
optional per-project settings file (.dsmkit/config.yaml).
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# --- Matrix engine ---

# Expanding a node with more children than this inserts synthetic
# grouping nodes ('a/b/...') so the matrix stays readable
DEFAULT_BRANCHING_THRESHOLD = 30

# --- Layout (user coordinates) ---

# A 2560x1490 full-screen drawing area is roughly 1.71 x 1
XY_RATIO = 1.71

X_START_MATRIX_LEFT = 0.3
X_END_MATRIX_RIGHT = XY_RATIO
# labels are drawn at 45 degrees above the matrix
Y_START_MATRIX_UP = 0.1
Y_END_MATRIX_DOWN = 1.0
WIDTH_VERTICAL_LABEL = 0.025

# Device pixels; the first resize from the renderer overrides these
DEFAULT_VIEWPORT_WIDTH = 600
DEFAULT_VIEWPORT_HEIGHT = 600

DEFAULT_CONFIG_PATH = Path(".dsmkit/config.yaml")


class Settings(BaseModel):
    """User-tunable settings, loaded from YAML."""
    branching_threshold: int = Field(default=DEFAULT_BRANCHING_THRESHOLD, ge=2)
    viewport_width: int = Field(default=DEFAULT_VIEWPORT_WIDTH, ge=0)
    viewport_height: int = Field(default=DEFAULT_VIEWPORT_HEIGHT, ge=0)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    A missing or unreadable file yields the defaults; a file whose values
    fail validation raises ConfigError.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return Settings()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read {path}, using defaults: {e}")
        return Settings()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a mapping at top level")
        return Settings()

    try:
        return Settings.model_validate(data.get("matrix", data))
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e
