"""
RAILCURVE - CONFIGURATION
=========================

Loads `config.yaml` into frozen pydantic models.

Lookup order:
1. Explicit path passed to load_config()
2. RAILCURVE_CONFIG environment variable
3. config.yaml in the current working directory

A missing file is not an error: every section has defaults.
"""
from __future__ import annotations

import os
import logging
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ConfigDict, field_validator

from railcurve.core.curve import (
    BOUNDARY_EPSILON,
    DEFAULT_LENGTH_SPACING,
    DEFAULT_PARAMETER_SPACING,
    DEFAULT_SAMPLE_STEP,
    MIN_CONTROL_POINTS,
    SpeedMode
)
from railcurve.core.curve.geometry import (
    DEFAULT_RAIL_OFFSET,
    DEFAULT_RAIL_STEP,
    DEFAULT_TIE_SPACING
)
from railcurve.core.curve.spline import TANGENT_EPSILON


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RAILCURVE_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

# Initial track of the classroom demo
DEFAULT_TRACK_POINTS: List[List[float]] = [
    [125.0, 150.0],
    [200.0, 350.0],
    [100.0, 540.0],
    [450.0, 450.0],
    [470.0, 100.0],
]


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    reload: bool = False
    log_level: str = "info"
    log_file: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class TrackConfig(BaseModel):
    """Track defaults: initial points and arc-length sampling step Δ."""
    sample_step: float = Field(DEFAULT_SAMPLE_STEP, gt=0.0)
    default_points: List[List[float]] = Field(default_factory=lambda: [list(p) for p in DEFAULT_TRACK_POINTS])

    model_config = ConfigDict(frozen=True)

    @field_validator("default_points")
    @classmethod
    def _enough_points(cls, value: List[List[float]]) -> List[List[float]]:
        if len(value) < MIN_CONTROL_POINTS:
            raise ValueError(f"default_points needs at least {MIN_CONTROL_POINTS} points")
        if any(len(p) != 2 for p in value):
            raise ValueError("default_points entries must be [x, y] pairs")
        return value


class PlacementConfig(BaseModel):
    """Speed mode and spacing used when a frame request leaves them out."""
    mode: SpeedMode = SpeedMode.ARC_LENGTH
    parameter_spacing: float = DEFAULT_PARAMETER_SPACING
    length_spacing: float = DEFAULT_LENGTH_SPACING
    boundary_epsilon: float = Field(BOUNDARY_EPSILON, gt=0.0)
    tangent_epsilon: float = Field(TANGENT_EPSILON, gt=0.0)
    max_objects: int = Field(8, ge=1)

    model_config = ConfigDict(frozen=True)


class GeometryConfig(BaseModel):
    rail_offset: float = DEFAULT_RAIL_OFFSET
    rail_step: float = Field(DEFAULT_RAIL_STEP, gt=0.0)
    tie_spacing: float = Field(DEFAULT_TIE_SPACING, gt=0.0)

    model_config = ConfigDict(frozen=True)


class AppConfig(BaseModel):
    """
    Full application configuration.

    Example config.yaml:
        server:
          port: 8000
        track:
          sample_step: 0.1
        placement:
          mode: arc_length
          length_spacing: 65
    """
    server: ServerConfig = Field(default_factory=ServerConfig)
    track: TrackConfig = Field(default_factory=TrackConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    geometry: GeometryConfig = Field(default_factory=GeometryConfig)

    model_config = ConfigDict(frozen=True)


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Read and validate the YAML configuration.

    Raises:
        yaml.YAMLError: If the file is not valid YAML
        pydantic.ValidationError: If a value is out of range
    """
    config_path = resolve_config_path(path)

    if not config_path.exists():
        logger.info("No config file at %s, using defaults", config_path)
        return AppConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    config = AppConfig.model_validate(data)
    logger.info("Loaded configuration from %s", config_path)
    return config


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or load the process-wide configuration."""
    global _config_instance

    if _config_instance is None:
        _config_instance = load_config()

    return _config_instance


def set_config(config: Optional[AppConfig]) -> None:
    """Replace (or with None, forget) the process-wide configuration."""
    global _config_instance
    _config_instance = config
