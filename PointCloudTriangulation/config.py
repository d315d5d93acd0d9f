"""
Configuration management for the triangulation pipeline.

Typed dataclass configurations for the smoother and the reconstructor,
predefined presets, validation and JSON persistence.
"""

import copy
import json
import os
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .logger import get_logger

logger = get_logger("config")


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass
class SmoothingConfig:
    """Configuration for moving least squares smoothing"""

    # Neighborhood search
    search_radius: float = 0.03          # Same units as point coordinates
    max_neighbors: Optional[int] = None  # k nearest inside the radius (None = all)
    duplicate_tolerance: float = 1e-9    # Points closer than this coincide

    # Local fit
    polynomial_fit: bool = True
    polynomial_order: int = 2
    sqr_gauss_param: Optional[float] = None  # None = search_radius ** 2
    min_neighbors: int = 3               # Distinct neighbors needed for a fit
    rank_tolerance: float = 1e-6         # Relative eigenvalue floor for the tangent frame

    # Normals
    compute_normals: bool = True
    orient_normals: bool = True          # Point away from the cloud centroid

    # Parallel neighborhood fits (1 = serial)
    num_workers: int = 1

    @property
    def gauss_param(self) -> float:
        if self.sqr_gauss_param is not None:
            return self.sqr_gauss_param
        return self.search_radius ** 2


@dataclass
class ReconstructionConfig:
    """Configuration for surface reconstruction"""

    strategy: str = 'convex_hull'         # Any name from reconstruction.available_strategies()

    # Convex hull
    coplanar_tolerance: float = 1e-6     # Relative singular value floor for flat clouds
    merge_coplanar_facets: bool = False  # Report coplanar hull facets as n-gons

    # Polygon to triangle conversion
    fan_polygons: bool = False           # False = keep first 3 indices of each polygon


@dataclass
class TriangulationConfig:
    """Complete pipeline configuration"""

    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    reconstruction: ReconstructionConfig = field(default_factory=ReconstructionConfig)

    # Logging
    verbose: bool = False
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'TriangulationConfig':
        config = copy.deepcopy(config)
        smoothing = SmoothingConfig(**config.pop('smoothing', {}))
        reconstruction = ReconstructionConfig(**config.pop('reconstruction', {}))
        return cls(smoothing=smoothing, reconstruction=reconstruction, **config)


# =============================================================================
# Presets
# =============================================================================

DEFAULT_CONFIG = TriangulationConfig().to_dict()


PRESET_CONFIGS = {
    # Radius 0.03, order 2 polynomial fit, convex hull
    'default': {},

    'planar': {
        'smoothing': {
            'polynomial_fit': False
        }
    },

    'dense_scan': {
        'smoothing': {
            'search_radius': 0.01,
            'max_neighbors': 64,
            'num_workers': 4
        }
    },

    'coarse': {
        'smoothing': {
            'search_radius': 0.1,
            'polynomial_order': 3
        }
    },

    'faceted': {
        'reconstruction': {
            'merge_coplanar_facets': True,
            'fan_polygons': True
        }
    }
}


# =============================================================================
# Configuration Functions
# =============================================================================

def get_default_config() -> TriangulationConfig:
    """Get a fresh default configuration"""
    return TriangulationConfig.from_dict(DEFAULT_CONFIG)


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries

    Args:
        base_config: Base configuration
        override_config: Configuration to override base with

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def create_config_from_preset(preset: str, **overrides) -> TriangulationConfig:
    """
    Create configuration from a preset

    Args:
        preset: Preset name ('default', 'planar', 'dense_scan', 'coarse', 'faceted')
        **overrides: Nested dictionaries merged over the preset

    Returns:
        TriangulationConfig

    Raises:
        ValueError: If preset is not available
    """
    if preset not in PRESET_CONFIGS:
        available = ', '.join(PRESET_CONFIGS.keys())
        raise ValueError(f"Unknown preset: {preset}. Available: {available}")

    merged = merge_configs(DEFAULT_CONFIG, PRESET_CONFIGS[preset])
    merged = merge_configs(merged, overrides)
    return TriangulationConfig.from_dict(merged)


def validate_config(config: TriangulationConfig) -> Dict[str, List[str]]:
    """
    Validate configuration and return any issues

    Returns:
        {'errors': [...], 'warnings': [...]}
    """
    errors = []
    warnings = []

    smoothing = config.smoothing
    if smoothing.search_radius <= 0:
        errors.append("'search_radius' must be positive")
    if smoothing.polynomial_order < 1:
        errors.append("'polynomial_order' must be at least 1")
    if smoothing.min_neighbors < 3:
        errors.append("'min_neighbors' must be at least 3 to define a tangent plane")
    if smoothing.max_neighbors is not None and smoothing.max_neighbors < smoothing.min_neighbors:
        errors.append("'max_neighbors' must not be smaller than 'min_neighbors'")
    if smoothing.sqr_gauss_param is not None and smoothing.sqr_gauss_param <= 0:
        errors.append("'sqr_gauss_param' must be positive")
    if smoothing.num_workers < 1:
        errors.append("'num_workers' must be at least 1")
    if smoothing.duplicate_tolerance < 0:
        errors.append("'duplicate_tolerance' must not be negative")

    if smoothing.polynomial_fit:
        required = (smoothing.polynomial_order + 1) * (smoothing.polynomial_order + 2) // 2
        if smoothing.max_neighbors is not None and smoothing.max_neighbors < required:
            warnings.append(
                f"'max_neighbors'={smoothing.max_neighbors} is below the {required} points a "
                f"degree {smoothing.polynomial_order} fit needs; every point will fall back to a plane"
            )
    if smoothing.polynomial_order > 3:
        warnings.append("Polynomial orders above 3 tend to overfit small neighborhoods")

    from .reconstruction.factory import available_strategies

    reconstruction = config.reconstruction
    if reconstruction.strategy not in available_strategies():
        errors.append(f"Unknown reconstruction strategy: {reconstruction.strategy}")
    if reconstruction.coplanar_tolerance < 0:
        errors.append("'coplanar_tolerance' must not be negative")
    if reconstruction.merge_coplanar_facets and not reconstruction.fan_polygons:
        warnings.append("Merged hull facets are truncated to their first 3 vertices; enable 'fan_polygons' to keep them whole")

    return {'errors': errors, 'warnings': warnings}


def save_config(config: TriangulationConfig, filepath: str):
    """
    Save configuration to JSON file

    Args:
        config: Configuration to save
        filepath: Path to save file
    """
    with open(filepath, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.info(f"Configuration saved to: {filepath}")


def load_config(filepath: str) -> TriangulationConfig:
    """
    Load configuration from JSON file

    Missing keys take their default values.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(filepath, 'r') as f:
        raw = json.load(f)

    config = TriangulationConfig.from_dict(merge_configs(DEFAULT_CONFIG, raw))
    logger.info(f"Configuration loaded from: {filepath}")
    return config
