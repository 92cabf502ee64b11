"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, ProviderConfig) are defined in src/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from src.core.config import Config, ProviderConfig, default_providers
from src.core.dedup import DedupGranularity
from src.core.geo import BoundingBox
from src.core.pagination import DEFAULT_PAGE_SIZE
from src.core.viewport import DensityPolicy


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_provider(data: dict[str, Any]) -> ProviderConfig:
    """Parse a provider from config data.

    base_url falls back to the built-in archive URL for known providers.
    """
    name = str(data["name"]).lower()
    defaults = {p.name: p.base_url for p in default_providers()}

    return ProviderConfig(
        name=name,
        base_url=data.get("base_url") or defaults.get(name, ""),
        enabled=bool(data.get("enabled", True)),
    )


def _parse_tiers(data: list[Any]) -> tuple[tuple[float, float], ...]:
    """Parse [[min_zoom, value], ...] into a tier table, finest zoom first."""
    tiers = [(float(min_zoom), float(value)) for min_zoom, value in data]
    return tuple(sorted(tiers, key=lambda t: t[0], reverse=True))


def _parse_density(data: dict[str, Any]) -> DensityPolicy:
    """Parse viewport density overrides on top of the defaults."""
    policy = DensityPolicy()
    overrides: dict[str, Any] = {}

    for name in ("magnitude_floors", "candidate_caps", "render_caps"):
        if name in data:
            overrides[name] = _parse_tiers(data[name])

    if "default_floor" in data:
        overrides["default_floor"] = float(data["default_floor"])
    for name in ("default_candidate_cap", "default_render_cap"):
        if name in data:
            overrides[name] = int(data[name])
    if "backfill_min_zoom" in data:
        overrides["backfill_min_zoom"] = float(data["backfill_min_zoom"])

    return replace(policy, **overrides)


def _parse_dedup(data: dict[str, Any]) -> DedupGranularity:
    """Parse dedup granularity overrides on top of the defaults."""
    defaults = DedupGranularity()
    return DedupGranularity(
        coordinate_scale=float(data.get("coordinate_scale", defaults.coordinate_scale)),
        time_bucket_ms=int(data.get("time_bucket_ms", defaults.time_bucket_ms)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    config = Config()

    if "admission_bounds" in data:
        config.admission_bounds = _parse_bounds(data["admission_bounds"])

    if "providers" in data:
        config.providers = [_parse_provider(p) for p in data["providers"]]

    config.page_size = int(data.get("page_size", DEFAULT_PAGE_SIZE))
    config.request_timeout_seconds = int(data.get("request_timeout_seconds", 30))
    config.refresh_interval_seconds = int(data.get("refresh_interval_seconds", 60))

    if "dedup" in data:
        config.dedup = _parse_dedup(data["dedup"])

    if "density" in data:
        config.density = _parse_density(data["density"])

    if "allowed_origins" in data:
        config.allowed_origins = [str(o) for o in data["allowed_origins"]]

    return config


def apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to a config.

    Environment variables:
        PAGE_SIZE: Records per provider page
        REFRESH_INTERVAL_SECONDS: Background refresh period
        ADMISSION_BOUNDS: Comma-separated bounds (min_lat,max_lat,min_lon,max_lon)
        ENABLED_PROVIDERS: Comma-separated provider names to keep enabled

    Args:
        config: Config to update in place

    Returns:
        The same config object
    """
    page_size = os.environ.get("PAGE_SIZE")
    if page_size:
        config.page_size = int(page_size)

    interval = os.environ.get("REFRESH_INTERVAL_SECONDS")
    if interval:
        config.refresh_interval_seconds = int(interval)

    bounds_str = os.environ.get("ADMISSION_BOUNDS")
    if bounds_str:
        parts = [float(p.strip()) for p in bounds_str.split(",")]
        if len(parts) == 4:
            config.admission_bounds = BoundingBox(
                min_latitude=parts[0],
                max_latitude=parts[1],
                min_longitude=parts[2],
                max_longitude=parts[3],
            )
        else:
            logger.warning("ADMISSION_BOUNDS needs 4 values, got %d; ignoring", len(parts))

    enabled = os.environ.get("ENABLED_PROVIDERS")
    if enabled:
        names = {n.strip().lower() for n in enabled.split(",") if n.strip()}
        for provider in config.providers:
            provider.enabled = provider.name in names

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file, then apply env overrides.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return apply_env_overrides(Config())

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return apply_env_overrides(Config())

    config = apply_env_overrides(load_config_from_dict(data))

    logger.info(
        "Loaded config: %d providers (%d enabled), page size %d",
        len(config.providers),
        len(config.enabled_providers),
        config.page_size,
    )

    return config
