"""
Runtime defaults for the occlusion kernel.

Values can be overridden via environment variables to avoid hardcoded
numeric tolerances in multiple modules.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import os


ENV_CLIP_EXTENT = "POLYTOPEVIEW_CLIP_EXTENT"
ENV_SINGULAR_TOLERANCE = "POLYTOPEVIEW_SINGULAR_TOLERANCE"
ENV_LINE_TOLERANCE = "POLYTOPEVIEW_LINE_TOLERANCE"
ENV_AREA_TOLERANCE = "POLYTOPEVIEW_AREA_TOLERANCE"
ENV_MAX_WORKERS = "POLYTOPEVIEW_MAX_WORKERS"


@dataclass(frozen=True)
class RuntimeDefaults:
    clip_extent: float
    singular_tolerance: float
    line_tolerance: float
    area_tolerance: float
    max_workers: int


def _read_int_env(
    env_name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_float_env(
    env_name: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if not math.isfinite(value):
        return default
    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def load_runtime_defaults() -> RuntimeDefaults:
    return RuntimeDefaults(
        clip_extent=_read_float_env(ENV_CLIP_EXTENT, 1000.0, min_value=1.0, max_value=1e9),
        singular_tolerance=_read_float_env(ENV_SINGULAR_TOLERANCE, 1e-12, min_value=0.0, max_value=1e-3),
        line_tolerance=_read_float_env(ENV_LINE_TOLERANCE, 1e-12, min_value=0.0, max_value=1e-3),
        area_tolerance=_read_float_env(ENV_AREA_TOLERANCE, 1e-12, min_value=0.0, max_value=1e-3),
        max_workers=_read_int_env(ENV_MAX_WORKERS, 1, min_value=1, max_value=64),
    )


DEFAULTS = load_runtime_defaults()
