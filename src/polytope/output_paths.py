"""
Output path helpers for exports.

Centralizes naming conventions so the CLI and library callers stay in sync.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

PROJECTION_SUFFIX = ".projection.ply"
DEFAULT_BASENAME = "tesseract"


def _as_path(value: PathLike) -> Path:
    return value if isinstance(value, Path) else Path(value)


def projection_output_path(name: Optional[PathLike] = None, output_path: Optional[PathLike] = None) -> Path:
    """Explicit `output_path` wins; otherwise `<name>.projection.ply` in the working directory."""
    if output_path:
        return _as_path(output_path)
    base = _as_path(name) if name else Path(DEFAULT_BASENAME)
    return base.with_suffix(PROJECTION_SUFFIX)
