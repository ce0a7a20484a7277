"""I/O utilities: ASCII PLY and vertex-only OBJ writers for splat clouds."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from splatscan.core.point_cloud import PointCloudModel

logger = logging.getLogger(__name__)

PLY_HEADER = (
    "ply\n"
    "format ascii 1.0\n"
    "element vertex {count}\n"
    "property float x\n"
    "property float y\n"
    "property float z\n"
    "property uchar red\n"
    "property uchar green\n"
    "property uchar blue\n"
    "end_header\n"
)


def color_to_uchar(colors: np.ndarray) -> np.ndarray:
    """[0, 1] float channels -> 0..255 ints by truncation (not rounding), in float32."""
    scaled = np.asarray(colors, dtype=np.float32) * np.float32(255.0)
    return np.floor(scaled).astype(np.int64)


def _fmt(value: np.float32) -> str:
    # numpy prints the shortest repr that round-trips the float32 value
    return str(value)


def format_ply(model: PointCloudModel) -> str:
    """Render the model as ASCII PLY text: header, then one ``x y z r g b`` line per splat.

    Every line, ``end_header`` included, ends with a newline.
    """
    rgb = color_to_uchar(model.colors)
    rows = "".join(
        f"{_fmt(pos[0])} {_fmt(pos[1])} {_fmt(pos[2])} {r} {g} {b}\n"
        for pos, (r, g, b) in zip(model.positions, rgb.tolist())
    )
    return PLY_HEADER.format(count=model.count) + rows


def format_obj(model: PointCloudModel) -> str:
    """Render splat centers as OBJ ``v x y z`` lines. Color and radius are dropped."""
    return "".join(f"v {_fmt(p[0])} {_fmt(p[1])} {_fmt(p[2])}\n" for p in model.positions)


def write_ply_ascii(path: Path, model: PointCloudModel) -> Path:
    """Write an ASCII PLY file with xyz float + rgb uchar vertex properties."""
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(format_ply(model))
    logger.info(f"PLY written: {path} ({model.count} vertices)")
    return path


def write_obj(path: Path, model: PointCloudModel) -> Path:
    """Write a vertex-only OBJ file."""
    path = Path(path)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(format_obj(model))
    logger.info(f"OBJ written: {path} ({model.count} vertices)")
    return path
