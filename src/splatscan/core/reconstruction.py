"""Splat reconstruction: unproject images + depth buffers into a PointCloudModel.

No camera intrinsics or poses are used. Every pixel (x, y) with positive depth d
maps to

    X = (x / W - 0.5) * 2
    Y = (y / H - 0.5) * 2
    Z = d * depth_scale

so all images land in the same normalized [-1, 1] x [-1, 1] frame. Multiple
views of one object interleave instead of fusing into a single surface.

Splats are emitted image by image in input order, row-major within an image.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np

from splatscan.utils.image_io import ImageSource, RGBImage, decode_image, source_name
from .depth_source import DepthEstimate
from .errors import DecodeFailure, DepthUnavailable, MalformedInput
from .point_cloud import DEFAULT_SPLAT_RADIUS, PointCloudModel

logger = logging.getLogger(__name__)

DepthInput = Union[DepthEstimate, np.ndarray, Sequence[float], None]


@dataclass
class SkippedImage:
    index: int
    name: str
    reason: str


@dataclass
class ReconstructionReport:
    """Summary of one reconstruction run."""

    images_total: int = 0
    images_used: int = 0
    splat_count: int = 0
    skipped: list[SkippedImage] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def _depth_values(depth: DepthInput, canvas_width: int, canvas_height: int, index: int) -> Optional[np.ndarray]:
    """Flatten one depth input to (W*H,) float32. None means depth is unavailable."""
    if depth is None:
        return None
    if isinstance(depth, DepthEstimate):
        if (depth.width, depth.height) != (canvas_width, canvas_height):
            raise MalformedInput(
                f"Depth map {index} is {depth.width}x{depth.height}, "
                f"canvas is {canvas_width}x{canvas_height}"
            )
        values = depth.values
    else:
        values = np.asarray(depth, dtype=np.float32).reshape(-1)
    expected = canvas_width * canvas_height
    if values.size != expected:
        raise MalformedInput(
            f"Depth map {index} has {values.size} values, expected {canvas_width}x{canvas_height}={expected}"
        )
    return values.astype(np.float32, copy=False)


def unproject(
    image: RGBImage,
    depth: np.ndarray,
    canvas_width: int,
    canvas_height: int,
    *,
    radius: float = DEFAULT_SPLAT_RADIUS,
    depth_scale: float = 1.0,
) -> PointCloudModel:
    """Unproject every valid-depth pixel of one image, in row-major order.

    Depth <= 0 marks background and emits nothing; non-finite depth is also
    skipped. Colors are sampled from ``image`` at the same (x, y); pixels
    outside the image bounds sample black.
    """
    grid = depth.reshape(canvas_height, canvas_width)
    valid = np.isfinite(grid)
    valid[valid] = grid[valid] > 0
    ys, xs = np.nonzero(valid)  # C order == row-major (y outer, x inner)

    w = np.float32(canvas_width)
    h = np.float32(canvas_height)
    positions = np.empty((len(xs), 3), dtype=np.float32)
    positions[:, 0] = (xs.astype(np.float32) / w - np.float32(0.5)) * np.float32(2.0)
    positions[:, 1] = (ys.astype(np.float32) / h - np.float32(0.5)) * np.float32(2.0)
    positions[:, 2] = grid[ys, xs] * np.float32(depth_scale)

    colors = np.zeros((len(xs), 3), dtype=np.float32)
    inside = (xs < image.width) & (ys < image.height)
    colors[inside] = image.pixels[ys[inside], xs[inside]].astype(np.float32) / np.float32(255.0)

    radii = np.full(len(xs), radius, dtype=np.float32)
    return PointCloudModel(positions, colors, radii)


def reconstruct_with_report(
    images: Sequence[ImageSource],
    depth_maps: Sequence[DepthInput],
    canvas_width: int,
    canvas_height: int,
    *,
    radius: float = DEFAULT_SPLAT_RADIUS,
    depth_scale: float = 1.0,
    resize_to_canvas: bool = False,
    max_workers: int = 1,
) -> tuple[PointCloudModel, ReconstructionReport]:
    """Reconstruct a splat cloud and report which images were used or skipped.

    Args:
        images: Image sources in capture order (RGBImage, array or file path).
        depth_maps: One depth buffer per image, row-major, length W*H. None
            marks an image whose depth estimation failed.
        canvas_width: Width W of every depth buffer.
        canvas_height: Height H of every depth buffer.
        radius: Radius assigned to every splat.
        depth_scale: Multiplier applied to depth to get Z.
        resize_to_canvas: Resize each decoded image to W x H before sampling color.
        max_workers: Images processed concurrently; output order is unaffected.

    Raises:
        MalformedInput: canvas is not positive, image and depth counts differ,
            or a depth buffer's length is not W*H. Checked before any image is
            processed.
    """
    if canvas_width <= 0 or canvas_height <= 0:
        raise MalformedInput(f"Canvas must be positive, got {canvas_width}x{canvas_height}")
    if len(images) != len(depth_maps):
        raise MalformedInput(f"{len(images)} images but {len(depth_maps)} depth maps")

    depth_values = [
        _depth_values(d, canvas_width, canvas_height, i) for i, d in enumerate(depth_maps)
    ]

    def _process(index: int) -> PointCloudModel | SkippedImage:
        source = images[index]
        name = source_name(source)
        try:
            image = decode_image(source)
            if depth_values[index] is None:
                raise DepthUnavailable("no depth buffer")
        except (DecodeFailure, DepthUnavailable) as e:
            logger.warning(f"Skipping image {index} ({name or 'array'}): {e}")
            return SkippedImage(index=index, name=name, reason=str(e))
        if resize_to_canvas:
            image = image.resized(canvas_width, canvas_height)
        return unproject(
            image, depth_values[index], canvas_width, canvas_height,
            radius=radius, depth_scale=depth_scale,
        )

    t0 = time.time()
    indices = range(len(images))
    if max_workers > 1 and len(images) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(_process, indices))
    else:
        results = [_process(i) for i in indices]

    parts = [r for r in results if isinstance(r, PointCloudModel)]
    model = PointCloudModel.concatenate(parts)
    report = ReconstructionReport(
        images_total=len(images),
        images_used=len(parts),
        splat_count=model.count,
        skipped=[r for r in results if isinstance(r, SkippedImage)],
        elapsed_seconds=time.time() - t0,
    )
    logger.info(
        f"Reconstructed {model.count} splats from {report.images_used}/{report.images_total} images "
        f"({canvas_width}x{canvas_height} canvas, {report.elapsed_seconds:.2f}s)"
    )
    return model, report


def reconstruct(
    images: Sequence[ImageSource],
    depth_maps: Sequence[DepthInput],
    canvas_width: int,
    canvas_height: int,
    **kwargs,
) -> PointCloudModel:
    """Reconstruct a splat cloud. See :func:`reconstruct_with_report` for arguments."""
    model, _ = reconstruct_with_report(images, depth_maps, canvas_width, canvas_height, **kwargs)
    return model
