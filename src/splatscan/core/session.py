"""Scan session: depth -> reconstruct -> export, off the calling thread.

``ScanSession.submit`` runs the whole chain on a worker thread and returns a
``Future[ScanResult]``. Callers that drive a UI attach a continuation with
``future.add_done_callback`` and hop back to their own thread there.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from splatscan.utils.image_io import ImageSource, RGBImage, decode_image, source_name
from .depth_source import DepthEstimate, DepthSource
from .errors import DecodeFailure, DepthUnavailable, SplatScanError
from .export import ExportFormat, ExportResult, export
from .point_cloud import DEFAULT_SPLAT_RADIUS, PointCloudModel
from .reconstruction import ReconstructionReport, SkippedImage, reconstruct_with_report

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Typed outcome of a session run. ``error`` is set only when the run produced nothing."""

    model: Optional[PointCloudModel] = None
    report: Optional[ReconstructionReport] = None
    exports: list[ExportResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _DepthPass:
    images: list[RGBImage]
    depths: list[Optional[DepthEstimate]]
    indices: list[int]
    skipped: list[SkippedImage]


class ScanSession:
    """Owns a depth source and a single worker thread for background scans."""

    def __init__(
        self,
        depth_source: DepthSource,
        *,
        formats: Sequence[ExportFormat | str] = (ExportFormat.PLY,),
        output_dir: Optional[Path] = None,
        radius: float = DEFAULT_SPLAT_RADIUS,
        depth_scale: float = 1.0,
        resize_to_canvas: bool = True,
        max_workers: int = 1,
    ):
        self.depth_source = depth_source
        self.formats = [ExportFormat(f) for f in formats]
        self.output_dir = output_dir
        self.radius = radius
        self.depth_scale = depth_scale
        self.resize_to_canvas = resize_to_canvas
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="splatscan")

    def __enter__(self) -> ScanSession:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def estimate_depths(self, images: Sequence[ImageSource]) -> _DepthPass:
        """Decode every image and ask the depth source for its buffer.

        Images that fail to decode are dropped. Images whose depth is
        unavailable, or whose depth grid differs from the first usable one,
        keep a None depth so reconstruction reports them as skipped.
        """
        result = _DepthPass(images=[], depths=[], indices=[], skipped=[])
        canvas: Optional[tuple[int, int]] = None
        for index, source in enumerate(images):
            try:
                image = decode_image(source)
            except DecodeFailure as e:
                logger.warning(f"Skipping image {index}: {e}")
                result.skipped.append(SkippedImage(index=index, name=source_name(source), reason=str(e)))
                continue

            depth: Optional[DepthEstimate]
            try:
                depth = self.depth_source.estimate(image)
            except DepthUnavailable as e:
                logger.warning(f"No depth for image {index} ({image.name or 'array'}): {e}")
                depth = None

            if depth is not None:
                if canvas is None:
                    canvas = (depth.width, depth.height)
                elif (depth.width, depth.height) != canvas:
                    logger.warning(
                        f"Depth for image {index} is {depth.width}x{depth.height}, "
                        f"expected {canvas[0]}x{canvas[1]}; skipping"
                    )
                    depth = None

            result.images.append(image)
            result.depths.append(depth)
            result.indices.append(index)
        return result

    def run(self, images: Sequence[ImageSource]) -> ScanResult:
        """Run the full chain synchronously."""
        try:
            depth_pass = self.estimate_depths(images)
            usable = [d for d in depth_pass.depths if d is not None]
            if not usable:
                return ScanResult(error=f"No usable depth for any of {len(images)} images")
            width, height = usable[0].width, usable[0].height

            model, report = reconstruct_with_report(
                depth_pass.images,
                depth_pass.depths,
                width,
                height,
                radius=self.radius,
                depth_scale=self.depth_scale,
                resize_to_canvas=self.resize_to_canvas,
                max_workers=self.max_workers,
            )
        except SplatScanError as e:
            logger.error(f"Scan failed: {e}")
            return ScanResult(error=str(e))

        # Map reconstruction indices back to the caller's image indices
        for skipped in report.skipped:
            skipped.index = depth_pass.indices[skipped.index]
        report.skipped = sorted(depth_pass.skipped + report.skipped, key=lambda s: s.index)
        report.images_total = len(images)

        exports = [export(model, fmt, self.output_dir) for fmt in self.formats]
        return ScanResult(model=model, report=report, exports=exports)

    def submit(self, images: Sequence[ImageSource]) -> Future[ScanResult]:
        """Run the chain on the session's worker thread."""
        return self._executor.submit(self.run, list(images))
