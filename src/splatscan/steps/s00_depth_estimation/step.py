"""Step 00: Estimate one depth map per captured frame."""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from splatscan.core.contracts import CanvasSize, DepthManifest, DepthManifestEntry
from splatscan.core.depth_source import DepthSource, build_depth_source
from splatscan.core.errors import DecodeFailure, DepthUnavailable
from splatscan.core.step_base import BaseStep
from splatscan.utils.image_io import decode_image, list_frames
from .config import DepthEstimationConfig
from .contracts import DepthEstimationInput, DepthEstimationOutput

logger = logging.getLogger(__name__)


class DepthEstimationStep(BaseStep[DepthEstimationInput, DepthEstimationOutput, DepthEstimationConfig]):
    name: ClassVar[str] = "depth_estimation"
    input_type: ClassVar = DepthEstimationInput
    output_type: ClassVar = DepthEstimationOutput
    config_type: ClassVar = DepthEstimationConfig

    def validate_inputs(self, inputs: DepthEstimationInput) -> bool:
        if not inputs.frames_dir.is_dir():
            logger.error(f"Frames directory not found: {inputs.frames_dir}")
            return False
        if not list_frames(inputs.frames_dir):
            logger.error(f"No image frames in {inputs.frames_dir}")
            return False
        if self.config.source == "npy" and self.config.depth_dir is None:
            logger.error("source=npy requires depth_dir in the step config")
            return False
        if self.config.source == "torchscript" and self.config.model_path is None:
            logger.error("source=torchscript requires model_path in the step config")
            return False
        return True

    def _build_source(self) -> DepthSource:
        return build_depth_source(
            self.config.source,
            depth_dir=self.config.depth_dir,
            model_path=self.config.model_path,
            input_size=self.config.input_size,
            output_key=self.config.output_key,
            constant_depth=self.config.constant_depth,
        )

    def run(self, inputs: DepthEstimationInput) -> DepthEstimationOutput:
        output_dir = self.data_root / "interim" / "s00_depth"
        depth_dir = output_dir / "depth"
        depth_dir.mkdir(parents=True, exist_ok=True)

        source = self._build_source()
        frames = list_frames(inputs.frames_dir)
        manifest = DepthManifest()

        for idx, frame_path in enumerate(frames):
            entry = DepthManifestEntry(image_name=frame_path.name)
            try:
                estimate = source.estimate(decode_image(frame_path))
            except (DecodeFailure, DepthUnavailable) as e:
                logger.warning(f"No depth for {frame_path.name}: {e}")
                entry.error = str(e)
                manifest.frames.append(entry)
                continue

            if manifest.canvas is None:
                manifest.canvas = CanvasSize(width=estimate.width, height=estimate.height)
            elif (estimate.width, estimate.height) != (manifest.canvas.width, manifest.canvas.height):
                entry.error = (
                    f"depth is {estimate.width}x{estimate.height}, "
                    f"canvas is {manifest.canvas.width}x{manifest.canvas.height}"
                )
                logger.warning(f"Skipping {frame_path.name}: {entry.error}")
                manifest.frames.append(entry)
                continue

            depth_file = f"depth_{idx:04d}.npy"
            np.save(str(depth_dir / depth_file), estimate.as_grid())
            entry.depth_file = f"{depth_dir.name}/{depth_file}"
            entry.width = estimate.width
            entry.height = estimate.height
            manifest.frames.append(entry)

        num_with_depth = sum(1 for e in manifest.frames if e.depth_file)
        if num_with_depth == 0:
            raise RuntimeError(f"Depth estimation failed for all {len(frames)} frames")

        manifest_path = manifest.save(output_dir / "depth_manifest.json")
        logger.info(
            f"Estimated depth for {num_with_depth}/{len(frames)} frames "
            f"({manifest.canvas.width}x{manifest.canvas.height}, source={self.config.source})"
        )

        return DepthEstimationOutput(
            frames_dir=inputs.frames_dir,
            depth_dir=depth_dir,
            manifest_path=manifest_path,
            num_frames=len(frames),
            num_with_depth=num_with_depth,
        )
