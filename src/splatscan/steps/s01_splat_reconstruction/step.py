"""Step 01: Unproject frames + depth maps into an ordered splat cloud."""

from __future__ import annotations

import logging
from typing import ClassVar, Optional

import numpy as np

from splatscan.core.contracts import DepthManifest
from splatscan.core.reconstruction import reconstruct_with_report
from splatscan.core.step_base import BaseStep
from .config import SplatReconstructionConfig
from .contracts import SplatReconstructionInput, SplatReconstructionOutput

logger = logging.getLogger(__name__)


class SplatReconstructionStep(
    BaseStep[SplatReconstructionInput, SplatReconstructionOutput, SplatReconstructionConfig]
):
    name: ClassVar[str] = "splat_reconstruction"
    input_type: ClassVar = SplatReconstructionInput
    output_type: ClassVar = SplatReconstructionOutput
    config_type: ClassVar = SplatReconstructionConfig

    def validate_inputs(self, inputs: SplatReconstructionInput) -> bool:
        if not inputs.frames_dir.is_dir():
            logger.error(f"Frames directory not found: {inputs.frames_dir}")
            return False
        if not inputs.manifest_path.exists():
            logger.error(f"Depth manifest not found: {inputs.manifest_path}")
            return False
        return True

    def _load_depth(self, inputs: SplatReconstructionInput, depth_file: Optional[str]) -> Optional[np.ndarray]:
        if depth_file is None:
            return None
        path = inputs.manifest_path.parent / depth_file
        try:
            return np.load(str(path))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read depth map {path}: {e}")
            return None

    def run(self, inputs: SplatReconstructionInput) -> SplatReconstructionOutput:
        output_dir = self.data_root / "interim" / "s01_splats"
        output_dir.mkdir(parents=True, exist_ok=True)

        manifest = DepthManifest.load(inputs.manifest_path)
        if manifest.canvas is None:
            raise RuntimeError(f"Depth manifest has no canvas (no usable depth): {inputs.manifest_path}")

        images = [inputs.frames_dir / entry.image_name for entry in manifest.frames]
        depth_maps = [self._load_depth(inputs, entry.depth_file) for entry in manifest.frames]

        model, report = reconstruct_with_report(
            images,
            depth_maps,
            manifest.canvas.width,
            manifest.canvas.height,
            radius=self.config.radius,
            depth_scale=self.config.depth_scale,
            resize_to_canvas=self.config.resize_to_canvas,
            max_workers=self.config.max_workers,
        )

        splats_path = model.save(output_dir / "splats.npz")
        bbox = model.bounding_box()

        return SplatReconstructionOutput(
            splats_path=splats_path,
            num_splats=model.count,
            num_images_used=report.images_used,
            skipped_images=[f"{manifest.frames[s.index].image_name}: {s.reason}" for s in report.skipped],
            bbox_min=list(bbox.min) if bbox else None,
            bbox_max=list(bbox.max) if bbox else None,
        )
