"""Step 02: Splat export: splat cloud -> PLY / OBJ / USDZ.

Each format is written to a fixed file name (ExportedModel.<ext>), so a rerun
overwrites the previous export in the same directory. A failed format is
reported in ``errors`` and does not stop the others.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from splatscan.core.export import ExportFormat, default_export_dir, export
from splatscan.core.point_cloud import PointCloudModel
from splatscan.core.step_base import BaseStep
from .config import SplatExportConfig
from .contracts import SplatExportInput, SplatExportOutput

logger = logging.getLogger(__name__)


class SplatExportStep(BaseStep[SplatExportInput, SplatExportOutput, SplatExportConfig]):
    name: ClassVar[str] = "splat_export"
    input_type: ClassVar = SplatExportInput
    output_type: ClassVar = SplatExportOutput
    config_type: ClassVar = SplatExportConfig

    def validate_inputs(self, inputs: SplatExportInput) -> bool:
        if not inputs.splats_path.exists():
            logger.error(f"Splat file not found: {inputs.splats_path}")
            return False
        if not self.config.formats:
            logger.error("No export formats configured")
            return False
        return True

    def run(self, inputs: SplatExportInput) -> SplatExportOutput:
        if self.config.use_system_temp:
            output_dir = default_export_dir()
        else:
            output_dir = self.config.output_dir or self.data_root / "processed"

        model = PointCloudModel.load(inputs.splats_path)
        logger.info(f"Exporting {model.count} splats to {output_dir}")

        paths = {}
        errors = []
        for fmt in self.config.formats:
            result = export(model, fmt, output_dir, usd_up_axis=self.config.usd_up_axis)
            if result.ok:
                paths[fmt] = result.path
            else:
                errors.append(result.error)

        logger.info(
            f"Splat export complete: "
            f"PLY={'yes' if ExportFormat.PLY in paths else 'no'}, "
            f"OBJ={'yes' if ExportFormat.OBJ in paths else 'no'}, "
            f"USDZ={'yes' if ExportFormat.USDZ in paths else 'no'}"
        )

        return SplatExportOutput(
            ply_path=paths.get(ExportFormat.PLY),
            obj_path=paths.get(ExportFormat.OBJ),
            usdz_path=paths.get(ExportFormat.USDZ),
            num_splats=model.count,
            errors=errors,
        )
