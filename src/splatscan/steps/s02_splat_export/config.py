"""Configuration for Step 02: Splat export."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

from splatscan.core.export import ExportFormat


class SplatExportConfig(BaseModel):
    formats: list[ExportFormat] = Field(
        default=[ExportFormat.PLY, ExportFormat.OBJ],
        description="Formats to write: ply | obj | usdz",
    )
    output_dir: Optional[Path] = Field(
        None, description="Export directory (None = <data_root>/processed)"
    )
    use_system_temp: bool = Field(
        False, description="Write to the system temp directory instead, like the capture app did"
    )

    # USD-specific
    usd_up_axis: Literal["Y", "Z"] = Field("Y", description="USD stage up axis")
