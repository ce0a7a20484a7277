"""I/O contracts for Step 02: Splat export (PLY / OBJ / USDZ)."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class SplatExportInput(BaseModel):
    splats_path: Path = Field(..., description="splats.npz from splat reconstruction")


class SplatExportOutput(BaseModel):
    ply_path: Optional[Path] = Field(None, description="Path to exported .ply file")
    obj_path: Optional[Path] = Field(None, description="Path to exported .obj file")
    usdz_path: Optional[Path] = Field(None, description="Path to exported .usdz file")
    num_splats: int = Field(0, description="Splats in the exported cloud")
    errors: list[str] = Field(default_factory=list, description="One message per failed export")
