"""I/O contracts for Step 01: Splat reconstruction."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class SplatReconstructionInput(BaseModel):
    frames_dir: Path = Field(..., description="Directory of captured color frames")
    manifest_path: Path = Field(..., description="depth_manifest.json from depth estimation")


class SplatReconstructionOutput(BaseModel):
    splats_path: Path = Field(..., description="Serialized point cloud (splats.npz)")
    num_splats: int = Field(..., description="Splats emitted")
    num_images_used: int = Field(..., description="Frames that contributed splats")
    skipped_images: list[str] = Field(default_factory=list, description="Frames skipped, with reason")
    bbox_min: Optional[list[float]] = Field(None, description="Per-axis minimum of splat positions")
    bbox_max: Optional[list[float]] = Field(None, description="Per-axis maximum of splat positions")
