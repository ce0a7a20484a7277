"""I/O contracts for Step 00: Depth estimation."""

from pathlib import Path

from pydantic import BaseModel, Field


class DepthEstimationInput(BaseModel):
    frames_dir: Path = Field(..., description="Directory of captured color frames")


class DepthEstimationOutput(BaseModel):
    frames_dir: Path = Field(..., description="Frames directory the depth maps belong to")
    depth_dir: Path = Field(..., description="Directory of estimated depth maps (.npy)")
    manifest_path: Path = Field(..., description="depth_manifest.json pairing frames with depth maps")
    num_frames: int = Field(..., description="Frames seen")
    num_with_depth: int = Field(..., description="Frames with a usable depth map")
