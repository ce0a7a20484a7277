"""Configuration for Step 01: Splat reconstruction."""

from pydantic import BaseModel, Field


class SplatReconstructionConfig(BaseModel):
    radius: float = Field(0.01, gt=0, description="Radius assigned to every splat")
    depth_scale: float = Field(1.0, gt=0, description="Multiplier applied to depth to get Z")
    resize_to_canvas: bool = Field(
        True, description="Resize each frame to the depth canvas before sampling color"
    )
    max_workers: int = Field(1, ge=1, description="Frames unprojected concurrently (order is preserved)")
