"""Configuration for Step 00: Depth estimation."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class DepthEstimationConfig(BaseModel):
    source: Literal["npy", "torchscript", "constant"] = Field(
        "npy", description="Depth source: precomputed .npy maps, a TorchScript model, or a constant plane"
    )
    depth_dir: Optional[Path] = Field(
        None, description="Directory of <frame stem>.npy depth maps (source=npy)"
    )
    model_path: Optional[Path] = Field(None, description="TorchScript depth model file (source=torchscript)")
    input_size: int = Field(256, gt=0, description="Square model input size; also the constant plane size")
    output_key: Optional[str] = Field(None, description="Output name when the model returns a dict")
    constant_depth: float = Field(1.0, description="Depth value for source=constant")
