"""Common Pydantic models shared across pipeline steps."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


class CanvasSize(BaseModel):
    """Pixel grid shared by every depth map of a run."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class DepthManifestEntry(BaseModel):
    """Depth result for one captured frame. ``depth_file`` is None when estimation failed."""

    image_name: str
    depth_file: Optional[str] = Field(None, description="Depth .npy path relative to the manifest")
    width: int = 0
    height: int = 0
    error: Optional[str] = None


class DepthManifest(BaseModel):
    """Written by depth estimation, read by splat reconstruction (depth_manifest.json)."""

    canvas: Optional[CanvasSize] = None
    frames: list[DepthManifestEntry] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> DepthManifest:
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path


class PipelineConfig(BaseModel):
    """Top-level pipeline configuration loaded from pipeline.yaml."""

    project_name: str = "splatscan_project"
    data_root: Path = Path("./data")
    steps: list[StepEntry] = Field(default_factory=list)


class StepEntry(BaseModel):
    """One entry in the pipeline step list."""

    name: str
    module: str
    config_file: str
    depends_on: list[str] = Field(default_factory=list)
    enabled: bool = True
    inputs: dict[str, Any] = Field(default_factory=dict, description="Static input fields merged under dependency outputs")


# Fix forward reference
PipelineConfig.model_rebuild()
