"""splatscan core: splat data model, errors, pipeline runner, base step, shared contracts."""

from .errors import DecodeFailure, DepthUnavailable, ExportFailure, MalformedInput, SplatScanError
from .point_cloud import DEFAULT_SPLAT_RADIUS, BoundingBox, PointCloudModel, Splat
from .step_base import BaseStep
from .contracts import CanvasSize, DepthManifest, DepthManifestEntry, PipelineConfig, StepEntry
from .pipeline_runner import run_pipeline, load_pipeline_config
from .logging import setup_logging

__all__ = [
    "SplatScanError",
    "DecodeFailure",
    "DepthUnavailable",
    "MalformedInput",
    "ExportFailure",
    "DEFAULT_SPLAT_RADIUS",
    "Splat",
    "BoundingBox",
    "PointCloudModel",
    "BaseStep",
    "PipelineConfig",
    "StepEntry",
    "CanvasSize",
    "DepthManifest",
    "DepthManifestEntry",
    "run_pipeline",
    "load_pipeline_config",
    "setup_logging",
]
