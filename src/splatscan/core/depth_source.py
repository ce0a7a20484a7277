"""Depth sources: the injected capability that turns a color image into a depth buffer.

Depth values come from an external monocular model; this module only adapts
such models to a common interface with an explicit failure path
(``DepthUnavailable``) instead of terminating the process when a model is
missing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from splatscan.utils.image_io import RGBImage
from .errors import DepthUnavailable, MalformedInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepthEstimate:
    """Row-major depth buffer aligned to a width x height pixel grid."""

    values: np.ndarray  # (H*W,) float32
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise MalformedInput(f"Depth grid must be positive, got {self.width}x{self.height}")
        if self.values.ndim != 1 or len(self.values) != self.width * self.height:
            raise MalformedInput(
                f"Depth buffer has {self.values.size} values, "
                f"expected {self.width}x{self.height}={self.width * self.height}"
            )

    @classmethod
    def from_grid(cls, grid: np.ndarray) -> DepthEstimate:
        """Build from an (H, W) array, or (1, H, W) as produced by most depth networks."""
        grid = np.asarray(grid, dtype=np.float32)
        if grid.ndim == 3 and grid.shape[0] == 1:
            grid = grid[0]
        if grid.ndim != 2:
            raise MalformedInput(f"Depth grid must be 2-D, got shape {grid.shape}")
        h, w = grid.shape
        return cls(values=np.ascontiguousarray(grid).reshape(-1), width=w, height=h)

    def as_grid(self) -> np.ndarray:
        return self.values.reshape(self.height, self.width)


class DepthSource(ABC):
    """Estimates one depth buffer per color image."""

    name: str = "depth_source"

    @abstractmethod
    def estimate(self, image: RGBImage) -> DepthEstimate:
        """Return the depth buffer for ``image``.

        Raises:
            DepthUnavailable: no usable depth could be produced.
        """
        ...


class NpyDepthSource(DepthSource):
    """Reads precomputed ``<image stem>.npy`` depth maps from a directory."""

    name = "npy"

    def __init__(self, depth_dir: Path):
        self.depth_dir = Path(depth_dir)

    def path_for(self, image: RGBImage) -> Path:
        return self.depth_dir / f"{Path(image.name).stem}.npy"

    def estimate(self, image: RGBImage) -> DepthEstimate:
        if not image.name:
            raise DepthUnavailable("Image has no name to match a depth file against")
        path = self.path_for(image)
        if not path.exists():
            raise DepthUnavailable(f"Depth map not found: {path}")
        try:
            grid = np.load(str(path))
        except (OSError, ValueError) as e:
            raise DepthUnavailable(f"Could not read depth map {path}: {e}") from e
        try:
            return DepthEstimate.from_grid(grid)
        except MalformedInput as e:
            raise DepthUnavailable(f"Unusable depth map {path}: {e}") from e


class ConstantDepthSource(DepthSource):
    """Uniform depth plane of a fixed size. Useful for previews and smoke tests."""

    name = "constant"

    def __init__(self, depth: float = 1.0, width: int = 256, height: int = 256):
        self.depth = float(depth)
        self.width = width
        self.height = height

    def estimate(self, image: RGBImage) -> DepthEstimate:
        values = np.full(self.width * self.height, self.depth, dtype=np.float32)
        return DepthEstimate(values=values, width=self.width, height=self.height)


class TorchScriptDepthSource(DepthSource):
    """Runs a TorchScript monocular depth model (MiDaS-style) on each image.

    The model is loaded on first use. The image is resized to
    ``input_size`` x ``input_size``, scaled to [0, 1] and passed as a
    channel-major (1, 3, S, S) float tensor. The output, (1, H, W) or (H, W),
    is flattened row-major.
    """

    name = "torchscript"

    def __init__(self, model_path: Path, input_size: int = 256, output_key: Optional[str] = None):
        self.model_path = Path(model_path)
        self.input_size = input_size
        self.output_key = output_key
        self._model = None

    def _load_model(self):
        if self._model is not None:
            return self._model
        try:
            import torch
        except ImportError as e:
            raise DepthUnavailable("torch is not installed. Install with: pip install torch") from e
        if not self.model_path.exists():
            raise DepthUnavailable(f"Depth model not found: {self.model_path}")
        try:
            model = torch.jit.load(str(self.model_path), map_location="cpu")
        except RuntimeError as e:
            raise DepthUnavailable(f"Failed to load depth model {self.model_path}: {e}") from e
        model.eval()
        logger.info(f"Loaded depth model {self.model_path.name}")
        self._model = model
        return model

    def estimate(self, image: RGBImage) -> DepthEstimate:
        model = self._load_model()
        import torch

        size = self.input_size
        chw = image.resized(size, size).normalized().transpose(2, 0, 1)
        tensor = torch.from_numpy(np.ascontiguousarray(chw)).unsqueeze(0)

        try:
            with torch.no_grad():
                output = model(tensor)
        except RuntimeError as e:
            raise DepthUnavailable(f"Depth prediction failed for {image.name or 'image'}: {e}") from e

        if isinstance(output, dict):
            key = self.output_key or next(iter(output), None)
            if key not in output:
                raise DepthUnavailable(f"Depth output '{key}' not found in model output")
            output = output[key]

        grid = output.detach().cpu().numpy().astype(np.float32)
        if grid.ndim == 4 and grid.shape[:2] == (1, 1):
            grid = grid[0]
        try:
            estimate = DepthEstimate.from_grid(grid)
        except MalformedInput as e:
            raise DepthUnavailable(f"Unexpected depth output shape {grid.shape}") from e
        logger.debug(f"Depth estimated. Size: {estimate.width}x{estimate.height}")
        return estimate


def build_depth_source(
    source: str,
    *,
    depth_dir: Optional[Path] = None,
    model_path: Optional[Path] = None,
    input_size: int = 256,
    output_key: Optional[str] = None,
    constant_depth: float = 1.0,
) -> DepthSource:
    """Instantiate a depth source by name: ``npy``, ``torchscript`` or ``constant``."""
    if source == "npy":
        if depth_dir is None:
            raise ValueError("npy depth source requires depth_dir")
        return NpyDepthSource(depth_dir)
    if source == "torchscript":
        if model_path is None:
            raise ValueError("torchscript depth source requires model_path")
        return TorchScriptDepthSource(model_path, input_size=input_size, output_key=output_key)
    if source == "constant":
        return ConstantDepthSource(constant_depth, width=input_size, height=input_size)
    raise ValueError(f"Unknown depth source: {source}")
