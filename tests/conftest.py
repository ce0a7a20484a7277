"""Shared pytest fixtures for splatscan tests."""

from pathlib import Path

import cv2
import numpy as np
import pytest

CANVAS_W = 8
CANVAS_H = 6

# RGB color of each synthetic frame
FRAME_COLORS = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]


def _depth_maps() -> list[np.ndarray]:
    """Three (H, W) depth maps: all valid, left half background, mixed signs."""
    full = np.ones((CANVAS_H, CANVAS_W), dtype=np.float32)
    half = np.full((CANVAS_H, CANVAS_W), 2.0, dtype=np.float32)
    half[:, : CANVAS_W // 2] = 0.0
    mixed = np.linspace(-1.0, 1.0, CANVAS_W * CANVAS_H, dtype=np.float32).reshape(CANVAS_H, CANVAS_W)
    return [full, half, mixed]


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Create a temporary data root with standard directory structure."""
    for subdir in ["raw/frames", "raw/depth", "interim/s00_depth",
                   "interim/s01_splats", "processed"]:
        (tmp_path / subdir).mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture
def sample_frames_dir(data_root: Path) -> Path:
    """Three solid-color PNG frames of canvas size."""
    frames_dir = data_root / "raw" / "frames"
    for i, rgb in enumerate(FRAME_COLORS):
        img = np.zeros((CANVAS_H, CANVAS_W, 3), dtype=np.uint8)
        img[:, :] = rgb[::-1]  # OpenCV writes BGR
        cv2.imwrite(str(frames_dir / f"frame_{i:05d}.png"), img)
    return frames_dir


@pytest.fixture
def sample_depth_dir(data_root: Path, sample_frames_dir: Path) -> Path:
    """One <frame stem>.npy depth map per sample frame."""
    depth_dir = data_root / "raw" / "depth"
    for i, depth in enumerate(_depth_maps()):
        np.save(str(depth_dir / f"frame_{i:05d}.npy"), depth)
    return depth_dir


@pytest.fixture
def sample_depth_maps() -> list[np.ndarray]:
    return _depth_maps()


@pytest.fixture
def expected_splat_count() -> int:
    return int(sum((d > 0).sum() for d in _depth_maps()))
