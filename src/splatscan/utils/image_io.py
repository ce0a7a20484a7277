"""Image I/O: decode captured frames into RGB pixel buffers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from splatscan.core.errors import DecodeFailure

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


@dataclass(frozen=True)
class RGBImage:
    """Decoded color image."""

    pixels: np.ndarray  # (H, W, 3) uint8, RGB order
    name: str = ""

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def normalized(self) -> np.ndarray:
        """(H, W, 3) float32 channels in [0, 1]."""
        return self.pixels.astype(np.float32) / np.float32(255.0)

    def resized(self, width: int, height: int) -> RGBImage:
        import cv2

        if (width, height) == (self.width, self.height):
            return self
        resized = cv2.resize(self.pixels, (width, height), interpolation=cv2.INTER_AREA)
        return RGBImage(pixels=resized, name=self.name)


ImageSource = Union[RGBImage, np.ndarray, Path, str]


def _pixels_from_array(arr: np.ndarray) -> np.ndarray:
    """Coerce an in-memory array to (H, W, 3) uint8 RGB."""
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4) or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DecodeFailure(f"Unsupported pixel array shape {arr.shape}")
    arr = arr[:, :, :3]
    if arr.dtype == np.uint16:
        arr = (arr // 257).astype(np.uint8)
    elif np.issubdtype(arr.dtype, np.floating):
        # Float buffers are taken as already-normalized [0, 1] channels
        arr = np.clip(arr * 255.0, 0, 255).astype(np.uint8)
    elif np.issubdtype(arr.dtype, np.integer) and arr.dtype != np.uint8:
        if arr.min() < 0 or arr.max() > 255:
            raise DecodeFailure(
                f"Pixel values of dtype {arr.dtype} span [{arr.min()}, {arr.max()}], expected [0, 255]"
            )
        arr = arr.astype(np.uint8)
    elif arr.dtype != np.uint8:
        raise DecodeFailure(f"Unsupported pixel dtype {arr.dtype}")
    return np.ascontiguousarray(arr)


def source_name(source: ImageSource) -> str:
    """Short label for an image source: file name, image name, or '' for raw arrays."""
    if isinstance(source, RGBImage):
        return source.name
    if isinstance(source, np.ndarray):
        return ""
    return Path(source).name


def decode_image(source: ImageSource) -> RGBImage:
    """Decode ``source`` into an RGBImage.

    Accepts an RGBImage (returned as-is), an (H, W), (H, W, 3) or (H, W, 4)
    array already in RGB(A) order, or a path to an image file read with OpenCV.

    Raises:
        DecodeFailure: the source cannot be turned into a pixel buffer.
    """
    if isinstance(source, RGBImage):
        return source
    if isinstance(source, np.ndarray):
        return RGBImage(pixels=_pixels_from_array(source))
    if isinstance(source, (str, Path)):
        import cv2

        path = Path(source)
        if not path.is_file():
            raise DecodeFailure(f"Image not found: {path}")
        bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if bgr is None:
            raise DecodeFailure(f"OpenCV could not decode {path}")
        rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
        return RGBImage(pixels=rgb, name=path.name)
    raise DecodeFailure(f"Unsupported image source type: {type(source).__name__}")


def list_frames(frames_dir: Path) -> list[Path]:
    """Image files in ``frames_dir`` sorted by name (capture order)."""
    frames = sorted(
        p for p in Path(frames_dir).iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
    )
    logger.debug(f"Found {len(frames)} frames in {frames_dir}")
    return frames
