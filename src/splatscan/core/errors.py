"""Exception types shared by the reconstruction and export stages."""

from __future__ import annotations


class SplatScanError(Exception):
    """Base class for all splatscan errors."""


class DecodeFailure(SplatScanError):
    """An input image could not be decoded into an RGB pixel buffer."""


class DepthUnavailable(SplatScanError):
    """Depth estimation failed or produced no usable buffer for an image."""


class MalformedInput(SplatScanError, ValueError):
    """Inputs violate a size or value precondition (e.g. depth length != W*H)."""


class ExportFailure(SplatScanError):
    """A point cloud could not be written to its destination."""
