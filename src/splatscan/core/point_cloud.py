"""Splat point cloud data model.

A ``PointCloudModel`` is the ordered, read-only result of one reconstruction
run. Splats are stored column-wise in float32 numpy arrays (positions, colors,
radii) and materialised as ``Splat`` objects only when iterated or indexed.
Order is append order: image order first, then row-major pixel order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence

import numpy as np

from .errors import MalformedInput

logger = logging.getLogger(__name__)

DEFAULT_SPLAT_RADIUS = 0.01


@dataclass(frozen=True)
class Splat:
    """A single colored, sized point standing in for a small surface patch."""

    position: tuple[float, float, float]
    color: tuple[float, float, float]
    radius: float = DEFAULT_SPLAT_RADIUS

    def __post_init__(self) -> None:
        if len(self.position) != 3 or not all(math.isfinite(v) for v in self.position):
            raise MalformedInput(f"Splat position must be 3 finite floats, got {self.position}")
        if len(self.color) != 3 or not all(0.0 <= c <= 1.0 for c in self.color):
            raise MalformedInput(f"Splat color channels must lie in [0, 1], got {self.color}")
        if not (math.isfinite(self.radius) and self.radius > 0):
            raise MalformedInput(f"Splat radius must be positive, got {self.radius}")


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounds of a point cloud."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]

    @property
    def size(self) -> tuple[float, float, float]:
        return tuple(hi - lo for lo, hi in zip(self.min, self.max))

    @property
    def center(self) -> tuple[float, float, float]:
        return tuple((lo + hi) / 2.0 for lo, hi in zip(self.min, self.max))


def _as_frozen(values, shape_tail: tuple[int, ...], name: str) -> np.ndarray:
    """Copy ``values`` into a float32 array with the given trailing shape, flagged read-only."""
    arr = np.array(values, dtype=np.float32, copy=True)
    if arr.size == 0:
        arr = arr.reshape((0, *shape_tail))
    if arr.ndim != 1 + len(shape_tail) or arr.shape[1:] != shape_tail:
        raise MalformedInput(f"{name} must have shape {('N', *shape_tail)}, got {arr.shape}")
    arr.flags.writeable = False
    return arr


class PointCloudModel:
    """Ordered, immutable collection of splats produced by one reconstruction run."""

    def __init__(
        self,
        positions: np.ndarray | Sequence[Sequence[float]],
        colors: np.ndarray | Sequence[Sequence[float]],
        radii: np.ndarray | Sequence[float] | None = None,
    ) -> None:
        self._positions = _as_frozen(positions, (3,), "positions")
        self._colors = _as_frozen(colors, (3,), "colors")
        n = len(self._positions)
        if radii is None:
            radii = np.full(n, DEFAULT_SPLAT_RADIUS, dtype=np.float32)
        self._radii = _as_frozen(radii, (), "radii")

        if len(self._colors) != n or len(self._radii) != n:
            raise MalformedInput(
                f"Column length mismatch: {n} positions, "
                f"{len(self._colors)} colors, {len(self._radii)} radii"
            )
        if not np.isfinite(self._positions).all():
            raise MalformedInput("Splat positions must be finite")
        if n and (self._colors.min() < 0.0 or self._colors.max() > 1.0 or np.isnan(self._colors).any()):
            raise MalformedInput("Splat color channels must lie in [0, 1]")
        if n and not (np.isfinite(self._radii).all() and (self._radii > 0).all()):
            raise MalformedInput("Splat radii must be positive")

    # ── construction helpers ─────────────────────────────────────────

    @classmethod
    def empty(cls) -> PointCloudModel:
        return cls(np.zeros((0, 3)), np.zeros((0, 3)), np.zeros(0))

    @classmethod
    def from_splats(cls, splats: Iterable[Splat]) -> PointCloudModel:
        splats = list(splats)
        if not splats:
            return cls.empty()
        return cls(
            [s.position for s in splats],
            [s.color for s in splats],
            [s.radius for s in splats],
        )

    @classmethod
    def concatenate(cls, models: Sequence[PointCloudModel]) -> PointCloudModel:
        """Join models end to end, keeping each model's internal order."""
        if not models:
            return cls.empty()
        return cls(
            np.concatenate([m.positions for m in models]),
            np.concatenate([m.colors for m in models]),
            np.concatenate([m.radii for m in models]),
        )

    # ── read-only views ──────────────────────────────────────────────

    @property
    def positions(self) -> np.ndarray:
        """(N, 3) float32 XYZ, read-only."""
        return self._positions

    @property
    def colors(self) -> np.ndarray:
        """(N, 3) float32 RGB in [0, 1], read-only."""
        return self._colors

    @property
    def radii(self) -> np.ndarray:
        """(N,) float32, read-only."""
        return self._radii

    @property
    def count(self) -> int:
        return len(self._positions)

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Splat]:
        # A fresh generator on every call, so re-iteration replays the same order
        for pos, col, rad in zip(self._positions.tolist(), self._colors.tolist(), self._radii.tolist()):
            yield Splat(position=tuple(pos), color=tuple(col), radius=rad)

    def __getitem__(self, index: int) -> Splat:
        if not isinstance(index, (int, np.integer)):
            raise TypeError(f"PointCloudModel indices must be integers, not {type(index).__name__}")
        pos = self._positions[index].tolist()
        col = self._colors[index].tolist()
        return Splat(position=tuple(pos), color=tuple(col), radius=float(self._radii[index]))

    def __repr__(self) -> str:
        return f"PointCloudModel(count={self.count})"

    def bounding_box(self) -> BoundingBox | None:
        """Per-axis min/max of splat positions, computed on each call. None when empty."""
        if self.count == 0:
            return None
        lo = self._positions.min(axis=0)
        hi = self._positions.max(axis=0)
        return BoundingBox(min=tuple(lo.tolist()), max=tuple(hi.tolist()))

    # ── persistence ──────────────────────────────────────────────────

    def save(self, path: Path) -> Path:
        """Write the model to a compressed ``.npz`` archive."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            np.savez_compressed(f, positions=self._positions, colors=self._colors, radii=self._radii)
        logger.info(f"Saved {self.count} splats -> {path}")
        return path

    @classmethod
    def load(cls, path: Path) -> PointCloudModel:
        """Read a model written by :meth:`save`, re-validating every invariant."""
        with np.load(str(path)) as data:
            missing = {"positions", "colors", "radii"} - set(data.files)
            if missing:
                raise MalformedInput(f"{path} is missing arrays: {sorted(missing)}")
            return cls(data["positions"], data["colors"], data["radii"])
