"""Tests for splatscan.core.reconstruction: unprojection and ordering."""

from pathlib import Path

import numpy as np
import pytest

from splatscan.core.depth_source import DepthEstimate
from splatscan.core.errors import MalformedInput
from splatscan.core.reconstruction import reconstruct, reconstruct_with_report
from splatscan.utils.image_io import RGBImage


def _solid(w: int, h: int, rgb=(255, 255, 255)) -> RGBImage:
    pixels = np.zeros((h, w, 3), dtype=np.uint8)
    pixels[:, :] = rgb
    return RGBImage(pixels=pixels)


def _gradient(w: int, h: int) -> RGBImage:
    """Each pixel encodes its own coordinates: R = x, G = y."""
    pixels = np.zeros((h, w, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.arange(w)[None, :]
    pixels[:, :, 1] = np.arange(h)[:, None]
    return RGBImage(pixels=pixels)


# ---------------------------------------------------------------------------
# A. Reference scenario
# ---------------------------------------------------------------------------

class TestReferenceScenario:
    def test_two_by_two_canvas(self):
        model = reconstruct([_solid(2, 2)], [[1.0, 0.0, 2.0, -1.0]], 2, 2)

        assert model.count == 2
        first, second = list(model)
        assert first.position == (-1.0, -1.0, 1.0)
        assert second.position == (-1.0, 0.0, 2.0)
        assert first.color == (1.0, 1.0, 1.0)
        assert second.color == (1.0, 1.0, 1.0)
        assert first.radius == pytest.approx(0.01)


# ---------------------------------------------------------------------------
# B. Depth filtering and counts
# ---------------------------------------------------------------------------

class TestDepthFiltering:
    def test_zero_and_negative_depth_skipped(self):
        depth = np.array([0.0, -0.5, 1e-6, 3.0], dtype=np.float32)
        model = reconstruct([_solid(2, 2)], [depth], 2, 2)
        assert model.count == 2
        np.testing.assert_allclose(model.positions[:, 2], [1e-6, 3.0], rtol=1e-6)

    def test_non_finite_depth_skipped(self):
        depth = [np.nan, np.inf, -np.inf, 1.0]
        model = reconstruct([_solid(2, 2)], [depth], 2, 2)
        assert model.count == 1
        assert np.isfinite(model.positions).all()

    def test_count_is_sum_of_positive_pixels(self, sample_depth_maps):
        h, w = sample_depth_maps[0].shape
        images = [_solid(w, h) for _ in sample_depth_maps]
        model = reconstruct(images, sample_depth_maps, w, h)
        assert model.count == sum(int((d > 0).sum()) for d in sample_depth_maps)

    def test_all_background_gives_empty_model(self):
        model = reconstruct([_solid(3, 3)], [np.zeros(9)], 3, 3)
        assert model.count == 0
        assert model.bounding_box() is None

    def test_depth_scale(self):
        model = reconstruct([_solid(1, 1)], [[2.0]], 1, 1, depth_scale=0.5)
        assert model[0].position[2] == 1.0

    def test_custom_radius(self):
        model = reconstruct([_solid(1, 1)], [[2.0]], 1, 1, radius=0.05)
        assert model[0].radius == pytest.approx(0.05)


# ---------------------------------------------------------------------------
# C. Ordering and geometry
# ---------------------------------------------------------------------------

class TestOrdering:
    def test_row_major_within_image(self):
        w, h = 4, 3
        model = reconstruct([_gradient(w, h)], [np.ones(w * h)], w, h)
        # Colors encode (x, y); row-major means y outer, x inner
        coords = [(round(s.color[0] * 255), round(s.color[1] * 255)) for s in model]
        assert coords == [(x, y) for y in range(h) for x in range(w)]

    def test_image_order_then_pixels(self):
        images = [_solid(2, 1, (255, 0, 0)), _solid(2, 1, (0, 0, 255))]
        depths = [[1.0, 2.0], [3.0, 4.0]]
        model = reconstruct(images, depths, 2, 1)
        assert [s.position[2] for s in model] == [1.0, 2.0, 3.0, 4.0]
        assert [s.color for s in model][:2] == [(1.0, 0.0, 0.0)] * 2
        assert [s.color for s in model][2:] == [(0.0, 0.0, 1.0)] * 2

    def test_normalized_coordinates(self):
        w, h = 4, 2
        model = reconstruct([_solid(w, h)], [np.ones(w * h)], w, h)
        xs = sorted({s.position[0] for s in model})
        ys = sorted({s.position[1] for s in model})
        assert xs == [-1.0, -0.5, 0.0, 0.5]
        assert ys == [-1.0, 0.0]

    def test_views_overlap_in_same_frame(self):
        """Two images of the same canvas land on identical XY grids; nothing is fused."""
        model = reconstruct([_solid(2, 2), _solid(2, 2)], [np.ones(4), np.ones(4)], 2, 2)
        assert model.count == 8
        np.testing.assert_array_equal(model.positions[:4], model.positions[4:])

    def test_deterministic(self, sample_depth_maps):
        h, w = sample_depth_maps[0].shape
        images = [_gradient(w, h) for _ in sample_depth_maps]
        a = reconstruct(images, sample_depth_maps, w, h)
        b = reconstruct(images, sample_depth_maps, w, h)
        assert list(a) == list(b)

    def test_parallel_matches_sequential(self, sample_depth_maps):
        h, w = sample_depth_maps[0].shape
        images = [_gradient(w, h) for _ in sample_depth_maps] * 3
        depths = list(sample_depth_maps) * 3
        sequential = reconstruct(images, depths, w, h, max_workers=1)
        parallel = reconstruct(images, depths, w, h, max_workers=4)
        np.testing.assert_array_equal(sequential.positions, parallel.positions)
        np.testing.assert_array_equal(sequential.colors, parallel.colors)


# ---------------------------------------------------------------------------
# D. Color sampling
# ---------------------------------------------------------------------------

class TestColorSampling:
    def test_colors_normalized(self):
        model = reconstruct([_solid(1, 1, (255, 128, 0))], [[1.0]], 1, 1)
        r, g, b = model[0].color
        assert r == 1.0
        assert g == pytest.approx(128 / 255)
        assert b == 0.0

    def test_pixels_outside_image_are_black(self):
        # Image is 1x1, canvas is 2x1: the second pixel has no source color
        model = reconstruct([_solid(1, 1)], [[1.0, 1.0]], 2, 1)
        assert model[0].color == (1.0, 1.0, 1.0)
        assert model[1].color == (0.0, 0.0, 0.0)

    def test_resize_to_canvas(self):
        model = reconstruct([_solid(16, 16, (0, 255, 0))], [np.ones(4)], 2, 2, resize_to_canvas=True)
        assert all(s.color == (0.0, 1.0, 0.0) for s in model)

    def test_rgba_and_grayscale_arrays(self):
        rgba = np.full((1, 1, 4), 255, dtype=np.uint8)
        gray = np.zeros((1, 1), dtype=np.uint8)
        model = reconstruct([rgba, gray], [[1.0], [1.0]], 1, 1)
        assert model[0].color == (1.0, 1.0, 1.0)
        assert model[1].color == (0.0, 0.0, 0.0)


# ---------------------------------------------------------------------------
# E. Failure handling
# ---------------------------------------------------------------------------

class TestFailures:
    def test_depth_length_mismatch_raises(self):
        with pytest.raises(MalformedInput, match="expected 2x2=4"):
            reconstruct([_solid(2, 2)], [[1.0, 1.0, 1.0]], 2, 2)

    def test_mismatch_detected_before_any_work(self):
        # The bad buffer is last; still rejected up front
        with pytest.raises(MalformedInput):
            reconstruct([_solid(2, 2), _solid(2, 2)], [np.ones(4), np.ones(5)], 2, 2)

    def test_depth_estimate_with_other_grid_raises(self):
        est = DepthEstimate(values=np.ones(4, dtype=np.float32), width=4, height=1)
        with pytest.raises(MalformedInput):
            reconstruct([_solid(2, 2)], [est], 2, 2)

    def test_image_depth_count_mismatch_raises(self):
        with pytest.raises(MalformedInput):
            reconstruct([_solid(2, 2)], [np.ones(4), np.ones(4)], 2, 2)

    @pytest.mark.parametrize("w,h", [(0, 2), (2, -1)])
    def test_bad_canvas_raises(self, w, h):
        with pytest.raises(MalformedInput):
            reconstruct([], [], w, h)

    def test_decode_failure_skips_only_that_image(self, tmp_path: Path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")
        images = [_solid(2, 2), broken, _solid(2, 2, (0, 0, 255))]
        model, report = reconstruct_with_report(images, [np.ones(4)] * 3, 2, 2)

        assert model.count == 8
        assert report.images_used == 2
        assert [s.index for s in report.skipped] == [1]
        assert "decode" in report.skipped[0].reason
        assert model[-1].color == (0.0, 0.0, 1.0)

    def test_missing_file_skipped(self, tmp_path: Path):
        model, report = reconstruct_with_report(
            [tmp_path / "nope.png", _solid(1, 1)], [[1.0], [1.0]], 1, 1
        )
        assert model.count == 1
        assert report.skipped[0].index == 0

    def test_unavailable_depth_skips_image(self):
        model, report = reconstruct_with_report([_solid(1, 1), _solid(1, 1)], [None, [1.0]], 1, 1)
        assert model.count == 1
        assert report.skipped[0].index == 0
        assert "no depth" in report.skipped[0].reason

    def test_report_counts(self, sample_depth_maps):
        h, w = sample_depth_maps[0].shape
        images = [_solid(w, h) for _ in sample_depth_maps]
        model, report = reconstruct_with_report(images, sample_depth_maps, w, h)
        assert report.images_total == 3
        assert report.images_used == 3
        assert report.splat_count == model.count
        assert report.skipped == []
