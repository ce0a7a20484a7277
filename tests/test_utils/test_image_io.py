"""Tests for splatscan.utils.image_io: frame decoding."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from splatscan.core.errors import DecodeFailure
from splatscan.utils.image_io import RGBImage, decode_image, list_frames, source_name


class TestDecodeImage:
    def test_file_is_converted_to_rgb(self, tmp_path: Path):
        bgr = np.zeros((3, 5, 3), dtype=np.uint8)
        bgr[:, :, 2] = 200  # red in BGR order
        path = tmp_path / "red.png"
        cv2.imwrite(str(path), bgr)

        img = decode_image(path)
        assert (img.width, img.height) == (5, 3)
        assert img.name == "red.png"
        assert tuple(img.pixels[0, 0]) == (200, 0, 0)

    def test_string_path(self, tmp_path: Path):
        path = tmp_path / "a.png"
        cv2.imwrite(str(path), np.zeros((2, 2, 3), dtype=np.uint8))
        assert decode_image(str(path)).width == 2

    def test_rgb_image_passthrough(self):
        img = RGBImage(pixels=np.zeros((1, 1, 3), dtype=np.uint8), name="x")
        assert decode_image(img) is img

    def test_float_array_scaled(self):
        img = decode_image(np.full((1, 1, 3), 1.0, dtype=np.float32))
        assert img.pixels.dtype == np.uint8
        assert tuple(img.pixels[0, 0]) == (255, 255, 255)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DecodeFailure, match="not found"):
            decode_image(tmp_path / "nope.png")

    def test_undecodable_file(self, tmp_path: Path):
        path = tmp_path / "junk.jpg"
        path.write_bytes(b"\xff\xd8 definitely not a jpeg")
        with pytest.raises(DecodeFailure):
            decode_image(path)

    @pytest.mark.parametrize("shape", [(2, 2, 2), (0, 4, 3), (2, 2, 3, 1)])
    def test_bad_array_shapes(self, shape):
        with pytest.raises(DecodeFailure):
            decode_image(np.zeros(shape, dtype=np.uint8))

    def test_unsupported_type(self):
        with pytest.raises(DecodeFailure):
            decode_image(42)


class TestRGBImage:
    def test_normalized(self):
        img = RGBImage(pixels=np.array([[[0, 51, 255]]], dtype=np.uint8))
        np.testing.assert_allclose(img.normalized()[0, 0], [0.0, 0.2, 1.0], rtol=1e-6)

    def test_resized(self):
        img = RGBImage(pixels=np.zeros((10, 20, 3), dtype=np.uint8), name="a")
        small = img.resized(4, 2)
        assert (small.width, small.height) == (4, 2)
        assert small.name == "a"
        assert img.resized(20, 10) is img


class TestListFrames:
    def test_sorted_and_filtered(self, tmp_path: Path):
        for name in ["b.png", "a.JPG", "notes.txt", "c.tiff"]:
            (tmp_path / name).write_bytes(b"")
        (tmp_path / "sub.png").mkdir()
        assert [p.name for p in list_frames(tmp_path)] == ["a.JPG", "b.png", "c.tiff"]


class TestPixelDtypes:
    def test_uint16_scaled_down(self):
        img = decode_image(np.full((1, 1, 3), 65535, dtype=np.uint16))
        assert tuple(img.pixels[0, 0]) == (255, 255, 255)

    def test_int_in_range_accepted(self):
        img = decode_image(np.full((1, 1, 3), 200, dtype=np.int64))
        assert img.pixels.dtype == np.uint8
        assert tuple(img.pixels[0, 0]) == (200, 200, 200)

    @pytest.mark.parametrize("value", [-1, 256, 1000])
    def test_int_out_of_range_rejected(self, value):
        with pytest.raises(DecodeFailure, match="expected \\[0, 255\\]"):
            decode_image(np.full((2, 2, 3), value, dtype=np.int32))

    def test_complex_rejected(self):
        with pytest.raises(DecodeFailure, match="dtype"):
            decode_image(np.zeros((1, 1, 3), dtype=np.complex64))


def test_source_name(tmp_path: Path):
    assert source_name(tmp_path / "frames" / "a.png") == "a.png"
    assert source_name("b.jpg") == "b.jpg"
    assert source_name(RGBImage(pixels=np.zeros((1, 1, 3), dtype=np.uint8), name="c.png")) == "c.png"
    assert source_name(np.zeros((4, 4, 3), dtype=np.uint8)) == ""
