"""Tests for image decoding, palette snapping and preview rendering."""

from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from PIL import Image

from wplace_bot.core_types import PixelTask
from wplace_bot.errors import ImageLoadError
from wplace_bot.image_io import (
    binarise_alpha,
    decode_data_url,
    decode_image,
    fit_size,
    render_tasks,
    save_preview,
)
from wplace_bot.palette_data import PALETTE, colour_for_name, palette_rgb, snap_to_palette


def _png_bytes(im: Image.Image) -> bytes:
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


class TestFitSize:
    def test_shrinks_keeping_aspect(self):
        assert fit_size(100, 50, 50, 50) == (50, 25)
        assert fit_size(40, 200, 50, 50) == (10, 50)

    def test_never_upscales(self):
        assert fit_size(10, 8, 50, 50) == (10, 8)

    def test_minimum_one(self):
        assert fit_size(1024, 2, 64, 64) == (64, 1)

    def test_empty(self):
        with pytest.raises(ImageLoadError):
            fit_size(0, 10, 50, 50)


class TestDecode:
    def test_file(self, tmp_path):
        im = Image.new("RGBA", (100, 50), (255, 0, 0, 255))
        path = tmp_path / "red.png"
        im.save(path)

        rgb, alpha = decode_image(path)
        assert rgb.shape == (25, 50, 3)
        assert alpha.shape == (25, 50)
        assert (rgb[..., 0] == 255).all() and (alpha == 255).all()

    def test_alpha_threshold(self):
        im = Image.new("RGBA", (3, 1))
        im.putpixel((0, 0), (0, 0, 0, 127))
        im.putpixel((1, 0), (0, 0, 0, 128))
        im.putpixel((2, 0), (0, 0, 0, 0))
        _, alpha = decode_image(im)
        assert alpha.tolist() == [[0, 255, 0]]

    def test_rgb_image_is_opaque(self):
        _, alpha = decode_image(Image.new("RGB", (4, 4), (1, 2, 3)))
        assert (alpha == 255).all()

    def test_data_url(self):
        payload = base64.b64encode(_png_bytes(Image.new("RGBA", (2, 3), (0, 0, 255, 255))))
        rgb, alpha = decode_data_url("data:image/png;base64," + payload.decode("ascii"))
        assert rgb.shape == (3, 2, 3)
        assert tuple(rgb[0, 0]) == (0, 0, 255)

    def test_bad_data_url(self):
        with pytest.raises(ImageLoadError):
            decode_data_url("http://example.com/img.png")

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "not_an_image.png"
        path.write_bytes(b"plain text")
        with pytest.raises(ImageLoadError):
            decode_image(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError):
            decode_image(tmp_path / "nope.png")

    def test_oversized_image(self, tmp_path, monkeypatch):
        path = tmp_path / "huge.png"
        Image.new("RGBA", (20, 20)).save(path)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
        with pytest.raises(ImageLoadError):
            decode_image(path)

    def test_binarise(self):
        out = binarise_alpha(np.array([0, 127, 128, 255], dtype=np.uint8))
        assert out.tolist() == [0, 0, 255, 255]


class TestPreview:
    def test_render(self):
        im = render_tasks([PixelTask(0, 0, "#ff0000"), PixelTask(2, 1, "#0000ff")])
        assert im.size == (3, 2)
        assert im.getpixel((0, 0)) == (255, 0, 0, 255)
        assert im.getpixel((1, 0))[3] == 0

    def test_save_scaled(self, tmp_path):
        path = save_preview(tmp_path / "out", [PixelTask(1, 1, "#00ff00")], scale=4)
        assert path.suffix == ".png"
        with Image.open(path) as im:
            assert im.size == (8, 8)


class TestPaletteData:
    def test_names(self):
        assert colour_for_name("Dark Red") == "#a50e1e"
        assert colour_for_name(" black ") == "#000000"
        assert colour_for_name("mauve") is None

    def test_palette_rgb(self):
        arr = palette_rgb()
        assert arr.shape == (len(PALETTE), 3)
        assert arr.dtype == np.uint8

    def test_snap(self):
        rgb = np.array([[[236, 28, 36], [255, 255, 255], [9, 200, 9]]], dtype=np.uint8)
        alpha = np.array([[255, 255, 0]], dtype=np.uint8)
        out = snap_to_palette(rgb, alpha)
        assert tuple(out[0, 0]) == (0xED, 0x1C, 0x24)
        assert tuple(out[0, 1]) == (255, 255, 255)
        assert tuple(out[0, 2]) == (9, 200, 9)

    def test_snap_all_hidden(self):
        rgb = np.full((2, 2, 3), 7, dtype=np.uint8)
        out = snap_to_palette(rgb, np.zeros((2, 2), dtype=np.uint8))
        assert (out == 7).all()
