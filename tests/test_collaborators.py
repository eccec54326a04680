"""Tests for the screen surface and the swatch layout palette source."""

from __future__ import annotations

import json

import pytest

from wplace_bot.collaborators import JsonPaletteSource, RecordingClicker, ScreenSurface
from wplace_bot.errors import PaletteScanError, SurfaceNotFoundError
from wplace_bot.palette import Palette


def _layout(tmp_path, data):
    path = tmp_path / "layout.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestScreenSurface:
    def test_clicks_relative_to_origin(self):
        clicker = RecordingClicker()
        surface = ScreenSurface(clicker, origin=(400, 100))
        handle = surface.locate()
        surface.place(handle, 3, 7)
        assert clicker.clicks == [(403, 107)]

    def test_without_clicker(self):
        surface = ScreenSurface(None)
        assert surface.locate() is None
        with pytest.raises(SurfaceNotFoundError):
            surface.place((0, 0), 1, 1)


class TestJsonPaletteSource:
    def test_scan(self, tmp_path):
        path = _layout(
            tmp_path,
            {
                "swatches": [
                    {"color": "#ED1C24", "x": 40, "y": 900},
                    {"name": "Dark Red", "x": 64, "y": 900, "locked": True},
                ]
            },
        )
        entries = JsonPaletteSource(path, None).scan()
        assert [(e.handle, e.color, e.locked) for e in entries] == [
            ((40, 900), "#ed1c24", False),
            ((64, 900), "#a50e1e", True),
        ]
        assert entries[1].name == "Dark Red"

    def test_plain_list(self, tmp_path):
        path = _layout(tmp_path, [{"color": "rgb(0,0,0)", "x": 1, "y": 2}])
        (entry,) = JsonPaletteSource(path, None).scan()
        assert entry.color == "#000000"

    @pytest.mark.parametrize(
        "data",
        [
            {"swatches": "nope"},
            [{"color": "#000000"}],
            [{"x": 1, "y": 1}],
            [{"name": "Not A Colour", "x": 1, "y": 1}],
            [{"color": "#zzzzzz", "x": 1, "y": 1}],
        ],
    )
    def test_bad_layouts(self, tmp_path, data):
        with pytest.raises(PaletteScanError):
            JsonPaletteSource(_layout(tmp_path, data), None).scan()

    def test_missing_file(self, tmp_path):
        with pytest.raises(PaletteScanError):
            JsonPaletteSource(tmp_path / "missing.json", None).scan()

    def test_rescan_picks_up_edits(self, tmp_path):
        clicker = RecordingClicker()
        path = _layout(tmp_path, [{"color": "#ffffff", "x": 5, "y": 6, "locked": True}])
        palette = Palette(JsonPaletteSource(path, clicker))
        palette.rescan()
        assert palette.counts() == (0, 1)

        _layout(tmp_path, [{"color": "#ffffff", "x": 5, "y": 6}])
        (entry,) = palette.rescan()
        palette.select(entry)
        assert palette.counts() == (1, 0)
        assert clicker.clicks == [(5, 6)]
