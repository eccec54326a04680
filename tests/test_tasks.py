"""Tests for task queue construction."""

from __future__ import annotations

import numpy as np
import pytest

from wplace_bot.core_types import PixelTask
from wplace_bot.errors import TaskValidationError
from wplace_bot.tasks import (
    colour_counts,
    demo_block,
    normalise_tasks,
    queue_extent,
    tasks_from_matrix,
    tasks_from_rgba,
)


# ---------------------------------------------------------------------------
# normalise_tasks
# ---------------------------------------------------------------------------


class TestNormalise:
    def test_row_major_order(self):
        raw = [
            {"x": 2, "y": 1, "color": "#000000"},
            {"x": 0, "y": 1, "color": "#000000"},
            {"x": 5, "y": 0, "color": "#000000"},
        ]
        assert [t.key for t in normalise_tasks(raw)] == [(5, 0), (0, 1), (2, 1)]

    def test_last_colour_wins(self):
        raw = [
            {"x": 1, "y": 1, "color": "#ff0000"},
            {"x": 0, "y": 0, "color": "#00ff00"},
            {"x": 1, "y": 1, "color": "#0000FF"},
        ]
        tasks = normalise_tasks(raw)
        assert tasks == [PixelTask(0, 0, "#00ff00"), PixelTask(1, 1, "#0000ff")]

    def test_coordinates_are_floored(self):
        (task,) = normalise_tasks([{"x": 3.9, "y": 0.2, "color": "rgb(1,2,3)"}])
        assert task == PixelTask(3, 0, "#010203")

    def test_numpy_coordinates(self):
        (task,) = normalise_tasks([{"x": np.int64(4), "y": np.float32(2.5), "color": "#abcdef"}])
        assert task.key == (4, 2)

    def test_accepts_pixel_tasks(self):
        assert normalise_tasks([PixelTask(1, 2, "#ABCDEF")]) == [PixelTask(1, 2, "#abcdef")]

    def test_empty(self):
        assert normalise_tasks([]) == []

    @pytest.mark.parametrize(
        "bad",
        [
            {"x": -1, "y": 0, "color": "#000000"},
            {"x": "1", "y": 0, "color": "#000000"},
            {"x": True, "y": 0, "color": "#000000"},
            {"x": float("inf"), "y": 0, "color": "#000000"},
            {"x": 0, "y": 0, "color": "blue"},
            {"x": 0, "y": 0},
            [0, 0, "#000000"],
        ],
    )
    def test_one_bad_item_rejects_batch(self, bad):
        raw = [{"x": 0, "y": 0, "color": "#ffffff"}, bad]
        with pytest.raises(TaskValidationError) as info:
            normalise_tasks(raw)
        assert info.value.index == 1
        assert str(info.value).startswith("item 1: ")

    @pytest.mark.parametrize("raw", [None, "pixels", {"x": 0, "y": 0, "color": "#000000"}])
    def test_not_a_list(self, raw):
        with pytest.raises(TaskValidationError):
            normalise_tasks(raw)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalise_tasks([{"x": 0, "y": 0, "color": "nope"}])


# ---------------------------------------------------------------------------
# Other loaders
# ---------------------------------------------------------------------------


class TestMatrix:
    def test_blank_cells_skipped(self):
        rows = [["#ff0000", None, ""], [None, "#00ff00", "rgb(0,0,255)"]]
        tasks = tasks_from_matrix(rows)
        assert [(t.x, t.y, t.color) for t in tasks] == [
            (0, 0, "#ff0000"),
            (1, 1, "#00ff00"),
            (2, 1, "#0000ff"),
        ]

    def test_bad_rows(self):
        with pytest.raises(TaskValidationError):
            tasks_from_matrix(["#ff0000"])
        with pytest.raises(TaskValidationError):
            tasks_from_matrix({"rows": []})

    def test_bad_cell(self):
        with pytest.raises(TaskValidationError):
            tasks_from_matrix([["#ff0000", "oops"]])


class TestRgba:
    def test_alpha_threshold(self):
        rgb = np.zeros((2, 3, 3), dtype=np.uint8)
        rgb[0, 0] = (255, 0, 0)
        rgb[1, 2] = (0, 0, 255)
        alpha = np.array([[255, 127, 0], [0, 128, 200]], dtype=np.uint8)

        tasks = tasks_from_rgba(rgb, alpha)
        assert [(t.x, t.y, t.color) for t in tasks] == [
            (0, 0, "#ff0000"),
            (1, 1, "#000000"),
            (2, 1, "#0000ff"),
        ]

    def test_shape_mismatch(self):
        with pytest.raises(TaskValidationError):
            tasks_from_rgba(np.zeros((2, 2, 3), np.uint8), np.zeros((3, 2), np.uint8))


class TestHelpers:
    def test_demo_block(self):
        tasks = demo_block(3, "#123456")
        assert len(tasks) == 9
        assert tasks[0].key == (0, 0) and tasks[-1].key == (2, 2)

    def test_queue_extent(self):
        assert queue_extent([]) == (0, 0)
        assert queue_extent([PixelTask(4, 1, "#000000"), PixelTask(0, 6, "#000000")]) == (5, 7)

    def test_colour_counts(self):
        tasks = [
            PixelTask(0, 0, "#bbbbbb"),
            PixelTask(1, 0, "#aaaaaa"),
            PixelTask(2, 0, "#cccccc"),
            PixelTask(3, 0, "#cccccc"),
        ]
        assert colour_counts(tasks) == [("#cccccc", 2), ("#aaaaaa", 1), ("#bbbbbb", 1)]
        assert colour_counts(tasks, top=1) == [("#cccccc", 2)]
