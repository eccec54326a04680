# wplace_bot/colour_convert.py
from __future__ import annotations

import numpy as np

from .core_types import Lab

"""
sRGB -> CIE Lab (D65), vectorised with NumPy. Used only when snapping an
image to the board palette before queueing; runtime swatch matching stays
in plain RGB.
"""

# linear RGB -> XYZ (D65)
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float32,
)
_WHITE_D65 = np.array([0.95047, 1.00000, 1.08883], dtype=np.float32)
_EPS = 216.0 / 24389.0
_KAPPA = 24389.0 / 27.0


def srgb_to_linear(u: np.ndarray) -> np.ndarray:
    """sRGB companded 0..1 -> linear 0..1, any shape."""
    u = u.astype(np.float32, copy=False)
    return np.where(u <= 0.04045, u / 12.92, ((u + 0.055) / 1.055) ** 2.4).astype(
        np.float32, copy=False
    )


def rgb_to_lab(rgb: np.ndarray) -> Lab:
    """
    uint8 0..255 (or float 0..1) RGB rows of shape (..., 3) -> float32 Lab
    of the same shape.
    """
    arr = np.asarray(rgb)
    if arr.dtype == np.uint8 or arr.max(initial=0.0) > 1.0:
        arr = arr.astype(np.float32) / 255.0
    linear = srgb_to_linear(arr)
    xyz = linear @ _RGB_TO_XYZ.T / _WHITE_D65

    f = np.where(xyz > _EPS, np.cbrt(xyz), (_KAPPA * xyz + 16.0) / 116.0)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]

    out = np.empty(arr.shape, dtype=np.float32)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out  # type: ignore[return-value]


def nearest_indices_lab(src_lab: Lab, pal_lab: Lab) -> np.ndarray:
    """For each source Lab row, index of the nearest palette row (Euclidean)."""
    diff = pal_lab[None, :, :] - src_lab[:, None, :]
    dist2 = np.sum(diff * diff, axis=2)
    return np.argmin(dist2, axis=1).astype(np.int32)


__all__ = ["srgb_to_linear", "rgb_to_lab", "nearest_indices_lab"]
