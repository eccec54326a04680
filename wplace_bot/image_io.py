# wplace_bot/image_io.py
from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageGrab, ImageOps, UnidentifiedImageError

from .colour import parse_hex
from .constants import ALPHA_THRESHOLD, DEFAULT_MAX_HEIGHT, DEFAULT_MAX_WIDTH
from .core_types import PixelTask, U8Image, U8Mask
from .errors import ImageLoadError
from .tasks import queue_extent

"""
Image sources: file, base64 data URL, clipboard.

All of them decode to sRGB RGBA, shrink to fit (max_w, max_h) keeping the
aspect ratio with nearest-neighbour sampling (never upscaling), and binarise
alpha at 128 so semi-transparent pixels produce no task.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except Exception:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]

ImageSource = Union[str, Path, bytes, Image.Image]

_DATA_URL = re.compile(r"^data:image/[\w.+-]+;base64,(.*)$", re.DOTALL)


def binarise_alpha(alpha: np.ndarray, threshold: int = ALPHA_THRESHOLD) -> U8Mask:
    """0/255 mask: 255 where alpha >= threshold."""
    a = np.asarray(alpha, dtype=np.uint8)
    out = np.zeros_like(a, dtype=np.uint8)
    out[a >= np.uint8(threshold)] = 255
    return out


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            converted = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if converted is not None:
                return converted
        except (ImageCms.PyCMSError, OSError, ValueError):
            pass
    return im.convert("RGBA")


def fit_size(width: int, height: int, max_w: int, max_h: int) -> Tuple[int, int]:
    """Largest size within (max_w, max_h) with the same aspect ratio, never larger."""
    if width <= 0 or height <= 0:
        raise ImageLoadError(f"image has no pixels ({width}x{height})")
    scale = min(max_w / width, max_h / height, 1.0)
    return max(1, int(width * scale)), max(1, int(height * scale))


def _open_rgba(source: ImageSource) -> Image.Image:
    """sRGB RGBA copy of source. Files are closed before this returns."""
    if isinstance(source, Image.Image):
        return _convert_to_srgb_rgba(source)
    fp = io.BytesIO(source) if isinstance(source, bytes) else Path(source)
    try:
        with Image.open(fp) as im0:
            return _convert_to_srgb_rgba(im0)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageLoadError(f"cannot read image: {exc}") from exc


def decode_image(
    source: ImageSource,
    max_w: int = DEFAULT_MAX_WIDTH,
    max_h: int = DEFAULT_MAX_HEIGHT,
) -> Tuple[U8Image, U8Mask]:
    """Decode and shrink an image; returns (rgb uint8 [H,W,3], alpha 0/255 [H,W])."""
    if max_w < 1 or max_h < 1:
        raise ImageLoadError("max size must be at least 1x1")
    im = _open_rgba(source)
    dst_w, dst_h = fit_size(im.width, im.height, max_w, max_h)
    if (dst_w, dst_h) != im.size:
        im = im.resize((dst_w, dst_h), resample=Image.Resampling.NEAREST)
    arr = np.array(im, dtype=np.uint8)
    return arr[..., :3].copy(), binarise_alpha(arr[..., 3])


def decode_data_url(
    data_url: str,
    max_w: int = DEFAULT_MAX_WIDTH,
    max_h: int = DEFAULT_MAX_HEIGHT,
) -> Tuple[U8Image, U8Mask]:
    """'data:image/png;base64,...' -> decode_image()."""
    m = _DATA_URL.match(data_url.strip())
    if m is None:
        raise ImageLoadError("expected a data:image/...;base64, URL")
    try:
        payload = base64.b64decode(m.group(1), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ImageLoadError(f"bad base64 payload: {exc}") from exc
    return decode_image(payload, max_w, max_h)


def grab_clipboard_image(
    max_w: int = DEFAULT_MAX_WIDTH,
    max_h: int = DEFAULT_MAX_HEIGHT,
) -> Tuple[U8Image, U8Mask]:
    """Image currently on the system clipboard -> decode_image()."""
    try:
        grabbed = ImageGrab.grabclipboard()
    except (NotImplementedError, OSError) as exc:
        raise ImageLoadError(f"clipboard not available: {exc}") from exc
    if isinstance(grabbed, list):
        # file copies come back as paths; use the first one that opens
        for name in grabbed:
            try:
                return decode_image(name, max_w, max_h)
            except ImageLoadError:
                continue
        raise ImageLoadError("no image among the files on the clipboard")
    if grabbed is None:
        raise ImageLoadError("no image in clipboard")
    return decode_image(grabbed, max_w, max_h)


def render_tasks(tasks: Sequence[PixelTask]) -> Image.Image:
    """One pixel per task on a transparent canvas sized to the queue extent."""
    width, height = queue_extent(tasks)
    out = np.zeros((max(height, 1), max(width, 1), 4), dtype=np.uint8)
    for t in tasks:
        rgb = parse_hex(t.color) or (0, 0, 0)
        out[t.y, t.x, :3] = rgb
        out[t.y, t.x, 3] = 255
    return Image.fromarray(out)


def save_preview(path: Path, tasks: Sequence[PixelTask], scale: int = 1) -> Path:
    """Write render_tasks() as PNG, optionally enlarged with nearest sampling."""
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    im = render_tasks(tasks)
    if scale > 1:
        im = im.resize((im.width * scale, im.height * scale), Image.Resampling.NEAREST)
    im.save(path)
    return path


__all__ = [
    "ImageSource",
    "binarise_alpha",
    "fit_size",
    "decode_image",
    "decode_data_url",
    "grab_clipboard_image",
    "render_tasks",
    "save_preview",
]
