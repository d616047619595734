"""Image I/O at the program boundary (Pillow)."""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from clusterseg.engine.errors import ImageLoadError, ImageTooLarge
from clusterseg.utils.tags import rgb_to_tags, tags_to_rgb


def load_image(source: str | Path | bytes, max_pixels: int | None = None) -> NDArray[np.uint8]:
    """Decode a file path or encoded bytes into an HxWx3 uint8 RGB array.

    The header is read first; an image over ``max_pixels`` (or over Pillow's
    decompression bomb limit) raises ImageTooLarge before any pixel data is
    decoded.
    """
    try:
        img = Image.open(io.BytesIO(source) if isinstance(source, bytes) else source)
    except Image.DecompressionBombError as e:
        raise ImageTooLarge(str(e)) from e
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise ImageLoadError(f"could not read image data: {e}") from e

    with img:
        pixels = img.width * img.height
        if max_pixels is not None and pixels > max_pixels:
            raise ImageTooLarge(f"image has {pixels} pixels, limit is {max_pixels}")
        try:
            rgb = np.array(img.convert("RGB"))
        except (OSError, ValueError) as e:
            raise ImageLoadError(f"could not read image data: {e}") from e

    if rgb.ndim != 3 or rgb.shape[0] == 0 or rgb.shape[1] == 0:
        raise ImageLoadError(f"invalid image size {rgb.shape}")
    return rgb


def encode_tags_png(tags: NDArray) -> bytes:
    """Encode a tag raster as a 24-bit color PNG."""
    buf = io.BytesIO()
    Image.fromarray(tags_to_rgb(tags)).save(buf, format="PNG")
    return buf.getvalue()


def save_tags_image(path: str | Path, tags: NDArray) -> None:
    Path(path).write_bytes(encode_tags_png(tags))


def load_tags_image(source: str | Path | bytes) -> NDArray[np.int32]:
    """Read a tags image written by save_tags_image back into a tag raster."""
    return rgb_to_tags(load_image(source))


def save_rgb_image(path: str | Path, rgb: NDArray[np.uint8]) -> None:
    Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8)).save(path)
