"""Camera image format conversion for solvers with a fixed input format."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image
import rawpy

from exceptions import ConversionError
from processing.normalization import to_uint8
from utils.constants import RAW_EXTENSIONS

logger = logging.getLogger(__name__)


def _normalize_extension(extension: str) -> str:
    ext = extension.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def needs_conversion(path: Path | str, target_extension: str) -> bool:
    return Path(path).suffix.lower() != _normalize_extension(target_extension)


def converted_path(path: Path | str, target_extension: str) -> Path:
    """Sibling path with spaces in the name replaced by underscores."""
    src = Path(path)
    return src.with_name(src.stem.replace(" ", "_") + _normalize_extension(target_extension))


def _read_raw(path: Path) -> np.ndarray:
    with rawpy.imread(str(path)) as raw:
        return raw.postprocess(use_camera_wb=True, no_auto_bright=True, output_bps=8)


def _read_bitmap(path: Path) -> np.ndarray:
    with Image.open(path) as img:
        img.load()
        if img.mode in ("RGBA", "P", "LA", "CMYK", "YCbCr"):
            img = img.convert("RGB")
        return np.array(img)


def _to_image(pixels: np.ndarray) -> Image.Image:
    pixels = to_uint8(pixels)
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.ndim == 3 and pixels.shape[2] > 3:
        pixels = pixels[:, :, :3]
    return Image.fromarray(pixels)


def decode_image(path: Path | str) -> np.ndarray:
    src = Path(path)
    if src.suffix.lower() in RAW_EXTENSIONS:
        return _read_raw(src)
    return _read_bitmap(src)


def normalize(path: Path | str, target_extension: str, log: Any = None) -> Path:
    """Return an image path in ``target_extension`` format.

    The original path is returned untouched when it already has the target
    extension. Otherwise the image is decoded and written next to the source.

    Raises:
        ConversionError: decode or encode failed.
    """
    log = log or logger
    src = Path(path)
    if not needs_conversion(src, target_extension):
        return src

    dest = converted_path(src, target_extension)
    try:
        pixels = decode_image(src)
        image = _to_image(pixels)
        image.save(dest)
    except (OSError, ValueError, TypeError, rawpy.LibRawError) as e:
        raise ConversionError(
            f"Could not convert {src.name} to {_normalize_extension(target_extension)}: {e}",
            details={'source': str(src), 'destination': str(dest)},
        ) from e
    log.info(f"Converted {src.name} -> {dest.name} ({image.width}x{image.height})")
    return dest
