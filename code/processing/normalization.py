"""Pixel depth normalization before re-encoding to 8-bit formats."""

from __future__ import annotations

import numpy as np


def scale_16bit_to_8bit(image_16bit: np.ndarray) -> np.ndarray:
    """Histogram-based scaling from 16-bit to 8-bit.

    Uses 1% and 99% percentiles; falls back to min/max if necessary.
    """
    hist, bins = np.histogram(image_16bit.flatten(), bins=256, range=(0, 65535))
    cumulative = np.cumsum(hist)
    total = cumulative[-1]
    lower_idx = np.searchsorted(cumulative, total * 0.01)
    upper_idx = np.searchsorted(cumulative, total * 0.99)
    lower = bins[lower_idx] if lower_idx < len(bins) else 0
    upper = bins[upper_idx] if upper_idx < len(bins) else 65535
    if upper <= lower:
        lower = int(image_16bit.min())
        upper = int(image_16bit.max())
        if upper <= lower:
            lower, upper = 0, 65535
    rng = upper - lower
    out = ((image_16bit.astype(np.float32) - lower) / rng) * 255.0
    return np.clip(out, 0, 255).astype(np.uint8)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Bring any integer or float image to uint8 for JPEG encoding."""
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16 or (
        np.issubdtype(image.dtype, np.integer) and image.size and int(image.max()) > 255
    ):
        return scale_16bit_to_8bit(np.clip(image, 0, 65535).astype(np.uint16))
    if np.issubdtype(image.dtype, np.floating):
        # Assume [0,1] range if float-like
        arr = np.clip(image.astype(np.float32), 0.0, 1.0) * 255.0
        return arr.astype(np.uint8)
    return np.clip(image, 0, 255).astype(np.uint8)
