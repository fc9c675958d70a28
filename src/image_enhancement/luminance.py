"""
Luminance helpers shared by every metric and filter.

All quality metrics work on a single brightness value per pixel:

    L = 0.299 R + 0.587 G + 0.114 B

computed as (299 R + 587 G + 114 B) / 1000 so a grey pixel's luminance
equals its channel value exactly (235, 235, 235 → 235.0, not 234.99...).
Alpha (if present) never contributes.
"""

import math

import numpy as np

R_WEIGHT = 299
G_WEIGHT = 587
B_WEIGHT = 114
WEIGHT_SCALE = 1000.0


def luminance(pixels: np.ndarray) -> np.ndarray:
    """
    Per-pixel luminance of an RGB(A) array.

    Args:
        pixels: uint8 array of shape (H, W, 3) or (H, W, 4)

    Returns:
        float64 array of shape (H, W)
    """
    rgb = pixels[..., :3].astype(np.int64)
    weighted = rgb[..., 0] * R_WEIGHT + rgb[..., 1] * G_WEIGHT + rgb[..., 2] * B_WEIGHT
    return weighted / WEIGHT_SCALE


def round_half_up(value: float) -> int:
    """Round .5 upwards (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def round_half_up_array(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)
