"""
Pixel Filters
=============
whiten_background          histogram-peak thresholding: paper → white,
                           ink scaled darker
denoise                    3x3 median per colour channel
sharpen                    3x3 cross unsharp mask
adjust_contrast_brightness linear remap around mid-grey

Every filter returns a new RasterImage and leaves alpha untouched.
denoise and sharpen copy the 1px border as-is.
"""

import cv2
import numpy as np
from loguru import logger

from image_enhancement.luminance import luminance, round_half_up_array
from image_enhancement.models import RasterImage

PAPER_PEAK_MIN = 128        # background peak is searched in [128, 255]
INK_MARGIN = 60             # threshold = peak - INK_MARGIN


def whiten_background(image: RasterImage) -> RasterImage:
    """
    Force the paper tone to pure white and push ink darker.

    The background is the most frequent luminance in [128, 255]
    (255 if that range is empty). Pixels brighter than peak - 60 turn
    white; the rest are scaled by luminance / threshold.
    """
    image.validate()
    if image.is_empty:
        return image.copy()

    lum = luminance(image.pixels)
    bins = np.clip(round_half_up_array(lum), 0, 255).astype(np.intp)
    histogram = np.bincount(bins.ravel(), minlength=256)

    upper = histogram[PAPER_PEAK_MIN:]
    peak = 255 if upper.max() == 0 else PAPER_PEAK_MIN + int(np.argmax(upper))
    threshold = peak - INK_MARGIN

    out = image.pixels.copy()
    rgb = out[..., :3].astype(np.float64)
    factor = (lum / threshold)[..., np.newaxis]
    darkened = np.clip(round_half_up_array(rgb * factor), 0, 255)
    background = (lum > threshold)[..., np.newaxis]
    out[..., :3] = np.where(background, 255, darkened).astype(np.uint8)

    logger.debug(
        f"[Filters] Whitening: peak={peak} threshold={threshold} "
        f"background={float(background.mean()):.1%}"
    )
    return RasterImage(pixels=out)


def denoise(image: RasterImage) -> RasterImage:
    """Classic 3x3 median filter on R, G and B independently."""
    image.validate()
    out = image.pixels.copy()
    if image.height < 3 or image.width < 3:
        return RasterImage(pixels=out)

    rgb = np.ascontiguousarray(image.pixels[..., :3])
    median = cv2.medianBlur(rgb, 3)
    # Only interior pixels are filtered
    out[1:-1, 1:-1, :3] = median[1:-1, 1:-1]
    return RasterImage(pixels=out)


def sharpen(image: RasterImage, amount: float = 0.5) -> RasterImage:
    """
    Unsharp mask with the cross kernel

         0   -a    0
        -a  1+4a  -a
         0   -a    0

    amount=0 is the identity kernel.
    """
    if amount < 0:
        raise ValueError(f"Sharpen amount must be >= 0, got {amount}")
    image.validate()
    out = image.pixels.copy()
    if image.height < 3 or image.width < 3 or amount == 0:
        return RasterImage(pixels=out)

    f = image.pixels[..., :3].astype(np.float64)
    neighbours = f[:-2, 1:-1] + f[2:, 1:-1] + f[1:-1, :-2] + f[1:-1, 2:]
    result = (1 + 4 * amount) * f[1:-1, 1:-1] - amount * neighbours
    out[1:-1, 1:-1, :3] = np.clip(round_half_up_array(result), 0, 255).astype(np.uint8)
    return RasterImage(pixels=out)


def contrast_factor(contrast: float) -> float:
    return (259 * (contrast + 255)) / (255 * (259 - contrast))


def adjust_contrast_brightness(
    image: RasterImage,
    contrast: float = 0,
    brightness: float = 0,
) -> RasterImage:
    """
    out = clamp(factor * (in - 128) + 128 + brightness * 2.55)
    factor = 259 (contrast + 255) / (255 (259 - contrast))

    contrast=0, brightness=0 is the identity.
    """
    if not -255 < contrast < 259:
        raise ValueError(f"Contrast must be in (-255, 259), got {contrast}")
    image.validate()
    out = image.pixels.copy()
    if image.is_empty:
        return RasterImage(pixels=out)

    factor = contrast_factor(contrast)
    offset = brightness * 2.55
    rgb = out[..., :3].astype(np.float64)
    remapped = np.clip(factor * (rgb - 128) + 128 + offset, 0, 255)
    # Clamped-byte store: round half to even
    out[..., :3] = np.rint(remapped).astype(np.uint8)

    logger.debug(f"[Filters] Contrast {contrast:+} (x{factor:.3f}), brightness {brightness:+}")
    return RasterImage(pixels=out)
