"""
Geometric Transforms
====================
deskew              rotate counter-clockwise by the skew angle on an enlarged
                    white canvas (nothing is clipped)
auto_crop           crop to the padded bounding box of non-background pixels
correct_perspective rotation-only approximation, delegates to deskew

KNOWN LIMITATION: correct_perspective does not do keystone / projective
correction. That would need 4-corner detection and a homography warp,
and would change output geometry. It stays a 2-D rotation.
"""

import math
from typing import Optional, Union

import cv2
import numpy as np
from loguru import logger

from image_enhancement.luminance import luminance
from image_enhancement.models import RasterImage
from image_enhancement.skew import BaseSkewEstimator, resolve_estimator

MIN_DESKEW_ANGLE = 0.5      # degrees, below → leave untouched
CONTENT_LUMINANCE = 235     # below → content pixel
MIN_PADDING = 10
PADDING_FRACTION = 0.02
MIN_CROP_SIDE = 100
MAX_CROP_FRACTION = 0.95


def deskew(
    image: RasterImage,
    angle: Optional[float] = None,
    skew_estimator: Union[str, BaseSkewEstimator, None] = None,
) -> RasterImage:
    """
    Rotate image to correct skew.

    Args:
        image:          input raster (not modified)
        angle:          skew in degrees; estimated when None
        skew_estimator: strategy used when angle is None

    Returns:
        New RasterImage. Same size and pixels when |angle| < 0.5°,
        otherwise a canvas of ceil(W|cos|+H|sin|) x ceil(H|cos|+W|sin|).
    """
    image.validate()
    if image.is_empty:
        return image.copy()

    if angle is None:
        angle = resolve_estimator(skew_estimator).estimate(luminance(image.pixels))

    if abs(angle) < MIN_DESKEW_ANGLE:
        return image.copy()

    h, w = image.height, image.width
    rad = math.radians(angle)
    cos, sin = abs(math.cos(rad)), abs(math.sin(rad))
    new_w = int(math.ceil(w * cos + h * sin))
    new_h = int(math.ceil(h * cos + w * sin))

    # Rotate about the source centre, then move that centre to the new canvas centre
    M = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), angle, 1.0)
    M[0, 2] += new_w / 2.0 - w / 2.0
    M[1, 2] += new_h / 2.0 - h / 2.0

    rotated = cv2.warpAffine(
        np.ascontiguousarray(image.pixels), M, (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(255,) * image.channels,
    )

    logger.info(f"[Geometry] Deskew {angle:.1f}°: {w}x{h} → {new_w}x{new_h}")
    return RasterImage(pixels=rotated)


def content_bounds(image: RasterImage):
    """
    Bounding box (min_x, min_y, max_x, max_y), inclusive, of content pixels.
    None when every pixel is background.
    """
    content = luminance(image.pixels) < CONTENT_LUMINANCE
    rows = content.any(axis=1)
    cols = content.any(axis=0)
    if not rows.any():
        return None
    min_y = int(np.argmax(rows))
    max_y = int(len(rows) - 1 - np.argmax(rows[::-1]))
    min_x = int(np.argmax(cols))
    max_x = int(len(cols) - 1 - np.argmax(cols[::-1]))
    return min_x, min_y, max_x, max_y


def auto_crop(image: RasterImage) -> RasterImage:
    """
    Crop to content plus padding = max(10, 2% of the shorter side).

    The crop only happens when the box is at least 100x100 and is smaller
    than 95% of the original width or height; otherwise the image is
    returned unchanged.
    """
    image.validate()
    if image.is_empty:
        return image.copy()

    bounds = content_bounds(image)
    if bounds is None:
        logger.debug("[Geometry] Auto-crop: no content found")
        return image.copy()

    h, w = image.height, image.width
    min_x, min_y, max_x, max_y = bounds
    padding = int(max(MIN_PADDING, PADDING_FRACTION * min(w, h)))

    x0 = max(0, min_x - padding)
    y0 = max(0, min_y - padding)
    x1 = min(w - 1, max_x + padding)
    y1 = min(h - 1, max_y + padding)
    crop_w = x1 - x0 + 1
    crop_h = y1 - y0 + 1

    big_enough = crop_w >= MIN_CROP_SIDE and crop_h >= MIN_CROP_SIDE
    worth_it = crop_w < w * MAX_CROP_FRACTION or crop_h < h * MAX_CROP_FRACTION
    if not (big_enough and worth_it):
        logger.debug(f"[Geometry] Auto-crop skipped: box {crop_w}x{crop_h} in {w}x{h}")
        return image.copy()

    logger.info(f"[Geometry] Auto-crop: {w}x{h} → {crop_w}x{crop_h} at ({x0},{y0})")
    return RasterImage(pixels=image.pixels[y0:y1 + 1, x0:x1 + 1].copy())


def correct_perspective(
    image: RasterImage,
    skew_estimator: Union[str, BaseSkewEstimator, None] = None,
) -> RasterImage:
    """Rotation-only stand-in for keystone correction; see module docstring."""
    logger.debug("[Geometry] Perspective correction is rotation-only, delegating to deskew")
    return deskew(image, skew_estimator=skew_estimator)
