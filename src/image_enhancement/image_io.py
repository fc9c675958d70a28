"""
File boundary: decode images from disk into RasterImage (RGBA) and back.
No enhancement logic here.
"""

import os
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from loguru import logger

from image_enhancement.models import RasterImage

_NO_ALPHA_EXTS = {'.jpg', '.jpeg', '.bmp'}


def load_image(path: Union[str, Path]) -> RasterImage:
    """
    Read any OpenCV-readable raster (JPEG, PNG, WebP, BMP, TIFF) as RGBA.

    Raises:
        FileNotFoundError: path does not exist
        ValueError: file exists but cannot be decoded
    """
    path = str(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")

    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"Cannot read image: {path}")

    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise ValueError(f"Unsupported sample type {img.dtype}: {path}")

    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    else:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)

    logger.debug(f"[ImageIO] Loaded {path}: {rgba.shape[1]}x{rgba.shape[0]}")
    return RasterImage(pixels=rgba)


def save_image(image: RasterImage, path: Union[str, Path]) -> str:
    """Write image; alpha is dropped for formats that cannot store it."""
    image.validate()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if image.has_alpha and path.suffix.lower() not in _NO_ALPHA_EXTS:
        out = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGRA)
    elif image.has_alpha:
        out = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGR)
    else:
        out = cv2.cvtColor(image.pixels, cv2.COLOR_RGB2BGR)

    if not cv2.imwrite(str(path), out):
        raise ValueError(f"Could not write image: {path}")
    return str(path)
