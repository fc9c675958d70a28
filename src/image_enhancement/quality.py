"""
Quality Assessor
================
Scores a captured page for OCR fitness and says what to fix.

Metrics (all on luminance, 0-100):
    brightness  100 - |mean - 128| * 0.78
    contrast    population std-dev * 1.5
    sharpness   mean |4-neighbour Laplacian| over interior pixels * 2
    noise       mean variance of 3x3 blocks / 10   (higher = noisier)
    skew        delegated to a skew estimator (see skew.py)

Overall score weights:
    brightness 0.20, contrast 0.25, sharpness 0.30,
    (100 - noise) 0.15, max(0, 100 - |skew| * 5) 0.10

The assessor never raises for an empty image; it returns the
"Unable to analyze image" assessment instead. A malformed buffer is a
caller bug and raises InvalidBufferError.
"""

from typing import List, Optional, Union

import numpy as np
from loguru import logger

from image_enhancement.luminance import luminance, round_half_up
from image_enhancement.models import QualityAssessment, RasterImage
from image_enhancement.skew import BaseSkewEstimator, resolve_estimator


class QualityAssessor:
    """
    Computes a QualityAssessment for a RasterImage.
    Stateless apart from the chosen skew estimator; safe to share across threads.
    """

    # Recommendation thresholds
    DARK_MEAN = 80          # mean luminance below → too dark
    OVEREXPOSE_MEAN = 200   # mean luminance above → overexposed
    LOW_CONTRAST = 30       # contrast score below → washed out
    BLURRY = 40             # sharpness score below → blurry
    NOISY = 50              # noise score above → noisy
    TILTED = 5.0            # |skew| above → tilted
    ACCEPTABLE = 60         # overall score at or above → acceptable

    NOISE_WINDOW = 3

    def __init__(self, skew_estimator: Union[str, BaseSkewEstimator, None] = None):
        self.skew_estimator = resolve_estimator(skew_estimator)

    # ── Public API ────────────────────────────────────────────────────────────

    def assess(self, image: RasterImage) -> QualityAssessment:
        image.validate()
        if image.is_empty:
            logger.warning("[Assessor] Empty image, returning default assessment")
            return QualityAssessment.unreadable()

        lum = luminance(image.pixels)
        recommendations: List[str] = []

        avg = float(lum.mean())
        brightness = self.brightness_score(avg)
        if avg < self.DARK_MEAN:
            recommendations.append("Image is too dark - increase lighting")
        if avg > self.OVEREXPOSE_MEAN:
            recommendations.append("Image is overexposed - reduce lighting")

        contrast = self.contrast_score(lum, avg)
        if contrast < self.LOW_CONTRAST:
            recommendations.append("Low contrast detected - document may be washed out")

        sharpness = self.sharpness_score(lum)
        if sharpness < self.BLURRY:
            recommendations.append("Image appears blurry - ensure camera is focused")

        noise = self.noise_score(lum)
        if noise > self.NOISY:
            recommendations.append("High noise detected - improve lighting conditions")

        skew = self.skew_estimator.estimate(lum)
        if abs(skew) > self.TILTED:
            recommendations.append(
                f"Document appears tilted {skew:.1f}° - straighten before capture"
            )

        overall = round_half_up(
            brightness * 0.20
            + contrast * 0.25
            + sharpness * 0.30
            + (100 - noise) * 0.15
            + max(0.0, 100 - abs(skew) * 5) * 0.10
        )

        logger.debug(
            f"[Assessor] mean={avg:.0f} brightness={brightness:.1f} "
            f"contrast={contrast:.1f} sharpness={sharpness:.1f} "
            f"noise={noise:.1f} skew={skew:.1f}°"
        )

        assessment = QualityAssessment(
            overall_score=overall,
            brightness=round_half_up(brightness),
            contrast=round_half_up(contrast),
            sharpness=round_half_up(sharpness),
            noise=round_half_up(noise),
            skew_angle=round_half_up(skew * 10) / 10,
            is_acceptable=overall >= self.ACCEPTABLE,
            recommendations=tuple(recommendations),
        )
        logger.info(
            f"[Assessor] score={assessment.overall_score} "
            f"acceptable={assessment.is_acceptable} "
            f"size={image.width}x{image.height}"
        )
        return assessment

    def estimate_skew(self, image: RasterImage) -> float:
        image.validate()
        if image.is_empty:
            return 0.0
        return self.skew_estimator.estimate(luminance(image.pixels))

    # ── Metrics ───────────────────────────────────────────────────────────────

    @staticmethod
    def brightness_score(avg: float) -> float:
        return min(100.0, max(0.0, 100 - abs(avg - 128) * 0.78))

    @staticmethod
    def contrast_score(lum: np.ndarray, avg: Optional[float] = None) -> float:
        if avg is None:
            avg = float(lum.mean())
        std = float(np.sqrt(np.mean((lum - avg) ** 2)))
        return min(100.0, std * 1.5)

    @staticmethod
    def sharpness_score(lum: np.ndarray) -> float:
        """Mean absolute 4-neighbour Laplacian; the 1px border is excluded."""
        h, w = lum.shape
        if h < 3 or w < 3:
            return 0.0
        center = lum[1:-1, 1:-1]
        lap = (
            -4 * center
            + lum[:-2, 1:-1] + lum[2:, 1:-1]
            + lum[1:-1, :-2] + lum[1:-1, 2:]
        )
        return min(100.0, float(np.abs(lap).mean()) * 2)

    @classmethod
    def noise_score(cls, lum: np.ndarray) -> float:
        """
        Mean luminance variance of non-overlapping 3x3 blocks.
        Blocks start at 0 and step by 3 while start < dim - 3.
        """
        n = cls.NOISE_WINDOW
        h, w = lum.shape
        rows = len(range(0, h - n, n))
        cols = len(range(0, w - n, n))
        if rows == 0 or cols == 0:
            return 0.0
        blocks = lum[:rows * n, :cols * n].reshape(rows, n, cols, n)
        variances = blocks.var(axis=(1, 3))
        return min(100.0, float(variances.mean()) / 10)


_default_assessor = QualityAssessor()


def assess(
    image: RasterImage,
    skew_estimator: Union[str, BaseSkewEstimator, None] = None,
) -> QualityAssessment:
    """Assess image quality with the default (or given) skew estimator."""
    if skew_estimator is None:
        return _default_assessor.assess(image)
    return QualityAssessor(skew_estimator).assess(image)
