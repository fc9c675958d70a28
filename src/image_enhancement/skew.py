"""
Skew Angle Estimators
=====================
Swappable strategies that answer one question: how far is the text tilted?

Convention (shared by every estimator and by geometry.deskew):
    positive angle = content tilted clockwise on screen
                     (text lines descend to the right)
    deskew(angle)  = rotate counter-clockwise by angle

Strategies
----------
run_length          Lightweight heuristic used by the quality assessor.
                    Walks every 5th row, finds ink runs longer than 20px and
                    votes atan2(5, dx) wherever ink continues 5 rows below.
                    Cheap, but NOT robust on sparse or non-text content.
hough               Canny edges + standard Hough lines, median of the
                    near-horizontal line angles.
projection_profile  Rotates the ink mask over candidate angles and keeps the
                    one whose row projection has the highest variance
                    (text lines collapse into sharp peaks when level).
"""

import math
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Optional, Type, Union

import cv2
import numpy as np
from loguru import logger

MAX_SKEW = 15.0          # degrees, every estimate is clamped to ±MAX_SKEW
INK_LUMINANCE = 180      # below → "ink"
MIN_SIDE = 3             # px, thinner images report no skew


def clamp_angle(angle: float) -> float:
    return max(-MAX_SKEW, min(MAX_SKEW, angle))


def downscale(img: np.ndarray, max_side: int, interpolation: int = cv2.INTER_LINEAR):
    """
    Shrink img so its longer side is at most max_side.

    Returns None when either side ends up shorter than MIN_SIDE.
    """
    h, w = img.shape[:2]
    scale = min(1.0, max_side / max(h, w))
    if scale < 1.0:
        dsize = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
        img = cv2.resize(img, dsize, interpolation=interpolation)
    if min(img.shape[:2]) < MIN_SIDE:
        return None
    return img


class BaseSkewEstimator(ABC):
    """Interface over "angle estimator"."""

    name = "base"

    @abstractmethod
    def estimate(self, lum: np.ndarray) -> float:
        """
        Args:
            lum: float luminance array of shape (H, W)

        Returns:
            Skew angle in degrees, clamped to [-15, 15]. 0.0 when nothing
            usable is found.
        """


# ─── Run-length vote heuristic ────────────────────────────────────────────────

class RunLengthSkewEstimator(BaseSkewEstimator):
    """
    Vote-histogram approximation of a Hough line detector.

    Only runs closed by a non-ink pixel are considered; a run touching the
    right edge of the row is ignored. Ties go to the angle voted for first.
    """

    name = "run_length"

    ROW_STEP = 5
    MIN_RUN = 20          # run must be strictly longer than this
    SAMPLE_STEP = 10      # px between continuation probes

    def estimate(self, lum: np.ndarray) -> float:
        h, w = lum.shape[:2]
        if h < 3 or w == 0:
            return 0.0

        votes: Counter = Counter()
        ink = lum < INK_LUMINANCE

        for y in range(1, h - 1, self.ROW_STEP):
            next_y = y + self.ROW_STEP
            if next_y >= h:
                break
            for start, length in self._closed_runs(ink[y]):
                if length <= self.MIN_RUN:
                    continue
                probes = np.arange(start, start + length, self.SAMPLE_STEP)
                hits = probes[ink[next_y, probes]]
                for check_x in hits:
                    angle = math.degrees(math.atan2(self.ROW_STEP, int(check_x) - start))
                    votes[math.floor(angle * 2 + 0.5) / 2] += 1

        if not votes:
            return 0.0

        dominant, count = votes.most_common(1)[0]
        logger.debug(f"[Skew] run_length: {len(votes)} buckets, mode={dominant}° ({count} votes)")
        return clamp_angle(float(dominant))

    @staticmethod
    def _closed_runs(row: np.ndarray):
        """Yield (start, length) of ink runs followed by a non-ink pixel."""
        padded = np.concatenate(([False], row, [False])).astype(np.int8)
        edges = np.diff(padded)
        starts = np.flatnonzero(edges == 1)
        ends = np.flatnonzero(edges == -1)      # exclusive
        for start, end in zip(starts, ends):
            if end < row.size:
                yield int(start), int(end - start)


# ─── Hough lines ──────────────────────────────────────────────────────────────

class HoughSkewEstimator(BaseSkewEstimator):
    """
    Estimate rotation using the Hough line transform.
    Conservative: needs at least 5 lines before it reports anything.
    """

    name = "hough"

    MAX_SIDE = 800
    MIN_LINES = 5
    MAX_LINES = 50

    def estimate(self, lum: np.ndarray) -> float:
        if lum.size == 0:
            return 0.0
        gray = np.clip(np.floor(lum + 0.5), 0, 255).astype(np.uint8)

        # Edge detection on downscaled image for speed
        small = downscale(gray, self.MAX_SIDE)
        if small is None:
            return 0.0
        edges = cv2.Canny(small, 50, 150, apertureSize=3)
        lines = cv2.HoughLines(edges, 1, np.pi / 180, threshold=100)
        if lines is None or len(lines) < self.MIN_LINES:
            return 0.0

        angles = []
        for line in lines[:self.MAX_LINES]:
            theta = line[0][1]
            # Normal angle → line angle from horizontal
            angle = np.degrees(theta) - 90
            if abs(angle) < 45:
                angles.append(angle)
        if not angles:
            return 0.0
        # Median is robust against stray lines
        return clamp_angle(float(np.median(angles)))


# ─── Projection profile ───────────────────────────────────────────────────────

class ProjectionProfileSkewEstimator(BaseSkewEstimator):
    """
    Projection-profile variance maximisation.

    Candidates are searched from 0 outwards so an exact tie keeps the
    smallest correction.
    """

    name = "projection_profile"

    MAX_SIDE = 600
    STEP = 0.5

    def estimate(self, lum: np.ndarray) -> float:
        if lum.size == 0:
            return 0.0
        mask = (lum < INK_LUMINANCE).astype(np.uint8) * 255
        if not mask.any():
            return 0.0

        mask = downscale(mask, self.MAX_SIDE, cv2.INTER_AREA)
        if mask is None:
            return 0.0
        h, w = mask.shape
        center = (w / 2.0, h / 2.0)

        steps = int(round(MAX_SKEW / self.STEP))
        candidates = sorted((i * self.STEP for i in range(-steps, steps + 1)), key=abs)

        best_angle, best_score = 0.0, -1.0
        for angle in candidates:
            M = cv2.getRotationMatrix2D(center, angle, 1.0)
            rotated = cv2.warpAffine(mask, M, (w, h), flags=cv2.INTER_NEAREST, borderValue=0)
            score = float(np.var(rotated.sum(axis=1, dtype=np.float64)))
            if score > best_score:
                best_angle, best_score = angle, score

        logger.debug(f"[Skew] projection_profile: best={best_angle}° score={best_score:.0f}")
        return clamp_angle(best_angle)


# ─── Lookup ───────────────────────────────────────────────────────────────────

_ESTIMATORS: Dict[str, Type[BaseSkewEstimator]] = {
    RunLengthSkewEstimator.name: RunLengthSkewEstimator,
    HoughSkewEstimator.name: HoughSkewEstimator,
    ProjectionProfileSkewEstimator.name: ProjectionProfileSkewEstimator,
}

DEFAULT_ESTIMATOR = RunLengthSkewEstimator.name


def get_skew_estimator(name: Optional[str] = None) -> BaseSkewEstimator:
    """
    Return a fresh estimator for the given strategy name.
    Unknown names fall back to the run-length heuristic.
    """
    name = name or DEFAULT_ESTIMATOR
    if name not in _ESTIMATORS:
        logger.warning(
            f"[Skew] Unknown estimator '{name}', falling back to '{DEFAULT_ESTIMATOR}'"
        )
        name = DEFAULT_ESTIMATOR
    return _ESTIMATORS[name]()


def resolve_estimator(estimator: Union[str, BaseSkewEstimator, None]) -> BaseSkewEstimator:
    if isinstance(estimator, BaseSkewEstimator):
        return estimator
    return get_skew_estimator(estimator)


def supported_estimators() -> list:
    return list(_ESTIMATORS.keys())
