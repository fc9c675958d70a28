"""
Enhancement Orchestrator
========================
Runs a fixed, quality-aware sequence of stages over one RasterImage.

PIPELINE:
  1. assess the ORIGINAL image once; that baseline drives every auto-trigger
  2. walk DECISION_TABLE in order, each stage feeding the next:

       stage                   runs when
       ─────────────────────   ───────────────────────────────────────────
       deskew                  options.deskew      OR |skew| > 2°
       denoise                 options.denoise     OR noise > 40
       background_whitening    options.background_whitening
       auto_crop               options.auto_crop
       perspective_correction  options.perspective_correction
       contrast_brightness     contrast or brightness adjustment is set
       sharpen (amount 0.3)    options.sharpen     OR sharpness < 50

Deskew and denoise come first because every later stage assumes an upright,
low-noise page. Sharpen is last so it never amplifies rotation or crop edges.

Deterministic: same image + options → byte-identical output. No shared
mutable state, so separate images can be enhanced on separate threads.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from loguru import logger

from image_enhancement import filters, geometry
from image_enhancement.config import default_config, load_config, merge_config
from image_enhancement.models import EnhancementOptions, QualityAssessment, RasterImage
from image_enhancement.quality import QualityAssessor
from image_enhancement.skew import BaseSkewEstimator, resolve_estimator

OptionsLike = Union[EnhancementOptions, Mapping[str, Any], None]

SHARPEN_AMOUNT = 0.3


# ─── Decision table ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StageRule:
    """
    One row of the decision table.

    option: fires the stage from the caller's options
    auto:   fires the stage from the baseline assessment (None = never)
    """
    stage: str
    option: Callable[[EnhancementOptions], bool]
    auto: Optional[Callable[[QualityAssessment, Dict[str, Any]], bool]] = None

    def fires(self, options: EnhancementOptions, assessment: QualityAssessment,
              config: Dict[str, Any]) -> bool:
        if self.option(options):
            return True
        return self.auto is not None and self.auto(assessment, config)


DECISION_TABLE = (
    StageRule(
        "deskew",
        lambda o: o.deskew is True,
        lambda a, c: abs(a.skew_angle) > c['auto_deskew_min_angle'],
    ),
    StageRule(
        "denoise",
        lambda o: o.denoise is True,
        lambda a, c: a.noise > c['auto_denoise_min_noise'],
    ),
    StageRule("background_whitening", lambda o: o.background_whitening is True),
    StageRule("auto_crop", lambda o: o.auto_crop is True),
    StageRule("perspective_correction", lambda o: o.perspective_correction is True),
    StageRule(
        "contrast_brightness",
        lambda o: o.contrast_adjustment is not None or o.brightness_adjustment is not None,
    ),
    StageRule(
        "sharpen",
        lambda o: o.sharpen is True,
        lambda a, c: a.sharpness < c['auto_sharpen_max_sharpness'],
    ),
)


def coerce_options(options: OptionsLike) -> EnhancementOptions:
    if options is None:
        return EnhancementOptions()
    if isinstance(options, EnhancementOptions):
        return options
    return EnhancementOptions.model_validate(dict(options))


def decide_stages(
    options: OptionsLike,
    assessment: QualityAssessment,
    config: Optional[Dict[str, Any]] = None,
    rules: Sequence[StageRule] = DECISION_TABLE,
) -> List[str]:
    """Ordered names of the stages that will run."""
    options = coerce_options(options)
    config = config or default_config()
    return [rule.stage for rule in rules if rule.fires(options, assessment, config)]


# ─── Orchestrator ─────────────────────────────────────────────────────────────

@dataclass
class EnhancementResult:
    image: RasterImage
    assessment: QualityAssessment
    applied: List[str] = field(default_factory=list)


class EnhancementPipeline:
    """
    Quality-aware document enhancement.

    Usage
    -----
        pipeline = EnhancementPipeline()
        result   = pipeline.run(image, get_enhancement_profile("invoice"))
        ocr_in   = result.image
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[Dict[str, Any]] = None,
        rules: Sequence[StageRule] = DECISION_TABLE,
        skew_estimator: Union[str, BaseSkewEstimator, None] = None,
    ):
        if config is not None:
            self.config = merge_config(config)
        else:
            self.config = load_config(config_path)

        self.skew_estimator = resolve_estimator(skew_estimator or self.config['skew_estimator'])
        self.assessor = QualityAssessor(self.skew_estimator)
        self.rules = tuple(rules)

        self._stages = {
            "deskew": self._deskew,
            "denoise": lambda img, o, a: filters.denoise(img),
            "background_whitening": lambda img, o, a: filters.whiten_background(img),
            "auto_crop": lambda img, o, a: geometry.auto_crop(img),
            "perspective_correction": self._correct_perspective,
            "contrast_brightness": self._adjust,
            "sharpen": self._sharpen,
        }
        unknown = [r.stage for r in self.rules if r.stage not in self._stages]
        if unknown:
            raise ValueError(f"Decision table names unknown stages: {unknown}")

        logger.debug(
            f"[Pipeline] initialized (estimator={self.skew_estimator.name}, "
            f"{len(self.rules)} rules)"
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def run(self, image: RasterImage, options: OptionsLike = None) -> EnhancementResult:
        """
        Assess once, then apply every stage the decision table selects.

        Raises:
            InvalidBufferError: malformed input buffer (nothing is applied)
        """
        image.validate()
        options = coerce_options(options)
        assessment = self.assessor.assess(image)

        stages = decide_stages(options, assessment, self.config, self.rules)
        logger.info(
            f"[Pipeline] score={assessment.overall_score} → "
            f"stages: {', '.join(stages) if stages else 'none'}"
        )

        current = image.copy()
        for stage in stages:
            current = self._stages[stage](current, options, assessment)
            logger.debug(f"[Pipeline] {stage}: {current.width}x{current.height}")

        return EnhancementResult(image=current, assessment=assessment, applied=stages)

    def enhance(self, image: RasterImage, options: OptionsLike = None) -> RasterImage:
        return self.run(image, options).image

    # ── Stages ────────────────────────────────────────────────────────────────

    def _deskew(self, img: RasterImage, options: EnhancementOptions,
                assessment: QualityAssessment) -> RasterImage:
        # Re-estimated on img: the assessment only carries the rounded angle
        return geometry.deskew(img, skew_estimator=self.skew_estimator)

    def _correct_perspective(self, img: RasterImage, options: EnhancementOptions,
                             assessment: QualityAssessment) -> RasterImage:
        return geometry.correct_perspective(img, skew_estimator=self.skew_estimator)

    def _adjust(self, img: RasterImage, options: EnhancementOptions,
                assessment: QualityAssessment) -> RasterImage:
        return filters.adjust_contrast_brightness(
            img,
            options.contrast_adjustment or 0,
            options.brightness_adjustment or 0,
        )

    def _sharpen(self, img: RasterImage, options: EnhancementOptions,
                 assessment: QualityAssessment) -> RasterImage:
        return filters.sharpen(img, SHARPEN_AMOUNT)


@lru_cache(maxsize=1)
def default_pipeline() -> EnhancementPipeline:
    return EnhancementPipeline()


def enhance(image: RasterImage, options: OptionsLike = None) -> RasterImage:
    """Enhance with the default pipeline."""
    return default_pipeline().enhance(image, options)
