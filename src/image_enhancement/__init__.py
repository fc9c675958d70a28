"""
Document image quality assessment and enhancement.

Takes a raw captured photo or scan of a paper document, scores its fitness
for OCR and turns it into a cleaner raster for recognition.

Usage
-----
from image_enhancement import RasterImage, assess, enhance, get_enhancement_profile

image      = RasterImage.from_buffer(rgba_bytes, width, height)
assessment = assess(image)
cleaned    = enhance(image, get_enhancement_profile("invoice"))
"""

from image_enhancement.exceptions import ConfigError, EnhancementError, InvalidBufferError
from image_enhancement.filters import (
    adjust_contrast_brightness,
    denoise,
    sharpen,
    whiten_background,
)
from image_enhancement.geometry import auto_crop, correct_perspective, deskew
from image_enhancement.models import EnhancementOptions, QualityAssessment, RasterImage
from image_enhancement.pipeline import (
    DECISION_TABLE,
    EnhancementPipeline,
    EnhancementResult,
    StageRule,
    decide_stages,
    enhance,
)
from image_enhancement.profiles import get_enhancement_profile, list_profiles
from image_enhancement.quality import QualityAssessor, assess
from image_enhancement.skew import (
    BaseSkewEstimator,
    HoughSkewEstimator,
    ProjectionProfileSkewEstimator,
    RunLengthSkewEstimator,
    get_skew_estimator,
)

__version__ = "1.0.0"

__all__ = [
    'RasterImage',
    'QualityAssessment',
    'EnhancementOptions',
    'EnhancementError',
    'InvalidBufferError',
    'ConfigError',
    'QualityAssessor',
    'assess',
    'deskew',
    'auto_crop',
    'correct_perspective',
    'whiten_background',
    'denoise',
    'sharpen',
    'adjust_contrast_brightness',
    'EnhancementPipeline',
    'EnhancementResult',
    'StageRule',
    'DECISION_TABLE',
    'decide_stages',
    'enhance',
    'get_enhancement_profile',
    'list_profiles',
    'BaseSkewEstimator',
    'RunLengthSkewEstimator',
    'HoughSkewEstimator',
    'ProjectionProfileSkewEstimator',
    'get_skew_estimator',
]
