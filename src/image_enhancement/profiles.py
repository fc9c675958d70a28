"""
Enhancement Profiles
====================
Static per-document-type defaults for the capture UI.

    invoice      crop, whiten, deskew, sharpen, contrast +10
    receipt      crop, whiten, deskew, denoise, contrast +20
    form         crop, deskew, sharpen, no whitening
    handwritten  crop, deskew, denoise, contrast +15, brightness +5,
                 sharpen OFF (over-sharpening distorts strokes)
    id_document  crop, perspective, sharpen, contrast +10
    default      crop, deskew, whiten, sharpen

Lookup is by exact key; anything else gets `default`.
"""

from types import MappingProxyType
from typing import List, Mapping

from loguru import logger

from image_enhancement.models import EnhancementOptions

DEFAULT_PROFILE = "default"

PROFILES: Mapping[str, EnhancementOptions] = MappingProxyType({
    "invoice": EnhancementOptions(
        auto_crop=True,
        background_whitening=True,
        deskew=True,
        sharpen=True,
        contrast_adjustment=10,
    ),
    "receipt": EnhancementOptions(
        auto_crop=True,
        background_whitening=True,
        deskew=True,
        denoise=True,
        contrast_adjustment=20,
    ),
    "form": EnhancementOptions(
        auto_crop=True,
        deskew=True,
        sharpen=True,
        background_whitening=False,
    ),
    "handwritten": EnhancementOptions(
        auto_crop=True,
        deskew=True,
        denoise=True,
        sharpen=False,
        contrast_adjustment=15,
        brightness_adjustment=5,
    ),
    "id_document": EnhancementOptions(
        auto_crop=True,
        perspective_correction=True,
        sharpen=True,
        contrast_adjustment=10,
    ),
    DEFAULT_PROFILE: EnhancementOptions(
        auto_crop=True,
        deskew=True,
        background_whitening=True,
        sharpen=True,
    ),
})


def get_enhancement_profile(document_type: str) -> EnhancementOptions:
    """
    Return the options for a document type.

    Parameters
    ----------
    document_type : str
        One of: 'invoice', 'receipt', 'form', 'handwritten',
                'id_document', 'default'
    """
    if document_type not in PROFILES:
        logger.debug(
            f"[Profiles] Unknown document type '{document_type}', "
            f"falling back to '{DEFAULT_PROFILE}'"
        )
        return PROFILES[DEFAULT_PROFILE]
    return PROFILES[document_type]


def list_profiles() -> List[str]:
    """List of all supported document type strings."""
    return list(PROFILES.keys())
