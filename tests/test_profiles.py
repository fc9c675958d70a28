"""
Tests for document-type enhancement profiles
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pydantic import ValidationError

from image_enhancement.models import EnhancementOptions
from image_enhancement.profiles import (
    DEFAULT_PROFILE,
    PROFILES,
    get_enhancement_profile,
    list_profiles,
)


def test_all_document_types_present():
    assert set(list_profiles()) == {
        "invoice", "receipt", "form", "handwritten", "id_document", "default",
    }


@pytest.mark.parametrize("document_type", list(PROFILES))
def test_every_profile_crops(document_type):
    assert get_enhancement_profile(document_type).auto_crop is True


def test_invoice():
    profile = get_enhancement_profile("invoice")
    assert profile == EnhancementOptions(
        auto_crop=True, background_whitening=True, deskew=True,
        sharpen=True, contrast_adjustment=10,
    )


def test_receipt():
    profile = get_enhancement_profile("receipt")
    assert profile.denoise is True
    assert profile.contrast_adjustment == 20
    assert profile.sharpen is None


def test_handwritten_disables_sharpen():
    profile = get_enhancement_profile("handwritten")
    assert profile.sharpen is False
    assert profile.contrast_adjustment == 15
    assert profile.brightness_adjustment == 5


def test_form_keeps_background():
    assert get_enhancement_profile("form").background_whitening is False


def test_id_document_uses_perspective():
    profile = get_enhancement_profile("id_document")
    assert profile.perspective_correction is True
    assert profile.deskew is None


@pytest.mark.parametrize("document_type", ["passport", "", "Invoice", "INVOICE "])
def test_unknown_type_falls_back_to_default(document_type):
    assert get_enhancement_profile(document_type) == PROFILES[DEFAULT_PROFILE]


def test_profiles_are_read_only():
    with pytest.raises(TypeError):
        PROFILES["custom"] = EnhancementOptions()
    with pytest.raises(ValidationError):
        get_enhancement_profile("invoice").sharpen = False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
