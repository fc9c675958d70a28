"""
Tests for RasterImage, QualityAssessment and EnhancementOptions
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
from pydantic import ValidationError

from image_enhancement.exceptions import InvalidBufferError
from image_enhancement.models import EnhancementOptions, QualityAssessment, RasterImage


def test_from_buffer_roundtrip():
    """A well-formed flat buffer keeps its bytes and shape"""
    buf = bytes(range(24))          # 3 x 2 x 4
    img = RasterImage.from_buffer(buf, width=3, height=2, channels=4)

    assert (img.width, img.height, img.channels) == (3, 2, 4)
    assert img.has_alpha
    assert img.to_bytes() == buf


def test_from_buffer_rgb():
    img = RasterImage.from_buffer(bytearray(2 * 2 * 3), width=2, height=2, channels=3)
    assert img.channels == 3
    assert not img.has_alpha


def test_from_buffer_length_mismatch():
    """Buffer shorter than width*height*channels is rejected, not read past"""
    with pytest.raises(InvalidBufferError):
        RasterImage.from_buffer(bytes(10), width=3, height=2, channels=4)


def test_from_buffer_bad_channels():
    with pytest.raises(InvalidBufferError):
        RasterImage.from_buffer(bytes(8), width=2, height=2, channels=2)


def test_invalid_buffer_is_value_error():
    with pytest.raises(ValueError):
        RasterImage.from_buffer(bytes(1), width=5, height=5)


@pytest.mark.parametrize("pixels", [
    np.zeros((4, 4), dtype=np.uint8),             # missing channel axis
    np.zeros((4, 4, 2), dtype=np.uint8),          # unsupported channels
    np.zeros((4, 4, 4), dtype=np.float32),        # wrong dtype
])
def test_validate_rejects_malformed(pixels):
    with pytest.raises(InvalidBufferError):
        RasterImage(pixels=pixels).validate()


def test_validate_rejects_non_array():
    with pytest.raises(InvalidBufferError):
        RasterImage(pixels=[[[0, 0, 0]]]).validate()


def test_strided_view_is_valid():
    """A non-contiguous slice still serialises to exactly W x H x C bytes"""
    base = RasterImage.blank(10, 6, value=7)
    view = RasterImage(pixels=base.pixels[:, ::2])

    assert view.validate() is view
    assert (view.width, view.height) == (5, 6)
    assert len(view.to_bytes()) == 5 * 6 * 4
    assert RasterImage.from_buffer(view.to_bytes(), 5, 6).to_bytes() == view.to_bytes()


def test_copy_is_independent():
    img = RasterImage.blank(4, 4, value=10)
    dup = img.copy()
    dup.pixels[0, 0, 0] = 99
    assert img.pixels[0, 0, 0] == 10


def test_blank_alpha_opaque():
    img = RasterImage.blank(2, 2, value=0)
    assert np.all(img.pixels[..., 3] == 255)
    assert np.all(img.pixels[..., :3] == 0)


def test_empty_image():
    img = RasterImage(pixels=np.zeros((0, 5, 4), dtype=np.uint8))
    assert img.is_empty
    img.validate()


def test_unreadable_assessment():
    a = QualityAssessment.unreadable()
    assert a.overall_score == 0
    assert a.noise == 100
    assert a.is_acceptable is False
    assert a.recommendations == ("Unable to analyze image",)


def test_assessment_to_dict():
    d = QualityAssessment(overall_score=70, recommendations=("x",)).to_dict()
    assert d["overall_score"] == 70
    assert d["recommendations"] == ["x"]


def test_options_default_unset():
    """Unset means 'let the pipeline decide', not False"""
    opts = EnhancementOptions()
    assert opts.deskew is None
    assert opts.sharpen is None
    assert opts.contrast_adjustment is None


def test_options_accept_camel_case():
    opts = EnhancementOptions.model_validate({"autoCrop": True, "contrastAdjustment": 15})
    assert opts.auto_crop is True
    assert opts.contrast_adjustment == 15


def test_options_range_validation():
    with pytest.raises(ValidationError):
        EnhancementOptions(contrast_adjustment=101)
    with pytest.raises(ValidationError):
        EnhancementOptions(brightness_adjustment=-101)


def test_options_reject_unknown_field():
    with pytest.raises(ValidationError):
        EnhancementOptions.model_validate({"grayscale": True})


def test_options_immutable():
    opts = EnhancementOptions(sharpen=True)
    with pytest.raises(ValidationError):
        opts.sharpen = False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
