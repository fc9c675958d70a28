"""
Data objects passed between pipeline stages.

RasterImage       - owned pixel buffer, validated on entry to every stage
QualityAssessment - snapshot of one image's quality metrics
EnhancementOptions - per-capture toggles; None means "let the pipeline decide"

No pixel logic lives here apart from buffer validation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from image_enhancement.exceptions import InvalidBufferError

SUPPORTED_CHANNELS = (3, 4)


# ─── Raster ───────────────────────────────────────────────────────────────────

@dataclass
class RasterImage:
    """
    Simple data object: 8-bit RGB or RGBA pixels.
    pixels has shape (H, W, C), dtype uint8, channel order R, G, B[, A].
    """
    pixels: np.ndarray

    @classmethod
    def from_buffer(
        cls,
        buffer: Union[bytes, bytearray, memoryview, np.ndarray],
        width: int,
        height: int,
        channels: int = 4,
    ) -> "RasterImage":
        """
        Wrap a flat interleaved buffer (as handed over by the capture UI).

        Raises:
            InvalidBufferError: if the buffer length is not width*height*channels
        """
        if width < 0 or height < 0:
            raise InvalidBufferError(f"Negative dimensions: {width}x{height}")
        if channels not in SUPPORTED_CHANNELS:
            raise InvalidBufferError(f"Unsupported channel count: {channels}")

        flat = np.frombuffer(bytes(buffer), dtype=np.uint8) \
            if not isinstance(buffer, np.ndarray) else buffer.reshape(-1)
        expected = width * height * channels
        if flat.size != expected:
            raise InvalidBufferError(
                f"Buffer length {flat.size} != {width}x{height}x{channels} ({expected})"
            )
        if flat.dtype != np.uint8:
            raise InvalidBufferError(f"Buffer dtype must be uint8, got {flat.dtype}")

        return cls(pixels=flat.reshape(height, width, channels).copy())

    @classmethod
    def blank(cls, width: int, height: int, value: int = 255, channels: int = 4) -> "RasterImage":
        """Uniform image; alpha (if any) is opaque."""
        pixels = np.full((height, width, channels), value, dtype=np.uint8)
        if channels == 4:
            pixels[..., 3] = 255
        return cls(pixels=pixels)

    # ── Shape ─────────────────────────────────────────────────────────────────

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    # ── Validation / copies ───────────────────────────────────────────────────

    def validate(self) -> "RasterImage":
        """
        Entry precondition for every stage.

        Raises:
            InvalidBufferError: wrong type, dtype, rank or channel count
        """
        px = self.pixels
        if not isinstance(px, np.ndarray):
            raise InvalidBufferError(f"pixels must be a numpy array, got {type(px).__name__}")
        if px.ndim != 3:
            raise InvalidBufferError(f"pixels must have shape (H, W, C), got {px.shape}")
        if px.dtype != np.uint8:
            raise InvalidBufferError(f"pixels must be uint8, got {px.dtype}")
        c = px.shape[2]
        if c not in SUPPORTED_CHANNELS:
            raise InvalidBufferError(f"Unsupported channel count: {c}")
        return self

    def copy(self) -> "RasterImage":
        return RasterImage(pixels=self.pixels.copy())

    def to_bytes(self) -> bytes:
        return np.ascontiguousarray(self.pixels).tobytes()


# ─── Quality assessment ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class QualityAssessment:
    """Measured quality of one image at one point in time."""
    overall_score: int = 0          # 0-100
    brightness: int = 0             # 0-100
    contrast: int = 0               # 0-100
    sharpness: int = 0              # 0-100
    noise: int = 100                # 0-100, higher = noisier
    skew_angle: float = 0.0         # degrees, [-15, 15]
    is_acceptable: bool = False     # overall_score >= 60
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def unreadable(cls) -> "QualityAssessment":
        return cls(recommendations=("Unable to analyze image",))

    def to_dict(self) -> dict:
        d = asdict(self)
        d["recommendations"] = list(self.recommendations)
        return d


# ─── Options ──────────────────────────────────────────────────────────────────

class EnhancementOptions(BaseModel):
    """
    Per-capture enhancement toggles.

    Every field is optional. None means "decide from measured quality",
    not False. Accepts the capture UI's camelCase keys as well.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    auto_crop: Optional[bool] = Field(None, alias="autoCrop")
    perspective_correction: Optional[bool] = Field(None, alias="perspectiveCorrection")
    background_whitening: Optional[bool] = Field(None, alias="backgroundWhitening")
    deskew: Optional[bool] = Field(None)
    denoise: Optional[bool] = Field(None)
    sharpen: Optional[bool] = Field(None)
    contrast_adjustment: Optional[int] = Field(
        None, alias="contrastAdjustment", ge=-100, le=100,
        description="Contrast offset, -100..100",
    )
    brightness_adjustment: Optional[int] = Field(
        None, alias="brightnessAdjustment", ge=-100, le=100,
        description="Brightness offset, -100..100",
    )
