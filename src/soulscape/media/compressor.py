"""
Size-constrained image re-compression.

An image is decoded once, then re-encoded in its own format with a bounded
search over (quality, scale) until the encoded size fits the byte budget:

- lossy codecs (JPEG, WEBP) first step quality down to a floor, then shrink
  the dimensions and restart from the baseline quality
- lossless codecs (PNG, GIF) always encode at maximum effort, so only the
  dimensions can shrink

When the attempt budget runs out the last candidate is returned as a best
effort result. Callers must treat the final size as informational.
"""

import io
import logging
from dataclasses import dataclass, replace
from enum import Enum

from PIL import Image, ImageOps, UnidentifiedImageError

from soulscape.core.exceptions import DecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchPolicy:
    """Knobs of the compression search."""

    max_attempts: int = 12
    baseline_quality: int = 80
    quality_floor: int = 40
    quality_step: int = 10
    scale_decay: float = 0.85


DEFAULT_POLICY = SearchPolicy()


@dataclass(frozen=True)
class SearchState:
    """Parameters of a single encoding attempt."""

    scale: float
    quality: int


# Multi-picture JPEGs from cameras; only the primary frame is re-encoded
_FORMAT_ALIASES = {"MPO": "JPEG"}


class ImageCodec(Enum):
    """Encoders for the formats that can be re-compressed in place."""

    JPEG = ("JPEG", "image/jpeg", True)
    WEBP = ("WEBP", "image/webp", True)
    PNG = ("PNG", "image/png", False)
    GIF = ("GIF", "image/gif", False)

    def __init__(self, pil_format: str, mime_type: str, has_quality_knob: bool):
        self.pil_format = pil_format
        self.mime_type = mime_type
        self.has_quality_knob = has_quality_knob

    @classmethod
    def for_format(cls, pil_format: str | None) -> "ImageCodec":
        pil_format = _FORMAT_ALIASES.get(pil_format, pil_format)
        for codec in cls:
            if codec.pil_format == pil_format:
                return codec
        raise DecodeError(f"Unsupported image format: {pil_format or 'unknown'}")

    def encode(self, image: Image.Image, quality: int) -> bytes:
        """Encode ``image`` with this codec's size-oriented settings."""
        buffer = io.BytesIO()
        if self is ImageCodec.JPEG:
            if image.mode not in ("L", "RGB", "CMYK"):
                image = image.convert("RGB")
            image.save(buffer, format="JPEG", quality=quality, optimize=True)
        elif self is ImageCodec.WEBP:
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
            image.save(buffer, format="WEBP", quality=quality, method=6)
        elif self is ImageCodec.PNG:
            image.save(buffer, format="PNG", optimize=True, compress_level=9)
        else:
            image.save(buffer, format="GIF", optimize=True)
        return buffer.getvalue()

    def shrink(self, state: SearchState, policy: SearchPolicy) -> SearchState:
        """Parameters of the next attempt after ``state`` missed the target."""
        if self.has_quality_knob and state.quality > policy.quality_floor:
            return replace(state, quality=max(state.quality - policy.quality_step, policy.quality_floor))
        return SearchState(scale=state.scale * policy.scale_decay, quality=policy.baseline_quality)


@dataclass
class CompressionResult:
    """Outcome of a compression search."""

    output_bytes: bytes
    mime_type: str
    original_byte_count: int
    final_byte_count: int
    target_byte_count: int
    attempts: int
    width: int
    height: int

    @property
    def met_target(self) -> bool:
        return self.final_byte_count <= self.target_byte_count


def decode_image(raw: bytes) -> tuple[Image.Image, ImageCodec]:
    """Decode image bytes and resolve the codec of their native format.

    Raises:
        DecodeError: If the bytes are not a decodable image of a supported format
    """
    if not raw:
        raise DecodeError("Empty image payload.")
    try:
        image = Image.open(io.BytesIO(raw))
        codec = ImageCodec.for_format(image.format)
        # Animated images are reduced to their first frame
        image.seek(0)
        image.load()
    except DecodeError:
        raise
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    image = ImageOps.exif_transpose(image)
    return image, codec


def _resize(image: Image.Image, scale: float) -> Image.Image:
    if scale >= 1.0:
        return image
    width = max(1, round(image.width * scale))
    height = max(1, round(image.height * scale))
    return image.resize((width, height), Image.Resampling.LANCZOS)


def compress_image(
    raw: bytes,
    target_bytes: int,
    policy: SearchPolicy = DEFAULT_POLICY,
) -> CompressionResult:
    """Re-encode ``raw`` until it fits in ``target_bytes``.

    Args:
        raw: Encoded image bytes (JPEG, PNG, WEBP or GIF)
        target_bytes: Byte budget for the output
        policy: Search knobs

    Returns:
        CompressionResult; ``met_target`` is False for best effort results

    Raises:
        ValueError: If target_bytes is not positive
        DecodeError: If the bytes are not a supported image
    """
    if target_bytes < 1:
        raise ValueError("target_bytes must be a positive integer")

    image, codec = decode_image(raw)
    original_size = len(raw)

    if original_size <= target_bytes:
        return CompressionResult(
            output_bytes=raw,
            mime_type=codec.mime_type,
            original_byte_count=original_size,
            final_byte_count=original_size,
            target_byte_count=target_bytes,
            attempts=0,
            width=image.width,
            height=image.height,
        )

    state = SearchState(scale=1.0, quality=policy.baseline_quality)
    candidate = raw
    candidate_image = image
    attempts = 0

    while attempts < policy.max_attempts:
        attempts += 1
        candidate_image = _resize(image, state.scale)
        candidate = codec.encode(candidate_image, state.quality)

        logger.debug(
            "Compression attempt",
            extra={
                "attempt": attempts,
                "scale": round(state.scale, 4),
                "quality": state.quality,
                "size_bytes": len(candidate),
                "target_bytes": target_bytes,
            },
        )

        if len(candidate) <= target_bytes:
            break
        state = codec.shrink(state, policy)

    output = candidate
    width, height = candidate_image.width, candidate_image.height
    if len(candidate) > original_size:
        # Never hand back something bigger than what came in
        output = raw
        width, height = image.width, image.height

    result = CompressionResult(
        output_bytes=output,
        mime_type=codec.mime_type,
        original_byte_count=original_size,
        final_byte_count=len(output),
        target_byte_count=target_bytes,
        attempts=attempts,
        width=width,
        height=height,
    )

    logger.info(
        "Image compressed" if result.met_target else "Image compression best effort",
        extra={
            "image_format": codec.pil_format,
            "original_bytes": original_size,
            "final_bytes": result.final_byte_count,
            "target_bytes": target_bytes,
            "attempts": attempts,
        },
    )
    return result
