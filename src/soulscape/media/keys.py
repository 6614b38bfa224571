"""
Storage key construction.

User supplied file names and folder paths are reduced to the character class
``[A-Za-z0-9._-]`` segment by segment, then joined under the prefix of the
media type the content type classifies as:

    {prefix}/{folder segments...}/{file name}
"""

import re
from enum import Enum
from typing import Mapping, Optional
from uuid import uuid4

from soulscape.core.exceptions import (
    InvalidNameError,
    InvalidTypeError,
    UnsupportedTypeError,
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_TRAVERSAL_SEGMENTS = {".", ".."}


class MediaType(str, Enum):
    """Media categories that partition the bucket."""

    IMAGE = "image"
    VIDEO = "video"


def sanitize_segment(raw: str) -> str:
    """Reduce a single path segment to the safe character class.

    Examples:
        >>> sanitize_segment("my photo (1).png")
        'my_photo_1_.png'
        >>> sanitize_segment("***")
        ''
    """
    safe = _UNSAFE_CHARS.sub("_", raw)
    safe = _UNDERSCORE_RUNS.sub("_", safe)
    return safe.strip("_")


def sanitize_folder(raw: Optional[str]) -> str:
    """Sanitize every ``/``-delimited segment and drop the empty ones."""
    if not raw:
        return ""
    segments = (sanitize_segment(part) for part in raw.replace("\\", "/").split("/"))
    return "/".join(s for s in segments if s and s not in _TRAVERSAL_SEGMENTS)


def base_name(file_name: str) -> str:
    """Last path component of a client file name (either separator)."""
    return file_name.replace("\\", "/").rsplit("/", 1)[-1]


def sanitize_file_name(file_name: str) -> str:
    """Sanitize the base name of ``file_name``.

    Raises:
        InvalidNameError: If nothing usable remains
    """
    safe = sanitize_segment(base_name(file_name or ""))
    if not safe or safe in _TRAVERSAL_SEGMENTS:
        raise InvalidNameError("Invalid file name.")
    return safe


def classify_content_type(content_type: Optional[str]) -> MediaType:
    """Map a MIME type onto the media category that owns it.

    Raises:
        UnsupportedTypeError: For anything but image/* and video/*
    """
    normalized = (content_type or "").lower().split(";")[0].strip()
    if normalized.startswith("image/"):
        return MediaType.IMAGE
    if normalized.startswith("video/"):
        return MediaType.VIDEO
    raise UnsupportedTypeError("Unsupported contentType. Use image/* or video/*.")


def parse_media_type(value: Optional[str]) -> MediaType:
    """Parse the ``type`` listing parameter (case-insensitive)."""
    try:
        return MediaType((value or "").strip().lower())
    except ValueError:
        raise InvalidTypeError("type must be image or video.") from None


def random_file_name(file_name: str) -> str:
    """Replace the stem with a UUID and keep the original extension."""
    safe = sanitize_segment(base_name(file_name or ""))
    identifier = str(uuid4())
    if "." in safe.strip("."):
        extension = sanitize_segment(safe.rsplit(".", 1)[-1])
        if extension:
            return f"{identifier}.{extension}"
    return identifier


def build_storage_key(
    media_type: MediaType,
    file_name: str,
    prefixes: Mapping[str, str],
    folder: Optional[str] = None,
    randomize: bool = False,
) -> str:
    """Compose ``prefix/[folder/]name`` for an upload.

    Args:
        media_type: Category resolved from the content type
        file_name: Client supplied file name
        prefixes: Storage prefix per media type value
        folder: Optional client supplied folder path
        randomize: Use a UUID base name instead of the client name

    Returns:
        Storage key

    Raises:
        InvalidNameError: If the file name sanitizes to nothing
    """
    # The client name is validated even when it gets replaced
    name = sanitize_file_name(file_name)
    if randomize:
        name = random_file_name(file_name)

    parts = [prefixes[media_type.value].strip("/")]
    safe_folder = sanitize_folder(folder)
    if safe_folder:
        parts.append(safe_folder)
    parts.append(name)
    return "/".join(p for p in parts if p)


def public_url(public_host: str, key: str) -> str:
    """Public CDN URL of a storage key.

    >>> public_url("cdn.example.com", "soulscape/image/a.png")
    'https://cdn.example.com/soulscape/image/a.png'
    """
    host = public_host.rstrip("/")
    if "://" not in host:
        host = f"https://{host}"
    return f"{host}/{key}"
