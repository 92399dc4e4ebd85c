"""Content-type checks for uploaded files."""
import re
from typing import Optional

THUMBNAIL_MIME_TYPES = ("image/png", "image/jpeg")
VIDEO_MIME_TYPES = ("video/mp4",)

# type "/" subtype, both RFC 2045 tokens
_MEDIA_TYPE_RE = re.compile(r"^[!#$%&'*+.^_`|~0-9a-z-]+/[!#$%&'*+.^_`|~0-9a-z-]+$")


class UnsupportedMediaTypeError(ValueError):
    pass


def parse_media_type(content_type: Optional[str]) -> str:
    """Return the lower-cased base type of a Content-Type value, parameters dropped."""
    base = (content_type or "").split(";")[0].strip().lower()
    if not base:
        raise UnsupportedMediaTypeError("no media type")
    if not _MEDIA_TYPE_RE.match(base):
        raise UnsupportedMediaTypeError(f"could not parse media type {content_type!r}")
    return base


def validate_thumbnail_type(content_type: Optional[str]) -> str:
    media_type = parse_media_type(content_type)
    if media_type not in THUMBNAIL_MIME_TYPES:
        raise UnsupportedMediaTypeError(f"unsupported file type {media_type}")
    return media_type


def validate_video_type(content_type: Optional[str]) -> str:
    media_type = parse_media_type(content_type)
    if media_type not in VIDEO_MIME_TYPES:
        raise UnsupportedMediaTypeError(f"unsupported media type {media_type}")
    return media_type


def extension_for(media_type: str) -> str:
    """Subtype of a validated media type, with jpeg shortened to jpg."""
    ext = media_type.split("/", 1)[1]
    if ext == "jpeg":
        ext = "jpg"
    return ext
