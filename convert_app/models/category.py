import os
from enum import Enum
from typing import Optional


class Category(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tiff", ".avif"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".avi", ".mov", ".wmv", ".flv", ".mkv", ".webm"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac", ".wma"})
DOCUMENT_EXTENSIONS = frozenset({".pdf", ".doc", ".docx", ".txt", ".rtf"})

_MIME_PREFIXES = (
    ("image/", Category.IMAGE),
    ("video/", Category.VIDEO),
    ("audio/", Category.AUDIO),
)

_EXTENSION_SETS = (
    (IMAGE_EXTENSIONS, Category.IMAGE),
    (VIDEO_EXTENSIONS, Category.VIDEO),
    (AUDIO_EXTENSIONS, Category.AUDIO),
    (DOCUMENT_EXTENSIONS, Category.DOCUMENT),
)


def classify(mime_type: Optional[str], filename: Optional[str]) -> Category:
    """Map a MIME type and/or file name to a category.

    The MIME prefix wins; otherwise the extension decides. Never raises:
    anything unrecognised is ``Category.UNKNOWN``.
    """
    mime = (mime_type or "").lower()
    for prefix, category in _MIME_PREFIXES:
        if mime.startswith(prefix):
            return category

    ext = os.path.splitext(filename or "")[1].lower()
    for extensions, category in _EXTENSION_SETS:
        if ext in extensions:
            return category

    return Category.UNKNOWN


class _TargetFormat(str, Enum):
    @classmethod
    def parse(cls, value: Optional[str]):
        """Return the member for a client-supplied format string, or None."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class ImageFormat(_TargetFormat):
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"
    TIFF = "tiff"
    AVIF = "avif"


class VideoFormat(_TargetFormat):
    MP4 = "mp4"
    WEBM = "webm"
    AVI = "avi"
    MOV = "mov"
    MKV = "mkv"
    GIF = "gif"


class AudioFormat(_TargetFormat):
    MP3 = "mp3"
    WAV = "wav"
    OGG = "ogg"
    M4A = "m4a"
    FLAC = "flac"
    AAC = "aac"


class DocumentFormat(_TargetFormat):
    TXT = "txt"
    PDF = "pdf"
    DOCX = "docx"


TARGET_FORMATS = {
    Category.IMAGE: ImageFormat,
    Category.VIDEO: VideoFormat,
    Category.AUDIO: AudioFormat,
    Category.DOCUMENT: DocumentFormat,
}
