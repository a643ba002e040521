"""
Category converters.

Each converter wraps one third-party capability: Pillow for images, the
ffmpeg binary (through ffmpeg-python) for video and audio, and pypdf,
python-docx and WeasyPrint for documents.
"""

from .base import Converter
from .image import ImageConverter
from .video import VideoConverter
from .audio import AudioConverter
from .document import DocumentConverter

__all__ = ['Converter', 'ImageConverter', 'VideoConverter', 'AudioConverter', 'DocumentConverter']
