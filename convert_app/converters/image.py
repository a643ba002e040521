import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.errors import ConversionError
from ..models.artifact import ConvertedArtifact
from ..models.category import ImageFormat
from .base import Converter

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 90

# Pillow encoder name per target format
PIL_FORMATS = {
    ImageFormat.JPG: "JPEG",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.GIF: "GIF",
    ImageFormat.BMP: "BMP",
    ImageFormat.TIFF: "TIFF",
    ImageFormat.AVIF: "AVIF",
}


def fit_inside(size: Tuple[int, int], width: Optional[int], height: Optional[int]) -> Tuple[int, int]:
    """
    Compute the size of an image scaled to fit inside a bounding box.

    Aspect ratio is preserved and nothing is cropped. When only one side of
    the box is given the other follows from the ratio.

    Args:
        size: Current (width, height).
        width: Box width, or None.
        height: Box height, or None.

    Returns:
        The new (width, height), each at least 1 pixel.
    """
    w, h = size
    if width and height:
        scale = min(width / w, height / h)
    elif width:
        scale = width / w
    elif height:
        scale = height / h
    else:
        return size
    return max(1, round(w * scale)), max(1, round(h * scale))


def _flatten(img: Image.Image) -> Image.Image:
    """Drop alpha onto a white background for encoders without transparency."""
    if img.mode in ("RGB", "L"):
        return img
    if img.mode == "P":
        img = img.convert("RGBA")
    if "A" in img.mode:
        bg = Image.new("RGB", img.size, (255, 255, 255))
        bg.paste(img, mask=img.split()[-1])
        return bg
    return img.convert("RGB")


def _save_options(fmt: ImageFormat, quality: int) -> dict:
    if fmt in (ImageFormat.JPG, ImageFormat.JPEG):
        return {"quality": quality, "optimize": True}
    if fmt == ImageFormat.PNG:
        return {"optimize": True}
    if fmt == ImageFormat.WEBP:
        return {"quality": quality, "method": 4}
    if fmt == ImageFormat.TIFF:
        return {"compression": "jpeg", "quality": quality}
    if fmt == ImageFormat.AVIF:
        return {"quality": quality}
    # gif and bmp take no quality setting
    return {}


def encode_image(
    source: Path,
    target: Path,
    fmt: ImageFormat,
    quality: int = DEFAULT_QUALITY,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> None:
    '''Decodes, optionally resizes, and re-encodes an image with Pillow'''
    with Image.open(source) as img:
        img.load()
        if width or height:
            new_size = fit_inside(img.size, width, height)
            if new_size != img.size:
                logger.debug(f"Resizing {source.name}: {img.size[0]}x{img.size[1]} -> {new_size[0]}x{new_size[1]}")
                img = img.resize(new_size, Image.Resampling.LANCZOS)

        if fmt in (ImageFormat.JPG, ImageFormat.JPEG, ImageFormat.TIFF):
            img = _flatten(img)
        elif img.mode not in ("RGB", "RGBA", "L", "LA", "P") or (fmt == ImageFormat.BMP and img.mode == "LA"):
            img = img.convert("RGBA")

        img.save(target, format=PIL_FORMATS[fmt], **_save_options(fmt, quality))


class ImageConverter(Converter):
    """Re-encodes and resizes images through Pillow."""

    async def convert(
        self,
        source: Path,
        fmt: str,
        quality: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> ConvertedArtifact:
        target_format = ImageFormat.parse(fmt)
        if target_format is None:
            raise ConversionError(f"unsupported image format: {fmt}")

        artifact = self.new_artifact(target_format.value)
        try:
            await asyncio.to_thread(
                encode_image,
                source,
                artifact.path,
                target_format,
                quality or DEFAULT_QUALITY,
                width,
                height,
            )
        except (UnidentifiedImageError, OSError, ValueError, KeyError) as e:
            raise ConversionError(f"image conversion failed: {e}") from e

        logger.info(f"Converted image {source.name} to {artifact.file_name}")
        return artifact
