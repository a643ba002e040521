import logging
from pathlib import Path
from typing import Optional

import ffmpeg

from ..core.errors import ConversionError
from ..models.artifact import ConvertedArtifact
from ..models.category import VideoFormat
from .base import Converter
from .transcoder import transcode

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_BITRATE = "1000k"

# (video codec, audio codec) per container
VIDEO_CODECS = {
    VideoFormat.MP4: ("libx264", "aac"),
    VideoFormat.MOV: ("libx264", "aac"),
    VideoFormat.MKV: ("libx264", "aac"),
    VideoFormat.WEBM: ("libvpx", "libvorbis"),
    VideoFormat.AVI: ("mpeg4", "mp3"),
}

GIF_FPS = 10
GIF_WIDTH = 480


def build_video_stream(source: Path, target: Path, fmt: VideoFormat, bitrate: str = DEFAULT_VIDEO_BITRATE):
    """Build the ffmpeg-python stream for a video conversion (not yet run)."""
    options = {"video_bitrate": bitrate, "movflags": "+faststart"}
    stream = ffmpeg.input(str(source))

    if fmt == VideoFormat.GIF:
        # video only: 10 fps, 480px wide, height keeps the aspect ratio
        stream = stream.video.filter("fps", fps=GIF_FPS).filter("scale", GIF_WIDTH, -1)
        options["an"] = None
    else:
        vcodec, acodec = VIDEO_CODECS[fmt]
        options["vcodec"] = vcodec
        options["acodec"] = acodec

    return stream.output(str(target), **options)


class VideoConverter(Converter):
    """Transcodes video through the ffmpeg binary."""

    async def convert(self, source: Path, fmt: str, video_bitrate: Optional[str] = None) -> ConvertedArtifact:
        target_format = VideoFormat.parse(fmt)
        if target_format is None:
            raise ConversionError(f"unsupported video format: {fmt}")

        artifact = self.new_artifact(target_format.value)
        stream = build_video_stream(source, artifact.path, target_format, video_bitrate or DEFAULT_VIDEO_BITRATE)
        await transcode(stream)

        logger.info(f"Converted video {source.name} to {artifact.file_name}")
        return artifact
