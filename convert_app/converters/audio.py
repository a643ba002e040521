import logging
from pathlib import Path
from typing import Optional

import ffmpeg

from ..core.errors import ConversionError
from ..models.artifact import ConvertedArtifact
from ..models.category import AudioFormat
from .base import Converter
from .transcoder import transcode

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_BITRATE = "192k"

AUDIO_CODECS = {
    AudioFormat.MP3: "libmp3lame",
    AudioFormat.WAV: "pcm_s16le",
    AudioFormat.OGG: "libvorbis",
    AudioFormat.M4A: "aac",
    AudioFormat.AAC: "aac",
    AudioFormat.FLAC: "flac",
}


def build_audio_stream(source: Path, target: Path, fmt: AudioFormat, bitrate: str = DEFAULT_AUDIO_BITRATE):
    """Build the ffmpeg-python stream for an audio conversion (not yet run)."""
    return ffmpeg.input(str(source)).output(
        str(target),
        acodec=AUDIO_CODECS[fmt],
        audio_bitrate=bitrate,
    )


class AudioConverter(Converter):
    """Transcodes audio through the ffmpeg binary."""

    async def convert(self, source: Path, fmt: str, audio_bitrate: Optional[str] = None) -> ConvertedArtifact:
        target_format = AudioFormat.parse(fmt)
        if target_format is None:
            raise ConversionError(f"unsupported audio format: {fmt}")

        artifact = self.new_artifact(target_format.value)
        stream = build_audio_stream(source, artifact.path, target_format, audio_bitrate or DEFAULT_AUDIO_BITRATE)
        await transcode(stream)

        logger.info(f"Converted audio {source.name} to {artifact.file_name}")
        return artifact
