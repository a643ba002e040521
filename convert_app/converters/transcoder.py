import asyncio
import logging

import ffmpeg

from ..core.errors import ConversionError

logger = logging.getLogger(__name__)


def _stderr_tail(stderr: bytes, lines: int = 5) -> str:
    text = (stderr or b"").decode("utf-8", errors="replace").strip()
    return "\n".join(text.splitlines()[-lines:]) or "ffmpeg exited with an error"


async def transcode(stream) -> None:
    """
    Run a prepared ffmpeg-python output stream to completion.

    ffmpeg runs as a child process in a worker thread; the caller suspends
    until it exits. Success returns normally, any failure raises
    ConversionError with the tail of ffmpeg's stderr. A partially written
    output file is left for the retention sweeper.
    """
    logger.debug(f"Running ffmpeg {' '.join(stream.get_args())}")
    try:
        await asyncio.to_thread(
            ffmpeg.run,
            stream,
            capture_stdout=True,
            capture_stderr=True,
            overwrite_output=True,
        )
    except ffmpeg.Error as e:
        raise ConversionError(_stderr_tail(e.stderr)) from e
    except FileNotFoundError as e:
        raise ConversionError("ffmpeg executable not found") from e
