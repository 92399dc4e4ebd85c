"""Wrappers around the ffprobe and ffmpeg command-line tools."""
import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".process"


class MediaProcessingError(RuntimeError):
    pass


@dataclass(frozen=True)
class VideoDimensions:
    width: int
    height: int


class MediaTool(Protocol):
    def probe(self, path: str) -> VideoDimensions: ...

    def remux_faststart(self, path: str) -> str: ...


def _stderr_text(e: subprocess.CalledProcessError) -> str:
    if not e.stderr:
        return str(e)
    if isinstance(e.stderr, bytes):
        return e.stderr.decode(errors="replace")
    return e.stderr


class FFmpegMediaTool:
    def __init__(self, ffprobe_bin: str = "ffprobe", ffmpeg_bin: str = "ffmpeg"):
        self.ffprobe_bin = ffprobe_bin
        self.ffmpeg_bin = ffmpeg_bin

    def probe(self, path: str) -> VideoDimensions:
        """Width and height of the first stream reported by ffprobe."""
        try:
            result = subprocess.run(
                [
                    self.ffprobe_bin,
                    "-v",
                    "error",
                    "-print_format",
                    "json",
                    "-show_streams",
                    path,
                ],
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"ffprobe error: {_stderr_text(e)}")
            raise MediaProcessingError(f"ffprobe failed for {path}") from e
        except OSError as e:
            raise MediaProcessingError(f"could not run {self.ffprobe_bin}: {e}") from e

        try:
            metadata = json.loads(result.stdout)
        except (json.JSONDecodeError, TypeError) as e:
            raise MediaProcessingError(f"malformed ffprobe output for {path}") from e

        streams = metadata.get("streams") if isinstance(metadata, dict) else None
        if not streams:
            raise MediaProcessingError(f"no streams found in {path}")

        first = streams[0]
        try:
            return VideoDimensions(width=int(first["width"]), height=int(first["height"]))
        except (KeyError, TypeError, ValueError) as e:
            raise MediaProcessingError(f"first stream of {path} has no dimensions") from e

    def remux_faststart(self, path: str) -> str:
        """
        Copy streams into a new mp4 with the moov atom up front.

        Writes to ``<path>.process``; the caller owns that file.
        """
        output_path = f"{path}{PROCESSED_SUFFIX}"
        try:
            subprocess.run(
                [
                    self.ffmpeg_bin,
                    "-i",
                    path,
                    "-c",
                    "copy",
                    "-movflags",
                    "faststart",
                    "-f",
                    "mp4",
                    output_path,
                ],
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"ffmpeg error: {_stderr_text(e)}")
            raise MediaProcessingError(f"ffmpeg faststart failed for {path}") from e
        except OSError as e:
            raise MediaProcessingError(f"could not run {self.ffmpeg_bin}: {e}") from e
        return output_path


_media_tool = FFmpegMediaTool()


def get_media_tool() -> MediaTool:
    return _media_tool
