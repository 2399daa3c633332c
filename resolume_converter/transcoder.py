"""
ffmpeg / ffprobe wrapper.

    audio:  ffmpeg -i in.mp4 -vn -acodec copy out.m4a
    video:  ffmpeg -i in.mp4 -an -vcodec copy out.mov
    meta:   ffprobe -show_format -show_streams -output_format json -i in.mp4

Outputs that already exist with a non-zero size are left alone, so a
re-run only converts what is missing.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from .cancel import CancelToken
from .config import DEFAULT_AUDIO_EXT, DEFAULT_VIDEO_EXT
from .errors import AudioTitleNotFoundError, TranscodeError

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.2


def output_ready(path: Path) -> bool:
    return path.exists() and path.stat().st_size > 0


class Transcoder:
    def __init__(
        self,
        cancel: Optional[CancelToken] = None,
        ffmpeg: str = "ffmpeg",
        ffprobe: str = "ffprobe",
    ):
        self.cancel = cancel
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    def _run(self, cmd: List[str]) -> bytes:
        """Run cmd to completion, killing it if the cancel token fires."""
        if self.cancel is not None:
            self.cancel.raise_if_cancelled()

        logger.debug("[FFMPEG] %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeError(cmd[0], -1, str(e)) from e

        while True:
            try:
                out, err = proc.communicate(timeout=POLL_SECONDS)
                break
            except subprocess.TimeoutExpired:
                if self.cancel is not None and self.cancel.cancelled:
                    proc.kill()
                    proc.communicate()
                    self.cancel.raise_if_cancelled()

        if proc.returncode != 0:
            raise TranscodeError(cmd[0], proc.returncode, err.decode("utf-8", "replace"))
        return out

    # ---- conversions ----

    def transcode_to_audio(self, in_file: Path, out_dir: Path, ext: str = DEFAULT_AUDIO_EXT) -> Path:
        """Copy the audio stream of in_file into out_dir/<basename><ext>."""
        out_file = Path(out_dir) / (Path(in_file).stem + ext)
        if output_ready(out_file):
            logger.info("[CONVERT] Skipping %s (%s exists)", in_file, out_file.name)
            return out_file
        logger.info("[CONVERT] Audio %s -> %s", in_file, out_file)
        self._run([self.ffmpeg, "-y", "-i", str(in_file), "-vn", "-acodec", "copy", str(out_file)])
        return out_file

    def transcode_strip_audio(self, in_file: Path, out_dir: Path, ext: str = DEFAULT_VIDEO_EXT) -> Path:
        """Copy the video stream of in_file (no audio) into out_dir/<basename><ext>."""
        out_file = Path(out_dir) / (Path(in_file).stem + ext)
        if output_ready(out_file):
            logger.info("[CONVERT] Skipping %s (%s exists)", in_file, out_file.name)
            return out_file
        logger.info("[CONVERT] Video %s -> %s", in_file, out_file)
        self._run([self.ffmpeg, "-y", "-i", str(in_file), "-an", "-vcodec", "copy", str(out_file)])
        return out_file

    # ---- metadata ----

    def get_metadata(self, in_file: Path) -> Dict[str, Any]:
        out = self._run([
            self.ffprobe,
            "-show_format", "-show_streams",
            "-output_format", "json",
            "-i", str(in_file),
        ])
        try:
            return json.loads(out.decode("utf-8"))
        except ValueError as e:
            raise TranscodeError(self.ffprobe, 0, f"unreadable ffprobe output: {e}") from e

    def extract_audio_title(self, in_file: Path) -> str:
        data = self.get_metadata(in_file)
        tags = (data.get("format") or {}).get("tags") or {}
        # Container tag case varies between muxers (title / TITLE)
        title = tags.get("title") or tags.get("TITLE")
        if not title or not str(title).strip():
            raise AudioTitleNotFoundError(str(in_file))
        return str(title).strip()
