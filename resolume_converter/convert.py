"""
Batch preprocessing of source videos before they are placed in Resolume.

  convert_inputs       rename every source file to "<embedded title><ext>"
  convert_audio_files  extract the audio stream of every source file
  convert_video_files  strip the audio stream of every source file
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .cancel import CancelToken
from .config import DEFAULT_AUDIO_EXT, DEFAULT_SOURCE_EXT, DEFAULT_VIDEO_EXT
from .errors import InputError
from .transcoder import Transcoder, output_ready

logger = logging.getLogger(__name__)


def list_sources(in_dir: Path, ext: str = DEFAULT_SOURCE_EXT) -> List[Path]:
    in_dir = Path(in_dir)
    if not in_dir.is_dir():
        raise InputError(f"not a directory: {in_dir}")
    return sorted(
        p for p in in_dir.iterdir()
        if p.is_file() and not p.name.startswith(".") and p.name.endswith(ext)
    )


def convert_inputs(
    transcoder: Transcoder,
    in_dir: Path,
    ext: str = DEFAULT_SOURCE_EXT,
) -> List[Path]:
    """
    Rename each source file after the title tag embedded in it. A file whose
    target name is already taken by a non-empty file is left where it is.
    Returns the renamed paths.
    """
    renamed: List[Path] = []
    for src in list_sources(in_dir, ext):
        title = transcoder.extract_audio_title(src)
        if "/" in title or "\\" in title:
            raise InputError(f"title {title!r} of {src} cannot be used as a file name")
        target = src.with_name(f"{title}{ext}")
        if target == src:
            continue
        if output_ready(target):
            logger.info("[CONVERT] Skipping %s (%s exists)", src.name, target.name)
            continue
        logger.info("[CONVERT] Renaming %s -> %s", src.name, target.name)
        src.rename(target)
        renamed.append(target)
    return renamed


def _convert_all(
    sources: List[Path],
    convert,
    out_dir: Path,
    out_ext: str,
    cancel: Optional[CancelToken],
) -> List[Path]:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    outputs: List[Path] = []
    for src in sources:
        if cancel is not None:
            cancel.raise_if_cancelled()
        outputs.append(convert(src, out_dir, out_ext))
    return outputs


def convert_audio_files(
    transcoder: Transcoder,
    in_dir: Path,
    out_dir: Path,
    source_ext: str = DEFAULT_SOURCE_EXT,
    audio_ext: str = DEFAULT_AUDIO_EXT,
    cancel: Optional[CancelToken] = None,
) -> List[Path]:
    return _convert_all(
        list_sources(in_dir, source_ext), transcoder.transcode_to_audio, out_dir, audio_ext, cancel
    )


def convert_video_files(
    transcoder: Transcoder,
    in_dir: Path,
    out_dir: Path,
    source_ext: str = DEFAULT_SOURCE_EXT,
    video_ext: str = DEFAULT_VIDEO_EXT,
    cancel: Optional[CancelToken] = None,
) -> List[Path]:
    return _convert_all(
        list_sources(in_dir, source_ext), transcoder.transcode_strip_audio, out_dir, video_ext, cancel
    )
