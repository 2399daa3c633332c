"""
Pair extracted audio files with stripped video files by basename.

An asset is ready only when both <audio_dir>/<name><audio_ext> and
<video_dir>/<name><video_ext> exist. Matching is exact and case-sensitive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set

from .config import DEFAULT_AUDIO_EXT, DEFAULT_VIDEO_EXT
from .errors import InputError

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    matched: List[str] = field(default_factory=list)
    # audio basenames with no video counterpart (reported, not fatal)
    unmatched_audio: List[str] = field(default_factory=list)


def list_basenames(directory: Path, ext: str) -> Set[str]:
    if not directory.is_dir():
        raise InputError(f"not a directory: {directory}")
    names: Set[str] = set()
    for p in directory.iterdir():
        if p.name.startswith("."):
            continue
        if not p.is_file():
            continue
        # str.endswith rather than Path.suffix: keeps the match case-sensitive
        # and allows multi-dot extensions
        if p.name.endswith(ext) and len(p.name) > len(ext):
            names.add(p.name[: -len(ext)])
    return names


def match_assets(
    audio_dir: Path,
    video_dir: Path,
    audio_ext: str = DEFAULT_AUDIO_EXT,
    video_ext: str = DEFAULT_VIDEO_EXT,
) -> MatchResult:
    audio = list_basenames(Path(audio_dir), audio_ext)
    video = list_basenames(Path(video_dir), video_ext)

    result = MatchResult()
    for name in sorted(audio):
        if name in video:
            result.matched.append(name)
        else:
            logger.warning("[MATCH] No video for audio '%s%s' in %s", name, audio_ext, video_dir)
            result.unmatched_audio.append(name)

    logger.info(
        "[MATCH] %d matched, %d audio without video", len(result.matched), len(result.unmatched_audio)
    )
    return result
