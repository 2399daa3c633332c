"""
Turn a selected clip into a reusable template.

sanitize_template() removes everything that ties the clip to its original
slot in the composition: the clip id, the ids of its name/connected
parameters and every "id" key Resolume put into its parameter sub-objects and
effects. Writes derived from the template then target a clip explicitly by
id instead of whatever the template originally pointed at.

apply_asset() fills a sanitized template in for one asset.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from .model import DERIVED_FILEINFO_KEYS, Clip, ClipVideo, Parameter


def strip_ids(obj: Any) -> Any:
    """Return a copy of obj with every "id" key removed, at any depth."""
    if isinstance(obj, dict):
        return {k: strip_ids(v) for k, v in obj.items() if k != "id"}
    if isinstance(obj, list):
        return [strip_ids(v) for v in obj]
    return obj


def _sanitize_param(param):
    if param is None:
        return None
    return Parameter(
        valuetype=param.valuetype,
        id=0,
        value=strip_ids(param.value),
        extra=strip_ids(param.extra),
    )


def sanitize_template(clip: Clip) -> Clip:
    video = None
    if clip.video is not None:
        video = ClipVideo(
            description=clip.video.description,
            width=clip.video.width,
            height=clip.video.height,
            fileinfo=strip_ids(clip.video.fileinfo),
            effects=strip_ids(clip.video.effects),
            extra=strip_ids(clip.video.extra),
        )
    return Clip(
        id=0,
        name=_sanitize_param(clip.name),
        connected=_sanitize_param(clip.connected),
        video=video,
        params=strip_ids(clip.params),
    )


def apply_asset(template: Clip, asset_name: str, video_path: str) -> Clip:
    """
    Copy of `template` describing `asset_name`: display name and description
    set to the asset, file path pointing at `video_path`, and media info
    (duration, size, framerate) cleared until Resolume has opened the file.
    """
    clip = deepcopy(template)

    if clip.name is None:
        clip.name = Parameter(valuetype="ParamString")
    clip.name.value = asset_name

    if clip.video is None:
        clip.video = ClipVideo()
    clip.video.description = asset_name
    clip.video.width = 0
    clip.video.height = 0

    fileinfo = {k: v for k, v in (clip.video.fileinfo or {}).items() if k not in DERIVED_FILEINFO_KEYS}
    fileinfo["path"] = video_path
    clip.video.fileinfo = fileinfo
    return clip
