"""
Typed view of the Resolume composition document.

Only the fields the converter actually reads or writes are modelled:

    Composition
      -> Layer (id, name, clips)
         -> Clip (id, name, connected, video, ...)
            -> ClipVideo (description, width, height, fileinfo, effects, ...)

Everything else is kept verbatim in ordered dicts (`raw` / `params` / `extra`)
and written back untouched, so fields added by newer Resolume versions
survive a read/modify/write.

Ids are assigned by Resolume. An id of 0 (or None) means "no identity" and is
left out when serializing; ids are never invented on this side.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

EMPTY_CONNECTION = "Empty"

# fileinfo keys describing the loaded media; meaningless until Resolume has
# opened the file itself
DERIVED_FILEINFO_KEYS = ("duration", "duration_ms", "framerate", "width", "height")


def _as_int(val: Any, default: int = 0) -> int:
    if val is None:
        return default
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


# ------------------------------------------------------------------------
# Parameter
# ------------------------------------------------------------------------

@dataclass
class Parameter:
    """
    A Resolume parameter object, e.g.

        {"id": 1753, "valuetype": "ParamString", "value": "Clip 1"}

    `extra` keeps index/options/min/max/etc. in their original order.
    """
    valuetype: str = ""
    id: int = 0
    value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any) -> Optional["Parameter"]:
        if data is None:
            return None
        if not isinstance(data, dict):
            # Older builds sometimes send a bare value
            return cls(value=data)
        extra = {k: v for k, v in data.items() if k not in ("valuetype", "id", "value")}
        return cls(
            valuetype=data.get("valuetype", ""),
            id=_as_int(data.get("id")),
            value=data.get("value"),
            extra=deepcopy(extra),
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.valuetype:
            out["valuetype"] = self.valuetype
        if self.id:
            out["id"] = self.id
        out["value"] = self.value
        out.update(deepcopy(self.extra))
        return out


def _param_to_json(param: Optional[Parameter]) -> Optional[Dict[str, Any]]:
    return param.to_json() if param is not None else None


# ------------------------------------------------------------------------
# Clip
# ------------------------------------------------------------------------

@dataclass
class ClipVideo:
    description: str = ""
    width: int = 0
    height: int = 0
    fileinfo: Optional[Dict[str, Any]] = None
    effects: List[Any] = field(default_factory=list)
    # a, b, g, r, mixer, opacity, resize, sourceparams, ...
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def file_path(self) -> Optional[str]:
        if not self.fileinfo:
            return None
        return self.fileinfo.get("path")

    @classmethod
    def from_json(cls, data: Any) -> Optional["ClipVideo"]:
        if data is None:
            return None
        known = ("description", "width", "height", "fileinfo", "effects")
        return cls(
            description=data.get("description") or "",
            width=_as_int(data.get("width")),
            height=_as_int(data.get("height")),
            fileinfo=deepcopy(data.get("fileinfo")),
            effects=deepcopy(data.get("effects") or []),
            extra=deepcopy({k: v for k, v in data.items() if k not in known}),
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "description": self.description,
            "width": self.width,
            "height": self.height,
        }
        if self.fileinfo is not None:
            out["fileinfo"] = deepcopy(self.fileinfo)
        out["effects"] = deepcopy(self.effects)
        out.update(deepcopy(self.extra))
        return out


@dataclass
class Clip:
    id: int = 0
    name: Optional[Parameter] = None
    connected: Optional[Parameter] = None
    video: Optional[ClipVideo] = None
    # opaque parameter sub-objects: audio, beatsnap, dashboard, faderstart,
    # ignorecolumntrigger, selected, target, thumbnail, transporttype,
    # triggerstyle, plus anything unknown
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        if self.name is None or self.name.value is None:
            return f"clip-{self.id}"
        return str(self.name.value)

    @property
    def connection_state(self) -> Optional[str]:
        if self.connected is None:
            return None
        return self.connected.value

    @property
    def is_empty(self) -> bool:
        return self.connection_state == EMPTY_CONNECTION

    @property
    def file_path(self) -> Optional[str]:
        return self.video.file_path if self.video is not None else None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Clip":
        known = ("id", "name", "connected", "video")
        return cls(
            id=_as_int(data.get("id")),
            name=Parameter.from_json(data.get("name")),
            connected=Parameter.from_json(data.get("connected")),
            video=ClipVideo.from_json(data.get("video")),
            params=deepcopy({k: v for k, v in data.items() if k not in known}),
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.id:
            out["id"] = self.id
        if self.name is not None:
            out["name"] = self.name.to_json()
        if self.connected is not None:
            out["connected"] = self.connected.to_json()
        if self.video is not None:
            out["video"] = self.video.to_json()
        out.update(deepcopy(self.params))
        return out


# ------------------------------------------------------------------------
# Layer / Composition
# ------------------------------------------------------------------------

@dataclass
class Layer:
    id: int = 0
    name: Optional[Parameter] = None
    clips: List[Clip] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        if self.name is None or self.name.value is None:
            return f"layer-{self.id}"
        return str(self.name.value)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Layer":
        known = ("id", "name", "clips")
        return cls(
            id=_as_int(data.get("id")),
            name=Parameter.from_json(data.get("name")),
            clips=[Clip.from_json(c) for c in (data.get("clips") or [])],
            raw=deepcopy({k: v for k, v in data.items() if k not in known}),
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.id:
            out["id"] = self.id
        out["name"] = _param_to_json(self.name)
        out["clips"] = [c.to_json() for c in self.clips]
        out.update(deepcopy(self.raw))
        return out


@dataclass
class Composition:
    layers: List[Layer] = field(default_factory=list)
    # audio, columns, decks, layergroups, master, name, tempocontroller, ...
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        val = self.raw.get("name")
        if isinstance(val, dict) and isinstance(val.get("value"), str):
            return val["value"]
        if isinstance(val, str):
            return val
        return "Unnamed Composition"

    def iter_clips(self):
        for layer in self.layers:
            for clip in layer.clips:
                yield layer, clip

    def find_clip_by_path(self, file_path: str) -> Optional[Clip]:
        for _, clip in self.iter_clips():
            if clip.file_path == file_path:
                return clip
        return None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Composition":
        return cls(
            layers=[Layer.from_json(l) for l in (data.get("layers") or [])],
            raw=deepcopy({k: v for k, v in data.items() if k != "layers"}),
        )

    def to_json(self) -> Dict[str, Any]:
        out = deepcopy(self.raw)
        out["layers"] = [l.to_json() for l in self.layers]
        return out
