"""
Connection + converter settings, loaded from settings/connections.yaml.

Layout expected in connections.yaml:

outputs:
  http:
    resolume_arena:
      - name: "arena_http_out_main"
        host: "127.0.0.1"
        port: 8080
        use_https: false
        api_base: "/api/v1"
        username: "admin"
        password: "secret"
        timeout: 2.0
        verify_ssl: true

converter:
  audio_ext: ".m4a"
  video_ext: ".mov"
  source_ext: ".mp4"
  settle_seconds: 1.0
  transport:
    transporttype: {valuetype: ParamChoice, value: "Denon DJ", index: 4}
    target: {valuetype: ParamChoice, value: "Denon Player Determined", index: 4}
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import requests
import yaml

from .errors import InputError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTIONS_PATH = "settings/connections.yaml"

DEFAULT_AUDIO_EXT = ".m4a"
DEFAULT_VIDEO_EXT = ".mov"
DEFAULT_SOURCE_EXT = ".mp4"
DEFAULT_SETTLE_SECONDS = 1.0

# "external player, auto-detected" transport for DJ-linked clips
DEFAULT_TRANSPORT_FIELDS: Dict[str, Dict[str, Any]] = {
    "target": {
        "valuetype": "ParamChoice",
        "value": "Denon Player Determined",
        "index": 4,
    },
    "transporttype": {
        "valuetype": "ParamChoice",
        "value": "Denon DJ",
        "index": 4,
    },
}


# -------------------------------------------------------------------
# Data classes
# -------------------------------------------------------------------

@dataclass
class HttpEndpoint:
    name: str
    host: str = "127.0.0.1"
    port: int = 8080
    use_https: bool = False
    api_base: str = "/api/v1"
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 2.0
    verify_ssl: bool = True

    def base_url(self) -> str:
        scheme = "https" if self.use_https else "http"
        # Normalize api_base to have a leading slash and no trailing slash
        base = self.api_base or "/"
        if not base.startswith("/"):
            base = "/" + base
        base = base.rstrip("/")
        return f"{scheme}://{self.host}:{self.port}{base}"

    def make_session(self) -> requests.Session:
        s = requests.Session()

        if self.username or self.password:
            # Basic auth
            s.auth = (self.username or "", self.password or "")

        s.verify = self.verify_ssl
        return s

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "HttpEndpoint":
        try:
            return cls(
                name=entry.get("name", "unnamed"),
                host=entry["host"],
                port=int(entry.get("port", 8080)),
                use_https=bool(entry.get("use_https", False)),
                api_base=entry.get("api_base", "/api/v1"),
                username=entry.get("username"),
                password=entry.get("password"),
                timeout=float(entry.get("timeout", 2.0)),
                verify_ssl=bool(entry.get("verify_ssl", True)),
            )
        except KeyError as e:
            raise InputError(f"invalid resolume_arena HTTP entry {entry}: missing {e}") from e
        except (TypeError, ValueError) as e:
            raise InputError(f"invalid resolume_arena HTTP entry {entry}: {e}") from e

    @classmethod
    def from_base_url(cls, url: str, timeout: float = 2.0) -> "HttpEndpoint":
        """Build an endpoint from e.g. http://127.0.0.1:8089/api/v1/"""
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise InputError(f"invalid base URL: {url!r}")
        use_https = parts.scheme == "https"
        return cls(
            name="base-url",
            host=parts.hostname,
            port=parts.port or (443 if use_https else 80),
            use_https=use_https,
            api_base=parts.path or "/",
            username=parts.username,
            password=parts.password,
            timeout=timeout,
        )


@dataclass
class ConverterSettings:
    audio_ext: str = DEFAULT_AUDIO_EXT
    video_ext: str = DEFAULT_VIDEO_EXT
    source_ext: str = DEFAULT_SOURCE_EXT
    settle_seconds: float = DEFAULT_SETTLE_SECONDS
    transport_fields: Dict[str, Dict[str, Any]] = field(
        default_factory=lambda: deepcopy(DEFAULT_TRANSPORT_FIELDS)
    )

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "ConverterSettings":
        raw = cfg.get("converter") or {}
        transport = raw.get("transport") or DEFAULT_TRANSPORT_FIELDS
        for key, val in transport.items():
            if not isinstance(val, dict) or "value" not in val:
                raise InputError(f"converter.transport.{key} must be a mapping with a 'value'")
        try:
            settle = float(raw.get("settle_seconds", DEFAULT_SETTLE_SECONDS))
        except (TypeError, ValueError) as e:
            raise InputError(f"converter.settle_seconds: {e}") from e
        if settle < 0:
            raise InputError("converter.settle_seconds must not be negative")
        return cls(
            audio_ext=_normalize_ext(raw.get("audio_ext", DEFAULT_AUDIO_EXT)),
            video_ext=_normalize_ext(raw.get("video_ext", DEFAULT_VIDEO_EXT)),
            source_ext=_normalize_ext(raw.get("source_ext", DEFAULT_SOURCE_EXT)),
            settle_seconds=settle,
            transport_fields=deepcopy(transport),
        )


def _normalize_ext(ext: str) -> str:
    ext = str(ext)
    return ext if ext.startswith(".") else "." + ext


# -------------------------------------------------------------------
# Loading connections.yaml
# -------------------------------------------------------------------

def load_connections(path: Path = Path(DEFAULT_CONNECTIONS_PATH), required: bool = True) -> Dict[str, Any]:
    if not path.exists():
        if required:
            raise InputError(f"connections.yaml not found at {path}")
        logger.debug("[CONFIG] %s not found, using defaults", path)
        return {}
    try:
        cfg = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InputError(f"could not parse {path}: {e}") from e
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise InputError(f"{path} must contain a mapping at the top level")
    return cfg


def list_resolume_http_outputs(cfg: Dict[str, Any], io_section: str = "outputs") -> List[HttpEndpoint]:
    """
    Read outputs.http.resolume_arena list and build HttpEndpoint objects.
    """
    http_cfg = (cfg.get(io_section) or {}).get("http") or {}
    arena_list = http_cfg.get("resolume_arena", []) or http_cfg.get("arena", []) or []
    return [HttpEndpoint.from_entry(entry) for entry in arena_list]


def get_resolume_http_connection(
    cfg: Dict[str, Any],
    name: Optional[str] = None,
    io_section: str = "outputs",
) -> HttpEndpoint:
    """
    Pick one HTTP endpoint from the connections config.

    name: if None, choose first entry under outputs.http.resolume_arena;
          if there are no entries at all, fall back to 127.0.0.1:8080.
    """
    endpoints = list_resolume_http_outputs(cfg, io_section=io_section)

    if not endpoints:
        if name is not None:
            raise InputError(f"No resolume_arena HTTP entries found under {io_section}.http")
        return HttpEndpoint(name="default")

    if name is None:
        return endpoints[0]

    for ep in endpoints:
        if ep.name == name:
            return ep

    raise InputError(f"HTTP Resolume connection named '{name}' not found in {io_section}.http")
