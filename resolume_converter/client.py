"""
Resolume Arena HTTP API client.

Thin wrapper over a requests.Session bound to one HttpEndpoint. Every call
either returns decoded data or raises TransportError; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests

from .cancel import CancelToken
from .config import HttpEndpoint
from .errors import TransportError
from .model import Clip, Composition, Layer

logger = logging.getLogger(__name__)


class ResolumeHTTPClient:
    def __init__(
        self,
        endpoint: HttpEndpoint,
        session: Optional[requests.Session] = None,
        cancel: Optional[CancelToken] = None,
    ):
        self.endpoint = endpoint
        self.base_url = endpoint.base_url()
        self.session = session if session is not None else endpoint.make_session()
        self.timeout = endpoint.timeout
        self.cancel = cancel

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ResolumeHTTPClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---- plumbing ----

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        expect: Iterable[int],
        **kwargs: Any,
    ) -> requests.Response:
        if self.cancel is not None:
            self.cancel.raise_if_cancelled()

        url = self.url(path)
        logger.debug("[HTTP] %s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise TransportError(method, url, detail=str(exc)) from exc

        if resp.status_code not in tuple(expect):
            raise TransportError(method, url, status=resp.status_code, detail=resp.text[:200])
        return resp

    def _get_json(self, path: str) -> Any:
        resp = self._request("GET", path, expect=(200,))
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError("GET", self.url(path), detail=f"invalid JSON: {exc}") from exc

    # ---- reads ----

    def get_composition(self) -> Composition:
        data = self._get_json("composition")
        comp = Composition.from_json(data)
        logger.debug("[HTTP] /composition OK (%d layers)", len(comp.layers))
        return comp

    def get_layers(self) -> List[Layer]:
        return self.get_composition().layers

    def get_clip(self, clip_id: int) -> Clip:
        return Clip.from_json(self._get_json(f"composition/clips/by-id/{clip_id}"))

    def get_selected_clip(self) -> Clip:
        return Clip.from_json(self._get_json("composition/clips/selected"))

    def get_thumbnail(self, clip_id: int) -> bytes:
        resp = self._request("GET", f"composition/clips/by-id/{clip_id}/thumbnail", expect=(200,))
        return resp.content

    # ---- writes ----

    def open_clip(self, clip_id: int, file_path: str) -> None:
        """Load a local file into a clip slot. Resolume answers 204."""
        file_url = "file://" + quote(file_path, safe="/:")
        logger.info("[HTTP] Opening %s in clip %d", file_url, clip_id)
        self._request(
            "POST",
            f"composition/clips/by-id/{clip_id}/open",
            expect=(204,),
            data=file_url.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )

    def patch_clip(self, clip_id: int, fields: Dict[str, Any]) -> None:
        """
        Partial update of named clip parameters, e.g.

            {"transporttype": {"valuetype": "ParamChoice", "value": "Denon DJ", "index": 4}}
        """
        logger.info("[HTTP] Patching clip %d: %s", clip_id, ", ".join(sorted(fields)))
        self._request(
            "PUT",
            f"composition/clips/by-id/{clip_id}",
            expect=(200, 204),
            json=fields,
        )
