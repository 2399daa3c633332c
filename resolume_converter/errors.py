"""
Exception hierarchy for the converter.

Every failure the pipeline can report derives from ConverterError so the CLI
can catch one type at the top level. The deliberate "clip already exists"
skip is *not* an exception: the provisioner logs it and records it in the
run report instead.
"""

from __future__ import annotations

from typing import Optional


class ConverterError(Exception):
    """Base class for all converter errors."""

    def __init__(
        self,
        message: str,
        *,
        asset: Optional[str] = None,
        layer_id: Optional[int] = None,
        clip_id: Optional[int] = None,
    ):
        self.message = message
        self.asset = asset
        self.layer_id = layer_id
        self.clip_id = clip_id
        super().__init__(message)


# ------------------------------------------------------------------------
# Transport
# ------------------------------------------------------------------------

class TransportError(ConverterError):
    """Resolume answered with an unexpected status, or the request failed."""

    def __init__(self, method: str, url: str, status: Optional[int] = None, detail: str = ""):
        self.method = method
        self.url = url
        self.status = status
        if status is not None:
            message = f"{method} {url} -> unexpected status code: {status}"
        else:
            message = f"{method} {url} failed"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# ------------------------------------------------------------------------
# Not found
# ------------------------------------------------------------------------

class NotFoundError(ConverterError):
    pass


class EmptySlotNotFoundError(NotFoundError):
    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end
        super().__init__(f"no empty clips found in layers {start}..{end}")


class AudioTitleNotFoundError(NotFoundError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no title tag embedded in {path}")


# ------------------------------------------------------------------------
# Input / caller errors
# ------------------------------------------------------------------------

class InputError(ConverterError):
    pass


class LayerRangeError(InputError):
    def __init__(self, end: int, layer_count: int):
        self.end = end
        self.layer_count = layer_count
        super().__init__(
            f"end layer {end} is out of range: composition has {layer_count} layers"
        )


# ------------------------------------------------------------------------
# Subprocess / cancellation / pipeline
# ------------------------------------------------------------------------

class TranscodeError(ConverterError):
    def __init__(self, cmd: str, returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        tail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"{cmd} exited with status {returncode}"
        if tail:
            message = f"{message}: {tail}"
        super().__init__(message)


class CancelledError(ConverterError):
    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)


class ProvisionError(ConverterError):
    """
    Raised by the provisioner when one asset fails. Carries the asset name,
    the stage that failed and the slot (if one had been allocated); the
    underlying error is chained as __cause__.
    """

    def __init__(
        self,
        asset: str,
        stage: str,
        cause: ConverterError,
        layer_id: Optional[int] = None,
        clip_id: Optional[int] = None,
    ):
        self.stage = stage
        self.cause = cause
        where = ""
        if clip_id is not None:
            where = f" (layer {layer_id}, clip {clip_id})"
        super().__init__(
            f"asset '{asset}' failed at {stage}{where}: {cause.message}",
            asset=asset,
            layer_id=layer_id,
            clip_id=clip_id,
        )
