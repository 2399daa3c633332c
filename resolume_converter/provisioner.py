"""
Place converted assets into empty Resolume clip slots.

For every matched asset name, in order:

  1. skip it if some clip in the composition already plays its video file
  2. find the first empty clip in layers start..end
  3. read the embedded title of its audio file
  4. fill the sanitized template in for the asset
  5. open the video in the clip, wait for Resolume to settle, then patch the
     clip's name, video description and transport parameters

The first failure stops the run; assets already placed stay placed and are
skipped by the idempotency check on the next run.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .cancel import CancelToken
from .config import ConverterSettings
from .errors import CancelledError, ConverterError, InputError, ProvisionError
from .matcher import match_assets
from .model import Clip
from .slots import SlotMatch, find_empty_slot, validate_layer_range
from .template import apply_asset, sanitize_template

logger = logging.getLogger(__name__)


@dataclass
class ProvisionedClip:
    asset: str
    layer_id: int
    clip_id: int
    video_path: str
    audio_title: Optional[str] = None


@dataclass
class RunReport:
    provisioned: List[ProvisionedClip] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    unmatched_audio: List[str] = field(default_factory=list)


class Provisioner:
    def __init__(
        self,
        client,
        transcoder=None,
        settings: Optional[ConverterSettings] = None,
        cancel: Optional[CancelToken] = None,
    ):
        self.client = client
        self.transcoder = transcoder
        self.settings = settings or ConverterSettings()
        self.cancel = cancel or CancelToken()

    # ---- entry points ----

    def load_template(self) -> Clip:
        """Currently selected clip, stripped of its identity."""
        clip = self.client.get_selected_clip()
        logger.info("[PLACE] Using selected clip %d ('%s') as template", clip.id, clip.display_name)
        return sanitize_template(clip)

    def run(
        self,
        audio_dir: Path,
        video_dir: Path,
        start: int,
        end: int,
        template: Optional[Clip] = None,
    ) -> RunReport:
        validate_layer_range(start, end)
        if self.transcoder is None:
            raise InputError("a transcoder is required to read audio titles")

        matches = match_assets(
            Path(audio_dir),
            Path(video_dir),
            audio_ext=self.settings.audio_ext,
            video_ext=self.settings.video_ext,
        )
        report = RunReport(unmatched_audio=list(matches.unmatched_audio))
        if not matches.matched:
            logger.info("[PLACE] Nothing to place")
            return report

        if template is None:
            template = self.load_template()
        else:
            template = sanitize_template(template)

        for name in matches.matched:
            self.cancel.raise_if_cancelled()
            audio_path = Path(audio_dir) / f"{name}{self.settings.audio_ext}"
            video_path = self.resolve_video_path(Path(video_dir) / f"{name}{self.settings.video_ext}")

            placed = self.provision_asset(name, audio_path, video_path, start, end, template)
            if placed is None:
                report.skipped.append(name)
            else:
                report.provisioned.append(placed)

        logger.info(
            "[PLACE] Done: %d placed, %d already present, %d audio without video",
            len(report.provisioned), len(report.skipped), len(report.unmatched_audio),
        )
        return report

    def provision_file(
        self,
        video_path: Path,
        start: int,
        end: int,
        template: Optional[Clip] = None,
    ) -> Optional[ProvisionedClip]:
        """Place a single video file, without an audio title lookup."""
        validate_layer_range(start, end)
        path = self.resolve_video_path(Path(video_path))
        return self.provision_asset(
            Path(video_path).stem,
            None,
            path,
            start,
            end,
            sanitize_template(template) if template is not None else Clip(),
        )

    # ---- per-asset pipeline ----

    def provision_asset(
        self,
        name: str,
        audio_path: Optional[Path],
        video_path: str,
        start: int,
        end: int,
        template: Clip,
    ) -> Optional[ProvisionedClip]:
        """Returns None when the asset is already in the composition."""
        stage = "lookup"
        slot: Optional[SlotMatch] = None
        try:
            if self.already_provisioned(video_path):
                logger.info("[PLACE] '%s' already exists (%s), skipping", name, video_path)
                return None

            stage = "slot"
            slot = find_empty_slot(self.client, start, end)

            title = None
            if audio_path is not None:
                stage = "metadata"
                title = self.transcoder.extract_audio_title(audio_path)
                logger.info("[PLACE] '%s' audio title: %s", name, title)

            stage = "template"
            clip = apply_asset(template, name, video_path)

            stage = "open"
            self.client.open_clip(slot.clip.id, video_path)
            self.cancel.sleep(self.settings.settle_seconds)

            stage = "patch"
            self.client.patch_clip(slot.clip.id, self.build_patch(clip))
        except (CancelledError, InputError):
            raise
        except ConverterError as e:
            raise ProvisionError(
                name,
                stage,
                e,
                layer_id=slot.layer_id if slot else None,
                clip_id=slot.clip.id if slot else None,
            ) from e

        logger.info("[PLACE] '%s' -> layer %d, clip %d", name, slot.layer_id, slot.clip.id)
        return ProvisionedClip(
            asset=name,
            layer_id=slot.layer_id,
            clip_id=slot.clip.id,
            video_path=video_path,
            audio_title=title,
        )

    def already_provisioned(self, video_path: str) -> bool:
        comp = self.client.get_composition()
        return comp.find_clip_by_path(video_path) is not None

    def build_patch(self, clip: Clip) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if clip.name is not None:
            fields["name"] = {
                "valuetype": clip.name.valuetype or "ParamString",
                "value": clip.name.value,
            }
        if clip.video is not None:
            # description is a plain string on the clip's video object;
            # media info is left for Resolume to fill in after the open
            fields["video"] = {"description": clip.video.description}
        fields.update(deepcopy(self.settings.transport_fields))
        return fields

    @staticmethod
    def resolve_video_path(path: Path) -> str:
        return str(path.resolve())
