from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import EmptySlotNotFoundError, InputError, LayerRangeError
from .model import Clip

logger = logging.getLogger(__name__)


@dataclass
class SlotMatch:
    layer_id: int
    layer_index: int  # 0-based position in composition.layers
    clip: Clip


def validate_layer_range(start: int, end: int) -> None:
    if start < 0:
        raise InputError(f"start layer must not be negative (got {start})")
    if start > end:
        raise InputError(f"start layer {start} must not be greater than end layer {end}")


def find_empty_slot(client, start: int, end: int) -> SlotMatch:
    """
    Return the first clip whose connection state is "Empty", scanning layers
    start..end (0-based, inclusive) in order and each layer's clips in order.

    The result comes from a single GET /composition snapshot. Nothing is
    reserved: another controller writing to the same composition between this
    read and the following open can take the same slot.
    """
    validate_layer_range(start, end)

    comp = client.get_composition()
    if end >= len(comp.layers):
        raise LayerRangeError(end, len(comp.layers))

    for idx in range(start, end + 1):
        layer = comp.layers[idx]
        for clip in layer.clips:
            if clip.is_empty:
                logger.debug(
                    "[SLOT] Empty clip %d on layer %d ('%s')", clip.id, layer.id, layer.display_name
                )
                return SlotMatch(layer_id=layer.id, layer_index=idx, clip=clip)

    raise EmptySlotNotFoundError(start, end)
