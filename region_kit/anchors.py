from __future__ import annotations

from typing import Dict, Mapping

from .types import DEFAULT_ANCHORS, RegionConfigError


# anchor table length -> {grid side: flat offset into the table (2 * first anchor)}
ANCHOR_OFFSETS: Mapping[int, Mapping[int, int]] = {
    18: {13: 2 * 6, 26: 2 * 3, 52: 2 * 0},  # YOLOv3
    12: {13: 2 * 3, 26: 2 * 0},  # tiny-YOLOv3
}


def resolve_anchor_offset(num_anchor_values: int, side: int, layer_name: str = "<layer>") -> int:
    """
    Pick the anchor window for one output scale.

    Anchor tables of any other length are rejected rather than guessed.
    """

    offsets: Dict[int, int] = dict(ANCHOR_OFFSETS.get(num_anchor_values, {}))
    if not offsets:
        raise RegionConfigError(
            layer_name,
            f"unsupported anchor table length {num_anchor_values} (expected one of {sorted(ANCHOR_OFFSETS)})",
        )
    if side not in offsets:
        raise RegionConfigError(
            layer_name,
            f"invalid output size {side} for {num_anchor_values} anchor values (expected one of {sorted(offsets)})",
        )
    return offsets[side]


__all__ = ["ANCHOR_OFFSETS", "DEFAULT_ANCHORS", "resolve_anchor_offset"]
