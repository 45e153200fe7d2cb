from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .anchors import resolve_anchor_offset
from .grid import GridLayout
from .types import REGION_LAYER_TYPE, Detection, RegionConfigError, RegionLayer


logger = logging.getLogger(__name__)

# x, y, w, h
BOX_COORDS = 4


def _label_for(labels: Sequence[str], class_id: int) -> str:
    if 0 <= class_id < len(labels):
        return labels[class_id]
    return f"label #{class_id}"


def decode_region(
    output: np.ndarray,
    *,
    side: int,
    num_anchors: int,
    coords: int,
    num_classes: int,
    anchors: Sequence[float],
    anchor_offset: int,
    resized_size: Tuple[int, int],
    orig_size: Tuple[int, int],
    threshold: float,
    labels: Sequence[str] = (),
    layout: Optional[GridLayout] = None,
    layer_name: str = "<layer>",
) -> List[Detection]:
    """
    Decode one YOLO region tensor into detections in original image pixels.

    Args:
        output: tensor for a single scale, any shape; read as a flat buffer
        anchors: flat (w, h) anchor table in network input pixels
        anchor_offset: flat offset of this scale's first anchor in `anchors`
        resized_size: (width, height) of the network input
        orig_size: (width, height) of the original image
        threshold: minimum objectness and minimum objectness * class score
        layout: memory layout of `output`; channel-major by default

    Detections are emitted cell by cell, then anchor, then class.
    """

    if coords != BOX_COORDS:
        raise RegionConfigError(layer_name, f"expected coords={BOX_COORDS}, got {coords}")
    if layout is None:
        layout = GridLayout.channel_major(side, coords, num_classes)
    if layout.side != side or layout.coords != coords or layout.num_classes != num_classes:
        raise RegionConfigError(layer_name, "grid layout does not match side/coords/classes")

    flat = np.asarray(output, dtype=np.float32).reshape(-1)
    expected = layout.size(num_anchors)
    if flat.size < expected:
        raise RegionConfigError(layer_name, f"output holds {flat.size} values, layout needs {expected}")

    anchor_arr = np.asarray(anchors, dtype=np.float64).reshape(-1)
    if anchor_offset < 0 or anchor_offset + 2 * num_anchors > anchor_arr.size:
        raise RegionConfigError(
            layer_name,
            f"anchor window [{anchor_offset}, {anchor_offset + 2 * num_anchors}) exceeds {anchor_arr.size} anchor values",
        )

    area = side * side
    cells = np.repeat(np.arange(area, dtype=np.int64), num_anchors)
    anchor_ids = np.tile(np.arange(num_anchors, dtype=np.int64), area)
    locations = anchor_ids * area + cells

    objectness = flat[layout.entry_index(locations, coords)]
    keep = objectness >= threshold
    if not np.any(keep):
        return []

    cells, anchor_ids, locations = cells[keep], anchor_ids[keep], locations[keep]
    objectness = objectness[keep].astype(np.float64)

    rows = cells // side
    cols = cells % side
    tx, ty, tw, th = (flat[layout.entry_index(locations, k)].astype(np.float64) for k in range(BOX_COORDS))

    resized_w, resized_h = resized_size
    orig_w, orig_h = orig_size

    x = (cols + tx) / side * resized_w
    y = (rows + ty) / side * resized_h
    with np.errstate(over="ignore"):
        width = np.exp(tw) * anchor_arr[anchor_offset + 2 * anchor_ids]
        height = np.exp(th) * anchor_arr[anchor_offset + 2 * anchor_ids + 1]

    class_entries = coords + 1 + np.arange(num_classes, dtype=np.int64)
    class_scores = flat[layout.entry_index(locations[:, None], class_entries[None, :])]
    probs = objectness[:, None] * class_scores

    finite = np.isfinite(x) & np.isfinite(y) & np.isfinite(width) & np.isfinite(height)
    if not np.all(finite):
        logger.debug("%s: dropping %d candidates with non-finite boxes", layer_name, int(np.sum(~finite)))
        probs[~finite, :] = -np.inf

    w_ratio = float(orig_w) / float(resized_w)
    h_ratio = float(orig_h) / float(resized_h)

    detections: List[Detection] = []
    for cand, class_id in zip(*np.nonzero(probs >= threshold)):
        xmin = int((x[cand] - width[cand] / 2) * w_ratio)
        ymin = int((y[cand] - height[cand] / 2) * h_ratio)
        detections.append(
            Detection(
                class_id=int(class_id),
                class_label=_label_for(labels, int(class_id)),
                confidence=float(probs[cand, class_id]),
                xmin=xmin,
                ymin=ymin,
                xmax=int(xmin + width[cand] * w_ratio),
                ymax=int(ymin + height[cand] * h_ratio),
            )
        )
    return detections


def decode_layer(
    layer: RegionLayer,
    output: np.ndarray,
    *,
    resized_size: Tuple[int, int],
    orig_size: Tuple[int, int],
    threshold: float,
    labels: Sequence[str] = (),
) -> List[Detection]:
    """
    Validate an NCHW region output against its layer description and decode it.

    Raises RegionConfigError for a wrong layer type, coords other than 4,
    a non-square or mis-shaped tensor, or an anchor table/grid size with no known mapping.
    """

    if layer.type != REGION_LAYER_TYPE:
        raise RegionConfigError(layer.name, f"invalid output type {layer.type!r}, {REGION_LAYER_TYPE} expected")
    if layer.coords != BOX_COORDS:
        raise RegionConfigError(layer.name, f"expected coords={BOX_COORDS}, got {layer.coords}")

    p = np.asarray(output)
    if p.ndim != 4 or p.shape[0] != 1:
        raise RegionConfigError(layer.name, f"expected NCHW output with batch 1, got shape {p.shape}")

    channels, out_h, out_w = p.shape[1:]
    if out_h != out_w:
        raise RegionConfigError(layer.name, f"H should be equal to W, got H={out_h}, W={out_w}")
    if channels != layer.channels:
        raise RegionConfigError(
            layer.name,
            f"expected {layer.channels} channels for {layer.num_anchors} anchors and {layer.classes} classes, got {channels}",
        )

    side = int(out_h)
    anchors = layer.anchor_table
    anchor_offset = resolve_anchor_offset(len(anchors), side, layer.name)

    detections = decode_region(
        p,
        side=side,
        num_anchors=layer.num_anchors,
        coords=layer.coords,
        num_classes=layer.classes,
        anchors=anchors,
        anchor_offset=anchor_offset,
        resized_size=resized_size,
        orig_size=orig_size,
        threshold=threshold,
        labels=labels,
        layer_name=layer.name,
    )
    logger.debug("%s: side=%d decoded %d detections", layer.name, side, len(detections))
    return detections
