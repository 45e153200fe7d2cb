from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .geometry import iou, iou_one_to_many
from .types import Detection


logger = logging.getLogger(__name__)

NMS_MODES = ("greedy", "legacy")


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.4
    # None keeps every survivor.
    max_detections: Optional[int] = None
    # If False, boxes only suppress boxes of the same class.
    class_agnostic: bool = True
    # "legacy" reproduces the ascending-sort suppression of the first ROS node.
    mode: str = "greedy"

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0 or None")
        if self.mode not in NMS_MODES:
            raise ValueError(f"mode must be one of {NMS_MODES}, got {self.mode!r}")


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes, highest score first. Ties keep input order.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int32)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(i)

        overlap = iou_one_to_many(boxes[i], boxes[order[1:]])
        inds = np.where(overlap < cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int32)


def _suppress_legacy(detections: Sequence[Detection], iou_threshold: float) -> None:
    # Ascending sort: each box suppresses every later (higher or equal score) overlapping box.
    ordered = sorted(detections, key=lambda d: d.confidence)
    for i, det in enumerate(ordered):
        if det.confidence == 0:
            continue
        for other in ordered[i + 1:]:
            if iou(det, other) >= iou_threshold:
                other.confidence = 0.0


def _suppress_greedy(detections: Sequence[Detection], iou_threshold: float) -> None:
    boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64).reshape(-1, 4)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)
    kept = set(nms(boxes, scores, NMSConfig(iou_threshold=iou_threshold)).tolist())
    for idx, det in enumerate(detections):
        if idx not in kept:
            det.confidence = 0.0


def suppress(detections: Sequence[Detection], cfg: NMSConfig) -> List[Detection]:
    """
    Non-maximum suppression over detections from all scales.

    Suppressed detections, and those cut by `cfg.max_detections`, get
    `confidence = 0.0`. Returns the survivors, highest confidence first.
    """

    if not detections:
        return []

    if cfg.class_agnostic:
        groups = [list(detections)]
    else:
        by_class: Dict[int, List[Detection]] = {}
        for det in detections:
            by_class.setdefault(det.class_id, []).append(det)
        groups = list(by_class.values())

    for group in groups:
        if cfg.mode == "legacy":
            _suppress_legacy(group, cfg.iou_threshold)
        else:
            _suppress_greedy(group, cfg.iou_threshold)

    survivors = sorted((d for d in detections if d.confidence != 0), key=lambda d: d.confidence, reverse=True)
    if cfg.max_detections is not None:
        for det in survivors[cfg.max_detections:]:
            det.confidence = 0.0
        survivors = survivors[: cfg.max_detections]
    logger.debug("nms(%s): %d of %d detections kept", cfg.mode, len(survivors), len(detections))
    return survivors
