from __future__ import annotations

from typing import Sequence

import numpy as np


def box_area(box: Sequence[float]) -> float:
    x1, y1, x2, y2 = box
    return float((x2 - x1) * (y2 - y1))


def iou_xyxy(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Intersection-over-union of two (x1, y1, x2, y2) boxes.

    Overlap is 0 when the boxes are disjoint along either axis. A union that is
    not positive (degenerate boxes) gives 0 instead of dividing by zero.
    """

    overlap_w = min(a[2], b[2]) - max(a[0], b[0])
    overlap_h = min(a[3], b[3]) - max(a[1], b[1])
    if overlap_w < 0 or overlap_h < 0:
        overlap = 0.0
    else:
        overlap = float(overlap_w * overlap_h)

    union = box_area(a) + box_area(b) - overlap
    if union <= 0:
        return 0.0
    return overlap / union


def iou(a, b) -> float:
    """IoU of two detections (anything exposing `as_xyxy()`)."""
    return iou_xyxy(a.as_xyxy(), b.as_xyxy())


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box against an (N, 4) array, same rules as `iou_xyxy`.
    """

    box = np.asarray(box, dtype=np.float64)
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.float64)

    w = np.minimum(box[2], boxes[:, 2]) - np.maximum(box[0], boxes[:, 0])
    h = np.minimum(box[3], boxes[:, 3]) - np.maximum(box[1], boxes[:, 1])
    inter = np.where((w < 0) | (h < 0), 0.0, w * h)

    area = (box[2] - box[0]) * (box[3] - box[1])
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0)
    return out
