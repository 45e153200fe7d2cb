"""Builders for synthetic YOLO region outputs used across the tests."""

from __future__ import annotations

from typing import Sequence

import numpy as np

TINY_ANCHORS = (10.0, 14.0, 23.0, 27.0, 37.0, 58.0, 81.0, 82.0, 135.0, 169.0, 344.0, 319.0)


def make_region_output(side: int, num_anchors: int, num_classes: int, coords: int = 4) -> np.ndarray:
    """Zero NCHW output (1, A * (coords + 1 + C), side, side), float32."""
    channels = num_anchors * (coords + 1 + num_classes)
    return np.zeros((1, channels, side, side), dtype=np.float32)


def set_prediction(
    output: np.ndarray,
    *,
    anchor: int,
    row: int,
    col: int,
    box: Sequence[float],
    objectness: float,
    class_scores: Sequence[float],
    coords: int = 4,
) -> None:
    """Write one (cell, anchor) prediction into a channel-major NCHW output."""
    base = anchor * (coords + 1 + len(class_scores))
    for k, value in enumerate(box):
        output[0, base + k, row, col] = value
    output[0, base + coords, row, col] = objectness
    for c, score in enumerate(class_scores):
        output[0, base + coords + 1 + c, row, col] = score
