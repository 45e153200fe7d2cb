from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

import numpy as np

from .nms import NMS_MODES, NMSConfig, suppress
from .region import decode_layer
from .types import Detection, RegionConfigError, RegionLayer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionPostConfig:
    """
    Per-run settings for YOLO region post-processing.
    """

    conf_threshold: float = 0.3
    iou_threshold: float = 0.4
    # If False, skip NMS and only keep top `max_detections` by confidence.
    apply_nms: bool = True
    # If False, runs NMS per class.
    class_agnostic_nms: bool = True
    # "greedy" (descending sort) or "legacy" (ascending sort of the old node).
    nms_mode: str = "greedy"
    max_detections: Optional[int] = None
    # Class names indexed by class id.
    labels: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.nms_mode not in NMS_MODES:
            raise ValueError(f"nms_mode must be one of {NMS_MODES}, got {self.nms_mode!r}")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0 or None")
        if not all(isinstance(label, str) for label in self.labels):
            raise ValueError("labels must be strings")

    def nms_config(self) -> NMSConfig:
        return NMSConfig(
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
            class_agnostic=self.class_agnostic_nms,
            mode=self.nms_mode,
        )


class RegionPostprocessor:
    """
    Turns the region outputs of one frame into final detections:

    - decode every output layer (one per scale) and concatenate
    - NMS once over all scales (or top-k when `apply_nms` is False)
    - drop suppressed and below-threshold detections

    Output tensors are NumPy arrays in NCHW layout with batch 1.
    """

    def __init__(self, cfg: RegionPostConfig):
        self.cfg = cfg

    def process(
        self,
        outputs: Mapping[str, np.ndarray],
        layers: Mapping[str, RegionLayer],
        *,
        resized_size: Tuple[int, int],
        orig_size: Tuple[int, int],
    ) -> List[Detection]:
        """
        Args:
            outputs: {layer name: raw output tensor}
            layers: {layer name: RegionLayer}
            resized_size: (width, height) of the network input
            orig_size: (width, height) of the original image
        """

        detections = self.decode(outputs, layers, resized_size=resized_size, orig_size=orig_size)
        if not detections:
            return []

        if self.cfg.apply_nms:
            detections = suppress(detections, self.cfg.nms_config())
        else:
            detections = self._select_topk(detections)

        return [d for d in detections if d.confidence != 0 and d.confidence >= self.cfg.conf_threshold]

    def decode(
        self,
        outputs: Mapping[str, np.ndarray],
        layers: Mapping[str, RegionLayer],
        *,
        resized_size: Tuple[int, int],
        orig_size: Tuple[int, int],
    ) -> List[Detection]:
        detections: List[Detection] = []
        for name, output in outputs.items():
            layer = layers.get(name)
            if layer is None:
                raise RegionConfigError(name, "no layer description for this output")
            detections.extend(
                decode_layer(
                    layer,
                    output,
                    resized_size=resized_size,
                    orig_size=orig_size,
                    threshold=self.cfg.conf_threshold,
                    labels=self.cfg.labels,
                )
            )
        return detections

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _select_topk(self, detections: List[Detection]) -> List[Detection]:
        ordered = sorted(detections, key=lambda d: d.confidence, reverse=True)
        if self.cfg.max_detections is None:
            return ordered
        return ordered[: self.cfg.max_detections]
