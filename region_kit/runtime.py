from __future__ import annotations

import logging
import time
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .postprocess import RegionPostConfig, RegionPostprocessor
from .types import Detection, RegionLayer


logger = logging.getLogger(__name__)

InferFn = Callable[[np.ndarray], Mapping[str, np.ndarray]]


class RegionPipeline:
    """
    Inference -> region post-processing for one frame at a time.

    `infer_fn` wraps whatever runtime produced the model outputs; it takes the
    prepared input blob and returns {output layer name: NCHW tensor}.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        layers: Sequence[RegionLayer],
        *,
        input_size: Tuple[int, int],
        post_cfg: RegionPostConfig = RegionPostConfig(),
    ):
        if not layers:
            raise ValueError("at least one region layer is required")
        self._infer_fn = infer_fn
        self.layers = {layer.name: layer for layer in layers}
        self.input_size = input_size
        self.post = RegionPostprocessor(post_cfg)
        self.last_timing: Optional[Tuple[float, float]] = None

    def __call__(self, blob: np.ndarray, orig_size: Tuple[int, int]) -> List[Detection]:
        """
        Args:
            blob: network input, already resized to `input_size`
            orig_size: (width, height) of the image the blob was made from
        """

        t0 = time.perf_counter()
        outputs = self._infer_fn(blob)
        t1 = time.perf_counter()
        detections = self.post.process(
            outputs,
            self.layers,
            resized_size=self.input_size,
            orig_size=orig_size,
        )
        t2 = time.perf_counter()

        infer_ms = (t1 - t0) * 1000.0
        post_ms = (t2 - t1) * 1000.0
        self.last_timing = (infer_ms, post_ms)
        logger.debug("inference %.2f ms, post-processing %.2f ms, %d detections", infer_ms, post_ms, len(detections))
        for det in detections:
            logger.debug("%s (%.2f%%)", det.class_label, det.confidence * 100.0)
        return detections
