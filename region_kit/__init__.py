"""
Post-processing for YOLOv3 / tiny-YOLOv3 "region" outputs.

Takes the raw per-scale tensors an inference runtime (OpenVINO, ONNX Runtime,
...) returns for a frame and produces labeled boxes in original image pixels:
region decoding per scale, then non-maximum suppression over all scales.
Only depends on NumPy.
"""

from .types import DEFAULT_ANCHORS, Detection, RegionConfigError, RegionLayer
from .geometry import iou, iou_xyxy
from .grid import GridLayout, entry_index
from .anchors import resolve_anchor_offset
from .region import decode_layer, decode_region
from .nms import NMSConfig, nms, suppress
from .postprocess import RegionPostConfig, RegionPostprocessor
from .runtime import RegionPipeline
from .metadata import load_labels
from .config import load_post_config

__all__ = [
    "DEFAULT_ANCHORS",
    "Detection",
    "RegionConfigError",
    "RegionLayer",
    "iou",
    "iou_xyxy",
    "GridLayout",
    "entry_index",
    "resolve_anchor_offset",
    "decode_layer",
    "decode_region",
    "NMSConfig",
    "nms",
    "suppress",
    "RegionPostConfig",
    "RegionPostprocessor",
    "RegionPipeline",
    "load_labels",
    "load_post_config",
]
