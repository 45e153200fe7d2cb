from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .metadata import load_labels
from .postprocess import RegionPostConfig


_ALLOWED_KEYS = {
    "schema_version",
    "conf_threshold",
    "iou_threshold",
    "apply_nms",
    "class_agnostic_nms",
    "nms_mode",
    "max_detections",
    "labels",
    "labels_path",
}


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    if key not in payload:
        return default
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _load_label_table(payload: Dict[str, Any], base_dir: Path) -> Tuple[str, ...]:
    if "labels" in payload and "labels_path" in payload:
        raise ValueError("Use either labels or labels_path, not both")
    if "labels" in payload:
        labels = payload["labels"]
        if not isinstance(labels, list) or not all(isinstance(v, str) for v in labels):
            raise ValueError("labels must be a list of strings")
        return tuple(labels)
    if "labels_path" in payload:
        labels_path = payload["labels_path"]
        if not isinstance(labels_path, str):
            raise ValueError("labels_path must be a string")
        p = Path(labels_path)
        if not p.is_absolute():
            p = base_dir / p
        return load_labels(p)
    return ()


def load_post_config(path: Path) -> RegionPostConfig:
    """
    Load a RegionPostConfig from JSON:

        {
          "schema_version": 1,
          "conf_threshold": 0.3,
          "iou_threshold": 0.4,
          "nms_mode": "greedy",
          "labels_path": "yolov3_tiny_tags.labels"
        }

    Relative `labels_path` values resolve against the config file's directory.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Post-processing config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid post-processing config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Post-processing config must be a JSON object")

    unknown = sorted(set(payload.keys()) - _ALLOWED_KEYS)
    if unknown:
        raise ValueError(f"Unknown post-processing config keys: {unknown}")

    schema_version = _require_int(payload, "schema_version")
    if schema_version != 1:
        raise ValueError("post-processing config schema_version must be 1")

    nms_mode = payload.get("nms_mode", "greedy")
    if not isinstance(nms_mode, str):
        raise ValueError("nms_mode must be a string")

    max_detections: Optional[int] = None
    if payload.get("max_detections") is not None:
        max_detections = _require_int(payload, "max_detections")

    return RegionPostConfig(
        conf_threshold=_optional_number(payload, "conf_threshold", 0.3),
        iou_threshold=_optional_number(payload, "iou_threshold", 0.4),
        apply_nms=_optional_bool(payload, "apply_nms", True),
        class_agnostic_nms=_optional_bool(payload, "class_agnostic_nms", True),
        nms_mode=nms_mode,
        max_detections=max_detections,
        labels=_load_label_table(payload, path.parent),
    )
