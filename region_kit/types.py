from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


REGION_LAYER_TYPE = "RegionYolo"

# COCO anchors used by YOLOv3 when the layer does not declare its own.
DEFAULT_ANCHORS: Tuple[float, ...] = (
    10.0, 13.0, 16.0, 30.0, 33.0, 23.0,
    30.0, 61.0, 62.0, 45.0, 59.0, 119.0,
    116.0, 90.0, 156.0, 198.0, 373.0, 326.0,
)


class RegionConfigError(ValueError):
    """
    Raised when an output layer does not match what the region decoder expects.

    These errors come from a model/config mismatch and will repeat on every
    frame, so they are never turned into an empty result.
    """

    def __init__(self, layer: str, reason: str):
        super().__init__(f"{layer}: {reason}")
        self.layer = layer
        self.reason = reason


@dataclass
class Detection:
    """
    One labeled box in original image pixel coordinates.

    `confidence` is the only field changed after creation: NMS sets it to 0.0
    to mark the detection as suppressed.
    """

    class_id: int
    class_label: str
    confidence: float
    xmin: int
    ymin: int
    xmax: int
    ymax: int

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.xmin, self.ymin, self.xmax, self.ymax

    @property
    def suppressed(self) -> bool:
        return self.confidence == 0.0

    def as_bounding_box(self) -> Dict[str, Any]:
        return {
            "class": self.class_label,
            "probability": float(self.confidence),
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
        }


def _parse_ints(value: str) -> Tuple[int, ...]:
    return tuple(int(v) for v in value.replace(" ", "").split(",") if v)


def _parse_floats(value: str) -> Tuple[float, ...]:
    return tuple(float(v) for v in value.replace(" ", "").split(",") if v)


@dataclass(frozen=True)
class RegionLayer:
    """
    Attributes of one YOLO region output layer.

    - num: declared anchor count; `mask` overrides it when present
    - anchors: flat (w, h) pairs; None falls back to `DEFAULT_ANCHORS`
    """

    name: str
    type: str = REGION_LAYER_TYPE
    num: int = 3
    coords: int = 4
    classes: int = 80
    mask: Optional[Tuple[int, ...]] = None
    anchors: Optional[Tuple[float, ...]] = None

    @property
    def num_anchors(self) -> int:
        if self.mask is not None:
            return len(self.mask)
        return self.num

    @property
    def anchor_table(self) -> Tuple[float, ...]:
        if self.anchors is not None:
            return tuple(self.anchors)
        return DEFAULT_ANCHORS

    @property
    def channels(self) -> int:
        return self.num_anchors * (self.coords + 1 + self.classes)

    @classmethod
    def from_params(cls, name: str, layer_type: str, params: Mapping[str, str]) -> "RegionLayer":
        """
        Build a layer from the string attributes an inference engine exposes,
        e.g. {"num": "9", "mask": "6,7,8", "coords": "4", "classes": "80"}.
        """

        for key in ("num", "coords", "classes"):
            if key not in params:
                raise RegionConfigError(name, f"missing layer attribute '{key}'")
        try:
            mask = _parse_ints(params["mask"]) if params.get("mask") else None
            anchors = _parse_floats(params["anchors"]) if params.get("anchors") else None
            return cls(
                name=name,
                type=layer_type,
                num=int(params["num"]),
                coords=int(params["coords"]),
                classes=int(params["classes"]),
                mask=mask,
                anchors=anchors,
            )
        except ValueError as exc:
            raise RegionConfigError(name, f"malformed layer attributes: {exc}") from exc
