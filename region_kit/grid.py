"""
Index arithmetic for YOLO region tensors.

A region tensor holds, for every anchor, `coords + 1 + classes` channels
(box params, objectness, class scores) over a side x side grid. `location`
flattens (anchor, cell) as `anchor * side * side + cell`; `entry` picks the
channel. The default layout is channel-major `[anchor, channel, row, col]`,
which is what OpenVINO and Darknet emit for NCHW outputs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GridLayout:
    """
    Stride descriptor mapping (anchor, entry, cell) to a flat buffer offset.
    """

    side: int
    coords: int
    num_classes: int
    anchor_stride: int
    entry_stride: int
    cell_stride: int

    def __post_init__(self) -> None:
        if self.side <= 0:
            raise ValueError("side must be > 0")
        if self.coords < 0 or self.num_classes < 0:
            raise ValueError("coords and num_classes must be >= 0")

    @property
    def area(self) -> int:
        return self.side * self.side

    @property
    def entries(self) -> int:
        return self.coords + 1 + self.num_classes

    def size(self, num_anchors: int) -> int:
        return num_anchors * self.entries * self.area

    @classmethod
    def channel_major(cls, side: int, coords: int, num_classes: int) -> "GridLayout":
        area = side * side
        return cls(
            side=side,
            coords=coords,
            num_classes=num_classes,
            anchor_stride=area * (coords + 1 + num_classes),
            entry_stride=area,
            cell_stride=1,
        )

    @classmethod
    def channel_last(cls, side: int, coords: int, num_classes: int) -> "GridLayout":
        entries = coords + 1 + num_classes
        return cls(
            side=side,
            coords=coords,
            num_classes=num_classes,
            anchor_stride=side * side * entries,
            entry_stride=1,
            cell_stride=entries,
        )

    def entry_index(self, location, entry):
        """
        Offset of `entry` for flattened `location`. Accepts ints or NumPy
        integer arrays (broadcast together).
        """

        anchor = location // self.area
        cell = location % self.area
        return anchor * self.anchor_stride + entry * self.entry_stride + cell * self.cell_stride


def entry_index(side: int, coords: int, num_classes: int, location: int, entry: int) -> int:
    if side <= 0:
        raise ValueError("side must be > 0")
    if location < 0:
        raise ValueError(f"location must be >= 0 (got {location})")
    entries = coords + 1 + num_classes
    if not 0 <= entry < entries:
        raise ValueError(f"entry must be in [0, {entries}) (got {entry})")

    area = side * side
    anchor = location // area
    cell = location % area
    return anchor * area * entries + entry * area + cell
