import unittest

import numpy as np

from region_kit.geometry import box_area, iou, iou_one_to_many, iou_xyxy
from region_kit.types import Detection


def _det(box, confidence=0.5, class_id=0) -> Detection:
    x1, y1, x2, y2 = box
    return Detection(class_id=class_id, class_label="tag", confidence=confidence, xmin=x1, ymin=y1, xmax=x2, ymax=y2)


class TestIoU(unittest.TestCase):
    def test_identical_boxes(self) -> None:
        a = _det((10, 20, 110, 70))
        self.assertEqual(iou(a, a), 1.0)

    def test_disjoint_boxes(self) -> None:
        self.assertEqual(iou_xyxy((0, 0, 10, 10), (20, 20, 30, 30)), 0.0)
        # overlapping in x only
        self.assertEqual(iou_xyxy((0, 0, 10, 10), (5, 20, 15, 30)), 0.0)

    def test_touching_edges(self) -> None:
        self.assertEqual(iou_xyxy((0, 0, 10, 10), (10, 0, 20, 10)), 0.0)

    def test_partial_overlap(self) -> None:
        # inter 50, union 150
        self.assertAlmostEqual(iou_xyxy((0, 0, 10, 10), (5, 0, 15, 10)), 50.0 / 150.0)

    def test_contained_box(self) -> None:
        self.assertAlmostEqual(iou_xyxy((0, 0, 100, 100), (0, 0, 100, 90)), 0.9)

    def test_degenerate_boxes_give_zero(self) -> None:
        self.assertEqual(iou_xyxy((5, 5, 5, 5), (5, 5, 5, 5)), 0.0)
        # inverted box from a malformed anchor
        self.assertEqual(iou_xyxy((10, 10, 0, 0), (0, 0, 10, 10)), 0.0)

    def test_symmetric(self) -> None:
        a, b = (0, 0, 40, 30), (10, 5, 60, 50)
        self.assertAlmostEqual(iou_xyxy(a, b), iou_xyxy(b, a))

    def test_box_area(self) -> None:
        self.assertEqual(box_area((0, 0, 10, 5)), 50.0)


class TestIoUOneToMany(unittest.TestCase):
    def test_matches_scalar(self) -> None:
        box = (0, 0, 10, 10)
        boxes = [(5, 0, 15, 10), (20, 20, 30, 30), (0, 0, 10, 10), (3, 3, 3, 3), (10, 10, 0, 0)]
        out = iou_one_to_many(np.array(box), np.array(boxes))
        expected = [iou_xyxy(box, b) for b in boxes]
        self.assertTrue(np.allclose(out, expected))

    def test_empty(self) -> None:
        out = iou_one_to_many(np.array((0, 0, 1, 1)), np.zeros((0, 4)))
        self.assertEqual(out.shape, (0,))


if __name__ == "__main__":
    unittest.main()
