import unittest

import numpy as np

from region_kit.postprocess import RegionPostConfig, RegionPostprocessor
from region_kit.runtime import RegionPipeline
from region_kit.types import RegionConfigError, RegionLayer
from region_outputs import TINY_ANCHORS, make_region_output, set_prediction


LABELS = ("ball", "goal")
LAYERS = {
    "yolo_13": RegionLayer(name="yolo_13", num=6, classes=2, mask=(3, 4, 5), anchors=TINY_ANCHORS),
    "yolo_26": RegionLayer(name="yolo_26", num=6, classes=2, mask=(0, 1, 2), anchors=TINY_ANCHORS),
}


def _tiny_outputs():
    out13 = make_region_output(side=13, num_anchors=3, num_classes=2)
    out26 = make_region_output(side=26, num_anchors=3, num_classes=2)
    # Same ball seen on both scales: coarse cell (6, 6) and fine cell (12, 12), both centered at 208.
    set_prediction(out13, anchor=0, row=6, col=6, box=(0.5, 0.5, 0.0, 0.0), objectness=0.9, class_scores=[0.9, 0.0])
    set_prediction(
        out26,
        anchor=2,
        row=12,
        col=12,
        box=(1.0, 1.0, np.log(81.0 / 37.0), np.log(82.0 / 58.0)),
        objectness=0.8,
        class_scores=[0.9, 0.0],
    )
    # A goal far away on the fine scale.
    set_prediction(out26, anchor=0, row=1, col=1, box=(0.5, 0.5, 0.0, 0.0), objectness=0.7, class_scores=[0.0, 0.9])
    return {"yolo_13": out13, "yolo_26": out26}


class TestRegionPostprocessor(unittest.TestCase):
    def test_merges_scales_and_suppresses_duplicates(self) -> None:
        post = RegionPostprocessor(RegionPostConfig(conf_threshold=0.3, iou_threshold=0.4, labels=LABELS))
        dets = post.process(_tiny_outputs(), LAYERS, resized_size=(416, 416), orig_size=(640, 480))

        self.assertEqual([d.class_label for d in dets], ["ball", "goal"])
        self.assertAlmostEqual(dets[0].confidence, 0.81, places=5)
        self.assertAlmostEqual(dets[1].confidence, 0.63, places=5)
        self.assertTrue(all(d.confidence > 0 for d in dets))

    def test_decode_keeps_all_candidates(self) -> None:
        post = RegionPostprocessor(RegionPostConfig(labels=LABELS))
        dets = post.decode(_tiny_outputs(), LAYERS, resized_size=(416, 416), orig_size=(416, 416))
        self.assertEqual(len(dets), 3)

    def test_without_nms(self) -> None:
        post = RegionPostprocessor(RegionPostConfig(apply_nms=False, max_detections=2, labels=LABELS))
        dets = post.process(_tiny_outputs(), LAYERS, resized_size=(416, 416), orig_size=(416, 416))
        self.assertEqual(len(dets), 2)
        self.assertEqual([d.class_label for d in dets], ["ball", "ball"])
        self.assertGreater(dets[0].confidence, dets[1].confidence)

    def test_nothing_detected(self) -> None:
        outputs = {
            "yolo_13": make_region_output(side=13, num_anchors=3, num_classes=2),
            "yolo_26": make_region_output(side=26, num_anchors=3, num_classes=2),
        }
        post = RegionPostprocessor(RegionPostConfig())
        self.assertEqual(post.process(outputs, LAYERS, resized_size=(416, 416), orig_size=(416, 416)), [])

    def test_unknown_output_rejected(self) -> None:
        outputs = {"yolo_52": make_region_output(side=52, num_anchors=3, num_classes=2)}
        post = RegionPostprocessor(RegionPostConfig())
        with self.assertRaises(RegionConfigError) as ctx:
            post.process(outputs, LAYERS, resized_size=(416, 416), orig_size=(416, 416))
        self.assertEqual(ctx.exception.layer, "yolo_52")

    def test_bounding_box_contract(self) -> None:
        post = RegionPostprocessor(RegionPostConfig(labels=LABELS))
        dets = post.process(_tiny_outputs(), LAYERS, resized_size=(416, 416), orig_size=(416, 416))
        box = dets[0].as_bounding_box()
        self.assertEqual(set(box), {"class", "probability", "xmin", "ymin", "xmax", "ymax"})
        self.assertEqual(box["class"], "ball")
        self.assertIsInstance(box["xmin"], int)


class TestRegionPostConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = RegionPostConfig()
        self.assertEqual(cfg.conf_threshold, 0.3)
        self.assertEqual(cfg.iou_threshold, 0.4)
        self.assertEqual(cfg.nms_config().mode, "greedy")

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RegionPostConfig(conf_threshold=-0.1)
        with self.assertRaises(ValueError):
            RegionPostConfig(iou_threshold=2.0)
        with self.assertRaises(ValueError):
            RegionPostConfig(nms_mode="fast")
        with self.assertRaises(ValueError):
            RegionPostConfig(max_detections=0)


class TestRegionPipeline(unittest.TestCase):
    def test_runs_inference_and_postprocess(self) -> None:
        seen = []

        def infer(blob):
            seen.append(blob.shape)
            return _tiny_outputs()

        pipe = RegionPipeline(
            infer,
            list(LAYERS.values()),
            input_size=(416, 416),
            post_cfg=RegionPostConfig(labels=LABELS),
        )
        dets = pipe(np.zeros((1, 3, 416, 416), dtype=np.uint8), orig_size=(640, 480))
        self.assertEqual(seen, [(1, 3, 416, 416)])
        self.assertEqual([d.class_label for d in dets], ["ball", "goal"])
        self.assertIsNotNone(pipe.last_timing)
        self.assertTrue(all(t >= 0 for t in pipe.last_timing))

    def test_requires_layers(self) -> None:
        with self.assertRaises(ValueError):
            RegionPipeline(lambda blob: {}, [], input_size=(416, 416))


if __name__ == "__main__":
    unittest.main()
