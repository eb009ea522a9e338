import unittest

import numpy as np

from polydet_kit.errors import ShapeMismatchError
from polydet_kit.postprocess import (
    Attr,
    boxes_to_polygons,
    decode,
    decode_oriented,
    oriented_boxes_to_polygons,
    oriented_nms_boxes,
    reduce_scores,
    transpose_output,
)


def _raw(records) -> np.ndarray:
    """(detections, attributes) rows -> native (1, attributes, detections) output."""
    return np.asarray(records, dtype=np.float32).T[None, ...]


class TestDecode(unittest.TestCase):
    def test_transpose_puts_records_last(self) -> None:
        out = _raw([[1, 2, 3, 4, 0.5], [5, 6, 7, 8, 0.6]])
        self.assertEqual(out.shape, (1, 5, 2))
        records = transpose_output(out, num_class=1)
        self.assertEqual(records.shape, (1, 2, 5))
        self.assertTrue(np.array_equal(records[0, 1], np.array([5, 6, 7, 8, 0.6], dtype=np.float32)))

    def test_axis_aligned_box_is_y1_x1_y2_x2(self) -> None:
        cx, cy, w, h = 50.5, 25.25, 20.5, 10.5
        boxes, raw_scores = decode(_raw([[cx, cy, w, h, 0.9]]), num_class=1)
        self.assertEqual(boxes.shape, (1, 4))
        y1, x1, y2, x2 = boxes[0]
        self.assertEqual(x1, np.float32(cx - w / 2))
        self.assertEqual(y1, np.float32(cy - h / 2))
        self.assertEqual(x2, x1 + np.float32(w))
        self.assertEqual(y2, y1 + np.float32(h))

    def test_example_box(self) -> None:
        boxes, _ = decode(_raw([[50, 25, 20, 10, 0.9]]), num_class=1)
        self.assertTrue(np.array_equal(boxes, np.array([[20, 40, 30, 60]], dtype=np.float32)))

    def test_single_class_keeps_detection_axis(self) -> None:
        out = _raw([[10, 10, 4, 4, 0.3], [20, 20, 4, 4, 0.7], [30, 30, 4, 4, 0.1]])
        boxes, raw_scores = decode(out, num_class=1)
        self.assertEqual(raw_scores.shape, (3, 1))
        scores, classes = reduce_scores(raw_scores)
        self.assertEqual(scores.shape, (3,))
        self.assertTrue(np.allclose(scores, [0.3, 0.7, 0.1]))
        self.assertTrue(np.array_equal(classes, [0, 0, 0]))

    def test_single_detection_single_class(self) -> None:
        boxes, raw_scores = decode(_raw([[10, 10, 4, 4, 0.3]]), num_class=1)
        self.assertEqual(boxes.shape, (1, 4))
        self.assertEqual(raw_scores.shape, (1, 1))

    def test_class_block_ignores_extra_attributes(self) -> None:
        # Two classes followed by an unrelated trailing attribute.
        _, raw_scores = decode(_raw([[0, 0, 1, 1, 0.2, 0.8, 99.0]]), num_class=2)
        self.assertTrue(np.allclose(raw_scores, [[0.2, 0.8]]))

    def test_empty_output(self) -> None:
        out = np.zeros((1, 6, 0), dtype=np.float32)
        boxes, raw_scores = decode(out, num_class=2)
        self.assertEqual(boxes.shape, (0, 4))
        scores, classes = reduce_scores(raw_scores)
        self.assertEqual(scores.shape, (0,))
        self.assertEqual(classes.shape, (0,))

    def test_shape_mismatch(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            decode(np.zeros((1, 5, 10), dtype=np.float32), num_class=3)
        with self.assertRaises(ShapeMismatchError):
            decode(np.zeros((5, 10), dtype=np.float32), num_class=1)
        with self.assertRaises(ShapeMismatchError):
            decode(np.zeros((2, 5, 10), dtype=np.float32), num_class=1)
        with self.assertRaises(ValueError):
            decode(np.zeros((1, 5, 10), dtype=np.float32), num_class=0)

    def test_oriented_needs_rotation_slot(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            decode_oriented(np.zeros((1, 5, 10), dtype=np.float32), num_class=1)

    def test_oriented_rotation_is_last_attribute(self) -> None:
        out = _raw([[50, 25, 20, 10, 0.1, 0.9, 0.3]])
        boxes, raw_scores = decode_oriented(out, num_class=2)
        self.assertEqual(boxes.shape, (1, 5))
        self.assertTrue(np.allclose(boxes[0], [50, 25, 20, 10, 0.3]))
        self.assertTrue(np.allclose(raw_scores, [[0.1, 0.9]]))

    def test_named_offsets(self) -> None:
        self.assertEqual([int(a) for a in Attr], [0, 1, 2, 3, 4])


class TestReduceScores(unittest.TestCase):
    def test_max_and_argmax(self) -> None:
        raw = np.array([[0.1, 0.9, 0.2], [0.7, 0.1, 0.2]], dtype=np.float32)
        scores, classes = reduce_scores(raw)
        self.assertTrue(np.allclose(scores, [0.9, 0.7]))
        self.assertTrue(np.array_equal(classes, [1, 0]))

    def test_tie_goes_to_first_class(self) -> None:
        scores, classes = reduce_scores(np.array([[0.5, 0.5, 0.1]], dtype=np.float32))
        self.assertEqual(int(classes[0]), 0)
        self.assertAlmostEqual(float(scores[0]), 0.5)

    def test_rejects_flat_scores(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            reduce_scores(np.array([0.1, 0.2], dtype=np.float32))


class TestPolygons(unittest.TestCase):
    def test_axis_aligned_corner_order(self) -> None:
        polys = boxes_to_polygons(np.array([[20, 40, 30, 60]], dtype=np.float32))
        self.assertEqual(polys.shape, (1, 4, 2))
        self.assertTrue(np.array_equal(polys[0], [[20, 40], [20, 60], [30, 60], [30, 40]]))

    def test_axis_aligned_empty(self) -> None:
        self.assertEqual(boxes_to_polygons(np.zeros((0, 4), dtype=np.float32)).shape, (0, 4, 2))

    def test_oriented_scaled_and_yx(self) -> None:
        boxes = np.array([[50, 25, 20, 10, 0.0]], dtype=np.float32)
        polys = oriented_boxes_to_polygons(boxes, ratios=(1.0, 2.0))
        # Source space: cx=50, cy=50, w=20, h=20.
        expected = [[40, 40], [40, 60], [60, 60], [60, 40]]
        self.assertTrue(np.allclose(polys[0], expected))

    def test_oriented_rotation_not_scaled(self) -> None:
        boxes = np.array([[0, 0, 4, 2, np.pi / 2]], dtype=np.float32)
        polys = oriented_boxes_to_polygons(boxes, ratios=(3.0, 3.0))
        # (x, y) corners (3, -6), (3, 6), (-3, 6), (-3, -6) as (y, x).
        expected = [[-6, 3], [6, 3], [6, -3], [-6, -3]]
        self.assertTrue(np.allclose(polys[0], expected, atol=1e-5))

    def test_oriented_nms_surrogate_and_envelope(self) -> None:
        boxes = np.array([[50, 25, 20, 10, 0.0]], dtype=np.float32)
        self.assertTrue(np.array_equal(oriented_nms_boxes(boxes), [[50, 25, 20, 10]]))
        self.assertTrue(np.allclose(oriented_nms_boxes(boxes, envelope=True), [[20, 40, 30, 60]]))


if __name__ == "__main__":
    unittest.main()
