import json
import tempfile
import unittest
from pathlib import Path

from polydet_kit.metadata import load_labels


class TestLoadLabels(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.dir = Path(tmpdir.name)

    def test_json_list(self) -> None:
        path = self.dir / "labels.json"
        path.write_text(json.dumps(["plane", "ship", "storage tank"]), encoding="utf-8")
        self.assertEqual(load_labels(path), ["plane", "ship", "storage tank"])

    def test_json_names_mapping(self) -> None:
        path = self.dir / "labels.json"
        path.write_text(json.dumps({"names": {"1": "ship", "0": "plane"}}), encoding="utf-8")
        self.assertEqual(load_labels(path), ["plane", "ship"])

    def test_names_block(self) -> None:
        path = self.dir / "metadata.yaml"
        path.write_text(
            "task: obb\nnames:\n  0: plane\n  1: 'ship'\n  2: \"harbor\"\nimgsz: [640, 640]\n",
            encoding="utf-8",
        )
        self.assertEqual(load_labels(path), ["plane", "ship", "harbor"])

    def test_names_block_with_gap_rejected(self) -> None:
        path = self.dir / "metadata.yaml"
        path.write_text("names:\n  0: plane\n  2: ship\n", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_labels(path)

    def test_empty_rejected(self) -> None:
        path = self.dir / "labels.json"
        path.write_text("[]", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_labels(path)

    def test_invalid_json(self) -> None:
        path = self.dir / "labels.json"
        path.write_text("[plane", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_labels(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_labels(self.dir / "nope.json")


if __name__ == "__main__":
    unittest.main()
