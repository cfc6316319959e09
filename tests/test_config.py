import json
import tempfile
import unittest
from pathlib import Path

from yolo_edge.config import DetectorSettings, load_detector_settings


class TestDetectorSettings(unittest.TestCase):
    def _write_config(self, payload) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "detector.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_load_ok(self) -> None:
        path = self._write_config(
            {
                "model_path": "models/yolov5n-int8-img320.onnx",
                "labels_path": "models/coco.txt",
                "confidence_threshold": 0.4,
                "max_detections": None,
                "thread_count": 4,
            }
        )
        settings = load_detector_settings(path)
        self.assertIsInstance(settings, DetectorSettings)
        self.assertEqual(settings.confidence_threshold, 0.4)
        self.assertIsNone(settings.max_detections)
        self.assertEqual(settings.thread_count, 4)
        self.assertEqual(settings.iou_threshold, 0.45)
        self.assertEqual(settings.as_kwargs()["labels_path"], "models/coco.txt")

    def test_unknown_keys_rejected(self) -> None:
        path = self._write_config({"model_path": "m.onnx", "labels_path": "l.txt", "mean": 127.5})
        with self.assertRaises(ValueError):
            load_detector_settings(path)

    def test_missing_required_key(self) -> None:
        path = self._write_config({"model_path": "m.onnx"})
        with self.assertRaises(ValueError):
            load_detector_settings(path)

    def test_type_errors(self) -> None:
        for bad in ({"thread_count": True}, {"confidence_threshold": "high"}, {"default_width": None}):
            payload = {"model_path": "m.onnx", "labels_path": "l.txt", **bad}
            with self.assertRaises(ValueError):
                load_detector_settings(self._write_config(payload))

    def test_out_of_range(self) -> None:
        path = self._write_config({"model_path": "m.onnx", "labels_path": "l.txt", "iou_threshold": 2})
        with self.assertRaises(ValueError):
            load_detector_settings(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_settings(Path("/nonexistent/detector.json"))

    def test_invalid_json(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "detector.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_detector_settings(path)


if __name__ == "__main__":
    unittest.main()
