from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import cv2

from yolo_edge import DetectorSettings, Frame, PixelFormat, load_detector, load_detector_settings


def read_frame(path: str) -> Frame:
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    bgra = cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    return Frame(pixels=bgra, pixel_format=PixelFormat.BGRA)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a YOLO model on one image and print detections.")
    parser.add_argument("image", help="Path to the input image.")
    parser.add_argument("--config", type=Path, default=None, help="JSON detector config (overrides --model/--labels).")
    parser.add_argument("--model", default="models/yolov5n-fp16-img640.onnx")
    parser.add_argument("--labels", default="models/coco.txt")
    parser.add_argument("--backend", default=None, choices=["onnxruntime", "torchscript"])
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="NMS IoU threshold.")
    parser.add_argument("--threads", type=int, default=1)
    parser.add_argument("--labels-have-background", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.config is not None:
        settings = load_detector_settings(args.config)
    else:
        settings = DetectorSettings(
            model_path=args.model,
            labels_path=args.labels,
            backend=args.backend,
            labels_have_background=args.labels_have_background,
            confidence_threshold=args.conf,
            iou_threshold=args.iou,
            thread_count=args.threads,
        )

    detector = load_detector(**settings.as_kwargs())
    result = detector.run_inference(read_frame(args.image))
    if result is None:
        print("No result for this frame (see log for the failing stage).")
        return 1

    print(f"Inference: {result.inference_time_ms:.1f} ms, {len(result.detections)} detections")
    for det in result.detections:
        r = det.rect
        print(f"{det.label:>15s} {det.confidence:.2f} x={r.x:.1f} y={r.y:.1f} w={r.width:.1f} h={r.height:.1f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
