from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    max_detections: Optional[int] = None


def stable_descending(scores: np.ndarray) -> np.ndarray:
    """
    Indices that sort `scores` high to low; ties keep their input order.
    """

    return np.argsort(-np.asarray(scores), kind="stable")


def box_iou(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU between one xyxy box (4,) and each row of `boxes` (N, 4).
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    box = np.asarray(box, dtype=np.float64)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    area = max(0.0, box[2] - box[0]) * max(0.0, box[3] - box[1])
    areas = np.maximum(0.0, boxes[:, 2] - boxes[:, 0]) * np.maximum(0.0, boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    iou = np.zeros_like(inter)
    np.divide(inter, union, out=iou, where=union > 0)
    return iou


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = stable_descending(scores)
    keep = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(i)
        if order.size == 1:
            break

        iou = box_iou(boxes[i], boxes[order[1:]])
        order = order[1:][iou <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def batched_nms(boxes: np.ndarray, scores: np.ndarray, class_ids: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Per-class NMS: boxes only suppress boxes of the same class. The merged
    indices are ordered by score, ties resolved by input order.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    per_class = NMSConfig(iou_threshold=cfg.iou_threshold)
    kept = []
    for cls in np.unique(class_ids):
        idx = np.where(class_ids == cls)[0]
        keep_local = nms(boxes[idx], scores[idx], per_class)
        kept.extend(idx[keep_local].tolist())

    if not kept:
        return np.empty((0,), dtype=np.int64)

    kept = np.sort(np.array(kept, dtype=np.int64))
    kept = kept[stable_descending(scores[kept])]
    if cfg.max_detections is not None:
        kept = kept[: cfg.max_detections]
    return kept
