from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .colors import color_for_class
from .errors import ConfigurationMismatchError
from .nms import NMSConfig, batched_nms
from .types import Detection, Rect

LOGGER = logging.getLogger(__name__)

# cx, cy, w, h, objectness
BOX_FIELDS = 5


@dataclass(frozen=True)
class PostConfig:
    """
    Konfigurasi untuk post processing output model.
    """

    num_classes: int
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    max_detections: Optional[int] = 300
    # Clamp rects to the source image before NMS; off so decoded rects stay analytic.
    clip_to_image: bool = False

    def __post_init__(self) -> None:
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 or None")

    @property
    def stride(self) -> int:
        return BOX_FIELDS + self.num_classes


class DetectionPostprocessor:
    """
    Post-process untuk raw output YOLO (per image):

    Layout yang didukung: (N, 5 + C) as [cx, cy, w, h, obj, class_scores...],
    with box geometry normalized to the model input. The same values may come
    as a flat vector or with a leading batch axis of 1.

    Output: detections in source-image pixels, highest confidence first.
    """

    def __init__(self, cfg: PostConfig):
        self.cfg = cfg

    def process(self, preds: np.ndarray, image_size: Tuple[int, int]) -> List[Detection]:
        """
        Args:
            preds: raw model output for a single image
            image_size: (width, height) of the source frame
        """

        candidates = self._as_candidates(preds)
        if candidates.shape[0] == 0:
            return []

        scores, class_ids = self._score(candidates)
        keep = scores >= self.cfg.conf_threshold
        if not np.any(keep):
            LOGGER.debug("No candidates above threshold %.2f", self.cfg.conf_threshold)
            return []
        candidates, scores, class_ids = candidates[keep], scores[keep], class_ids[keep]

        boxes_xyxy = self._to_pixel_xyxy(candidates[:, :4], image_size)
        if self.cfg.clip_to_image:
            boxes_xyxy = self._clip(boxes_xyxy, image_size)

        nms_cfg = NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections)
        kept = batched_nms(boxes_xyxy, scores, class_ids, nms_cfg)
        LOGGER.debug("Kept %d of %d candidates after NMS", kept.size, scores.size)

        detections = []
        for i in kept:
            x1, y1, x2, y2 = boxes_xyxy[i]
            cls_id = int(class_ids[i])
            detections.append(
                Detection(
                    confidence=float(scores[i]),
                    class_index=cls_id,
                    rect=Rect(x=float(x1), y=float(y1), width=float(x2 - x1), height=float(y2 - y1)),
                    color=color_for_class(cls_id),
                )
            )
        return detections

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _as_candidates(self, preds: np.ndarray) -> np.ndarray:
        """
        Reshape raw output into (N, 5 + C) rows, rejecting layouts that do not
        match the configured class count.
        """

        p = np.asarray(preds, dtype=np.float32)
        stride = self.cfg.stride

        if p.ndim == 3:
            if p.shape[0] != 1:
                raise ConfigurationMismatchError(
                    f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time."
                )
            p = p[0]

        if p.ndim == 2:
            if p.shape[1] != stride:
                raise ConfigurationMismatchError(
                    f"Output rows have {p.shape[1]} values, expected {stride} (5 + {self.cfg.num_classes} classes)"
                )
            return p

        if p.ndim == 1:
            if p.size % stride != 0:
                raise ConfigurationMismatchError(
                    f"Output size {p.size} is not a multiple of the candidate stride {stride} "
                    f"(5 + {self.cfg.num_classes} classes)"
                )
            return p.reshape(-1, stride)

        raise ConfigurationMismatchError(f"Unsupported output shape: {p.shape}")

    def _score(self, candidates: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        objectness = candidates[:, 4]
        class_scores = candidates[:, BOX_FIELDS:]
        class_ids = np.argmax(class_scores, axis=1)
        class_conf = class_scores[np.arange(class_scores.shape[0]), class_ids]
        return objectness * class_conf, class_ids

    def _to_pixel_xyxy(self, boxes_cxcywh: np.ndarray, image_size: Tuple[int, int]) -> np.ndarray:
        """
        Normalized center/size -> corner box scaled to the source image.
        """

        image_w, image_h = image_size
        cx, cy, w_box, h_box = boxes_cxcywh.astype(np.float64).T
        x1 = (cx - w_box / 2) * image_w
        y1 = (cy - h_box / 2) * image_h
        x2 = x1 + w_box * image_w
        y2 = y1 + h_box * image_h
        return np.stack([x1, y1, x2, y2], axis=1)

    def _clip(self, boxes: np.ndarray, image_size: Tuple[int, int]) -> np.ndarray:
        image_w, image_h = image_size
        boxes = boxes.copy()
        boxes[:, [0, 2]] = np.clip(boxes[:, [0, 2]], 0, image_w)
        boxes[:, [1, 3]] = np.clip(boxes[:, [1, 3]], 0, image_h)
        return boxes
