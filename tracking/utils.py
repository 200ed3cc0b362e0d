"""Utility functions for object tracking.

This module provides the package logger, bounding box conversions and the
output geometry clamp used by the tracker.
"""

from __future__ import annotations

import logging
import numpy as np

LOGGER = logging.getLogger("tracking")
if not LOGGER.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.INFO)


def ltwh2xyxy(x: np.ndarray) -> np.ndarray:
    """Convert bounding boxes from (left, top, width, height) to (x1, y1, x2, y2) format.

    Args:
        x: Bounding boxes in ltwh format, shape (N, 4) or (4,).

    Returns:
        Bounding boxes in xyxy format.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.empty_like(x)
    y[..., 0] = x[..., 0]  # x1
    y[..., 1] = x[..., 1]  # y1
    y[..., 2] = x[..., 0] + x[..., 2]  # x2
    y[..., 3] = x[..., 1] + x[..., 3]  # y2
    return y


def bbox_iou(box1: np.ndarray, box2: np.ndarray) -> np.ndarray:
    """Calculate IoU between two sets of bounding boxes in xyxy format.

    Pairs whose union is empty (two zero-area boxes) get an IoU of 0.

    Args:
        box1: First set of boxes, shape (N, 4) in xyxy format.
        box2: Second set of boxes, shape (M, 4) in xyxy format.

    Returns:
        IoU matrix of shape (N, M).
    """
    box1 = np.asarray(box1, dtype=np.float64)
    box2 = np.asarray(box2, dtype=np.float64)

    if box1.ndim == 1:
        box1 = box1.reshape(1, -1)
    if box2.ndim == 1:
        box2 = box2.reshape(1, -1)

    b1_x1, b1_y1, b1_x2, b1_y2 = box1.T
    b2_x1, b2_y1, b2_x2, b2_y2 = box2.T

    inter_w = np.clip(np.minimum(b1_x2[:, None], b2_x2) - np.maximum(b1_x1[:, None], b2_x1), 0, None)
    inter_h = np.clip(np.minimum(b1_y2[:, None], b2_y2) - np.maximum(b1_y1[:, None], b2_y1), 0, None)
    inter_area = inter_w * inter_h

    # Union area
    b1_area = (b1_x2 - b1_x1) * (b1_y2 - b1_y1)
    b2_area = (b2_x2 - b2_x1) * (b2_y2 - b2_y1)
    union_area = b1_area[:, None] + b2_area - inter_area

    ious = np.zeros_like(inter_area)
    np.divide(inter_area, union_area, out=ious, where=union_area > 0)
    return ious


def clamp_bbox(bbox, min_size: float = 1.0) -> tuple[float, float, float, float]:
    """Clamp an ltwh box so the origin is non-negative and both sides are at least ``min_size``."""
    x, y, w, h = (float(v) for v in bbox)
    return max(0.0, x), max(0.0, y), max(min_size, w), max(min_size, h)
