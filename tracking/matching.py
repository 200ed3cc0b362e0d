"""Matching algorithms for object tracking.

This module provides IoU distance and the assignment functions used for data
association in multi-object tracking.
"""

from __future__ import annotations

import numpy as np
import scipy.optimize

from .utils import bbox_iou, ltwh2xyxy


def iou(a, b) -> float:
    """Compute the Intersection over Union of two (x, y, w, h) boxes.

    Args:
        a: First box (x, y, w, h).
        b: Second box (x, y, w, h).

    Returns:
        IoU in [0, 1]; 0 when both boxes are empty.
    """
    return float(bbox_iou(ltwh2xyxy(a), ltwh2xyxy(b))[0, 0])


def _as_ltwh(item) -> np.ndarray:
    """Get an (x, y, w, h) box from a track, a detection or a raw box."""
    if hasattr(item, "get_bbox"):
        return item.get_bbox()
    if hasattr(item, "bbox"):
        return np.asarray(item.bbox, dtype=np.float64)
    return np.asarray(item, dtype=np.float64)


def iou_distance(atracks: list, btracks: list) -> np.ndarray:
    """Compute cost based on Intersection over Union (IoU) between tracks and detections.

    Args:
        atracks: List of tracks 'a' (STrack) or bounding boxes in (x, y, w, h) format.
        btracks: List of detections 'b' (Detection) or bounding boxes in (x, y, w, h) format.

    Returns:
        Cost matrix 1 - IoU with shape (len(atracks), len(btracks)).
    """
    if not len(atracks) or not len(btracks):
        return np.zeros((len(atracks), len(btracks)), dtype=np.float64)

    atlbrs = ltwh2xyxy(np.asarray([_as_ltwh(t) for t in atracks]))
    btlbrs = ltwh2xyxy(np.asarray([_as_ltwh(d) for d in btracks]))
    return 1 - bbox_iou(atlbrs, btlbrs)  # cost matrix


def _unmatched(size: int, matched: set) -> list[int]:
    return [i for i in range(size) if i not in matched]


def greedy_assignment(cost_matrix: np.ndarray, thresh: float) -> tuple:
    """Match rows to columns greedily by ascending cost.

    All (row, column) pairs are visited from cheapest to most expensive; a pair is accepted
    when neither its row nor its column has been claimed yet. The scan stops at the first
    pair costing more than ``thresh``. The result is not always the global optimum, but for
    the tens of objects seen per frame it rarely differs and is cheap to compute.

    Args:
        cost_matrix: The matrix containing cost values for assignments, with shape (N, M).
        thresh: Maximum cost for an assignment to be valid.

    Returns:
        Tuple of (matched_indices, unmatched_a, unmatched_b).
    """
    cost_matrix = np.asarray(cost_matrix, dtype=np.float64)
    num_a, num_b = cost_matrix.shape
    if cost_matrix.size == 0:
        return np.empty((0, 2), dtype=int), list(range(num_a)), list(range(num_b))

    # Stable sort keeps row-major order among equal costs
    order = np.argsort(cost_matrix, axis=None, kind="stable")
    rows, cols = np.unravel_index(order, cost_matrix.shape)

    matched_a, matched_b = set(), set()
    matches = []
    for r, c in zip(rows.tolist(), cols.tolist()):
        if r in matched_a or c in matched_b:
            continue
        if cost_matrix[r, c] > thresh:
            break  # no cheaper pairs remain
        matches.append([r, c])
        matched_a.add(r)
        matched_b.add(c)

    matches = np.asarray(matches, dtype=int).reshape(-1, 2)
    return matches, _unmatched(num_a, matched_a), _unmatched(num_b, matched_b)


def linear_assignment(cost_matrix: np.ndarray, thresh: float, method: str = "greedy") -> tuple:
    """Perform assignment using either greedy matching or scipy's optimal solver.

    Args:
        cost_matrix: The matrix containing cost values for assignments, with shape (N, M).
        thresh: Maximum cost for an assignment to be valid.
        method: 'greedy' for greedy matching, 'hungarian' for scipy.optimize.linear_sum_assignment.

    Returns:
        Tuple of (matched_indices, unmatched_a, unmatched_b).
    """
    if method == "greedy":
        return greedy_assignment(cost_matrix, thresh)
    if method != "hungarian":
        raise ValueError(f"Unknown assignment method: {method!r}")

    cost_matrix = np.asarray(cost_matrix, dtype=np.float64)
    num_a, num_b = cost_matrix.shape
    if cost_matrix.size == 0:
        return np.empty((0, 2), dtype=int), list(range(num_a)), list(range(num_b))

    x, y = scipy.optimize.linear_sum_assignment(cost_matrix)
    matches = [[int(r), int(c)] for r, c in zip(x, y) if cost_matrix[r, c] <= thresh]
    matches = np.asarray(matches, dtype=int).reshape(-1, 2)
    return (
        matches,
        _unmatched(num_a, set(matches[:, 0].tolist())),
        _unmatched(num_b, set(matches[:, 1].tolist())),
    )
