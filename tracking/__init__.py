"""Standalone multi-object tracking module.

This module turns a per-frame stream of detections (class, confidence and a
normalized (x, y, w, h) box) into identity-preserving tracks with motion
estimates, using ByteTrack-style cascaded association.

Example usage:
    from tracking import BYTETracker, TrackerConfig

    # Create tracker
    config = TrackerConfig(high_thresh=0.5, iou_thresh=0.3, max_age=30)
    tracker = BYTETracker(config)

    # Update with the detections of each frame
    detections = [
        {"class": "car", "score": 0.92, "bbox": [0.10, 0.20, 0.15, 0.10]},
        {"class": "person", "score": 0.35, "bbox": [0.60, 0.40, 0.05, 0.20]},
    ]
    records = tracker.update(detections)

    for record in records:
        print(BYTETracker.format_id(record.id), record.cls, record.state, record.velocity)
"""

from .base import TrackState, VISIBLE_STATES
from .byte_tracker import BYTETracker
from .config import TrackerConfig
from .exceptions import InvalidDetectionError, TrackingException
from .gate import FrameGate, GatedTracker
from .kalman_filter import KalmanFilterXYWH
from .strack import STrack
from .types import Detection, TrackRecord, format_track_id
from . import matching

__all__ = [
    # Tracker
    "BYTETracker",
    "GatedTracker",
    "FrameGate",
    # Track classes
    "STrack",
    "TrackState",
    "VISIBLE_STATES",
    # Records
    "Detection",
    "TrackRecord",
    "format_track_id",
    # Configuration
    "TrackerConfig",
    # Errors
    "TrackingException",
    "InvalidDetectionError",
    # Kalman filter
    "KalmanFilterXYWH",
    # Matching module
    "matching",
]
