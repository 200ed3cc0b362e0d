"""Single track class for object tracking.

This module provides the STrack class, which wraps one Kalman filter with
class voting and the track lifecycle state machine.
"""

from __future__ import annotations

from collections import Counter

import numpy as np

from .base import VISIBLE_STATES, TrackState
from .config import TrackerConfig
from .kalman_filter import KalmanFilterXYWH
from .utils import ltwh2xyxy


class STrack:
    """Single object track that uses Kalman filtering for state estimation.

    A track starts TENTATIVE and is confirmed after ``confirm_frames`` consecutive matches.
    A tentative track is discarded on its first miss; a confirmed track becomes LOST and
    is confirmed again on the next match. Removing LOST tracks that were missed for too
    long is the tracker's job.

    Attributes:
        track_id: Unique identifier of the track.
        kalman_filter: Kalman filter owned by this track.
        state: Current lifecycle state.
        age: Frames since the track was created.
        time_since_update: Frames since the last successful match.
        consecutive_hits: Matches in a row, reset on a miss.
        score: Confidence of the last matched detection.
        class_votes: Number of matched detections per class label.
        cls: Class label with the most votes.
    """

    def __init__(self, track_id: int, bbox, cls: str, score: float, config: TrackerConfig | None = None):
        """Initialize a new tentative track from an unmatched detection.

        Args:
            track_id: Unique identifier assigned by the tracker.
            bbox: Initial box (x, y, w, h).
            cls: Class label of the detection.
            score: Confidence score of the detection.
            config: Tracker configuration; defaults to ``TrackerConfig()``.
        """
        self.config = config or TrackerConfig()
        self.track_id = track_id
        self.kalman_filter = KalmanFilterXYWH(bbox, self.config)
        self.state = TrackState.TENTATIVE
        self.age = 0
        self.time_since_update = 0
        self.consecutive_hits = 1
        self.score = score

        # Class voting: track which class is seen most often
        self.class_votes: Counter[str] = Counter({cls: 1})
        self.cls = cls

    def predict(self) -> np.ndarray:
        """Advance the track by one frame and return the predicted box."""
        predicted = self.kalman_filter.predict()
        self.age += 1
        self.time_since_update += 1
        return predicted

    def update(self, bbox, cls: str, score: float) -> None:
        """Update the track with a matched detection.

        Args:
            bbox: Matched box (x, y, w, h).
            cls: Class label of the matched detection.
            score: Confidence score of the matched detection.
        """
        if self.state == TrackState.DELETED:
            return

        self.kalman_filter.update(bbox)
        self.time_since_update = 0
        self.consecutive_hits += 1
        self.score = score

        self.class_votes[cls] += 1
        # Ties go to the label seen first
        self.cls = self.class_votes.most_common(1)[0][0]

        if self.state == TrackState.TENTATIVE and self.consecutive_hits >= self.config.confirm_frames:
            self.state = TrackState.CONFIRMED
        elif self.state == TrackState.LOST:
            self.state = TrackState.CONFIRMED
            self.consecutive_hits = 1

    def mark_missed(self) -> None:
        """Mark the track as having no match this frame."""
        self.consecutive_hits = 0

        if self.state == TrackState.TENTATIVE:
            # Unproven tracks are dropped on their first miss
            self.state = TrackState.DELETED
        elif self.state == TrackState.CONFIRMED:
            self.state = TrackState.LOST

    def mark_removed(self) -> None:
        """Mark the track as removed."""
        self.state = TrackState.DELETED

    def get_bbox(self) -> np.ndarray:
        """Return the current box estimate (x, y, w, h)."""
        return self.kalman_filter.get_measurement()

    @property
    def bbox(self) -> np.ndarray:
        """Current box estimate (x, y, w, h)."""
        return self.get_bbox()

    @property
    def xyxy(self) -> np.ndarray:
        """Current box estimate as (min x, min y, max x, max y)."""
        return ltwh2xyxy(self.get_bbox())

    def get_velocity(self) -> tuple[float, float]:
        """Return the estimated velocity (vx, vy) of the box origin."""
        return self.kalman_filter.get_velocity()

    @property
    def is_confirmed(self) -> bool:
        """Whether the track is CONFIRMED."""
        return self.state == TrackState.CONFIRMED

    @property
    def is_visible(self) -> bool:
        """Whether the track is reported to consumers (CONFIRMED or LOST)."""
        return self.state in VISIBLE_STATES

    def __repr__(self) -> str:
        """Return a string representation including track id, state and age."""
        return f"OT_{self.track_id}_{self.state}_(age={self.age})"
