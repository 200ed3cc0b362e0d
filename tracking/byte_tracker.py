"""BYTETracker implementation for multi-object tracking.

This module provides the BYTETracker class for tracking multiple objects in video frames.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from .base import TrackState
from .config import TrackerConfig
from .exceptions import InvalidDetectionError
from .strack import STrack
from .types import Detection, TrackRecord, format_track_id
from .utils import LOGGER, clamp_bbox
from . import matching

DetectionLike = Union[Detection, Mapping[str, Any]]


class BYTETracker:
    """BYTETracker: cascaded multi-object tracker over per-frame detections.

    Every call to ``update`` runs one tracking cycle: all tracks are predicted forward,
    matched first against high-confidence detections and then, for the tracks left over,
    against low-confidence ones. Only unmatched high-confidence detections start new
    tracks, so noisy detections can keep an occluded track alive without creating
    identities of their own.

    The tracker is meant to be driven by a single caller, one frame at a time; it holds
    no locks (see ``tracking.gate`` for guarding the calling loop).

    Attributes:
        config: Tracker configuration.
        tracks: Active tracks in creation order.
        frame_id: Number of frames processed since creation or the last reset.

    Example:
        >>> tracker = BYTETracker()
        >>> for _ in range(3):
        ...     records = tracker.update([{"class": "car", "score": 0.9, "bbox": [0.1, 0.1, 0.1, 0.1]}])
        >>> [(r.id, str(r.state)) for r in records]
        [(1, 'CONFIRMED')]
    """

    def __init__(self, config: TrackerConfig | None = None):
        """Initialize a BYTETracker instance.

        Args:
            config: Tracker configuration; defaults to ``TrackerConfig()``.
        """
        self.config = config or TrackerConfig()
        self.tracks: list[STrack] = []
        self.frame_id = 0
        self._next_id = 1

        LOGGER.info("[TRACKER] ByteTrack multi-object tracker initialized")

    def update(self, detections: Iterable[DetectionLike]) -> list[TrackRecord]:
        """Update the tracker with the detections of one frame.

        Args:
            detections: Detections of the current frame, as Detection objects or mappings
                with 'class', 'score' and 'bbox' ([x, y, w, h], normalized) keys.

        Returns:
            Records of the CONFIRMED and LOST tracks, in creation order.

        Raises:
            InvalidDetectionError: Only when ``config.strict`` is set and a detection is malformed.
        """
        dets = self._parse_detections(detections)
        self.frame_id += 1

        # Step 1: Predict the current location of every track with KF
        active_tracks = [t for t in self.tracks if t.state != TrackState.DELETED]
        for track in active_tracks:
            track.predict()

        # Step 2: Split detections by confidence
        high_dets = [d for d in dets if d.score >= self.config.high_thresh]
        low_dets = [d for d in dets if d.score < self.config.high_thresh]

        # Step 3: First association, with high score detection boxes
        matches, u_track, u_detection = self._associate(active_tracks, high_dets)
        for itracked, idet in matches:
            self._apply(active_tracks[itracked], high_dets[idet])

        # Step 4: Second association, remaining tracks with low score detection boxes
        r_tracks = [active_tracks[i] for i in u_track]
        matches, u_track, _u_detection_second = self._associate(r_tracks, low_dets)
        for itracked, idet in matches:
            self._apply(r_tracks[itracked], low_dets[idet])

        for it in u_track:
            r_tracks[it].mark_missed()

        # Step 5: Init new tracks from unmatched high score detections only
        for inew in u_detection:
            det = high_dets[inew]
            self.tracks.append(STrack(self._next_id, det.bbox, det.cls, det.score, self.config))
            self._next_id += 1

        # Step 6: Remove dead tracks
        kept = []
        for track in self.tracks:
            if track.state == TrackState.LOST and track.time_since_update > self.config.max_age:
                track.mark_removed()
            if track.state != TrackState.DELETED:
                kept.append(track)
        self.tracks = kept

        output = self._get_output()
        LOGGER.debug(
            f"[TRACKER] frame {self.frame_id}: {len(high_dets)} high / {len(low_dets)} low detections, "
            f"{len(self.tracks)} tracks, {len(output)} reported"
        )
        return output

    def _parse_detections(self, detections: Iterable[DetectionLike]) -> list[Detection]:
        """Convert the input to Detection objects, skipping (or, in strict mode, rejecting) malformed ones."""
        parsed = []
        for i, det in enumerate(detections or []):
            try:
                if isinstance(det, Detection):
                    parsed.append(Detection.validated(det, index=i))
                else:
                    parsed.append(Detection.from_dict(det, index=i))
            except InvalidDetectionError as e:
                if self.config.strict:
                    raise
                LOGGER.warning(f"[TRACKER] Skipping malformed detection: {e.message}")
        return parsed

    def _associate(self, tracks: list[STrack], detections: list[Detection]) -> tuple:
        """Match tracks to detections by IoU of the predicted boxes."""
        dists = matching.iou_distance(tracks, detections)
        return matching.linear_assignment(dists, thresh=self.config.match_thresh, method=self.config.match_method)

    @staticmethod
    def _apply(track: STrack, det: Detection) -> None:
        track.update(det.bbox, det.cls, det.score)

    def _get_output(self) -> list[TrackRecord]:
        """Build the records of the tracks visible to consumers."""
        output = []
        for track in self.tracks:
            if not track.is_visible:
                continue
            output.append(
                TrackRecord(
                    id=track.track_id,
                    bbox=clamp_bbox(track.get_bbox(), self.config.min_box_size),
                    velocity=track.get_velocity(),
                    cls=track.cls,
                    state=track.state,
                    age=track.age,
                    score=float(track.score),
                )
            )
        return output

    @staticmethod
    def format_id(track_id: int) -> str:
        """Format a track id for display (e.g. 1 -> 'TRK-0001')."""
        return format_track_id(track_id)

    def get_active_count(self) -> int:
        """Return the number of CONFIRMED tracks."""
        return sum(1 for t in self.tracks if t.state == TrackState.CONFIRMED)

    def get_all_tracks(self) -> list[STrack]:
        """Return all active tracks, including tentative ones."""
        return list(self.tracks)

    def reset(self):
        """Reset the tracker by clearing all tracks and restarting id allocation at 1."""
        self.tracks = []
        self.frame_id = 0
        self._next_id = 1
        LOGGER.info("[TRACKER] Tracker reset")
