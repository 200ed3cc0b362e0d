"""Tests for BYTETracker.

This module tests the full tracking cycle: confirmation, occlusion recovery,
cascaded association, track spawning, pruning and output assembly.
"""

import pytest
import sys

from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tracking import BYTETracker, Detection, InvalidDetectionError, TrackerConfig, TrackState


def det(bbox, score=0.9, cls="car"):
    """Build a detection in the detector's mapping format."""
    return {"class": cls, "score": score, "bbox": list(bbox)}


BOX = (0.1, 0.1, 0.1, 0.1)


def confirmed_tracker(bbox=BOX, config=None):
    """Return a tracker holding one CONFIRMED track for ``bbox``."""
    tracker = BYTETracker(config)
    for _ in range(3):
        tracker.update([det(bbox)])
    return tracker


class TestTrackConfirmation:
    """Test cases for track creation and confirmation."""

    def test_confirmed_after_three_frames(self):
        """Test a detection seen in 3 consecutive frames yields one confirmed track."""
        tracker = BYTETracker()
        assert tracker.update([det(BOX)]) == []
        assert tracker.update([det(BOX)]) == []
        records = tracker.update([det(BOX)])

        assert len(records) == 1
        assert records[0].id == 1
        assert records[0].state == TrackState.CONFIRMED
        assert records[0].cls == "car"

    def test_tentative_tracks_are_not_reported(self):
        """Test tentative tracks exist internally but never appear in the output."""
        tracker = BYTETracker()
        records = tracker.update([det(BOX)])
        assert records == []
        assert len(tracker.get_all_tracks()) == 1
        assert tracker.get_all_tracks()[0].state == TrackState.TENTATIVE

    def test_low_confidence_never_spawns(self):
        """Test low-confidence detections never create tracks."""
        tracker = BYTETracker()
        for _ in range(10):
            assert tracker.update([det(BOX, score=0.3)]) == []
        assert tracker.get_all_tracks() == []

    def test_score_at_threshold_is_high_confidence(self):
        """Test a detection scoring exactly high_thresh spawns a track."""
        tracker = BYTETracker()
        tracker.update([det(BOX, score=0.5)])
        assert len(tracker.get_all_tracks()) == 1

    def test_tentative_track_deleted_on_first_miss(self):
        """Test a tentative track is dropped as soon as it is missed."""
        tracker = BYTETracker()
        tracker.update([det(BOX)])
        tracker.update([det(BOX)])
        tracker.update([])
        assert tracker.get_all_tracks() == []


class TestTrackIds:
    """Test cases for id allocation."""

    def test_ids_are_never_reused(self):
        """Test a deleted track's id is not handed out again."""
        tracker = BYTETracker()
        tracker.update([det(BOX)])
        tracker.update([])  # track 1 deleted
        for _ in range(3):
            records = tracker.update([det(BOX)])
        assert [r.id for r in records] == [2]

    def test_ids_strictly_increasing(self):
        """Test ids of simultaneously spawned tracks increase in detection order."""
        tracker = BYTETracker()
        boxes = [(0.0, 0.0, 0.1, 0.1), (0.3, 0.3, 0.1, 0.1), (0.6, 0.6, 0.1, 0.1)]
        for _ in range(3):
            records = tracker.update([det(b) for b in boxes])
        assert [r.id for r in records] == [1, 2, 3]

        tracker.update([det((0.8, 0.0, 0.1, 0.1))])
        ids = [t.track_id for t in tracker.get_all_tracks()]
        assert ids == sorted(ids)
        assert ids[-1] == 4

    def test_reset_restarts_ids(self):
        """Test reset clears tracks and restarts id allocation at 1."""
        tracker = confirmed_tracker()
        tracker.reset()
        assert tracker.get_all_tracks() == []
        assert tracker.frame_id == 0

        for _ in range(3):
            records = tracker.update([det(BOX)])
        assert [r.id for r in records] == [1]

    def test_trackers_have_independent_counters(self):
        """Test each tracker instance allocates its own ids."""
        a = confirmed_tracker()
        b = confirmed_tracker()
        assert a.get_all_tracks()[0].track_id == 1
        assert b.get_all_tracks()[0].track_id == 1

    def test_format_id(self):
        """Test id display formatting."""
        assert BYTETracker.format_id(1) == "TRK-0001"
        assert BYTETracker.format_id(42) == "TRK-0042"
        assert BYTETracker.format_id(12345) == "TRK-12345"


class TestLostTracks:
    """Test cases for occlusion handling and pruning."""

    def test_miss_marks_confirmed_track_lost(self):
        """Test an empty frame turns a confirmed track into a lost one."""
        tracker = confirmed_tracker()
        records = tracker.update([])
        assert len(records) == 1
        assert records[0].state == TrackState.LOST

    def test_lost_reported_until_max_age(self):
        """Test a lost track is reported for max_age frames and removed after that."""
        tracker = confirmed_tracker()
        for _ in range(30):
            records = tracker.update([])
            assert len(records) == 1
            assert records[0].state == TrackState.LOST

        assert tracker.update([]) == []
        assert tracker.get_all_tracks() == []
        assert tracker.update([]) == []

    def test_recovery_keeps_id(self):
        """Test a track occluded for less than max_age is confirmed again under the same id."""
        tracker = confirmed_tracker()
        for _ in range(10):
            tracker.update([])
        records = tracker.update([det(BOX)])

        assert len(records) == 1
        assert records[0].id == 1
        assert records[0].state == TrackState.CONFIRMED
        assert tracker.get_all_tracks()[0].consecutive_hits == 1

    def test_low_confidence_recovers_lost_track(self):
        """Test the second association stage matches a lost track with a low-confidence detection."""
        tracker = confirmed_tracker()
        tracker.update([])
        records = tracker.update([det(BOX, score=0.2)])

        assert len(records) == 1
        assert records[0].id == 1
        assert records[0].state == TrackState.CONFIRMED
        assert len(tracker.get_all_tracks()) == 1

    def test_low_confidence_keeps_confirmed_track(self):
        """Test a low-confidence detection keeps a confirmed track from being marked lost."""
        tracker = confirmed_tracker()
        records = tracker.update([det(BOX, score=0.1)])
        assert records[0].state == TrackState.CONFIRMED
        assert records[0].score == pytest.approx(0.1)

    def test_empty_input_drains_tracks(self):
        """Test max_age + 1 empty frames remove every track."""
        tracker = BYTETracker()
        boxes = [(0.0, 0.0, 0.1, 0.1), (0.5, 0.5, 0.1, 0.1)]
        for _ in range(3):
            tracker.update([det(b) for b in boxes])

        for _ in range(31):
            records = tracker.update([])
        assert records == []

    def test_custom_max_age(self):
        """Test max_age is taken from the configuration."""
        tracker = confirmed_tracker(config=TrackerConfig(max_age=2))
        assert len(tracker.update([])) == 1
        assert len(tracker.update([])) == 1
        assert tracker.update([]) == []


class TestAssociation:
    """Test cases for the cascaded association."""

    def test_best_overlap_matched_and_poor_overlap_spawns(self):
        """Test the IoU 0.5 detection is matched while the IoU 0.2 one starts a new track."""
        tracker = confirmed_tracker(bbox=(0.0, 0.0, 0.2, 0.2))
        records = tracker.update([
            det((0.0, 0.0, 0.2, 0.1)),   # IoU 0.5 with the track
            det((0.0, 0.0, 0.2, 0.04)),  # IoU 0.2 with the track
        ])

        assert [r.id for r in records] == [1]
        tracks = tracker.get_all_tracks()
        assert len(tracks) == 2
        assert tracks[1].track_id == 2
        assert tracks[1].state == TrackState.TENTATIVE
        assert tracks[1].get_bbox()[3] == pytest.approx(0.04)

    def test_poor_low_confidence_overlap_does_not_spawn(self):
        """Test an unmatched low-confidence detection is dropped."""
        tracker = confirmed_tracker(bbox=(0.0, 0.0, 0.2, 0.2))
        tracker.update([det((0.0, 0.0, 0.2, 0.04), score=0.3)])
        tracks = tracker.get_all_tracks()
        assert len(tracks) == 1
        assert tracks[0].state == TrackState.LOST

    def test_distinct_objects_keep_their_ids(self):
        """Test two well separated objects keep their own ids."""
        tracker = BYTETracker()
        left, right = (0.1, 0.4, 0.1, 0.1), (0.7, 0.4, 0.1, 0.1)
        for _ in range(3):
            tracker.update([det(left, cls="person"), det(right, cls="car")])
        records = tracker.update([det(right, cls="car"), det(left, cls="person")])

        by_id = {r.id: r for r in records}
        assert by_id[1].cls == "person"
        assert by_id[2].cls == "car"

    def test_hungarian_method(self):
        """Test the optimal assignment method produces the same result on simple input."""
        tracker = BYTETracker(TrackerConfig(match_method="hungarian"))
        for _ in range(3):
            records = tracker.update([det(BOX)])
        assert [(r.id, r.state) for r in records] == [(1, TrackState.CONFIRMED)]

    def test_accepts_detection_objects(self):
        """Test Detection instances can be passed directly."""
        tracker = BYTETracker()
        for _ in range(3):
            records = tracker.update([Detection("car", 0.9, BOX)])
        assert len(records) == 1

    def test_degenerate_box_still_spawns(self):
        """Test a zero-area detection still starts a track."""
        tracker = BYTETracker()
        tracker.update([det((0.2, 0.2, 0.0, 0.0))])
        tracks = tracker.get_all_tracks()
        assert len(tracks) == 1
        assert tracks[0].get_bbox()[2] == 0.0


class TestMotion:
    """Test cases for velocity estimation."""

    def test_static_object_has_zero_velocity(self):
        """Test a constant box converges to zero velocity."""
        tracker = BYTETracker()
        for _ in range(20):
            records = tracker.update([det(BOX)])
        vx, vy = records[0].velocity
        assert vx == pytest.approx(0.0, abs=1e-9)
        assert vy == pytest.approx(0.0, abs=1e-9)

    def test_constant_velocity_converges(self):
        """Test a box moving at constant velocity yields that velocity estimate."""
        tracker = BYTETracker()
        v = 0.005
        for t in range(80):
            records = tracker.update([det((0.1 + v * t, 0.3, 0.2, 0.2))])

        assert len(records) == 1
        assert records[0].id == 1
        vx, vy = records[0].velocity
        assert vx == pytest.approx(v, abs=1e-4)
        assert vy == pytest.approx(0.0, abs=1e-6)


class TestOutput:
    """Test cases for output assembly."""

    def test_bbox_clamped_to_min_size(self):
        """Test reported boxes are clamped to min_box_size and a non-negative origin."""
        tracker = confirmed_tracker(bbox=(-0.05, 0.1, 0.1, 0.1))
        record = tracker.update([det((-0.05, 0.1, 0.1, 0.1))])[0]
        assert record.bbox == pytest.approx((0.0, 0.1, 1.0, 1.0))

        # Internal estimate is left untouched
        assert tracker.get_all_tracks()[0].get_bbox()[0] == pytest.approx(-0.05)

    def test_custom_min_box_size(self):
        """Test min_box_size is taken from the configuration."""
        tracker = confirmed_tracker(config=TrackerConfig(min_box_size=0.0))
        record = tracker.update([det(BOX)])[0]
        assert record.bbox == pytest.approx(BOX)

    def test_record_fields(self):
        """Test the fields of a reported record."""
        tracker = confirmed_tracker()
        record = tracker.update([det(BOX, score=0.8)])[0]
        assert record.age == 3
        assert record.score == pytest.approx(0.8)
        assert record.display_id == "TRK-0001"
        d = record.to_dict()
        assert d["state"] == "CONFIRMED"
        assert d["class"] == "car"
        assert len(d["velocity"]) == 2

    def test_active_count(self):
        """Test only confirmed tracks are counted as active."""
        tracker = confirmed_tracker()
        tracker.update([det(BOX), det((0.6, 0.6, 0.1, 0.1))])
        assert tracker.get_active_count() == 1
        tracker.update([])
        assert tracker.get_active_count() == 0


class TestMalformedInput:
    """Test cases for malformed detections."""

    def test_malformed_detection_skipped(self):
        """Test a detection without bbox is skipped and the rest are processed."""
        tracker = BYTETracker()
        for _ in range(3):
            records = tracker.update([{"class": "car", "score": 0.9}, det(BOX)])
        assert len(records) == 1

    def test_strict_mode_raises(self):
        """Test strict mode rejects the frame before touching any track."""
        tracker = confirmed_tracker(config=TrackerConfig(strict=True))
        frame_id = tracker.frame_id
        age = tracker.get_all_tracks()[0].age

        with pytest.raises(InvalidDetectionError) as exc_info:
            tracker.update([det(BOX), {"class": "car", "score": 0.9, "bbox": [0.1, 0.1]}])

        assert exc_info.value.index == 1
        assert tracker.frame_id == frame_id
        assert tracker.get_all_tracks()[0].age == age

    def test_none_input_treated_as_empty(self):
        """Test a None detection list behaves like an empty frame."""
        tracker = confirmed_tracker()
        records = tracker.update(None)
        assert records[0].state == TrackState.LOST

    def test_altered_detection_object_skipped(self):
        """Test a Detection whose bbox was altered after construction is skipped, not crashed on."""
        tracker = confirmed_tracker()
        short_box = Detection("car", 0.9, BOX)
        object.__setattr__(short_box, "bbox", (0.1, 0.1))
        no_box = Detection("car", 0.9, BOX)
        object.__setattr__(no_box, "bbox", None)

        records = tracker.update([short_box, no_box])
        assert len(records) == 1
        assert records[0].state == TrackState.LOST

        records = tracker.update([short_box, Detection("car", 0.9, BOX)])
        assert records[0].state == TrackState.CONFIRMED

    def test_altered_detection_object_strict(self):
        """Test strict mode rejects an altered Detection with its frame index."""
        tracker = BYTETracker(TrackerConfig(strict=True))
        bad = Detection("car", 0.9, BOX)
        object.__setattr__(bad, "score", 7.0)

        with pytest.raises(InvalidDetectionError) as exc_info:
            tracker.update([Detection("car", 0.9, BOX), bad])
        assert exc_info.value.index == 1
        assert tracker.get_all_tracks() == []
