"""Input and output records of the tracker.

Detections are produced by an external detector once per frame; track
records are what the tracker hands back to its consumers.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from .base import TrackState
from .exceptions import InvalidDetectionError

BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Detection:
    """A single detection in normalized image coordinates.

    The bbox and score are validated on construction; the bbox is stored as a tuple of
    four floats.

    Attributes:
        cls: Class label reported by the detector.
        score: Detection confidence in [0, 1].
        bbox: Box as (x, y, w, h) with (x, y) the top-left corner.

    Raises:
        InvalidDetectionError: If the bbox or score is invalid.
    """

    cls: str
    score: float
    bbox: BBox

    def __post_init__(self):
        """Validate and normalize the bbox and score."""
        object.__setattr__(self, "bbox", _check_bbox(self.bbox))
        object.__setattr__(self, "score", _check_score(self.score))
        object.__setattr__(self, "cls", str(self.cls) if self.cls is not None else "unknown")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: Optional[int] = None) -> Detection:
        """Create a Detection from the detector's mapping format.

        Args:
            data: Mapping with 'class', 'score' and 'bbox' ([x, y, w, h]) keys.
            index: Position of the detection in its frame, used in error messages.

        Returns:
            Detection instance.

        Raises:
            InvalidDetectionError: If the bbox or score is missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise InvalidDetectionError(f"expected a mapping, got {type(data).__name__}", index)
        try:
            return cls(data.get("class"), data.get("score"), data.get("bbox"))
        except InvalidDetectionError as e:
            raise InvalidDetectionError(e.message, index) from None

    @classmethod
    def validated(cls, det: Detection, index: Optional[int] = None) -> Detection:
        """Re-check a Detection whose fields may have been altered after construction."""
        try:
            return cls(det.cls, det.score, det.bbox)
        except InvalidDetectionError as e:
            raise InvalidDetectionError(e.message, index) from None

    def normalize(self, frame_width: float, frame_height: float) -> Detection:
        """Return a copy with a pixel-space bbox scaled to the 0..1 range."""
        fw = frame_width or 1
        fh = frame_height or 1
        x, y, w, h = self.bbox
        return Detection(cls=self.cls, score=self.score, bbox=(x / fw, y / fh, w / fw, h / fh))


@dataclass(frozen=True)
class TrackRecord:
    """A tracked object as reported for one frame.

    Attributes:
        id: Unique track id.
        bbox: Clamped box estimate (x, y, w, h).
        velocity: Estimated (vx, vy) per frame, or None when no estimate exists.
        cls: Majority class label over the track's matched detections.
        state: CONFIRMED or LOST.
        age: Frames since the track was created.
        score: Confidence of the last matched detection.
    """

    id: int
    bbox: BBox
    velocity: Optional[Tuple[float, float]]
    cls: str
    state: TrackState
    age: int
    score: float = 0.0

    @property
    def display_id(self) -> str:
        """Zero-padded display id, e.g. 'TRK-0001'."""
        return format_track_id(self.id)

    def speed(self, frame_rate: float = 30.0) -> float:
        """Speed of the box origin in normalized units per second."""
        if self.velocity is None:
            return 0.0
        return math.hypot(*self.velocity) * frame_rate

    @property
    def bearing(self) -> float:
        """Direction of motion in degrees, clockwise from image-up."""
        if self.velocity is None:
            return 0.0
        vx, vy = self.velocity
        return math.degrees(math.atan2(vx, -vy))

    def to_dict(self) -> dict[str, Any]:
        """Convert the record to the plain output mapping."""
        return {
            "id": self.id,
            "bbox": list(self.bbox),
            "velocity": list(self.velocity) if self.velocity is not None else None,
            "class": self.cls,
            "state": str(self.state),
            "age": self.age,
            "score": self.score,
        }


def format_track_id(track_id: int) -> str:
    """Format a track id for display (e.g. 1 -> 'TRK-0001')."""
    return f"TRK-{track_id:04d}"


def _check_bbox(bbox) -> BBox:
    """Return ``bbox`` as four finite floats with non-negative width and height."""
    if bbox is None:
        raise InvalidDetectionError("missing bbox")
    if isinstance(bbox, (str, bytes, Mapping)):
        raise InvalidDetectionError(f"bbox must be a sequence of numbers, got {type(bbox).__name__}")
    try:
        values = tuple(float(v) for v in bbox)
    except (TypeError, ValueError):
        raise InvalidDetectionError(f"bbox must be numeric, got {bbox!r}") from None
    if len(values) != 4:
        raise InvalidDetectionError(f"bbox must have 4 values, got {len(values)}")
    if not all(math.isfinite(v) for v in values):
        raise InvalidDetectionError(f"bbox must be finite, got {values}")
    if values[2] < 0 or values[3] < 0:
        raise InvalidDetectionError(f"bbox width and height must be non-negative, got {values}")
    return values


def _check_score(score) -> float:
    """Return ``score`` as a float in [0, 1]."""
    if isinstance(score, bool) or not isinstance(score, numbers.Real) or not math.isfinite(score):
        raise InvalidDetectionError(f"score must be a finite number, got {score!r}")
    if not 0.0 <= score <= 1.0:
        raise InvalidDetectionError(f"score must be in [0, 1], got {score}")
    return float(score)
