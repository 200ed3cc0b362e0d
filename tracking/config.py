"""Configuration for the multi-object tracker.

This module provides the configuration dataclass for BYTETracker and the
Kalman filter it drives.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from .utils import LOGGER

MATCH_METHODS = ("greedy", "hungarian")


@dataclass
class TrackerConfig:
    """Configuration for the multi-object tracker.

    Attributes:
        high_thresh: Detections scoring at or above this take part in the first association stage
            and may spawn new tracks; the rest are only used to recover existing tracks.
        iou_thresh: Minimum IoU for a track/detection pair to be matched.
        confirm_frames: Consecutive matched frames needed to confirm a tentative track.
        max_age: Number of frames a lost track survives without a match before removal.
        min_box_size: Minimum width and height of reported boxes.
        velocity_gain: Fraction of the position correction fed back into the velocity estimate.
        init_position_var: Initial variance of the position terms.
        init_velocity_var: Initial variance of the velocity terms.
        process_noise_position: Variance added to the position terms on every prediction.
        process_noise_velocity: Variance added to the velocity terms on every prediction.
        measurement_noise: Measurement variance of each box coordinate.
        match_method: Assignment solver, 'greedy' or 'hungarian'.
        strict: Raise on malformed detections instead of skipping them.
    """

    # Association
    high_thresh: float = 0.5
    iou_thresh: float = 0.3
    match_method: str = "greedy"

    # Track lifecycle
    confirm_frames: int = 3
    max_age: int = 30
    min_box_size: float = 1.0

    # Kalman filter
    velocity_gain: float = 0.5
    init_position_var: float = 10.0
    init_velocity_var: float = 100.0
    process_noise_position: float = 1.0
    process_noise_velocity: float = 5.0
    measurement_noise: float = 4.0

    # Input handling
    strict: bool = False

    def __post_init__(self):
        """Validate configuration parameters."""
        if not 0.0 <= self.high_thresh <= 1.0:
            raise ValueError(f"high_thresh must be in [0, 1], got {self.high_thresh}")
        if not 0.0 <= self.iou_thresh <= 1.0:
            raise ValueError(f"iou_thresh must be in [0, 1], got {self.iou_thresh}")
        if self.match_method not in MATCH_METHODS:
            raise ValueError(f"match_method must be one of {MATCH_METHODS}, got {self.match_method!r}")
        if self.confirm_frames < 1:
            raise ValueError(f"confirm_frames must be at least 1, got {self.confirm_frames}")
        if self.max_age < 0:
            raise ValueError(f"max_age must be non-negative, got {self.max_age}")
        if self.min_box_size < 0:
            raise ValueError(f"min_box_size must be non-negative, got {self.min_box_size}")
        if not 0.0 <= self.velocity_gain <= 1.0:
            raise ValueError(f"velocity_gain must be in [0, 1], got {self.velocity_gain}")
        for name in ("init_position_var", "init_velocity_var", "measurement_noise"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("process_noise_position", "process_noise_velocity"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @property
    def match_thresh(self) -> float:
        """Maximum association cost (1 - IoU) accepted for a match."""
        return 1.0 - self.iou_thresh

    @classmethod
    def default(cls) -> TrackerConfig:
        """Return the default tracker configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackerConfig:
        """Create a TrackerConfig from a plain dictionary.

        Unknown keys are ignored and logged.

        Args:
            data: Mapping of field names to values.

        Returns:
            TrackerConfig instance.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            LOGGER.warning(f"[TRACKER] Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
