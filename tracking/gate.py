"""Re-entrancy guard for the perception loop driving the tracker.

The tracker itself is not thread-safe; callers that run detection
asynchronously use a FrameGate so that a new frame is dropped instead of
starting a second tracking cycle while the previous one is still in flight.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .byte_tracker import BYTETracker, DetectionLike
from .types import TrackRecord
from .utils import LOGGER


class FrameGate:
    """Single-slot "frame in progress" flag.

    Example:
        >>> gate = FrameGate()
        >>> with gate.slot() as acquired:
        ...     acquired, gate.busy
        (True, True)
        >>> gate.busy
        False
    """

    def __init__(self):
        """Initialize an open gate."""
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        """Whether a frame is currently in progress."""
        return self._lock.locked()

    def try_acquire(self) -> bool:
        """Take the slot without blocking.

        Returns:
            True if the slot was free and is now held by the caller.
        """
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        """Free the slot."""
        self._lock.release()

    @contextmanager
    def slot(self) -> Iterator[bool]:
        """Hold the slot for the duration of the block, if it is free.

        Yields:
            True if the slot was obtained; False if another frame holds it.
        """
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


class GatedTracker:
    """Runs tracker updates through a FrameGate, dropping frames that arrive while busy.

    Attributes:
        tracker: The wrapped tracker.
        gate: Gate shared with the rest of the perception loop.
        skipped_frames: Number of frames dropped because the gate was busy.
        last_update_ms: Duration of the last completed tracker update.
    """

    def __init__(self, tracker: Optional[BYTETracker] = None, gate: Optional[FrameGate] = None):
        """Wrap a tracker with a gate.

        Args:
            tracker: Tracker to drive; a new BYTETracker is created if omitted.
            gate: Gate to share with the calling loop; a new FrameGate is created if omitted.
        """
        self.tracker = tracker or BYTETracker()
        self.gate = gate or FrameGate()
        self.skipped_frames = 0
        self.last_update_ms = 0.0

    def submit(self, detections: Iterable[DetectionLike]) -> Optional[list[TrackRecord]]:
        """Run one tracker update unless a frame is already in progress.

        Args:
            detections: Detections of the current frame.

        Returns:
            The tracker output, or None if the frame was dropped.
        """
        with self.gate.slot() as acquired:
            if not acquired:
                self.skipped_frames += 1
                LOGGER.debug(f"[TRACKER] Frame dropped, tracker busy ({self.skipped_frames} skipped)")
                return None
            start = time.perf_counter()
            records = self.tracker.update(detections)
            self.last_update_ms = (time.perf_counter() - start) * 1000.0
            return records
