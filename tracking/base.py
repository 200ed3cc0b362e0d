"""Track lifecycle states."""

from enum import Enum


class TrackState(Enum):
    """Track lifecycle states.

    State diagram:
        TENTATIVE -> CONFIRMED -> LOST -> CONFIRMED
                  -> DELETED            -> DELETED
    """

    TENTATIVE = "TENTATIVE"  # Needs consecutive detections to confirm
    CONFIRMED = "CONFIRMED"  # Actively tracked
    LOST = "LOST"            # Temporarily missing
    DELETED = "DELETED"      # Removed from tracking (terminal state)

    def __str__(self) -> str:
        """Return the state name."""
        return self.value


# States reported to consumers of the tracker output
VISIBLE_STATES = frozenset({TrackState.CONFIRMED, TrackState.LOST})
