"""Kalman filter implementation for object tracking.

This module provides a diagonal-covariance Kalman filter for tracking bounding
boxes in normalized image space.
"""

from __future__ import annotations

import numpy as np

from .config import TrackerConfig


class KalmanFilterXYWH:
    """A constant-velocity Kalman filter for tracking a bounding box in (x, y, w, h) format.

    The 8-dimensional state space (x, y, w, h, vx, vy, vw, vh) contains the top-left corner
    (x, y), width w, height h, and their respective velocities. The box location (x, y, w, h)
    is taken as a direct observation of the state space.

    Uncertainty is kept as a diagonal vector instead of a full 8x8 covariance matrix, so each
    dimension is filtered independently with a scalar gain. Correlations between dimensions
    (e.g. between x and vx) are not modelled; velocity is learned from the position
    corrections through a fixed ``velocity_gain`` instead.

    Attributes:
        state: The 8-dimensional state vector.
        P: Per-dimension state variance.
        Q: Per-dimension process noise added on every prediction.
        R: Per-dimension measurement noise of the 4 observed coordinates.
        velocity_gain: Fraction of each position correction applied to the velocity.
    """

    ndim = 4

    def __init__(self, measurement, config: TrackerConfig | None = None):
        """Initialize the filter from an unassociated measurement.

        Args:
            measurement: Bounding box (x, y, w, h) used as the initial position; velocity starts at 0.
            config: Noise parameters; defaults to ``TrackerConfig()``.
        """
        config = config or TrackerConfig()
        ndim = self.ndim

        self.state = np.zeros(2 * ndim, dtype=np.float64)
        self.state[:ndim] = np.asarray(measurement, dtype=np.float64)[:ndim]

        self.P = np.r_[np.full(ndim, config.init_position_var), np.full(ndim, config.init_velocity_var)]
        self.Q = np.r_[np.full(ndim, config.process_noise_position), np.full(ndim, config.process_noise_velocity)]
        self.R = np.full(ndim, config.measurement_noise, dtype=np.float64)
        self.velocity_gain = config.velocity_gain

    def predict(self) -> np.ndarray:
        """Run Kalman filter prediction step.

        Returns:
            The predicted measurement (x, y, w, h).
        """
        ndim = self.ndim
        self.state[:ndim] += self.state[ndim:]
        self.P += self.Q
        return self.get_measurement()

    def update(self, measurement) -> None:
        """Run Kalman filter correction step.

        Args:
            measurement: The observed bounding box (x, y, w, h).
        """
        ndim = self.ndim
        z = np.asarray(measurement, dtype=np.float64)[:ndim]

        gain = self.P[:ndim] / (self.P[:ndim] + self.R)
        innovation = z - self.state[:ndim]

        self.state[:ndim] += gain * innovation
        self.state[ndim:] += gain * innovation * self.velocity_gain
        self.P[:ndim] *= 1 - gain

        # Velocity variance decays towards steady state more slowly
        velocity_gain = self.P[ndim:] / (self.P[ndim:] + self.R * 2)
        self.P[ndim:] *= 1 - velocity_gain * 0.3

    def get_measurement(self) -> np.ndarray:
        """Return the current box estimate (x, y, w, h)."""
        return self.state[: self.ndim].copy()

    @property
    def velocity(self) -> np.ndarray:
        """Current velocity estimate (vx, vy, vw, vh)."""
        return self.state[self.ndim :].copy()

    def get_velocity(self) -> tuple[float, float]:
        """Return the velocity of the box origin (vx, vy)."""
        return float(self.state[self.ndim]), float(self.state[self.ndim + 1])
