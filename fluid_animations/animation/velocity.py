"""
Velocity helpers for handing gesture motion to springs.

Spring keyframes and SpringCurve take velocity in fractions of the
start -> end distance per second; gestures report absolute units per second.
VelocityTracker estimates the release velocity of a dragged value from
timestamped samples.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import numpy as np

from fluid_animations.constants.timing import DEFAULT_VELOCITY_MAX_SAMPLES, DEFAULT_VELOCITY_WINDOW_S
from fluid_animations.logging.logger import get_logger
from fluid_animations.utils.validation import require_real

logger = get_logger(__name__)


def relative_velocity(velocity: float, start: float, end: float) -> float:
    """Convert units/s into fractions of the start -> end distance per second."""
    distance = end - start
    if distance == 0:
        return 0.0
    return velocity / distance


def absolute_velocity(relative: float, start: float, end: float) -> float:
    """Inverse of relative_velocity()."""
    return relative * (end - start)


@dataclass(frozen=True)
class VelocitySample:
    timestamp: float  # seconds
    value: float


class VelocityTracker:
    """
    Estimates the current velocity of a tracked value.

    Keeps the most recent samples inside ``window`` seconds and fits a
    least-squares line through them; the slope is the velocity. With fewer
    than two samples the velocity is 0.
    """

    def __init__(self, window: float = DEFAULT_VELOCITY_WINDOW_S,
                 max_samples: int = DEFAULT_VELOCITY_MAX_SAMPLES) -> None:
        self.window = require_real("window", window, positive=True)
        self.max_samples = max(2, int(max_samples))
        self._samples: Deque[VelocitySample] = deque(maxlen=self.max_samples)

    def add(self, timestamp: float, value: float) -> None:
        """Record a sample; samples older than the latest are ignored."""
        timestamp = require_real("timestamp", timestamp)
        value = require_real("value", value)
        if self._samples and timestamp < self._samples[-1].timestamp:
            logger.debug("Ignoring out-of-order velocity sample at %.4f", timestamp)
            return
        self._samples.append(VelocitySample(timestamp, value))

    def reset(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)

    def velocity(self, now: Optional[float] = None) -> float:
        """Velocity in units/s over the samples within the window ending at ``now``."""
        if not self._samples:
            return 0.0
        latest = self._samples[-1].timestamp if now is None else now
        recent = [s for s in self._samples if latest - s.timestamp <= self.window]
        if len(recent) < 2:
            return 0.0
        times = np.array([s.timestamp for s in recent], dtype=float)
        values = np.array([s.value for s in recent], dtype=float)
        if np.ptp(times) == 0.0:
            return 0.0
        slope, _intercept = np.polyfit(times - times[0], values, 1)
        return float(slope)
