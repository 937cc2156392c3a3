"""
Progress sources and value drivers.

The evaluation core only needs "the current normalised progress". Anything
that can produce it implements ProgressSource: a manual scrubber, a
monotonic clock, or a host frame loop (see qt_driver for a QTimer one).

FRAME PACING: ClockProgress measures real elapsed time between calls and
clamps single deltas to MAX_FRAME_DELTA_S, so a host that stalls (sleep,
debugger, heavy GC) resumes smoothly instead of jumping to the end.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from fluid_animations.animation.spring import SpringParameters, SpringSimulation
from fluid_animations.animation.types import AnimationState
from fluid_animations.constants.timing import MAX_FRAME_DELTA_S
from fluid_animations.errors import InvalidParameterError
from fluid_animations.logging.logger import get_logger, is_verbose_logging
from fluid_animations.utils.decorators import suppress_exceptions
from fluid_animations.utils.validation import require_real

logger = get_logger(__name__)

Clock = Callable[[], float]


@runtime_checkable
class ProgressSource(Protocol):
    """Anything that can report the current normalised progress."""

    def progress(self) -> float:
        ...


class ManualProgress:
    """Progress set explicitly by the host (scrubbing, tests)."""

    def __init__(self, value: float = 0.0) -> None:
        self._value = 0.0
        self.seek(value)

    def seek(self, value: float) -> None:
        value = require_real("progress", value)
        self._value = max(0.0, min(1.0, value))

    def progress(self) -> float:
        return self._value


class ClockProgress:
    """
    Progress derived from elapsed wall time over ``duration`` seconds.

    Call progress() once per frame. An optional ``delay`` holds progress
    at 0 for that many seconds after start().
    """

    def __init__(self, duration: float, clock: Clock = time.monotonic, delay: float = 0.0,
                 on_complete: Optional[Callable[[], None]] = None) -> None:
        self.duration = require_real("duration", duration, positive=True)
        self.delay = require_real("delay", delay, non_negative=True)
        self._clock = clock
        self._on_complete = on_complete

        self.state = AnimationState.IDLE
        self.elapsed = 0.0
        self.delay_elapsed = 0.0
        self._last_time: Optional[float] = None

    def start(self) -> None:
        """Start (or restart) from progress 0."""
        self.state = AnimationState.RUNNING
        self.elapsed = 0.0
        self.delay_elapsed = 0.0
        self._last_time = self._clock()
        logger.debug("Clock progress started (duration=%.3fs, delay=%.3fs)", self.duration, self.delay)

    def pause(self) -> None:
        if self.state == AnimationState.RUNNING:
            self._advance()
            self.state = AnimationState.PAUSED

    def resume(self) -> None:
        if self.state == AnimationState.PAUSED:
            self.state = AnimationState.RUNNING
            self._last_time = self._clock()

    @property
    def is_complete(self) -> bool:
        return self.state == AnimationState.COMPLETE

    def _advance(self) -> None:
        now = self._clock()
        delta = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now

        if delta < 0.0:
            delta = 0.0
        elif delta > MAX_FRAME_DELTA_S:
            logger.info("Large frame dt=%.2fms clamped to %.0fms", delta * 1000.0, MAX_FRAME_DELTA_S * 1000.0)
            delta = MAX_FRAME_DELTA_S

        if self.delay_elapsed < self.delay:
            self.delay_elapsed += delta
            if self.delay_elapsed < self.delay:
                return
            delta = self.delay_elapsed - self.delay

        self.elapsed += delta
        if is_verbose_logging():
            logger.debug("Clock tick dt=%.4f elapsed=%.4f", delta, self.elapsed)
        if self.elapsed >= self.duration:
            self.state = AnimationState.COMPLETE
            logger.debug("Clock progress completed (elapsed=%.3fs)", self.elapsed)
            if self._on_complete is not None:
                self._notify_complete()

    @suppress_exceptions(logger, "Completion callback failed")
    def _notify_complete(self) -> None:
        self._on_complete()

    def progress(self) -> float:
        if self.state == AnimationState.RUNNING:
            self._advance()
        if self.state == AnimationState.COMPLETE:
            return 1.0
        return min(1.0, self.elapsed / self.duration)


class AnimatedValue:
    """Binds an animatable (a KeyframeSequence or any ``t -> value``) to a source."""

    def __init__(self, animatable: Callable[[float], Any], source: ProgressSource) -> None:
        if not callable(animatable):
            raise InvalidParameterError(f"animatable must be callable, got {animatable!r}")
        if not isinstance(source, ProgressSource):
            raise InvalidParameterError(f"source has no progress(): {source!r}")
        self.animatable = animatable
        self.source = source

    @property
    def value(self) -> Any:
        return self.animatable(self.source.progress())


class SpringFollower:
    """
    A value that springs towards a target that can change at any time.

    Retargeting starts a new simulation from the current position and the
    current velocity, so motion stays continuous while a gesture moves the
    target around.
    """

    def __init__(self, spring: SpringParameters, value: float = 0.0, clock: Clock = time.monotonic) -> None:
        if not isinstance(spring, SpringParameters):
            raise InvalidParameterError(f"spring must be SpringParameters, got {spring!r}")
        self.spring = spring
        self._clock = clock
        self._origin = clock()
        self._simulation = SpringSimulation(spring, value, value)

    def _elapsed(self, now: Optional[float]) -> float:
        return (self._clock() if now is None else now) - self._origin

    @property
    def target(self) -> float:
        return self._simulation.end

    @property
    def simulation(self) -> SpringSimulation:
        return self._simulation

    def value_at(self, now: Optional[float] = None) -> float:
        return self._simulation.position(self._elapsed(now))

    def velocity_at(self, now: Optional[float] = None) -> float:
        return self._simulation.velocity(self._elapsed(now))

    def is_settled(self, now: Optional[float] = None) -> bool:
        return self._simulation.is_settled(self._elapsed(now))

    def set_target(self, target: float, now: Optional[float] = None,
                   velocity: Optional[float] = None) -> None:
        """Spring towards ``target`` from wherever the value is at ``now``."""
        now = self._clock() if now is None else now
        elapsed = now - self._origin
        current = self._simulation.position(elapsed)
        if velocity is None:
            velocity = self._simulation.velocity(elapsed)
        self._simulation = SpringSimulation(self.spring, current, target, velocity)
        self._origin = now
        logger.debug("[SPRING] Retarget %.4f -> %.4f (v=%.4f)", current, target, velocity)

    def snap(self, value: float, now: Optional[float] = None) -> None:
        """Jump to ``value`` and stop."""
        self._simulation = SpringSimulation(self.spring, value, value)
        self._origin = self._clock() if now is None else now
