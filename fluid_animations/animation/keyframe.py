"""
Keyframe scheduling.

A KeyframeSequence maps one normalised progress value t in [0, 1] onto an
ordered list of weighted segments. Each segment blends from the previous
keyframe's value (or the sequence's starting value) to its own value,
using one of three interpolation modes:

    LINEAR  blend(begin, end, local_t)
    CURVED  blend(begin, end, curve(local_t))
    SPRING  blend(begin, end, spring_position(local_t * segment_seconds))

Weights are relative: a segment's share of the timeline is its weight over
the total. Spring segments are evaluated in the time domain, so the
sequence needs to know how many seconds the whole timeline lasts; by
default each unit of weight is read as one second.

Example:
    scale = KeyframeSequence(
        starting_value=1.0,
        keyframes=[
            curved_keyframe(0.8, weight=0.3, curve=EasingCurve.EASE_IN),
            spring_keyframe(1.4, weight=0.5, spring=FluidSpring.bouncy),
            spring_keyframe(1.0, weight=0.3, spring=FluidSpring.smooth, velocity=2),
        ],
    )
    scale.evaluate(0.5)
"""
from __future__ import annotations

import math
import numbers
from bisect import bisect_right
from dataclasses import dataclass, replace
from typing import Any, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from fluid_animations.animation.easing import EasingFunction, resolve_curve
from fluid_animations.animation.interpolation import (
    BlendFunction,
    find_blend,
    lerp_array,
    lerp_method,
    lerp_scalar,
    resolve_blend,
)
from fluid_animations.animation.spring import SpringParameters, SpringSimulation
from fluid_animations.animation.types import InterpolationMode
from fluid_animations.errors import (
    EmptySequenceError,
    InvalidParameterError,
    UnsupportedTypeError,
    ZeroWeightSegmentError,
)
from fluid_animations.logging.logger import get_logger
from fluid_animations.utils.decorators import log_errors
from fluid_animations.utils.validation import require_real

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, eq=False)
class Keyframe(Generic[T]):
    """
    One segment of a KeyframeSequence.

    ``value`` is the segment's end value; ``weight`` is its relative share
    of the timeline. ``curve`` is used by CURVED keyframes, ``spring`` and
    ``velocity`` (fractions of the segment distance per second) by SPRING
    keyframes. Prefer the linear_keyframe/curved_keyframe/spring_keyframe
    helpers over building this directly.
    """
    value: T
    weight: float = 1.0
    mode: InterpolationMode = InterpolationMode.LINEAR
    curve: Optional[EasingFunction] = None
    spring: Optional[SpringParameters] = None
    velocity: float = 0.0

    @log_errors(logger, "Rejected keyframe", log_level="debug")
    def __post_init__(self) -> None:
        weight = self.weight
        if isinstance(weight, bool) or not isinstance(weight, numbers.Real) or math.isnan(weight):
            raise InvalidParameterError(f"Keyframe weight must be a real number, got {weight!r}")
        if weight <= 0:
            raise ZeroWeightSegmentError(f"Keyframe weight must be > 0, got {weight!r}")
        object.__setattr__(self, "weight", require_real("weight", weight))

        if not isinstance(self.mode, InterpolationMode):
            raise InvalidParameterError(f"Unknown interpolation mode: {self.mode!r}")
        if self.mode is InterpolationMode.CURVED:
            if self.curve is None:
                raise InvalidParameterError("CURVED keyframes need a curve")
            object.__setattr__(self, "curve", resolve_curve(self.curve))
        elif self.mode is InterpolationMode.SPRING:
            if not isinstance(self.spring, SpringParameters):
                raise InvalidParameterError("SPRING keyframes need SpringParameters")
            object.__setattr__(self, "velocity", require_real("velocity", self.velocity))


def linear_keyframe(value: T, weight: float = 1.0) -> Keyframe[T]:
    """Keyframe that blends linearly to ``value``."""
    return Keyframe(value=value, weight=weight, mode=InterpolationMode.LINEAR)


def curved_keyframe(value: T, weight: float, curve: Any) -> Keyframe[T]:
    """Keyframe that blends to ``value`` through an easing curve."""
    return Keyframe(value=value, weight=weight, mode=InterpolationMode.CURVED, curve=curve)


def spring_keyframe(value: T, weight: float, spring: SpringParameters,
                    velocity: float = 0.0) -> Keyframe[T]:
    """Keyframe that springs to ``value``."""
    return Keyframe(value=value, weight=weight, mode=InterpolationMode.SPRING,
                    spring=spring, velocity=velocity)


def _frozen_array(value: Any) -> np.ndarray:
    frozen = np.array(value, dtype=float)
    frozen.setflags(write=False)
    return frozen


def _compatible(reference: Any, blend: BlendFunction, value: Any) -> bool:
    if blend is lerp_scalar:
        return find_blend(value) is lerp_scalar
    if blend is lerp_array:
        return find_blend(value) is lerp_array and np.shape(value) == np.shape(reference)
    if blend is lerp_method:
        return type(value) is type(reference)
    return find_blend(value) is blend


class KeyframeSequence(Generic[T]):
    """
    Weighted keyframes on a single normalised timeline.

    Immutable after construction; evaluate() is pure and never raises.
    """

    @log_errors(logger, "Rejected keyframe sequence", log_level="debug")
    def __init__(self, keyframes: Iterable[Keyframe[T]], starting_value: Optional[T] = None,
                 duration: Optional[float] = None,
                 blend: Optional[BlendFunction] = None) -> None:
        """
        Args:
            keyframes: Ordered, non-empty keyframes.
            starting_value: Begin value of the first segment (required).
            duration: Seconds the whole timeline lasts when driven; used to
                run spring segments in real time. Defaults to the sum of the
                weights read as seconds.
            blend: Custom ``(a, b, fraction) -> value``; resolved from the
                starting value's type when omitted.

        Raises:
            EmptySequenceError: no keyframes.
            ZeroWeightSegmentError: a segment has no width on the timeline.
            UnsupportedTypeError: the values have no (common) blend.
            InvalidParameterError: missing starting value, bad duration.
        """
        self._keyframes: Tuple[Keyframe[T], ...] = tuple(keyframes)
        if not self._keyframes:
            raise EmptySequenceError("A keyframe sequence needs at least one keyframe")
        for frame in self._keyframes:
            if not isinstance(frame, Keyframe):
                raise InvalidParameterError(f"Expected Keyframe, got {type(frame).__name__}")
        if starting_value is None:
            raise InvalidParameterError("starting_value is required for the first segment")
        self._starting_value = starting_value

        if blend is None:
            blend = resolve_blend(starting_value)
            for frame in self._keyframes:
                if not _compatible(starting_value, blend, frame.value):
                    raise UnsupportedTypeError(
                        f"Keyframe value {frame.value!r} cannot be blended with "
                        f"starting value of type {type(starting_value).__name__}"
                    )
        elif not callable(blend):
            raise UnsupportedTypeError(f"blend must be callable, got {blend!r}")
        self._blend = blend

        # Arrays are held as read-only float copies and handed out as copies
        self._copy_values = blend is lerp_array
        if self._copy_values:
            self._starting_value = _frozen_array(starting_value)
            self._keyframes = tuple(
                replace(frame, value=_frozen_array(frame.value)) for frame in self._keyframes
            )

        weights = [frame.weight for frame in self._keyframes]
        try:
            self._total_weight = math.fsum(weights)
        except OverflowError as e:
            raise InvalidParameterError(f"Keyframe weights overflow when summed: {weights!r}") from e
        self._boundaries = self._build_boundaries(weights, self._total_weight)

        if duration is None:
            self._duration = self._total_weight
        else:
            self._duration = require_real("duration", duration, positive=True)

        self._segment_seconds = tuple(
            weight / self._total_weight * self._duration for weight in weights
        )
        self._springs = tuple(
            SpringSimulation(frame.spring, 0.0, 1.0, frame.velocity)
            if frame.mode is InterpolationMode.SPRING else None
            for frame in self._keyframes
        )
        logger.debug(
            "Keyframe sequence built: segments=%d, total_weight=%.3f, duration=%.3fs",
            len(self._keyframes), self._total_weight, self._duration,
        )

    @staticmethod
    def _build_boundaries(weights: Sequence[float], total: float) -> Tuple[float, ...]:
        boundaries = [0.0]
        running = 0.0
        for weight in weights[:-1]:
            running += weight
            boundaries.append(running / total)
        boundaries.append(1.0)
        for index in range(1, len(boundaries)):
            if not boundaries[index] > boundaries[index - 1]:
                raise ZeroWeightSegmentError(
                    f"Keyframe {index - 1} has no width on the timeline "
                    f"(weight {weights[index - 1]!r} of {total!r})"
                )
        return tuple(boundaries)

    @property
    def keyframes(self) -> Tuple[Keyframe[T], ...]:
        return self._keyframes

    @property
    def starting_value(self) -> T:
        return self._starting_value

    @property
    def boundaries(self) -> Tuple[float, ...]:
        """Cumulative partition of [0, 1]: N + 1 values from 0.0 to 1.0."""
        return self._boundaries

    @property
    def total_weight(self) -> float:
        return self._total_weight

    @property
    def total_duration_seconds(self) -> float:
        """Sum of all weights read as seconds."""
        return self._total_weight

    @property
    def duration(self) -> float:
        """Seconds the timeline lasts when driven (spring time base)."""
        return self._duration

    def segment_duration(self, index: int) -> float:
        return self._segment_seconds[index]

    def segment_at(self, t: float) -> Tuple[int, float]:
        """
        Map global progress to ``(segment index, local progress)``.

        Segments are half-open [b(i), b(i+1)) except the last, which also
        owns t = 1. t is clamped to [0, 1]; NaN reads as 0.
        """
        last = len(self._keyframes) - 1
        if not t > 0.0:
            return 0, 0.0
        if t >= 1.0:
            return last, 1.0
        index = min(bisect_right(self._boundaries, t) - 1, last)
        lower = self._boundaries[index]
        upper = self._boundaries[index + 1]
        local = (t - lower) / (upper - lower)
        return index, min(1.0, max(0.0, local))

    def begin_value(self, index: int) -> T:
        if index == 0:
            return self._starting_value
        return self._keyframes[index - 1].value

    def _export(self, value: T) -> T:
        return value.copy() if self._copy_values else value

    def evaluate(self, t: float) -> T:
        """Interpolated value at global progress t."""
        index, local = self.segment_at(t)
        frame = self._keyframes[index]
        begin = self.begin_value(index)
        if local <= 0.0:
            return self._export(begin)
        if local >= 1.0:
            return self._export(frame.value)

        if frame.mode is InterpolationMode.CURVED:
            fraction = frame.curve(local)
        elif frame.mode is InterpolationMode.SPRING:
            fraction = self._springs[index].position(local * self._segment_seconds[index])
        else:
            fraction = local
        return self._blend(begin, frame.value, fraction)

    transform = evaluate

    def __call__(self, t: float) -> T:
        return self.evaluate(t)

    def sample(self, count: int) -> List[T]:
        """Evaluate ``count`` evenly spaced progress values across [0, 1]."""
        if isinstance(count, bool) or not isinstance(count, numbers.Integral) or count < 1:
            raise InvalidParameterError(f"count must be a positive integer, got {count!r}")
        if count == 1:
            return [self.evaluate(0.0)]
        return [self.evaluate(index / (count - 1)) for index in range(count)]

    def __len__(self) -> int:
        return len(self._keyframes)

    def __repr__(self) -> str:
        return (
            f"KeyframeSequence(segments={len(self._keyframes)}, "
            f"starting_value={self._starting_value!r}, duration={self._duration:.3f})"
        )
