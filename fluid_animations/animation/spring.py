"""
Closed-form damped spring.

A spring is described either by raw physical constants (mass, stiffness,
damping) or by a perceptual (duration, bounce) pair. SpringSimulation
evaluates the exact solution of the damped harmonic oscillator

    m·x'' + c·x' + k·x = 0

relative to the target value, so any elapsed time can be queried directly
(scrubbing) as well as in increasing order (driving). Nothing is integrated
numerically and no state is carried between calls.

Settling uses a monotone envelope of displacement and velocity rather than
the instantaneous sample: once the envelope is inside tolerance every later
sample is too, so an oscillation crossing the target never reads as settled.
"""
from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from fluid_animations.animation.types import DampingRegime
from fluid_animations.constants.timing import (
    CRITICAL_DAMPING_EPSILON,
    DEFAULT_ABSOLUTE_TOLERANCE,
    DEFAULT_FRAME_RATE,
    DEFAULT_RELATIVE_TOLERANCE,
    MAX_SIMULATION_DURATION_S,
    MAX_SIMULATION_STEPS,
    MIN_OVERDAMPED_DENOMINATOR,
    SETTLE_SEARCH_ITERATIONS,
)
from fluid_animations.errors import InvalidParameterError
from fluid_animations.logging.logger import get_logger, is_verbose_logging
from fluid_animations.utils.decorators import log_errors
from fluid_animations.utils.validation import require_real

logger = get_logger(__name__)

# Elapsed times are capped so exp()/cos() never see infinities.
_MAX_ELAPSED = 1e12


@dataclass(frozen=True)
class SpringParameters:
    """Physical description of a damped oscillator."""
    stiffness: float
    damping: float
    mass: float = 1.0

    @log_errors(logger, "Rejected spring parameters", log_level="debug")
    def __post_init__(self) -> None:
        object.__setattr__(self, "stiffness", require_real("stiffness", self.stiffness, positive=True))
        object.__setattr__(self, "damping", require_real("damping", self.damping, non_negative=True))
        object.__setattr__(self, "mass", require_real("mass", self.mass, positive=True))

    @classmethod
    def from_duration_and_bounce(cls, duration: float, bounce: float = 0.0,
                                 mass: float = 1.0) -> SpringParameters:
        """
        Build a spring from a perceptual duration and bounce.

        Args:
            duration: Period of the undamped oscillation in seconds (> 0).
            bounce: 0 is critically damped, (0, 1] under-damped and
                [-1, 0) over-damped. Clamped to [-1, 1].
            mass: Oscillator mass.

        Raises:
            InvalidParameterError: duration <= 0, or any input non-numeric/NaN.
                An infinite bounce is clamped like any other out-of-range one.
        """
        duration = require_real("duration", duration, positive=True)
        raw_bounce = require_real("bounce", bounce, allow_infinite=True)
        mass = require_real("mass", mass, positive=True)

        bounce = max(-1.0, min(1.0, raw_bounce))
        if bounce != raw_bounce:
            logger.debug("[SPRING] bounce %.3f clamped to %.3f", raw_bounce, bounce)

        if bounce >= 0.0:
            ratio = 1.0 - bounce
        else:
            ratio = 1.0 / max(1.0 + bounce, MIN_OVERDAMPED_DENOMINATOR)

        stiffness = (2.0 * math.pi / duration) ** 2 * mass
        damping = ratio * 4.0 * math.pi * mass / duration
        return cls(stiffness=stiffness, damping=damping, mass=mass)

    @property
    def natural_frequency(self) -> float:
        """Undamped angular frequency ω₀ in rad/s."""
        return math.sqrt(self.stiffness / self.mass)

    @property
    def damping_ratio(self) -> float:
        return self.damping / (2.0 * math.sqrt(self.mass * self.stiffness))

    @property
    def regime(self) -> DampingRegime:
        ratio = self.damping_ratio
        if abs(ratio - 1.0) <= CRITICAL_DAMPING_EPSILON:
            return DampingRegime.CRITICAL
        if ratio < 1.0:
            return DampingRegime.UNDER
        return DampingRegime.OVER

    @property
    def duration(self) -> float:
        """Perceptual duration (inverse of from_duration_and_bounce)."""
        return 2.0 * math.pi / self.natural_frequency

    @property
    def bounce(self) -> float:
        """Perceptual bounce (inverse of from_duration_and_bounce)."""
        ratio = self.damping_ratio
        if ratio <= 1.0:
            return 1.0 - ratio
        return 1.0 / ratio - 1.0


from_duration_and_bounce = SpringParameters.from_duration_and_bounce


@dataclass(frozen=True)
class SettleTolerance:
    """Absolute tolerances for the settle predicate."""
    position: float
    velocity: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", require_real("position tolerance", self.position, non_negative=True))
        object.__setattr__(self, "velocity", require_real("velocity tolerance", self.velocity, non_negative=True))

    @classmethod
    def for_range(cls, start: float, end: float) -> SettleTolerance:
        """Default tolerance: 0.001 of the value range, or an absolute epsilon."""
        span = abs(end - start)
        if span == 0.0:
            return cls(DEFAULT_ABSOLUTE_TOLERANCE, DEFAULT_ABSOLUTE_TOLERANCE)
        tol = DEFAULT_RELATIVE_TOLERANCE * span
        return cls(tol, tol)


def _peaked_envelope(p: float, q: float, omega: float, t: float) -> float:
    """Non-increasing upper bound of (p + q·t)·e^(-ωt) for p, q >= 0."""
    if q > 0.0:
        peak = 1.0 / omega - p / q
        if peak > t:
            t = peak
    return (p + q * t) * math.exp(-omega * t)


@dataclass(frozen=True)
class SpringSimulation:
    """
    Spring moving from ``start`` to ``end`` with an initial velocity.

    Pure function of elapsed time: position(t), velocity(t) and
    is_settled(t) may be called in any order.
    """
    parameters: SpringParameters
    start: float
    end: float
    initial_velocity: float = 0.0
    tolerance: Optional[SettleTolerance] = None

    # Closed-form coefficients, filled once in __post_init__
    _regime: DampingRegime = field(init=False, repr=False, compare=False)
    _coeffs: Tuple[float, ...] = field(init=False, repr=False, compare=False)

    @log_errors(logger, "Rejected spring simulation", log_level="debug")
    def __post_init__(self) -> None:
        if not isinstance(self.parameters, SpringParameters):
            raise InvalidParameterError(
                f"parameters must be SpringParameters, got {type(self.parameters).__name__}"
            )
        start = require_real("start", self.start)
        end = require_real("end", self.end)
        v0 = require_real("initial_velocity", self.initial_velocity)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "initial_velocity", v0)
        if self.tolerance is None:
            object.__setattr__(self, "tolerance", SettleTolerance.for_range(start, end))

        params = self.parameters
        omega = params.natural_frequency
        zeta = params.damping_ratio
        regime = params.regime
        x0 = start - end

        if regime is DampingRegime.CRITICAL:
            coeffs = (omega, x0, v0 + omega * x0)
        elif regime is DampingRegime.UNDER:
            alpha = zeta * omega
            wd = omega * math.sqrt(1.0 - zeta * zeta)
            b = (v0 + alpha * x0) / wd
            d = (alpha * v0 + omega * omega * x0) / wd
            coeffs = (alpha, wd, x0, b, v0, d)
        else:
            root = math.sqrt(zeta * zeta - 1.0)
            # r1 written as -ω/(ζ+√(ζ²-1)) to avoid cancellation at large ζ
            r1 = -omega / (zeta + root)
            r2 = -omega * (zeta + root)
            b = (v0 - r1 * x0) / (r2 - r1)
            a = x0 - b
            coeffs = (r1, r2, a, b)

        object.__setattr__(self, "_regime", regime)
        object.__setattr__(self, "_coeffs", coeffs)

    @property
    def regime(self) -> DampingRegime:
        return self._regime

    def _evaluate(self, t: float) -> Tuple[float, float]:
        """Displacement from ``end`` and velocity at elapsed time t > 0."""
        t = min(t, _MAX_ELAPSED)
        if self._regime is DampingRegime.CRITICAL:
            omega, a, b = self._coeffs
            decay = math.exp(-omega * t)
            return (a + b * t) * decay, (self.initial_velocity - omega * b * t) * decay
        if self._regime is DampingRegime.UNDER:
            alpha, wd, a, b, v0, d = self._coeffs
            decay = math.exp(-alpha * t)
            c = math.cos(wd * t)
            s = math.sin(wd * t)
            return decay * (a * c + b * s), decay * (v0 * c - d * s)
        r1, r2, a, b = self._coeffs
        e1 = math.exp(r1 * t)
        e2 = math.exp(r2 * t)
        return a * e1 + b * e2, r1 * a * e1 + r2 * b * e2

    def _envelope(self, t: float) -> Tuple[float, float]:
        """Non-increasing bounds on |displacement| and |velocity| from t on."""
        t = min(max(t, 0.0), _MAX_ELAPSED)
        if self._regime is DampingRegime.CRITICAL:
            omega, a, b = self._coeffs
            return (
                _peaked_envelope(abs(a), abs(b), omega, t),
                _peaked_envelope(abs(self.initial_velocity), omega * abs(b), omega, t),
            )
        if self._regime is DampingRegime.UNDER:
            alpha, _wd, a, b, v0, d = self._coeffs
            decay = math.exp(-alpha * t)
            return decay * math.hypot(a, b), decay * math.hypot(v0, d)
        r1, r2, a, b = self._coeffs
        e1 = math.exp(r1 * t)
        e2 = math.exp(r2 * t)
        return abs(a) * e1 + abs(b) * e2, abs(r1 * a) * e1 + abs(r2 * b) * e2

    def position(self, t: float) -> float:
        """Position at elapsed time t; t <= 0 (or NaN) returns ``start``."""
        if not t > 0.0:
            return self.start
        return self.end + self._evaluate(t)[0]

    def velocity(self, t: float) -> float:
        """Velocity at elapsed time t; t <= 0 (or NaN) returns the initial velocity."""
        if not t > 0.0:
            return self.initial_velocity
        return self._evaluate(t)[1]

    def is_settled(self, t: float) -> bool:
        """True once position and velocity stay within tolerance from t on."""
        if not t > 0.0:
            t = 0.0
        displacement, speed = self._envelope(t)
        return displacement <= self.tolerance.position and speed <= self.tolerance.velocity

    def settle_time(self, max_duration: float = MAX_SIMULATION_DURATION_S) -> Optional[float]:
        """
        Earliest elapsed time at which the spring counts as settled.

        Returns None when the spring does not settle within ``max_duration``
        (e.g. an undamped oscillator).
        """
        if self.is_settled(0.0):
            return 0.0
        if not self.is_settled(max_duration):
            return None
        lo, hi = 0.0, float(max_duration)
        for _ in range(SETTLE_SEARCH_ITERATIONS):
            mid = (lo + hi) / 2.0
            if self.is_settled(mid):
                hi = mid
            else:
                lo = mid
        return hi

    def step(self, times: Iterable[float],
             max_duration: float = MAX_SIMULATION_DURATION_S,
             max_steps: int = MAX_SIMULATION_STEPS) -> Iterator[Tuple[float, float]]:
        """
        Sample the spring against an external, increasing time source.

        Yields ``(time, position)`` pairs and stops after the first settled
        sample, once time passes ``max_duration``, or after ``max_steps``
        times have been read. Times that are not finite or do not increase
        are skipped but still count towards ``max_steps``, so a stalled
        clock cannot keep the generator alive.
        """
        previous: Optional[float] = None
        taken = 0
        emitted = 0
        verbose = is_verbose_logging()
        for t in times:
            if taken >= max_steps:
                logger.warning(
                    "[SPRING] Step cutoff reached after %d times (%d emitted, unsettled)", taken, emitted
                )
                return
            taken += 1
            if not math.isfinite(t):
                logger.debug("[SPRING] Skipping non-finite time %r", t)
                continue
            if previous is not None and not t > previous:
                logger.debug("[SPRING] Skipping non-increasing time %.6f (previous %.6f)", t, previous)
                continue
            if t > max_duration:
                logger.warning("[SPRING] Duration cutoff reached at t=%.3fs (unsettled)", t)
                return
            previous = t
            emitted += 1
            value = self.position(t)
            if verbose:
                logger.debug("[SPRING] t=%.4f x=%.6f", t, value)
            yield t, value
            if self.is_settled(t):
                return

    def samples(self, frame_rate: float = DEFAULT_FRAME_RATE,
                max_duration: float = MAX_SIMULATION_DURATION_S) -> List[Tuple[float, float]]:
        """Fixed-rate ``(time, position)`` samples until settled or cut off."""
        frame_rate = require_real("frame_rate", frame_rate, positive=True)
        clock = (index / frame_rate for index in itertools.count())
        return list(self.step(clock, max_duration=max_duration))


def position(simulation: SpringSimulation, t: float) -> float:
    return simulation.position(t)


def velocity(simulation: SpringSimulation, t: float) -> float:
    return simulation.velocity(t)


def is_settled(simulation: SpringSimulation, t: float) -> bool:
    return simulation.is_settled(t)


@dataclass(frozen=True)
class SpringCurve:
    """
    Easing curve backed by a spring moving from 0 to 1.

    Progress p maps to the spring position at ``p · duration`` seconds;
    duration defaults to the spring's own perceptual duration. The curve is
    pinned to 0 at p=0 and 1 at p=1, so an unsettled spring jumps at the end.
    """
    spring: SpringParameters
    duration: Optional[float] = None
    velocity: float = 0.0

    _simulation: SpringSimulation = field(init=False, repr=False, compare=False)

    @log_errors(logger, "Rejected spring curve", log_level="debug")
    def __post_init__(self) -> None:
        if not isinstance(self.spring, SpringParameters):
            raise InvalidParameterError(
                f"spring must be SpringParameters, got {type(self.spring).__name__}"
            )
        if self.duration is None:
            object.__setattr__(self, "duration", self.spring.duration)
        else:
            object.__setattr__(self, "duration", require_real("duration", self.duration, positive=True))
        object.__setattr__(self, "_simulation", SpringSimulation(self.spring, 0.0, 1.0, self.velocity))

    def __call__(self, t: float) -> float:
        if not t > 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        return self._simulation.position(t * self.duration)
