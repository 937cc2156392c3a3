"""
Easing functions.

Each function takes progress t in [0.0, 1.0] and returns the remapped
progress; every table entry is pinned so that 0 -> 0 and 1 -> 1 exactly.

The Penner families are defined once as "in" curves; the "out" and
"in-out" variants are derived by reflection:

    out(t)    = 1 - in(1 - t)
    in_out(t) = in(2t) / 2             for t < 0.5
              = 1 - in(2 - 2t) / 2     otherwise

References:
- Robert Penner's Easing Functions
- https://easings.net/
"""
import math
from dataclasses import dataclass
from typing import Callable, Dict

from fluid_animations.animation.spring import SpringCurve
from fluid_animations.animation.types import EasingCurve
from fluid_animations.errors import InvalidParameterError
from fluid_animations.utils.validation import require_real

EasingFunction = Callable[[float], float]

BACK_OVERSHOOT = 1.70158
CUBIC_ERROR_BOUND = 1e-6
CUBIC_MAX_ITERATIONS = 64


def _reverse(ease_in: EasingFunction) -> EasingFunction:
    def ease_out(t: float) -> float:
        return 1.0 - ease_in(1.0 - t)
    return ease_out


def _mirror(ease_in: EasingFunction) -> EasingFunction:
    def ease_in_out(t: float) -> float:
        if t < 0.5:
            return ease_in(2.0 * t) / 2.0
        return 1.0 - ease_in(2.0 - 2.0 * t) / 2.0
    return ease_in_out


def _pinned(fn: EasingFunction) -> EasingFunction:
    """Clamp input to [0, 1] and return the endpoints exactly."""
    def pinned(t: float) -> float:
        if not t > 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        return fn(t)
    pinned.__name__ = getattr(fn, "__name__", "easing")
    pinned.__doc__ = fn.__doc__
    return pinned


def linear(t: float) -> float:
    """Linear interpolation - no easing."""
    return t


def _power_in(exponent: int) -> EasingFunction:
    def power_in(t: float) -> float:
        return t ** exponent
    return power_in


def sine_in(t: float) -> float:
    return 1.0 - math.cos(t * math.pi / 2.0)


def expo_in(t: float) -> float:
    if t == 0.0:
        return 0.0
    return math.pow(2.0, 10.0 * (t - 1.0))


def circ_in(t: float) -> float:
    return 1.0 - math.sqrt(max(0.0, 1.0 - t * t))


def elastic_in(t: float) -> float:
    """Elastic ease-in - a decaying spring-like wobble before the move."""
    if t == 0.0 or t == 1.0:
        return t
    return -math.pow(2.0, 10.0 * (t - 1.0)) * math.sin((t - 1.1) * 5.0 * math.pi)


def _back_in(overshoot: float) -> EasingFunction:
    def back_in(t: float) -> float:
        return t * t * ((overshoot + 1.0) * t - overshoot)
    return back_in


def bounce_out(t: float) -> float:
    """Bounce ease-out - decaying bounces against the end value."""
    n1 = 7.5625
    d1 = 2.75

    if t < 1 / d1:
        return n1 * t * t
    elif t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    elif t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


@dataclass(frozen=True)
class Cubic:
    """
    Cubic Bezier easing through (0, 0), (x1, y1), (x2, y2), (1, 1).

    The x coordinates must lie in [0, 1] so the curve is a function of
    progress; y may overshoot.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self) -> None:
        for name in ("x1", "x2"):
            value = require_real(name, getattr(self, name))
            if not 0.0 <= value <= 1.0:
                raise InvalidParameterError(f"{name} must lie in [0, 1], got {value!r}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "y1", require_real("y1", self.y1))
        object.__setattr__(self, "y2", require_real("y2", self.y2))

    @staticmethod
    def _bezier(a: float, b: float, m: float) -> float:
        return 3 * a * (1 - m) * (1 - m) * m + 3 * b * (1 - m) * m * m + m * m * m

    def __call__(self, t: float) -> float:
        if not t > 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        start, end = 0.0, 1.0
        midpoint = 0.5
        for _ in range(CUBIC_MAX_ITERATIONS):
            midpoint = (start + end) / 2.0
            estimate = self._bezier(self.x1, self.x2, midpoint)
            if abs(t - estimate) < CUBIC_ERROR_BOUND:
                break
            if estimate < t:
                start = midpoint
            else:
                end = midpoint
        return self._bezier(self.y1, self.y2, midpoint)


_quad_in = _power_in(2)
_cubic_in = _power_in(3)
_quart_in = _power_in(4)
_quint_in = _power_in(5)
_bounce_in = _reverse(bounce_out)

EASE = Cubic(0.25, 0.1, 0.25, 1.0)
EASE_IN = Cubic(0.42, 0.0, 1.0, 1.0)
EASE_OUT = Cubic(0.0, 0.0, 0.58, 1.0)
EASE_IN_OUT = Cubic(0.42, 0.0, 0.58, 1.0)
FAST_OUT_SLOW_IN = Cubic(0.4, 0.0, 0.2, 1.0)


EASING_FUNCTIONS: Dict[EasingCurve, EasingFunction] = {
    curve: _pinned(fn) for curve, fn in {
        EasingCurve.LINEAR: linear,

        EasingCurve.QUAD_IN: _quad_in,
        EasingCurve.QUAD_OUT: _reverse(_quad_in),
        EasingCurve.QUAD_IN_OUT: _mirror(_quad_in),

        EasingCurve.CUBIC_IN: _cubic_in,
        EasingCurve.CUBIC_OUT: _reverse(_cubic_in),
        EasingCurve.CUBIC_IN_OUT: _mirror(_cubic_in),

        EasingCurve.QUART_IN: _quart_in,
        EasingCurve.QUART_OUT: _reverse(_quart_in),
        EasingCurve.QUART_IN_OUT: _mirror(_quart_in),

        EasingCurve.QUINT_IN: _quint_in,
        EasingCurve.QUINT_OUT: _reverse(_quint_in),
        EasingCurve.QUINT_IN_OUT: _mirror(_quint_in),

        EasingCurve.SINE_IN: sine_in,
        EasingCurve.SINE_OUT: _reverse(sine_in),
        EasingCurve.SINE_IN_OUT: _mirror(sine_in),

        EasingCurve.EXPO_IN: expo_in,
        EasingCurve.EXPO_OUT: _reverse(expo_in),
        EasingCurve.EXPO_IN_OUT: _mirror(expo_in),

        EasingCurve.CIRC_IN: circ_in,
        EasingCurve.CIRC_OUT: _reverse(circ_in),
        EasingCurve.CIRC_IN_OUT: _mirror(circ_in),

        EasingCurve.ELASTIC_IN: elastic_in,
        EasingCurve.ELASTIC_OUT: _reverse(elastic_in),
        EasingCurve.ELASTIC_IN_OUT: _mirror(elastic_in),

        EasingCurve.BACK_IN: _back_in(BACK_OVERSHOOT),
        EasingCurve.BACK_OUT: _reverse(_back_in(BACK_OVERSHOOT)),
        EasingCurve.BACK_IN_OUT: _mirror(_back_in(BACK_OVERSHOOT * 1.525)),

        EasingCurve.BOUNCE_IN: _bounce_in,
        EasingCurve.BOUNCE_OUT: bounce_out,
        EasingCurve.BOUNCE_IN_OUT: _mirror(_bounce_in),

        EasingCurve.EASE: EASE,
        EasingCurve.EASE_IN: EASE_IN,
        EasingCurve.EASE_OUT: EASE_OUT,
        EasingCurve.EASE_IN_OUT: EASE_IN_OUT,
        EasingCurve.FAST_OUT_SLOW_IN: FAST_OUT_SLOW_IN,
        EasingCurve.DECELERATE: _reverse(_quad_in),
    }.items()
}


def get_easing_function(curve: EasingCurve) -> EasingFunction:
    """
    Get the easing function for a given curve.

    Raises:
        InvalidParameterError: If curve is not found
    """
    if curve not in EASING_FUNCTIONS:
        raise InvalidParameterError(f"Unknown easing curve: {curve!r}")
    return EASING_FUNCTIONS[curve]


def ease(t: float, curve: EasingCurve) -> float:
    """Apply an easing curve to progress t (clamped to [0, 1])."""
    return get_easing_function(curve)(t)


def resolve_curve(curve) -> EasingFunction:
    """
    Normalise anything curve-like to a callable ``float -> float``.

    Accepts an EasingCurve member, a Cubic, a SpringCurve, or any callable.
    """
    if isinstance(curve, EasingCurve):
        return get_easing_function(curve)
    if isinstance(curve, (Cubic, SpringCurve)):
        return curve
    if callable(curve) and not isinstance(curve, type):
        return curve
    raise InvalidParameterError(f"Not an easing curve: {curve!r}")
