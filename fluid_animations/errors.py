"""
Exception types raised by fluid_animations.

Every error here is a construction-time failure: springs, keyframes and
sequences validate their inputs eagerly so that evaluation never raises.
"""


class FluidAnimationError(Exception):
    """Base class for all library errors."""


class InvalidParameterError(FluidAnimationError, ValueError):
    """A physical or timing parameter is non-numeric, NaN or out of range."""


class EmptySequenceError(FluidAnimationError, ValueError):
    """A keyframe sequence was built without any keyframes."""


class ZeroWeightSegmentError(FluidAnimationError, ValueError):
    """A keyframe was given a weight of zero or less."""


class UnsupportedTypeError(FluidAnimationError, TypeError):
    """Interpolation was requested for a type with no blend operation."""
