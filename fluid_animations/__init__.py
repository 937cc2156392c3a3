"""Spring physics and keyframe sequencing for animations."""

from .animation import *  # noqa: F401,F403
from .animation import __all__ as _animation_all
from .errors import (
    FluidAnimationError,
    InvalidParameterError,
    EmptySequenceError,
    ZeroWeightSegmentError,
    UnsupportedTypeError,
)
from .presets import FluidSpring, SpringPreset, PRESET_DEFINITIONS, get_preset, get_spring, list_presets

__version__ = "1.0.0"

__all__ = list(_animation_all) + [
    'FluidAnimationError',
    'InvalidParameterError',
    'EmptySequenceError',
    'ZeroWeightSegmentError',
    'UnsupportedTypeError',
    'FluidSpring',
    'SpringPreset',
    'PRESET_DEFINITIONS',
    'get_preset',
    'get_spring',
    'list_presets',
]
