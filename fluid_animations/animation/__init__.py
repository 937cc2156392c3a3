"""Spring engine, easing curves and keyframe scheduling.

The Qt frame driver is not imported here; import
fluid_animations.animation.qt_driver explicitly when PySide6 is available.
"""

from .types import (
    AnimationState,
    DampingRegime,
    InterpolationMode,
    EasingCurve,
    Vec2,
    Vec3,
)
from .spring import (
    SpringParameters,
    SpringSimulation,
    SettleTolerance,
    SpringCurve,
    from_duration_and_bounce,
    position,
    velocity,
    is_settled,
)
from .simulation import SpringSimulation2D
from .easing import Cubic, ease, get_easing_function, resolve_curve, EASING_FUNCTIONS
from .interpolation import lerp, register_blend, resolve_blend, supports_blend
from .keyframe import (
    Keyframe,
    KeyframeSequence,
    linear_keyframe,
    curved_keyframe,
    spring_keyframe,
)
from .velocity import VelocityTracker, absolute_velocity, relative_velocity
from .driver import AnimatedValue, ClockProgress, ManualProgress, ProgressSource, SpringFollower

__all__ = [
    # Types
    'AnimationState',
    'DampingRegime',
    'InterpolationMode',
    'EasingCurve',
    'Vec2',
    'Vec3',

    # Spring engine
    'SpringParameters',
    'SpringSimulation',
    'SettleTolerance',
    'SpringCurve',
    'SpringSimulation2D',
    'from_duration_and_bounce',
    'position',
    'velocity',
    'is_settled',

    # Easing
    'Cubic',
    'ease',
    'get_easing_function',
    'resolve_curve',
    'EASING_FUNCTIONS',

    # Interpolation
    'lerp',
    'register_blend',
    'resolve_blend',
    'supports_blend',

    # Keyframes
    'Keyframe',
    'KeyframeSequence',
    'linear_keyframe',
    'curved_keyframe',
    'spring_keyframe',

    # Velocity
    'VelocityTracker',
    'absolute_velocity',
    'relative_velocity',

    # Drivers
    'AnimatedValue',
    'ClockProgress',
    'ManualProgress',
    'ProgressSource',
    'SpringFollower',
]
