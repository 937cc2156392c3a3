"""
Animation types, enums, and value dataclasses.

Defines the core types shared by the spring engine and the keyframe
scheduler.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class AnimationState(Enum):
    """State of a clock-driven animation."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


class DampingRegime(Enum):
    """Classification of a spring by its damping ratio."""
    UNDER = "under"            # Oscillates around the target
    CRITICAL = "critical"      # Fastest approach without overshoot
    OVER = "over"              # Slow exponential approach


class InterpolationMode(Enum):
    """How a keyframe moves from the previous value to its own."""
    LINEAR = "linear"
    CURVED = "curved"          # Easing curve applied to local progress
    SPRING = "spring"          # Spring simulation in the time domain


class EasingCurve(Enum):
    """
    Easing curve types.

    Easing functions remap progress in [0, 1] before linear blending.
    """
    LINEAR = "linear"

    QUAD_IN = "quad_in"
    QUAD_OUT = "quad_out"
    QUAD_IN_OUT = "quad_in_out"

    CUBIC_IN = "cubic_in"
    CUBIC_OUT = "cubic_out"
    CUBIC_IN_OUT = "cubic_in_out"

    QUART_IN = "quart_in"
    QUART_OUT = "quart_out"
    QUART_IN_OUT = "quart_in_out"

    QUINT_IN = "quint_in"
    QUINT_OUT = "quint_out"
    QUINT_IN_OUT = "quint_in_out"

    SINE_IN = "sine_in"
    SINE_OUT = "sine_out"
    SINE_IN_OUT = "sine_in_out"

    EXPO_IN = "expo_in"
    EXPO_OUT = "expo_out"
    EXPO_IN_OUT = "expo_in_out"

    CIRC_IN = "circ_in"
    CIRC_OUT = "circ_out"
    CIRC_IN_OUT = "circ_in_out"

    ELASTIC_IN = "elastic_in"
    ELASTIC_OUT = "elastic_out"
    ELASTIC_IN_OUT = "elastic_in_out"

    BACK_IN = "back_in"
    BACK_OUT = "back_out"
    BACK_IN_OUT = "back_in_out"

    BOUNCE_IN = "bounce_in"
    BOUNCE_OUT = "bounce_out"
    BOUNCE_IN_OUT = "bounce_in_out"

    # Cubic bezier curves (CSS / Material naming)
    EASE = "ease"
    EASE_IN = "ease_in"
    EASE_OUT = "ease_out"
    EASE_IN_OUT = "ease_in_out"
    FAST_OUT_SLOW_IN = "fast_out_slow_in"
    DECELERATE = "decelerate"


@dataclass(frozen=True)
class Vec2:
    """Immutable 2D vector (offsets, alignments)."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vec2:
        return self.__mul__(scalar)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def lerp(self, other: Vec2, fraction: float) -> Vec2:
        return Vec2(
            self.x + (other.x - self.x) * fraction,
            self.y + (other.y - self.y) * fraction,
        )


@dataclass(frozen=True)
class Vec3:
    """Immutable 3D vector (scale/translate triples)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vec3:
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vec3:
        return self.__mul__(scalar)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def lerp(self, other: Vec3, fraction: float) -> Vec3:
        return Vec3(
            self.x + (other.x - self.x) * fraction,
            self.y + (other.y - self.y) * fraction,
            self.z + (other.z - self.z) * fraction,
        )
