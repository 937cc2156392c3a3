"""
Named spring presets.

Each preset is a fixed (duration, bounce) pair converted to SpringParameters
on access. Hosts can use them directly, through the FluidSpring namespace,
or as the spring of a Keyframe.

## Adding New Presets

Add an entry to PRESET_DEFINITIONS below:

    "lazy": SpringPreset(
        name="Lazy",
        description="Slow drift with no overshoot.",
        duration=1.2,
        bounce=0.0,
    )

FluidSpring picks up new entries automatically (FluidSpring.lazy).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from fluid_animations.animation.spring import SpringParameters
from fluid_animations.errors import InvalidParameterError


@dataclass(frozen=True)
class SpringPreset:
    """Definition of a named spring."""
    name: str
    description: str
    duration: float  # seconds
    bounce: float    # -1..1, 0 = critically damped

    def to_spring(self, mass: float = 1.0) -> SpringParameters:
        return SpringParameters.from_duration_and_bounce(self.duration, self.bounce, mass=mass)


# =============================================================================
# PRESET DEFINITIONS
# =============================================================================
# bouncy, smooth and snappy share the 0.5 s period of the SwiftUI spring
# presets and differ only in bounce. smooth reads as slower because its
# zero-bounce tail creeps into the target instead of swinging past it.

PRESET_DEFINITIONS: Dict[str, SpringPreset] = {
    "bouncy": SpringPreset(
        name="Bouncy",
        description="Short spring with a visible overshoot.",
        duration=0.5,
        bounce=0.3,
    ),
    "smooth": SpringPreset(
        name="Smooth",
        description="Critically damped, no overshoot.",
        duration=0.5,
        bounce=0.0,
    ),
    "snappy": SpringPreset(
        name="Snappy",
        description="Short spring with a slight overshoot.",
        duration=0.5,
        bounce=0.15,
    ),
    "interactive": SpringPreset(
        name="Interactive",
        description="Very short spring for tracking direct manipulation.",
        duration=0.15,
        bounce=0.14,
    ),
}


def get_preset(key: str) -> SpringPreset:
    """Look up a preset by key (case-insensitive)."""
    preset = PRESET_DEFINITIONS.get(str(key).strip().lower())
    if preset is None:
        raise InvalidParameterError(
            f"Unknown spring preset {key!r} (available: {', '.join(sorted(PRESET_DEFINITIONS))})"
        )
    return preset


def get_spring(key: str, mass: float = 1.0) -> SpringParameters:
    return get_preset(key).to_spring(mass=mass)


def list_presets() -> List[str]:
    return list(PRESET_DEFINITIONS)


class _FluidSpringNamespace:
    """Attribute access to presets: FluidSpring.bouncy, FluidSpring.smooth, ..."""

    def __getattr__(self, key: str) -> SpringParameters:
        if key.startswith("_"):
            raise AttributeError(key)
        try:
            return get_spring(key)
        except InvalidParameterError as e:
            raise AttributeError(str(e)) from e

    def __dir__(self) -> List[str]:
        return list_presets()


FluidSpring = _FluidSpringNamespace()
