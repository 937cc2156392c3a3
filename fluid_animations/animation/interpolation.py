"""
Blend capability lookup.

A blend is any callable ``(a, b, fraction) -> value``. Keyframe sequences
resolve the blend for their value type once at construction, so an
unsupported type is rejected before any evaluation happens.

Built-in kinds:
    - real numbers (``bool`` excluded)
    - objects exposing ``lerp(other, fraction)`` (Vec2, Vec3, user types)
    - numpy arrays
"""
from __future__ import annotations

import numbers
from typing import Any, Callable, Dict, Optional, Type

import numpy as np

from fluid_animations.errors import UnsupportedTypeError

BlendFunction = Callable[[Any, Any, float], Any]


def lerp_scalar(a: float, b: float, fraction: float) -> float:
    """Blend two reals; exact at both endpoints."""
    return a * (1.0 - fraction) + b * fraction


def lerp_array(a: np.ndarray, b: np.ndarray, fraction: float) -> np.ndarray:
    return np.asarray(a, dtype=float) * (1.0 - fraction) + np.asarray(b, dtype=float) * fraction


def lerp_method(a: Any, b: Any, fraction: float) -> Any:
    return a.lerp(b, fraction)


_REGISTERED: Dict[type, BlendFunction] = {}


def register_blend(value_type: Type, blend: BlendFunction) -> None:
    """Register a blend for a value type (takes precedence over built-ins)."""
    if not callable(blend):
        raise UnsupportedTypeError(f"Blend for {value_type.__name__} is not callable")
    _REGISTERED[value_type] = blend


def unregister_blend(value_type: Type) -> None:
    _REGISTERED.pop(value_type, None)


def find_blend(value: Any) -> Optional[BlendFunction]:
    """Return the blend for ``value`` or None when the type has none."""
    for klass in type(value).__mro__:
        if klass in _REGISTERED:
            return _REGISTERED[klass]
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return lerp_scalar
    if isinstance(value, np.ndarray):
        if not np.issubdtype(value.dtype, np.number) or np.issubdtype(value.dtype, np.bool_):
            return None
        return lerp_array
    if callable(getattr(value, "lerp", None)):
        return lerp_method
    return None


def resolve_blend(value: Any) -> BlendFunction:
    """Return the blend for ``value`` or raise UnsupportedTypeError."""
    blend = find_blend(value)
    if blend is None:
        raise UnsupportedTypeError(
            f"No blend operation for values of type {type(value).__name__}"
        )
    return blend


def supports_blend(value: Any) -> bool:
    return find_blend(value) is not None


def lerp(a: Any, b: Any, fraction: float) -> Any:
    """Blend ``a`` towards ``b`` by ``fraction`` using the blend of ``a``."""
    return resolve_blend(a)(a, b, fraction)
