"""Parameter validation shared by springs, keyframes and drivers."""
import math
import numbers

from fluid_animations.errors import InvalidParameterError


def require_real(name: str, value, *, positive: bool = False,
                 non_negative: bool = False, allow_infinite: bool = False) -> float:
    """Validate a real parameter and return it as float.

    Raises:
        InvalidParameterError: value is not a real number (bool excluded),
            is NaN, is infinite (unless ``allow_infinite``), or violates the
            requested sign constraint.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if math.isnan(value):
        raise InvalidParameterError(f"{name} must not be NaN")
    if not allow_infinite and math.isinf(value):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    if positive and value <= 0.0:
        raise InvalidParameterError(f"{name} must be > 0, got {value!r}")
    if non_negative and value < 0.0:
        raise InvalidParameterError(f"{name} must be >= 0, got {value!r}")
    return value
