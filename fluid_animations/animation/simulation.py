"""Two independent axis springs with an optional y-axis start delay."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fluid_animations.animation.spring import SpringParameters, SpringSimulation
from fluid_animations.animation.types import Vec2
from fluid_animations.errors import InvalidParameterError
from fluid_animations.logging.logger import get_logger
from fluid_animations.utils.decorators import log_errors
from fluid_animations.utils.validation import require_real

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpringSimulation2D:
    """
    Pairs an x-axis and a y-axis SpringSimulation.

    The axes may use different springs. The y axis starts ``y_delay``
    seconds after the x axis, so its own elapsed time is
    ``max(0, t - y_delay)``; a small delay gives a diagonal "drag" feel.
    """
    x: SpringSimulation
    y: SpringSimulation
    y_delay: float = 0.0

    @log_errors(logger, "Rejected 2D spring simulation", log_level="debug")
    def __post_init__(self) -> None:
        for axis, sim in (("x", self.x), ("y", self.y)):
            if not isinstance(sim, SpringSimulation):
                raise InvalidParameterError(
                    f"{axis} must be a SpringSimulation, got {type(sim).__name__}"
                )
        object.__setattr__(self, "y_delay", require_real("y_delay", self.y_delay, non_negative=True))

    @classmethod
    def between(cls, begin: Vec2, end: Vec2, x_spring: SpringParameters,
                y_spring: Optional[SpringParameters] = None,
                velocity: Vec2 = Vec2(), y_delay: float = 0.0) -> SpringSimulation2D:
        """Build a 2D simulation from two points; y reuses x's spring by default."""
        y_spring = y_spring or x_spring
        return cls(
            x=SpringSimulation(x_spring, begin.x, end.x, velocity.x),
            y=SpringSimulation(y_spring, begin.y, end.y, velocity.y),
            y_delay=y_delay,
        )

    def y_time(self, t: float) -> float:
        """Elapsed time seen by the y axis."""
        return max(0.0, t - self.y_delay)

    def x_at(self, t: float) -> float:
        return self.x.position(t)

    def y_at(self, t: float) -> float:
        return self.y.position(self.y_time(t))

    def position(self, t: float) -> Vec2:
        return Vec2(self.x_at(t), self.y_at(t))

    def velocity(self, t: float) -> Vec2:
        return Vec2(self.x.velocity(t), self.y.velocity(self.y_time(t)))

    def is_settled(self, t: float) -> bool:
        return self.x.is_settled(t) and self.y.is_settled(self.y_time(t))
