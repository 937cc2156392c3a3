"""
QTimer frame driver for hosts running a Qt event loop.

Optional: requires PySide6 (``pip install fluid-animations[qt]``). Nothing
in the evaluation core imports this module.

The timer only produces progress; values are computed by the bound
animatable (a KeyframeSequence, SpringCurve, or any ``t -> value``) and
handed to the host through signals.
"""
import time
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QTimer, Qt, Signal

from fluid_animations.animation.driver import Clock, ClockProgress
from fluid_animations.constants.timing import DEFAULT_FRAME_RATE, MAX_FRAME_RATE, MIN_FRAME_RATE
from fluid_animations.errors import InvalidParameterError
from fluid_animations.logging.logger import get_logger

logger = get_logger(__name__)


class QtFrameDriver(QObject):
    """
    Drives one animatable at a fixed frame rate from a QTimer.

    Signals:
        progress_changed(float): progress in [0, 1] each frame
        value_changed(object): animatable value each frame
        completed(): emitted once when progress reaches 1
    """

    progress_changed = Signal(float)
    value_changed = Signal(object)
    completed = Signal()

    def __init__(self, fps: int = DEFAULT_FRAME_RATE, clock: Clock = time.monotonic,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.fps = self._clamp_fps(fps)
        self.frame_time = 1.0 / self.fps
        self._clock = clock

        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.setInterval(int(self.frame_time * 1000))
        self._timer.timeout.connect(self.tick)

        self._animatable: Optional[Callable[[float], Any]] = None
        self._progress: Optional[ClockProgress] = None
        self._frame_count = 0

        logger.debug("QtFrameDriver initialized (fps=%d)", self.fps)

    @staticmethod
    def _clamp_fps(fps: int) -> int:
        try:
            return max(MIN_FRAME_RATE, min(MAX_FRAME_RATE, int(fps)))
        except (TypeError, ValueError):
            return DEFAULT_FRAME_RATE

    def set_target_fps(self, fps: int) -> None:
        """Update target FPS and reconfigure the timer interval safely."""
        new_fps = self._clamp_fps(fps)
        if new_fps == self.fps:
            return
        self.fps = new_fps
        self.frame_time = 1.0 / self.fps
        was_active = self._timer.isActive()
        if was_active:
            self._timer.stop()
        self._timer.setInterval(int(self.frame_time * 1000))
        if was_active:
            self._timer.start()
        logger.info("QtFrameDriver target FPS set to %d", self.fps)

    def play(self, animatable: Callable[[float], Any], duration: float, delay: float = 0.0) -> None:
        """Start driving ``animatable`` from progress 0 over ``duration`` seconds."""
        if not callable(animatable):
            raise InvalidParameterError(f"animatable must be callable, got {animatable!r}")
        self._animatable = animatable
        self._progress = ClockProgress(duration, clock=self._clock, delay=delay)
        self._progress.start()
        self._frame_count = 0
        if not self._timer.isActive():
            self._timer.start()
        logger.debug("QtFrameDriver playing (duration=%.3fs)", duration)

    def stop(self) -> None:
        """Stop the frame loop without emitting completed()."""
        if self._timer.isActive():
            self._timer.stop()
            logger.debug("QtFrameDriver stopped after %d frames", self._frame_count)

    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def progress(self) -> float:
        if self._progress is None:
            return 0.0
        return min(1.0, self._progress.elapsed / self._progress.duration)

    def tick(self) -> None:
        """Advance one frame (timer slot)."""
        if self._progress is None or self._animatable is None:
            self.stop()
            return

        progress = self._progress.progress()
        self._frame_count += 1
        self.progress_changed.emit(progress)
        self.value_changed.emit(self._animatable(progress))

        if self._progress.is_complete:
            self._timer.stop()
            # Unbind so a stray queued tick cannot emit completed() twice
            self._animatable = None
            logger.debug("QtFrameDriver completed (frames=%d)", self._frame_count)
            self.completed.emit()
