"""
Tests for progress sources and value drivers.

Verifies:
- ClockProgress advances with the clock, honours delay and pause/resume
- Large frame gaps are clamped
- Completion callback runs once and its errors are logged, not raised
- SpringFollower keeps position and velocity continuous across retargets
"""
import logging

import pytest
from unittest.mock import MagicMock

from fluid_animations.animation.driver import AnimatedValue, ClockProgress, ManualProgress, ProgressSource, SpringFollower
from fluid_animations.animation.keyframe import KeyframeSequence, linear_keyframe
from fluid_animations.animation.types import AnimationState
from fluid_animations.constants.timing import MAX_FRAME_DELTA_S
from fluid_animations.errors import InvalidParameterError


class TestManualProgress:

    def test_seek_clamps(self):
        source = ManualProgress()
        source.seek(0.4)
        assert source.progress() == 0.4
        source.seek(3.0)
        assert source.progress() == 1.0
        source.seek(-1.0)
        assert source.progress() == 0.0

    def test_is_progress_source(self):
        assert isinstance(ManualProgress(), ProgressSource)

    def test_seek_rejects_nan(self):
        with pytest.raises(InvalidParameterError):
            ManualProgress(float("nan"))


class TestClockProgress:

    def test_idle_until_started(self, clock):
        progress = ClockProgress(1.0, clock=clock)
        clock.advance(0.3)
        assert progress.state == AnimationState.IDLE
        assert progress.progress() == 0.0

    def test_advances_with_clock(self, clock):
        progress = ClockProgress(2.0, clock=clock)
        progress.start()
        clock.advance(0.5)
        assert progress.progress() == pytest.approx(0.25)
        clock.advance(0.5)
        assert progress.progress() == pytest.approx(0.5)

    def test_completes_at_duration(self, clock):
        progress = ClockProgress(1.0, clock=clock)
        progress.start()
        for _ in range(4):
            clock.advance(0.3)
            progress.progress()
        assert progress.is_complete
        assert progress.progress() == 1.0

    def test_large_gap_is_clamped(self, clock):
        progress = ClockProgress(10.0, clock=clock)
        progress.start()
        clock.advance(5.0)
        assert progress.progress() == pytest.approx(MAX_FRAME_DELTA_S / 10.0)

    def test_clock_going_backwards_is_ignored(self, clock):
        progress = ClockProgress(1.0, clock=clock)
        progress.start()
        clock.advance(0.2)
        progress.progress()
        clock.advance(-0.1)
        assert progress.progress() == pytest.approx(0.2)

    def test_delay_holds_progress(self, clock):
        progress = ClockProgress(1.0, clock=clock, delay=0.25)
        progress.start()
        clock.advance(0.2)
        assert progress.progress() == 0.0
        clock.advance(0.15)
        assert progress.progress() == pytest.approx(0.1)

    def test_pause_and_resume(self, clock):
        progress = ClockProgress(1.0, clock=clock)
        progress.start()
        clock.advance(0.2)
        progress.pause()
        assert progress.state == AnimationState.PAUSED
        clock.advance(0.4)
        assert progress.progress() == pytest.approx(0.2)
        progress.resume()
        clock.advance(0.1)
        assert progress.progress() == pytest.approx(0.3)

    def test_restart(self, clock):
        progress = ClockProgress(1.0, clock=clock)
        progress.start()
        clock.advance(0.4)
        progress.progress()
        progress.start()
        assert progress.progress() == 0.0

    def test_completion_callback_called_once(self, clock):
        callback = MagicMock()
        progress = ClockProgress(0.1, clock=clock, on_complete=callback)
        progress.start()
        clock.advance(0.2)
        progress.progress()
        clock.advance(0.2)
        progress.progress()
        callback.assert_called_once()

    def test_completion_callback_error_is_logged(self, clock, caplog):
        progress = ClockProgress(0.1, clock=clock, on_complete=MagicMock(side_effect=RuntimeError("boom")))
        progress.start()
        clock.advance(0.2)
        with caplog.at_level(logging.ERROR, logger="fluid_animations.animation.driver"):
            assert progress.progress() == 1.0
        assert any("Completion callback failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize("kwargs", [{"duration": 0.0}, {"duration": 1.0, "delay": -1.0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(InvalidParameterError):
            ClockProgress(**kwargs)


class TestAnimatedValue:

    def test_value_follows_source(self):
        seq = KeyframeSequence([linear_keyframe(10.0)], starting_value=0.0)
        source = ManualProgress()
        value = AnimatedValue(seq, source)
        assert value.value == 0.0
        source.seek(0.5)
        assert value.value == 5.0

    def test_driven_by_clock(self, clock):
        seq = KeyframeSequence([linear_keyframe(10.0)], starting_value=0.0)
        source = ClockProgress(seq.duration, clock=clock)
        value = AnimatedValue(seq, source)
        source.start()
        clock.advance(0.25)
        assert value.value == pytest.approx(2.5)

    def test_rejects_non_callable(self):
        with pytest.raises(InvalidParameterError):
            AnimatedValue(1.0, ManualProgress())

    def test_rejects_source_without_progress(self):
        with pytest.raises(InvalidParameterError):
            AnimatedValue(lambda t: t, object())


class TestSpringFollower:

    def test_starts_at_rest(self, smooth_spring, clock):
        follower = SpringFollower(smooth_spring, value=3.0, clock=clock)
        assert follower.value_at() == 3.0
        assert follower.is_settled()

    def test_moves_towards_target(self, smooth_spring, clock):
        follower = SpringFollower(smooth_spring, value=0.0, clock=clock)
        follower.set_target(1.0)
        clock.advance(0.1)
        assert 0.0 < follower.value_at() < 1.0
        assert follower.target == 1.0
        clock.advance(5.0)
        assert follower.value_at() == pytest.approx(1.0, abs=1e-3)
        assert follower.is_settled()

    def test_retarget_keeps_position_and_velocity(self, bouncy_spring, clock):
        follower = SpringFollower(bouncy_spring, value=0.0, clock=clock)
        follower.set_target(100.0)
        clock.advance(0.08)
        before_value = follower.value_at()
        before_velocity = follower.velocity_at()
        follower.set_target(-50.0)
        assert follower.value_at() == pytest.approx(before_value)
        assert follower.velocity_at() == pytest.approx(before_velocity)
        assert follower.simulation.end == -50.0

    def test_retarget_with_explicit_velocity(self, smooth_spring, clock):
        follower = SpringFollower(smooth_spring, clock=clock)
        follower.set_target(1.0, velocity=7.0)
        assert follower.velocity_at() == 7.0

    def test_snap(self, bouncy_spring, clock):
        follower = SpringFollower(bouncy_spring, clock=clock)
        follower.set_target(10.0)
        clock.advance(0.1)
        follower.snap(4.0)
        assert follower.value_at() == 4.0
        assert follower.target == 4.0
        assert follower.velocity_at() == 0.0

    def test_rejects_non_spring(self, clock):
        with pytest.raises(InvalidParameterError):
            SpringFollower(0.5, clock=clock)
