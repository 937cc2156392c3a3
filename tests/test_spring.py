"""Tests for the closed-form spring engine."""
import itertools
import math

import pytest

from fluid_animations.animation.spring import (
    SettleTolerance,
    SpringCurve,
    SpringParameters,
    SpringSimulation,
    from_duration_and_bounce,
    is_settled,
    position,
    velocity,
)
from fluid_animations.animation.types import DampingRegime
from fluid_animations.constants.timing import (
    DEFAULT_ABSOLUTE_TOLERANCE,
    MAX_SIMULATION_DURATION_S,
    MAX_SIMULATION_STEPS,
)
from fluid_animations.errors import InvalidParameterError


def _grid(end: float, step: float = 0.01):
    count = int(round(end / step))
    return [i * step for i in range(count + 1)]


def _all_regimes():
    return [
        SpringParameters.from_duration_and_bounce(0.5, 0.5),    # under
        SpringParameters.from_duration_and_bounce(0.5, 0.0),    # critical
        SpringParameters.from_duration_and_bounce(0.5, -0.5),   # over
        SpringParameters(stiffness=100.0, damping=0.0),         # undamped
    ]


class TestSpringParameters:
    """Construction and duration/bounce conversion."""

    def test_zero_bounce_is_critical(self):
        params = from_duration_and_bounce(0.5, 0.0)
        assert params.regime is DampingRegime.CRITICAL
        assert params.damping_ratio == pytest.approx(1.0)

    def test_positive_bounce_is_under_damped(self):
        params = from_duration_and_bounce(0.5, 0.3)
        assert params.regime is DampingRegime.UNDER
        assert params.damping_ratio == pytest.approx(0.7)

    def test_negative_bounce_is_over_damped(self):
        params = from_duration_and_bounce(0.5, -0.5)
        assert params.regime is DampingRegime.OVER
        assert params.damping_ratio == pytest.approx(2.0)

    def test_stiffness_from_duration(self):
        params = from_duration_and_bounce(0.5, 0.0, mass=2.0)
        assert params.stiffness == pytest.approx((2 * math.pi / 0.5) ** 2 * 2.0)
        assert params.mass == 2.0

    @pytest.mark.parametrize("duration,bounce", [(0.5, 0.3), (0.25, 0.0), (1.0, -0.5), (0.15, 0.14)])
    def test_duration_and_bounce_round_trip(self, duration, bounce):
        params = from_duration_and_bounce(duration, bounce)
        assert params.duration == pytest.approx(duration)
        assert params.bounce == pytest.approx(bounce, abs=1e-9)

    def test_bounce_clamped_high(self):
        params = from_duration_and_bounce(0.5, 3.0)
        assert params.bounce == pytest.approx(1.0)
        assert params.damping == pytest.approx(0.0)

    def test_infinite_bounce_is_clamped(self):
        assert from_duration_and_bounce(0.5, float("inf")).bounce == pytest.approx(1.0)
        assert from_duration_and_bounce(0.5, float("-inf")).bounce == pytest.approx(-0.999)

    def test_bounce_clamped_low_stays_finite(self):
        params = from_duration_and_bounce(0.5, -7.0)
        assert math.isfinite(params.damping)
        assert params.regime is DampingRegime.OVER
        assert params.bounce == pytest.approx(-0.999)

    @pytest.mark.parametrize("duration", [0.0, -1.0, float("nan"), float("inf"), "fast", None])
    def test_invalid_duration(self, duration):
        with pytest.raises(InvalidParameterError):
            from_duration_and_bounce(duration, 0.0)

    @pytest.mark.parametrize("bounce", [float("nan"), "high", None])
    def test_invalid_bounce(self, bounce):
        with pytest.raises(InvalidParameterError):
            from_duration_and_bounce(0.5, bounce)

    @pytest.mark.parametrize("kwargs", [
        {"stiffness": 0.0, "damping": 1.0},
        {"stiffness": -5.0, "damping": 1.0},
        {"stiffness": 100.0, "damping": 1.0, "mass": 0.0},
        {"stiffness": 100.0, "damping": -1.0},
        {"stiffness": float("nan"), "damping": 1.0},
        {"stiffness": True, "damping": 1.0},
    ])
    def test_invalid_physical_constants(self, kwargs):
        with pytest.raises(InvalidParameterError):
            SpringParameters(**kwargs)

    def test_invalid_parameter_error_is_value_error(self):
        with pytest.raises(ValueError):
            SpringParameters(stiffness=0.0, damping=1.0)

    def test_zero_damping_is_not_critical(self):
        params = SpringParameters(stiffness=100.0, damping=0.0)
        assert params.regime is DampingRegime.UNDER
        assert params.damping_ratio == 0.0

    def test_parameters_are_immutable(self):
        params = SpringParameters(stiffness=100.0, damping=10.0)
        with pytest.raises(AttributeError):
            params.stiffness = 1.0


class TestSpringSimulationPosition:
    """Closed-form position and velocity."""

    @pytest.mark.parametrize("params", _all_regimes())
    def test_position_at_zero_is_start_exactly(self, params):
        sim = SpringSimulation(params, start=0.1, end=0.3, initial_velocity=1.7)
        assert sim.position(0.0) == 0.1

    @pytest.mark.parametrize("params", _all_regimes())
    def test_negative_and_nan_time_clamp_to_start(self, params):
        sim = SpringSimulation(params, start=2.0, end=-1.0, initial_velocity=0.5)
        assert sim.position(-3.0) == 2.0
        assert sim.position(float("nan")) == 2.0
        assert sim.velocity(-1.0) == 0.5

    @pytest.mark.parametrize("params", _all_regimes())
    def test_velocity_is_derivative_of_position(self, params):
        sim = SpringSimulation(params, start=0.0, end=1.0, initial_velocity=3.0)
        h = 1e-6
        for t in (0.05, 0.2, 0.4, 0.9):
            numeric = (sim.position(t + h) - sim.position(t - h)) / (2 * h)
            assert sim.velocity(t) == pytest.approx(numeric, rel=1e-4, abs=1e-4)

    @pytest.mark.parametrize("params", _all_regimes())
    def test_initial_velocity_respected(self, params):
        sim = SpringSimulation(params, start=0.0, end=1.0, initial_velocity=4.0)
        assert sim.velocity(1e-9) == pytest.approx(4.0, abs=1e-3)

    def test_critical_matches_under_damped_limit(self):
        critical = SpringSimulation(SpringParameters(stiffness=100.0, damping=20.0), 0.0, 1.0, 2.0)
        nearly = SpringSimulation(SpringParameters(stiffness=100.0, damping=20.0 * (1 - 1e-3)), 0.0, 1.0, 2.0)
        assert critical.regime is DampingRegime.CRITICAL
        assert nearly.regime is DampingRegime.UNDER
        for t in _grid(2.0, 0.05):
            assert nearly.position(t) == pytest.approx(critical.position(t), abs=1e-2)

    def test_critical_matches_over_damped_limit(self):
        critical = SpringSimulation(SpringParameters(stiffness=100.0, damping=20.0), 0.0, 1.0)
        nearly = SpringSimulation(SpringParameters(stiffness=100.0, damping=20.0 * (1 + 1e-3)), 0.0, 1.0)
        assert nearly.regime is DampingRegime.OVER
        for t in _grid(2.0, 0.05):
            assert nearly.position(t) == pytest.approx(critical.position(t), abs=1e-2)

    def test_critically_damped_never_overshoots(self, smooth_spring):
        sim = SpringSimulation(smooth_spring, 0.0, 1.0)
        assert all(sim.position(t) <= 1.0 for t in _grid(5.0, 0.005))

    def test_under_damped_overshoots(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        assert max(sim.position(t) for t in _grid(3.0)) > 1.0

    def test_over_damped_approaches_monotonically(self):
        sim = SpringSimulation(from_duration_and_bounce(0.5, -0.5), 0.0, 1.0)
        values = [sim.position(t) for t in _grid(5.0)]
        assert all(b >= a for a, b in zip(values, values[1:]))
        assert values[-1] <= 1.0

    def test_undamped_oscillates_without_decay(self):
        sim = SpringSimulation(SpringParameters(stiffness=4 * math.pi ** 2, damping=0.0), 0.0, 1.0)
        # Period is 1s: back at start after a full cycle, at 2 after half
        assert sim.position(1.0) == pytest.approx(0.0, abs=1e-9)
        assert sim.position(0.5) == pytest.approx(2.0, abs=1e-9)

    def test_large_time_converges_to_end(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, -5.0, 5.0)
        assert sim.position(100.0) == pytest.approx(5.0)
        assert sim.position(float("inf")) == pytest.approx(5.0)

    def test_floored_over_damped_spring_is_finite(self):
        sim = SpringSimulation(from_duration_and_bounce(0.5, -1.0), 0.0, 1.0, 10.0)
        for t in (0.01, 0.5, 5.0, 50.0):
            assert math.isfinite(sim.position(t))
            assert math.isfinite(sim.velocity(t))

    def test_evaluation_is_pure(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0, 1.0)
        assert sim.position(0.37) == sim.position(0.37)
        assert sim.velocity(0.37) == sim.velocity(0.37)

    def test_module_functions_delegate(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        assert position(sim, 0.2) == sim.position(0.2)
        assert velocity(sim, 0.2) == sim.velocity(0.2)
        assert is_settled(sim, 0.2) == sim.is_settled(0.2)

    @pytest.mark.parametrize("kwargs", [
        {"start": float("nan"), "end": 1.0},
        {"start": 0.0, "end": "one"},
        {"start": 0.0, "end": 1.0, "initial_velocity": float("inf")},
    ])
    def test_invalid_values_rejected(self, smooth_spring, kwargs):
        with pytest.raises(InvalidParameterError):
            SpringSimulation(smooth_spring, **kwargs)

    def test_parameters_must_be_spring_parameters(self):
        with pytest.raises(InvalidParameterError):
            SpringSimulation({"stiffness": 1.0}, 0.0, 1.0)


class TestSettling:
    """Settle predicate, settle time and discrete stepping."""

    def test_default_tolerance_scales_with_range(self):
        tol = SettleTolerance.for_range(0.0, 10.0)
        assert tol.position == pytest.approx(0.01)
        assert tol.velocity == pytest.approx(0.01)

    def test_default_tolerance_for_zero_range(self):
        tol = SettleTolerance.for_range(5.0, 5.0)
        assert tol.position == DEFAULT_ABSOLUTE_TOLERANCE
        assert tol.velocity == DEFAULT_ABSOLUTE_TOLERANCE

    def test_resting_spring_is_settled_immediately(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 3.0, 3.0)
        assert sim.is_settled(0.0)
        assert sim.settle_time() == 0.0

    def test_moving_spring_is_not_settled_at_start(self, bouncy_spring):
        assert not SpringSimulation(bouncy_spring, 0.0, 1.0).is_settled(0.0)

    @pytest.mark.parametrize("params", _all_regimes()[:3])
    def test_settled_is_monotonic(self, params):
        sim = SpringSimulation(params, 0.0, 1.0, 2.0)
        seen_settled = False
        for t in _grid(10.0, 0.005):
            settled = sim.is_settled(t)
            if seen_settled:
                assert settled, f"un-settled at t={t}"
            seen_settled = seen_settled or settled
        assert seen_settled

    def test_settled_means_within_tolerance_afterwards(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        settle = sim.settle_time()
        assert settle is not None
        for t in _grid(3.0, 0.001):
            if t >= settle:
                assert abs(sim.position(t) - 1.0) <= sim.tolerance.position
                assert abs(sim.velocity(t)) <= sim.tolerance.velocity

    def test_crossing_the_target_is_not_settled(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        # First crossing of the target happens well before the oscillation dies out
        crossing = next(t for t in _grid(1.0, 0.0005) if sim.position(t) >= 1.0)
        assert not sim.is_settled(crossing)

    def test_settle_time_is_earliest_settled_time(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        settle = sim.settle_time()
        assert 1.0 < settle < 2.0
        assert sim.is_settled(settle)
        assert not sim.is_settled(settle - 0.01)

    def test_undamped_never_settles(self):
        sim = SpringSimulation(SpringParameters(stiffness=100.0, damping=0.0), 0.0, 1.0)
        assert sim.settle_time() is None
        assert not sim.is_settled(1000.0)

    def test_custom_tolerance(self, smooth_spring):
        loose = SpringSimulation(smooth_spring, 0.0, 1.0, tolerance=SettleTolerance(0.1, 10.0))
        strict = SpringSimulation(smooth_spring, 0.0, 1.0)
        assert loose.settle_time() < strict.settle_time()

    def test_samples_stop_at_first_settled_sample(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        samples = sim.samples(frame_rate=60)
        times = [t for t, _ in samples]
        assert times[0] == 0.0
        assert samples[0][1] == 0.0
        assert sim.is_settled(times[-1])
        assert not any(sim.is_settled(t) for t in times[:-1])

    def test_samples_of_undamped_spring_hit_duration_cutoff(self):
        sim = SpringSimulation(SpringParameters(stiffness=100.0, damping=0.0), 0.0, 1.0)
        samples = sim.samples(frame_rate=60)
        assert 0 < len(samples) <= MAX_SIMULATION_STEPS
        assert samples[-1][0] <= MAX_SIMULATION_DURATION_S

    def test_step_cutoff_by_count(self):
        sim = SpringSimulation(SpringParameters(stiffness=100.0, damping=0.0), 0.0, 1.0)
        samples = list(sim.step((i * 0.001 for i in range(100)), max_steps=5))
        assert len(samples) == 5

    def test_step_skips_non_increasing_times(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        samples = list(sim.step([0.0, 0.1, 0.1, 0.05, 0.2]))
        assert [t for t, _ in samples] == [0.0, 0.1, 0.2]
        assert samples[1][1] == sim.position(0.1)

    def test_stalled_clock_hits_step_cutoff(self):
        sim = SpringSimulation(SpringParameters(stiffness=100.0, damping=0.0), 0.0, 1.0)
        times = itertools.chain([0.5], itertools.repeat(0.5))
        samples = list(sim.step(times, max_steps=5))
        assert samples == [(0.5, sim.position(0.5))]

    def test_step_cutoff_counts_skipped_times(self):
        sim = SpringSimulation(SpringParameters(stiffness=100.0, damping=0.0), 0.0, 1.0)
        samples = list(sim.step(itertools.repeat(float("nan")), max_steps=50))
        assert samples == []

    def test_step_skips_non_finite_times(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        samples = list(sim.step([float("nan"), 0.1, float("inf"), 0.2, 0.3]))
        assert [t for t, _ in samples] == [0.1, 0.2, 0.3]

    def test_samples_reject_bad_frame_rate(self, bouncy_spring):
        sim = SpringSimulation(bouncy_spring, 0.0, 1.0)
        with pytest.raises(InvalidParameterError):
            sim.samples(frame_rate=0)


class TestSpringCurve:
    """Spring-backed easing curve."""

    def test_endpoints_are_exact(self, bouncy_spring):
        curve = SpringCurve(bouncy_spring)
        assert curve(0.0) == 0.0
        assert curve(1.0) == 1.0
        assert curve(-0.5) == 0.0
        assert curve(1.5) == 1.0

    def test_default_duration_is_spring_duration(self, bouncy_spring):
        assert SpringCurve(bouncy_spring).duration == pytest.approx(0.5)

    def test_midpoint_follows_spring_time(self, smooth_spring):
        curve = SpringCurve(smooth_spring, duration=2.0)
        sim = SpringSimulation(smooth_spring, 0.0, 1.0)
        assert curve(0.25) == pytest.approx(sim.position(0.5))

    def test_critical_curve_is_monotonic(self, smooth_spring):
        curve = SpringCurve(smooth_spring)
        values = [curve(t) for t in _grid(1.0)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_invalid_duration(self, smooth_spring):
        with pytest.raises(InvalidParameterError):
            SpringCurve(smooth_spring, duration=0.0)

    @pytest.mark.parametrize("spring", [None, 0.5, {"stiffness": 100.0}])
    def test_spring_must_be_spring_parameters(self, spring):
        with pytest.raises(InvalidParameterError):
            SpringCurve(spring)
