"""Tests for the transition engine."""

from datetime import timedelta

import pytest

from candela.engine import TransitionEngine
from candela.model import Config, Idle, InTransition, TransitionSettings


def make_engine(clock, easing="linear", minutes=60, initial=6500):
    config = Config(transition=TransitionSettings(duration_minutes=minutes, easing=easing))
    return TransitionEngine(
        config, initial, clock=clock.time, monotonic=clock.monotonic
    )


@pytest.fixture
def engine(clock):
    """A linear one-hour engine holding 6500K."""
    return make_engine(clock)


def test_initial_state(engine, clock):
    """Test: A new engine is idle at its initial temperature."""
    assert isinstance(engine.state, Idle)
    assert engine.current_temperature == 6500
    assert engine.target_temperature == 6500
    assert engine.transition_start_timestamp == int(clock.wall)
    assert engine.progress() == 1.0


@pytest.mark.parametrize(
    "easing,expected", [("linear", 4000), ("ease_in", 5250), ("ease_out", 2750)]
)
def test_half_way_values(clock, easing, expected):
    """Test: Half way through 6500 -> 1500 the easing decides the value."""
    engine = make_engine(clock, easing=easing)

    assert engine.update(1500) == 6500
    assert engine.in_transition

    clock.advance(1800)
    assert engine.update(1500) == expected
    assert engine.progress() == pytest.approx(0.5)


def test_transition_completes(engine, clock):
    """Test: After the full duration the engine idles at the target."""
    engine.update(1500)
    clock.advance(3600)

    assert engine.update(1500) == 1500
    assert not engine.in_transition
    assert engine.progress() == 1.0


def test_stable_target_is_idle(engine, clock):
    """Test: Updating with the current temperature starts nothing."""
    assert engine.update(6500) == 6500
    assert not engine.in_transition
    clock.advance(100)
    assert engine.update(6500) == 6500


def test_repeated_update_mid_transition_is_stable(engine, clock):
    """Test: Two updates at the same instant give the same temperature."""
    engine.update(1500)
    clock.advance(600)

    first = engine.update(1500)
    second = engine.update(1500)
    assert first == second
    assert 1500 < first < 6500
    assert engine.in_transition


def test_target_change_rebases(engine, clock):
    """Test: A new target mid-flight starts from the current temperature."""
    engine.update(1500)
    clock.advance(1800)
    assert engine.update(1500) == 4000

    assert engine.update(6500) == 4000
    state = engine.state
    assert isinstance(state, InTransition)
    assert (state.start_temp, state.target_temp) == (4000, 6500)

    clock.advance(1800)
    assert engine.update(6500) == 5250


def test_zero_duration_snaps(clock):
    """Test: A zero duration applies targets instantly."""
    engine = make_engine(clock, minutes=0)

    assert engine.update(1500) == 1500
    assert not engine.in_transition
    assert engine.progress() == 1.0
    assert engine.align_with_schedule(1500, 6500, timedelta(minutes=5)) == 6500
    assert not engine.in_transition


def test_align_joins_window(engine, clock):
    """Test: Aligning backdates the transition to the window start."""
    assert engine.align_with_schedule(6500, 1500, timedelta(minutes=30)) == 4000
    assert engine.in_transition
    assert engine.progress() == pytest.approx(0.5)
    assert engine.transition_start_timestamp == int(clock.wall) - 1800

    # Later updates continue the same transition
    clock.advance(600)
    assert engine.update(1500) == 3167


def test_align_is_reproducible(clock):
    """Test: Two engines aligned to the same window agree."""
    first = make_engine(clock, easing="smooth")
    second = make_engine(clock, easing="smooth", initial=2000)

    elapsed = timedelta(minutes=17)
    assert first.align_with_schedule(6500, 1500, elapsed) == second.align_with_schedule(
        6500, 1500, elapsed
    )


def test_align_clamps_elapsed(engine):
    """Test: Elapsed time is clamped to the window."""
    assert engine.align_with_schedule(6500, 1500, timedelta(seconds=-30)) == 6500
    assert engine.in_transition

    assert engine.align_with_schedule(6500, 1500, timedelta(hours=3)) == 1500
    assert not engine.in_transition
    assert engine.current_temperature == 1500


def test_export_state_in_transition(engine, clock):
    """Test: The exported record matches the running transition."""
    engine.align_with_schedule(6500, 1500, timedelta(minutes=30))

    record = engine.export_state()
    assert record.transition_start_temp == 6500
    assert record.target_temp == 1500
    assert record.transition_start_timestamp == int(clock.wall) - 1800
    assert record.elapsed_seconds == 1800


def test_export_state_idle(engine, clock):
    """Test: An idle engine exports its steady temperature."""
    record = engine.export_state()
    assert record.transition_start_temp == 6500
    assert record.target_temp == 6500
    assert record.elapsed_seconds == 0


def test_export_state_never_negative(engine, clock):
    """Test: A clock before the transition start yields zero elapsed."""
    engine.update(1500)
    record = engine.export_state(now=clock.wall - 500)
    assert record.elapsed_seconds == 0


@pytest.mark.parametrize(
    "easing",
    ["linear", "ease_in", "ease_out", "ease_in_out", "sine", "smooth", "smoother",
     "cubic_bezier(0.68,-0.55,0.27,1.55)"],
)
def test_values_stay_between_endpoints(clock, easing):
    """Test: Every intermediate temperature lies between start and target."""
    engine = make_engine(clock, easing=easing, minutes=10)
    engine.update(1500)

    previous = 6500
    for _ in range(60):
        clock.advance(10)
        current = engine.update(1500)
        assert 1500 <= current <= 6500
        if not easing.startswith("cubic"):
            assert current <= previous
        previous = current
    assert engine.current_temperature == 1500
