"""Real-world check script for candela: print a day of phases and temperatures."""

from datetime import datetime, timedelta, timezone

from candela.engine import TransitionEngine
from candela.model import (
    Config,
    Mode,
    ScheduleTimes,
    Temperatures,
    TransitionSettings,
)
from candela.scheduler import Schedule


# 1. Setup Config
config = Config(
    mode=Mode.FIXED,
    schedule=ScheduleTimes(wakeup="07:00", bedtime="22:00"),
    transition=TransitionSettings(duration_minutes=60, easing="smooth"),
    temperature=Temperatures(day=6500, night=2700),
)
schedule = Schedule(config, tz=timezone.utc)

# Simulated time drives both engine clocks
now = datetime(2024, 6, 1, tzinfo=timezone.utc)
engine = TransitionEngine(
    config,
    schedule.target_temperature_at(now),
    clock=lambda: now.timestamp(),
    monotonic=lambda: now.timestamp(),
)

# 2. Walk the day in 15-minute steps
for _ in range(24 * 4):
    result = schedule.resolve(now)

    # 3. Feed the engine the same way the daemon does
    if result.window is not None:
        temperature = engine.align_with_schedule(
            result.window.start_temp,
            result.window.target_temp,
            result.window.elapsed_at(now),
        )
    else:
        temperature = engine.update(result.target_temperature)

    # 4. Print the row
    upcoming = f"{result.next_transition:%H:%M}" if result.next_transition else "-"
    print(f"{now:%H:%M}  {result.phase.value:<24} {temperature:>5}K  next={upcoming}")

    now += timedelta(minutes=15)
