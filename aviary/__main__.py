"""Run a small backyard scenario headless and print what the birds did.

Usage:
    python -m aviary
    python -m aviary --seconds 600 --workers 4 --weather stormy
    python -m aviary --events   # log every event on the stream
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter

from aviary import config
from aviary.environment import TimeState, Weather, WeatherState
from aviary.events import BirdEvent, subscribe_to_event
from aviary.simulation import Simulation
from aviary.util import rng
from aviary.util.live_vars import live_variable_registry

logger = logging.getLogger("aviary")

# (definition id, x, y)
_GARDEN = (
    ("seed_feeder", 200.0, 200.0),
    ("suet_feeder", 260.0, 160.0),
    ("nectar_feeder", 140.0, 260.0),
    ("bird_bath", 320.0, 260.0),
    ("oak_tree", 100.0, 100.0),
    ("shrub", 360.0, 120.0),
    ("lawn", 240.0, 320.0),
)

# (species id, count)
_FLOCK = (
    ("cardinal", 2),
    ("blue_jay", 2),
    ("robin", 2),
    ("sparrow", 4),
    ("chickadee", 3),
    ("ruby_throated_hummingbird", 1),
    ("red_tailed_hawk", 1),
)


def _log_event(event: BirdEvent) -> None:
    logger.info(f"{type(event).__name__}: {event}")


def build_garden(sim: Simulation) -> None:
    for definition_id, x, y in _GARDEN:
        sim.add_object(definition_id, x, y)
    spawn_rng = rng.get("demo.placement")
    for species_id, count in _FLOCK:
        for _ in range(count):
            x = spawn_rng.uniform(50.0, 400.0)
            y = spawn_rng.uniform(50.0, 400.0)
            sim.spawn(species_id, x, y)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Headless backyard bird simulation")
    parser.add_argument("--seconds", type=float, default=120.0)
    parser.add_argument("--hour", type=float, default=config.START_HOUR)
    parser.add_argument("--day", type=int, default=config.START_DAY_OF_YEAR)
    parser.add_argument(
        "--weather", choices=[w.name.lower() for w in Weather], default="clear"
    )
    parser.add_argument("--workers", type=int, default=config.PHASE_WORKERS)
    parser.add_argument("--seed", default=config.RANDOM_SEED)
    parser.add_argument("--events", action="store_true", help="Log every event")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    rng.init(args.seed)

    if args.events:
        subscribe_to_event(BirdEvent, _log_event)

    time = TimeState(hour=args.hour, day_of_year=args.day)
    weather = WeatherState.from_weather(Weather[args.weather.upper()])
    with Simulation(time=time, weather=weather, workers=args.workers) as sim:
        build_garden(sim)
        sim.run(args.seconds)

        states = Counter(agent.state.value for agent in sim.agents.values())
        print(
            f"After {args.seconds:.0f}s ({time.season.value}, hour {time.hour:.1f}):"
        )
        for state, count in sorted(states.items()):
            print(f"  {state:<18} {count}")

    print("Phase timings (ms):")
    for metric in live_variable_registry.metrics():
        print(f"  {metric.name:<18} {metric.get_value()}")


if __name__ == "__main__":
    main()
