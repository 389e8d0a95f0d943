"""
Phase scheduler for the bird decision core.

`Simulation.step()` advances simulated time by one tick and runs the three
passes in dependency order:

1. Discovery, when its timer fires - refresh every agent's candidates.
2. Arbitration, when its timer fires - override rules, then generic scoring.
3. Execution, every tick - move, interact, complete.

Key Principles:
- Phases are barriers. Every agent finishes a phase before the next phase
  starts, whether agents are processed sequentially or on a worker pool.
- Agents are independent within a phase. A pass only writes its own agent's
  blackboard; reads of other birds go through a `PopulationSnapshot` taken at
  phase start.
- Passes return events instead of publishing them. The scheduler publishes
  each phase's events in agent-id order after its barrier, so the event
  stream is the same for any worker count.
- Social signals (intimidation, mobbing calls) raised during Arbitration are
  applied to their recipients after the Arbitration barrier.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TypeVar

from aviary import config
from aviary.ai.actions import ActionKind, BirdState
from aviary.ai.arbitration import ArbitrationResult, BehaviorArbiter, SocialSignal
from aviary.ai.blackboard import Agent
from aviary.ai.discovery import discover_for_agent
from aviary.ai.execution import StateExecutor
from aviary.ai.rules import RuleSet
from aviary.ai.species import SpeciesProfile, get_species
from aviary.ai.species_rules import rules_for_species
from aviary.ai.utility import DecisionContext
from aviary.environment import TimeSource, TimeState, WeatherProvider, WeatherState
from aviary.events import (
    AgentDespawnedEvent,
    AgentSpawnedEvent,
    BirdEvent,
    SocialSignalEvent,
    publish_event,
    publish_events,
)
from aviary.types import AgentId, DeltaTime, ObjectId, WorldPos
from aviary.util import rng
from aviary.util.clock import RepeatingTimer
from aviary.util.live_vars import (
    MetricSpec,
    live_variable_registry,
    record_time_live_variable,
)
from aviary.world.population import PopulationSnapshot
from aviary.world.registry import ObjectRegistry
from aviary.world.smart_objects import (
    SmartObject,
    SmartObjectDefinition,
    get_definition,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PHASE_METRICS = [
    MetricSpec("ai.discovery_ms", "Discovery pass wall time (ms)"),
    MetricSpec("ai.arbitration_ms", "Arbitration pass wall time (ms)"),
    MetricSpec("ai.execution_ms", "Execution pass wall time (ms)"),
    MetricSpec("ai.step_ms", "Full scheduler tick wall time (ms)"),
]


@dataclass(frozen=True, slots=True)
class AgentView:
    """Read-only per-agent state for presentation layers."""

    agent_id: AgentId
    species: str
    state: BirdState
    action: ActionKind | None
    target: ObjectId | None
    position: WorldPos


class Simulation:
    """Owns the agents, the object registry and the phase timers.

    Args:
        time: Time-of-day source, default a fresh `TimeState`. The
            simulation advances any `TimeState` it is given; other
            `TimeSource` implementations are left for the host to advance.
        weather: Weather provider, default clear skies.
        workers: Threads used to process agents within a phase; 1 runs
            every pass inline.
    """

    def __init__(
        self,
        time: TimeSource | None = None,
        weather: WeatherProvider | None = None,
        registry: ObjectRegistry | None = None,
        rule_sets: dict[str, RuleSet] | None = None,
        workers: int = config.PHASE_WORKERS,
        discovery_period: float = config.DISCOVERY_PERIOD,
        arbitration_period: float = config.ARBITRATION_PERIOD,
    ) -> None:
        self.time: TimeSource = time if time is not None else TimeState()
        self.weather: WeatherProvider = (
            weather if weather is not None else WeatherState()
        )
        self.registry = registry if registry is not None else ObjectRegistry()
        self.registry.weather = self.weather
        self.registry.season = self.time.season

        self.arbiter = BehaviorArbiter(dict(rule_sets or {}))
        self.executor = StateExecutor(self.registry)

        self.agents: dict[AgentId, Agent] = {}
        self._next_agent_id = 1
        self._next_object_id = 1

        self.discovery_timer = RepeatingTimer(discovery_period, fire_immediately=True)
        self.arbitration_timer = RepeatingTimer(
            arbitration_period, fire_immediately=True
        )

        self.workers = max(1, workers)
        self._pool: ThreadPoolExecutor | None = (
            ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="aviary")
            if self.workers > 1
            else None
        )
        self.tick_count = 0

        live_variable_registry.register_metrics(_PHASE_METRICS)

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self) -> Simulation:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- World setup --------------------------------------------------------

    def add_object(
        self,
        definition: SmartObjectDefinition | str,
        x: float,
        y: float,
        object_id: ObjectId | None = None,
    ) -> SmartObject:
        if isinstance(definition, str):
            definition = get_definition(definition)
        if object_id is None:
            while ObjectId(self._next_object_id) in self.registry:
                self._next_object_id += 1
            object_id = ObjectId(self._next_object_id)
            self._next_object_id += 1
        return self.registry.add(definition.create(object_id, x, y))

    def remove_object(self, object_id: ObjectId) -> SmartObject | None:
        return self.registry.remove(object_id)

    def spawn(
        self,
        species: SpeciesProfile | str,
        x: float,
        y: float,
        agent_id: AgentId | None = None,
    ) -> Agent:
        """Create an agent with seeded needs and traits.

        Raises:
            ValueError: On an unknown species or a duplicate ``agent_id``.
        """
        profile = get_species(species) if isinstance(species, str) else species
        if agent_id is None:
            while AgentId(self._next_agent_id) in self.agents:
                self._next_agent_id += 1
            agent_id = AgentId(self._next_agent_id)
            self._next_agent_id += 1
        elif agent_id in self.agents:
            raise ValueError(f"Agent {agent_id} already exists")

        agent = profile.create(agent_id, x, y, rng.get("agents.spawn"))
        self.agents[agent_id] = agent
        if profile.id not in self.arbiter.rule_sets:
            self.arbiter.rule_sets[profile.id] = rules_for_species(profile)
        logger.info(f"Spawned {profile.id} as agent {agent_id} at ({x:.0f}, {y:.0f})")
        publish_event(AgentSpawnedEvent(agent_id, profile.id, (x, y)))
        return agent

    def despawn(self, agent_id: AgentId) -> None:
        """Remove an agent, releasing any slot it holds. Unknown ids are ignored."""
        agent = self.agents.pop(agent_id, None)
        if agent is None:
            return
        self.registry.release_all(agent_id)
        agent.blackboard.held = None
        agent.blackboard.commitment = None
        agent.blackboard.candidates.clear()
        logger.info(f"Despawned agent {agent_id} ({agent.species.id})")
        publish_event(AgentDespawnedEvent(agent_id, agent.species.id))

    # -- Queries ------------------------------------------------------------

    def get_agent(self, agent_id: AgentId) -> Agent | None:
        return self.agents.get(agent_id)

    def get_agent_view(self, agent_id: AgentId) -> AgentView | None:
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        board = agent.blackboard
        return AgentView(
            agent_id=agent.agent_id,
            species=agent.species.id,
            state=board.state,
            action=board.action,
            target=board.target,
            position=agent.position,
        )

    def _ordered_agents(self) -> list[Agent]:
        return [self.agents[agent_id] for agent_id in sorted(self.agents)]

    # -- Scheduling ---------------------------------------------------------

    def _map(self, fn: Callable[[Agent], T], agents: Iterable[Agent]) -> list[T]:
        """Run ``fn`` over agents and wait for all of them (the barrier)."""
        if self._pool is None:
            return [fn(agent) for agent in agents]
        return list(self._pool.map(fn, agents))

    def step(self, delta_time: float = config.FIXED_TIMESTEP) -> None:
        dt = DeltaTime(delta_time)
        with record_time_live_variable("ai.step_ms"):
            if isinstance(self.time, TimeState):
                self.time.advance(dt)
            self.registry.season = self.time.season
            self.registry.regenerate(dt)

            if self.discovery_timer.tick(dt):
                self.run_discovery()
            if self.arbitration_timer.tick(dt) and config.BIRD_AI_ENABLED:
                self.run_arbitration()
            self.run_execution(dt)
            self.tick_count += 1

    def run(self, seconds: float, delta_time: float = config.FIXED_TIMESTEP) -> None:
        """Step repeatedly until ``seconds`` of simulated time have passed."""
        steps = max(1, round(seconds / delta_time))
        for _ in range(steps):
            self.step(delta_time)

    def run_discovery(self) -> None:
        now = self.time.seconds
        agents = self._ordered_agents()
        with record_time_live_variable("ai.discovery_ms"):
            self._map(
                lambda agent: discover_for_agent(agent, self.registry, now), agents
            )

    def run_arbitration(self) -> None:
        now = self.time.seconds
        agents = self._ordered_agents()
        population = PopulationSnapshot.from_agents(agents)

        def arbitrate(agent: Agent) -> ArbitrationResult:
            context = DecisionContext.build(
                agent, self.time, self.weather, self.registry, population
            )
            return self.arbiter.arbitrate(context, now)

        with record_time_live_variable("ai.arbitration_ms"):
            results = self._map(arbitrate, agents)

        events: list[BirdEvent] = []
        signals: list[SocialSignal] = []
        for result in results:
            events.extend(result.events)
            if result.signal is not None:
                signals.append(result.signal)
        publish_events(events)
        self.apply_signals(signals, population)

    def run_execution(self, delta_time: DeltaTime) -> None:
        now = self.time.seconds
        agents = self._ordered_agents()
        with record_time_live_variable("ai.execution_ms"):
            results = self._map(
                lambda agent: self.executor.execute(agent, delta_time, now), agents
            )
        for events in results:
            publish_events(events)

    def apply_signals(
        self, signals: list[SocialSignal], population: PopulationSnapshot
    ) -> None:
        """Apply social signals to their recipients, in sender order."""
        for signal in signals:
            recipients = population.nearby(
                signal.agent_id, signal.position, config.SIGNAL_RADIUS
            )
            for perceived in recipients:
                agent = self.agents.get(perceived.bird.agent_id)
                if agent is None:
                    continue
                match signal.signal:
                    case "intimidate":
                        if perceived.bird.dominance < signal.dominance:
                            agent.needs.adjust("fear", config.INTIMIDATION_FEAR)
                    case "mobbing_call":
                        if not perceived.bird.is_predator:
                            agent.needs.adjust(
                                "territorial_stress", config.MOBBING_STRESS
                            )
            publish_event(
                SocialSignalEvent(signal.agent_id, signal.signal, signal.position)
            )
