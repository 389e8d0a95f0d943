"""Utility Discovery Pass.

Periodically refreshes each agent's candidate cache from the Object Utility
Registry. Discovery never changes what an agent is doing; it only updates
the pool of options Arbitration reads next.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from aviary.ai.actions import ActionKind
from aviary.ai.blackboard import Agent, CandidateAction
from aviary.world.registry import UtilityOffer

if TYPE_CHECKING:
    from aviary.types import SimTime
    from aviary.world.registry import ObjectRegistry

logger = logging.getLogger(__name__)


def _better(offer: UtilityOffer, order: int, current: CandidateAction) -> bool:
    """Higher score wins; ties go to the closer source, then the earlier one."""
    if offer.effective_utility != current.score:
        return offer.effective_utility > current.score
    if offer.distance != current.distance:
        return offer.distance < current.distance
    return order < current.order


def best_offers(
    agent: Agent, offers: Sequence[UtilityOffer], now: SimTime
) -> dict[ActionKind, CandidateAction]:
    """Keep the best habituation-adjusted offer per action kind."""
    board = agent.blackboard
    best: dict[ActionKind, CandidateAction] = {}
    for order, offer in enumerate(offers):
        score = offer.effective_utility * board.habituation_factor(
            offer.object_id, offer.action
        )
        if score <= 0.0:
            continue
        adjusted = UtilityOffer(offer.object_id, offer.action, score, offer.distance)
        current = best.get(offer.action)
        if current is None or _better(adjusted, order, current):
            best[offer.action] = CandidateAction(
                object_id=offer.object_id,
                score=score,
                distance=offer.distance,
                last_seen=now,
                order=order,
            )
    return best


def retrieve_candidate(
    agent: Agent, registry: ObjectRegistry, now: SimTime, order: int
) -> CandidateAction | None:
    """Best cache entry to go back for, if any of the sites still exists."""
    board = agent.blackboard
    best: CandidateAction | None = None
    for entry in board.cache_entries:
        site = registry.resolve(entry.site_id)
        if site is None:
            continue
        distance = math.hypot(site.x - agent.x, site.y - agent.y)
        score = entry.retrieval_score(distance) * board.habituation_factor(
            entry.site_id, ActionKind.RETRIEVE
        )
        if score <= 0.0:
            continue
        candidate = CandidateAction(entry.site_id, score, distance, now, order)
        if best is None or (score, -distance) > (best.score, -best.distance):
            best = candidate
    return best


def discover_for_agent(agent: Agent, registry: ObjectRegistry, now: SimTime) -> None:
    """Run one discovery pass for one agent, writing only its own blackboard."""
    board = agent.blackboard
    species = agent.species
    offers = registry.query(
        agent.position,
        species.id,
        species.perception_range,
        species.allowed_actions,
        agent_id=agent.agent_id,
    )
    refreshed = best_offers(agent, offers, now)

    retrieve = retrieve_candidate(agent, registry, now, len(offers))
    if retrieve is not None:
        refreshed[ActionKind.RETRIEVE] = retrieve

    observed = {offer.object_id for offer in offers}

    # Overwrite refreshed kinds; keep stale ones only while their source is
    # still observed. Retrieve candidates exist only while an entry does.
    for kind in list(board.candidates):
        if kind in refreshed:
            continue
        stale = board.candidates[kind]
        if kind is ActionKind.RETRIEVE or stale.object_id not in observed:
            del board.candidates[kind]
    board.candidates.update(refreshed)
    board.observed = observed

    board.age_habituation()


def run_discovery(
    agents: Sequence[Agent], registry: ObjectRegistry, now: SimTime
) -> None:
    for agent in agents:
        discover_for_agent(agent, registry, now)
    logger.debug(f"Discovery refreshed {len(agents)} agents at t={now:.1f}")
