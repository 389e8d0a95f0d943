"""
Commitments: what a bird has decided to do and how far it has got.

Arbitration produces a `Commitment`; Execution drives it. A commitment is
either target-directed (approach an object, claim a slot, interact) or
self-directed (flee, rest, soar, hunt) with no object involved.

Continuous re-evaluation: a commitment never locks out arbitration. Every
arbitration pass scores the current commitment alongside fresh candidates
with a persistence bonus based on progress - a bird 80% through a meal is
less likely to abandon it than one that just landed. If something scores
clearly higher (or an override rule fires), the commitment is abandoned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from aviary import config
from aviary.ai.actions import ActionKind, ActionPolicy, BirdState, policy_for
from aviary.types import ObjectId, SimTime, WorldPos


class CommitmentStatus(Enum):
    ACTIVE = auto()  # Being pursued
    COMPLETED = auto()  # Finished normally
    FAILED = auto()  # Target lost or claim rejected
    ABANDONED = auto()  # Replaced by a new decision


class CommitmentPhase(Enum):
    APPROACHING = auto()
    INTERACTING = auto()


@dataclass(slots=True)
class Commitment:
    """A committed action and its execution progress.

    Attributes:
        source: "override" or "generic".
        anchor: Point a self-directed state moves relative to (flock centre,
            prey, threat). ``None`` means drift.
        duration: Seconds the interaction is held; sampled when the
            interaction starts (on arrival for target-directed commitments).
    """

    action: ActionKind
    target: ObjectId | None
    source: str
    score: float
    started_at: SimTime
    rule_name: str | None = None
    anchor: WorldPos | None = None
    phase: CommitmentPhase = CommitmentPhase.APPROACHING
    duration: float = 0.0
    elapsed: float = 0.0
    status: CommitmentStatus = CommitmentStatus.ACTIVE
    # State override from a rule (e.g. roosting in place as a rule result).
    state_override: BirdState | None = None

    @property
    def policy(self) -> ActionPolicy:
        return policy_for(self.action)

    @property
    def is_self_directed(self) -> bool:
        return self.target is None

    @property
    def interaction_state(self) -> BirdState:
        if self.state_override is not None:
            return self.state_override
        return self.policy.state

    @property
    def current_state(self) -> BirdState:
        if self.phase is CommitmentPhase.APPROACHING and self.target is not None:
            return BirdState.MOVING_TO_TARGET
        return self.interaction_state

    @property
    def progress(self) -> float:
        """How far through the interaction the bird is, 0.0 to 1.0.

        Approaching counts as no progress.
        """
        if self.phase is not CommitmentPhase.INTERACTING or self.duration <= 0:
            return 0.0
        return min(1.0, self.elapsed / self.duration)

    @property
    def persistence_bonus(self) -> float:
        return config.PERSISTENCE_MINIMUM + self.progress * config.PERSISTENCE_WEIGHT

    @property
    def is_complete(self) -> bool:
        return self.status is not CommitmentStatus.ACTIVE

    def begin_interaction(self, duration: float) -> None:
        self.phase = CommitmentPhase.INTERACTING
        self.duration = duration
        self.elapsed = 0.0

    def same_decision(self, action: ActionKind, target: ObjectId | None) -> bool:
        return self.action is action and self.target == target
