import pytest

from aviary import config
from aviary.ai.actions import ActionKind, BirdState
from aviary.ai.commitment import Commitment, CommitmentPhase, CommitmentStatus
from aviary.types import ObjectId, SimTime


def _commit(action: ActionKind = ActionKind.EAT, target: int | None = 1) -> Commitment:
    return Commitment(
        action=action,
        target=ObjectId(target) if target is not None else None,
        source="generic",
        score=0.8,
        started_at=SimTime(0.0),
    )


def test_targeted_commitment_moves_then_interacts() -> None:
    commitment = _commit()
    assert commitment.current_state is BirdState.MOVING_TO_TARGET

    commitment.begin_interaction(5.0)
    assert commitment.phase is CommitmentPhase.INTERACTING
    assert commitment.current_state is BirdState.EATING


def test_self_directed_commitment_skips_approach_state() -> None:
    commitment = _commit(ActionKind.REST, target=None)
    assert commitment.is_self_directed
    assert commitment.current_state is BirdState.RESTING


def test_state_override_replaces_policy_state() -> None:
    commitment = _commit(ActionKind.ROOST, target=None)
    commitment.state_override = BirdState.SHELTERING
    assert commitment.current_state is BirdState.SHELTERING


def test_persistence_bonus_grows_with_progress() -> None:
    commitment = _commit()
    assert commitment.progress == 0.0
    assert commitment.persistence_bonus == pytest.approx(config.PERSISTENCE_MINIMUM)

    commitment.begin_interaction(10.0)
    commitment.elapsed = 5.0
    assert commitment.progress == pytest.approx(0.5)
    assert commitment.persistence_bonus == pytest.approx(
        config.PERSISTENCE_MINIMUM + 0.5 * config.PERSISTENCE_WEIGHT
    )

    commitment.elapsed = 50.0
    assert commitment.progress == 1.0


def test_is_complete_tracks_status() -> None:
    commitment = _commit()
    assert not commitment.is_complete
    commitment.status = CommitmentStatus.ABANDONED
    assert commitment.is_complete


def test_same_decision() -> None:
    commitment = _commit()
    assert commitment.same_decision(ActionKind.EAT, ObjectId(1))
    assert not commitment.same_decision(ActionKind.EAT, ObjectId(2))
    assert not commitment.same_decision(ActionKind.PERCH, ObjectId(1))
