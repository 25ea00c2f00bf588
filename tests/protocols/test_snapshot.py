"""
Tests for coordinator snapshots and their wire format.
"""
import attrs
import pytest

from atomicsim.protocols import (
    CoordinatorState,
    ParticipantState,
    Protocol,
    ThreePhaseCoordinator,
    TwoPhaseCoordinator,
)
from atomicsim.utils import serialization


def test_snapshot_is_frozen():
    snapshot = TwoPhaseCoordinator(2).get_state()
    with pytest.raises(attrs.exceptions.FrozenInstanceError):
        snapshot.is_failed = True


def test_snapshot_does_not_follow_later_changes():
    coordinator = TwoPhaseCoordinator(2)
    snapshot = coordinator.get_state()
    coordinator.set_participant_failed(0, True)
    coordinator.start_transaction("TX-1", "payload")

    assert snapshot.participants[0].state is ParticipantState.IDLE
    assert snapshot.transaction is None
    assert snapshot.protocol_steps == ()


def test_initial_to_dict():
    data = TwoPhaseCoordinator(2).get_state().to_dict()
    assert data == {
        "protocol": "2pc",
        "coordinator": {"state": "idle", "isFailed": False},
        "participants": [
            {"id": 0, "state": "idle", "canCommit": True, "isFailed": False},
            {"id": 1, "state": "idle", "canCommit": True, "isFailed": False},
        ],
        "transaction": None,
        "protocolSteps": [],
    }


def test_to_dict_after_run():
    coordinator = ThreePhaseCoordinator(3)
    coordinator.start_transaction("TX-7", "hello")
    data = coordinator.get_state().to_dict()

    assert data["protocol"] == "3pc"
    assert data["coordinator"] == {"state": "idle", "isFailed": False}
    assert data["participants"][0] == {
        "id": 0,
        "state": "committed",
        "vote": "YES",
        "transactionId": "TX-7",
        "canCommit": True,
        "isFailed": False,
    }
    transaction = data["transaction"]
    assert transaction["id"] == "TX-7"
    assert transaction["state"] == "committed"
    assert transaction["data"] == "hello"
    assert transaction["yesVotes"] == 3
    assert transaction["noVotes"] == 0
    assert transaction["totalVotes"] == 3
    assert "startTime" in transaction and "endTime" in transaction
    assert transaction["result"] == "Transaction TX-7 COMMITTED successfully (All 3 participants voted YES)"

    steps = data["protocolSteps"]
    assert steps[0]["fromNode"] == -1
    assert "toNode" not in steps[0]
    assert steps[1]["toNode"] == 0
    assert "fromNode" not in steps[-1]


def test_to_dict_without_steps():
    coordinator = TwoPhaseCoordinator(2)
    coordinator.start_transaction("TX-1", "payload")
    assert "protocolSteps" not in coordinator.get_state().to_dict(include_steps=False)


def test_to_json_round_trips_through_orjson():
    coordinator = TwoPhaseCoordinator(4)
    coordinator.set_participant_can_commit(2, False)
    steps = coordinator.start_transaction("TX-1", "payload")

    decoded = serialization.loads(coordinator.get_state().to_json())
    assert decoded["transaction"]["state"] == "aborted"
    assert decoded["transaction"]["noVotes"] == 1
    assert len(decoded["protocolSteps"]) == len(steps)
    assert decoded["protocolSteps"][-1]["action"] == "transaction_aborted"


def test_snapshot_fields():
    coordinator = ThreePhaseCoordinator(2)
    coordinator.set_coordinator_failed(True)
    snapshot = coordinator.get_state()
    assert snapshot.protocol is Protocol.THREE_PHASE
    assert snapshot.coordinator_state is CoordinatorState.FAILED
    assert snapshot.is_failed
    assert snapshot.participant_count == 2


def test_transaction_snapshot_summary():
    coordinator = TwoPhaseCoordinator(2)
    coordinator.start_transaction("TX-1", "payload")
    assert coordinator.transaction.summary == (
        "Transaction TX-1 COMMITTED successfully (All 2 participants voted YES)"
    )
