"""
Tests for the 2PC and 3PC participant state machines.
"""
import pytest

from atomicsim.protocols import (
    ParticipantState,
    ThreePhaseParticipant,
    TwoPhaseParticipant,
    Vote,
)


@pytest.fixture(params=[TwoPhaseParticipant, ThreePhaseParticipant])
def participant(request):
    return request.param(0)


def test_new_participant_defaults(participant):
    assert participant.state is ParticipantState.IDLE
    assert participant.vote is None
    assert participant.transaction_id is None
    assert participant.can_commit is True
    assert participant.is_failed is False


def test_prepare_votes_no_and_aborts_when_cannot_commit(participant):
    participant.set_can_commit(False)
    assert participant.prepare("TX-1") is Vote.NO
    assert participant.state is ParticipantState.ABORTED
    assert participant.vote is Vote.NO
    assert participant.transaction_id == "TX-1"


def test_failed_participant_votes_no_without_recording(participant):
    participant.set_failed(True)
    assert participant.prepare("TX-1") is Vote.NO
    assert participant.state is ParticipantState.FAILED
    assert participant.vote is None
    assert participant.transaction_id is None


def test_failed_participant_votes_no_even_if_it_could_commit(participant):
    participant.set_can_commit(True)
    participant.set_failed(True)
    assert participant.prepare("TX-1") is Vote.NO


def test_set_failed_and_recover(participant):
    participant.set_failed(True)
    assert participant.state is ParticipantState.FAILED
    participant.set_failed(False)
    assert participant.state is ParticipantState.IDLE
    assert participant.is_failed is False


def test_clearing_failure_outside_failed_state_keeps_state(participant):
    participant.prepare("TX-1")
    voted_state = participant.state
    participant.set_failed(False)
    assert participant.state is voted_state


def test_failed_participant_ignores_directives(participant):
    participant.set_failed(True)
    participant.commit()
    participant.abort()
    assert participant.state is ParticipantState.FAILED


def test_reset_restores_defaults(participant):
    participant.set_can_commit(False)
    participant.prepare("TX-1")
    participant.set_failed(True)

    participant.reset()

    assert participant.state is ParticipantState.IDLE
    assert participant.vote is None
    assert participant.transaction_id is None
    assert participant.can_commit is True
    assert participant.is_failed is False


class TestTwoPhaseParticipant:
    """Two-Phase Commit participant transitions."""

    def setup_method(self):
        self.participant = TwoPhaseParticipant(1)

    def test_yes_vote_moves_to_prepared(self):
        assert self.participant.prepare("TX-1") is Vote.YES
        assert self.participant.state is ParticipantState.PREPARED
        assert self.participant.is_in_doubt

    def test_commit_from_prepared(self):
        self.participant.prepare("TX-1")
        self.participant.commit()
        assert self.participant.state is ParticipantState.COMMITTED

    def test_commit_is_noop_unless_prepared(self):
        self.participant.commit()
        assert self.participant.state is ParticipantState.IDLE

    def test_abort_from_prepared(self):
        self.participant.prepare("TX-1")
        self.participant.abort()
        assert self.participant.state is ParticipantState.ABORTED

    def test_abort_from_idle(self):
        self.participant.abort()
        assert self.participant.state is ParticipantState.ABORTED

    def test_abort_never_undoes_commit(self):
        self.participant.prepare("TX-1")
        self.participant.commit()
        self.participant.abort()
        assert self.participant.state is ParticipantState.COMMITTED


class TestThreePhaseParticipant:
    """Three-Phase Commit participant transitions."""

    def setup_method(self):
        self.participant = ThreePhaseParticipant(1)

    def test_yes_vote_moves_to_uncertain(self):
        assert self.participant.can_commit_phase("TX-1") is Vote.YES
        assert self.participant.state is ParticipantState.UNCERTAIN
        assert self.participant.is_in_doubt

    def test_pre_commit_from_uncertain(self):
        self.participant.can_commit_phase("TX-1")
        self.participant.pre_commit()
        assert self.participant.state is ParticipantState.PRE_COMMITTED
        assert not self.participant.is_in_doubt

    def test_pre_commit_is_noop_unless_uncertain(self):
        self.participant.pre_commit()
        assert self.participant.state is ParticipantState.IDLE

    def test_commit_requires_pre_commit(self):
        self.participant.can_commit_phase("TX-1")
        self.participant.commit()
        assert self.participant.state is ParticipantState.UNCERTAIN

        self.participant.pre_commit()
        self.participant.commit()
        assert self.participant.state is ParticipantState.COMMITTED

    def test_abort_from_uncertain(self):
        self.participant.can_commit_phase("TX-1")
        self.participant.abort()
        assert self.participant.state is ParticipantState.ABORTED

    def test_abort_is_impossible_once_pre_committed(self):
        self.participant.can_commit_phase("TX-1")
        self.participant.pre_commit()
        self.participant.abort()
        assert self.participant.state is ParticipantState.PRE_COMMITTED

    def test_abort_is_noop_from_idle(self):
        self.participant.abort()
        assert self.participant.state is ParticipantState.IDLE

    def test_failed_participant_is_frozen_while_pre_committed(self):
        self.participant.can_commit_phase("TX-1")
        self.participant.pre_commit()
        self.participant.set_failed(True)
        self.participant.commit()
        assert self.participant.state is ParticipantState.FAILED
