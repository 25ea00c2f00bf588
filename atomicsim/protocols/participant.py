"""
Participant state machines for 2PC and 3PC.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .states import ParticipantState
from .types import Vote


class Participant(ABC):
    """
    A node that votes on a transaction and obeys coordinator directives.

    Participants are owned by exactly one coordinator, which creates them
    once and keeps them across transactions. A failed participant always
    votes NO and ignores every directive until its failure is cleared.
    """

    #: State entered after voting YES.
    voted_yes_state: ParticipantState = ParticipantState.PREPARED

    def __init__(self, participant_id: int):
        self.id = participant_id
        self.state = ParticipantState.IDLE
        self.vote: Optional[Vote] = None
        self.transaction_id: Optional[str] = None
        self.can_commit = True
        self.is_failed = False

    def prepare(self, transaction_id: str) -> Vote:
        """
        Phase 1: vote on ``transaction_id``.

        A failed participant answers NO without recording anything.

        Args:
            transaction_id: The transaction being voted on

        Returns:
            The vote cast
        """
        if self.is_failed:
            return Vote.NO

        self.transaction_id = transaction_id
        if self.can_commit:
            vote = Vote.YES
            self.state = self.voted_yes_state
        else:
            vote = Vote.NO
            self.state = ParticipantState.ABORTED

        self.vote = vote
        return vote

    @abstractmethod
    def commit(self) -> None:
        """Apply the commit decision if in the right predecessor state."""
        raise NotImplementedError

    @abstractmethod
    def abort(self) -> None:
        """Apply the abort decision where the protocol still allows it."""
        raise NotImplementedError

    @property
    def is_in_doubt(self) -> bool:
        """True after a YES vote while the outcome is still unknown."""
        return self.state is self.voted_yes_state

    def set_can_commit(self, can_commit: bool) -> None:
        self.can_commit = can_commit

    def set_failed(self, failed: bool) -> None:
        self.is_failed = failed
        if failed:
            self.state = ParticipantState.FAILED
        elif self.state is ParticipantState.FAILED:
            self.state = ParticipantState.IDLE

    def reset(self) -> None:
        self.state = ParticipantState.IDLE
        self.vote = None
        self.transaction_id = None
        self.can_commit = True
        self.is_failed = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.id}, state={self.state.value}, "
            f"can_commit={self.can_commit}, is_failed={self.is_failed})"
        )


class TwoPhaseParticipant(Participant):
    """Participant in Two-Phase Commit."""

    voted_yes_state = ParticipantState.PREPARED

    def commit(self) -> None:
        if self.state is ParticipantState.PREPARED and not self.is_failed:
            self.state = ParticipantState.COMMITTED

    def abort(self) -> None:
        if self.state is not ParticipantState.COMMITTED and not self.is_failed:
            self.state = ParticipantState.ABORTED


class ThreePhaseParticipant(Participant):
    """
    Participant in Three-Phase Commit.

    After voting YES the participant is UNCERTAIN. PRE-COMMIT moves it to
    PRE_COMMITTED, from which only commit is possible.
    """

    voted_yes_state = ParticipantState.UNCERTAIN

    def can_commit_phase(self, transaction_id: str) -> Vote:
        """Phase 1 of 3PC (CAN-COMMIT?); same mechanics as :meth:`prepare`."""
        return self.prepare(transaction_id)

    def pre_commit(self) -> None:
        if self.state is ParticipantState.UNCERTAIN and not self.is_failed:
            self.state = ParticipantState.PRE_COMMITTED

    def commit(self) -> None:
        if self.state is ParticipantState.PRE_COMMITTED and not self.is_failed:
            self.state = ParticipantState.COMMITTED

    def abort(self) -> None:
        # PRE_COMMITTED participants can no longer abort.
        if self.state is ParticipantState.UNCERTAIN and not self.is_failed:
            self.state = ParticipantState.ABORTED
