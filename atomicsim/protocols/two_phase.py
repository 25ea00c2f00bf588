"""
Two-Phase Commit coordinator.
"""

from atomicsim.utils.logging import get_logger
from .coordinator import BaseCoordinator
from .participant import TwoPhaseParticipant
from .states import CoordinatorState, Protocol
from .transaction import Transaction
from .types import MessageType, NodeRef, StepAction

logger = get_logger(__name__)


class TwoPhaseCoordinator(BaseCoordinator):
    """
    Coordinates Two-Phase Commit runs.

    Phase 1 sends PREPARE to every participant and tallies the votes.
    Phase 2 sends COMMIT after a unanimous YES, ABORT otherwise. Steps
    carry no phase number.
    """

    protocol = Protocol.TWO_PHASE
    participant_class = TwoPhaseParticipant
    voting_state = CoordinatorState.PREPARING
    tracks_phases = False

    def _run_commit(self, transaction: Transaction) -> None:
        self._state = CoordinatorState.COMMITTING
        transaction.commit()
        self._append_step(
            f"Coordinator decides to COMMIT (All {transaction.total_votes} participants voted YES)",
            StepAction.DECISION_COMMIT,
            from_node=NodeRef.coordinator(),
        )
        logger.debug(f"[2pc] Sending COMMIT for {transaction.id}")
        self._broadcast(
            "COMMIT",
            "COMMIT",
            StepAction.COMMIT_SENT,
            StepAction.COMMIT_ACK,
            MessageType.COMMIT,
            lambda participant: participant.commit(),
        )
        self._append_step(
            f"Transaction '{transaction.id}' COMMITTED successfully!",
            StepAction.TRANSACTION_COMMITTED,
        )
