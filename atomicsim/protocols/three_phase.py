"""
Three-Phase Commit coordinator.

3PC inserts a PRE-COMMIT round between the vote and the final commit. Once
every participant has acknowledged PRE-COMMIT the outcome is fixed: a
PRE_COMMITTED participant cannot abort, and the coordinator has no abort
branch past the phase-1 decision.

Participants here never act on their own; a participant that loses the
coordinator while PRE_COMMITTED simply stays PRE_COMMITTED.
"""

from atomicsim.utils.logging import get_logger
from .coordinator import BaseCoordinator
from .participant import Participant, ThreePhaseParticipant
from .states import CoordinatorState, Protocol
from .transaction import Transaction
from .types import MessageType, NodeRef, StepAction, Vote

logger = get_logger(__name__)


class ThreePhaseCoordinator(BaseCoordinator):
    """
    Coordinates Three-Phase Commit runs.

    Phase 1 (CAN-COMMIT) collects votes; any NO aborts right away with the
    same shape as a 2PC abort. A unanimous YES runs phase 2 (PRE-COMMIT)
    and then phase 3 (DO-COMMIT). Every step is tagged with its phase.
    """

    protocol = Protocol.THREE_PHASE
    participant_class = ThreePhaseParticipant
    voting_state = CoordinatorState.CAN_COMMIT
    tracks_phases = True

    vote_request_label = "CAN-COMMIT"
    vote_request_action = StepAction.CAN_COMMIT_REQUEST_SENT
    vote_request_message = MessageType.CAN_COMMIT

    def _request_vote(self, participant: Participant, transaction_id: str) -> Vote:
        return participant.can_commit_phase(transaction_id)

    def _run_commit(self, transaction: Transaction) -> None:
        coordinator = NodeRef.coordinator()

        # Phase 2: PRE-COMMIT
        self._state = CoordinatorState.PRE_COMMITTING
        transaction.pre_commit()
        self._append_step(
            f"Coordinator decides to PRE-COMMIT (All {transaction.total_votes} participants voted YES)",
            StepAction.DECISION_PRE_COMMIT,
            phase=2,
            from_node=coordinator,
        )
        logger.debug(f"[3pc] Sending PRE-COMMIT for {transaction.id}")
        self._broadcast(
            "PRE-COMMIT",
            "PRE-COMMIT",
            StepAction.PRE_COMMIT_SENT,
            StepAction.PRE_COMMIT_ACK,
            MessageType.PRE_COMMIT,
            lambda participant: participant.pre_commit(),
            phase=2,
        )

        # Phase 3: DO-COMMIT
        self._state = CoordinatorState.COMMITTING
        transaction.commit()
        self._append_step(
            "Coordinator decides to DO-COMMIT (Final phase)",
            StepAction.DECISION_COMMIT,
            phase=3,
            from_node=coordinator,
        )
        logger.debug(f"[3pc] Sending DO-COMMIT for {transaction.id}")
        self._broadcast(
            "DO-COMMIT",
            "COMMIT",
            StepAction.COMMIT_SENT,
            StepAction.COMMIT_ACK,
            MessageType.COMMIT,
            lambda participant: participant.commit(),
            phase=3,
        )
        self._append_step(
            f"Transaction '{transaction.id}' COMMITTED successfully!",
            StepAction.TRANSACTION_COMMITTED,
            phase=3,
        )
