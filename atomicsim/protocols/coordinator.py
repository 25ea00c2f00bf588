"""
Shared coordinator machinery for the atomic-commit protocols.

``BaseCoordinator`` owns the participants, the current transaction and the
step trace, and implements fault injection, snapshots and the parts of a
run that 2PC and 3PC share (phase-1 voting and the abort path). Subclasses
provide the commit path.
"""

import threading
import time
from abc import abstractmethod
from typing import Callable, List, Optional, Tuple, Type

from atomicsim.exceptions import (
    CoordinatorFailedError,
    InvalidParticipantIndexError,
    ValidationError,
)
from atomicsim.utils.logging import get_logger, get_metrics_logger, with_correlation_id
from .interfaces import CoordinatorInterface
from .participant import Participant
from .snapshot import CoordinatorSnapshot, ParticipantSnapshot, TransactionSnapshot
from .states import CoordinatorState, Protocol
from .transaction import Transaction
from .types import MessageType, NodeRef, ProtocolStep, StepAction, Vote

logger = get_logger(__name__)


class BaseCoordinator(CoordinatorInterface):
    """
    Base class for commit coordinators.

    A single re-entrant lock guards all coordinator state. It is held for
    the whole of ``start_transaction``, so a run is atomic as observed by
    ``get_state`` and by the fault-injection mutators.
    """

    protocol: Protocol
    participant_class: Type[Participant]
    #: Coordinator state while phase-1 votes are collected.
    voting_state: CoordinatorState
    #: Whether steps carry a phase number.
    tracks_phases: bool = False

    def __init__(self, participant_count: int):
        if isinstance(participant_count, bool) or not isinstance(participant_count, int):
            raise ValidationError(f"participant_count must be an int, got {participant_count!r}")
        if participant_count < 1:
            raise ValidationError(f"participant_count must be at least 1, got {participant_count}")

        self._lock = threading.RLock()
        self._participants: List[Participant] = [
            self.participant_class(i) for i in range(participant_count)
        ]
        self._state = CoordinatorState.IDLE
        self._transaction: Optional[Transaction] = None
        self._steps: List[ProtocolStep] = []
        self._is_failed = False

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> CoordinatorState:
        with self._lock:
            return self._state

    @property
    def is_failed(self) -> bool:
        with self._lock:
            return self._is_failed

    @property
    def participant_count(self) -> int:
        return len(self._participants)

    @property
    def transaction(self) -> Optional[TransactionSnapshot]:
        with self._lock:
            if self._transaction is None:
                return None
            return TransactionSnapshot.from_transaction(self._transaction)

    @property
    def protocol_steps(self) -> Tuple[ProtocolStep, ...]:
        with self._lock:
            return tuple(self._steps)

    def get_state(self) -> CoordinatorSnapshot:
        with self._lock:
            return CoordinatorSnapshot(
                protocol=self.protocol,
                coordinator_state=self._state,
                is_failed=self._is_failed,
                participants=tuple(
                    ParticipantSnapshot.from_participant(p) for p in self._participants
                ),
                transaction=(
                    TransactionSnapshot.from_transaction(self._transaction)
                    if self._transaction is not None else None
                ),
                protocol_steps=tuple(self._steps),
            )

    # ------------------------------------------------------------------
    # Running a transaction
    # ------------------------------------------------------------------

    def start_transaction(self, transaction_id: str, data: str) -> List[ProtocolStep]:
        if not isinstance(transaction_id, str) or not transaction_id.strip():
            raise ValidationError("transaction_id must be a non-empty string.")
        if not isinstance(data, str):
            raise ValidationError("data must be a string.")

        with self._lock:
            if self._is_failed:
                logger.warning(
                    f"[{self.protocol.value}] Rejected transaction {transaction_id}: coordinator has failed"
                )
                raise CoordinatorFailedError()

            with with_correlation_id(transaction_id):
                metrics = get_metrics_logger()
                metrics.log_operation_start(
                    "start_transaction",
                    protocol=self.protocol.value,
                    transaction_id=transaction_id,
                )
                started = time.perf_counter()

                # The previous transaction and trace are discarded, not archived.
                self._steps = []
                self._transaction = Transaction(transaction_id, data, len(self._participants))
                logger.info(
                    f"[{self.protocol.value}] Starting transaction {transaction_id} "
                    f"with {len(self._participants)} participants"
                )

                self._execute(self._transaction)
                self._state = CoordinatorState.IDLE

                transaction = self._transaction
                logger.info(f"[{self.protocol.value}] {transaction.result_summary()}")
                metrics.log_transaction_outcome(
                    protocol=self.protocol.value,
                    transaction_id=transaction.id,
                    outcome=transaction.state.value,
                    yes_votes=transaction.yes_votes,
                    no_votes=transaction.no_votes,
                    step_count=len(self._steps),
                )
                metrics.log_operation_end(
                    "start_transaction",
                    time.perf_counter() - started,
                    success=True,
                    protocol=self.protocol.value,
                    transaction_id=transaction.id,
                )

            return list(self._steps)

    def _execute(self, transaction: Transaction) -> None:
        """Drive ``transaction`` through every phase, appending steps."""
        self._state = self.voting_state
        transaction.mark_preparing()
        self._append_step(
            f"Coordinator initiates transaction '{transaction.id}' with data: '{transaction.data}'",
            StepAction.TRANSACTION_INITIATED,
            phase=1,
            from_node=NodeRef.coordinator(),
        )

        self._collect_votes(transaction)

        if not transaction.has_all_votes():
            logger.warning(
                f"[{self.protocol.value}] Only {transaction.yes_votes + transaction.no_votes} of "
                f"{transaction.total_votes} votes received for {transaction.id}"
            )
            self._run_abort(transaction)
        elif transaction.can_commit():
            logger.info(
                f"[{self.protocol.value}] All {transaction.total_votes} participants voted YES"
            )
            self._run_commit(transaction)
        else:
            logger.info(
                f"[{self.protocol.value}] Aborting: {transaction.yes_votes} YES, "
                f"{transaction.no_votes} NO votes"
            )
            self._run_abort(transaction)

    @abstractmethod
    def _run_commit(self, transaction: Transaction) -> None:
        """Commit path taken after a unanimous YES."""
        raise NotImplementedError

    def _request_vote(self, participant: Participant, transaction_id: str) -> Vote:
        return participant.prepare(transaction_id)

    # Phase-1 wording differs between the protocols.
    vote_request_label = "PREPARE"
    vote_request_action = StepAction.PREPARE_REQUEST_SENT
    vote_request_message = MessageType.PREPARE

    def _collect_votes(self, transaction: Transaction) -> None:
        coordinator = NodeRef.coordinator()
        for index, participant in enumerate(self._participants):
            node = NodeRef.participant(index)
            self._append_step(
                f"Coordinator sends {self.vote_request_label} request to Participant {index}",
                self.vote_request_action,
                phase=1,
                from_node=coordinator,
                to_node=node,
                message_type=self.vote_request_message,
            )

            vote = self._request_vote(participant, transaction.id)
            transaction.record_vote(vote)

            self._append_step(
                f"Participant {index} votes {vote.value}",
                StepAction.VOTE_RECEIVED,
                phase=1,
                from_node=node,
                to_node=coordinator,
                message_type=MessageType.VOTE,
                vote=vote,
            )

    def _run_abort(self, transaction: Transaction) -> None:
        self._state = CoordinatorState.ABORTING
        transaction.abort()
        self._append_step(
            f"Coordinator decides to ABORT ({transaction.yes_votes} YES, {transaction.no_votes} NO votes)",
            StepAction.DECISION_ABORT,
            phase=1,
            from_node=NodeRef.coordinator(),
        )
        self._broadcast(
            "ABORT",
            "ABORT",
            StepAction.ABORT_SENT,
            StepAction.ABORT_ACK,
            MessageType.ABORT,
            lambda participant: participant.abort(),
            phase=1,
        )
        self._append_step(
            f"Transaction '{transaction.id}' ABORTED",
            StepAction.TRANSACTION_ABORTED,
            phase=1,
        )

    def _broadcast(
        self,
        sent_label: str,
        ack_label: str,
        sent_action: StepAction,
        ack_action: StepAction,
        message_type: MessageType,
        directive: Callable[[Participant], None],
        phase: Optional[int] = None,
    ) -> None:
        """Send one directive to every participant, in index order, with acks."""
        coordinator = NodeRef.coordinator()
        for index, participant in enumerate(self._participants):
            node = NodeRef.participant(index)
            self._append_step(
                f"Coordinator sends {sent_label} to Participant {index}",
                sent_action,
                phase=phase,
                from_node=coordinator,
                to_node=node,
                message_type=message_type,
            )

            directive(participant)

            self._append_step(
                f"Participant {index} acknowledges {ack_label}",
                ack_action,
                phase=phase,
                from_node=node,
                to_node=coordinator,
                message_type=MessageType.ACK,
            )

    def _append_step(
        self,
        description: str,
        action: StepAction,
        phase: Optional[int] = None,
        from_node: Optional[NodeRef] = None,
        to_node: Optional[NodeRef] = None,
        message_type: Optional[MessageType] = None,
        vote: Optional[Vote] = None,
    ) -> ProtocolStep:
        step = ProtocolStep(
            step_number=len(self._steps) + 1,
            description=description,
            action=action,
            yes_votes=self._transaction.yes_votes,
            no_votes=self._transaction.no_votes,
            phase=phase if self.tracks_phases else None,
            from_node=from_node,
            to_node=to_node,
            message_type=message_type,
            vote=vote,
        )
        self._steps.append(step)
        logger.debug(f"[{self.protocol.value}] Step {step.step_number}: {description}")
        return step

    # ------------------------------------------------------------------
    # Fault injection
    # ------------------------------------------------------------------

    def _participant_at(self, participant_index: int) -> Participant:
        if (
            isinstance(participant_index, bool)
            or not isinstance(participant_index, int)
            or not 0 <= participant_index < len(self._participants)
        ):
            logger.warning(
                f"[{self.protocol.value}] Invalid participant index {participant_index!r} "
                f"(participant count {len(self._participants)})"
            )
            raise InvalidParticipantIndexError(participant_index, len(self._participants))
        return self._participants[participant_index]

    def set_participant_can_commit(self, participant_index: int, can_commit: bool) -> None:
        with self._lock:
            self._participant_at(participant_index).set_can_commit(can_commit)
            logger.debug(
                f"[{self.protocol.value}] Participant {participant_index} can_commit={can_commit}"
            )

    def set_participant_failed(self, participant_index: int, failed: bool) -> None:
        with self._lock:
            self._participant_at(participant_index).set_failed(failed)
            logger.debug(
                f"[{self.protocol.value}] Participant {participant_index} failed={failed}"
            )

    def set_coordinator_failed(self, failed: bool) -> None:
        with self._lock:
            self._is_failed = failed
            if failed:
                self._state = CoordinatorState.FAILED
            elif self._state is CoordinatorState.FAILED:
                self._state = CoordinatorState.IDLE
            logger.debug(f"[{self.protocol.value}] Coordinator failed={failed}")

    def reset(self) -> None:
        with self._lock:
            self._state = CoordinatorState.IDLE
            self._transaction = None
            self._steps = []
            self._is_failed = False
            for participant in self._participants:
                participant.reset()
            logger.debug(f"[{self.protocol.value}] Coordinator reset")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(participants={len(self._participants)}, "
            f"state={self._state.value}, is_failed={self._is_failed})"
        )
