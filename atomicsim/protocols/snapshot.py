"""
Read-only snapshots of coordinator state.

Snapshots are copied while the coordinator lock is held, so they always show
either the state before a run or after it, never a partial trace.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import attrs

from atomicsim.utils import serialization
from atomicsim.utils.datetime_utils import format_timestamp
from .participant import Participant
from .states import CoordinatorState, ParticipantState, Protocol, TransactionState
from .transaction import Transaction
from .types import ProtocolStep, Vote


@attrs.frozen
class ParticipantSnapshot:
    id: int
    state: ParticipantState
    vote: Optional[Vote]
    transaction_id: Optional[str]
    can_commit: bool
    is_failed: bool

    @classmethod
    def from_participant(cls, participant: Participant) -> "ParticipantSnapshot":
        return cls(
            id=participant.id,
            state=participant.state,
            vote=participant.vote,
            transaction_id=participant.transaction_id,
            can_commit=participant.can_commit,
            is_failed=participant.is_failed,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "state": self.state.value}
        if self.vote is not None:
            result["vote"] = self.vote.value
        if self.transaction_id is not None:
            result["transactionId"] = self.transaction_id
        result["canCommit"] = self.can_commit
        result["isFailed"] = self.is_failed
        return result


@attrs.frozen
class TransactionSnapshot:
    id: str
    state: TransactionState
    data: str
    start_time: datetime
    end_time: Optional[datetime]
    yes_votes: int
    no_votes: int
    total_votes: int
    summary: str

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionSnapshot":
        return cls(
            id=transaction.id,
            state=transaction.state,
            data=transaction.data,
            start_time=transaction.start_time,
            end_time=transaction.end_time,
            yes_votes=transaction.yes_votes,
            no_votes=transaction.no_votes,
            total_votes=transaction.total_votes,
            summary=transaction.result_summary(),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "state": self.state.value,
            "data": self.data,
            "startTime": format_timestamp(self.start_time),
        }
        if self.end_time is not None:
            result["endTime"] = format_timestamp(self.end_time)
        result["yesVotes"] = self.yes_votes
        result["noVotes"] = self.no_votes
        result["totalVotes"] = self.total_votes
        result["result"] = self.summary
        return result


@attrs.frozen
class CoordinatorSnapshot:
    """State of one coordinator and everything it owns."""

    protocol: Protocol
    coordinator_state: CoordinatorState
    is_failed: bool
    participants: Tuple[ParticipantSnapshot, ...]
    transaction: Optional[TransactionSnapshot] = None
    protocol_steps: Tuple[ProtocolStep, ...] = ()

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def to_dict(self, include_steps: bool = True) -> Dict[str, Any]:
        """
        Wire shape consumed by visualizers.

        Args:
            include_steps: Whether to include ``protocolSteps``

        Returns:
            JSON-safe dictionary
        """
        result: Dict[str, Any] = {
            "protocol": self.protocol.value,
            "coordinator": {
                "state": self.coordinator_state.value,
                "isFailed": self.is_failed,
            },
            "participants": [p.to_dict() for p in self.participants],
            "transaction": self.transaction.to_dict() if self.transaction else None,
        }
        if include_steps:
            result["protocolSteps"] = [step.to_dict() for step in self.protocol_steps]
        return result

    def to_json(self, include_steps: bool = True, pretty: bool = False) -> bytes:
        return serialization.dumps(self.to_dict(include_steps=include_steps), pretty=pretty)
