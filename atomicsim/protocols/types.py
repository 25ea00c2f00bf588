"""
Vote, node identity and protocol-step definitions.

A protocol run is reported as an ordered list of ``ProtocolStep`` records,
one per simulated message exchange, which a visualizer can replay.
"""

from enum import Enum
from typing import Any, Dict, Optional

import attrs

#: Wire id of the coordinator in ``fromNode``/``toNode`` fields.
COORDINATOR_NODE_ID = -1


class Vote(Enum):
    """A participant's answer to PREPARE / CAN-COMMIT."""
    YES = "YES"
    NO = "NO"


class NodeKind(Enum):
    COORDINATOR = "coordinator"
    PARTICIPANT = "participant"


@attrs.frozen
class NodeRef:
    """
    Identity of a node taking part in a message exchange.

    Either the coordinator or the participant at ``index``. Build instances
    with :meth:`coordinator` and :meth:`participant`.
    """

    kind: NodeKind = attrs.field(validator=attrs.validators.instance_of(NodeKind))
    index: Optional[int] = attrs.field(default=None)

    @index.validator
    def _check_index(self, attribute, value):
        if self.kind is NodeKind.COORDINATOR:
            if value is not None:
                raise ValueError("the coordinator has no participant index")
        elif not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"participant index must be a non-negative int, got {value!r}")

    @classmethod
    def coordinator(cls) -> "NodeRef":
        return _COORDINATOR

    @classmethod
    def participant(cls, index: int) -> "NodeRef":
        return cls(NodeKind.PARTICIPANT, index)

    @classmethod
    def from_wire(cls, value: Optional[int]) -> Optional["NodeRef"]:
        """Inverse of :meth:`to_wire`; ``None`` means no node."""
        if value is None:
            return None
        if value == COORDINATOR_NODE_ID:
            return _COORDINATOR
        return cls.participant(value)

    @property
    def is_coordinator(self) -> bool:
        return self.kind is NodeKind.COORDINATOR

    def to_wire(self) -> int:
        return COORDINATOR_NODE_ID if self.is_coordinator else self.index

    def __str__(self) -> str:
        if self.is_coordinator:
            return "Coordinator"
        return f"Participant {self.index}"


_COORDINATOR = NodeRef(NodeKind.COORDINATOR)


class StepAction(Enum):
    """Action tags used in protocol traces."""
    TRANSACTION_INITIATED = "transaction_initiated"
    PREPARE_REQUEST_SENT = "prepare_request_sent"
    CAN_COMMIT_REQUEST_SENT = "can_commit_request_sent"
    VOTE_RECEIVED = "vote_received"
    DECISION_PRE_COMMIT = "decision_pre_commit"
    DECISION_COMMIT = "decision_commit"
    DECISION_ABORT = "decision_abort"
    PRE_COMMIT_SENT = "pre_commit_sent"
    PRE_COMMIT_ACK = "pre_commit_ack"
    COMMIT_SENT = "commit_sent"
    COMMIT_ACK = "commit_ack"
    ABORT_SENT = "abort_sent"
    ABORT_ACK = "abort_ack"
    TRANSACTION_COMMITTED = "transaction_committed"
    TRANSACTION_ABORTED = "transaction_aborted"


class MessageType(Enum):
    """Message carried by a step, if any."""
    PREPARE = "prepare"
    CAN_COMMIT = "can_commit"
    VOTE = "vote"
    PRE_COMMIT = "pre_commit"
    COMMIT = "commit"
    ABORT = "abort"
    ACK = "ack"


@attrs.frozen
class ProtocolStep:
    """One ordered, described unit of a protocol trace."""

    step_number: int = attrs.field(validator=attrs.validators.ge(1))
    description: str = attrs.field(validator=attrs.validators.instance_of(str))
    action: StepAction = attrs.field(validator=attrs.validators.instance_of(StepAction))
    yes_votes: int = attrs.field(default=0, validator=attrs.validators.ge(0))
    no_votes: int = attrs.field(default=0, validator=attrs.validators.ge(0))
    phase: Optional[int] = attrs.field(
        default=None,
        validator=attrs.validators.optional(attrs.validators.in_((1, 2, 3)))
    )
    from_node: Optional[NodeRef] = attrs.field(default=None)
    to_node: Optional[NodeRef] = attrs.field(default=None)
    message_type: Optional[MessageType] = attrs.field(default=None)
    vote: Optional[Vote] = attrs.field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape; optional fields are omitted when unset."""
        result: Dict[str, Any] = {
            "stepNumber": self.step_number,
            "description": self.description,
            "action": self.action.value,
        }
        if self.phase is not None:
            result["phase"] = self.phase
        if self.from_node is not None:
            result["fromNode"] = self.from_node.to_wire()
        if self.to_node is not None:
            result["toNode"] = self.to_node.to_wire()
        if self.message_type is not None:
            result["messageType"] = self.message_type.value
        if self.vote is not None:
            result["voteResponse"] = self.vote.value
        result["yesVotes"] = self.yes_votes
        result["noVotes"] = self.no_votes
        return result
