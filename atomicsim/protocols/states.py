"""
State definitions shared by the commit protocol variants.
"""

from enum import Enum

from atomicsim.exceptions import ValidationError


class Protocol(Enum):
    """Supported atomic-commit protocols."""
    TWO_PHASE = "2pc"
    THREE_PHASE = "3pc"

    @classmethod
    def parse(cls, value) -> "Protocol":
        """Accept a Protocol or any of "2pc", "2PC", "3pc", "3PC"."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValidationError(f"Unknown protocol: {value!r} (expected '2pc' or '3pc')")


class ParticipantState(Enum):
    """States of a participant node."""
    IDLE = "idle"
    PREPARED = "prepared"              # 2PC: voted YES, waiting for the decision
    UNCERTAIN = "uncertain"            # 3PC: voted YES, waiting for pre-commit
    PRE_COMMITTED = "pre_committed"    # 3PC: abort is no longer possible
    ABORTED = "aborted"
    COMMITTED = "committed"
    FAILED = "failed"


class TransactionState(Enum):
    """States of a transaction."""
    INITIATED = "initiated"
    PREPARING = "preparing"
    PRE_COMMITTED = "pre_committed"
    ABORTED = "aborted"
    COMMITTED = "committed"


class CoordinatorState(Enum):
    """States of a coordinator."""
    IDLE = "idle"
    PREPARING = "preparing"            # 2PC phase 1
    CAN_COMMIT = "can_commit"          # 3PC phase 1
    PRE_COMMITTING = "pre_committing"  # 3PC phase 2
    COMMITTING = "committing"
    ABORTING = "aborting"
    FAILED = "failed"
