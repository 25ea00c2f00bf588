"""
Abstract interfaces for atomic-commit coordinators.

Transport layers and sessions depend on this interface rather than on a
particular protocol variant.
"""

from abc import ABC, abstractmethod
from typing import List

from .snapshot import CoordinatorSnapshot
from .states import Protocol
from .types import ProtocolStep


class CoordinatorInterface(ABC):
    """Abstract interface for commit coordinators."""

    protocol: Protocol

    @abstractmethod
    def start_transaction(self, transaction_id: str, data: str) -> List[ProtocolStep]:
        """
        Run one transaction through every phase of the protocol.

        Args:
            transaction_id: Identifier of the new transaction
            data: Payload carried by the transaction

        Returns:
            The ordered protocol trace of the run

        Raises:
            CoordinatorFailedError: If the coordinator is marked as failed
        """
        raise NotImplementedError

    @abstractmethod
    def set_participant_can_commit(self, participant_index: int, can_commit: bool) -> None:
        """Force a participant to vote NO (or allow YES again)."""
        raise NotImplementedError

    @abstractmethod
    def set_participant_failed(self, participant_index: int, failed: bool) -> None:
        """Mark a participant as unavailable (or recovered)."""
        raise NotImplementedError

    @abstractmethod
    def set_coordinator_failed(self, failed: bool) -> None:
        """Mark the coordinator itself as unavailable (or recovered)."""
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Restore the coordinator and every participant to initial state."""
        raise NotImplementedError

    @abstractmethod
    def get_state(self) -> CoordinatorSnapshot:
        """Return a consistent read-only snapshot."""
        raise NotImplementedError
