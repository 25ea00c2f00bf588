"""
Per-client simulation sessions.

Each session owns its own 2PC and 3PC coordinators, so clients never share
protocol state. Sessions are built by factories and held in a
``SessionManager``; nothing here is module-level mutable state.
"""
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from atomicsim.config import SimulatorSettings
from atomicsim.exceptions import SessionError
from atomicsim.protocols import (
    BaseCoordinator,
    Protocol,
    ProtocolStep,
    ThreePhaseCoordinator,
    TwoPhaseCoordinator,
)
from atomicsim.utils.datetime_utils import elapsed_since, utc_now
from atomicsim.utils.logging import get_adapter, get_logger

logger = get_logger(__name__)

_COORDINATOR_CLASSES = {
    Protocol.TWO_PHASE: TwoPhaseCoordinator,
    Protocol.THREE_PHASE: ThreePhaseCoordinator,
}


def create_coordinator(protocol: Union[Protocol, str], participant_count: int) -> BaseCoordinator:
    """
    Create a coordinator for ``protocol``.

    Args:
        protocol: A Protocol or its name ("2pc" / "3pc")
        participant_count: Number of participants the coordinator owns

    Returns:
        A new coordinator with all participants idle
    """
    return _COORDINATOR_CLASSES[Protocol.parse(protocol)](participant_count)


class SimulationSession:
    """
    The commit-protocol state belonging to one client.
    """

    def __init__(self, session_id: str, settings: Optional[SimulatorSettings] = None):
        self.session_id = session_id
        self.settings = settings or SimulatorSettings()
        self._coordinators: Dict[Protocol, BaseCoordinator] = {
            protocol: create_coordinator(protocol, self.settings.participant_count)
            for protocol in Protocol
        }
        self._transaction_counter = 0
        self._lock = threading.Lock()
        self.created_at: datetime = utc_now()
        self.last_accessed: datetime = self.created_at
        self.log = get_adapter(__name__, session_id=session_id)

    @property
    def two_phase(self) -> TwoPhaseCoordinator:
        return self._coordinators[Protocol.TWO_PHASE]

    @property
    def three_phase(self) -> ThreePhaseCoordinator:
        return self._coordinators[Protocol.THREE_PHASE]

    def coordinator(self, protocol: Union[Protocol, str]) -> BaseCoordinator:
        return self._coordinators[Protocol.parse(protocol)]

    def touch(self) -> None:
        self.last_accessed = utc_now()

    def next_transaction_id(self) -> str:
        """Generate the next identifier, e.g. "TX-1", "TX-2", ..."""
        with self._lock:
            self._transaction_counter += 1
            return f"{self.settings.transaction_id_prefix}-{self._transaction_counter}"

    def run_transaction(
        self,
        protocol: Union[Protocol, str],
        data: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> List[ProtocolStep]:
        """
        Run one transaction on this session's coordinator for ``protocol``.

        Args:
            protocol: Which coordinator to use
            data: Payload; empty or missing falls back to the configured default
            transaction_id: Identifier; generated when not given

        Returns:
            The ordered protocol trace

        Raises:
            CoordinatorFailedError: If that coordinator is marked as failed
        """
        coordinator = self.coordinator(protocol)
        self.touch()
        transaction_id = transaction_id or self.next_transaction_id()
        self.log.bind(protocol=coordinator.protocol.value, transaction_id=transaction_id).info(
            f"Running {coordinator.protocol.value} transaction {transaction_id}"
        )
        return coordinator.start_transaction(transaction_id, data or self.settings.default_payload)

    def is_expired(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        return elapsed_since(self.last_accessed, now) > max_age

    def __repr__(self) -> str:
        return f"SimulationSession(session_id={self.session_id!r})"


def create_session(session_id: str, settings: Optional[SimulatorSettings] = None) -> SimulationSession:
    """Factory for a standalone session."""
    return SimulationSession(session_id, settings)


class SessionManager:
    """
    Thread-safe registry of simulation sessions keyed by session ID.
    """

    def __init__(self, settings: Optional[SimulatorSettings] = None):
        self.settings = settings or SimulatorSettings()
        self._sessions: Dict[str, SimulationSession] = {}
        self._lock = threading.RLock()

    def get_or_create(self, session_id: str) -> SimulationSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.touch()
                return session

            session = create_session(session_id, self.settings)
            self._sessions[session_id] = session
            session.log.debug("Created simulation session")
            return session

    def get(self, session_id: str) -> Optional[SimulationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def require(self, session_id: str) -> SimulationSession:
        """Like :meth:`get`, but raises SessionError for unknown sessions."""
        session = self.get(session_id)
        if session is None:
            raise SessionError(f"Unknown session: {session_id}")
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def cleanup_expired(self, max_age: Optional[timedelta] = None) -> int:
        """
        Drop sessions idle for longer than ``max_age``.

        Args:
            max_age: Idle limit; defaults to ``settings.session_max_age_seconds``

        Returns:
            Number of sessions removed
        """
        if max_age is None:
            max_age = timedelta(seconds=self.settings.session_max_age_seconds)

        now = utc_now()
        with self._lock:
            expired = [
                session_id for session_id, session in self._sessions.items()
                if session.is_expired(max_age, now)
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info(f"Removed {len(expired)} expired simulation sessions")
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)
