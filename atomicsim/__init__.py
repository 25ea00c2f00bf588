"""
atomicsim - Atomic Commit Protocol Simulator
============================================

An in-memory simulator of Two-Phase Commit and Three-Phase Commit that
produces ordered, human-readable protocol traces for visualization.
"""

__version__ = "0.1.0"

from .config import SimulatorSettings
from .exceptions import (
    AtomicSimError,
    ConfigurationError,
    CoordinatorError,
    CoordinatorFailedError,
    InvalidParticipantIndexError,
    SessionError,
    ValidationError,
)
from .protocols import (
    COORDINATOR_NODE_ID,
    CoordinatorInterface,
    CoordinatorSnapshot,
    CoordinatorState,
    MessageType,
    NodeRef,
    ParticipantState,
    Protocol,
    ProtocolStep,
    StepAction,
    ThreePhaseCoordinator,
    TransactionState,
    TwoPhaseCoordinator,
    Vote,
)
from .session import SessionManager, SimulationSession, create_coordinator, create_session

__all__ = [
    "SimulatorSettings",
    # Coordinators
    "CoordinatorInterface",
    "TwoPhaseCoordinator",
    "ThreePhaseCoordinator",
    "create_coordinator",
    # Sessions
    "SimulationSession",
    "SessionManager",
    "create_session",
    # Trace and state types
    "COORDINATOR_NODE_ID",
    "CoordinatorSnapshot",
    "CoordinatorState",
    "MessageType",
    "NodeRef",
    "ParticipantState",
    "Protocol",
    "ProtocolStep",
    "StepAction",
    "TransactionState",
    "Vote",
    # Errors
    "AtomicSimError",
    "ConfigurationError",
    "CoordinatorError",
    "CoordinatorFailedError",
    "InvalidParticipantIndexError",
    "SessionError",
    "ValidationError",
]
