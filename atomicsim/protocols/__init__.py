"""
Atomic-commit protocol engine.

This package simulates Two-Phase Commit and Three-Phase Commit in memory.
Each coordinator owns its participants, drives a transaction through the
protocol's phases synchronously and returns an ordered trace of every
simulated message exchange.
"""

from .coordinator import BaseCoordinator
from .interfaces import CoordinatorInterface
from .participant import Participant, TwoPhaseParticipant, ThreePhaseParticipant
from .snapshot import CoordinatorSnapshot, ParticipantSnapshot, TransactionSnapshot
from .states import CoordinatorState, ParticipantState, Protocol, TransactionState
from .three_phase import ThreePhaseCoordinator
from .transaction import Transaction
from .two_phase import TwoPhaseCoordinator
from .types import (
    COORDINATOR_NODE_ID,
    MessageType,
    NodeKind,
    NodeRef,
    ProtocolStep,
    StepAction,
    Vote,
)

__all__ = [
    'BaseCoordinator',
    'CoordinatorInterface',
    'TwoPhaseCoordinator',
    'ThreePhaseCoordinator',
    'Participant',
    'TwoPhaseParticipant',
    'ThreePhaseParticipant',
    'Transaction',
    # Snapshots
    'CoordinatorSnapshot',
    'ParticipantSnapshot',
    'TransactionSnapshot',
    # States
    'CoordinatorState',
    'ParticipantState',
    'Protocol',
    'TransactionState',
    # Trace types
    'COORDINATOR_NODE_ID',
    'MessageType',
    'NodeKind',
    'NodeRef',
    'ProtocolStep',
    'StepAction',
    'Vote',
]
