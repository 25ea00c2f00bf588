"""
Tests for simulation sessions and the session manager.
"""
from datetime import timedelta

import pytest

from atomicsim import (
    CoordinatorFailedError,
    Protocol,
    SessionError,
    SessionManager,
    SimulatorSettings,
    StepAction,
    ThreePhaseCoordinator,
    TwoPhaseCoordinator,
    ValidationError,
    create_coordinator,
    create_session,
)
from atomicsim.utils.datetime_utils import utc_now


class TestCreateCoordinator:
    """Coordinator factory."""

    @pytest.mark.parametrize("protocol", ["2pc", "2PC", Protocol.TWO_PHASE])
    def test_two_phase(self, protocol):
        coordinator = create_coordinator(protocol, 3)
        assert isinstance(coordinator, TwoPhaseCoordinator)
        assert coordinator.participant_count == 3

    @pytest.mark.parametrize("protocol", ["3pc", " 3PC ", Protocol.THREE_PHASE])
    def test_three_phase(self, protocol):
        assert isinstance(create_coordinator(protocol, 2), ThreePhaseCoordinator)

    @pytest.mark.parametrize("protocol", ["4pc", "", None, 2])
    def test_unknown_protocol(self, protocol):
        with pytest.raises(ValidationError):
            create_coordinator(protocol, 2)


class TestSimulationSession:
    """Single-session behaviour."""

    def setup_method(self):
        self.session = create_session("client-1")

    def test_owns_one_coordinator_per_protocol(self):
        assert isinstance(self.session.two_phase, TwoPhaseCoordinator)
        assert isinstance(self.session.three_phase, ThreePhaseCoordinator)
        assert self.session.coordinator("2pc") is self.session.two_phase
        assert self.session.coordinator(Protocol.THREE_PHASE) is self.session.three_phase
        assert self.session.two_phase.participant_count == 4

    def test_transaction_ids_are_sequential(self):
        assert self.session.next_transaction_id() == "TX-1"
        assert self.session.next_transaction_id() == "TX-2"

    def test_run_transaction_uses_defaults(self):
        steps = self.session.run_transaction("2pc")
        assert steps[-1].action is StepAction.TRANSACTION_COMMITTED
        transaction = self.session.two_phase.transaction
        assert transaction.id == "TX-1"
        assert transaction.data == "Sample Transaction"

    def test_run_transaction_with_explicit_values(self):
        self.session.run_transaction("3pc", data="order #17", transaction_id="ORDER-17")
        transaction = self.session.three_phase.transaction
        assert transaction.id == "ORDER-17"
        assert transaction.data == "order #17"
        assert self.session.two_phase.transaction is None

    def test_run_transaction_on_failed_coordinator(self):
        self.session.three_phase.set_coordinator_failed(True)
        with pytest.raises(CoordinatorFailedError):
            self.session.run_transaction("3pc")
        self.session.run_transaction("2pc")

    def test_custom_settings(self):
        settings = SimulatorSettings(participant_count=2, transaction_id_prefix="T", default_payload="x")
        session = create_session("client-2", settings)
        assert session.two_phase.participant_count == 2
        assert session.three_phase.participant_count == 2
        session.run_transaction("2pc")
        assert session.two_phase.transaction.id == "T-1"
        assert session.two_phase.transaction.data == "x"

    def test_run_transaction_touches_session(self):
        self.session.last_accessed = utc_now() - timedelta(hours=1)
        self.session.run_transaction("2pc")
        assert not self.session.is_expired(timedelta(minutes=1))


class TestSessionManager:
    """Session registry behaviour."""

    def setup_method(self):
        self.manager = SessionManager()

    def test_get_or_create_returns_same_session(self):
        first = self.manager.get_or_create("a")
        assert self.manager.get_or_create("a") is first
        assert self.manager.count() == 1

    def test_sessions_are_isolated(self):
        a = self.manager.get_or_create("a")
        b = self.manager.get_or_create("b")
        a.two_phase.set_participant_can_commit(0, False)
        a.run_transaction("2pc")
        b.run_transaction("2pc")

        assert a.two_phase.transaction.state.value == "aborted"
        assert b.two_phase.transaction.state.value == "committed"
        assert b.next_transaction_id() == "TX-2"

    def test_get_and_require(self):
        assert self.manager.get("missing") is None
        with pytest.raises(SessionError):
            self.manager.require("missing")
        session = self.manager.get_or_create("present")
        assert self.manager.require("present") is session

    def test_delete(self):
        self.manager.get_or_create("a")
        self.manager.delete("a")
        self.manager.delete("a")
        assert self.manager.count() == 0

    def test_cleanup_expired(self):
        stale = self.manager.get_or_create("stale")
        self.manager.get_or_create("fresh")
        stale.last_accessed = utc_now() - timedelta(hours=2)

        assert self.manager.cleanup_expired(timedelta(hours=1)) == 1
        assert self.manager.get("stale") is None
        assert self.manager.get("fresh") is not None

    def test_cleanup_uses_configured_max_age(self):
        manager = SessionManager(SimulatorSettings(session_max_age_seconds=60))
        session = manager.get_or_create("a")
        session.last_accessed = utc_now() - timedelta(seconds=120)
        assert manager.cleanup_expired() == 1
        assert manager.count() == 0

    def test_manager_settings_apply_to_sessions(self):
        manager = SessionManager(SimulatorSettings(participant_count=6))
        assert manager.get_or_create("a").three_phase.participant_count == 6
