"""Tests for the commit coordinator.

Covers the commit scenarios: mandatory and optional reconnects, cancelled
and dismissed prompts, reconnect failures, MACE normalization and
single-flight commits.
"""

import asyncio

import pytest

from vpnsettings.settings.confirmation import PresetConfirmation
from vpnsettings.settings.coordinator import CommitCoordinator, CommitState
from vpnsettings.settings.exceptions import (
    CommitInProgressError,
    PreconditionViolation,
    StorageError,
)
from vpnsettings.settings.flags import FeatureFlags
from vpnsettings.settings.models import (
    Choice,
    CommitOutcome,
    PendingAction,
    VPNType,
)
from vpnsettings.settings.store import PreferenceStore
from vpnsettings.vpn.exceptions import ConnectionError
from vpnsettings.vpn.models import ConnectionStatus

from conftest import FailingStorage, FakeConnection


class NeverAnswers:
    """Confirmation surface the user never responds to."""

    def __init__(self):
        self.prompts = []

    async def confirm(self, prompt):
        self.prompts.append(prompt)
        await asyncio.Event().wait()


class TestPendingAction:
    def test_recomputed_on_every_mutation(self, coordinator):
        draft = coordinator.begin_edit()
        assert coordinator.pending_action is PendingAction.NONE
        draft.set_vpn_type(VPNType.OPENVPN)
        assert coordinator.pending_action is PendingAction.MANDATORY_RECONNECT
        draft.set_vpn_type(VPNType.IPSEC)
        assert coordinator.pending_action is PendingAction.NONE

    def test_disconnected_draft_needs_nothing(self, coordinator, connection):
        connection.current = ConnectionStatus.DISCONNECTED
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)
        assert coordinator.pending_action is PendingAction.NONE


class TestDirectApply:
    async def test_no_changes(self, coordinator, connection):
        coordinator.begin_edit()
        confirmation = PresetConfirmation()
        result = await coordinator.commit_changes(confirmation)
        assert result.outcome is CommitOutcome.APPLIED
        assert confirmation.prompts == []
        assert connection.reconnects == 0

    async def test_disconnected_applies_without_prompt(self, coordinator, connection, store):
        connection.current = ConnectionStatus.DISCONNECTED
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)
        confirmation = PresetConfirmation()

        result = await coordinator.commit_changes(confirmation)

        assert result.outcome is CommitOutcome.APPLIED
        assert result.action is PendingAction.MANDATORY_RECONNECT
        assert confirmation.prompts == []
        assert connection.reconnects == 0
        assert store.current_snapshot().vpn_type is VPNType.OPENVPN

    async def test_second_commit_is_a_no_op(self, coordinator, connection, store):
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)
        first = await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))
        assert first.outcome is CommitOutcome.APPLIED_AND_RECONNECTED
        assert coordinator.pending_action is PendingAction.NONE

        confirmation = PresetConfirmation(Choice.RECONNECT)
        second = await coordinator.commit_changes(confirmation)

        assert second.outcome is CommitOutcome.APPLIED
        assert second.action is PendingAction.NONE
        assert confirmation.prompts == []
        assert connection.reconnects == 1


class TestMandatoryReconnect:
    async def test_user_confirms(self, coordinator, connection, store):
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)
        confirmation = PresetConfirmation(Choice.RECONNECT)

        result = await coordinator.commit_changes(confirmation)

        assert [p.action for p in confirmation.prompts] == [PendingAction.MANDATORY_RECONNECT]
        assert confirmation.prompts[0].choices == (Choice.RECONNECT, Choice.CANCEL)
        assert result.outcome is CommitOutcome.APPLIED_AND_RECONNECTED
        assert store.current_snapshot().vpn_type is VPNType.OPENVPN
        assert connection.reconnects == 1
        # the reconnect ran against the just-committed configuration
        assert connection.reconnected_with[0].vpn_type is VPNType.OPENVPN

    async def test_user_cancels(self, coordinator, connection, store, storage):
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        result = await coordinator.commit_changes(PresetConfirmation(Choice.CANCEL))

        assert result.outcome is CommitOutcome.CANCELLED
        assert store.current_snapshot().vpn_type is VPNType.IPSEC
        assert storage.load().vpn_type is VPNType.IPSEC
        assert store.draft is None
        assert connection.reconnects == 0

    async def test_dismissed_prompt_cancels(self, coordinator, store):
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        result = await coordinator.commit_changes(PresetConfirmation(None))

        assert result.outcome is CommitOutcome.CANCELLED
        assert store.draft is None

    async def test_unanswered_prompt_times_out_as_cancelled(self, store, connection):
        coordinator = CommitCoordinator(store, connection, confirm_timeout=0.01)
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        result = await coordinator.commit_changes(NeverAnswers())

        assert result.outcome is CommitOutcome.CANCELLED
        assert store.current_snapshot().vpn_type is VPNType.IPSEC

    async def test_reconnect_failure_keeps_commit(self, coordinator, connection, store):
        error = ConnectionError("tunnel refused")
        connection.error = error
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        result = await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))

        assert result.outcome is CommitOutcome.APPLIED_BUT_RECONNECT_FAILED
        assert result.error is error
        assert store.current_snapshot() == draft.configuration
        assert store.current_snapshot().vpn_type is VPNType.OPENVPN
        assert connection.reconnects == 1


class TestOptionalReconnect:
    @pytest.fixture
    def coordinator(self, openvpn_store):
        connection = FakeConnection(preferences=openvpn_store.current_snapshot)
        return CommitCoordinator(openvpn_store, connection)

    async def test_user_defers(self, coordinator, openvpn_store, storage):
        draft = coordinator.begin_edit()
        draft.set_persistent_connection(True)
        assert coordinator.pending_action is PendingAction.OPTIONAL_RECONNECT
        confirmation = PresetConfirmation(Choice.LATER)

        result = await coordinator.commit_changes(confirmation)

        assert confirmation.prompts[0].choices == (Choice.RECONNECT, Choice.LATER)
        assert result.outcome is CommitOutcome.APPLIED
        assert openvpn_store.current_snapshot().is_persistent_connection is True
        assert storage.load().is_persistent_connection is True
        assert coordinator._connection.reconnects == 0

    async def test_persisted_before_prompt(self, coordinator, openvpn_store):
        seen = []

        class Recording:
            async def confirm(self, prompt):
                seen.append(openvpn_store.current_snapshot().is_persistent_connection)
                return Choice.LATER

        draft = coordinator.begin_edit()
        draft.set_persistent_connection(True)
        await coordinator.commit_changes(Recording())
        assert seen == [True]

    async def test_user_reconnects(self, coordinator):
        draft = coordinator.begin_edit()
        draft.set_mace(True)

        result = await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))

        assert result.outcome is CommitOutcome.APPLIED_AND_RECONNECTED
        assert coordinator._connection.reconnects == 1
        assert coordinator._connection.reconnected_with[0].mace_enabled is True

    async def test_dismissed_prompt_keeps_commit(self, coordinator, openvpn_store):
        draft = coordinator.begin_edit()
        draft.set_persistent_connection(True)

        result = await coordinator.commit_changes(PresetConfirmation(None))

        assert result.outcome is CommitOutcome.APPLIED
        assert openvpn_store.current_snapshot().is_persistent_connection is True


class TestMaceNormalization:
    async def test_mace_cleared_when_flag_disabled(self, openvpn_store):
        connection = FakeConnection()
        coordinator = CommitCoordinator(openvpn_store, connection, flags=FeatureFlags(mace=False))
        draft = coordinator.begin_edit()
        draft.set_mace(True)

        result = await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))

        assert result.outcome is CommitOutcome.APPLIED
        assert openvpn_store.current_snapshot().mace_enabled is False
        assert draft.configuration.mace_enabled is False
        assert connection.reconnects == 0


class TestCommitSession:
    async def test_requires_open_session(self, coordinator):
        with pytest.raises(PreconditionViolation):
            await coordinator.commit_changes()
        assert coordinator.state is CommitState.IDLE

    async def test_storage_error_propagates_and_keeps_draft(self, preferences_path):
        store = PreferenceStore(FailingStorage(preferences_path))
        connection = FakeConnection(status=ConnectionStatus.DISCONNECTED)
        coordinator = CommitCoordinator(store, connection)
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        with pytest.raises(StorageError):
            await coordinator.commit_changes()

        assert store.current_snapshot().vpn_type is VPNType.IPSEC
        assert store.draft is draft
        assert coordinator.state is CommitState.IDLE

    async def test_storage_error_before_reconnect(self, preferences_path):
        store = PreferenceStore(FailingStorage(preferences_path))
        connection = FakeConnection()
        coordinator = CommitCoordinator(store, connection)
        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)

        with pytest.raises(StorageError):
            await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))
        assert connection.reconnects == 0

    async def test_second_commit_rejected_while_in_flight(self, coordinator, connection):
        gate = asyncio.Event()

        class Waiting:
            async def confirm(self, prompt):
                await gate.wait()
                return Choice.RECONNECT

        draft = coordinator.begin_edit()
        draft.set_vpn_type(VPNType.OPENVPN)
        first = asyncio.create_task(coordinator.commit_changes(Waiting()))
        await asyncio.sleep(0)

        assert coordinator.in_flight
        assert coordinator.state is CommitState.AWAITING_CONFIRMATION
        with pytest.raises(CommitInProgressError):
            await coordinator.commit_changes(PresetConfirmation(Choice.RECONNECT))

        gate.set()
        result = await first
        assert result.outcome is CommitOutcome.APPLIED_AND_RECONNECTED
        assert connection.reconnects == 1
        assert coordinator.state is CommitState.IDLE
        assert coordinator.last_result is result
