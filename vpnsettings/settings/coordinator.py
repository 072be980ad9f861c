"""Commit sequence: confirmation, persistence and reconnection."""

import asyncio
from enum import Enum
from typing import Optional, Protocol

from .classifier import classify, normalize, required_action
from .confirmation import ConfirmationSurface, PresetConfirmation
from .exceptions import CommitInProgressError, PreconditionViolation
from .flags import FeatureFlags
from .models import Choice, CommitOutcome, CommitResult, Configuration, PendingAction, Prompt
from .store import Draft, PreferenceStore
from ..logging_utility import logger
from ..vpn.exceptions import VPNError
from ..vpn.models import ConnectionStatus


class ConnectionControlPort(Protocol):
    def status(self) -> ConnectionStatus:
        ...

    async def reconnect(self) -> None:
        ...


class CommitState(Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    DIRECT_APPLY = "direct_apply"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PERSISTING = "persisting"
    RECONNECTING = "reconnecting"
    TERMINAL = "terminal"


class CommitCoordinator:
    def __init__(
            self,
            store: PreferenceStore,
            connection: ConnectionControlPort,
            confirmation: Optional[ConfirmationSurface] = None,
            flags: Optional[FeatureFlags] = None,
            confirm_timeout: Optional[float] = None,
    ):
        self._store = store
        self._connection = connection
        self._confirmation = confirmation or PresetConfirmation()
        self._flags = flags or FeatureFlags()
        self._confirm_timeout = confirm_timeout
        self._lock = asyncio.Lock()
        self.state = CommitState.IDLE
        self.pending_action = PendingAction.NONE
        self.last_result: Optional[CommitResult] = None

    def begin_edit(self) -> Draft:
        draft = self._store.begin_edit(on_change=self._report_updated_preferences)
        self.pending_action = PendingAction.NONE
        return draft

    def _report_updated_preferences(self, draft: Draft) -> None:
        self.pending_action = classify(
            self._store.current_snapshot(),
            draft.configuration,
            self._connection.status(),
            self._flags,
        )

    def refresh(self) -> PendingAction:
        """Recompute the pending action against the current connection status."""
        draft = self._store.draft
        if draft is None:
            self.pending_action = PendingAction.NONE
        else:
            self._report_updated_preferences(draft)
        return self.pending_action

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    async def commit_changes(self, confirmation: Optional[ConfirmationSurface] = None) -> CommitResult:
        """
        Apply the open draft, asking for confirmation where needed.

        Args:
            confirmation: Overrides the coordinator's confirmation surface for this call

        Returns:
            CommitResult: Terminal outcome of this commit

        Raises:
            CommitInProgressError: Another commit is running
            PreconditionViolation: No edit session is open
            StorageError: The configuration could not be saved
        """
        if self._lock.locked():
            raise CommitInProgressError("A commit is already in progress")
        async with self._lock:
            try:
                result = await self._commit(confirmation or self._confirmation)
            finally:
                self.state = CommitState.IDLE
            self.last_result = result
            logger.info(f"Commit finished: {result.outcome.value} (action={result.action.value})")
            return result

    async def _commit(self, confirmation: ConfirmationSurface) -> CommitResult:
        draft = self._store.draft
        if draft is None:
            raise PreconditionViolation("No edit session to commit")

        self.state = CommitState.NORMALIZING
        normalized = normalize(draft.configuration, self._flags)
        if normalized != draft.configuration:
            logger.info("MACE is not available, clearing it before commit")
            draft.replace(normalized)

        action = required_action(self._store.current_snapshot(), normalized)
        if action is PendingAction.NONE:
            self.state = CommitState.DIRECT_APPLY
            self._persist(normalized)
            return self._terminal(CommitOutcome.APPLIED, action)

        status = self._connection.status()
        if status is ConnectionStatus.DISCONNECTED:
            # the next connection picks up the new settings
            self.state = CommitState.DIRECT_APPLY
            self._persist(normalized)
            return self._terminal(CommitOutcome.APPLIED, action, status)

        if action is PendingAction.MANDATORY_RECONNECT:
            choice = await self._confirm(confirmation, Prompt.must_reconnect())
            if choice is not Choice.RECONNECT:
                self._store.discard()
                self.pending_action = PendingAction.NONE
                return self._terminal(CommitOutcome.CANCELLED, action, status)
            self._persist(normalized)
            return await self._reconnect(action, status)

        self._persist(normalized)
        choice = await self._confirm(confirmation, Prompt.should_reconnect())
        if choice is Choice.RECONNECT:
            return await self._reconnect(action, status)
        return self._terminal(CommitOutcome.APPLIED, action, status)

    async def _confirm(self, confirmation: ConfirmationSurface, prompt: Prompt) -> Optional[Choice]:
        self.state = CommitState.AWAITING_CONFIRMATION
        try:
            if self._confirm_timeout is None:
                choice = await confirmation.confirm(prompt)
            else:
                choice = await asyncio.wait_for(confirmation.confirm(prompt), self._confirm_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Confirmation for {prompt.action.value} timed out")
            return None
        logger.info(f"Confirmation for {prompt.action.value}: {choice.value if choice else 'dismissed'}")
        return choice

    def _persist(self, configuration: Configuration) -> None:
        self.state = CommitState.PERSISTING
        self._store.commit(configuration)
        self.pending_action = PendingAction.NONE

    async def _reconnect(self, action: PendingAction, status: ConnectionStatus) -> CommitResult:
        self.state = CommitState.RECONNECTING
        try:
            await self._connection.reconnect()
        except VPNError as e:
            logger.error(f"Reconnect after commit failed: {str(e)}")
            return self._terminal(CommitOutcome.APPLIED_BUT_RECONNECT_FAILED, action, status, e)
        return self._terminal(CommitOutcome.APPLIED_AND_RECONNECTED, action, status)

    def _terminal(
            self,
            outcome: CommitOutcome,
            action: PendingAction,
            status: Optional[ConnectionStatus] = None,
            error: Optional[Exception] = None,
    ) -> CommitResult:
        self.state = CommitState.TERMINAL
        return CommitResult(outcome=outcome, action=action, status=status, error=error)
