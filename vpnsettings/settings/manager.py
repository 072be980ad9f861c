"""Settings surface: one place that wires the engine to its collaborators."""

from typing import Any, Optional

from .confirmation import PresetConfirmation
from .coordinator import CommitCoordinator, ConnectionControlPort
from .exceptions import FeatureDisabledError, PreconditionViolation
from .layout import Section, SettingKind, build_sections, setting_options
from .models import Choice, CommitResult, Configuration, PendingAction, ThemeCode, VPNType
from .storage import IniFileStorage
from .store import Draft, PreferenceStore
from .theme import ThemeState
from ..config import AppConfig
from ..content_blocker import ContentBlocker
from ..diagnostics import DebugLogReport, resolve_domain, submit_debug_log
from ..logging_utility import logger
from ..vpn.connection import ConnectionControl

ENCRYPTION_FIELDS = ("cipher", "digest", "handshake")


class SettingsManager:
    def __init__(
            self,
            config: AppConfig,
            storage: Optional[IniFileStorage] = None,
            connection: Optional[ConnectionControlPort] = None,
            content_blocker: Optional[ContentBlocker] = None,
    ):
        self.config = config
        self.flags = config.flags
        self.storage = storage or IniFileStorage(config.preferences_path)
        self.store = PreferenceStore(self.storage)
        self.theme = ThemeState(self.storage)
        self.connection = connection or ConnectionControl(
            config.openvpn, config.ipsec_connection, self.store.current_snapshot
        )
        self.content_blocker = content_blocker or ContentBlocker(config.content_blocker_unit)
        self.coordinator = CommitCoordinator(
            self.store,
            self.connection,
            flags=self.flags,
            confirm_timeout=config.confirm_timeout,
        )

    @property
    def active(self) -> Configuration:
        return self.store.current_snapshot()

    @property
    def pending_action(self) -> PendingAction:
        return self.coordinator.refresh()

    def open_session(self) -> Draft:
        return self.coordinator.begin_edit()

    def _require_draft(self) -> Draft:
        draft = self.store.draft
        if draft is None:
            raise PreconditionViolation("No edit session is open")
        return draft

    def _check_enabled(self, draft: Draft, changes: dict[str, Any]) -> None:
        if "vpn_type" in changes and not self.flags.protocol_selection:
            raise FeatureDisabledError("Protocol selection is disabled")
        if "preferred_port" in changes:
            if not self.flags.remote_port_setting:
                raise FeatureDisabledError("Remote port setting is disabled")
            port = changes["preferred_port"] or 0
            if port not in setting_options(SettingKind.VPN_PORT, self.flags, self.config.server_ports):
                raise ValueError(f"Port {port} is not offered by the servers")
        if any(name in changes for name in ENCRYPTION_FIELDS) and not self.flags.encryption_settings:
            raise FeatureDisabledError("Encryption settings are disabled")
        if "mace_enabled" in changes and changes["mace_enabled"]:
            vpn_type = VPNType(changes.get("vpn_type", draft.configuration.vpn_type))
            if not self.flags.enables_mace(vpn_type) and not self.flags.development_settings:
                raise FeatureDisabledError("MACE is not available")

    def update_draft(self, **changes: Any) -> Draft:
        """Apply user edits to the open draft; the pending action follows."""
        draft = self._require_draft()
        self._check_enabled(draft, changes)
        draft.apply(**changes)
        logger.info(f"Draft updated: {changes} (pending action: {self.coordinator.pending_action.value})")
        return draft

    def reset_to_defaults(self) -> Draft:
        if not self.flags.reset_settings:
            raise FeatureDisabledError("Reset is disabled")
        draft = self._require_draft()
        draft.reset()
        self.theme.transition_to(ThemeCode.LIGHT)
        logger.info("Draft reset to defaults")
        return draft

    def set_theme(self, code: ThemeCode) -> bool:
        return self.theme.transition_to(code)

    def sections(self) -> tuple[Section, ...]:
        draft = self.store.draft
        configuration = draft.configuration if draft is not None else self.active
        return build_sections(
            configuration,
            self.flags,
            content_blocker_enabled=self.content_blocker.is_enabled(),
            theme=self.theme.current_theme_code,
        )

    def options(self, kind: SettingKind) -> list[Any]:
        options = setting_options(kind, self.flags, self.config.server_ports)
        if options is None:
            raise FeatureDisabledError(f"{kind.value} has no selectable options")
        return options

    async def commit(self, choice: Optional[Choice] = None) -> CommitResult:
        return await self.coordinator.commit_changes(PresetConfirmation(choice))

    def discard(self) -> None:
        self.store.discard()
        self.coordinator.refresh()

    def submit_debug_log(self) -> DebugLogReport:
        return submit_debug_log(
            self.config.openvpn.log_path,
            self.config.diagnostics.debug_log_url,
            self.config.diagnostics.timeout,
        )

    def resolve_ads_domain(self) -> list[str]:
        if not self.flags.development_settings:
            raise FeatureDisabledError("Development settings are disabled")
        return resolve_domain(self.config.diagnostics.ads_domain, self.config.diagnostics.timeout)

    def reload_content_blocker(self) -> bool:
        return self.content_blocker.reload_rules()
