"""Settings sections built from the draft and the feature flags.

The layout is rebuilt as a whole from the current state instead of being
patched in place, so sections and rows can never disagree.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from .flags import FeatureFlags
from .models import Cipher, Configuration, Digest, Handshake, ThemeCode, VPNType


class SectionKind(Enum):
    CONNECTION = "connection"
    ENCRYPTION = "encryption"
    APPLICATION_SETTINGS = "application_settings"
    CONTENT_BLOCKER = "content_blocker"
    APPLICATION_INFORMATION = "application_information"
    RESET = "reset"
    DEVELOPMENT = "development"


class SettingKind(Enum):
    VPN_PROTOCOL_SELECTION = "vpn_protocol_selection"
    VPN_SOCKET = "vpn_socket"
    VPN_PORT = "vpn_port"
    ENCRYPTION_CIPHER = "encryption_cipher"
    ENCRYPTION_DIGEST = "encryption_digest"
    ENCRYPTION_HANDSHAKE = "encryption_handshake"
    AUTOMATIC_RECONNECTION = "automatic_reconnection"
    CONTENT_BLOCKER_STATE = "content_blocker_state"
    CONTENT_BLOCKER_REFRESH_RULES = "content_blocker_refresh_rules"
    MACE = "mace"
    DARK_THEME = "dark_theme"
    SEND_DEBUG_LOG = "send_debug_log"
    RESET_SETTINGS = "reset_settings"
    RESOLVE_ADS_DOMAIN = "resolve_ads_domain"


@dataclass(frozen=True)
class SettingRow:
    kind: SettingKind
    value: Any = None
    editable: bool = True

    def to_dict(self) -> dict[str, Any]:
        value = self.value.value if isinstance(self.value, Enum) else self.value
        return {"kind": self.kind.value, "value": value, "editable": self.editable}


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    rows: tuple[SettingRow, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "rows": [row.to_dict() for row in self.rows]}


def build_sections(
        configuration: Configuration,
        flags: FeatureFlags,
        content_blocker_enabled: bool = False,
        theme: ThemeCode = ThemeCode.LIGHT,
) -> tuple[Section, ...]:
    is_tunnel = configuration.vpn_type is VPNType.OPENVPN
    enables_mace = flags.enables_mace(configuration.vpn_type)
    sections = []

    if flags.protocol_selection:
        rows = [SettingRow(SettingKind.VPN_PROTOCOL_SELECTION, configuration.vpn_type)]
        if is_tunnel:
            rows.append(SettingRow(SettingKind.VPN_SOCKET, configuration.socket_protocol, editable=False))
            rows.append(SettingRow(SettingKind.VPN_PORT, configuration.preferred_port,
                                   editable=flags.remote_port_setting))
        sections.append(Section(SectionKind.CONNECTION, tuple(rows)))

        if is_tunnel:
            sections.append(Section(SectionKind.ENCRYPTION, (
                SettingRow(SettingKind.ENCRYPTION_CIPHER, configuration.cipher, flags.encryption_settings),
                SettingRow(SettingKind.ENCRYPTION_DIGEST, configuration.digest, flags.encryption_settings),
                SettingRow(SettingKind.ENCRYPTION_HANDSHAKE, configuration.handshake, flags.encryption_settings),
            )))

    app_rows = [
        SettingRow(SettingKind.AUTOMATIC_RECONNECTION, configuration.is_persistent_connection),
        SettingRow(SettingKind.DARK_THEME, theme is ThemeCode.DARK),
    ]
    if enables_mace:
        app_rows.append(SettingRow(SettingKind.MACE, configuration.mace_enabled))
    sections.append(Section(SectionKind.APPLICATION_SETTINGS, tuple(app_rows)))

    # MACE replaces the content blocker
    if not enables_mace:
        sections.append(Section(SectionKind.CONTENT_BLOCKER, (
            SettingRow(SettingKind.CONTENT_BLOCKER_STATE, content_blocker_enabled, editable=False),
            SettingRow(SettingKind.CONTENT_BLOCKER_REFRESH_RULES),
        )))

    if is_tunnel:
        sections.append(Section(SectionKind.APPLICATION_INFORMATION, (
            SettingRow(SettingKind.SEND_DEBUG_LOG),
        )))

    if flags.reset_settings:
        sections.append(Section(SectionKind.RESET, (SettingRow(SettingKind.RESET_SETTINGS),)))

    if flags.development_settings:
        sections.append(Section(SectionKind.DEVELOPMENT, (
            SettingRow(SettingKind.MACE, configuration.mace_enabled),
            SettingRow(SettingKind.RESOLVE_ADS_DOMAIN),
        )))

    return tuple(sections)


def setting_options(kind: SettingKind, flags: FeatureFlags, ports: Sequence[int] = ()) -> Optional[list[Any]]:
    """
    Selectable values for a setting.

    Returns:
        list: Options to choose from, or None if the setting has no
        option list or its feature flag is off
    """
    if kind is SettingKind.VPN_PROTOCOL_SELECTION:
        return [VPNType.IPSEC.value, VPNType.OPENVPN.value] if flags.protocol_selection else None
    if kind is SettingKind.VPN_PORT:
        # 0 stands for the automatic port
        return [0] + list(ports) if flags.remote_port_setting else None
    if not flags.encryption_settings:
        return None
    if kind is SettingKind.ENCRYPTION_CIPHER:
        return [c.value for c in Cipher]
    if kind is SettingKind.ENCRYPTION_DIGEST:
        return [d.value for d in Digest]
    if kind is SettingKind.ENCRYPTION_HANDSHAKE:
        return [h.value for h in Handshake]
    return None
