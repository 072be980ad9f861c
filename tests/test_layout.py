"""Tests for the settings sections and option lists."""

from vpnsettings.settings.flags import FeatureFlags
from vpnsettings.settings.layout import SectionKind, SettingKind, build_sections, setting_options
from vpnsettings.settings.models import Configuration, ThemeCode, VPNType


def kinds(sections):
    return [section.kind for section in sections]


def rows(sections, kind):
    for section in sections:
        if section.kind is kind:
            return [row.kind for row in section.rows]
    return None


class TestBuildSections:
    def test_ipsec(self):
        sections = build_sections(Configuration(vpn_type=VPNType.IPSEC), FeatureFlags())
        assert kinds(sections) == [
            SectionKind.CONNECTION,
            SectionKind.APPLICATION_SETTINGS,
            SectionKind.CONTENT_BLOCKER,
            SectionKind.RESET,
        ]
        assert rows(sections, SectionKind.CONNECTION) == [SettingKind.VPN_PROTOCOL_SELECTION]
        assert rows(sections, SectionKind.APPLICATION_SETTINGS) == [
            SettingKind.AUTOMATIC_RECONNECTION,
            SettingKind.DARK_THEME,
        ]

    def test_openvpn_with_mace(self):
        sections = build_sections(Configuration(vpn_type=VPNType.OPENVPN), FeatureFlags())
        assert kinds(sections) == [
            SectionKind.CONNECTION,
            SectionKind.ENCRYPTION,
            SectionKind.APPLICATION_SETTINGS,
            SectionKind.APPLICATION_INFORMATION,
            SectionKind.RESET,
        ]
        assert rows(sections, SectionKind.CONNECTION) == [
            SettingKind.VPN_PROTOCOL_SELECTION,
            SettingKind.VPN_SOCKET,
            SettingKind.VPN_PORT,
        ]
        assert rows(sections, SectionKind.APPLICATION_SETTINGS)[-1] is SettingKind.MACE

    def test_openvpn_without_mace_shows_content_blocker(self):
        sections = build_sections(Configuration(vpn_type=VPNType.OPENVPN), FeatureFlags(mace=False),
                                  content_blocker_enabled=True)
        assert SectionKind.CONTENT_BLOCKER in kinds(sections)
        blocker = next(s for s in sections if s.kind is SectionKind.CONTENT_BLOCKER)
        assert blocker.rows[0].value is True

    def test_without_protocol_selection(self):
        flags = FeatureFlags(protocol_selection=False, reset_settings=False)
        sections = build_sections(Configuration(vpn_type=VPNType.OPENVPN), flags)
        assert SectionKind.CONNECTION not in kinds(sections)
        assert SectionKind.ENCRYPTION not in kinds(sections)
        assert SectionKind.RESET not in kinds(sections)

    def test_development_section(self):
        sections = build_sections(Configuration(), FeatureFlags(development_settings=True))
        assert kinds(sections)[-1] is SectionKind.DEVELOPMENT
        assert rows(sections, SectionKind.DEVELOPMENT) == [SettingKind.MACE, SettingKind.RESOLVE_ADS_DOMAIN]

    def test_row_values(self):
        configuration = Configuration(vpn_type=VPNType.OPENVPN, preferred_port=53, is_persistent_connection=False)
        sections = build_sections(configuration, FeatureFlags(remote_port_setting=False), theme=ThemeCode.DARK)
        data = [section.to_dict() for section in sections]
        connection = data[0]["rows"]
        assert connection[0] == {"kind": "vpn_protocol_selection", "value": "openvpn", "editable": True}
        assert connection[2] == {"kind": "vpn_port", "value": 53, "editable": False}
        application = next(d for d in data if d["kind"] == "application_settings")["rows"]
        assert application[0]["value"] is False
        assert application[1]["value"] is True


class TestSettingOptions:
    def test_ports_start_with_automatic(self):
        assert setting_options(SettingKind.VPN_PORT, FeatureFlags(), (8080, 53)) == [0, 8080, 53]

    def test_encryption_options(self):
        flags = FeatureFlags()
        assert setting_options(SettingKind.ENCRYPTION_CIPHER, flags) == ["AES-128-CBC", "AES-256-CBC"]
        assert setting_options(SettingKind.ENCRYPTION_DIGEST, flags) == ["SHA1", "SHA256"]
        assert "ECC521r1" in setting_options(SettingKind.ENCRYPTION_HANDSHAKE, flags)

    def test_gated_options(self):
        flags = FeatureFlags(encryption_settings=False, remote_port_setting=False, protocol_selection=False)
        assert setting_options(SettingKind.ENCRYPTION_CIPHER, flags) is None
        assert setting_options(SettingKind.VPN_PORT, flags, (8080,)) is None
        assert setting_options(SettingKind.VPN_PROTOCOL_SELECTION, flags) is None

    def test_toggles_have_no_options(self):
        assert setting_options(SettingKind.MACE, FeatureFlags()) is None
