"""Tests for the application config loader."""

from pathlib import Path

from vpnsettings.config import BASE_PATH, AppConfig, load_app_config
from vpnsettings.settings.flags import FeatureFlags


def test_missing_file_uses_defaults(tmp_path):
    assert load_app_config(str(tmp_path / "missing.conf")) == AppConfig()


def test_reads_sections(tmp_path):
    config_file = tmp_path / "vpn_settings.conf"
    config_file.write_text(
        "[server]\nport = 9000\n"
        "[storage]\npreferences_path = /var/lib/vpn/preferences.ini\n"
        "[flags]\nmace = false\ndevelopment_settings = yes\n"
        "[openvpn]\ninterface = tun3\nlog_path = logs/tunnel.log\nmace_dns =\n"
        "[ports]\nudp = 1194, 8080\n"
        "[diagnostics]\ndebug_log_url = https://logs.example.com\ntimeout = 2.5\n"
        "[content_blocker]\nunit = dnsmasq\n"
        "[commit]\nconfirm_timeout = 30\n"
    )
    config = load_app_config(str(config_file))

    assert config.port == 9000
    assert config.preferences_path == Path("/var/lib/vpn/preferences.ini")
    assert config.flags == FeatureFlags(mace=False, development_settings=True)
    assert config.openvpn.interface == "tun3"
    assert config.openvpn.log_path == BASE_PATH / "logs" / "tunnel.log"
    assert config.openvpn.mace_dns is None
    assert config.server_ports == (1194, 8080)
    assert config.diagnostics.debug_log_url == "https://logs.example.com"
    assert config.diagnostics.timeout == 2.5
    assert config.diagnostics.ads_domain == "google-analytics.com"
    assert config.content_blocker_unit == "dnsmasq"
    assert config.confirm_timeout == 30.0


def test_shipped_config_loads():
    config = load_app_config(str(BASE_PATH / "config" / "vpn_settings.conf"))
    assert config.flags.development_settings is False
    assert config.server_ports == (8080, 853, 123, 53)
    assert config.content_blocker_unit is None
