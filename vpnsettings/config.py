"""Application configuration loaded from an INI file."""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .logging_utility import logger
from .settings.flags import FeatureFlags

BASE_PATH = Path(__file__).parent.parent
DEFAULT_CONFIG_FILE = BASE_PATH / "config" / "vpn_settings.conf"


@dataclass(frozen=True)
class OpenVPNConfig:
    config_path: Path = Path("/etc/openvpn/client/default.ovpn")
    credentials_path: Path = Path("/etc/openvpn/client/credentials.txt")
    log_path: Path = BASE_PATH / "logs" / "openvpn.log"
    interface: str = "tun0"
    ca_dir: Optional[Path] = None
    mace_dns: Optional[str] = None


@dataclass(frozen=True)
class DiagnosticsConfig:
    debug_log_url: Optional[str] = None
    ads_domain: str = "google-analytics.com"
    timeout: float = 10.0


@dataclass(frozen=True)
class AppConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    preferences_path: Path = BASE_PATH / "config" / "preferences.ini"
    flags: FeatureFlags = field(default_factory=FeatureFlags)
    openvpn: OpenVPNConfig = field(default_factory=OpenVPNConfig)
    ipsec_connection: str = "vpn"
    server_ports: tuple[int, ...] = (8080, 853, 123, 53)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    content_blocker_unit: Optional[str] = None
    confirm_timeout: Optional[float] = None


def _resolve(path: str) -> Path:
    """Relative paths are taken from the project directory."""
    if not path.startswith('/'):
        return BASE_PATH / path
    return Path(path)


def load_app_config(config_file: Optional[str] = None) -> AppConfig:
    """
    Load the application config.

    Args:
        config_file: INI path; defaults to $VPN_SETTINGS_CONFIG or config/vpn_settings.conf

    Returns:
        AppConfig with defaults for anything the file leaves out
    """
    config_file = config_file or os.environ.get("VPN_SETTINGS_CONFIG") or str(DEFAULT_CONFIG_FILE)
    config = configparser.ConfigParser()
    if not config.read(config_file):
        logger.warning(f"Config file {config_file} not found, using defaults")
        return AppConfig()

    defaults = AppConfig()
    openvpn_defaults = defaults.openvpn
    diagnostics_defaults = defaults.diagnostics

    openvpn = openvpn_defaults
    if config.has_section("openvpn"):
        section = config["openvpn"]
        ca_dir = section.get("ca_dir")
        mace_dns = section.get("mace_dns")
        openvpn = OpenVPNConfig(
            config_path=_resolve(section.get("config_path", str(openvpn_defaults.config_path))),
            credentials_path=_resolve(section.get("credentials_path", str(openvpn_defaults.credentials_path))),
            log_path=_resolve(section.get("log_path", str(openvpn_defaults.log_path))),
            interface=section.get("interface", openvpn_defaults.interface),
            ca_dir=_resolve(ca_dir) if ca_dir else None,
            mace_dns=mace_dns or None,
        )

    diagnostics = diagnostics_defaults
    if config.has_section("diagnostics"):
        section = config["diagnostics"]
        diagnostics = DiagnosticsConfig(
            debug_log_url=section.get("debug_log_url") or None,
            ads_domain=section.get("ads_domain", diagnostics_defaults.ads_domain),
            timeout=section.getfloat("timeout", diagnostics_defaults.timeout),
        )

    server_ports = defaults.server_ports
    raw_ports = config.get("ports", "udp", fallback=None)
    if raw_ports:
        server_ports = tuple(int(p) for p in raw_ports.split(",") if p.strip())

    return AppConfig(
        host=config.get("server", "host", fallback=defaults.host),
        port=config.getint("server", "port", fallback=defaults.port),
        preferences_path=_resolve(config.get("storage", "preferences_path",
                                             fallback=str(defaults.preferences_path))),
        flags=FeatureFlags.from_section(config["flags"]) if config.has_section("flags") else defaults.flags,
        openvpn=openvpn,
        ipsec_connection=config.get("ipsec", "connection", fallback=defaults.ipsec_connection),
        server_ports=server_ports,
        diagnostics=diagnostics,
        content_blocker_unit=config.get("content_blocker", "unit", fallback=None) or None,
        confirm_timeout=config.getfloat("commit", "confirm_timeout", fallback=None),
    )
