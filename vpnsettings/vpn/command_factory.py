"""Factory for creating connection-control commands."""

from pathlib import Path
from typing import Optional
from .commands import (
    OPENVPN_START,
    KILLALL,
    IPSEC_UP,
    IPSEC_DOWN,
    IPSEC_STATUS,
    SYSTEMCTL,
)


class VPNCommandFactory:
    """Factory for creating VPN management commands."""

    @staticmethod
    def start_openvpn(
            config_path: Path,
            credentials_path: Path,
            log_path: Path,
            interface: Optional[str] = None,
            proto: Optional[str] = None,
            port: Optional[int] = None,
            cipher: Optional[str] = None,
            digest: Optional[str] = None,
            ca_path: Optional[Path] = None,
            persistent: bool = False,
            dns: Optional[str] = None,
    ) -> list[str]:
        """Create OpenVPN start command.

        Options left as None are not passed, so the profile in
        ``config_path`` decides them (e.g. an automatic remote port).
        """
        cmd = OPENVPN_START.with_options(
            config=str(config_path),
            auth_user_pass=str(credentials_path),
            log=str(log_path),
        )

        if interface:
            cmd = cmd.with_options(dev=interface)
        if proto:
            cmd = cmd.with_options(proto=proto)
        if port:
            cmd = cmd.with_options(port=str(port))
        if cipher:
            cmd = cmd.with_options(cipher=cipher)
        if digest:
            cmd = cmd.with_options(auth=digest)
        if ca_path is not None:
            cmd = cmd.with_options(ca=str(ca_path))
        if persistent:
            cmd = cmd.with_options(persist_tun=None).with_option("keepalive").with_args("10", "60")
        if dns:
            cmd = cmd.with_option("dhcp-option").with_args("DNS", dns)

        return cmd.as_sudo().build()

    @staticmethod
    def kill_openvpn() -> list[str]:
        """Create OpenVPN kill command."""
        return KILLALL.with_arg("openvpn").as_sudo().build()

    @staticmethod
    def ipsec_up(connection: str) -> list[str]:
        """Create strongSwan connection start command."""
        return IPSEC_UP.with_arg(connection).as_sudo().build()

    @staticmethod
    def ipsec_down(connection: str) -> list[str]:
        """Create strongSwan connection stop command."""
        return IPSEC_DOWN.with_arg(connection).as_sudo().build()

    @staticmethod
    def ipsec_status(connection: str) -> list[str]:
        """Create strongSwan connection status query."""
        return IPSEC_STATUS.with_arg(connection).as_sudo().build()

    @staticmethod
    def unit_is_active(unit: str) -> list[str]:
        """Command to query a systemd unit state."""
        return SYSTEMCTL.with_args("is-active", unit).build()

    @staticmethod
    def reload_unit(unit: str) -> list[str]:
        """Command to reload a systemd unit."""
        return SYSTEMCTL.with_args("reload", unit).as_sudo().build()
