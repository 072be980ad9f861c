"""Connection control over the system VPN clients."""

import asyncio
import threading
from pathlib import Path
from typing import Callable, Optional

from .command_factory import VPNCommandFactory
from .commands import CommandError
from .exceptions import ConfigurationError, ConnectionError, InterfaceError, VPNError
from .models import ConnectionStatus, VPNInterface
from .utils import interface_address, interface_is_up, read_log, run_command, wait_for_interface
from ..config import OpenVPNConfig
from ..logging_utility import logger
from ..settings.models import Configuration, VPNType


class ConnectionControl:
    """Brings the VPN up and down with the active configuration.

    OpenVPN is run as a daemon on a fixed tun interface, IPSec through a
    strongSwan connection. ``reconnect`` always reads the configuration at
    call time, so it runs with whatever was committed last.
    """

    def __init__(
            self,
            openvpn: OpenVPNConfig,
            ipsec_connection: str,
            preferences: Callable[[], Configuration],
            interface_timeout: int = 30,
    ):
        self.openvpn = openvpn
        self.ipsec_connection = ipsec_connection
        self._preferences = preferences
        self._interface_timeout = interface_timeout
        self.interface = VPNInterface(name=openvpn.interface, log_file=Path(openvpn.log_path))
        self.active_type: Optional[VPNType] = None
        self._lock = threading.Lock()

    def _ipsec_established(self) -> bool:
        try:
            stdout, _ = run_command(VPNCommandFactory.ipsec_status(self.ipsec_connection), check=False)
        except VPNError as e:
            logger.warning(f"Could not query IPSec status: {str(e)}")
            return False
        return "ESTABLISHED" in stdout

    def _detect_tunnel(self) -> Optional[VPNType]:
        """Find a running tunnel, including one started outside this service."""
        if interface_is_up(self.interface.name):
            return VPNType.OPENVPN
        if self._ipsec_established():
            return VPNType.IPSEC
        return None

    def status(self) -> ConnectionStatus:
        """
        Get current connection status.

        Returns:
            ConnectionStatus: Status of the running tunnel. While a reconnect
            is in progress the transitional status is returned as is; a
            failed start stays ERROR until a tunnel is found again
        """
        current = self.interface.status
        if current in (ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTING):
            return current

        detected = self._detect_tunnel()
        if detected is not None:
            if current is not ConnectionStatus.CONNECTED or self.active_type is not detected:
                logger.info(f"Found running {detected.description} connection")
            self.interface.status = ConnectionStatus.CONNECTED
            self.active_type = detected
            if detected is VPNType.OPENVPN:
                self.interface.ip_address = interface_address(self.interface.name)
        elif current is ConnectionStatus.CONNECTED:
            logger.warning(f"{self.active_type.description if self.active_type else 'VPN'} connection went down")
            self.interface.status = ConnectionStatus.DISCONNECTED
            self.active_type = None
            self.interface.ip_address = None
        return self.interface.status

    def _start_openvpn(self, configuration: Configuration) -> None:
        ca_path = None
        if self.openvpn.ca_dir is not None:
            ca_path = Path(self.openvpn.ca_dir) / f"{configuration.handshake.value.lower()}.crt"
            if not ca_path.exists():
                raise ConfigurationError(f"No CA certificate for {configuration.handshake.value}: {ca_path}")
        dns = self.openvpn.mace_dns if configuration.mace_enabled else None

        logger.info(f"Starting OpenVPN using config: {self.openvpn.config_path}")
        try:
            run_command(
                VPNCommandFactory.start_openvpn(
                    config_path=Path(self.openvpn.config_path),
                    credentials_path=Path(self.openvpn.credentials_path),
                    log_path=Path(self.openvpn.log_path),
                    interface=self.interface.name,
                    proto=configuration.socket_protocol.value,
                    port=configuration.preferred_port,
                    cipher=configuration.cipher.value,
                    digest=configuration.digest.value,
                    ca_path=ca_path,
                    persistent=configuration.is_persistent_connection,
                    dns=dns,
                )
            )
        except (CommandError, VPNError) as e:
            raise ConnectionError(f"Failed to start OpenVPN: {str(e)}")

        if not wait_for_interface(self.interface.name, max_attempts=self._interface_timeout):
            output = read_log(self.interface.log_file)
            if output:
                logger.error(f"OpenVPN output:\n{output}")
            raise InterfaceError(f"VPN interface ({self.interface.name}) failed to initialize")
        self.interface.ip_address = interface_address(self.interface.name)

    def _start_ipsec(self) -> None:
        logger.info(f"Starting IPSec connection {self.ipsec_connection}")
        try:
            run_command(VPNCommandFactory.ipsec_up(self.ipsec_connection))
        except VPNError as e:
            raise ConnectionError(f"Failed to start IPSec: {str(e)}")

    def connect(self) -> None:
        """Bring the VPN up with the active configuration."""
        configuration = self._preferences()
        self.interface.status = ConnectionStatus.CONNECTING
        try:
            if configuration.vpn_type is VPNType.OPENVPN:
                self._start_openvpn(configuration)
            else:
                self._start_ipsec()
        except VPNError:
            self.interface.status = ConnectionStatus.ERROR
            self.active_type = None
            raise
        self.interface.status = ConnectionStatus.CONNECTED
        self.active_type = configuration.vpn_type
        logger.info(f"{configuration.vpn_type.description} connection established")

    def disconnect(self) -> None:
        """Tear down whichever VPN is running."""
        self.interface.status = ConnectionStatus.DISCONNECTING
        # both clients are stopped; the previous type may differ from the new one
        for cmd in (VPNCommandFactory.kill_openvpn(),
                    VPNCommandFactory.ipsec_down(self.ipsec_connection)):
            try:
                run_command(cmd, check=False)
            except VPNError as e:
                logger.warning(f"Could not run {' '.join(cmd)}: {str(e)}")
        self.interface.status = ConnectionStatus.DISCONNECTED
        self.active_type = None
        self.interface.ip_address = None
        logger.info("VPN disconnected")

    def _reconnect(self) -> None:
        with self._lock:
            self.disconnect()
            self.connect()

    async def reconnect(self) -> None:
        """Disconnect and connect again without blocking the event loop."""
        await asyncio.to_thread(self._reconnect)
