"""Data models for VPN connection control."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class ConnectionStatus(Enum):
    """VPN connection status"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    ERROR = "error"


@dataclass
class VPNInterface:
    """Tunnel interface tracked by the connection control"""
    name: str
    log_file: Path
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    ip_address: Optional[str] = None
