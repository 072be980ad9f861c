"""Data models for the settings engine."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Optional

from ..vpn.models import ConnectionStatus


class VPNType(Enum):
    """VPN protocol used for the connection"""
    IPSEC = "ipsec"
    OPENVPN = "openvpn"

    @property
    def description(self) -> str:
        return "IPSec" if self is VPNType.IPSEC else "OpenVPN"


class SocketProtocol(Enum):
    UDP = "udp"
    TCP = "tcp"


class Cipher(Enum):
    AES_128_CBC = "AES-128-CBC"
    AES_256_CBC = "AES-256-CBC"


class Digest(Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"


class Handshake(Enum):
    RSA2048 = "RSA2048"
    RSA3072 = "RSA3072"
    RSA4096 = "RSA4096"
    ECC256R1 = "ECC256r1"
    ECC521R1 = "ECC521r1"


class ThemeCode(Enum):
    LIGHT = "light"
    DARK = "dark"


class PendingAction(Enum):
    """What applying a draft requires of the running connection"""
    NONE = "none"
    OPTIONAL_RECONNECT = "optional_reconnect"
    MANDATORY_RECONNECT = "mandatory_reconnect"


class CommitOutcome(Enum):
    APPLIED = "applied"
    APPLIED_AND_RECONNECTED = "applied_and_reconnected"
    APPLIED_BUT_RECONNECT_FAILED = "applied_but_reconnect_failed"
    CANCELLED = "cancelled"


class Choice(Enum):
    """Answers a confirmation prompt can offer"""
    RECONNECT = "reconnect"
    CANCEL = "cancel"
    LATER = "later"


MAX_PORT = 65535

_BOOL_FIELDS = ("is_persistent_connection", "mace_enabled")

_ENUM_FIELDS = {
    "vpn_type": VPNType,
    "socket_protocol": SocketProtocol,
    "cipher": Cipher,
    "digest": Digest,
    "handshake": Handshake,
}


@dataclass(frozen=True)
class Configuration:
    """User-controllable VPN settings.

    Instances are immutable snapshots; edits produce new instances through
    ``dataclasses.replace``. ``preferred_port`` of None means the port is
    chosen automatically.
    """
    vpn_type: VPNType = VPNType.IPSEC
    socket_protocol: SocketProtocol = SocketProtocol.UDP
    preferred_port: Optional[int] = None
    cipher: Cipher = Cipher.AES_128_CBC
    digest: Digest = Digest.SHA1
    handshake: Handshake = Handshake.RSA2048
    is_persistent_connection: bool = True
    mace_enabled: bool = False
    preferred_server: Optional[str] = None

    def __post_init__(self):
        for name, enum_type in _ENUM_FIELDS.items():
            value = getattr(self, name)
            if not isinstance(value, enum_type):
                object.__setattr__(self, name, enum_type(value))
        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if self.preferred_port is not None:
            port = int(self.preferred_port)
            if port == 0:
                object.__setattr__(self, "preferred_port", None)
            elif not 0 < port <= MAX_PORT:
                raise ValueError(f"preferred_port must be between 1 and {MAX_PORT}, got {port}")
            else:
                object.__setattr__(self, "preferred_port", port)

    def to_dict(self) -> dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Configuration":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class Prompt:
    """Confirmation request shown before disrupting the connection"""
    action: PendingAction
    message: str
    choices: tuple[Choice, ...]

    @classmethod
    def must_reconnect(cls) -> "Prompt":
        return cls(
            action=PendingAction.MANDATORY_RECONNECT,
            message="The VPN must reconnect for some changes to take effect.",
            choices=(Choice.RECONNECT, Choice.CANCEL),
        )

    @classmethod
    def should_reconnect(cls) -> "Prompt":
        return cls(
            action=PendingAction.OPTIONAL_RECONNECT,
            message="Reconnect the VPN to apply changes.",
            choices=(Choice.RECONNECT, Choice.LATER),
        )


@dataclass(frozen=True)
class CommitResult:
    outcome: CommitOutcome
    action: PendingAction = PendingAction.NONE
    status: Optional[ConnectionStatus] = None
    error: Optional[Exception] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "action": self.action.value,
            "status": self.status.value if self.status else None,
            "error": str(self.error) if self.error else None,
        }
