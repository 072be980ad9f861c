"""Command templates and builders for VPN connection control."""

from typing import List, Optional, Dict
from dataclasses import dataclass
from pathlib import Path


class CommandError(Exception):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


@dataclass
class Command:
    """Command builder with validation."""
    base_cmd: List[str]
    use_sudo: bool = False
    _valid_options: Optional[Dict[str, type]] = None

    def _validate_option(self, opt: str, value: Optional[str]) -> None:
        """Validate option and its value if validation rules exist."""
        if self._valid_options is not None:
            opt_name = opt.lstrip('-').replace('-', '_')

            if opt_name not in self._valid_options:
                valid_opts = ", ".join(f"--{opt.replace('_', '-')}"
                                       for opt in self._valid_options.keys())
                raise ValidationError(
                    f"Invalid option '{opt}' for command {self.base_cmd[0]}. "
                    f"Valid options are: {valid_opts}"
                )

            if value is not None:
                expected_type = self._valid_options[opt_name]
                try:
                    if expected_type == Path:
                        Path(value)
                    else:
                        expected_type(value)
                except ValueError:
                    raise ValidationError(
                        f"Invalid value '{value}' for option '{opt}'. Expected {expected_type.__name__}"
                    )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, use_sudo: bool = False, valid_options: Optional[Dict[str, type]] = None) -> 'Command':
        """Create command from string with optional validation rules."""
        command = cls(cmd.split(), use_sudo, valid_options)
        command._validate_executable()
        return command

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [arg], self.use_sudo, self._valid_options)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        return Command(self.base_cmd + list(args), self.use_sudo, self._valid_options)

    def with_option(self, opt: str, value: Optional[str] = None) -> 'Command':
        """Add option with validation."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean, value)
        cmd = self.base_cmd.copy()
        cmd.append(f"--{opt_clean}")
        if value is not None:
            cmd.append(str(value))
        return Command(cmd, self.use_sudo, self._valid_options)

    def with_options(self, **kwargs: Optional[str]) -> 'Command':
        """Add multiple options with validation."""
        cmd = self.base_cmd.copy()
        for opt, value in kwargs.items():
            self._validate_option(opt, str(value) if value is not None else None)
            cmd.append("--" + opt.replace("_", "-"))
            if value is not None:
                cmd.append(str(value))
        return Command(cmd, self.use_sudo, self._valid_options)

    def as_sudo(self) -> 'Command':
        """Mark command to be executed with sudo."""
        return Command(self.base_cmd, True, self._valid_options)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        return ["sudo"] + self.base_cmd if self.use_sudo else self.base_cmd


OPENVPN_OPTIONS = {
    'config': Path,
    'auth_user_pass': Path,
    'daemon': type(None),
    'verb': int,
    'log': Path,
    'dev': str,
    'proto': str,
    'port': int,
    'cipher': str,
    'auth': str,
    'ca': Path,
    'persist_tun': type(None),
    'keepalive': type(None),
    'dhcp_option': type(None),
}


KILLALL = Command.from_str("killall")

OPENVPN = Command.from_str("openvpn", valid_options=OPENVPN_OPTIONS)
OPENVPN_START = (
    OPENVPN
    .with_options(
        daemon=None,
        verb="4",
    )
)

IPSEC = Command.from_str("ipsec")
IPSEC_UP = IPSEC.with_arg("up")
IPSEC_DOWN = IPSEC.with_arg("down")
IPSEC_STATUS = IPSEC.with_arg("status")

SYSTEMCTL = Command.from_str("systemctl")
