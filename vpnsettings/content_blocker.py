"""Content-blocker state as reported by the system service that implements it."""

from typing import Optional

from .logging_utility import logger
from .vpn.command_factory import VPNCommandFactory
from .vpn.exceptions import VPNError
from .vpn.utils import run_command


class ContentBlocker:
    """Observes and reloads a content-blocking systemd unit.

    With no unit configured the blocker is reported as disabled and
    reloading does nothing.
    """

    def __init__(self, unit: Optional[str] = None):
        self.unit = unit

    def is_enabled(self) -> bool:
        if not self.unit:
            return False
        try:
            stdout, _ = run_command(VPNCommandFactory.unit_is_active(self.unit), check=False)
        except VPNError as e:
            logger.warning(f"Could not query content blocker {self.unit}: {str(e)}")
            return False
        return stdout.strip() == "active"

    def reload_rules(self) -> bool:
        """Returns False if the rules could not be reloaded."""
        if not self.unit:
            return False
        try:
            run_command(VPNCommandFactory.reload_unit(self.unit))
        except VPNError as e:
            logger.error(f"Could not reload content blocker: {str(e)}")
            return False
        logger.info(f"Reloaded content blocker {self.unit}")
        return True
