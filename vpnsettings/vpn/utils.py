"""Utility functions for VPN connection control."""

from pathlib import Path
import socket
import subprocess
from typing import Optional, Tuple
import time

import psutil

from .exceptions import VPNError
from ..logging_utility import logger


def run_command(cmd: list[str], check: bool = True, use_sudo: bool = False) -> Tuple[str, str]:
    """
    Run shell command and return output.

    Args:
        cmd: Command as list of strings
        check: Whether to raise exception on error
        use_sudo: Whether to prepend sudo to the command

    Returns:
        Tuple of (stdout, stderr)
    """
    try:
        if use_sudo and cmd[0] != "sudo":
            cmd = ["sudo"] + cmd

        result = subprocess.run(cmd, capture_output=True, text=True, check=check)
        return result.stdout, result.stderr
    except subprocess.CalledProcessError as e:
        if check:
            raise VPNError(f"Command failed: {' '.join(cmd)}\n{e.stderr}")
        return e.stdout, e.stderr
    except FileNotFoundError as e:
        raise VPNError(f"Command not found: {cmd[0]}") from e


def interface_address(interface: str) -> Optional[str]:
    """IPv4 address of the interface, or None."""
    for addr in psutil.net_if_addrs().get(interface, []):
        if addr.family == socket.AF_INET:
            return addr.address
    return None


def interface_is_up(interface: str) -> bool:
    """Return True if the interface exists, is up and has an IPv4 address."""
    stats = psutil.net_if_stats().get(interface)
    if stats is None or not stats.isup:
        return False
    return interface_address(interface) is not None


def wait_for_interface(interface: str, max_attempts: int = 30, delay: float = 1.0) -> bool:
    """
    Wait for network interface to become available.

    Args:
        interface: Interface name
        max_attempts: Maximum number of attempts
        delay: Seconds between attempts

    Returns:
        bool: True if interface is ready
    """
    logger.info(f"Waiting for {interface} to be ready...")
    for i in range(max_attempts):
        if interface_is_up(interface):
            logger.info(f"{interface} is ready with IP configuration")
            return True
        time.sleep(delay)
        logger.info(f"Waiting for {interface}... ({i + 1}/{max_attempts})")
    return False


def read_log(log_file: Path) -> str:
    """
    Read the tunnel log.

    Args:
        log_file: Path to log file

    Returns:
        str: Log content, empty if the file does not exist
    """
    log_path = Path(log_file)
    if not log_path.exists():
        return ""
    with open(log_path, "r") as f:
        return f.read()
