"""Maintenance actions: debug log submission and DNS resolution checks."""

import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import dns.exception
import dns.resolver
import requests

from .logging_utility import logger
from .vpn.utils import read_log


class DebugLogStatus(Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILURE = "failure"


@dataclass(frozen=True)
class DebugLogReport:
    status: DebugLogStatus
    title: str
    message: str
    identifier: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "title": self.title,
            "message": self.message,
            "identifier": self.identifier,
        }


def submit_debug_log(log_path: Path, url: Optional[str], timeout: float = 10.0) -> DebugLogReport:
    """
    Upload the tunnel log for support.

    Args:
        log_path: Tunnel log file
        url: Submission endpoint
        timeout: Request timeout in seconds

    Returns:
        DebugLogReport: Success carries the identifier support asks for
    """
    if not url:
        logger.error("No debug log URL configured")
        return DebugLogReport(DebugLogStatus.FAILURE, "Error",
                              "Debug information could not be submitted.")
    try:
        content = read_log(log_path)
    except OSError as e:
        logger.error(f"Could not read debug log {log_path}: {str(e)}")
        return DebugLogReport(DebugLogStatus.FAILURE, "Error",
                              "Debug information could not be submitted.")
    if not content.strip():
        return DebugLogReport(DebugLogStatus.EMPTY, "Debug information is empty",
                              "Debug information is empty, please attempt a connection before retrying submission.")

    identifier = uuid.uuid4().hex[:8].upper()
    try:
        response = requests.post(url, json={"identifier": identifier, "log": content}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to submit debug log: {str(e)}")
        return DebugLogReport(DebugLogStatus.FAILURE, "Error",
                              "Debug information could not be submitted.")
    logger.info(f"Submitted debug log {identifier}")
    return DebugLogReport(DebugLogStatus.SUCCESS, "Debug information submitted",
                          f"Debug information successfully submitted.\nID: {identifier}\n"
                          "Note this ID, as our support team will need it to locate your submission.",
                          identifier)


def resolve_domain(hostname: str, timeout: float = 10.0) -> list[str]:
    """Resolve A records; an empty list means the domain did not resolve."""
    try:
        answers = dns.resolver.resolve(hostname, "A", lifetime=timeout)
    except dns.exception.DNSException as e:
        logger.info(f"Could not resolve {hostname}: {str(e)}")
        return []
    addresses = [answer.to_text() for answer in answers]
    logger.info(f"{hostname} resolves to {', '.join(addresses)}")
    return addresses
