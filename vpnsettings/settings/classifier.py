"""Decides what applying a draft requires of the running connection.

Everything here is a pure function of its arguments.
"""

from dataclasses import fields, replace
from typing import Optional

from .flags import FeatureFlags
from .models import Configuration, PendingAction, VPNType
from ..vpn.models import ConnectionStatus

# Fields the running tunnel cannot adopt without being torn down
PROTOCOL_FIELDS = frozenset({"vpn_type"})
TUNNEL_FIELDS = frozenset({"socket_protocol", "preferred_port", "cipher", "digest", "handshake"})

# Fields that take effect without disruption, though a reconnect applies them sooner
SESSION_FIELDS = frozenset({"is_persistent_connection", "mace_enabled"})


def normalize(draft: Configuration, flags: FeatureFlags) -> Configuration:
    """Force MACE off when it is not available for the draft's VPN type."""
    if draft.mace_enabled and not flags.enables_mace(draft.vpn_type) and not flags.development_settings:
        return replace(draft, mace_enabled=False)
    return draft


def changed_fields(active: Configuration, draft: Configuration) -> frozenset[str]:
    return frozenset(
        f.name for f in fields(Configuration)
        if getattr(active, f.name) != getattr(draft, f.name)
    )


def affects_connection(active: Configuration, changed: frozenset[str]) -> bool:
    if changed & PROTOCOL_FIELDS:
        return True
    # IPSec connections don't use the tunnel parameters
    return active.vpn_type is VPNType.OPENVPN and bool(changed & TUNNEL_FIELDS)


def required_action(active: Configuration, draft: Configuration) -> PendingAction:
    """What the change would require of a live connection, ignoring its status."""
    changed = changed_fields(active, draft)
    if not changed:
        return PendingAction.NONE
    if affects_connection(active, changed):
        return PendingAction.MANDATORY_RECONNECT
    if changed & SESSION_FIELDS:
        return PendingAction.OPTIONAL_RECONNECT
    return PendingAction.NONE


def classify(
        active: Configuration,
        draft: Configuration,
        status: ConnectionStatus,
        flags: Optional[FeatureFlags] = None,
) -> PendingAction:
    """
    Compute the pending action for a draft.

    Args:
        active: Committed configuration
        draft: Configuration under edit
        status: Current connection status
        flags: When given, the draft is normalized first

    Returns:
        PendingAction: NONE while disconnected, otherwise the required action
    """
    if flags is not None:
        draft = normalize(draft, flags)
    if status is ConnectionStatus.DISCONNECTED:
        return PendingAction.NONE
    return required_action(active, draft)
