"""Active configuration and the single edit session over it."""

from dataclasses import replace
from typing import Callable, Optional

from .exceptions import PreconditionViolation
from .models import Cipher, Configuration, Digest, Handshake, VPNType
from .storage import ConfigurationStorage
from ..logging_utility import logger


class Draft:
    """Editable copy of the active configuration.

    Every mutation calls ``on_change`` so the owner can recompute the
    pending action.
    """

    def __init__(self, configuration: Configuration, on_change: Optional[Callable[["Draft"], None]] = None):
        self._configuration = configuration
        self._on_change = on_change
        self.closed = False

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    def replace(self, configuration: Configuration) -> None:
        if self.closed:
            raise PreconditionViolation("Draft was discarded")
        self._configuration = configuration
        if self._on_change is not None:
            self._on_change(self)

    def update(self, **changes) -> None:
        self.replace(replace(self._configuration, **changes))

    def set_vpn_type(self, vpn_type: VPNType) -> None:
        self.update(vpn_type=VPNType(vpn_type))

    def set_preferred_port(self, port: Optional[int]) -> None:
        # 0 is the "automatic" option
        self.update(preferred_port=port or None)

    def set_cipher(self, cipher: Cipher) -> None:
        self.update(cipher=Cipher(cipher))

    def set_digest(self, digest: Digest) -> None:
        self.update(digest=Digest(digest))

    def set_handshake(self, handshake: Handshake) -> None:
        self.update(handshake=Handshake(handshake))

    def set_persistent_connection(self, enabled: bool) -> None:
        self.update(is_persistent_connection=enabled)

    def set_mace(self, enabled: bool) -> None:
        self.update(mace_enabled=enabled)

    def reset(self) -> None:
        """Restore defaults, keeping the selected server."""
        self.replace(Configuration(preferred_server=self._configuration.preferred_server))

    def apply(self, **changes) -> None:
        """
        Apply several edits through their typed setters as one change.

        Raises:
            ValueError: A value is invalid; the draft is left as it was
        """
        if self.closed:
            raise PreconditionViolation("Draft was discarded")
        unknown = set(changes) - set(SETTERS)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        scratch = Draft(self._configuration)
        for name, value in changes.items():
            SETTERS[name](scratch, value)
        self.replace(scratch.configuration)


SETTERS = {
    "vpn_type": Draft.set_vpn_type,
    "preferred_port": Draft.set_preferred_port,
    "cipher": Draft.set_cipher,
    "digest": Draft.set_digest,
    "handshake": Draft.set_handshake,
    "is_persistent_connection": Draft.set_persistent_connection,
    "mace_enabled": Draft.set_mace,
}


class PreferenceStore:
    def __init__(self, storage: ConfigurationStorage):
        self._storage = storage
        self._active = storage.load()
        self._draft: Optional[Draft] = None

    @property
    def draft(self) -> Optional[Draft]:
        return self._draft

    def current_snapshot(self) -> Configuration:
        return self._active

    def begin_edit(self, on_change: Optional[Callable[[Draft], None]] = None) -> Draft:
        if self._draft is not None:
            raise PreconditionViolation("An edit session is already open")
        self._draft = Draft(self._active, on_change)
        logger.info("Opened settings edit session")
        return self._draft

    def commit(self, configuration: Configuration) -> None:
        """
        Persist a configuration and make it active.

        Storage errors propagate; the active configuration and the open
        draft are left untouched so the commit can be retried.
        """
        if self._draft is None:
            raise PreconditionViolation("No edit session to commit")
        self._storage.save(configuration)
        self._active = configuration
        if self._draft.configuration != configuration:
            self._draft.replace(configuration)
        logger.info(f"Committed configuration: {configuration.to_dict()}")

    def discard(self) -> None:
        if self._draft is None:
            raise PreconditionViolation("No edit session to discard")
        self._draft.closed = True
        self._draft = None
        logger.info("Discarded settings edit session")
