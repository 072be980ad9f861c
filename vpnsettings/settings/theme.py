"""Process-wide UI theme, applied immediately and outside of edit sessions."""

from .models import ThemeCode
from .storage import IniFileStorage
from ..logging_utility import logger


class ThemeState:
    def __init__(self, storage: IniFileStorage):
        self._storage = storage
        self._code = storage.load_theme()

    @property
    def current_theme_code(self) -> ThemeCode:
        return self._code

    def transition_to(self, code: ThemeCode) -> bool:
        """Switch theme. Returns False if it was already active."""
        code = ThemeCode(code)
        if code is self._code:
            return False
        self._storage.save_theme(code)
        self._code = code
        logger.info(f"Theme changed to {code.value}")
        return True
