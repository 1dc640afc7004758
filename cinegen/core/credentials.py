"""API key selection capability injected into the orchestrator."""

from abc import ABC, abstractmethod
from typing import Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


class CredentialStore(ABC):
    """Answers "is a key selected" and can ask the user to select one."""

    @property
    @abstractmethod
    def api_key(self) -> Optional[str]:
        """The currently selected key, or None."""

    @abstractmethod
    async def has_selected_key(self) -> bool:
        pass

    @abstractmethod
    async def open_select_key(self) -> bool:
        """Ask the user for a key. Returns whether one is selected afterwards."""


class SessionCredentialStore(CredentialStore):
    """Key held in memory for the single browser session.

    The server cannot open a dialog itself: asking for a key flags the
    session so the page shows its key form, and the key arrives later via
    POST /api/credential.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or None
        self.selection_requested = False

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    async def has_selected_key(self) -> bool:
        return self._api_key is not None

    async def open_select_key(self) -> bool:
        if self._api_key is None:
            self.selection_requested = True
            logger.info("API key selection requested")
        return self._api_key is not None

    def set_key(self, api_key: str):
        self._api_key = api_key.strip() or None
        self.selection_requested = self._api_key is None
        logger.info("API key selected", extra={"api_key_present": self._api_key is not None})

    def clear(self):
        self._api_key = None
        logger.info("API key cleared")
