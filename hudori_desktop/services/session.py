"""SessionState — who is currently authenticated, for the whole process.

The token and the user id always travel together: either both are empty
(anonymous) or both are set (authenticated). Every read hands back both
fields from one critical section.
"""

from __future__ import annotations

import threading
from typing import NamedTuple

import structlog

logger = structlog.get_logger(__name__)


class Credentials(NamedTuple):
    """Immutable snapshot of the session pair."""

    token: str
    user_id: str


ANONYMOUS = Credentials("", "")


class SessionState:
    """Lock-guarded credential pair shared by every outgoing request."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._credentials = ANONYMOUS

    def set(self, token: str, user_id: str) -> None:
        """Overwrite both fields; called once per successful sign-in."""
        with self._lock:
            self._credentials = Credentials(token, user_id)
        logger.info("session set", user_id=user_id)

    def clear(self) -> None:
        """Reset to anonymous."""
        with self._lock:
            self._credentials = ANONYMOUS
        logger.info("session cleared")

    def refresh_user_id(self, user_id: str) -> bool:
        """Replace the cached user id while a token is held.

        Returns False (and changes nothing) when the session is anonymous.
        """
        with self._lock:
            if not self._credentials.token:
                return False
            self._credentials = Credentials(self._credentials.token, user_id)
        return True

    def snapshot(self) -> Credentials:
        """Return token and user id as one consistent pair."""
        with self._lock:
            return self._credentials

    def is_authenticated(self) -> bool:
        token, user_id = self.snapshot()
        return bool(token) and bool(user_id)
