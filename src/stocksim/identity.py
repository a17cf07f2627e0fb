"""Current-user identity used to namespace persisted portfolio state."""

import threading
from typing import Optional, Protocol


class IdentityProvider(Protocol):
    """Supplies the stable id of the signed-in user, or None when signed out."""

    def current_user_id(self) -> Optional[str]:
        ...


class SessionIdentity:
    """In-process session: one user at a time, switched by sign_in/sign_out."""

    def __init__(self, user_id: Optional[str] = None):
        self._lock = threading.Lock()
        self._user_id = user_id or None

    def current_user_id(self) -> Optional[str]:
        with self._lock:
            return self._user_id

    def sign_in(self, user_id: str) -> None:
        user_id = user_id.strip()
        if not user_id:
            raise ValueError("user_id must be a non-empty string")
        with self._lock:
            self._user_id = user_id

    def sign_out(self) -> None:
        with self._lock:
            self._user_id = None

    @property
    def is_signed_in(self) -> bool:
        return self.current_user_id() is not None
