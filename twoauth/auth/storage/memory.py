"""In-memory token storage, for embedding and tests."""

import threading

from twoauth.auth.exceptions import CredentialsInvalidError, TokenNotFoundError
from twoauth.auth.models import TokenKey, TokenPair
from twoauth.auth.storage.base import TokenStore


class InMemoryTokenStore(TokenStore):
    """Process-local token store guarded by a lock."""

    def __init__(self) -> None:
        self._pairs: dict[TokenKey, TokenPair] = {}
        self._lock = threading.Lock()

    def put(self, key: TokenKey, pair: TokenPair) -> None:
        if not pair.is_complete:
            raise CredentialsInvalidError(
                f"Refusing to store an incomplete token pair for {key.name}"
            )
        with self._lock:
            self._pairs[key] = pair

    def get(self, key: TokenKey) -> TokenPair:
        with self._lock:
            pair = self._pairs.get(key)
        if pair is None:
            raise TokenNotFoundError(f"Token {key.name} not found")
        return pair

    def exists(self, key: TokenKey) -> bool:
        with self._lock:
            return key in self._pairs

    def delete(self, key: TokenKey) -> bool:
        with self._lock:
            return self._pairs.pop(key, None) is not None

    def get_location(self, key: TokenKey | None = None) -> str:
        if key is None:
            return "memory"
        return f"memory:{key.name}"
