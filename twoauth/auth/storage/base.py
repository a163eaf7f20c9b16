"""Abstract base class for token storage."""

from abc import ABC, abstractmethod

from twoauth.auth.models import TokenKey, TokenPair


class TokenStore(ABC):
    """Abstract interface for token pair storage.

    Implementations store the token and its secret as two opaque values under
    a :class:`~twoauth.auth.models.TokenKey`. A pair is only ever returned
    whole: if either half is missing the pair does not exist.
    """

    @abstractmethod
    def put(self, key: TokenKey, pair: TokenPair) -> None:
        """Store a token pair, replacing any previous value.

        Args:
            key: Storage location
            pair: Token and secret to store

        Raises:
            CredentialsStorageError: If the pair cannot be written
        """
        pass

    @abstractmethod
    def get(self, key: TokenKey) -> TokenPair:
        """Load a token pair.

        Args:
            key: Storage location

        Returns:
            The stored pair

        Raises:
            TokenNotFoundError: If the token or its secret is absent
            CredentialsStorageError: If the pair cannot be read
        """
        pass

    @abstractmethod
    def exists(self, key: TokenKey) -> bool:
        """Check whether both halves of a pair are stored."""
        pass

    @abstractmethod
    def delete(self, key: TokenKey) -> bool:
        """Delete a token pair.

        Returns:
            True if anything was removed, False if nothing was stored
        """
        pass

    @abstractmethod
    def get_location(self, key: TokenKey | None = None) -> str:
        """Get a human-readable description of where tokens are stored."""
        pass
