"""Filesystem token storage.

Each token pair is kept as two files in one directory, named after the
:class:`~twoauth.auth.models.TokenKey`::

    tokens/
      myapp_request_token
      myapp_request_token_secret
      myapp_alice_access_token
      myapp_alice_access_token_secret

File contents are the raw token/secret text with no encoding wrapper.
"""

import contextlib
import os
import sys
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from twoauth.auth.exceptions import (
    CredentialsInvalidError,
    CredentialsStorageError,
    TokenNotFoundError,
)
from twoauth.auth.models import TokenKey, TokenPair
from twoauth.auth.storage.base import TokenStore
from twoauth.core.logging import get_logger


if sys.platform == "win32":
    fcntl = None
else:
    import fcntl


logger = get_logger(__name__)

FILE_MODE = 0o600
LOCK_SUFFIX = ".lock"


class FileTokenStore(TokenStore):
    """Token store backed by a directory of token files.

    Writes go to a temporary file in the same directory which is then
    atomically renamed over the target, so a reader sees either the previous
    or the new value and never a partial one. Writers of the same pair are
    serialised by an exclusive ``flock`` on a per-pair lock file (POSIX) and a
    process-local lock. Readers take a shared lock only when the lock file
    already exists and is readable.
    """

    def __init__(self, directory: Path | str):
        """Initialize filesystem storage.

        Args:
            directory: Directory holding the token files; created on first write
        """
        self.directory = Path(directory).expanduser()
        self._lock = threading.Lock()

    def _token_path(self, key: TokenKey) -> Path:
        return self.directory / key.name

    def _secret_path(self, key: TokenKey) -> Path:
        return self.directory / key.secret_name

    def _lock_path(self, key: TokenKey) -> Path:
        return self.directory / f".{key.name}{LOCK_SUFFIX}"

    def _open_lock(self, key: TokenKey, exclusive: bool) -> IO[str] | None:
        if fcntl is None:
            return None
        if exclusive:
            return self._lock_path(key).open("a")
        # readers never create the lock file so a read-only directory stays readable
        try:
            return self._lock_path(key).open("r")
        except (FileNotFoundError, PermissionError) as e:
            logger.debug("token_lock_unavailable", key=key.name, error=str(e))
            return None

    @contextlib.contextmanager
    def _locked(self, key: TokenKey, exclusive: bool) -> Iterator[None]:
        with self._lock:
            lock_file = self._open_lock(key, exclusive)
            if lock_file is None:
                yield
                return

            with lock_file:
                fcntl.flock(
                    lock_file.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
                )
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _write_atomic(self, path: Path, data: str) -> None:
        fd, temp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{path.name}.", suffix=".tmp"
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())

            # Set restrictive permissions (read/write for owner only)
            temp_path.chmod(FILE_MODE)

            # Atomic rename
            temp_path.replace(path)
        finally:
            # Clean up temp file if it exists
            if temp_path.exists():
                with contextlib.suppress(OSError):
                    temp_path.unlink()

    def _read(self, path: Path) -> str | None:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialsInvalidError(
                f"Invalid file encoding in token file {path}: {e}"
            ) from e

    def put(self, key: TokenKey, pair: TokenPair) -> None:
        """Write both halves of ``pair``.

        Raises:
            CredentialsInvalidError: If the token or secret is empty
            CredentialsStorageError: If the files cannot be written
        """
        if not pair.is_complete:
            raise CredentialsInvalidError(
                f"Refusing to store an incomplete token pair for {key.name}"
            )

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with self._locked(key, exclusive=True):
                # secret first: a pair is only visible once its token file exists
                self._write_atomic(self._secret_path(key), pair.secret)
                self._write_atomic(self._token_path(key), pair.token)

        except PermissionError as e:
            logger.error(
                "permission_denied", path=str(self.directory), key=key.name, error=str(e)
            )
            raise CredentialsStorageError(
                f"Permission denied writing token {key.name} in {self.directory}"
            ) from e

        except OSError as e:
            logger.error(
                "token_write_error", path=str(self.directory), key=key.name, error=str(e)
            )
            raise CredentialsStorageError(
                f"Error writing token {key.name} in {self.directory}: {e}"
            ) from e

        logger.debug("token_store_write", key=key.name, path=str(self.directory))

    def get(self, key: TokenKey) -> TokenPair:
        """Read both halves of the pair stored under ``key``.

        Raises:
            TokenNotFoundError: If the directory, the token or the secret file is absent
            CredentialsInvalidError: If a file is not valid UTF-8
            CredentialsStorageError: If the files cannot be read
        """
        if not self.directory.is_dir():
            raise TokenNotFoundError(
                f"Token {key.name} not found: {self.directory} does not exist"
            )

        try:
            with self._locked(key, exclusive=False):
                token = self._read(self._token_path(key))
                secret = self._read(self._secret_path(key))

        except PermissionError as e:
            logger.error(
                "permission_denied", path=str(self.directory), key=key.name, error=str(e)
            )
            raise CredentialsStorageError(
                f"Permission denied reading token {key.name} in {self.directory}"
            ) from e

        except OSError as e:
            logger.error(
                "token_read_error", path=str(self.directory), key=key.name, error=str(e)
            )
            raise CredentialsStorageError(
                f"Error reading token {key.name} in {self.directory}: {e}"
            ) from e

        if not token or not secret:
            logger.debug(
                "token_not_found",
                key=key.name,
                has_token=bool(token),
                has_secret=bool(secret),
            )
            raise TokenNotFoundError(
                f"Token {key.name} not found in {self.directory}"
            )

        return TokenPair(token=token, secret=secret)

    def exists(self, key: TokenKey) -> bool:
        return self._token_path(key).is_file() and self._secret_path(key).is_file()

    def delete(self, key: TokenKey) -> bool:
        """Remove both files of the pair.

        Raises:
            CredentialsStorageError: If a file exists but cannot be removed
        """
        if not self.directory.is_dir():
            return False

        deleted = False
        try:
            with self._locked(key, exclusive=True):
                for path in (self._token_path(key), self._secret_path(key)):
                    try:
                        path.unlink()
                        deleted = True
                    except FileNotFoundError:
                        pass
                with contextlib.suppress(FileNotFoundError):
                    self._lock_path(key).unlink()
        except OSError as e:
            logger.error(
                "token_delete_error", path=str(self.directory), key=key.name, error=str(e)
            )
            raise CredentialsStorageError(
                f"Error deleting token {key.name} in {self.directory}: {e}"
            ) from e

        if deleted:
            logger.debug("token_store_delete", key=key.name, path=str(self.directory))
        return deleted

    def get_location(self, key: TokenKey | None = None) -> str:
        """Get the token directory, or the token file path for ``key``."""
        if key is None:
            return str(self.directory)
        return str(self._token_path(key))
