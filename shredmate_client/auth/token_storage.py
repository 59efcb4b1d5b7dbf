"""
Token storage for the ShredMate API client.

This module provides the credential stores used by the token provider and the
auth service: an in-memory store for tests and ephemeral sessions, and a
secure store that uses the system keyring or an encrypted file as fallback.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any

import keyring
from keyring.errors import KeyringError, PasswordDeleteError
from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from shredmate_shared.exceptions import TokenStorageError
from shredmate_shared.interfaces import ITokenStore
from shredmate_shared.models import AuthTokens, User

logger = logging.getLogger(__name__)

TOKENS_KEY = "auth_tokens"
USER_KEY = "current_user"


class InMemoryTokenStore(ITokenStore):
    """Token store that keeps credentials in process memory only."""

    def __init__(self, tokens: Optional[AuthTokens] = None, user: Optional[User] = None):
        self._tokens = tokens
        self._user = user
        self._lock = asyncio.Lock()

    async def load_tokens(self) -> Optional[AuthTokens]:
        async with self._lock:
            return self._tokens

    async def save_tokens(self, tokens: AuthTokens) -> None:
        async with self._lock:
            self._tokens = tokens

    async def clear_tokens(self) -> None:
        async with self._lock:
            self._tokens = None

    async def load_user(self) -> Optional[User]:
        async with self._lock:
            return self._user

    async def save_user(self, user: User) -> None:
        async with self._lock:
            self._user = user

    async def clear_user(self) -> None:
        async with self._lock:
            self._user = None

    async def clear_all(self) -> None:
        async with self._lock:
            self._tokens = None
            self._user = None


class SecureTokenStore(ITokenStore):
    """
    Secure storage for authentication tokens and the cached user.

    Uses the system keyring when available, falls back to a Fernet-encrypted
    file under the XDG config directory. The file's key lives next to it and
    both files are created with 0600 permissions.
    """

    def __init__(
        self,
        service_name: str = "shredmate-client",
        backend: str = "auto",
        storage_dir: Optional[Path] = None
    ):
        if backend not in ("auto", "keyring", "file"):
            raise ValueError(f"Unknown token backend: {backend}")

        self.service_name = service_name
        self.keyring_available = backend != "file" and self._check_keyring_availability()
        if backend == "keyring" and not self.keyring_available:
            raise TokenStorageError(
                "System keyring requested but not available",
                context={'service_name': service_name}
            )

        self.storage_dir = storage_dir or self._get_storage_dir()
        self.storage_path = self.storage_dir / 'auth_tokens.enc'
        self.key_path = self.storage_dir / 'auth_tokens.key'

        self._encryption_key: Optional[bytes] = None
        self._lock = asyncio.Lock()

        logger.info(f"Token storage initialized (keyring: {self.keyring_available})")

    def _check_keyring_availability(self) -> bool:
        """Check if system keyring is available."""
        test_key = f"{self.service_name}_test"
        try:
            keyring.set_password(self.service_name, test_key, "test")
            result = keyring.get_password(self.service_name, test_key)
            keyring.delete_password(self.service_name, test_key)
            return result == "test"
        except (KeyringError, RuntimeError, OSError) as e:
            logger.debug(f"Keyring not available: {e}")
            return False

    def _get_storage_dir(self) -> Path:
        """Get directory for encrypted file storage."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            return Path(xdg_config) / 'shredmate'
        return Path.home() / '.config' / 'shredmate'

    # Encrypted file backend

    def _get_encryption_key(self) -> bytes:
        """Get or create the encryption key for file storage."""
        if self._encryption_key:
            return self._encryption_key

        if self.key_path.exists():
            self._encryption_key = self.key_path.read_bytes().strip()
            return self._encryption_key

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        key = Fernet.generate_key()
        self.key_path.write_bytes(key)
        os.chmod(self.key_path, 0o600)

        self._encryption_key = key
        return key

    def _read_file(self) -> Dict[str, Any]:
        if not self.storage_path.exists():
            return {}
        encrypted_data = self.storage_path.read_bytes()
        try:
            decrypted = Fernet(self._get_encryption_key()).decrypt(encrypted_data)
        except InvalidToken:
            logger.warning(f"Token file {self.storage_path} could not be decrypted, ignoring it")
            return {}
        return json.loads(decrypted.decode('utf-8'))

    def _write_file(self, data: Dict[str, Any]) -> None:
        if not data:
            if self.storage_path.exists():
                self.storage_path.unlink()
            return

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        encrypted = Fernet(self._get_encryption_key()).encrypt(json.dumps(data).encode('utf-8'))
        self.storage_path.write_bytes(encrypted)
        os.chmod(self.storage_path, 0o600)

    # Backend dispatch

    def _get_item(self, key: str) -> Optional[Dict[str, Any]]:
        if self.keyring_available:
            value = keyring.get_password(self.service_name, key)
            return json.loads(value) if value else None
        return self._read_file().get(key)

    def _set_item(self, key: str, value: Dict[str, Any]) -> None:
        if self.keyring_available:
            keyring.set_password(self.service_name, key, json.dumps(value))
            return
        data = self._read_file()
        data[key] = value
        self._write_file(data)

    def _delete_items(self, *keys: str) -> None:
        if self.keyring_available:
            for key in keys:
                try:
                    keyring.delete_password(self.service_name, key)
                except PasswordDeleteError:
                    pass
            return
        data = self._read_file()
        removed = [key for key in keys if data.pop(key, None) is not None]
        if removed:
            self._write_file(data)

    async def _run(self, operation: str, func, *args):
        async with self._lock:
            try:
                return await asyncio.to_thread(func, *args)
            except (KeyringError, OSError, ValueError) as e:
                logger.error(f"Failed to {operation}: {e}")
                raise TokenStorageError(f"Failed to {operation}: {e}", cause=e) from e

    # ITokenStore

    async def load_tokens(self) -> Optional[AuthTokens]:
        data = await self._run("load tokens", self._get_item, TOKENS_KEY)
        if not data:
            return None
        try:
            return AuthTokens.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Stored tokens are malformed, ignoring them: {e}")
            return None

    async def save_tokens(self, tokens: AuthTokens) -> None:
        await self._run("store tokens", self._set_item, TOKENS_KEY, tokens.to_dict())
        logger.info("Tokens stored securely")

    async def clear_tokens(self) -> None:
        await self._run("remove tokens", self._delete_items, TOKENS_KEY)

    async def load_user(self) -> Optional[User]:
        data = await self._run("load user", self._get_item, USER_KEY)
        if not data:
            return None
        try:
            return User.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Stored user is malformed, ignoring it: {e}")
            return None

    async def save_user(self, user: User) -> None:
        await self._run("store user", self._set_item, USER_KEY, user.model_dump(mode='json'))

    async def clear_user(self) -> None:
        await self._run("remove user", self._delete_items, USER_KEY)

    async def clear_all(self) -> None:
        await self._run("remove credentials", self._delete_items, TOKENS_KEY, USER_KEY)
        logger.info("Stored credentials cleared")
