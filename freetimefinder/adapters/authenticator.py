"""
Schedule service authentication with a token cache in the OS keyring.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import keyring
import requests
from keyring.errors import KeyringError, PasswordDeleteError

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


KEYRING_SERVICE_NAME = "freetimefinder"


class ApiAuthenticator:
    """
    Handles login against the schedule service and caches the bearer token.

    The token is kept in the OS keyring. When no keyring backend works, it
    falls back to a plaintext file readable only by the current user.
    """

    def __init__(
        self,
        base_url: str,
        cache_file: Path | None = None,
        timeout: float = 30
    ):
        """
        Initialize the authenticator.

        Args:
            base_url: Service root, e.g. "https://example.org/api"
            cache_file: Optional path to the fallback token cache file
            timeout: Login request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_file = cache_file or Path.home() / ".freetimefinder_token_cache.json"
        self._key_identifier = self.base_url
        self._keyring_supported = True
        self._cache_backend = "keyring"
        self._insecure_storage_warning: Optional[str] = None

    @property
    def cache_backend(self) -> str:
        """Return the active cache backend (keyring or file)."""
        return self._cache_backend

    @property
    def insecure_storage_warning(self) -> Optional[str]:
        """Provide a warning message when the cache falls back to plaintext storage."""
        return self._insecure_storage_warning

    def _load_cached_token(self) -> Optional[str]:
        serialized = self._load_cache_from_keyring()
        if serialized is None:
            serialized = self._load_cache_from_file()

        if not serialized:
            return None

        try:
            return json.loads(serialized)["token"]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not deserialize token cache: %s", exc)
            return None

    def _load_cache_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_cache_from_file(self) -> Optional[str]:
        if self.cache_file.exists():
            try:
                with open(self.cache_file, "r", encoding="utf-8") as file_handle:
                    return file_handle.read()
            except OSError as exc:
                logger.warning("Could not load token cache file %s: %s", self.cache_file, exc)
        return None

    def _save_token(self, email: str, token: str) -> None:
        """Save the token to the configured backend."""
        serialized = json.dumps({"email": email, "token": token})

        if self._keyring_supported and self._save_cache_to_keyring(serialized):
            return

        self._save_cache_to_file(serialized)

    def _save_cache_to_keyring(self, serialized: str) -> bool:
        try:
            keyring.set_password(
                KEYRING_SERVICE_NAME,
                self._key_identifier,
                serialized,
            )
            self._cache_backend = "keyring"
            return True
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_cache_to_file(self, serialized: str) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as file_handle:
                file_handle.write(serialized)
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save token cache to %s: %s", self.cache_file, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext cache.",
                reason,
            )
        self._keyring_supported = False
        self._cache_backend = "file"
        if not self._insecure_storage_warning:
            self._insecure_storage_warning = (
                f"Secure credential storage unavailable ({reason}). "
                f"Falling back to plaintext cache at {self.cache_file}."
            )

    def get_access_token(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        force_refresh: bool = False
    ) -> str:
        """
        Get a valid access token, using the cache or logging in.

        Args:
            email: Account email, required when no cached token exists
            password: Account password, required when no cached token exists
            force_refresh: Log in even if a cached token exists

        Returns:
            Access token string

        Raises:
            AuthenticationError: If no token is cached and login fails
        """
        if not force_refresh:
            token = self._load_cached_token()
            if token:
                return token

        if not email or not password:
            raise AuthenticationError(
                "Not logged in. Run 'freetimefinder login' first."
            )

        return self.login(email, password)

    def login(self, email: str, password: str) -> str:
        """
        Exchange credentials for a bearer token and cache it.

        Raises:
            AuthenticationError: If the service rejects the credentials
        """
        url = f"{self.base_url}/auth/login"

        try:
            response = requests.post(
                url,
                json={"email": email, "password": password},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise AuthenticationError(f"Login request failed: {exc}") from exc

        if response.status_code in (400, 401, 403):
            raise AuthenticationError("Login rejected: invalid email or password")

        try:
            response.raise_for_status()
            token = response.json()["token"]
        except requests.exceptions.HTTPError as exc:
            raise AuthenticationError(f"Login failed: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError("Login response did not contain a token") from exc

        self._save_token(email, token)
        logger.info("Logged in as %s", email)
        return token

    def clear_cache(self) -> None:
        """Clear the token cache (force a new login next time)."""
        if self.cache_file.exists():
            self.cache_file.unlink()
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except PasswordDeleteError:
            logger.debug("No credentials stored in keyring for %s", self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.warning("Could not remove credentials from keyring: %s", exc)
