"""
Keychain integration for secure storage of the upload user key.
Uses the keyring library with the platform's default backend.
"""

import keyring
from keyring.errors import KeyringError
from typing import Optional

from .logger import get_logger

logger = get_logger(__name__)


class KeychainManager:
    """Stores upload user keys in the system keychain."""

    SERVICE_NAME = "WatchFolder Agent"
    USER_KEY_PREFIX = "user_key"

    def __init__(self):
        """Initialize keychain manager."""
        logger.debug(f"Using keyring backend: {keyring.get_keyring()}")

    def _account(self, user_id: str) -> str:
        return f"{self.USER_KEY_PREFIX}_{user_id}"

    def store_user_key(self, user_id: str, user_key: str) -> None:
        """Store the user key for an upload user.

        Raises:
            KeyringError: If the backend refuses the write
        """
        try:
            keyring.set_password(self.SERVICE_NAME, self._account(user_id), user_key)
            logger.info(f"User key stored for user: {user_id}")
        except KeyringError as e:
            logger.error(f"Failed to store user key: {e}")
            raise

    def get_user_key(self, user_id: str) -> Optional[str]:
        """Retrieve the user key for an upload user.

        Returns:
            User key or None if not found or the keychain is unavailable
        """
        try:
            user_key = keyring.get_password(self.SERVICE_NAME, self._account(user_id))
        except KeyringError as e:
            logger.error(f"Failed to retrieve user key: {e}")
            return None

        if not user_key:
            logger.warning(f"No user key found for user: {user_id}")
        return user_key
