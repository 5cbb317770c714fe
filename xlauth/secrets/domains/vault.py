"""OS keyring wrapper holding encoded TOTP secrets."""
import enum
import logging

import keyring
from keyring.errors import KeyringError, KeyringLocked, PasswordDeleteError

from .models import VAULT_NAMESPACE, XlauthError

logger = logging.getLogger(__name__)


class VaultErrorKind(enum.Enum):
    NOT_FOUND = "not found"
    ACCESS_DENIED = "access denied"
    BACKEND = "backend failure"


class VaultError(XlauthError):
    """Keyring operation failed."""

    def __init__(self, message: str, kind: VaultErrorKind = VaultErrorKind.BACKEND):
        super().__init__(message)
        self.kind = kind


def _kind_for(error: KeyringError) -> VaultErrorKind:
    if isinstance(error, KeyringLocked):
        return VaultErrorKind.ACCESS_DENIED
    if isinstance(error, PasswordDeleteError):
        return VaultErrorKind.NOT_FOUND
    return VaultErrorKind.BACKEND


class SecretVault:
    """
    Save, load and delete named secrets in the OS credential store.

    Entries are keyed by (namespace, name). Each call is a single synchronous
    attempt against whatever backend ``keyring`` has selected.
    """

    def __init__(self, namespace: str = VAULT_NAMESPACE):
        self.namespace = namespace

    def save(self, name: str, encoded: str) -> None:
        """
        Store an encoded secret under name, replacing any existing entry.

        Raises:
            VaultError: If the backend rejects the write
        """
        try:
            keyring.set_password(self.namespace, name, encoded)
        except KeyringError as e:
            raise VaultError(f"TOTP secret was not saved: {e}", _kind_for(e)) from e
        logger.info(f"Saved TOTP secret \"{name}\" to keyring")

    def load(self, name: str) -> str:
        """
        Fetch the encoded secret stored under name.

        Raises:
            VaultError: NOT_FOUND if there is no entry, otherwise the backend failure
        """
        try:
            encoded = keyring.get_password(self.namespace, name)
        except KeyringError as e:
            raise VaultError(
                f"Failed to load TOTP secret \"{name}\" from keyring: {e}", _kind_for(e)
            ) from e

        if encoded is None:
            raise VaultError(
                f"Failed to load TOTP secret \"{name}\" from keyring: no entry found",
                VaultErrorKind.NOT_FOUND,
            )
        logger.debug(f"Loaded TOTP secret \"{name}\" from keyring")
        return encoded

    def delete(self, name: str) -> None:
        """
        Remove the entry stored under name.

        Raises:
            VaultError: NOT_FOUND if there is no entry, otherwise the backend failure
        """
        try:
            keyring.delete_password(self.namespace, name)
        except KeyringError as e:
            raise VaultError(
                f"TOTP secret \"{name}\" was not deleted: {e}", _kind_for(e)
            ) from e
        logger.info(f"Deleted TOTP secret \"{name}\" from keyring")
