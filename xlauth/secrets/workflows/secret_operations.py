"""Workflow for saving, deleting and loading named TOTP secrets."""
import logging
from typing import List, Optional

from ..domains import codec
from ..domains.codec import SecretBuffer
from ..domains.vault import SecretVault

logger = logging.getLogger(__name__)


def save_secret(name: str, tokens: List[str], vault: Optional[SecretVault] = None) -> None:
    """
    Validate a secret and store it in the keyring under name.

    Args:
        name: Secret name
        tokens: Secret text, possibly split across several arguments. Emptied
            once the secret has been validated.
        vault: Keyring adapter (default namespace if not provided)

    Raises:
        InvalidSecret: If the secret is malformed
        VaultError: If the keyring rejects the write
    """
    vault = vault or SecretVault()
    with codec.validate(tokens) as secret:
        vault.save(name, codec.to_storage_form(secret))


def delete_secret(name: str, vault: Optional[SecretVault] = None) -> None:
    vault = vault or SecretVault()
    vault.delete(name)


def load_secret(name: str, vault: Optional[SecretVault] = None) -> SecretBuffer:
    """
    Load and decode the secret stored under name.

    The caller owns the returned buffer and must wipe it, normally by using
    it as a context manager.

    Raises:
        VaultError: If the secret cannot be read from the keyring
        InvalidSecret: If the stored value is corrupted
    """
    vault = vault or SecretVault()
    encoded = vault.load(name)
    try:
        return codec.from_storage_form(encoded)
    finally:
        del encoded
