"""Parsing, validation and storage encoding of TOTP shared secrets.

Raw secret bytes only ever live inside a ``SecretBuffer``: a mutable
``bytearray`` that is overwritten with zeros as soon as the holder is done
with it. Python strings are immutable, so the textual forms cannot be
scrubbed; they are dropped as early as possible instead.
"""
import base64
import binascii
import logging
from typing import List

from .models import XlauthError

logger = logging.getLogger(__name__)


class InvalidSecret(XlauthError):
    """Malformed secret input or corrupted stored value."""
    pass


class SecretBuffer:
    """Zeroizable container for raw secret bytes."""

    def __init__(self, data):
        self._buf = bytearray(data)
        self._wiped = False

    @property
    def raw(self) -> bytearray:
        """Live view of the secret bytes. Do not keep references around."""
        if self._wiped:
            raise ValueError("secret buffer has been wiped")
        return self._buf

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Overwrite the secret bytes with zeros in place."""
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return len(self._buf)

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{len(self._buf)} bytes"
        return f"<SecretBuffer {state}>"


def _decode(text: str) -> SecretBuffer:
    """
    Decode base32 text into a SecretBuffer.

    Lowercase input is accepted. Missing trailing padding is restored, but
    padding that is present must be well formed.

    Raises:
        InvalidSecret: If the text is not valid base32 or decodes to nothing
    """
    if "=" not in text:
        text += "=" * (-len(text) % 8)

    try:
        decoded = base64.b32decode(text, casefold=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecret(f"TOTP secret is invalid: {e}") from None

    try:
        if not decoded:
            raise InvalidSecret("TOTP secret is invalid: secret is empty")
        return SecretBuffer(decoded)
    finally:
        del decoded


def validate(tokens: List[str]) -> SecretBuffer:
    """
    Validate a secret that may have been split across several arguments.

    Args:
        tokens: Text tokens making up the secret. Whitespace anywhere inside
            or between them is ignored.

    Returns:
        SecretBuffer holding the decoded secret

    Raises:
        InvalidSecret: If the joined text is not a valid base32 secret

    Side effects:
        On success the token list is overwritten and emptied so it no longer
        references the plaintext secret.
    """
    joined = "".join("".join(token.split()) for token in tokens)
    secret = _decode(joined)
    del joined

    for i in range(len(tokens)):
        tokens[i] = ""
    tokens.clear()

    logger.debug(f"Validated TOTP secret ({len(secret)} bytes)")
    return secret


def to_storage_form(secret: SecretBuffer) -> str:
    """Encode raw secret bytes as unpadded uppercase base32."""
    return base64.b32encode(secret.raw).decode("ascii").rstrip("=")


def from_storage_form(text: str) -> SecretBuffer:
    """
    Decode a stored secret.

    Raises:
        InvalidSecret: If the stored value is corrupted
    """
    return _decode("".join(text.split()))
