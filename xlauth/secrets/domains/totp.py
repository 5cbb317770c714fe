"""TOTP code generation from a raw secret buffer."""
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional

import pyotp

from .codec import SecretBuffer
from .models import XlauthError

logger = logging.getLogger(__name__)

_DIGESTS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


class GeneratorError(XlauthError):
    """TOTP parameters could not be derived or a code could not be produced."""
    pass


@dataclass(frozen=True)
class TotpParameters:
    """RFC 6238 profile. Only the defaults are ever used."""
    step: int = 30
    digits: int = 6
    algorithm: str = "SHA1"

    @classmethod
    def for_secret(cls, secret: SecretBuffer) -> "TotpParameters":
        """
        Derive the generation profile for a secret.

        Raises:
            GeneratorError: If the secret is unusable or the profile is malformed
        """
        if secret.wiped:
            raise GeneratorError("TOTP secret has already been wiped")
        if len(secret) == 0:
            raise GeneratorError("TOTP secret is empty")

        params = cls()
        if params.step <= 0:
            raise GeneratorError(f"Invalid TOTP step: {params.step}")
        if not 6 <= params.digits <= 8:
            raise GeneratorError(f"Invalid TOTP digit count: {params.digits}")
        if params.algorithm not in _DIGESTS:
            raise GeneratorError(f"Unsupported TOTP algorithm: {params.algorithm}")
        return params

    def time_step(self, now: float) -> int:
        return int(now // self.step)


class _BufferTOTP(pyotp.TOTP):
    """pyotp.TOTP keyed straight from a SecretBuffer instead of base32 text."""

    def __init__(self, secret: SecretBuffer, params: TotpParameters):
        super().__init__(
            "",
            digits=params.digits,
            digest=_DIGESTS[params.algorithm],
            interval=params.step,
        )
        self._buffer = secret

    def byte_secret(self) -> bytes:
        # hmac accepts the bytearray directly, so no immutable copy is made
        return self._buffer.raw


def current_code(secret: SecretBuffer, now: Optional[float] = None) -> str:
    """
    Produce the code for the time step containing now.

    Args:
        secret: Raw secret bytes
        now: Unix timestamp, defaults to the current time

    Returns:
        Zero-padded numeric code

    Raises:
        GeneratorError: If parameters cannot be derived or generation fails
    """
    params = TotpParameters.for_secret(secret)
    if now is None:
        now = time.time()

    try:
        return _BufferTOTP(secret, params).generate_otp(params.time_step(now))
    except ValueError as e:
        raise GeneratorError(f"Failed to generate TOTP code: {e}") from e
