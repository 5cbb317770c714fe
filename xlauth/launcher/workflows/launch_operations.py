"""Workflows that send a TOTP code to XIV Launcher, optionally starting it first."""
import logging
from typing import Optional

from ...secrets.domains import totp
from ...secrets.domains.models import DELIVERY_HOST, DELIVERY_PORT
from ...secrets.domains.vault import SecretVault
from ...secrets.workflows.secret_operations import load_secret
from ..domains import delivery, process

logger = logging.getLogger(__name__)


def send_code(
    name: str,
    timeout: float,
    vault: Optional[SecretVault] = None,
    host: str = DELIVERY_HOST,
    port: int = DELIVERY_PORT,
) -> None:
    """
    Send the current code for the named secret once the launcher is listening.

    The code is generated only after the connection is up, so the full time
    step is left for the launcher to use it. The decoded secret is wiped
    before returning, whether delivery succeeded or not.

    Raises:
        VaultError: If the secret cannot be loaded
        InvalidSecret: If the stored secret is corrupted
        GeneratorError: If no code could be produced
        DeliveryError: On timeout (DeliveryTimeout) or a failed write
    """
    with load_secret(name, vault) as secret:
        # Fail before waiting on the launcher if no code can be produced
        totp.TotpParameters.for_secret(secret)
        logger.debug(f"Sending code for \"{name}\" to {host}:{port} (timeout {timeout}s)")
        delivery.deliver(lambda: totp.current_code(secret), timeout=timeout, host=host, port=port)


def launch_and_send(
    name: str,
    timeout: float,
    path: str,
    vault: Optional[SecretVault] = None,
    host: str = DELIVERY_HOST,
    port: int = DELIVERY_PORT,
) -> None:
    """
    Start XIV Launcher, then send it a code.

    Raises:
        LaunchError: If the launcher could not be started; nothing is sent
        Everything send_code raises
    """
    process.launch(path)
    send_code(name, timeout, vault=vault, host=host, port=port)
