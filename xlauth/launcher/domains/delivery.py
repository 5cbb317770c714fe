"""Deliver a TOTP code to XIVLauncher's local OTP listener.

The launcher opens its listener some time after it starts, so delivery polls
the port until a connection succeeds or the deadline passes. Connection
refused is the normal state while the launcher boots and is retried almost
immediately; a connect timeout means the deadline has been used up.
"""
import logging
import socket
import time
from typing import Callable

from ...secrets.domains.durations import format_duration
from ...secrets.domains.models import (
    APP_NAME,
    DELIVERY_HOST,
    DELIVERY_PORT,
    VERSION,
    XlauthError,
)

logger = logging.getLogger(__name__)

RETRY_BACKOFF = 0.001


class DeliveryError(XlauthError):
    """Code could not be written to the listener."""
    pass


class DeliveryTimeout(DeliveryError):
    """No listener accepted a connection before the deadline."""

    def __init__(self, timeout: float):
        super().__init__(f"connection attempt timed out after {format_duration(timeout)}")
        self.timeout = timeout


def build_request(code: str) -> bytes:
    """Format the single request that carries a code."""
    return (
        f"GET /ffxivlauncher/{code} HTTP/1.0\r\n"
        f"Host: localhost\r\n"
        f"User-Agent: {APP_NAME}/{VERSION}\r\n"
        f"Content-Length: 0\r\n"
        f"\r\n"
    ).encode("ascii")


def deliver(
    code_factory: Callable[[], str],
    timeout: float = 60.0,
    host: str = DELIVERY_HOST,
    port: int = DELIVERY_PORT,
) -> None:
    """
    Connect to the listener, retrying until timeout, then send one code.

    Args:
        code_factory: Called exactly once, right after the connection is
            established, to produce the code to send
        timeout: Overall deadline in seconds, measured from this call
        host: Listener address
        port: Listener port

    Raises:
        DeliveryTimeout: If no connection succeeded before the deadline
        DeliveryError: If the request could not be written
    """
    start = time.monotonic()
    attempts = 0

    while True:
        elapsed = time.monotonic() - start
        if elapsed >= timeout:
            break
        remaining = timeout - elapsed
        attempts += 1

        try:
            sock = socket.create_connection((host, port), timeout=remaining)
        except (socket.timeout, TimeoutError):
            logger.debug(f"Connect to {host}:{port} timed out after {attempts} attempt(s)")
            break
        except OSError as e:
            if attempts == 1:
                logger.info(f"Waiting for XIV Launcher on {host}:{port} ({e})")
            time.sleep(RETRY_BACKOFF)
            continue

        with sock:
            logger.debug(f"Connected to {host}:{port} after {attempts} attempt(s)")
            request = build_request(code_factory())
            try:
                sock.sendall(request)
            except OSError as e:
                raise DeliveryError(f"Failed to send TOTP code to {host}:{port}: {e}") from e
        logger.info("TOTP code sent to XIV Launcher")
        return

    raise DeliveryTimeout(timeout)
