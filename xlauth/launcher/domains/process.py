"""Start XIV Launcher as a detached process."""
import logging
import os
import subprocess
import sys

from ...secrets.domains.models import XlauthError

logger = logging.getLogger(__name__)

# Handles of launched clients, held until this process exits so they are
# never collected while the client is still running
_launched = []


class LaunchError(XlauthError):
    """Launcher process could not be started."""
    pass


def resolve_path(path: str) -> str:
    """Expand ``~`` and environment variables (``%VAR%`` on Windows)."""
    return os.path.expanduser(os.path.expandvars(path))


def launch(path: str) -> None:
    """
    Start the executable at path without waiting for it.

    The child gets no stdio from us and runs in its own session, so it
    outlives this process.

    Raises:
        LaunchError: If the process could not be spawned
    """
    resolved = resolve_path(path)
    kwargs = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    try:
        process = subprocess.Popen([resolved], **kwargs)
    except (OSError, ValueError) as e:
        raise LaunchError(f"XIV Launcher failed to start: {e}") from e

    _launched.append(process)
    logger.info(f"Started XIV Launcher: {resolved} (pid {process.pid})")
