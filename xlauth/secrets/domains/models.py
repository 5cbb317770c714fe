"""Shared constants and domain models for xlauth."""
import sys
from dataclasses import dataclass

APP_NAME = "xlauth"
VERSION = "0.1.0"

# Keyring service under which every named secret is stored
VAULT_NAMESPACE = APP_NAME

DEFAULT_NAME = "[default]"
DEFAULT_TIMEOUT = "60s"

if sys.platform == "win32":
    DEFAULT_EXE = "%LocalAppData%\\XIVLauncher\\XIVLauncher.exe"
else:
    DEFAULT_EXE = "xivlauncher-core"

# XIVLauncher's OTP listener
DELIVERY_HOST = "127.0.0.1"
DELIVERY_PORT = 4646


class XlauthError(Exception):
    """Base class for every error surfaced to the user."""
    pass


@dataclass
class Defaults:
    """Operation defaults after merging config file over built-in constants."""
    name: str = DEFAULT_NAME
    timeout: float = 60.0
    launcher_path: str = DEFAULT_EXE
