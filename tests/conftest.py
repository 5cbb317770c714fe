"""Shared fixtures: isolated home directory, in-memory keyring, free ports."""
import socket
import threading
import time
from pathlib import Path
from unittest.mock import patch

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from xlauth.secrets.domains import codec, preferences


class MemoryKeyring(KeyringBackend):
    """Keyring backend keeping entries in a dict."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found")


@pytest.fixture
def memory_keyring():
    """Route all keyring calls to a fresh in-memory backend."""
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "xlauth"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home


@pytest.fixture
def free_port():
    """
    A loopback port with nothing listening on it.

    The port stays bound (but not listening) for the whole test so the kernel
    never hands it out as a client port, which would let a connect to it
    succeed against itself. Listeners bind it again with SO_REUSEADDR.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("127.0.0.1", 0))
        yield s.getsockname()[1]


class LateListener(threading.Thread):
    """Binds a port after a delay and records everything sent to it."""

    def __init__(self, port, delay):
        super().__init__(daemon=True)
        self.port = port
        self.delay = delay
        self.connections = []
        self.listening = threading.Event()
        self.ready = threading.Event()

    def run(self):
        time.sleep(self.delay)
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server.bind(("127.0.0.1", self.port))
            self.listening.set()
            server.listen(5)
            server.settimeout(5)
            self.ready.set()
            conn, _ = server.accept()
            with conn:
                chunks = []
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
                self.connections.append(b"".join(chunks))


@pytest.fixture
def late_listener(free_port):
    """Start a listener on free_port after the given delay."""
    listeners = []

    def start(delay=0.0):
        listener = LateListener(free_port, delay)
        listener.start()
        listeners.append(listener)
        return listener

    yield start
    for listener in listeners:
        listener.join(5)


class BufferSpy:
    """Records every SecretBuffer the codec hands out."""

    def __init__(self):
        self.buffers = []
        self.raws = []

    def wrap(self, func):
        def wrapper(*args, **kwargs):
            buffer = func(*args, **kwargs)
            self.buffers.append(buffer)
            self.raws.append(buffer.raw)
            return buffer
        return wrapper

    def all_wiped(self):
        return all(b.wiped for b in self.buffers) and all(not any(raw) for raw in self.raws)


@pytest.fixture
def buffer_spy():
    spy = BufferSpy()
    with patch.object(codec, "validate", spy.wrap(codec.validate)), \
            patch.object(codec, "from_storage_form", spy.wrap(codec.from_storage_form)):
        yield spy
