"""Tests for the send and launch workflows."""
import gc
import subprocess
import sys
import warnings
from unittest.mock import MagicMock, patch

import pyotp
import pytest

from xlauth.launcher.domains import delivery, process
from xlauth.launcher.domains.delivery import DeliveryTimeout, build_request
from xlauth.launcher.domains.process import LaunchError
from xlauth.launcher.workflows import launch_operations
from xlauth.secrets.domains.totp import GeneratorError, TotpParameters
from xlauth.secrets.domains.vault import VaultError
from xlauth.secrets.workflows.secret_operations import save_secret


@pytest.fixture
def saved_alt(memory_keyring):
    save_secret("alt", ["JBSWY3DPEHPK3PXP"])
    return memory_keyring


class TestSendCode:

    def test_sends_current_code(self, saved_alt, free_port, late_listener, buffer_spy):
        listener = late_listener(delay=0.2)

        with patch("time.time", return_value=1700000000):
            launch_operations.send_code("alt", 5, port=free_port)
        listener.join(5)

        expected = pyotp.TOTP("JBSWY3DPEHPK3PXP").at(1700000000)
        assert listener.connections == [build_request(expected)]
        assert buffer_spy.all_wiped()

    def test_timeout_wipes_secret(self, saved_alt, free_port, buffer_spy):
        with pytest.raises(DeliveryTimeout):
            launch_operations.send_code("alt", 0.2, port=free_port)
        assert len(buffer_spy.buffers) == 1
        assert buffer_spy.all_wiped()

    def test_missing_secret(self, memory_keyring, free_port):
        with patch.object(delivery, "deliver") as mock_deliver:
            with pytest.raises(VaultError):
                launch_operations.send_code("missing", 5, port=free_port)
        mock_deliver.assert_not_called()

    def test_generator_error_surfaces_and_wipes(self, saved_alt, buffer_spy):
        with patch.object(delivery, "deliver", side_effect=lambda factory, **kw: factory()), \
                patch("xlauth.secrets.domains.totp.current_code", side_effect=GeneratorError("bad")):
            with pytest.raises(GeneratorError):
                launch_operations.send_code("alt", 5)
        assert buffer_spy.all_wiped()

    def test_generator_error_before_waiting(self, saved_alt, buffer_spy):
        with patch.object(delivery, "deliver") as mock_deliver, \
                patch.object(TotpParameters, "for_secret", side_effect=GeneratorError("bad")):
            with pytest.raises(GeneratorError):
                launch_operations.send_code("alt", 5)
        mock_deliver.assert_not_called()
        assert buffer_spy.all_wiped()

    def test_code_not_generated_before_connect(self, saved_alt):
        with patch.object(delivery, "deliver") as mock_deliver, \
                patch("xlauth.secrets.domains.totp.current_code") as mock_code:
            launch_operations.send_code("alt", 5)
        mock_deliver.assert_called_once()
        mock_code.assert_not_called()


class TestLaunchAndSend:

    @patch.object(launch_operations, "send_code")
    @patch.object(process, "launch")
    def test_launches_then_sends(self, mock_launch: MagicMock, mock_send: MagicMock) -> None:
        order = []
        mock_launch.side_effect = lambda path: order.append("launch")
        mock_send.side_effect = lambda *a, **kw: order.append("send")

        launch_operations.launch_and_send("alt", 5, "/opt/xivlauncher")

        assert order == ["launch", "send"]
        mock_launch.assert_called_once_with("/opt/xivlauncher")

    @patch.object(launch_operations, "send_code")
    def test_launch_failure_skips_send(self, mock_send: MagicMock) -> None:
        with pytest.raises(LaunchError) as exc_info:
            launch_operations.launch_and_send("alt", 5, "/nonexistent/xivlauncher")
        assert "XIV Launcher failed to start" in str(exc_info.value)
        mock_send.assert_not_called()


class TestProcessLaunch:

    @patch("subprocess.Popen")
    def test_detached_without_stdio(self, mock_popen: MagicMock) -> None:
        process.launch("xivlauncher-core")
        args, kwargs = mock_popen.call_args
        assert args == (["xivlauncher-core"],)
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL
        if sys.platform != "win32":
            assert kwargs["start_new_session"] is True

    @patch("subprocess.Popen")
    def test_expands_environment(self, mock_popen: MagicMock, monkeypatch) -> None:
        monkeypatch.setenv("XL_HOME", "/opt/xl")
        process.launch("$XL_HOME/launcher")
        assert mock_popen.call_args[0][0] == ["/opt/xl/launcher"]

    def test_starts_real_process(self):
        assert process.launch(sys.executable) is None
        assert process._launched[-1].wait(10) == 0

    @pytest.mark.skipif(sys.platform == "win32", reason="uses a shell script as the launcher")
    def test_running_launcher_handle_is_kept(self, tmp_path):
        script = tmp_path / "xivlauncher"
        script.write_text("#!/bin/sh\nsleep 30\n")
        script.chmod(0o755)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            process.launch(str(script))
            gc.collect()

        child = process._launched[-1]
        try:
            assert child.poll() is None
            assert not [w for w in caught if issubclass(w.category, ResourceWarning)]
        finally:
            child.kill()
            child.wait(10)

    @patch("subprocess.Popen", side_effect=PermissionError(13, "Permission denied"))
    def test_spawn_failure(self, mock_popen: MagicMock) -> None:
        with pytest.raises(LaunchError) as exc_info:
            process.launch("/opt/xivlauncher")
        assert "Permission denied" in str(exc_info.value)
        mock_popen.assert_called_once()
