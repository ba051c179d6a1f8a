"""Tests for DeviceController."""

from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from relaycli.core.device_controller import REMOTE_DUMP_PATH, DeviceController


@pytest.fixture
def controller():
    """Create a DeviceController instance for testing."""
    return DeviceController("test-device-123")


class TestListDevices:
    def test_parses_adb_devices_output(self):
        output = (
            "List of devices attached\n"
            "emulator-5554          device product:sdk model:Pixel_7 device:emu\n"
            "R58M123ABC             unauthorized\n"
            "\n"
        )
        with patch("relaycli.core.device_controller.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout=output, returncode=0)
            devices = DeviceController.list_devices()

        assert devices == [
            {"id": "emulator-5554", "name": "Pixel 7", "status": "device"},
            {"id": "R58M123ABC", "name": "unknown", "status": "unauthorized"},
        ]

    def test_no_devices(self):
        with patch("relaycli.core.device_controller.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="List of devices attached\n\n")
            assert DeviceController.list_devices() == []


class TestInput:
    """Tests for tap, text and key input."""

    def test_tap_executes_adb_command(self, controller):
        with patch.object(controller, "_adb") as mock_adb:
            controller.tap(150, 250)

            mock_adb.assert_called_once_with(["shell", "input", "tap", "150", "250"])

    def test_tap_raises_on_negative_coordinates(self, controller):
        with patch.object(controller, "_adb") as mock_adb:
            with pytest.raises(ValueError, match="non-negative"):
                controller.tap(-1, 20)
            mock_adb.assert_not_called()

    def test_type_text_escapes_spaces_and_quotes(self, controller):
        with patch.object(controller, "_adb") as mock_adb:
            controller.type_text("it's a test")

            mock_adb.assert_called_once_with(["shell", "input", "text", "it\\'s%sa%stest"])

    def test_launch_app(self, controller):
        with patch.object(controller, "_adb") as mock_adb:
            controller.launch_app("com.tencent.mm")

            args = mock_adb.call_args[0][0]
            assert args[:4] == ["shell", "monkey", "-p", "com.tencent.mm"]


class TestDumpHierarchy:
    def test_dumps_pulls_and_cleans_up(self, controller):
        pulled = []

        def fake_adb(args):
            if args[0] == "pull":
                Path(args[2]).write_text("<hierarchy rotation=\"0\"/>", encoding="utf-8")
                pulled.append(Path(args[2]))
            return ""

        with patch.object(controller, "_adb", side_effect=fake_adb) as mock_adb:
            xml = controller.dump_hierarchy()

        assert xml == "<hierarchy rotation=\"0\"/>"
        assert mock_adb.call_args_list[0] == call(
            ["shell", "uiautomator", "dump", REMOTE_DUMP_PATH]
        )
        assert not pulled[0].exists()

    def test_dump_failure_propagates(self, controller):
        with patch.object(controller, "_adb", side_effect=RuntimeError("adb command failed")):
            with pytest.raises(RuntimeError):
                controller.dump_hierarchy()


class TestFocusedWindow:
    def test_parses_package_and_activity(self, controller):
        output = (
            "  mFocusedApp=null\n"
            "  mCurrentFocus=Window{3c4a1b2 u0 com.tencent.mm/com.tencent.mm.ui.LauncherUI}\n"
        )
        with patch.object(controller, "_adb", return_value=output):
            assert controller.get_focused_window() == (
                "com.tencent.mm",
                "com.tencent.mm.ui.LauncherUI",
            )

    def test_expands_relative_activity(self, controller):
        output = "mCurrentFocus=Window{1 u0 com.tencent.mm/.ui.chatting.ChattingUI}"
        with patch.object(controller, "_adb", return_value=output):
            assert controller.get_focused_window() == (
                "com.tencent.mm",
                "com.tencent.mm.ui.chatting.ChattingUI",
            )

    def test_unknown_focus(self, controller):
        with patch.object(controller, "_adb", return_value="mCurrentFocus=null\n"):
            assert controller.get_focused_window() == (None, None)


class TestAdb:
    def test_prefixes_device_id(self, controller):
        with patch("relaycli.core.device_controller.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="ok")
            assert controller._adb(["shell", "echo"]) == "ok"

            assert mock_run.call_args[0][0] == ["adb", "-s", "test-device-123", "shell", "echo"]

    def test_raises_on_failure(self, controller):
        with patch("relaycli.core.device_controller.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stderr="device offline")
            with pytest.raises(RuntimeError, match="device offline"):
                controller._adb(["shell", "echo"])
