"""Device interaction via adb."""

from __future__ import annotations

import logging
import re
import subprocess
import tempfile
from pathlib import Path

logger = logging.getLogger("relay.device")

REMOTE_DUMP_PATH = "/sdcard/relay_ui_dump.xml"


class DeviceController:
    """Device interaction via adb commands."""

    def __init__(self, device_id: str):
        """Initialize controller for a specific device.

        Args:
            device_id: ADB device identifier
        """
        self._device_id = device_id

    @property
    def device_id(self) -> str:
        return self._device_id

    @staticmethod
    def list_devices() -> list[dict[str, str]]:
        """List connected Android devices.

        Returns:
            List of device dicts with id, name, status
        """
        result = subprocess.run(
            ["adb", "devices", "-l"],
            capture_output=True,
            text=True,
        )

        devices = []
        for line in result.stdout.strip().split("\n")[1:]:  # Skip header
            if not line.strip():
                continue

            parts = line.split()
            if len(parts) >= 2:
                device_id = parts[0]
                status = parts[1]

                # Extract device name from properties
                name = "unknown"
                model_match = re.search(r"model:(\S+)", line)
                if model_match:
                    name = model_match.group(1).replace("_", " ")

                devices.append({
                    "id": device_id,
                    "name": name,
                    "status": status,
                })

        return devices

    def tap(self, x: int, y: int) -> None:
        """Tap at coordinates.

        Args:
            x: X coordinate
            y: Y coordinate
        """
        if x < 0 or y < 0:
            raise ValueError(f"Coordinates must be non-negative: ({x}, {y})")
        self._adb(["shell", "input", "tap", str(x), str(y)])

    def type_text(self, text: str) -> None:
        """Type text into focused field.

        Args:
            text: Text to type
        """
        # Escape special characters for adb
        escaped = text.replace(" ", "%s").replace("'", "\\'").replace('"', '\\"')
        self._adb(["shell", "input", "text", escaped])

    def launch_app(self, package: str) -> None:
        """Launch an app by package name.

        Args:
            package: App package name (e.g., com.tencent.mm)
        """
        self._adb([
            "shell", "monkey", "-p", package,
            "-c", "android.intent.category.LAUNCHER", "1"
        ])

    def dump_hierarchy(self) -> str:
        """Dump the UI hierarchy via uiautomator.

        Returns:
            XML content of the dump
        """
        with tempfile.NamedTemporaryFile(suffix=".xml", delete=False) as tmp:
            local_path = Path(tmp.name)

        try:
            self._adb(["shell", "uiautomator", "dump", REMOTE_DUMP_PATH])
            self._adb(["pull", REMOTE_DUMP_PATH, str(local_path)])
            return local_path.read_text(encoding="utf-8")
        finally:
            local_path.unlink(missing_ok=True)

    def get_focused_window(self) -> tuple[str | None, str | None]:
        """Get the focused window's package and activity.

        Returns:
            (package, activity); either may be None if it cannot be determined.
        """
        output = self._adb(["shell", "dumpsys", "window", "windows"])

        for line in output.split("\n"):
            if "mCurrentFocus" not in line:
                continue
            # mCurrentFocus=Window{... u0 package/activity}
            for part in line.split():
                part = part.rstrip("}")
                if "/" in part:
                    package, activity = part.split("/", 1)
                    if activity.startswith("."):
                        activity = package + activity
                    return package, activity
                if "." in part and "=" not in part:
                    return part, None
        return None, None

    def _adb(self, args: list[str]) -> str:
        """Execute adb command.

        Args:
            args: Command arguments (without 'adb -s device')

        Returns:
            Command stdout
        """
        cmd = ["adb", "-s", self._device_id] + args
        result = subprocess.run(cmd, capture_output=True, text=True)

        if result.returncode != 0:
            raise RuntimeError(f"adb command failed: {result.stderr}")

        return result.stdout
