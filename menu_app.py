#!/usr/bin/env python3
"""
menu bar app for the progress bar monitor.
"""
import subprocess
from pathlib import Path

import rumps

from pbmonitor.cli import build_sink, configure_logging, create_macos_monitor
from pbmonitor.core.config import MonitorConfig
from pbmonitor.utils.accessibility import AccessibilityPermissionGate

HOME = Path.home()
BASE_DIR = HOME / ".pbmonitor"
LOG_FILE = BASE_DIR / "pbmonitor.log"
DETECTIONS_FILE = BASE_DIR / "detections.jsonl"

BASE_DIR.mkdir(exist_ok=True)


class ProgressBarStatusApp(rumps.App):
    def __init__(self):
        super(ProgressBarStatusApp, self).__init__(
            name="Progress Bar Monitor",
            title="⏳",
            quit_button=None,
        )

        self.gate = AccessibilityPermissionGate()
        self.monitor = None

        self.status_display = rumps.MenuItem("Monitoring: Waiting...")
        self.status_display.set_callback(None)  # Make it non-clickable
        self.toggle_item = rumps.MenuItem("Start Monitoring", callback=self.toggle_monitoring)

        self.menu = [
            self.status_display,
            None,  # Separator
            self.toggle_item,
            rumps.MenuItem("Open Log", callback=self.open_log),
            rumps.MenuItem("Check Permissions", callback=self.check_permissions),
            None,  # Separator
            rumps.MenuItem("Quit Progress Bar Monitor", callback=self.quit),
        ]

        if self.gate.is_authorized():
            self.start_monitoring()
        else:
            print("Accessibility permission required")
            self.gate.request_authorization()
            self.status_display.title = "Monitoring: Waiting for permission"

    def start_monitoring(self):
        # A stopped monitor cannot be restarted, so every start gets a fresh one
        monitor = create_macos_monitor(MonitorConfig(), build_sink(str(DETECTIONS_FILE)))
        if not monitor.start():
            self.status_display.title = "Monitoring: Waiting for permission"
            return

        self.monitor = monitor
        self.status_display.title = "Monitoring: Active"
        self.toggle_item.title = "Stop Monitoring"
        self.title = "🎵"

    def stop_monitoring(self):
        if self.monitor:
            self.monitor.stop()
            self.monitor = None

        self.status_display.title = "Monitoring: Stopped"
        self.toggle_item.title = "Start Monitoring"
        self.title = "⏳"

    def toggle_monitoring(self, _):
        if self.monitor and self.monitor.running:
            self.stop_monitoring()
        else:
            self.start_monitoring()

    def open_log(self, _):
        subprocess.run(["open", str(LOG_FILE)])

    def check_permissions(self, _):
        if self.gate.is_authorized():
            rumps.alert(
                title="Accessibility Permission",
                message="Accessibility permission is granted.\n\n"
                        "Progress Bar Monitor can detect progress bars system-wide.",
            )
            return

        response = rumps.alert(
            title="Accessibility Permission",
            message="Accessibility permission is not granted.\n\n"
                    "Please enable it in:\nSystem Settings > Privacy & Security > Accessibility",
            ok="Open System Settings",
            cancel="OK",
        )
        if response == 1:
            self.gate.open_authorization_settings()

    def quit(self, _):
        self.stop_monitoring()
        rumps.quit_application()


if __name__ == "__main__":
    configure_logging(log_file=str(LOG_FILE))
    app = ProgressBarStatusApp()
    print(f"Progress Bar Monitor starting. Logs will be written to {LOG_FILE}")
    app.run()
