"""macOS progress indicator monitoring package."""

# Import the main classes to make them available at the package level
from pbmonitor.core.config import MonitorConfig
from pbmonitor.core.monitor import ProgressBarMonitor, MonitorState
from pbmonitor.core.events import DetectionRecord, ProcessInfo

# Make the main function available at the package level
from pbmonitor.cli import main
