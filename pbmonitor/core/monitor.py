"""
Main monitor class for progress indicator monitoring.
This module provides the ProgressBarMonitor class that wires the notification
and polling detection paths together and owns the monitoring lifecycle.
"""

import enum
import logging
import threading
from typing import Callable, Optional

from pbmonitor.core.config import MonitorConfig
from pbmonitor.core.detection import DebounceWindow, ProgressIndicatorClassifier
from pbmonitor.core.event_handling import CallbackSink, CompositeSink
from pbmonitor.core.events import DetectionRecord
from pbmonitor.core.executor import SerialExecutor
from pbmonitor.core.interfaces import DetectionSink, ElementTreeAccessor, PermissionGate, ProcessDirectory
from pbmonitor.core.poller import Poller
from pbmonitor.core.subscriptions import SubscriptionManager
from pbmonitor.core.ui_traversal import TreeSearch

logger = logging.getLogger(__name__)


class MonitorState(enum.Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPED = "stopped"


class ProgressBarMonitor:
    """Service that detects progress indicators in every regular application."""

    def __init__(self, permission_gate: PermissionGate, directory: ProcessDirectory,
                 accessor: ElementTreeAccessor, sink: DetectionSink,
                 config: Optional[MonitorConfig] = None, executor=None):
        """Initialize the monitor.

        Args:
            permission_gate: PermissionGate consulted by start()
            directory: ProcessDirectory listing apps and reporting launches
            accessor: ElementTreeAccessor for element attributes and notifications
            sink: DetectionSink receiving every detection
            config: Engine tunables, defaults when omitted
            executor: Serial execution context, a new SerialExecutor when omitted
        """
        self.config = config or MonitorConfig()
        self.permission_gate = permission_gate
        self.directory = directory
        self.accessor = accessor
        self.executor = executor or SerialExecutor()

        self.callbacks = CallbackSink()
        self.sink = CompositeSink([sink, self.callbacks])

        self.window = DebounceWindow(self.executor, self.config.debounce_interval)
        self.classifier = ProgressIndicatorClassifier(
            accessor, directory, self.sink, self.window,
            progress_roles=self.config.progress_roles
        )
        self.tree_search = TreeSearch(
            accessor, self.classifier,
            max_children=self.config.max_children,
            max_depth=self.config.max_depth
        )
        self.subscriptions = SubscriptionManager(
            accessor, directory, self.classifier, self.executor,
            notification=self.config.notification
        )
        self.poller = Poller(
            directory, accessor, self.tree_search, self.executor,
            interval=self.config.polling_interval
        )

        self._state = MonitorState.IDLE
        self._lock = threading.RLock()

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is MonitorState.ACTIVE

    def add_callback(self, callback: Callable[[DetectionRecord], None]):
        """Add a callback to be called for every detection that passes the debounce window."""
        self.callbacks.add(callback)

    def start(self) -> bool:
        """Start monitoring.

        Returns:
            bool: True if monitoring is active, False if permission is missing
            or the monitor has already been stopped
        """
        with self._lock:
            if self._state is MonitorState.ACTIVE:
                logger.warning("Progress bar monitor is already running")
                return True
            if self._state is MonitorState.STOPPED:
                logger.warning("Progress bar monitor was stopped; create a new monitor to restart")
                return False

            if not self.permission_gate.is_authorized():
                logger.warning("Cannot start monitoring - no Accessibility permission")
                return False

            logger.info("Starting progress bar monitoring...")
            self._state = MonitorState.STARTING
            self.executor.start()
            try:
                self.executor.run_sync(self._start_detection)
            except Exception as e:
                logger.error(f"Error starting progress bar monitor: {e}")
                self.executor.run_sync(self._teardown)
                self.executor.shutdown()
                self._state = MonitorState.IDLE
                return False
            self._state = MonitorState.ACTIVE

        logger.info("Progress bar monitor started")
        return True

    def _start_detection(self):
        if self.config.notifications_enabled:
            count = self.subscriptions.start()
            logger.info(f"Monitoring {count} running applications")
        if self.config.poll_enabled:
            self.poller.start()

    def _teardown(self):
        self.poller.stop()
        self.subscriptions.stop()
        self.window.clear()

    def stop(self):
        """Stop monitoring. Safe to call more than once and from any thread."""
        with self._lock:
            if self._state is MonitorState.STOPPED:
                return
            was_started = self._state is not MonitorState.IDLE
            self._state = MonitorState.STOPPED

        if not was_started:
            return

        logger.info("Stopping progress bar monitoring...")
        # Interrupt a traversal in flight before waiting for the executor
        self.tree_search.cancel()
        try:
            self.executor.run_sync(self._teardown, timeout=5.0)
        except Exception as e:
            logger.error(f"Error stopping progress bar monitor: {e}")
        self.executor.shutdown()
        logger.info("Progress bar monitor stopped")

    def status(self) -> dict:
        """Get a snapshot of the monitor state as a dictionary."""
        return {
            "state": self._state.value,
            "monitored_pids": self.subscriptions.monitored_process_ids(),
            "polling": self.poller.running,
            "poll_ticks": self.poller.tick_count,
            "debounced": len(self.window),
        }
