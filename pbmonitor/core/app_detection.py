"""
Application detection logic for progress indicator monitoring.
This module lists running applications, finds the frontmost one and reports
launches and terminations through NSWorkspace.
"""

import logging
from typing import List, Optional

import AppKit

from pbmonitor.core.detection import UNKNOWN_APP
from pbmonitor.core.events import ProcessInfo

logger = logging.getLogger(__name__)


def process_info_from_app(app) -> ProcessInfo:
    """Build a ProcessInfo snapshot from an NSRunningApplication."""
    return ProcessInfo(
        process_id=int(app.processIdentifier()),
        display_name=app.localizedName() or UNKNOWN_APP,
        is_regular_app=app.activationPolicy() == AppKit.NSApplicationActivationPolicyRegular,
    )


class WorkspaceProcessDirectory:
    """ProcessDirectory backed by NSWorkspace."""

    def __init__(self, workspace=None):
        self.workspace = workspace or AppKit.NSWorkspace.sharedWorkspace()
        self._observers = []

    def list_processes(self) -> List[ProcessInfo]:
        return [process_info_from_app(app) for app in self.workspace.runningApplications()]

    def foreground_process(self) -> Optional[ProcessInfo]:
        try:
            app = self.workspace.frontmostApplication()
        except Exception as e:
            logger.debug(f"NSWorkspace frontmostApplication failed: {e}")
            return None
        if app is None:
            return None
        return process_info_from_app(app)

    def lookup(self, process_id: int) -> Optional[ProcessInfo]:
        app = AppKit.NSRunningApplication.runningApplicationWithProcessIdentifier_(process_id)
        if app is None:
            return None
        return process_info_from_app(app)

    def watch(self, on_launch, on_terminate=None):
        """Call on_launch(ProcessInfo) / on_terminate(pid) for workspace app events.

        Notifications are delivered on the main operation queue.
        """
        center = self.workspace.notificationCenter()
        queue = AppKit.NSOperationQueue.mainQueue()

        def launched(notification):
            app = notification.userInfo().get(AppKit.NSWorkspaceApplicationKey)
            if app is not None:
                on_launch(process_info_from_app(app))

        self._observers.append(center.addObserverForName_object_queue_usingBlock_(
            AppKit.NSWorkspaceDidLaunchApplicationNotification, None, queue, launched
        ))

        if on_terminate is not None:
            def terminated(notification):
                app = notification.userInfo().get(AppKit.NSWorkspaceApplicationKey)
                if app is not None:
                    on_terminate(int(app.processIdentifier()))

            self._observers.append(center.addObserverForName_object_queue_usingBlock_(
                AppKit.NSWorkspaceDidTerminateApplicationNotification, None, queue, terminated
            ))

    def unwatch(self):
        center = self.workspace.notificationCenter()
        for observer in self._observers:
            center.removeObserver_(observer)
        self._observers = []
