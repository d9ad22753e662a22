"""
Element access for progress indicator monitoring.
This module wraps the macOS Accessibility API: attribute reads on AXUIElements
and AXObserver notification subscriptions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ApplicationServices import (
    AXObserverAddNotification,
    AXObserverCreate,
    AXObserverGetRunLoopSource,
    AXObserverRemoveNotification,
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    AXUIElementGetPid,
    kAXErrorSuccess,
)
from CoreFoundation import (
    CFRunLoopAddSource,
    CFRunLoopGetMain,
    CFRunLoopRemoveSource,
    kCFRunLoopDefaultMode,
)

from pbmonitor.core.errors import SubscriptionError
from pbmonitor.core.interfaces import (
    ATTR_CHILDREN,
    ATTR_DESCRIPTION,
    ATTR_MAX_VALUE,
    ATTR_MIN_VALUE,
    ATTR_ROLE,
    ATTR_VALUE,
)

logger = logging.getLogger(__name__)

AX_ATTRIBUTE_NAMES = {
    ATTR_ROLE: "AXRole",
    ATTR_VALUE: "AXValue",
    ATTR_MIN_VALUE: "AXMinValue",
    ATTR_MAX_VALUE: "AXMaxValue",
    ATTR_DESCRIPTION: "AXDescription",
    ATTR_CHILDREN: "AXChildren",
}


class ThreadSafeAXUIElement:
    """Thin wrapper for reading attributes of an AXUIElement."""

    def __init__(self, ax_ui_element):
        """Initialize with an AXUIElement object."""
        self.element = ax_ui_element

    def get_attribute(self, attribute_name):
        """Get an attribute value from the element, None if it is unavailable."""
        err, value = AXUIElementCopyAttributeValue(self.element, attribute_name, None)
        if err != kAXErrorSuccess:
            return None
        return value

    def get_pid(self) -> Optional[int]:
        """Get the process identifier of the application owning the element."""
        err, pid = AXUIElementGetPid(self.element, None)
        if err != kAXErrorSuccess:
            return None
        return pid


@dataclass
class AXSubscriptionHandle:
    """Everything needed to undo one AXObserver registration."""
    process_id: int
    observer: Any
    app_element: Any
    notification: str
    source: Any
    callback: Callable  # kept alive for as long as the observer exists


class AXElementTreeAccessor:
    """ElementTreeAccessor backed by the macOS Accessibility API.

    Element handles are raw AXUIElementRefs. Observer run loop sources are
    attached to the main run loop, which the caller must keep running
    (rumps app loop or AppHelper.runConsoleEventLoop).
    """

    def __init__(self, run_loop=None):
        self.run_loop = run_loop or CFRunLoopGetMain()

    def root_element(self, process_id: int):
        return AXUIElementCreateApplication(process_id)

    def attribute(self, element, name: str):
        ax_name = AX_ATTRIBUTE_NAMES.get(name)
        if ax_name is None:
            raise ValueError(f"Unknown element attribute: {name}")

        value = ThreadSafeAXUIElement(element).get_attribute(ax_name)
        if name == ATTR_CHILDREN and value is not None:
            return list(value)
        return value

    def process_id(self, element) -> Optional[int]:
        return ThreadSafeAXUIElement(element).get_pid()

    def subscribe(self, process_id: int, event_name: str, handler) -> AXSubscriptionHandle:
        """Register handler for event_name notifications from one application.

        Args:
            process_id: Process to observe
            event_name: Accessibility notification name, e.g. "AXCreated"
            handler: Called as handler(process_id, element) on the run loop thread

        Returns:
            AXSubscriptionHandle to pass to unsubscribe()

        Raises:
            SubscriptionError: if the observer cannot be created or registered
        """
        def observer_callback(observer, element, notification, refcon):
            pid = ThreadSafeAXUIElement(element).get_pid()
            logger.debug(f"Notification '{notification}' from PID {pid or process_id}")
            handler(pid or process_id, element)

        err, observer = AXObserverCreate(process_id, observer_callback, None)
        if err != kAXErrorSuccess or observer is None:
            raise SubscriptionError(process_id, f"AXObserverCreate failed with error: {err}", err)

        app_element = AXUIElementCreateApplication(process_id)
        err = AXObserverAddNotification(observer, app_element, event_name, None)
        if err != kAXErrorSuccess:
            raise SubscriptionError(process_id, f"AXObserverAddNotification failed with error: {err}", err)

        source = AXObserverGetRunLoopSource(observer)
        CFRunLoopAddSource(self.run_loop, source, kCFRunLoopDefaultMode)
        return AXSubscriptionHandle(process_id, observer, app_element, event_name, source, observer_callback)

    def unsubscribe(self, handle: AXSubscriptionHandle):
        err = AXObserverRemoveNotification(handle.observer, handle.app_element, handle.notification)
        if err != kAXErrorSuccess:
            # The process is usually gone already
            logger.debug(f"AXObserverRemoveNotification for PID {handle.process_id} returned {err}")
        CFRunLoopRemoveSource(self.run_loop, handle.source, kCFRunLoopDefaultMode)
