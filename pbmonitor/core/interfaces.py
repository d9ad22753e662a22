"""
Collaborator interfaces for the detection engine.
The engine only talks to the operating system through these protocols, so the
macOS implementations can be swapped for fakes in tests.
"""

from typing import Any, Callable, List, Optional, Protocol

from pbmonitor.core.events import DetectionRecord, ProcessInfo

# Attribute names understood by ElementTreeAccessor.attribute()
ATTR_ROLE = "role"
ATTR_VALUE = "value"
ATTR_MIN_VALUE = "minValue"
ATTR_MAX_VALUE = "maxValue"
ATTR_DESCRIPTION = "description"
ATTR_CHILDREN = "children"

# Handler signature for element notifications: (process_id, element)
NotificationHandler = Callable[[int, Any], None]
ProcessHandler = Callable[[ProcessInfo], None]
TerminationHandler = Callable[[int], None]


class PermissionGate(Protocol):
    """Reports and requests the accessibility authorization."""

    def is_authorized(self) -> bool:
        ...

    def request_authorization(self) -> None:
        ...

    def open_authorization_settings(self) -> None:
        ...


class ProcessDirectory(Protocol):
    """Enumerates running applications and reports launches."""

    def list_processes(self) -> List[ProcessInfo]:
        ...

    def foreground_process(self) -> Optional[ProcessInfo]:
        ...

    def lookup(self, process_id: int) -> Optional[ProcessInfo]:
        ...

    def watch(self, on_launch: ProcessHandler, on_terminate: Optional[TerminationHandler] = None) -> None:
        ...

    def unwatch(self) -> None:
        ...


class ElementTreeAccessor(Protocol):
    """Reads a process's UI element hierarchy and delivers element notifications."""

    def root_element(self, process_id: int) -> Optional[Any]:
        ...

    def attribute(self, element: Any, name: str) -> Optional[Any]:
        ...

    def process_id(self, element: Any) -> Optional[int]:
        ...

    def subscribe(self, process_id: int, event_name: str, handler: NotificationHandler) -> Any:
        ...

    def unsubscribe(self, handle: Any) -> None:
        ...


class DetectionSink(Protocol):
    """Consumes detection records."""

    def emit(self, record: DetectionRecord) -> None:
        ...
