"""
Progress indicator classification and debouncing.
This module decides whether an element is a progress indicator, turns it into
a DetectionRecord and suppresses repeats of the same detection for a short
window before handing records to the sink.
"""

import itertools
import logging
from typing import Dict, Iterable, Optional

from pbmonitor.core.events import DetectionIdentity, DetectionRecord, SOURCE_NOTIFICATION
from pbmonitor.core.interfaces import (
    DetectionSink,
    ElementTreeAccessor,
    ProcessDirectory,
    ATTR_DESCRIPTION,
    ATTR_MAX_VALUE,
    ATTR_MIN_VALUE,
    ATTR_ROLE,
    ATTR_VALUE,
)
from pbmonitor.utils.values import clean_text, normalize_attribute_value

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_ROLES = ("AXProgressIndicator", "progressindicator")
DEFAULT_DEBOUNCE_INTERVAL = 0.3
UNKNOWN_APP = "Unknown"


class DebounceWindow:
    """Recently emitted identities, each removed by a one-shot timer after `interval` seconds.

    Must only be used from the executor's thread; expirations are posted back
    to the same executor.
    """

    def __init__(self, executor, interval: float = DEFAULT_DEBOUNCE_INTERVAL):
        self.executor = executor
        self.interval = interval
        self._entries: Dict[DetectionIdentity, int] = {}
        self._tokens = itertools.count()

    def __contains__(self, identity):
        return identity in self._entries

    def __len__(self):
        return len(self._entries)

    def add(self, identity: DetectionIdentity) -> bool:
        """Insert identity unless present. Returns False if it was already in the window.

        The identity is only kept when its expiry could be scheduled; with the
        executor shut down nothing is remembered.
        """
        if identity in self._entries:
            return False

        token = next(self._tokens)
        if self.executor.call_later(self.interval, self._expire, identity, token) is not None:
            self._entries[identity] = token
        return True

    def _expire(self, identity, token):
        # A cleared and re-added identity carries a newer token
        if self._entries.get(identity) == token:
            del self._entries[identity]

    def clear(self):
        self._entries.clear()


class ProgressIndicatorClassifier:
    """Classifies elements and emits debounced detection records."""

    def __init__(self, accessor: ElementTreeAccessor, directory: ProcessDirectory, sink: DetectionSink,
                 window: DebounceWindow,
                 progress_roles: Iterable[str] = DEFAULT_PROGRESS_ROLES):
        """Initialize the classifier.

        Args:
            accessor: ElementTreeAccessor used to read element attributes
            directory: ProcessDirectory used to resolve display names
            sink: DetectionSink receiving records that pass the debounce window
            window: DebounceWindow shared by both detection paths
            progress_roles: Role strings that mark a progress indicator
        """
        self.accessor = accessor
        self.directory = directory
        self.sink = sink
        self.window = window
        self.progress_roles = frozenset(progress_roles)

    def is_progress_role(self, role) -> bool:
        return bool(role) and role in self.progress_roles

    def _read(self, element, name):
        try:
            return self.accessor.attribute(element, name)
        except Exception as e:
            logger.debug(f"Attribute {name} unavailable: {e}")
            return None

    def read_role(self, element) -> Optional[str]:
        """Read and clean the role of an element, or None if it has none."""
        return clean_text(self._read(element, ATTR_ROLE)) or None

    def _display_name(self, process_id) -> str:
        if process_id is None:
            return UNKNOWN_APP
        try:
            info = self.directory.lookup(process_id)
        except Exception as e:
            logger.debug(f"Could not resolve app for PID {process_id}: {e}")
            return UNKNOWN_APP
        if info is None or not info.display_name:
            return UNKNOWN_APP
        return info.display_name

    def classify(self, element, process_id: Optional[int] = None, role: Optional[str] = None,
                 source: str = SOURCE_NOTIFICATION) -> Optional[DetectionRecord]:
        """Build a DetectionRecord if the element is a progress indicator.

        Args:
            element: Element handle to inspect
            process_id: Owning process, read from the element when not given
            role: Role already read by the caller, read from the element when not given
            source: Which detection path found the element

        Returns:
            DetectionRecord, or None if the element is not a progress indicator
        """
        if role is None:
            role = self.read_role(element)
        if not self.is_progress_role(role):
            return None

        if process_id is None:
            try:
                process_id = self.accessor.process_id(element)
            except Exception as e:
                logger.debug(f"Could not read PID of element: {e}")

        description = normalize_attribute_value(self._read(element, ATTR_DESCRIPTION))
        return DetectionRecord(
            process_id=process_id if process_id is not None else -1,
            display_name=self._display_name(process_id),
            role=role,
            value=normalize_attribute_value(self._read(element, ATTR_VALUE)),
            min_value=normalize_attribute_value(self._read(element, ATTR_MIN_VALUE)),
            max_value=normalize_attribute_value(self._read(element, ATTR_MAX_VALUE)),
            description=None if description is None else str(description),
            source=source,
        )

    def identity_for(self, record: DetectionRecord) -> DetectionIdentity:
        return record.identity()

    def emit(self, record: DetectionRecord, identity: Optional[DetectionIdentity] = None) -> bool:
        """Forward record to the sink unless its identity is inside the debounce window.

        Returns:
            bool: True if the record reached the sink
        """
        if identity is None:
            identity = self.identity_for(record)

        if not self.window.add(identity):
            logger.debug(f"Suppressed duplicate detection {identity}")
            return False

        try:
            self.sink.emit(record)
        except Exception as e:
            logger.error(f"Error in detection sink: {e}")
        return True

    def handle_element(self, element, process_id: Optional[int] = None, role: Optional[str] = None,
                       source: str = SOURCE_NOTIFICATION) -> Optional[DetectionRecord]:
        """Classify an element and emit it. Shared intake for both detection paths.

        Returns:
            The record if one reached the sink, None otherwise
        """
        record = self.classify(element, process_id=process_id, role=role, source=source)
        if record is None:
            return None
        if self.emit(record):
            return record
        return None
