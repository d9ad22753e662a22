"""
Event handling logic for progress indicator monitoring.
This module provides the sinks that consume detection records.
"""

import os
import json
import logging
import threading
from typing import Callable, Iterable, List, Optional

from pbmonitor.core.events import DetectionRecord

logger = logging.getLogger(__name__)

DETECTION_LOGGER = "pbmonitor.detections"


def _format_attribute(value):
    return "nil" if value is None else str(value)


def format_detection(record: DetectionRecord) -> str:
    """Render a record as the multi-line block written to the log."""
    rule = "━" * 42
    return "\n".join([
        "PROGRESS BAR DETECTED!",
        rule,
        f"App:         {record.display_name}",
        f"PID:         {record.process_id}",
        f"Role:        {record.role}",
        f"Value:       {_format_attribute(record.value)}",
        f"Min:         {_format_attribute(record.min_value)}",
        f"Max:         {_format_attribute(record.max_value)}",
        f"Description: {_format_attribute(record.description)}",
        f"Source:      {record.source}",
        rule,
    ])


class LoggingSink:
    """Writes each detection to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logging.getLogger(DETECTION_LOGGER)
        self.level = level

    def emit(self, record: DetectionRecord):
        self.log.log(self.level, "\n" + format_detection(record))


class JsonLinesSink:
    """Appends each detection to a file as one JSON object per line."""

    def __init__(self, output_file: str):
        self.output_file = output_file
        self._lock = threading.Lock()
        output_dir = os.path.dirname(os.path.abspath(output_file))
        os.makedirs(output_dir, exist_ok=True)

    def emit(self, record: DetectionRecord):
        line = json.dumps(record.to_dict(), default=str)
        try:
            with self._lock:
                with open(self.output_file, 'a') as f:
                    f.write(line + "\n")
        except Exception as e:
            logger.error(f"Error writing to output file: {e}")


class CallbackSink:
    """Calls registered callbacks with each detection."""

    def __init__(self, callbacks: Iterable[Callable[[DetectionRecord], None]] = ()):
        self.callbacks: List[Callable[[DetectionRecord], None]] = list(callbacks)

    def add(self, callback: Callable[[DetectionRecord], None]):
        self.callbacks.append(callback)

    def emit(self, record: DetectionRecord):
        for callback in list(self.callbacks):
            try:
                callback(record)
            except Exception as e:
                logger.error(f"Error in detection callback: {e}")


class CompositeSink:
    """Fans a detection out to several sinks. A failing sink does not stop the others."""

    def __init__(self, sinks: Iterable):
        self.sinks = [sink for sink in sinks if sink is not None]

    def emit(self, record: DetectionRecord):
        for sink in self.sinks:
            try:
                sink.emit(record)
            except Exception as e:
                logger.error(f"Error in {type(sink).__name__}: {e}")
