"""
Exceptions for progress indicator monitoring.
"""


class MonitorError(Exception):
    """Base class for monitor errors."""


class SubscriptionError(MonitorError):
    """Raised when a notification subscription cannot be registered for a process."""

    def __init__(self, process_id, message, error_code=None):
        super().__init__(f"PID {process_id}: {message}")
        self.process_id = process_id
        self.error_code = error_code
