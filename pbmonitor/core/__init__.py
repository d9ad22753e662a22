"""Core detection engine for progress indicator monitoring.

The macOS collaborators (app_detection, elements) import PyObjC and are not
imported here.
"""

from pbmonitor.core.monitor import ProgressBarMonitor, MonitorState
from pbmonitor.core.config import MonitorConfig
from pbmonitor.core.events import DetectionRecord, DetectionIdentity, ProcessInfo, Subscription
from pbmonitor.core.errors import MonitorError, SubscriptionError
from pbmonitor.core.executor import SerialExecutor
from pbmonitor.core.detection import DebounceWindow, ProgressIndicatorClassifier
from pbmonitor.core.ui_traversal import TreeSearch
from pbmonitor.core.subscriptions import SubscriptionManager
from pbmonitor.core.poller import Poller
from pbmonitor.core.event_handling import LoggingSink, JsonLinesSink, CallbackSink, CompositeSink
