"""
Shared fixtures and fakes for the progress bar monitor tests.
"""

import os
import sys
import time
from concurrent.futures import Future

import pytest

# Add the repository root to the Python path to import pbmonitor modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pbmonitor.core.errors import SubscriptionError
from pbmonitor.core.events import ProcessInfo


class FakeElement:
    """Stand-in for an AXUIElement."""

    def __init__(self, role=None, pid=None, children=None, name="", **attributes):
        self.name = name
        self.pid = pid
        self.attributes = dict(attributes)
        if role is not None:
            self.attributes["role"] = role
        self.children = list(children or [])

    def __repr__(self):
        return f"FakeElement({self.name or self.attributes.get('role')})"


class FakeHandle:
    def __init__(self, process_id, event_name, handler):
        self.process_id = process_id
        self.event_name = event_name
        self.handler = handler


class FakeAccessor:
    """ElementTreeAccessor over FakeElement trees, recording every attribute read."""

    def __init__(self):
        self.roots = {}
        self.reads = []
        self.handles = {}
        self.unsubscribed = []
        self.failing_pids = set()
        self.subscribe_calls = 0

    def root_element(self, process_id):
        return self.roots.get(process_id)

    def attribute(self, element, name):
        self.reads.append((element, name))
        if name == "children":
            return list(element.children)
        return element.attributes.get(name)

    def process_id(self, element):
        return element.pid

    def subscribe(self, process_id, event_name, handler):
        self.subscribe_calls += 1
        if process_id in self.failing_pids:
            raise SubscriptionError(process_id, "AXObserverCreate failed with error: -25211", -25211)
        handle = FakeHandle(process_id, event_name, handler)
        self.handles[process_id] = handle
        return handle

    def unsubscribe(self, handle):
        self.unsubscribed.append(handle.process_id)
        self.handles.pop(handle.process_id, None)

    def notify(self, process_id, element):
        """Deliver a notification the way the run loop callback would."""
        self.handles[process_id].handler(process_id, element)

    def reads_of(self, element):
        return [name for read_element, name in self.reads if read_element is element]


class FakeDirectory:
    """ProcessDirectory with a scripted process list."""

    def __init__(self, processes=()):
        self.processes = list(processes)
        self.foreground = None
        self.on_launch = None
        self.on_terminate = None
        self.unwatch_calls = 0

    def list_processes(self):
        return list(self.processes)

    def foreground_process(self):
        return self.foreground

    def lookup(self, process_id):
        for process in self.processes:
            if process.process_id == process_id:
                return process
        return None

    def watch(self, on_launch, on_terminate=None):
        self.on_launch = on_launch
        self.on_terminate = on_terminate

    def unwatch(self):
        self.unwatch_calls += 1
        self.on_launch = None
        self.on_terminate = None

    def launch(self, process):
        self.processes.append(process)
        if self.on_launch:
            self.on_launch(process)

    def terminate(self, process_id):
        self.processes = [p for p in self.processes if p.process_id != process_id]
        if self.on_terminate:
            self.on_terminate(process_id)


class FakePermissionGate:
    def __init__(self, authorized=True):
        self.authorized = authorized
        self.requests = 0
        self.settings_opened = 0

    def is_authorized(self):
        return self.authorized

    def request_authorization(self):
        self.requests += 1

    def open_authorization_settings(self):
        self.settings_opened += 1


class RecordingSink:
    def __init__(self):
        self.records = []

    def emit(self, record):
        self.records.append(record)


class ManualTimer:
    def __init__(self, due, fn, args):
        self.due = due
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualExecutor:
    """Executor that runs work inline and fires timers only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.running = False
        self.timers = []

    def start(self):
        self.running = True

    def in_executor_thread(self):
        return True

    def submit(self, fn, *args, **kwargs):
        future = Future()
        if not self.running:
            future.cancel()
            return future
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def call_later(self, delay, fn, *args):
        if not self.running:
            return None
        timer = ManualTimer(self.now + delay, fn, args)
        self.timers.append(timer)
        return timer

    def run_sync(self, fn, *args, timeout=None):
        return fn(*args)

    @property
    def pending_timers(self):
        return len([t for t in self.timers if not t.cancelled])

    def advance(self, seconds):
        """Move the clock forward, firing due timers in order (including ones they schedule)."""
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = timer.due
            self.submit(timer.fn, *timer.args)
        self.now = target

    def shutdown(self, wait=True, timeout=1.0):
        self.running = False
        for timer in self.timers:
            timer.cancel()
        self.timers = []


def wait_until(predicate, timeout=2.0, interval=0.01):
    """Poll predicate until it is true or timeout seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_process(pid, name=None, regular=True):
    return ProcessInfo(process_id=pid, display_name=name or f"App{pid}", is_regular_app=regular)


@pytest.fixture
def executor():
    executor = ManualExecutor()
    executor.start()
    return executor


@pytest.fixture
def accessor():
    return FakeAccessor()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def permission_gate():
    return FakePermissionGate()
