"""
Tests for progress indicator classification and the debounce window.
"""

import logging

import pytest

from conftest import FakeElement, make_process
from pbmonitor.core.detection import DebounceWindow, ProgressIndicatorClassifier, UNKNOWN_APP
from pbmonitor.core.events import DetectionIdentity, DetectionRecord, SOURCE_NOTIFICATION, SOURCE_POLL


@pytest.fixture
def window(executor):
    return DebounceWindow(executor, 0.3)


@pytest.fixture
def classifier(accessor, directory, sink, window):
    return ProgressIndicatorClassifier(accessor, directory, sink, window)


def progress_bar(value=42, pid=100, **attributes):
    return FakeElement(role="AXProgressIndicator", pid=pid, value=value, minValue=0, maxValue=100, **attributes)


class TestDebounceWindow:
    def test_add_is_rejected_while_present(self, window):
        identity = DetectionIdentity(1, "AXProgressIndicator", "42")
        assert window.add(identity)
        assert not window.add(identity)
        assert identity in window

    def test_entry_expires_after_interval(self, executor, window):
        identity = DetectionIdentity(1, "AXProgressIndicator", "42")
        window.add(identity)

        executor.advance(0.29)
        assert identity in window

        executor.advance(0.02)
        assert identity not in window
        assert window.add(identity)

    def test_nothing_is_kept_without_a_running_executor(self, executor):
        executor.shutdown()
        window = DebounceWindow(executor, 0.3)
        identity = DetectionIdentity(1, "AXProgressIndicator", "42")

        assert window.add(identity)
        assert identity not in window
        assert window.add(identity)

    def test_clear_then_readd_ignores_stale_timer(self, executor, window):
        identity = DetectionIdentity(1, "AXProgressIndicator", "42")
        window.add(identity)
        executor.advance(0.2)

        window.clear()
        window.add(identity)
        # The first timer fires here but belongs to the cleared entry
        executor.advance(0.15)
        assert identity in window

        executor.advance(0.2)
        assert len(window) == 0


class TestClassify:
    def test_full_record(self, classifier, directory):
        directory.processes.append(make_process(100, "Installer"))
        record = classifier.classify(progress_bar(description="Copying files"))

        assert record.process_id == 100
        assert record.display_name == "Installer"
        assert record.role == "AXProgressIndicator"
        assert record.value == 42
        assert record.min_value == 0
        assert record.max_value == 100
        assert record.description == "Copying files"
        assert record.source == SOURCE_NOTIFICATION

    def test_non_progress_role_is_ignored(self, classifier, accessor):
        button = FakeElement(role="AXButton", pid=100, value=1)
        assert classifier.classify(button) is None
        # Only the role is read for elements that do not match
        assert accessor.reads_of(button) == ["role"]

    def test_missing_role_is_ignored(self, classifier):
        assert classifier.classify(FakeElement(pid=100)) is None

    def test_generic_role_token_is_accepted(self, classifier):
        record = classifier.classify(FakeElement(role="progressindicator", pid=100))
        assert record is not None
        assert record.role == "progressindicator"

    def test_absent_attributes_are_none(self, classifier):
        record = classifier.classify(FakeElement(role="AXProgressIndicator", pid=100))
        assert record.value is None
        assert record.min_value is None
        assert record.max_value is None
        assert record.description is None

    def test_unreadable_attribute_is_none(self, classifier, accessor):
        element = progress_bar()

        def attribute(el, name):
            if name == "value":
                raise RuntimeError("kAXErrorCannotComplete")
            return el.attributes.get(name)

        accessor.attribute = attribute
        record = classifier.classify(element)
        assert record.value is None
        assert record.max_value == 100

    def test_unknown_app_name(self, classifier):
        record = classifier.classify(progress_bar(pid=555))
        assert record.display_name == UNKNOWN_APP

    def test_missing_pid(self, classifier):
        record = classifier.classify(progress_bar(pid=None))
        assert record.process_id == -1
        assert record.display_name == UNKNOWN_APP

    def test_explicit_pid_and_role_are_used(self, classifier, accessor):
        element = progress_bar(pid=None)
        record = classifier.classify(element, process_id=7, role="AXProgressIndicator", source=SOURCE_POLL)
        assert record.process_id == 7
        assert record.source == SOURCE_POLL
        assert "role" not in accessor.reads_of(element)

    def test_custom_roles(self, accessor, directory, sink, window):
        classifier = ProgressIndicatorClassifier(accessor, directory, sink, window, progress_roles=["AXBusyIndicator"])
        assert classifier.classify(FakeElement(role="AXBusyIndicator", pid=1)) is not None
        assert classifier.classify(progress_bar()) is None


class TestEmit:
    def test_first_detection_reaches_sink(self, classifier, sink):
        record = classifier.handle_element(progress_bar())
        assert record is not None
        assert sink.records == [record]

    def test_repeat_within_interval_is_suppressed(self, classifier, sink, executor):
        classifier.handle_element(progress_bar())
        executor.advance(0.1)
        assert classifier.handle_element(progress_bar()) is None
        assert len(sink.records) == 1

    def test_repeat_after_interval_is_emitted(self, classifier, sink, executor):
        classifier.handle_element(progress_bar())
        executor.advance(0.31)
        assert classifier.handle_element(progress_bar()) is not None
        assert len(sink.records) == 2

    def test_different_value_is_not_suppressed(self, classifier, sink):
        classifier.handle_element(progress_bar(value=42))
        classifier.handle_element(progress_bar(value=43))
        assert [r.value for r in sink.records] == [42, 43]

    def test_missing_values_share_identity(self, classifier, sink):
        classifier.handle_element(FakeElement(role="AXProgressIndicator", pid=1))
        classifier.handle_element(FakeElement(role="AXProgressIndicator", pid=1))
        assert len(sink.records) == 1
        assert sink.records[0].identity() == DetectionIdentity(1, "AXProgressIndicator", "none")

    def test_sink_failure_is_isolated(self, accessor, directory, window, caplog):
        class BrokenSink:
            def emit(self, record):
                raise IOError("disk full")

        classifier = ProgressIndicatorClassifier(accessor, directory, BrokenSink(), window)
        with caplog.at_level(logging.ERROR):
            assert classifier.emit(DetectionRecord(1, "App", "AXProgressIndicator", value=5))
        assert "disk full" in caplog.text
        # The identity still occupies the window
        assert len(window) == 1
