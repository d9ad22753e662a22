#!/usr/bin/env python3
"""
Tests for the macOS collaborators against the live system.
Skipped where PyObjC is not installed.
"""

import os

import pytest

pytest.importorskip("AppKit")
pytest.importorskip("ApplicationServices")

from pbmonitor.core.app_detection import WorkspaceProcessDirectory
from pbmonitor.core.elements import AXElementTreeAccessor
from pbmonitor.core.events import ProcessInfo
from pbmonitor.utils.accessibility import AccessibilityPermissionGate


@pytest.fixture(scope="module")
def directory():
    return WorkspaceProcessDirectory()


@pytest.fixture(scope="module")
def accessor():
    return AXElementTreeAccessor()


def test_list_processes(directory):
    processes = directory.list_processes()
    assert processes
    assert all(isinstance(p, ProcessInfo) for p in processes)
    assert any(p.is_regular_app for p in processes)


def test_lookup_unknown_pid(directory):
    # PIDs are bounded well below this on macOS
    assert directory.lookup(999999) is None


def test_lookup_matches_listing(directory):
    process = next(p for p in directory.list_processes() if p.is_regular_app)
    found = directory.lookup(process.process_id)
    assert found is not None
    assert found.display_name == process.display_name


def test_foreground_process(directory):
    process = directory.foreground_process()
    if process is None:
        pytest.skip("No frontmost application (headless session)")
    assert process.process_id > 0


def test_unknown_attribute_name(accessor):
    with pytest.raises(ValueError):
        accessor.attribute(accessor.root_element(os.getpid()), "title")


def test_root_element_of_own_process(accessor):
    if not AccessibilityPermissionGate().is_authorized():
        pytest.skip("Accessibility permission not granted")
    root = accessor.root_element(os.getpid())
    assert accessor.process_id(root) == os.getpid()
