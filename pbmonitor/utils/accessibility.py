"""
Accessibility permission utilities for progress indicator monitoring.
This module checks and requests the macOS Accessibility authorization.
"""

import logging

import AppKit
from HIServices import AXIsProcessTrusted, AXIsProcessTrustedWithOptions
from CoreFoundation import CFDictionaryCreate, kCFTypeDictionaryKeyCallBacks, kCFTypeDictionaryValueCallBacks

logger = logging.getLogger(__name__)

ACCESSIBILITY_SETTINGS_URL = "x-apple.systempreferences:com.apple.preference.security?Privacy_Accessibility"


def check_accessibility_permissions(show_prompt=False):
    """Check if accessibility permissions are granted.

    Args:
        show_prompt: Whether to display the permissions prompt if not granted

    Returns:
        bool: True if permissions are granted, False otherwise
    """
    options = None
    if show_prompt:
        options = CFDictionaryCreate(
            None,
            ["AXTrustedCheckOptionPrompt"], [True],
            1,
            kCFTypeDictionaryKeyCallBacks,
            kCFTypeDictionaryValueCallBacks
        )

    is_trusted = AXIsProcessTrustedWithOptions(options)

    if is_trusted:
        logger.info("Accessibility permissions are granted")
        return True

    if show_prompt:
        logger.info("Accessibility permissions prompt displayed")
    else:
        logger.warning("Accessibility permissions not granted")
        logger.info("**************************************************************")
        logger.info("* ACCESSIBILITY PERMISSIONS REQUIRED                          *")
        logger.info("* Go to System Settings > Privacy & Security >                *")
        logger.info("* Accessibility and add this application.                     *")
        logger.info("* Without this permission, progress bars cannot be detected.  *")
        logger.info("**************************************************************")
    return False


class AccessibilityPermissionGate:
    """PermissionGate backed by the macOS trust database."""

    def is_authorized(self) -> bool:
        return bool(AXIsProcessTrusted())

    def request_authorization(self):
        """Show the system prompt asking the user to grant access. Does not wait for an answer."""
        check_accessibility_permissions(show_prompt=True)

    def open_authorization_settings(self):
        url = AppKit.NSURL.URLWithString_(ACCESSIBILITY_SETTINGS_URL)
        if url is not None:
            AppKit.NSWorkspace.sharedWorkspace().openURL_(url)
