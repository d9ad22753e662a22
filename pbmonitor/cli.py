"""
Command line interface for progress indicator monitoring.
Provides the command line entry point for the progress bar monitor.
"""

import os
import sys
import logging
import argparse
from logging.handlers import RotatingFileHandler

from pbmonitor.core.config import MonitorConfig
from pbmonitor.core.event_handling import CompositeSink, JsonLinesSink, LoggingSink
from pbmonitor.core.monitor import ProgressBarMonitor

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Engine options copied from the parsed arguments into MonitorConfig
CONFIG_OPTIONS = (
    "polling_interval",
    "debounce_interval",
    "max_children",
    "max_depth",
    "progress_roles",
    "notification",
    "poll_enabled",
    "notifications_enabled",
)


def setup_argparse():
    """Set up command line argument parsing."""
    parser = argparse.ArgumentParser(
        prog="pbmonitor",
        description="Progress bar monitor - detect progress indicators in every running macOS app",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Engine options default to SUPPRESS so that a --config file is only overridden explicitly
    engine = parser.add_argument_group("detection")
    engine.add_argument(
        "--config",
        type=str,
        help="JSON file with monitor settings; command line options override it"
    )
    engine.add_argument(
        "--polling-interval",
        type=float,
        default=argparse.SUPPRESS,
        help="Seconds between scans of the frontmost app (default: 1.0)"
    )
    engine.add_argument(
        "--debounce-interval",
        type=float,
        default=argparse.SUPPRESS,
        help="Seconds during which an identical detection is suppressed (default: 0.3)"
    )
    engine.add_argument(
        "--max-children",
        type=int,
        default=argparse.SUPPRESS,
        help="Skip elements with more children than this while scanning (default: 100)"
    )
    engine.add_argument(
        "--max-depth",
        type=int,
        default=argparse.SUPPRESS,
        help="Maximum element depth searched while scanning (default: 64)"
    )
    engine.add_argument(
        "--role",
        dest="progress_roles",
        action="append",
        default=argparse.SUPPRESS,
        help="Accessibility role treated as a progress indicator; repeat for several"
    )
    engine.add_argument(
        "--notification",
        type=str,
        default=argparse.SUPPRESS,
        help="Accessibility notification to subscribe to (default: AXCreated)"
    )
    engine.add_argument(
        "--no-poll",
        dest="poll_enabled",
        action="store_false",
        default=argparse.SUPPRESS,
        help="Disable periodic scanning of the frontmost app"
    )
    engine.add_argument(
        "--no-notifications",
        dest="notifications_enabled",
        action="store_false",
        default=argparse.SUPPRESS,
        help="Disable accessibility notification subscriptions"
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--output-file",
        type=str,
        help="Path to file where detections should be saved as JSON lines"
    )
    output.add_argument(
        "--log-file",
        type=str,
        help="Path to a log file where all log messages will be saved"
    )
    output.add_argument(
        "--log-file-size",
        type=int,
        default=5 * 1024 * 1024,
        help="Maximum size in bytes of the log file before rotating"
    )
    output.add_argument(
        "--log-file-backups",
        type=int,
        default=3,
        help="Number of rotated log files to keep"
    )
    output.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    output.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce logging to warnings and errors only"
    )

    permissions = parser.add_argument_group("permissions")
    permissions.add_argument(
        "--check-permissions",
        action="store_true",
        help="Only report whether Accessibility permission is granted"
    )
    permissions.add_argument(
        "--prompt",
        action="store_true",
        help="Show the system Accessibility prompt if permission is missing"
    )
    permissions.add_argument(
        "--open-settings",
        action="store_true",
        help="Open the Accessibility pane of System Settings if permission is missing"
    )

    return parser


def configure_logging(debug=False, quiet=False, log_file=None,
                      log_file_size=5 * 1024 * 1024, log_file_backups=3):
    """Configure the root logger with a console handler and an optional rotating file handler."""
    log_level = logging.DEBUG if debug else (logging.WARNING if quiet else logging.INFO)

    # First reset root handlers in case basicConfig was called elsewhere
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_formatter = logging.Formatter(LOG_FORMAT)
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=log_file_size,
            backupCount=log_file_backups,
            encoding='utf-8'
        )
        file_handler.setFormatter(log_formatter)
        # Detections are logged at INFO, keep them in the file even with --quiet
        file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        root_logger.addHandler(file_handler)

    return log_level


def build_config(args) -> MonitorConfig:
    """Build the MonitorConfig from parsed arguments and an optional config file."""
    overrides = {name: getattr(args, name) for name in CONFIG_OPTIONS if hasattr(args, name)}
    if getattr(args, "config", None):
        return MonitorConfig.from_file(args.config, overrides)
    return MonitorConfig(**overrides)


def build_sink(output_file=None):
    """Detections always go to the log; optionally also to a JSON lines file."""
    sinks = [LoggingSink()]
    if output_file:
        sinks.append(JsonLinesSink(output_file))
    return CompositeSink(sinks)


def create_macos_monitor(config: MonitorConfig, sink):
    """Build a ProgressBarMonitor wired to the macOS Accessibility collaborators."""
    # PyObjC is only needed once we actually talk to the OS
    from pbmonitor.core.app_detection import WorkspaceProcessDirectory
    from pbmonitor.core.elements import AXElementTreeAccessor
    from pbmonitor.utils.accessibility import AccessibilityPermissionGate

    return ProgressBarMonitor(
        permission_gate=AccessibilityPermissionGate(),
        directory=WorkspaceProcessDirectory(),
        accessor=AXElementTreeAccessor(),
        sink=sink,
        config=config,
    )


def main(argv=None):
    """Main entry point for the progress bar monitor."""
    parser = setup_argparse()
    args = parser.parse_args(argv)

    configure_logging(args.debug, args.quiet, args.log_file, args.log_file_size, args.log_file_backups)

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    from PyObjCTools import AppHelper
    from pbmonitor.utils.accessibility import AccessibilityPermissionGate

    gate = AccessibilityPermissionGate()
    if args.check_permissions:
        authorized = gate.is_authorized()
        print(f"Accessibility permission: {'granted' if authorized else 'not granted'}")
        return 0 if authorized else 1

    if not gate.is_authorized():
        if args.prompt:
            gate.request_authorization()
        if args.open_settings:
            gate.open_authorization_settings()
        logger.error("Accessibility permission is required. Grant it and run pbmonitor again.")
        return 1

    monitor = create_macos_monitor(config, build_sink(args.output_file))
    if not monitor.start():
        return 1

    print("Progress bar monitor running. Press Ctrl+C to stop.")
    if args.output_file:
        print(f"- Detections will be saved as JSON lines to: {os.path.abspath(args.output_file)}")
    if args.log_file:
        print(f"- Log messages will be saved to: {os.path.abspath(args.log_file)}")

    try:
        # Observer callbacks and workspace notifications are delivered on the main run loop
        AppHelper.runConsoleEventLoop(installInterrupt=True)
    except KeyboardInterrupt:
        print("Stopping progress bar monitor...")
    finally:
        monitor.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
