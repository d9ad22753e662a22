"""
Per-process accessibility notification subscriptions.
"""

import logging
from typing import Dict, List

from pbmonitor.core.errors import SubscriptionError
from pbmonitor.core.events import ProcessInfo, Subscription, SOURCE_NOTIFICATION
from pbmonitor.core.interfaces import ElementTreeAccessor, NotificationHandler, ProcessDirectory

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION = "AXCreated"


class SubscriptionManager:
    """Owns one notification subscription per monitored process.

    Every method except the notification handler returned by
    `_make_handler` expects to run on the monitor's serial executor.
    Raw notifications arrive on the run loop thread and are handed to the
    executor before they touch anything shared.
    """

    def __init__(self, accessor: ElementTreeAccessor, directory: ProcessDirectory, classifier, executor,
                 notification: str = DEFAULT_NOTIFICATION):
        self.accessor = accessor
        self.directory = directory
        self.classifier = classifier
        self.executor = executor
        self.notification = notification
        self.subscriptions: Dict[int, Subscription] = {}
        self.watching = False
        self.stopped = False

    def _make_handler(self, process_id) -> NotificationHandler:
        """Build the callback registered with the accessor for one process."""
        def handler(source_pid, element):
            # source_pid comes from the OS and may be missing; the subscription knows its owner
            self.executor.submit(self.on_notification, source_pid or process_id, element)
        return handler

    def on_process_appeared(self, process: ProcessInfo) -> bool:
        """Subscribe to a process if it is a regular app that is not yet monitored.

        Returns:
            bool: True if a new subscription was created
        """
        if self.stopped:
            logger.debug(f"Not monitoring {process}: subscriptions were torn down")
            return False

        if not process.is_regular_app:
            logger.debug(f"Skipping non-regular app: {process}")
            return False

        if process.process_id in self.subscriptions:
            return False

        try:
            handle = self.accessor.subscribe(process.process_id, self.notification,
                                             self._make_handler(process.process_id))
        except SubscriptionError as e:
            logger.warning(f"Failed to monitor {process.display_name}: {e}")
            return False

        self.subscriptions[process.process_id] = Subscription(process.process_id, handle)
        logger.info(f"Monitoring: {process}")
        return True

    def on_process_disappeared(self, process_id: int) -> bool:
        """Retire the subscription of a process that has exited."""
        subscription = self.subscriptions.pop(process_id, None)
        if subscription is None:
            return False

        self._unsubscribe(subscription)
        logger.info(f"Stopped monitoring PID {process_id}")
        return True

    def on_notification(self, process_id, element):
        """Forward a notified element to the classifier's intake."""
        if process_id not in self.subscriptions:
            logger.debug(f"Ignoring notification from unmonitored PID {process_id}")
            return None
        return self.classifier.handle_element(element, process_id=process_id, source=SOURCE_NOTIFICATION)

    def subscribe_running(self) -> int:
        """Subscribe to every eligible running process.

        Returns:
            int: Number of new subscriptions
        """
        processes = self.directory.list_processes()
        logger.info(f"Found {len(processes)} running applications")
        return sum(1 for process in processes if self.on_process_appeared(process))

    def start(self) -> int:
        """Register the launch feed and subscribe to every eligible running process.

        Returns:
            int: Number of new subscriptions
        """
        self.stopped = False
        self.watch_launches()
        return self.subscribe_running()

    def watch_launches(self):
        """Register for launch and termination events from the process directory."""
        if self.watching:
            return

        def on_launch(process):
            logger.info(f"App launched: {process}")
            self.executor.submit(self.on_process_appeared, process)

        def on_terminate(process_id):
            self.executor.submit(self.on_process_disappeared, process_id)

        self.directory.watch(on_launch, on_terminate)
        self.watching = True

    def monitored_process_ids(self) -> List[int]:
        return sorted(self.subscriptions)

    def _unsubscribe(self, subscription):
        try:
            self.accessor.unsubscribe(subscription.observer_handle)
        except Exception as e:
            logger.warning(f"Error removing observer for PID {subscription.process_id}: {e}")

    def stop(self):
        """Tear down every subscription and the launch feed. Safe to call repeatedly."""
        self.stopped = True
        if self.watching:
            try:
                self.directory.unwatch()
            except Exception as e:
                logger.warning(f"Error removing workspace observer: {e}")
            self.watching = False

        subscriptions = list(self.subscriptions.values())
        self.subscriptions.clear()
        for subscription in subscriptions:
            self._unsubscribe(subscription)

        if subscriptions:
            logger.info(f"Removed {len(subscriptions)} accessibility observers")
