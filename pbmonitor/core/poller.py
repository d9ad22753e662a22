"""
Periodic scan of the frontmost application for progress indicators.
"""

import logging

from pbmonitor.core.events import SOURCE_POLL
from pbmonitor.core.interfaces import ElementTreeAccessor, ProcessDirectory

logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL = 1.0


class Poller:
    """Runs a TreeSearch over the foreground process on a fixed interval.

    Ticks run on the serial executor and the next tick is only scheduled once
    the current traversal has finished, so a slow traversal delays the
    following tick instead of overlapping with it.
    """

    def __init__(self, directory: ProcessDirectory, accessor: ElementTreeAccessor, tree_search, executor,
                 interval: float = DEFAULT_POLLING_INTERVAL):
        self.directory = directory
        self.accessor = accessor
        self.tree_search = tree_search
        self.executor = executor
        self.interval = interval
        self.running = False
        self.tick_count = 0
        self._timer = None

    def start(self):
        """Start polling."""
        if self.running:
            logger.warning("Poller is already running")
            return

        self.running = True
        self.tree_search.reset()
        logger.info(f"Starting polling timer (checking every {self.interval}s)")
        self._schedule()

    def _schedule(self):
        if self.running:
            self._timer = self.executor.call_later(self.interval, self._tick)

    def _tick(self):
        if not self.running:
            return
        try:
            self.poll_once()
        except Exception as e:
            logger.error(f"Error polling for progress indicators: {e}")
        finally:
            self._schedule()

    def poll_once(self):
        """Search the foreground process once.

        Returns:
            Records emitted by this poll, empty if there is no foreground process
        """
        self.tick_count += 1
        process = self.directory.foreground_process()
        if process is None:
            return []

        root = self.accessor.root_element(process.process_id)
        if root is None:
            logger.debug(f"No accessibility element for {process}")
            return []

        records = self.tree_search.search(root, process.process_id, source=SOURCE_POLL)
        if records:
            logger.info(f"Polling found {len(records)} progress indicator(s) in {process.display_name}")
        return records

    def stop(self):
        """Stop polling and cancel the pending tick."""
        if not self.running:
            return

        self.running = False
        self.tree_search.cancel()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Polling timer stopped")
