"""
UI traversal logic for progress indicator monitoring.
This module walks an application's element tree looking for progress indicators.
"""

import logging
from typing import List

from pbmonitor.core.events import DetectionRecord, SOURCE_POLL
from pbmonitor.core.interfaces import ATTR_CHILDREN, ElementTreeAccessor

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHILDREN = 100
DEFAULT_MAX_DEPTH = 64


class TreeSearch:
    """Depth-first search for progress indicators in an element hierarchy.

    A matching element is classified and its subtree is not entered; its
    siblings are still visited. Elements with more than `max_children`
    children, or deeper than `max_depth`, are abandoned without reading any
    of their children.
    """

    def __init__(self, accessor: ElementTreeAccessor, classifier, max_children: int = DEFAULT_MAX_CHILDREN,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.accessor = accessor
        self.classifier = classifier
        self.max_children = max_children
        self.max_depth = max_depth
        self.should_cancel = False

    def _children(self, element):
        try:
            children = self.accessor.attribute(element, ATTR_CHILDREN)
        except Exception as e:
            logger.debug(f"Error getting children: {e}")
            return []
        return list(children) if children else []

    def search(self, root, process_id: int, source: str = SOURCE_POLL) -> List[DetectionRecord]:
        """Search the tree under root.

        Args:
            root: Root element handle, usually the application element
            process_id: Process the tree belongs to
            source: Detection path reported on emitted records

        Returns:
            Records that reached the sink during this search
        """
        emitted = []
        visited = 0
        # Worklist of (element, depth); children are pushed reversed to keep document order
        stack = [(root, 0)]

        while stack:
            if self.should_cancel:
                logger.debug(f"Traversal of PID {process_id} cancelled")
                break

            element, depth = stack.pop()
            if element is None:
                continue
            visited += 1

            role = self.classifier.read_role(element)
            if self.classifier.is_progress_role(role):
                logger.debug(f"Found progress indicator in PID {process_id} at depth {depth}")
                record = self.classifier.handle_element(element, process_id=process_id, role=role, source=source)
                if record is not None:
                    emitted.append(record)
                continue

            if depth >= self.max_depth:
                logger.debug(f"Abandoning subtree at depth {depth} in PID {process_id}")
                continue

            children = self._children(element)
            if len(children) > self.max_children:
                logger.debug(f"Abandoning {role or 'element'} with {len(children)} children in PID {process_id}")
                continue

            for child in reversed(children):
                stack.append((child, depth + 1))

        logger.debug(f"Traversal of PID {process_id} visited {visited} elements, {len(emitted)} detections")
        return emitted

    def cancel(self):
        """Stop the search in flight and every later one until reset() is called."""
        self.should_cancel = True

    def reset(self):
        self.should_cancel = False
