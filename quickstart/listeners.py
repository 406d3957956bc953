"""
Subscriptions on Realtime Database references.

The Admin SDK streams raw `put`/`patch` events for everything below a
reference. ValueTracker folds them into the current value of the node and
ChildEventTracker turns them into child added/changed/removed callbacks.
Subscription owns the SDK listener and hands failures to an error callback
as SdkError instead of letting them die on the stream thread.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from firebase_admin import exceptions as firebase_exceptions

from .errors import SdkError

logger = logging.getLogger("quickstart")

ChildCallback = Callable[[str, Any], None]
ErrorCallback = Callable[[SdkError], None]


def _segments(path: str) -> List[str]:
    return [segment for segment in (path or "").split("/") if segment]


def _as_children(node: Any) -> Dict[str, Any]:
    """Children of a node keyed by name; arrays are keyed by index"""
    if isinstance(node, dict):
        return dict(node)
    if isinstance(node, list):
        return {str(index): value for index, value in enumerate(node) if value is not None}
    return {}


def set_in(node: Any, segments: List[str], value: Any) -> Any:
    """
    Return a copy of node with value stored at segments.

    Only the containers along the path are copied. Empty containers collapse
    to None, matching how the database drops empty nodes.
    """
    if not segments:
        return value
    head, rest = segments[0], segments[1:]
    children = _as_children(node)
    child = set_in(children.get(head), rest, value)
    if child is None or child == {}:
        children.pop(head, None)
    else:
        children[head] = child
    return children or None


def apply_event(node: Any, event_type: str, path: str, data: Any) -> Any:
    segments = _segments(path)
    if event_type == "patch" and isinstance(data, dict):
        for key, value in data.items():
            node = set_in(node, segments + _segments(key), value)
        return node
    return set_in(node, segments, data)


class ValueTracker:
    """Keeps the full value of a node and reports it after every change"""

    def __init__(self, on_value: Callable[[Any], None]):
        self.on_value = on_value
        self.value = None
        self._lock = threading.Lock()

    def __call__(self, event):
        with self._lock:
            self.value = apply_event(self.value, event.event_type, event.path, event.data)
            value = self.value
        self.on_value(value)


class ChildEventTracker:
    """Diffs the direct children of a node before and after each event"""

    def __init__(
        self,
        on_child_added: Optional[ChildCallback] = None,
        on_child_changed: Optional[ChildCallback] = None,
        on_child_removed: Optional[ChildCallback] = None,
    ):
        self.on_child_added = on_child_added
        self.on_child_changed = on_child_changed
        self.on_child_removed = on_child_removed
        self.children: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def __call__(self, event):
        with self._lock:
            before = self.children
            after = _as_children(apply_event(before, event.event_type, event.path, event.data))
            self.children = after

        for key, value in after.items():
            if key not in before:
                if self.on_child_added:
                    self.on_child_added(key, value)
            elif before[key] != value:
                if self.on_child_changed:
                    self.on_child_changed(key, value)
        for key, value in before.items():
            if key not in after and self.on_child_removed:
                self.on_child_removed(key, value)


class Subscription:
    """
    A listener attached to one reference until close() is called.
    """

    def __init__(self, ref, handler: Callable[[Any], None], on_error: Optional[ErrorCallback] = None):
        self.ref = ref
        self.handler = handler
        self.on_error = on_error
        self._registration = None

    @property
    def active(self) -> bool:
        return self._registration is not None

    def start(self) -> "Subscription":
        try:
            self._registration = self.ref.listen(self._dispatch)
        except firebase_exceptions.FirebaseError as e:
            raise SdkError.from_exception(e) from e
        logger.debug(f"[DB] Listening on {self.ref.path}")
        return self

    def _dispatch(self, event):
        try:
            self.handler(event)
        except Exception as e:
            # Runs on the SDK stream thread; report instead of killing it
            error = e if isinstance(e, SdkError) else SdkError.from_exception(e)
            logger.error(f"[DB] Listener on {self.ref.path} failed: {error}")
            if self.on_error:
                self.on_error(error)

    def close(self):
        if self._registration is not None:
            self._registration.close()
            self._registration = None
            logger.debug(f"[DB] Stopped listening on {self.ref.path}")
