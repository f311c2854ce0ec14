"""
Pointer Dispatcher for DEPTH HANDS

Decouples the gesture controller from the pointer device. It receives the
events produced for a frame, looks up which PointerController method handles
each event kind and calls it with the arguments that method accepts.
Events are fire-and-forget: a failing call is reported and the rest still run.
"""

import inspect
from typing import Dict, Iterable, List, Optional

from depth_hands.app.gesture_controller import PointerEvent, PointerEventKind


DEFAULT_EVENT_MAP = [
    {"event": "move", "name": "move_relative"},
    {"event": "button_down", "name": "press"},
    {"event": "button_up", "name": "release"},
    {"event": "click", "name": "click"},
]


class PointerDispatcher:
    def __init__(self, pointer_controller, event_map: Optional[List[Dict]] = None):
        """
        Initialize the dispatcher.

        Args:
            pointer_controller: Instance of PointerController that performs the actions.
            event_map: Optional list of {"event": ..., "name": ...} entries.
        """
        self.pointer = pointer_controller
        self.handlers: Dict[PointerEventKind, Dict] = {}
        self.dispatched = 0
        self.load_map(event_map if event_map is not None else DEFAULT_EVENT_MAP)

    def load_map(self, event_map_list: List[Dict]):
        """
        Build the event-kind lookup from a list of entries.

        Args:
            event_map_list: List of dicts, each containing
                            {"event": "<kind>", "name": "<controller method>", "args": {...}}
        """
        self.handlers.clear()
        if not event_map_list:
            return

        for entry in event_map_list:
            try:
                kind = PointerEventKind(entry.get("event", ""))
            except ValueError:
                print(f"⚠ Unknown pointer event in map: {entry.get('event')}")
                continue
            if not entry.get("name"):
                continue
            self.handlers[kind] = entry

        print(f"✓ Pointer Dispatcher loaded: {len(self.handlers)} event mappings.")

    def dispatch(self, events: Iterable[PointerEvent]):
        """Send every event of a frame to the pointer device, in order."""
        for event in events:
            entry = self.handlers.get(event.kind)
            if entry is None:
                continue
            try:
                self._execute_entry(entry, event)
                self.dispatched += 1
            except Exception as e:
                print(f"⚠ Error executing {entry.get('name')} for {event.kind.value}: {e}")

    def _execute_entry(self, entry: Dict, event: PointerEvent):
        """Call the mapped controller method with the arguments it accepts."""
        func = getattr(self.pointer, entry["name"], None)
        if func is None:
            return

        sig = inspect.signature(func)
        kwargs = {}

        if "dx" in sig.parameters and "dy" in sig.parameters:
            kwargs["dx"] = event.dx
            kwargs["dy"] = event.dy

        if "button" in sig.parameters:
            kwargs["button"] = event.button

        if "args" in entry and isinstance(entry["args"], dict):
            kwargs.update(entry["args"])

        func(**kwargs)


__all__ = [
    'DEFAULT_EVENT_MAP',
    'PointerDispatcher',
]
