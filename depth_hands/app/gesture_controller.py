"""
Hand Gesture Controller for DEPTH HANDS

Turns per-frame hand readings into pointer-device events. The controller is a
pure step function: it takes the previous CursorState and returns the next
one together with the events to send, so nothing is hidden in globals.

Per-hand states:
  IDLE             - not driving: untracked, unknown state, or another hand already points
  CLOSED           - closed fist holds that hand's button down
  POINTING         - single fingertip moves the cursor; a sustained push clicks
  OPEN_NO_FINGERS  - open hand without a single fingertip releases the button
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional

import numpy as np

from depth_hands.detectors.depth_types import (
    SIDE_ORDER,
    BodyObservation,
    HandDetection,
    HandObservation,
    HandSide,
    OpenState,
    Point2D,
)
from depth_hands.utils.math_utils import DwellCounter


class PointerEventKind(str, Enum):
    MOVE = "move"
    BUTTON_DOWN = "button_down"
    BUTTON_UP = "button_up"
    CLICK = "click"


@dataclass(frozen=True)
class PointerEvent:
    """One fire-and-forget pointer-device command."""
    kind: PointerEventKind
    dx: int = 0
    dy: int = 0
    button: str = "left"

    @classmethod
    def move(cls, dx: int, dy: int) -> 'PointerEvent':
        return cls(PointerEventKind.MOVE, dx=int(dx), dy=int(dy))


class HandGestureState(str, Enum):
    IDLE = "idle"
    CLOSED = "closed"
    POINTING = "pointing"
    OPEN_NO_FINGERS = "open_no_fingers"


@dataclass(frozen=True)
class CursorState:
    """
    Cursor control state carried from one frame to the next.
    Created zeroed at startup and replaced (never mutated) every frame.
    """
    last_fingertip_point: Point2D = (0, 0)
    last_fingertip_depth: int = 0
    dwell_frame_count: int = 0
    active_driver_id: Optional[int] = None
    left_button_down: bool = False
    right_button_down: bool = False
    pointing_side: Optional[HandSide] = None  # hand that pointed last frame

    def button_down(self, button: str) -> bool:
        return self.right_button_down if button == "right" else self.left_button_down

    def with_button(self, button: str, down: bool) -> 'CursorState':
        if button == "right":
            return replace(self, right_button_down=down)
        return replace(self, left_button_down=down)


@dataclass(frozen=True)
class HandReading:
    """What the controller needs to know about one hand this frame."""
    observation: Optional[HandObservation]
    detection: Optional[HandDetection] = None
    tip_depth: int = 0

    @property
    def fingertip_count(self) -> int:
        return len(self.detection.fingertips) if self.detection is not None else 0


@dataclass
class ControllerConfig:
    """Cursor gain, motion filter band and dwell length."""
    gain: float = 5.0
    jitter_px: float = 3.0
    jump_px: float = 20.0
    dwell_frames: int = 60
    click_button: str = "left"
    closed_hand_button: Dict[HandSide, str] = field(default_factory=lambda: {
        HandSide.RIGHT: "left",
        HandSide.LEFT: "right",
    })

    @classmethod
    def from_config(cls) -> 'ControllerConfig':
        from depth_hands.config.config_manager import get_controller_setting
        return cls(
            gain=float(get_controller_setting('gain', 5)),
            jitter_px=float(get_controller_setting('jitter_px', 3)),
            jump_px=float(get_controller_setting('jump_px', 20)),
            dwell_frames=int(get_controller_setting('dwell_frames', 60)),
            click_button=str(get_controller_setting('click_button', 'left')),
            closed_hand_button={
                HandSide.RIGHT: str(get_controller_setting('closed_hand_button_right', 'left')),
                HandSide.LEFT: str(get_controller_setting('closed_hand_button_left', 'right')),
            },
        )


class ControllerStep(NamedTuple):
    state: CursorState
    events: List[PointerEvent]
    hand_states: Dict[HandSide, HandGestureState]


def assign_driver(bodies: Iterable[BodyObservation], current_id: Optional[int]) -> Optional[int]:
    """
    Decide which tracked body drives the pointer.

    The current driver is kept while any tracked body carries its id. When it
    disappears the id is cleared for this frame; with no driver held, the first
    tracked body takes over.
    """
    tracked = [b.body_id for b in bodies if b.is_tracked]
    if current_id is not None:
        return current_id if current_id in tracked else None
    return tracked[0] if tracked else None


class HandGestureController:
    """
    Cursor state machine driven by the depth detections.
    Only one hand (first in RIGHT, LEFT order) may point per frame.
    """

    def __init__(self, config: Optional[ControllerConfig] = None):
        self.config = config or ControllerConfig()
        self.dwell = DwellCounter(hold_frames=self.config.dwell_frames)

    def classify(self, reading: Optional[HandReading], pointing_taken: bool) -> HandGestureState:
        """State of one hand given whether another hand already points this frame."""
        if reading is None or reading.observation is None:
            return HandGestureState.IDLE
        obs = reading.observation
        if not obs.tracking_valid:
            return HandGestureState.IDLE

        if obs.open_state == OpenState.CLOSED:
            return HandGestureState.CLOSED

        if obs.open_state in (OpenState.OPEN, OpenState.LASSO):
            if reading.fingertip_count == 1:
                return HandGestureState.IDLE if pointing_taken else HandGestureState.POINTING
            return HandGestureState.OPEN_NO_FINGERS

        return HandGestureState.IDLE

    def step(
        self,
        state: CursorState,
        driver_id: Optional[int],
        readings: Mapping[HandSide, HandReading],
    ) -> ControllerStep:
        """
        Advance the cursor state by one depth frame.

        Args:
            state: state returned by the previous step
            driver_id: body currently allowed to drive the pointer, or None
            readings: per-side hand readings of the driver body

        Returns:
            ControllerStep(new_state, events, hand_states)
        """
        state = replace(state, active_driver_id=driver_id)
        events: List[PointerEvent] = []
        hand_states = {side: HandGestureState.IDLE for side in SIDE_ORDER}

        if driver_id is None:
            return ControllerStep(self._end_pointing(state), events, hand_states)

        pointing_side = None
        for side in SIDE_ORDER:
            reading = readings.get(side)
            hand_state = self.classify(reading, pointing_side is not None)
            hand_states[side] = hand_state

            if hand_state == HandGestureState.POINTING:
                pointing_side = side
                state = self._point(state, side, reading, events)
            elif hand_state == HandGestureState.CLOSED:
                button = self.config.closed_hand_button.get(side, "left")
                if not state.button_down(button):
                    events.append(PointerEvent(PointerEventKind.BUTTON_DOWN, button=button))
                    state = state.with_button(button, True)
            elif hand_state == HandGestureState.OPEN_NO_FINGERS:
                button = self.config.closed_hand_button.get(side, "left")
                if state.button_down(button):
                    events.append(PointerEvent(PointerEventKind.BUTTON_UP, button=button))
                    state = state.with_button(button, False)

        if pointing_side is None:
            state = self._end_pointing(state)

        return ControllerStep(state, events, hand_states)

    @staticmethod
    def _end_pointing(state: CursorState) -> CursorState:
        """No hand points this frame: the dwell and the fingertip anchor start over."""
        return replace(state, pointing_side=None, dwell_frame_count=0, last_fingertip_depth=0)

    def _point(self, state: CursorState, side: HandSide, reading: HandReading,
               events: List[PointerEvent]) -> CursorState:
        tip = reading.detection.best_fingertip.point

        if state.pointing_side != side:
            # Pointing started or passed to the other hand: anchor without moving
            state = replace(state, last_fingertip_point=tip, pointing_side=side,
                            dwell_frame_count=0, last_fingertip_depth=0)
        else:
            dx = tip[0] - state.last_fingertip_point[0]
            dy = tip[1] - state.last_fingertip_point[1]
            magnitude = float(np.hypot(dx, dy))
            if self.config.jitter_px < magnitude < self.config.jump_px:
                events.append(PointerEvent.move(round(dx * self.config.gain),
                                                round(dy * self.config.gain)))
                state = replace(state, last_fingertip_point=tip)

        count, last_depth, fire = self.dwell.update(
            state.dwell_frame_count, state.last_fingertip_depth, reading.tip_depth)
        if fire:
            events.append(PointerEvent(PointerEventKind.CLICK, button=self.config.click_button))

        return replace(state, dwell_frame_count=count, last_fingertip_depth=last_depth)


__all__ = [
    'PointerEventKind',
    'PointerEvent',
    'HandGestureState',
    'CursorState',
    'HandReading',
    'ControllerConfig',
    'ControllerStep',
    'assign_driver',
    'HandGestureController',
]
