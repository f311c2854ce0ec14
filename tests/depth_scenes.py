"""Synthetic depth scenes shared by the detector and application tests."""

import numpy as np

from depth_hands.detectors.depth_types import (
    BodyFrame,
    BodyObservation,
    DepthFrame,
    HandObservation,
    HandSide,
    OpenState,
)

WIDTH = 512
HEIGHT = 424

WALL_MM = 2000
PALM_MM = 1000
FINGER_MM = 900

PALM = (200, 200)
WRIST = (200, 260)
FINGER_TOP_LEFT = (160, 150)


def pointing_scene_depth():
    """
    Wall at 2 m, a 50 x 60 palm block at 1 m around the palm and one 5 x 5
    fingertip patch at 0.9 m up and to the left of it.
    """
    depth = np.full((HEIGHT, WIDTH), WALL_MM, dtype=np.uint16)
    depth[175:235, 175:225] = PALM_MM
    fx, fy = FINGER_TOP_LEFT
    depth[fy:fy + 5, fx:fx + 5] = FINGER_MM
    return depth


def pointing_scene_frame():
    return DepthFrame.from_array(pointing_scene_depth())


def right_hand(open_state=OpenState.LASSO, palm=PALM, wrist=WRIST, tracked=True):
    return HandObservation(
        palm=palm,
        wrist=wrist,
        palm_tracked=tracked,
        wrist_tracked=tracked,
        open_state=open_state,
    )


def untracked_hand():
    return HandObservation(palm=(0.0, 0.0), wrist=(0.0, 0.0),
                           palm_tracked=False, wrist_tracked=False)


def pointing_body_frame(body_id=0, open_state=OpenState.LASSO):
    body = BodyObservation(
        body_id=body_id,
        is_tracked=True,
        hands={HandSide.RIGHT: right_hand(open_state), HandSide.LEFT: untracked_hand()},
    )
    return BodyFrame(bodies=(body,))
