"""
Recording replay for DEPTH HANDS

A recording is a NumPy .npz archive of synchronized depth and body frames:

  depth          (N, H, W) uint16   depth in millimetres, 0 = no return
  palm, wrist    (N, 2, 2) float    depth-space (x, y); side index 0 = right, 1 = left
  palm_tracked   (N, 2)    bool
  wrist_tracked  (N, 2)    bool
  hand_state     (N, 2)    str      'open' / 'closed' / 'lasso' / 'unknown'
  body_id        (N,)      int      optional; -1 = no tracked body this frame

Without a body_id array every frame carries one tracked body with id 0.
"""

from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from depth_hands.detectors.depth_types import (
    SIDE_ORDER,
    BodyFrame,
    BodyObservation,
    DepthFrame,
    HandObservation,
    OpenState,
)


REQUIRED_ARRAYS = ('depth', 'palm', 'wrist', 'palm_tracked', 'wrist_tracked', 'hand_state')
NO_BODY = -1


class RecordingError(ValueError):
    """Raised when a recording is missing arrays or their shapes disagree."""


class RecordingSource:
    """
    Replays a recorded session as (BodyFrame, DepthFrame) pairs.
    """

    def __init__(
        self,
        path: Union[str, Path],
        min_reliable_mm: int = 500,
        max_reliable_mm: int = 4500,
    ):
        self.path = Path(path)
        self.min_reliable_mm = int(min_reliable_mm)
        self.max_reliable_mm = int(max_reliable_mm)

        with np.load(self.path, allow_pickle=False) as data:
            missing = [name for name in REQUIRED_ARRAYS if name not in data.files]
            if missing:
                raise RecordingError(f"{self.path}: missing arrays {', '.join(missing)}")

            self.depth = np.asarray(data['depth'], dtype=np.uint16)
            self.palm = np.asarray(data['palm'], dtype=float)
            self.wrist = np.asarray(data['wrist'], dtype=float)
            self.palm_tracked = np.asarray(data['palm_tracked'], dtype=bool)
            self.wrist_tracked = np.asarray(data['wrist_tracked'], dtype=bool)
            self.hand_state = np.asarray(data['hand_state']).astype(str)
            if 'body_id' in data.files:
                self.body_id = np.asarray(data['body_id'], dtype=np.int64)
            else:
                self.body_id = np.zeros(len(self.depth), dtype=np.int64)

        self._validate()

    def _validate(self):
        if self.depth.ndim != 3:
            raise RecordingError(f"depth must be (N, H, W), got {self.depth.shape}")
        n = len(self.depth)
        expected = {
            'palm': (n, 2, 2),
            'wrist': (n, 2, 2),
            'palm_tracked': (n, 2),
            'wrist_tracked': (n, 2),
            'hand_state': (n, 2),
            'body_id': (n,),
        }
        for name, shape in expected.items():
            actual = getattr(self, name).shape
            if actual != shape:
                raise RecordingError(f"{name} must have shape {shape}, got {actual}")

    def __len__(self) -> int:
        return len(self.depth)

    @property
    def frame_size(self) -> Tuple[int, int]:
        """(width, height) of the recorded depth frames."""
        return (int(self.depth.shape[2]), int(self.depth.shape[1]))

    def body_frame(self, index: int) -> BodyFrame:
        body_id = int(self.body_id[index])
        if body_id == NO_BODY:
            return BodyFrame(bodies=())

        hands = {}
        for k, side in enumerate(SIDE_ORDER):
            hands[side] = HandObservation(
                palm=(float(self.palm[index, k, 0]), float(self.palm[index, k, 1])),
                wrist=(float(self.wrist[index, k, 0]), float(self.wrist[index, k, 1])),
                palm_tracked=bool(self.palm_tracked[index, k]),
                wrist_tracked=bool(self.wrist_tracked[index, k]),
                open_state=OpenState.parse(self.hand_state[index, k]),
            )
        return BodyFrame(bodies=(BodyObservation(body_id=body_id, is_tracked=True, hands=hands),))

    def depth_frame(self, index: int) -> DepthFrame:
        return DepthFrame.from_array(self.depth[index], self.min_reliable_mm, self.max_reliable_mm)

    def __iter__(self) -> Iterator[Tuple[BodyFrame, DepthFrame]]:
        for index in range(len(self)):
            yield self.body_frame(index), self.depth_frame(index)


def save_recording(
    path: Union[str, Path],
    depth: np.ndarray,
    palm: np.ndarray,
    wrist: np.ndarray,
    palm_tracked: Optional[np.ndarray] = None,
    wrist_tracked: Optional[np.ndarray] = None,
    hand_state: Optional[Sequence] = None,
    body_id: Optional[np.ndarray] = None,
) -> Path:
    """
    Write a recording archive. Tracking flags default to tracked and hand
    states to 'unknown'.
    """
    depth = np.asarray(depth, dtype=np.uint16)
    n = len(depth)
    arrays = {
        'depth': depth,
        'palm': np.asarray(palm, dtype=float),
        'wrist': np.asarray(wrist, dtype=float),
        'palm_tracked': (np.ones((n, 2), dtype=bool) if palm_tracked is None
                         else np.asarray(palm_tracked, dtype=bool)),
        'wrist_tracked': (np.ones((n, 2), dtype=bool) if wrist_tracked is None
                          else np.asarray(wrist_tracked, dtype=bool)),
        'hand_state': (np.full((n, 2), OpenState.UNKNOWN.value) if hand_state is None
                       else np.asarray(hand_state, dtype=str)),
    }
    if body_id is not None:
        arrays['body_id'] = np.asarray(body_id, dtype=np.int64)

    path = Path(path)
    np.savez_compressed(path, **arrays)
    # np.savez appends .npz when the name lacks it
    if path.suffix != '.npz':
        path = path.with_name(path.name + '.npz')
    return path


__all__ = [
    'RecordingError',
    'RecordingSource',
    'save_recording',
]
