import numpy as np
from typing import Iterable, Tuple, Union


def hand_axis(wrist: Iterable, palm: Iterable) -> Tuple[np.ndarray, np.ndarray]:
    """Unit wrist->palm axis and its normal in image coordinates.

    The normal is the axis rotated a quarter turn, `(-u_y, u_x)`. When palm and
    wrist coincide the axis falls back to straight up the image, `(0, -1)`.

    Returns:
        (axis, normal) as float arrays of shape (2,)
    """
    v = np.asarray(palm, dtype=float) - np.asarray(wrist, dtype=float)
    length = float(np.hypot(v[0], v[1]))
    if length < 1e-9:
        axis = np.array([0.0, -1.0])
    else:
        axis = v / length
    normal = np.array([-axis[1], axis[0]])
    return axis, normal


def round_points(points: np.ndarray) -> np.ndarray:
    """Round an (N, 2) float array of points to integer pixel coordinates."""
    return np.floor(np.asarray(points, dtype=float) + 0.5).astype(np.int64)


def in_bounds(points: np.ndarray, width: int, height: int) -> np.ndarray:
    """Boolean mask of (N, 2) integer points lying inside a width x height grid."""
    pts = np.asarray(points)
    return ((pts[..., 0] >= 0) & (pts[..., 0] < width) &
            (pts[..., 1] >= 0) & (pts[..., 1] < height))


def clamp(value: Union[int, float], low: Union[int, float], high: Union[int, float]):
    return max(low, min(value, high))


class DwellCounter:
    """Frame-count dwell detector for the push-to-click gesture.

    Counts consecutive frames in which the tracked depth does not decrease and
    reports a click exactly once, on the frame the count reaches
    `hold_frames`. Any decrease restarts the count.

    Example:
        dwell = DwellCounter(hold_frames=60)
        count, last_depth, fire = dwell.update(count, last_depth, depth)
    """

    def __init__(self, hold_frames: int = 60) -> None:
        self.hold_frames = int(hold_frames)

    def update(self, count: int, last_depth: int, depth: int) -> Tuple[int, int, bool]:
        """Advance the dwell state by one frame.

        Args:
            count: frames counted so far
            last_depth: depth recorded on the previous frame
            depth: depth measured this frame

        Returns:
            (new_count, new_last_depth, fire) where `fire` is True only on the
            frame the count first reaches `hold_frames`
        """
        if depth < last_depth:
            return 0, int(depth), False

        count = int(count) + 1
        return count, int(depth), count == self.hold_frames


__all__ = [
    "hand_axis",
    "round_points",
    "in_bounds",
    "clamp",
    "DwellCounter",
]
