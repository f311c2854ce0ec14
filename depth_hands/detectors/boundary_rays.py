"""
Boundary ray casting.

Rays are cast outward from the palm over the classified region. Each ray is
searched from its far end back toward the palm, so the recorded boundary is
the outermost hand pixel along the ray (a fingertip), not the nearest one.
"""

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from depth_hands.detectors.depth_types import (
    BACKGROUND_BUCKET,
    HandRegion,
    HandSide,
    Point2D,
    ProfileSample,
)
from depth_hands.utils.math_utils import hand_axis, in_bounds, round_points


@dataclass
class RayFanConfig:
    """
    Geometry of the finger and thumb ray fans.

    Finger fan: offsets i in [-scan_width, scan_width), rays parallel to the
    wrist->palm axis, shifted i / offset_divisor px along its normal.
    Thumb fan: thumb_rays directions rotated in thumb_angle_step_deg steps away
    from the axis, toward the side given by the per-hand (d1, d2) signs.
    """
    scan_width: int = 60
    max_steps: int = 90
    offset_divisor: float = 1.0
    thumb_rays: int = 30
    thumb_max_steps: int = 40
    thumb_angle_step_deg: float = 3.0
    thumb_axis_sign_right: int = 1
    thumb_side_sign_right: int = -1
    thumb_axis_sign_left: int = 1
    thumb_side_sign_left: int = 1
    tip_mark_radius: int = 3

    @classmethod
    def from_config(cls) -> 'RayFanConfig':
        from depth_hands.config.config_manager import get_detection_setting
        return cls(
            scan_width=int(get_detection_setting('rays', 'scan_width', 60)),
            max_steps=int(get_detection_setting('rays', 'max_steps', 90)),
            offset_divisor=float(get_detection_setting('rays', 'offset_divisor', 1.0)),
            thumb_rays=int(get_detection_setting('rays', 'thumb_rays', 30)),
            thumb_max_steps=int(get_detection_setting('rays', 'thumb_max_steps', 40)),
            thumb_angle_step_deg=float(get_detection_setting('rays', 'thumb_angle_step_deg', 3.0)),
            thumb_axis_sign_right=int(get_detection_setting('rays', 'thumb_axis_sign_right', 1)),
            thumb_side_sign_right=int(get_detection_setting('rays', 'thumb_side_sign_right', -1)),
            thumb_axis_sign_left=int(get_detection_setting('rays', 'thumb_axis_sign_left', 1)),
            thumb_side_sign_left=int(get_detection_setting('rays', 'thumb_side_sign_left', 1)),
            tip_mark_radius=int(get_detection_setting('rays', 'tip_mark_radius', 3)),
        )

    def thumb_direction(self, side: HandSide) -> Tuple[int, int]:
        """(d1, d2) signs for the axis and normal components of thumb rays."""
        if side == HandSide.LEFT:
            return (self.thumb_axis_sign_left, self.thumb_side_sign_left)
        return (self.thumb_axis_sign_right, self.thumb_side_sign_right)


def outermost_boundary(region: HandRegion, points: np.ndarray) -> Optional[int]:
    """
    Index of the first usable boundary pixel in `points` (ordered far to near).

    A pixel is usable when it lies on the grid, is not background and is not
    marked as an overlay or earlier boundary artefact.
    """
    h, w = region.labels.shape
    inside = in_bounds(points, w, h)
    if not inside.any():
        return None

    usable = np.zeros(len(points), dtype=bool)
    xs = points[inside, 0]
    ys = points[inside, 1]
    usable[inside] = (region.labels[ys, xs] != BACKGROUND_BUCKET) & ~region.marks[ys, xs]

    if not usable.any():
        return None
    return int(np.argmax(usable))


def _sample(region: HandRegion, offset: int, points: np.ndarray, steps: np.ndarray) -> ProfileSample:
    idx = outermost_boundary(region, points)
    if idx is None:
        return ProfileSample(offset=offset, distance=0, point=None)
    point: Point2D = (int(points[idx, 0]), int(points[idx, 1]))
    return ProfileSample(offset=offset, distance=int(steps[idx]), point=point)


def cast_finger_rays(
    region: HandRegion,
    palm: Point2D,
    wrist: Point2D,
    cfg: Optional[RayFanConfig] = None,
) -> Iterator[ProfileSample]:
    """
    Yield one ProfileSample per offset in [-scan_width, scan_width).

    Sample points are palm + normal * i / offset_divisor + axis * j for
    j = max_steps .. 1; the recorded distance is the first usable j.
    """
    cfg = cfg or RayFanConfig()
    axis, normal = hand_axis(wrist, palm)
    origin = np.asarray(palm, dtype=float)

    steps = np.arange(cfg.max_steps, 0, -1)
    along = np.outer(steps, axis)

    for i in range(-cfg.scan_width, cfg.scan_width):
        start = origin + normal * (i / cfg.offset_divisor)
        points = round_points(start + along)
        yield _sample(region, i, points, steps)


def cast_thumb_rays(
    region: HandRegion,
    palm: Point2D,
    wrist: Point2D,
    side: HandSide,
    cfg: Optional[RayFanConfig] = None,
) -> Iterator[ProfileSample]:
    """
    Yield one ProfileSample per rotation index in [0, thumb_rays).

    Ray i points along d1 * cos(t) * axis + d2 * sin(t) * normal with
    t = i * thumb_angle_step_deg; steps j = thumb_max_steps .. 1.
    """
    cfg = cfg or RayFanConfig()
    axis, normal = hand_axis(wrist, palm)
    d1, d2 = cfg.thumb_direction(side)
    origin = np.asarray(palm, dtype=float)

    steps = np.arange(cfg.thumb_max_steps, 0, -1)

    for i in range(cfg.thumb_rays):
        theta = math.radians(i * cfg.thumb_angle_step_deg)
        direction = d1 * math.cos(theta) * axis + d2 * math.sin(theta) * normal
        points = round_points(origin + np.outer(steps, direction))
        yield _sample(region, i, points, steps)


__all__ = [
    'RayFanConfig',
    'outermost_boundary',
    'cast_finger_rays',
    'cast_thumb_rays',
]
