"""
Hand region classification.

Slices the depth grid around the palm into 8 ordinal buckets relative to the
palm depth. Bucket 7 is background; everything else is treated as hand.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from depth_hands.detectors.depth_types import (
    BACKGROUND_BUCKET,
    INVALID_DEPTH,
    DepthFrame,
    HandRegion,
    Point2D,
)


# Quotient range that maps onto buckets 0..6; quotient -1 is just behind the palm
MIN_QUOTIENT = -1
MAX_QUOTIENT = 5


@dataclass
class RegionConfig:
    """Classification window and depth slicing parameters."""
    window_half_width: int = 60
    window_extent_ratio: float = 1.5  # window reach on the finger side
    quantum_mm: int = 25

    @classmethod
    def from_config(cls) -> 'RegionConfig':
        from depth_hands.config.config_manager import get_detection_setting
        return cls(
            window_half_width=int(get_detection_setting('region', 'window_half_width', 60)),
            window_extent_ratio=float(get_detection_setting('region', 'window_extent_ratio', 1.5)),
            quantum_mm=int(get_detection_setting('region', 'quantum_mm', 25)),
        )


def classification_window(
    palm: Point2D,
    wrist: Optional[Point2D],
    width: int,
    height: int,
    cfg: RegionConfig,
) -> Tuple[int, int, int, int]:
    """
    Half-open (x0, y0, x1, y1) window around the palm, clamped to the grid.

    Horizontally the window spans +-window_half_width. Vertically it reaches
    window_half_width toward the wrist and window_half_width *
    window_extent_ratio on the side the fingers point to. Without a wrist
    above or below the palm the extension goes below the palm.
    """
    px, py = palm
    half = int(cfg.window_half_width)
    extended = int(round(half * cfg.window_extent_ratio))

    fingers_up = wrist is not None and wrist[1] > py
    if fingers_up:
        y0, y1 = py - extended, py + half
    else:
        y0, y1 = py - half, py + extended

    x0, x1 = px - half, px + half
    return (max(0, x0), max(0, y0), min(width, x1), min(height, y1))


def bucket_labels(depth: np.ndarray, palm_depth: int, quantum_mm: int,
                  min_reliable_mm: int = 0, max_reliable_mm: int = 65535) -> np.ndarray:
    """
    Bucket a block of depth samples against the palm depth.

    q = trunc((palm_depth - depth) / quantum_mm); bucket = q + 1 for q in
    [-1, 5], else BACKGROUND_BUCKET. Invalid samples are background.
    """
    d = np.asarray(depth, dtype=np.int32)
    valid = (d != INVALID_DEPTH) & (d >= min_reliable_mm) & (d <= max_reliable_mm)

    diff = int(palm_depth) - d
    # integer truncation toward zero, same for both signs
    q = np.sign(diff) * (np.abs(diff) // int(quantum_mm))

    in_range = valid & (q >= MIN_QUOTIENT) & (q <= MAX_QUOTIENT)
    return np.where(in_range, q + 1, BACKGROUND_BUCKET).astype(np.uint8)


def _outline(marks: np.ndarray, window: Tuple[int, int, int, int]) -> None:
    x0, y0, x1, y1 = window
    if x1 <= x0 or y1 <= y0:
        return
    marks[y0, x0:x1] = True
    marks[y1 - 1, x0:x1] = True
    marks[y0:y1, x0] = True
    marks[y0:y1, x1 - 1] = True


def classify_hand_region(
    frame: DepthFrame,
    palm: Point2D,
    wrist: Optional[Point2D] = None,
    cfg: Optional[RegionConfig] = None,
) -> Optional[HandRegion]:
    """
    Label the window around `palm` into depth buckets.

    Args:
        frame: current depth frame
        palm: palm pixel, the reference plane is the depth sampled here
        wrist: wrist pixel, used to orient the window extension
        cfg: RegionConfig (defaults when None)

    Returns:
        HandRegion, or None when the palm pixel is off the grid or has no
        valid depth (tracking glitch; the hand is skipped this frame)
    """
    cfg = cfg or RegionConfig()

    if not frame.contains(palm):
        return None
    palm_depth = frame.sample(palm)
    if (palm_depth == INVALID_DEPTH or palm_depth < frame.min_reliable_mm
            or palm_depth > frame.max_reliable_mm):
        return None

    labels = np.full((frame.height, frame.width), BACKGROUND_BUCKET, dtype=np.uint8)
    marks = np.zeros((frame.height, frame.width), dtype=bool)

    window = classification_window(palm, wrist, frame.width, frame.height, cfg)
    x0, y0, x1, y1 = window
    if x1 > x0 and y1 > y0:
        labels[y0:y1, x0:x1] = bucket_labels(
            frame.depth[y0:y1, x0:x1],
            palm_depth,
            cfg.quantum_mm,
            frame.min_reliable_mm,
            frame.max_reliable_mm,
        )
        _outline(marks, window)

    return HandRegion(
        labels=labels,
        marks=marks,
        palm=palm,
        palm_depth=palm_depth,
        window=window,
    )


def mark_points(region: HandRegion, points: Iterable[Point2D], radius: int = 0) -> None:
    """
    Mark a square of +-radius pixels around each point as a boundary artefact.

    The marks belong to this frame's region only; ray casts run afterwards
    never record a boundary on them.
    """
    h, w = region.marks.shape
    r = max(0, int(radius))
    for x, y in points:
        xa, xb = max(0, x - r), min(w, x + r + 1)
        ya, yb = max(0, y - r), min(h, y + r + 1)
        if xa < xb and ya < yb:
            region.marks[ya:yb, xa:xb] = True


__all__ = [
    'RegionConfig',
    'classification_window',
    'bucket_labels',
    'classify_hand_region',
    'mark_points',
]
