"""
Data model for the depth hand detectors.

Frames arrive from an external depth source and body records from an external
skeletal tracker; everything here is a plain snapshot that is rebuilt each
frame and never mutated once handed to the detectors.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np


# Depth samples are millimetres, 0 means "no return"
INVALID_DEPTH = 0

# Label buffer: buckets 0..6 are hand-relative depth slices, 7 is background
BACKGROUND_BUCKET = 7
BUCKET_COUNT = 8

Point2D = Tuple[int, int]


class FrameShapeError(ValueError):
    """Raised when a depth buffer does not match its declared dimensions."""


class HandSide(str, Enum):
    """Which hand a reading belongs to."""
    RIGHT = "right"
    LEFT = "left"


# Fixed evaluation order: first qualifying hand wins the cursor
SIDE_ORDER = (HandSide.RIGHT, HandSide.LEFT)


class OpenState(str, Enum):
    """Hand open/closed classification reported by the skeletal tracker."""
    OPEN = "open"
    CLOSED = "closed"
    LASSO = "lasso"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value) -> "OpenState":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Frames

@dataclass(frozen=True)
class DepthFrame:
    """
    Immutable snapshot of one depth frame.

    `depth` is a read-only (height, width) uint16 array. Samples outside
    [min_reliable_mm, max_reliable_mm] are treated as invalid by the
    classifier.
    """
    depth: np.ndarray
    width: int
    height: int
    min_reliable_mm: int = 500
    max_reliable_mm: int = 4500

    @classmethod
    def from_buffer(
        cls,
        buffer,
        width: int,
        height: int,
        bytes_per_pixel: int = 2,
        min_reliable_mm: int = 500,
        max_reliable_mm: int = 4500,
    ) -> "DepthFrame":
        """
        Build a frame from a raw little-endian uint16 buffer.

        Raises:
            FrameShapeError: if len(buffer) / bytes_per_pixel != width * height
        """
        raw = memoryview(buffer).cast("B")
        if bytes_per_pixel != 2 or raw.nbytes % bytes_per_pixel:
            raise FrameShapeError(
                f"unsupported buffer: {raw.nbytes} bytes at {bytes_per_pixel} bytes/pixel")
        if raw.nbytes // bytes_per_pixel != width * height:
            raise FrameShapeError(
                f"buffer holds {raw.nbytes // bytes_per_pixel} samples, expected {width}x{height}")

        depth = np.frombuffer(raw, dtype="<u2").reshape((height, width))
        return cls.from_array(depth, min_reliable_mm, max_reliable_mm)

    @classmethod
    def from_array(
        cls,
        depth,
        min_reliable_mm: int = 500,
        max_reliable_mm: int = 4500,
    ) -> "DepthFrame":
        arr = np.array(depth, dtype=np.uint16, copy=True)
        if arr.ndim != 2:
            raise FrameShapeError(f"depth array must be 2-D, got shape {arr.shape}")
        arr.setflags(write=False)
        height, width = arr.shape
        return cls(
            depth=arr,
            width=int(width),
            height=int(height),
            min_reliable_mm=int(min_reliable_mm),
            max_reliable_mm=int(max_reliable_mm),
        )

    def contains(self, point: Point2D) -> bool:
        x, y = point
        return 0 <= x < self.width and 0 <= y < self.height

    def sample(self, point: Point2D) -> int:
        """Depth at `point`, or INVALID_DEPTH when outside the grid."""
        if not self.contains(point):
            return INVALID_DEPTH
        return int(self.depth[point[1], point[0]])


# Skeletal observations

def _to_pixel(p) -> Point2D:
    return (int(round(float(p[0]))), int(round(float(p[1]))))


@dataclass(frozen=True)
class HandObservation:
    """Palm and wrist of one hand, already mapped into depth-grid space."""
    palm: Tuple[float, float]
    wrist: Tuple[float, float]
    palm_tracked: bool = True
    wrist_tracked: bool = True
    open_state: OpenState = OpenState.UNKNOWN

    @property
    def tracking_valid(self) -> bool:
        return bool(self.palm_tracked and self.wrist_tracked)

    @property
    def palm_px(self) -> Point2D:
        return _to_pixel(self.palm)

    @property
    def wrist_px(self) -> Point2D:
        return _to_pixel(self.wrist)


@dataclass(frozen=True)
class BodyObservation:
    """One body record from the skeletal tracker."""
    body_id: int
    is_tracked: bool
    hands: Dict[HandSide, HandObservation] = field(default_factory=dict)


@dataclass(frozen=True)
class BodyFrame:
    """All body records delivered with one body-frame event."""
    bodies: Tuple[BodyObservation, ...] = ()


# Detection results

@dataclass(frozen=True)
class ProfileSample:
    """One ray of a boundary profile. distance == 0 means no boundary found."""
    offset: int
    distance: int
    point: Optional[Point2D] = None


BoundaryProfile = List[ProfileSample]


@dataclass(frozen=True)
class FingertipCandidate:
    point: Point2D
    distance_score: float
    offset: int = 0


@dataclass
class HandRegion:
    """
    Classifier output for one hand.

    labels: (height, width) uint8 buckets, BACKGROUND_BUCKET outside the window
    marks: (height, width) bool, pixels holding overlay or boundary artefacts
    window: half-open (x0, y0, x1, y1) after clamping to the grid
    """
    labels: np.ndarray
    marks: np.ndarray
    palm: Point2D
    palm_depth: int
    window: Tuple[int, int, int, int]


@dataclass
class HandDetection:
    """Everything derived for one hand in one depth frame."""
    side: HandSide
    palm: Point2D
    wrist: Point2D
    palm_depth: int
    open_state: OpenState
    fingertips: List[FingertipCandidate] = field(default_factory=list)
    thumb: Optional[FingertipCandidate] = None
    finger_profile: BoundaryProfile = field(default_factory=list)
    thumb_profile: BoundaryProfile = field(default_factory=list)
    region: Optional[HandRegion] = None

    @property
    def best_fingertip(self) -> Optional[FingertipCandidate]:
        return self.fingertips[0] if self.fingertips else None


__all__ = [
    'INVALID_DEPTH',
    'BACKGROUND_BUCKET',
    'BUCKET_COUNT',
    'Point2D',
    'FrameShapeError',
    'HandSide',
    'SIDE_ORDER',
    'OpenState',
    'DepthFrame',
    'HandObservation',
    'BodyObservation',
    'BodyFrame',
    'ProfileSample',
    'BoundaryProfile',
    'FingertipCandidate',
    'HandRegion',
    'HandDetection',
]
