"""
Fingertip and thumb selection over boundary profiles.

Greedy non-maximum selection: the longest ray wins, its neighbourhood is
cleared, and the acceptance bar relative to the average ray length is lowered
a little for the next (usually shorter) finger.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from depth_hands.detectors.depth_types import (
    BoundaryProfile,
    FingertipCandidate,
    OpenState,
    ProfileSample,
)


@dataclass
class SelectorConfig:
    """Acceptance policy for fingertip and thumb candidates."""
    coefficient: float = 1.3
    coefficient_decay: float = 0.05
    min_coefficient: float = 1.1
    tip_suppression_radius: int = 7
    thumb_coefficient: float = 1.5
    max_fingertips_open: int = 4
    max_fingertips_lasso: int = 1
    max_fingertips_other: int = 4

    @classmethod
    def from_config(cls) -> 'SelectorConfig':
        from depth_hands.config.config_manager import get_detection_setting
        return cls(
            coefficient=float(get_detection_setting('selection', 'coefficient', 1.3)),
            coefficient_decay=float(get_detection_setting('selection', 'coefficient_decay', 0.05)),
            min_coefficient=float(get_detection_setting('selection', 'min_coefficient', 1.1)),
            tip_suppression_radius=int(get_detection_setting('selection', 'tip_suppression_radius', 7)),
            thumb_coefficient=float(get_detection_setting('selection', 'thumb_coefficient', 1.5)),
            max_fingertips_open=int(get_detection_setting('selection', 'max_fingertips_open', 4)),
            max_fingertips_lasso=int(get_detection_setting('selection', 'max_fingertips_lasso', 1)),
            max_fingertips_other=int(get_detection_setting('selection', 'max_fingertips_other', 4)),
        )

    def max_candidates(self, open_state: OpenState) -> int:
        """How many fingertips to look for given the tracker's hand state."""
        if open_state == OpenState.LASSO:
            return self.max_fingertips_lasso
        if open_state == OpenState.OPEN:
            return self.max_fingertips_open
        return self.max_fingertips_other


def average_distance(profile: BoundaryProfile) -> float:
    """Mean of the non-zero distances, 0.0 when no ray found a boundary."""
    hits = [s.distance for s in profile if s.distance > 0]
    if not hits:
        return 0.0
    return float(np.mean(hits))


def select_fingertips(
    profile: Iterable[ProfileSample],
    cfg: Optional[SelectorConfig] = None,
    max_candidates: int = 1,
) -> List[FingertipCandidate]:
    """
    Pick up to `max_candidates` fingertips, longest first.

    Each round takes the global maximum distance (first one on ties) and stops
    when it is not above average * coefficient. An accepted ray clears every
    ray whose offset lies within +-tip_suppression_radius of it, and the
    coefficient drops by coefficient_decay (never below min_coefficient).

    Returns:
        Candidates in acceptance order; empty when nothing was found
    """
    cfg = cfg or SelectorConfig()
    samples = list(profile)
    average = average_distance(samples)
    if average <= 0.0 or max_candidates <= 0:
        return []

    remaining = np.array([s.distance for s in samples], dtype=float)
    offsets = np.array([s.offset for s in samples], dtype=np.int64)
    coefficient = cfg.coefficient
    tips: List[FingertipCandidate] = []

    while len(tips) < max_candidates:
        k = int(np.argmax(remaining))
        best = remaining[k]
        if best <= average * coefficient:
            break

        sample = samples[k]
        tips.append(FingertipCandidate(
            point=sample.point,
            distance_score=float(sample.distance),
            offset=sample.offset,
        ))

        remaining[np.abs(offsets - sample.offset) <= cfg.tip_suppression_radius] = 0.0
        coefficient = max(cfg.min_coefficient, coefficient - cfg.coefficient_decay)

    return tips


def select_thumb(
    profile: Iterable[ProfileSample],
    cfg: Optional[SelectorConfig] = None,
) -> Optional[FingertipCandidate]:
    """
    Single thumb candidate: the longest ray, if above average * thumb_coefficient.
    """
    cfg = cfg or SelectorConfig()
    samples = list(profile)
    average = average_distance(samples)
    if average <= 0.0:
        return None

    best = max(samples, key=lambda s: s.distance)
    if best.distance <= average * cfg.thumb_coefficient:
        return None

    return FingertipCandidate(
        point=best.point,
        distance_score=float(best.distance),
        offset=best.offset,
    )


__all__ = [
    'SelectorConfig',
    'average_distance',
    'select_fingertips',
    'select_thumb',
]
