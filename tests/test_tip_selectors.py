import unittest
import sys
import os

import numpy as np

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from depth_hands.detectors.depth_types import OpenState, ProfileSample
from depth_hands.detectors.tip_selectors import (
    SelectorConfig,
    average_distance,
    select_fingertips,
    select_thumb,
)


def profile_from(distances, first_offset=-60):
    return [
        ProfileSample(offset=first_offset + k, distance=int(d),
                      point=(100 + k, 100 - int(d)) if d > 0 else None)
        for k, d in enumerate(distances)
    ]


class TestFingertipSelector(unittest.TestCase):
    def test_empty_profile(self):
        self.assertEqual(select_fingertips(profile_from([0] * 120), max_candidates=4), [])
        self.assertEqual(select_fingertips([], max_candidates=4), [])

    def test_average_ignores_misses(self):
        self.assertEqual(average_distance(profile_from([0, 10, 0, 20])), 15.0)

    def test_two_fingers_longest_first(self):
        distances = [20] * 120
        distances[30] = 50   # offset -30
        distances[90] = 45   # offset 30
        tips = select_fingertips(profile_from(distances), max_candidates=4)
        self.assertEqual([t.offset for t in tips], [-30, 30])
        self.assertEqual([t.distance_score for t in tips], [50.0, 45.0])
        self.assertEqual(tips[0].point, (130, 50))

    def test_max_candidates_respected(self):
        distances = [20] * 120
        distances[30] = 50
        distances[90] = 45
        tips = select_fingertips(profile_from(distances), max_candidates=1)
        self.assertEqual(len(tips), 1)
        self.assertEqual(tips[0].offset, -30)

    def test_flat_profile_has_no_fingertip(self):
        self.assertEqual(select_fingertips(profile_from([25] * 120), max_candidates=4), [])

    def test_neighbourhood_is_suppressed(self):
        distances = [10] * 120
        distances[60] = 40
        distances[67] = 39   # within 7 offsets of the first peak
        distances[68] = 38   # just outside
        tips = select_fingertips(profile_from(distances), max_candidates=4)
        self.assertEqual([t.offset for t in tips], [0, 8])

    def test_ties_take_first_offset(self):
        distances = [10] * 120
        distances[20] = 40
        distances[100] = 40
        tips = select_fingertips(profile_from(distances), max_candidates=1)
        self.assertEqual(tips[0].offset, -40)

    def test_suppression_is_monotonic(self):
        rng = np.random.default_rng(20240601)
        cfg = SelectorConfig()
        for _ in range(200):
            distances = rng.integers(0, 91, size=120)
            tips = select_fingertips(profile_from(distances), cfg, max_candidates=4)
            scores = [t.distance_score for t in tips]
            self.assertEqual(scores, sorted(scores, reverse=True))
            offsets = [t.offset for t in tips]
            for i in range(len(offsets)):
                for j in range(i + 1, len(offsets)):
                    self.assertGreater(abs(offsets[i] - offsets[j]), cfg.tip_suppression_radius)

    def test_max_candidates_per_hand_state(self):
        cfg = SelectorConfig()
        self.assertEqual(cfg.max_candidates(OpenState.OPEN), 4)
        self.assertEqual(cfg.max_candidates(OpenState.LASSO), 1)
        self.assertEqual(cfg.max_candidates(OpenState.CLOSED), 4)
        self.assertEqual(cfg.max_candidates(OpenState.UNKNOWN), 4)


class TestThumbSelector(unittest.TestCase):
    def test_thumb_above_threshold(self):
        distances = [10] * 30
        distances[12] = 20
        thumb = select_thumb(profile_from(distances, first_offset=0))
        self.assertIsNotNone(thumb)
        self.assertEqual(thumb.offset, 12)
        self.assertEqual(thumb.distance_score, 20.0)

    def test_thumb_below_threshold_is_rejected(self):
        distances = [10] * 30
        distances[12] = 15
        self.assertIsNone(select_thumb(profile_from(distances, first_offset=0)))

    def test_thumb_exactly_at_threshold_is_rejected(self):
        # non-zero mean is 48 / 4 = 12, so the bar is exactly 18
        distances = [0] * 30
        distances[3] = distances[4] = distances[5] = 10
        distances[12] = 18
        self.assertIsNone(select_thumb(profile_from(distances, first_offset=0)))

        distances[12] = 19
        self.assertIsNotNone(select_thumb(profile_from(distances, first_offset=0)))

    def test_empty_thumb_profile(self):
        self.assertIsNone(select_thumb(profile_from([0] * 30, first_offset=0)))
        self.assertIsNone(select_thumb([]))


if __name__ == '__main__':
    unittest.main()
