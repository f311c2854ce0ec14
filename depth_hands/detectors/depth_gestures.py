"""
Per-hand depth detection pipeline.

Runs region classification, the finger and thumb ray fans and the tip
selectors for every tracked hand of the current depth frame.
"""

from typing import Dict, Mapping, Optional

from depth_hands.detectors.boundary_rays import RayFanConfig, cast_finger_rays, cast_thumb_rays
from depth_hands.detectors.depth_types import (
    SIDE_ORDER,
    DepthFrame,
    HandDetection,
    HandObservation,
    HandSide,
    INVALID_DEPTH,
)
from depth_hands.detectors.hand_region import RegionConfig, classify_hand_region, mark_points
from depth_hands.detectors.tip_selectors import SelectorConfig, select_fingertips, select_thumb


class DepthGestureManager:
    """
    Runs the depth detectors for both hands.
    Holds configuration only; every call works on the frame it is given.
    """
    def __init__(
        self,
        region_cfg: Optional[RegionConfig] = None,
        ray_cfg: Optional[RayFanConfig] = None,
        selector_cfg: Optional[SelectorConfig] = None,
    ):
        if region_cfg is None or ray_cfg is None or selector_cfg is None:
            try:
                region_cfg = region_cfg or RegionConfig.from_config()
                ray_cfg = ray_cfg or RayFanConfig.from_config()
                selector_cfg = selector_cfg or SelectorConfig.from_config()
            except (TypeError, ValueError) as e:
                print(f"⚠ Invalid detector settings ({e}), falling back to defaults")
                region_cfg = region_cfg or RegionConfig()
                ray_cfg = ray_cfg or RayFanConfig()
                selector_cfg = selector_cfg or SelectorConfig()

        self.region_cfg = region_cfg
        self.ray_cfg = ray_cfg
        self.selector_cfg = selector_cfg

    def process_hand(
        self,
        frame: DepthFrame,
        observation: Optional[HandObservation],
        side: HandSide = HandSide.RIGHT,
    ) -> Optional[HandDetection]:
        """
        Detect fingertips and thumb for one hand.

        Returns None when the hand is not usable this frame: no observation,
        palm or wrist untracked, or the palm pixel off the grid / without depth.
        """
        if observation is None or not observation.tracking_valid:
            return None

        palm = observation.palm_px
        wrist = observation.wrist_px

        region = classify_hand_region(frame, palm, wrist, self.region_cfg)
        if region is None:
            return None

        finger_profile = list(cast_finger_rays(region, palm, wrist, self.ray_cfg))
        fingertips = select_fingertips(
            finger_profile,
            self.selector_cfg,
            max_candidates=self.selector_cfg.max_candidates(observation.open_state),
        )

        # Thumb rays must not land on fingers that were already accepted
        mark_points(region, (tip.point for tip in fingertips), self.ray_cfg.tip_mark_radius)

        thumb_profile = list(cast_thumb_rays(region, palm, wrist, side, self.ray_cfg))
        thumb = select_thumb(thumb_profile, self.selector_cfg)

        return HandDetection(
            side=side,
            palm=palm,
            wrist=wrist,
            palm_depth=region.palm_depth,
            open_state=observation.open_state,
            fingertips=fingertips,
            thumb=thumb,
            finger_profile=finger_profile,
            thumb_profile=thumb_profile,
            region=region,
        )

    def process_hands(
        self,
        frame: DepthFrame,
        hands: Mapping[HandSide, HandObservation],
    ) -> Dict[HandSide, Optional[HandDetection]]:
        """
        Process every side in the fixed evaluation order.

        Returns:
            {HandSide.RIGHT: detection or None, HandSide.LEFT: detection or None}
        """
        return {side: self.process_hand(frame, hands.get(side), side) for side in SIDE_ORDER}


def fingertip_depth(frame: DepthFrame, detection: Optional[HandDetection]) -> int:
    """Depth under the best fingertip, INVALID_DEPTH when there is none."""
    if detection is None or detection.best_fingertip is None:
        return INVALID_DEPTH
    return frame.sample(detection.best_fingertip.point)


__all__ = [
    'DepthGestureManager',
    'fingertip_depth',
]
