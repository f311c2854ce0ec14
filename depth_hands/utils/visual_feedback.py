"""
Visual Feedback for DEPTH HANDS

Renders the 8-bucket label buffer of the current frame with a fixed palette
and draws the detector results on top: classification window guide, palm,
wrist, fingertips and thumb. Purely observational; nothing here feeds back
into detection or cursor control.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import cv2
import numpy as np

from depth_hands.detectors.depth_types import (
    BACKGROUND_BUCKET,
    BUCKET_COUNT,
    DepthFrame,
    HandDetection,
    HandSide,
)


# Bucket colours in BGR: nearest slice blue, through green and orange, to red;
# background black
LABEL_PALETTE = np.array([
    (255, 0, 0),
    (0, 255, 0),
    (0, 200, 70),
    (0, 180, 100),
    (0, 100, 200),
    (0, 70, 230),
    (0, 0, 255),
    (0, 0, 0),
], dtype=np.uint8)


@dataclass
class OverlayColors:
    """Overlay colours (BGR)."""
    guide = (200, 200, 200)
    palm = (68, 192, 68)       # tracked joint green
    wrist = (0, 200, 255)
    fingertip = (255, 255, 255)
    best_fingertip = (255, 0, 255)
    thumb = (0, 255, 255)
    text = (255, 255, 255)


class VisualFeedback:
    """
    Draws the label buffer and hand overlays into an OpenCV window.
    """

    def __init__(self, config=None):
        """Initialize visual feedback system."""
        self.colors = OverlayColors()

        if config:
            from depth_hands.config.config_manager import get_display_setting
            self.enabled = bool(get_display_setting('enabled', True))
            self.window_name = str(get_display_setting('window_name', 'DEPTH HANDS'))
            self.scale = float(get_display_setting('scale', 1.5))
            self.show_guide = bool(get_display_setting('show_guide', True))
        else:
            self.enabled = True
            self.window_name = 'DEPTH HANDS'
            self.scale = 1.5
            self.show_guide = True

    def colorize_labels(self, labels: np.ndarray) -> np.ndarray:
        """Map a (H, W) bucket image to a (H, W, 3) BGR image."""
        idx = np.clip(labels, 0, BUCKET_COUNT - 1)
        return LABEL_PALETTE[idx]

    def render(
        self,
        frame: DepthFrame,
        detections: Dict[HandSide, Optional[HandDetection]],
    ) -> np.ndarray:
        """
        Build the display image for one depth frame.

        Every hand region only labels its own window, so the per-hand label
        buffers are merged by keeping the nearest (lowest) bucket per pixel.

        Returns:
            BGR image of shape (frame.height, frame.width, 3)
        """
        labels = np.full((frame.height, frame.width), BACKGROUND_BUCKET, dtype=np.uint8)
        for detection in detections.values():
            if detection is not None and detection.region is not None:
                np.minimum(labels, detection.region.labels, out=labels)

        image = np.ascontiguousarray(self.colorize_labels(labels))

        for side, detection in detections.items():
            if detection is not None:
                self._draw_hand(image, detection, side)

        return image

    def _draw_hand(self, image: np.ndarray, detection: HandDetection, side: HandSide):
        if self.show_guide and detection.region is not None:
            x0, y0, x1, y1 = detection.region.window
            if x1 > x0 and y1 > y0:
                cv2.rectangle(image, (x0, y0), (x1 - 1, y1 - 1), self.colors.guide, 1)

        cv2.line(image, detection.wrist, detection.palm, self.colors.palm, 1)
        cv2.circle(image, detection.wrist, 4, self.colors.wrist, -1)
        cv2.circle(image, detection.palm, 5, self.colors.palm, -1)

        for rank, tip in enumerate(detection.fingertips):
            color = self.colors.best_fingertip if rank == 0 else self.colors.fingertip
            cv2.circle(image, tip.point, 4, color, -1)

        if detection.thumb is not None:
            cv2.circle(image, detection.thumb.point, 4, self.colors.thumb, -1)

        label = f"{side.value[0].upper()} {len(detection.fingertips)}"
        cv2.putText(image, label, (detection.palm[0] + 8, detection.palm[1] - 8),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.4, self.colors.text, 1)

    def show(self, image: np.ndarray) -> int:
        """
        Show an image in the feedback window.

        Returns:
            Key code from cv2.waitKey (-1 when no key was pressed)
        """
        if not self.enabled:
            return -1
        if self.scale != 1.0:
            image = cv2.resize(image, None, fx=self.scale, fy=self.scale,
                               interpolation=cv2.INTER_NEAREST)
        cv2.imshow(self.window_name, image)
        key = cv2.waitKey(1)
        return key & 0xFF if key != -1 else -1

    def close(self):
        if self.enabled:
            cv2.destroyWindow(self.window_name)


__all__ = [
    'LABEL_PALETTE',
    'OverlayColors',
    'VisualFeedback',
]
