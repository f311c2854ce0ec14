#!/usr/bin/env python3
"""
DEPTH HANDS - depth-camera virtual pointing device
Main Application

Replays synchronized depth and body frames, detects fingertips and thumbs for
the driving body's hands, and turns them into cursor moves and clicks.
"""

import argparse
import sys
import time
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from depth_hands.app.gesture_controller import (
    ControllerConfig,
    ControllerStep,
    CursorState,
    HandGestureController,
    HandReading,
    PointerEventKind,
    assign_driver,
)
from depth_hands.app.pointer_dispatcher import PointerDispatcher
from depth_hands.app.recording import RecordingSource
from depth_hands.config.config_manager import config
from depth_hands.detectors.depth_gestures import DepthGestureManager, fingertip_depth
from depth_hands.detectors.depth_types import (
    SIDE_ORDER,
    BodyFrame,
    DepthFrame,
    FrameShapeError,
    HandDetection,
    HandObservation,
    HandSide,
)


_NO_HANDS: Mapping[HandSide, HandObservation] = MappingProxyType({})


class DepthHandsApplication:
    """Main DEPTH HANDS application controller."""

    def __init__(self, recording_path=None, enable_pointer_control=True, show_display=True,
                 loop=False, pointer_controller=None):
        """
        Initialize DEPTH HANDS application.

        Args:
            recording_path: .npz recording to replay (None when frames are pushed by the caller)
            enable_pointer_control: If True, actually move the mouse. If False, dry-run mode.
            show_display: Show the label buffer window
            loop: Restart the recording when it ends
            pointer_controller: Pointer sink to use instead of creating a PointerController
        """
        print("\n" + "="*60)
        print("DEPTH HANDS - Depth Camera Pointing Device")
        print("="*60 + "\n")

        print("Loading configuration...")
        self.config = config

        self.min_reliable_mm = int(config.get('depth', 'min_reliable_mm', default=500))
        self.max_reliable_mm = int(config.get('depth', 'max_reliable_mm', default=4500))
        self.frame_width = int(config.get('depth', 'width', default=512))
        self.frame_height = int(config.get('depth', 'height', default=424))
        self.bytes_per_pixel = int(config.get('depth', 'bytes_per_pixel', default=2))

        self.recording = None
        if recording_path is not None:
            self.recording = RecordingSource(recording_path, self.min_reliable_mm, self.max_reliable_mm)
            width, height = self.recording.frame_size
            print(f"✓ Recording loaded: {len(self.recording)} frames at {width}x{height}")

        self.gesture_mgr = DepthGestureManager()
        print("✓ Depth gesture manager initialized")

        try:
            controller_cfg = ControllerConfig.from_config()
        except (TypeError, ValueError) as e:
            print(f"⚠ Invalid cursor control settings ({e}), falling back to defaults")
            controller_cfg = ControllerConfig()
        self.controller = HandGestureController(controller_cfg)
        self.state = CursorState()
        print("✓ Cursor controller initialized")

        # Pointer sink
        self.enable_pointer_control = enable_pointer_control
        self.pointer = None
        self.dispatcher = None
        if enable_pointer_control:
            try:
                if pointer_controller is None:
                    from depth_hands.utils.pointer_controller import PointerController
                    pointer_controller = PointerController(config)
                self.pointer = pointer_controller
                self.dispatcher = PointerDispatcher(self.pointer)
                print("✓ Pointer controller initialized")
            except RuntimeError as e:
                print(f"⚠ Pointer controller failed: {e}")
                print("  Running in visualization-only mode")
                self.enable_pointer_control = False
        else:
            print("  Running in DRY-RUN mode (no pointer control)")

        self.visual = None
        if show_display and config.get('display', 'enabled', default=True):
            from depth_hands.utils.visual_feedback import VisualFeedback
            self.visual = VisualFeedback(config)
            print("✓ Visual feedback initialized")

        # Latest body snapshot: (driver id, driver hands). Replaced as a whole.
        self._latest = (None, _NO_HANDS)

        # Application state
        self.running = True
        self.paused = False
        self.loop = loop
        self.fps = float(config.get('replay', 'fps', default=30))
        self.last_detections: Dict[HandSide, Optional[HandDetection]] = {side: None for side in SIDE_ORDER}

        # Statistics
        self.frame_count = 0
        self.dropped_frames = 0
        self.events_sent = 0

        print("\n✓ DEPTH HANDS application ready!\n")

    @property
    def driver_id(self) -> Optional[int]:
        return self._latest[0]

    def on_body_frame(self, body_frame: BodyFrame):
        """Pick the driving body and publish its hands for the depth callback."""
        driver_id = assign_driver(body_frame.bodies, self._latest[0])

        hands = _NO_HANDS
        if driver_id is not None:
            for body in body_frame.bodies:
                if body.body_id == driver_id and body.is_tracked:
                    hands = MappingProxyType(dict(body.hands))
                    break

        self._latest = (driver_id, hands)

    def on_depth_buffer(self, buffer, width: Optional[int] = None, height: Optional[int] = None,
                        bytes_per_pixel: Optional[int] = None) -> Optional[ControllerStep]:
        """
        Validate a raw depth buffer and process it; malformed frames are dropped.
        Geometry not given here comes from the 'depth' config section.
        """
        width = self.frame_width if width is None else width
        height = self.frame_height if height is None else height
        bytes_per_pixel = self.bytes_per_pixel if bytes_per_pixel is None else bytes_per_pixel
        try:
            frame = DepthFrame.from_buffer(buffer, width, height, bytes_per_pixel,
                                           self.min_reliable_mm, self.max_reliable_mm)
        except FrameShapeError as e:
            self.dropped_frames += 1
            if self.dropped_frames == 1:
                print(f"⚠ Dropping malformed depth frame: {e}")
            return None
        return self.on_depth_frame(frame)

    def on_depth_frame(self, frame: DepthFrame) -> ControllerStep:
        """
        Run detection and cursor control for one depth frame.

        Returns:
            ControllerStep with the new cursor state and the events sent
        """
        self.frame_count += 1
        driver_id, hands = self._latest

        detections = self.gesture_mgr.process_hands(frame, hands)
        readings = {
            side: HandReading(
                observation=hands.get(side),
                detection=detections[side],
                tip_depth=fingertip_depth(frame, detections[side]),
            )
            for side in SIDE_ORDER
        }

        result = self.controller.step(self.state, driver_id, readings)
        self.state = result.state
        self.last_detections = detections

        events = result.events
        if self.paused:
            # Releases still go out so no button stays held
            events = [e for e in events if e.kind == PointerEventKind.BUTTON_UP]
        if events and self.dispatcher is not None:
            self.dispatcher.dispatch(events)
            self.events_sent += len(events)

        return result

    def handle_key(self, key: int):
        if key == -1:
            return
        try:
            k = chr(key).lower()
        except ValueError:
            return

        if k == 'q':
            self.running = False
        elif k == 'p':
            self.paused = not self.paused
            if self.pointer is not None:
                self.pointer.toggle_pause()
            print(f"{'⏸ PAUSED' if self.paused else '▶ RESUMED'}")
        elif k == 'h':
            self.print_controls()

    def run(self):
        """Main application loop: replay the recording at the configured rate."""
        if self.recording is None:
            raise RuntimeError("❌ No recording to replay")

        self.print_controls()
        frame_interval = 1.0 / self.fps if self.fps > 0 else 0.0

        try:
            while self.running:
                for body_frame, depth_frame in self.recording:
                    started = time.time()

                    self.on_body_frame(body_frame)
                    self.on_depth_frame(depth_frame)

                    if self.visual is not None:
                        image = self.visual.render(depth_frame, self.last_detections)
                        self.handle_key(self.visual.show(image))

                    if not self.running:
                        break

                    elapsed = time.time() - started
                    if frame_interval > elapsed:
                        time.sleep(frame_interval - elapsed)

                if not self.loop:
                    break
        finally:
            self.cleanup()

    def cleanup(self):
        """Release held buttons and close the display."""
        print("\n🧹 Cleaning up...")

        if self.pointer is not None:
            for button in ('left', 'right'):
                if self.state.button_down(button):
                    self.pointer.release(button)
            self.state = CursorState(active_driver_id=self.state.active_driver_id)

        if self.visual is not None:
            try:
                self.visual.close()
            except Exception as e:
                print(f"⚠ Error closing display: {e}")

        print(f"  Frames: {self.frame_count}  dropped: {self.dropped_frames}  events: {self.events_sent}")
        print("✓ DEPTH HANDS application stopped\n")

    def print_controls(self):
        """Print control instructions."""
        print("\n" + "="*60)
        print("KEYBOARD CONTROLS (display window)")
        print("="*60)
        print("  Q - Quit application")
        print("  P - Pause/Resume pointer control")
        print("  H - Show this help")
        print("\n" + "="*60)
        print("GESTURE CONTROLS")
        print("="*60)
        print("  👆 One fingertip - Move cursor")
        print("  👆 Hold fingertip still - Left click (after 60 frames)")
        print("  ✊ Right hand closed - Hold left button")
        print("  ✊ Left hand closed - Hold right button")
        print("  ✋ Open hand - Release button")
        print("="*60 + "\n")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="DEPTH HANDS - Depth camera virtual pointing device"
    )
    parser.add_argument(
        '--recording', type=str, required=True,
        help='Path to a .npz recording of depth and body frames'
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to config.json (default: depth_hands/config/config.json)'
    )
    parser.add_argument(
        '--dry-run', action='store_true',
        help='Run without pointer control (detection and display only)'
    )
    parser.add_argument(
        '--no-display', action='store_true',
        help='Do not open the label buffer window'
    )
    parser.add_argument(
        '--loop', action='store_true',
        help='Restart the recording when it ends'
    )

    args = parser.parse_args()

    # Load custom config if specified
    if args.config:
        from depth_hands.config.config_manager import Config
        Config(args.config)

    try:
        app = DepthHandsApplication(
            recording_path=args.recording,
            enable_pointer_control=not args.dry_run,
            show_display=not args.no_display,
            loop=args.loop,
        )
        app.run()
    except KeyboardInterrupt:
        print("\n⚠ Interrupted by user")
    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
