import unittest
from unittest.mock import create_autospec
import sys
import os
import tempfile

import numpy as np

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from depth_hands.app.depth_app import DepthHandsApplication
from depth_hands.app.gesture_controller import HandGestureState
from depth_hands.app.recording import save_recording
from depth_hands.detectors.depth_types import BodyFrame, BodyObservation, DepthFrame, HandSide, OpenState
from depth_hands.utils.pointer_controller import PointerController

from depth_scenes import (
    HEIGHT,
    PALM,
    WIDTH,
    WRIST,
    pointing_body_frame,
    pointing_scene_depth,
    pointing_scene_frame,
)


class TestDepthHandsApplication(unittest.TestCase):
    def setUp(self):
        self.mock_pointer = create_autospec(PointerController, instance=True)
        self.app = DepthHandsApplication(
            enable_pointer_control=True,
            show_display=False,
            pointer_controller=self.mock_pointer,
        )

    def test_no_processing_before_body_frame(self):
        result = self.app.on_depth_frame(pointing_scene_frame())
        self.assertEqual(result.events, [])
        self.assertIsNone(self.app.driver_id)
        self.assertTrue(all(d is None for d in self.app.last_detections.values()))

    def test_pointing_scene_clicks_once(self):
        self.app.on_body_frame(pointing_body_frame())
        frame = pointing_scene_frame()
        for _ in range(90):
            result = self.app.on_depth_frame(frame)
        self.assertEqual(result.hand_states[HandSide.RIGHT], HandGestureState.POINTING)
        self.mock_pointer.click.assert_called_once_with(button="left")
        self.mock_pointer.move_relative.assert_not_called()
        self.assertEqual(self.app.events_sent, 1)

    def test_closed_hand_presses_and_cleanup_releases(self):
        self.app.on_body_frame(pointing_body_frame(open_state=OpenState.CLOSED))
        self.app.on_depth_frame(pointing_scene_frame())
        self.mock_pointer.press.assert_called_once_with(button="left")

        self.app.cleanup()
        self.mock_pointer.release.assert_called_once_with("left")
        self.assertFalse(self.app.state.left_button_down)

    def test_paused_app_sends_nothing(self):
        self.app.handle_key(ord('p'))
        self.assertTrue(self.app.paused)
        self.mock_pointer.toggle_pause.assert_called_once()

        self.app.on_body_frame(pointing_body_frame(open_state=OpenState.CLOSED))
        self.app.on_depth_frame(pointing_scene_frame())
        self.mock_pointer.press.assert_not_called()

    def test_release_goes_out_while_paused(self):
        self.app.on_body_frame(pointing_body_frame(open_state=OpenState.CLOSED))
        self.app.on_depth_frame(pointing_scene_frame())
        self.mock_pointer.press.assert_called_once_with(button="left")

        self.app.handle_key(ord('p'))
        self.app.on_body_frame(pointing_body_frame(open_state=OpenState.OPEN))
        empty = DepthFrame.from_array(np.zeros((HEIGHT, WIDTH), dtype=np.uint16))
        result = self.app.on_depth_frame(empty)
        self.assertEqual(result.hand_states[HandSide.RIGHT], HandGestureState.OPEN_NO_FINGERS)
        self.mock_pointer.release.assert_called_once_with(button="left")
        self.assertFalse(self.app.state.left_button_down)

        self.app.cleanup()
        self.mock_pointer.release.assert_called_once_with(button="left")

    def test_paused_app_drops_moves_and_clicks(self):
        self.app.handle_key(ord('p'))
        self.app.on_body_frame(pointing_body_frame())
        frame = pointing_scene_frame()
        for _ in range(60):
            self.app.on_depth_frame(frame)
        self.mock_pointer.click.assert_not_called()
        self.assertEqual(self.app.events_sent, 0)

    def test_quit_key(self):
        self.app.handle_key(ord('q'))
        self.assertFalse(self.app.running)

    def test_driver_switches_after_loss(self):
        self.app.on_body_frame(pointing_body_frame(body_id=3))
        self.assertEqual(self.app.driver_id, 3)

        other = BodyFrame(bodies=(BodyObservation(body_id=8, is_tracked=True),))
        self.app.on_body_frame(other)
        self.assertIsNone(self.app.driver_id)
        self.app.on_body_frame(other)
        self.assertEqual(self.app.driver_id, 8)

    def test_malformed_buffer_is_dropped(self):
        self.app.on_body_frame(pointing_body_frame())
        result = self.app.on_depth_buffer(b'\x00' * 100, WIDTH, HEIGHT)
        self.assertIsNone(result)
        self.assertEqual(self.app.dropped_frames, 1)
        self.assertEqual(self.app.frame_count, 0)

        raw = pointing_scene_depth().astype('<u2').tobytes()
        result = self.app.on_depth_buffer(raw, WIDTH, HEIGHT)
        self.assertIsNotNone(result)
        self.assertEqual(self.app.frame_count, 1)

    def test_buffer_geometry_defaults_to_config(self):
        self.app.on_body_frame(pointing_body_frame())
        raw = pointing_scene_depth().astype('<u2').tobytes()
        self.assertIsNotNone(self.app.on_depth_buffer(raw))
        self.assertEqual(self.app.frame_count, 1)

        self.assertIsNone(self.app.on_depth_buffer(raw[:-2]))
        self.assertEqual(self.app.dropped_frames, 1)

    def test_dry_run_has_no_pointer(self):
        app = DepthHandsApplication(enable_pointer_control=False, show_display=False)
        self.assertIsNone(app.dispatcher)
        app.on_body_frame(pointing_body_frame(open_state=OpenState.CLOSED))
        result = app.on_depth_frame(pointing_scene_frame())
        self.assertEqual(len(result.events), 1)
        self.assertEqual(app.events_sent, 0)


class TestRecordingReplay(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_run_replays_recording(self):
        n = 3
        depth = np.repeat(pointing_scene_depth()[None], n, axis=0)
        palm = np.zeros((n, 2, 2))
        wrist = np.zeros((n, 2, 2))
        palm[:, 0] = PALM
        wrist[:, 0] = WRIST
        palm_tracked = np.array([[True, False]] * n)
        hand_state = [["closed", "unknown"]] * n
        path = save_recording(os.path.join(self.tmpdir.name, "closed.npz"), depth, palm, wrist,
                              palm_tracked=palm_tracked, hand_state=hand_state)

        mock_pointer = create_autospec(PointerController, instance=True)
        app = DepthHandsApplication(recording_path=path, show_display=False,
                                    pointer_controller=mock_pointer)
        app.fps = 0
        app.run()

        self.assertEqual(app.frame_count, n)
        mock_pointer.press.assert_called_once_with(button="left")
        # cleanup lets go of the held button
        mock_pointer.release.assert_called_once_with("left")

    def test_run_without_recording(self):
        app = DepthHandsApplication(enable_pointer_control=False, show_display=False)
        with self.assertRaises(RuntimeError):
            app.run()


if __name__ == '__main__':
    unittest.main()
