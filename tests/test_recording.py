import unittest
import sys
import os
import tempfile

import numpy as np

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from depth_hands.app.recording import RecordingError, RecordingSource, save_recording
from depth_hands.detectors.depth_types import HandSide, OpenState


class TestRecording(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "session.npz")

        depth = np.full((3, 6, 8), 1000, dtype=np.uint16)
        depth[1, 2, 3] = 0
        palm = np.zeros((3, 2, 2))
        palm[:, 0] = (4.0, 3.0)
        palm[:, 1] = (1.5, 2.5)
        wrist = palm + np.array([0.0, 2.0])
        hand_state = [["lasso", "open"], ["closed", "unknown"], ["open", "open"]]
        palm_tracked = np.array([[True, False], [True, True], [True, True]])
        save_recording(self.path, depth, palm, wrist, palm_tracked=palm_tracked,
                       hand_state=hand_state, body_id=np.array([4, 4, -1]))

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_frames(self):
        source = RecordingSource(self.path)
        self.assertEqual(len(source), 3)
        self.assertEqual(source.frame_size, (8, 6))

        frames = list(source)
        body_frame, depth_frame = frames[1]
        self.assertEqual(depth_frame.sample((3, 2)), 0)
        self.assertEqual(depth_frame.sample((0, 0)), 1000)

        body = body_frame.bodies[0]
        self.assertEqual(body.body_id, 4)
        self.assertTrue(body.is_tracked)
        self.assertEqual(body.hands[HandSide.RIGHT].palm, (4.0, 3.0))
        self.assertEqual(body.hands[HandSide.RIGHT].wrist, (4.0, 5.0))
        self.assertEqual(body.hands[HandSide.RIGHT].open_state, OpenState.CLOSED)
        self.assertEqual(body.hands[HandSide.LEFT].palm_px, (2, 2))

    def test_tracking_flags(self):
        body = RecordingSource(self.path).body_frame(0).bodies[0]
        self.assertTrue(body.hands[HandSide.RIGHT].tracking_valid)
        self.assertFalse(body.hands[HandSide.LEFT].tracking_valid)

    def test_no_body(self):
        self.assertEqual(RecordingSource(self.path).body_frame(2).bodies, ())

    def test_reliable_range_applied(self):
        source = RecordingSource(self.path, min_reliable_mm=800, max_reliable_mm=1200)
        frame = source.depth_frame(0)
        self.assertEqual((frame.min_reliable_mm, frame.max_reliable_mm), (800, 1200))

    def test_default_body(self):
        path = os.path.join(self.tmpdir.name, "plain")
        path = save_recording(path, np.zeros((2, 4, 4)), np.zeros((2, 2, 2)), np.zeros((2, 2, 2)))
        self.assertTrue(str(path).endswith("plain.npz"))
        body = RecordingSource(path).body_frame(1).bodies[0]
        self.assertEqual(body.body_id, 0)
        self.assertEqual(body.hands[HandSide.LEFT].open_state, OpenState.UNKNOWN)

    def test_missing_arrays(self):
        path = os.path.join(self.tmpdir.name, "bad.npz")
        np.savez(path, depth=np.zeros((2, 4, 4), dtype=np.uint16))
        with self.assertRaises(RecordingError):
            RecordingSource(path)

    def test_shape_mismatch(self):
        path = os.path.join(self.tmpdir.name, "short.npz")
        save_recording(path, np.zeros((3, 4, 4)), np.zeros((2, 2, 2)), np.zeros((3, 2, 2)))
        with self.assertRaises(RecordingError):
            RecordingSource(path)


if __name__ == '__main__':
    unittest.main()
