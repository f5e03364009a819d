"""
Unit tests for the calibration session state machine.
"""

import unittest
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chesscal.calibration.session import (
    Action, Mode, Session, State,
    accumulate_step, complete, finish, mode_for_key, select_mode, start_live,
)
from chesscal.utils.data_structures import BoardGeometry, Intrinsics, Observation


BOARD = BoardGeometry(width=9, height=6)
IMAGE_SIZE = (1280, 720)


def make_corners(board=BOARD):
    """Fake detector output for a full board."""
    return np.random.rand(board.corner_count, 1, 2).astype(np.float32) * 600


def found(board=BOARD):
    return Observation(image_size=IMAGE_SIZE, corners=make_corners(board))


def missed():
    return Observation(image_size=IMAGE_SIZE, corners=None)


def accumulating(target_count=20, interval=1.0):
    session = Session(board=BOARD, target_count=target_count, min_capture_interval=interval)
    return select_mode(session, '1')


class TestModeSelection(unittest.TestCase):
    """Test mode selection."""

    def test_keys_map_to_modes(self):
        """Test default key bindings."""
        self.assertEqual(mode_for_key('1'), Mode.GENERATE)
        self.assertEqual(mode_for_key('2'), Mode.PRESET_BAD)
        self.assertEqual(mode_for_key('3'), Mode.PRESET_GOOD)
        self.assertIsNone(mode_for_key('x'))
        self.assertIsNone(mode_for_key(None))

    def test_custom_controls(self):
        """Test rebinding a mode key."""
        self.assertEqual(mode_for_key('g', {'generate': 'g'}), Mode.GENERATE)
        self.assertIsNone(mode_for_key('1', {'generate': 'g'}))

    def test_numeric_controls(self):
        """Test bindings loaded from YAML as ints match typed characters."""
        self.assertEqual(mode_for_key('5', {'generate': 5}), Mode.GENERATE)
        self.assertEqual(mode_for_key('7', {'preset_good': 7}), Mode.PRESET_GOOD)

    def test_select_transitions(self):
        """Test each mode leads to its own state."""
        session = Session(board=BOARD)
        self.assertEqual(select_mode(session, '1').state, State.ACCUMULATING)
        self.assertEqual(select_mode(session, '2').state, State.LOADING_PRESET_BAD)
        self.assertEqual(select_mode(session, '3').state, State.LOADING_PRESET_GOOD)

    def test_unknown_key_keeps_waiting(self):
        """Test unrelated keys do not select anything."""
        session = Session(board=BOARD)
        self.assertIs(select_mode(session, 'q'), session)
        self.assertIs(select_mode(session, None), session)

    def test_select_twice_rejected(self):
        """Test a mode can only be chosen once."""
        session = select_mode(Session(board=BOARD), '2')
        with self.assertRaises(ValueError):
            select_mode(session, '1')

    def test_preset_cannot_accumulate(self):
        """Test preset sessions never accept samples."""
        session = select_mode(Session(board=BOARD), '3')
        with self.assertRaises(ValueError):
            accumulate_step(session, found(), None, 0.0)


class TestAccumulation(unittest.TestCase):
    """Test sample accumulation."""

    def test_first_detection_accepted(self):
        """Test the first found board is accepted."""
        session, action = accumulate_step(accumulating(), found(), None, 0.0)
        self.assertEqual(action, Action.ACCEPTED)
        self.assertEqual(session.sample_count, 1)
        self.assertEqual(session.last_accepted, 0.0)
        self.assertEqual(session.image_size, IMAGE_SIZE)

    def test_no_frame_skips(self):
        """Test a missing frame leaves the session untouched."""
        session = accumulating()
        next_session, action = accumulate_step(session, None, None, 5.0)
        self.assertEqual(action, Action.SKIP)
        self.assertIs(next_session, session)

    def test_detection_miss_continues(self):
        """Test frames without a board are not accepted."""
        session, action = accumulate_step(accumulating(), missed(), None, 5.0)
        self.assertEqual(action, Action.CONTINUE)
        self.assertEqual(session.sample_count, 0)
        self.assertEqual(session.image_size, IMAGE_SIZE)

    def test_minimum_spacing(self):
        """Test samples closer than the capture interval are rejected."""
        session, _ = accumulate_step(accumulating(), found(), None, 10.0)
        session, action = accumulate_step(session, found(), None, 10.5)
        self.assertEqual(action, Action.CONTINUE)
        self.assertEqual(session.sample_count, 1)

        session, action = accumulate_step(session, found(), None, 11.0)
        self.assertEqual(action, Action.ACCEPTED)
        self.assertEqual(session.sample_count, 2)

    def test_accepted_timestamps_spaced(self):
        """Test every pair of consecutive acceptances is at least one second apart."""
        session = accumulating(target_count=50)
        accepted_at = []
        now = 0.0
        while len(accepted_at) < 10:
            session, action = accumulate_step(session, found(), None, now)
            if action is Action.ACCEPTED:
                accepted_at.append(now)
            now += 0.3
        gaps = np.diff(accepted_at)
        self.assertTrue(np.all(gaps >= 1.0 - 1e-9))

    def test_solve_exactly_at_target(self):
        """Test SOLVE is returned when the target count is reached, never before."""
        session = accumulating(target_count=3)
        actions = []
        for i in range(3):
            session, action = accumulate_step(session, found(), None, float(i * 2))
            actions.append(action)
        self.assertEqual(actions, [Action.ACCEPTED, Action.ACCEPTED, Action.SOLVE])
        self.assertEqual(session.sample_count, 3)
        self.assertTrue(session.is_complete)

    def test_no_steps_after_target(self):
        """Test a complete session cannot grow past its target."""
        session = accumulating(target_count=1)
        session, action = accumulate_step(session, found(), None, 0.0)
        self.assertEqual(action, Action.SOLVE)
        with self.assertRaises(ValueError):
            accumulate_step(session, found(), None, 10.0)

    def test_quit_aborts(self):
        """Test quit discards samples and moves to READY without intrinsics."""
        session, _ = accumulate_step(accumulating(), found(), None, 0.0)
        session, action = accumulate_step(session, found(), 'q', 5.0)
        self.assertEqual(action, Action.ABORT)
        self.assertEqual(session.state, State.READY)
        self.assertEqual(session.sample_count, 0)
        self.assertIsNone(session.intrinsics)

    def test_quit_on_empty_frame(self):
        """Test quit is honoured even when no frame arrived."""
        session, action = accumulate_step(accumulating(), None, 'q', 0.0)
        self.assertEqual(action, Action.ABORT)

    def test_custom_quit_key(self):
        """Test the quit key is configurable."""
        session, action = accumulate_step(accumulating(), found(), 'q', 0.0, quit_key='x')
        self.assertEqual(action, Action.ACCEPTED)
        session, action = accumulate_step(session, None, 'x', 2.0, quit_key='x')
        self.assertEqual(action, Action.ABORT)

    def test_wrong_corner_count(self):
        """Test partial detections are rejected."""
        observation = Observation(image_size=IMAGE_SIZE, corners=np.zeros((10, 1, 2), np.float32))
        with self.assertRaises(ValueError):
            accumulate_step(accumulating(), observation, None, 0.0)

    def test_samples_keep_capture_order(self):
        """Test samples are stored in acceptance order."""
        session = accumulating(target_count=5)
        corners = []
        for i in range(3):
            observation = found()
            corners.append(observation.corners)
            session, _ = accumulate_step(session, observation, None, float(i * 2))
        for sample, expected in zip(session.samples, corners):
            np.testing.assert_allclose(sample.observed_corners.reshape(-1, 2), expected.reshape(-1, 2))


class TestTransitions(unittest.TestCase):
    """Test READY, LIVE_UNDISTORT and DONE transitions."""

    def test_complete_requires_full_session(self):
        """Test the solver result is only attached to a full session."""
        session, _ = accumulate_step(accumulating(target_count=2), found(), None, 0.0)
        with self.assertRaises(ValueError):
            complete(session, None)

    def test_full_lifecycle(self):
        """Test a generate session from start to DONE."""
        session, action = accumulate_step(accumulating(target_count=1), found(), None, 0.0)
        self.assertEqual(action, Action.SOLVE)

        intrinsics = Intrinsics(np.eye(3), np.zeros((1, 5)), 0.2)
        session = complete(session, intrinsics)
        self.assertEqual(session.state, State.READY)
        self.assertIs(session.intrinsics, intrinsics)

        session = start_live(session)
        self.assertEqual(session.state, State.LIVE_UNDISTORT)
        self.assertEqual(finish(session).state, State.DONE)

    def test_preset_without_intrinsics_still_ready(self):
        """Test a failed preset load still reaches READY."""
        session = complete(select_mode(Session(board=BOARD), '2'), None)
        self.assertEqual(session.state, State.READY)
        self.assertIsNone(session.intrinsics)
        self.assertEqual(start_live(session).state, State.LIVE_UNDISTORT)

    def test_invalid_session_settings(self):
        """Test non-positive targets are rejected."""
        with self.assertRaises(ValueError):
            Session(board=BOARD, target_count=0)
        with self.assertRaises(ValueError):
            Session(board=BOARD, min_capture_interval=-1.0)


if __name__ == "__main__":
    unittest.main()
