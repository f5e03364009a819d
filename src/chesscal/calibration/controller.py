"""
Calibration Session Controller.
Drives mode selection, sample accumulation, solving and live undistortion
around the pure session functions, doing all camera and window I/O.
"""

import time
from pathlib import Path
from typing import Optional
import cv2
import numpy as np

from ..camera.display import Display
from ..camera.frame_source import CameraSource
from ..utils.data_structures import Observation
from ..utils.logger import get_logger
from .board import ChessboardDetector, invert
from .session import (
    Action, DEFAULT_CONTROLS, Mode, Session, State,
    accumulate_step, complete, finish, select_mode, start_live,
)
from .solver import solve_intrinsics
from .storage import load_intrinsics, save_intrinsics
from .undistort import undistort_frame


class CalibrationController:
    """Runs one calibration session from mode selection to live view."""

    def __init__(self, config=None, source=None, display=None, detector=None,
                 solver=solve_intrinsics, clock=time.monotonic):
        """
        Initialize controller.

        Args:
            config: Configuration dictionary
            source: Frame source (defaults to a CameraSource built from config)
            display: Window/keyboard layer (defaults to Display)
            detector: Chessboard detector (defaults to one built from config)
            solver: Callable (samples, image_size) -> Intrinsics
            clock: Callable returning seconds, used to space out samples
        """
        self.config = config or {}
        calibration_config = self.config.get('calibration', {})
        display_config = self.config.get('display', {})

        # YAML may load unquoted keys such as 1 as ints
        controls = {**DEFAULT_CONTROLS, **self.config.get('controls', {})}
        self.controls = {name: str(key) for name, key in controls.items()}

        self.number_of_images = int(calibration_config.get('number_of_images', 20))
        self.min_capture_interval = float(calibration_config.get('min_capture_interval', 1.0))
        self.output_path = Path(calibration_config.get('output_path', 'calibration_data.xml'))
        presets = calibration_config.get('presets', {})
        self.preset_paths = {
            Mode.PRESET_BAD: Path(presets.get('bad', 'bad_calib.xml')),
            Mode.PRESET_GOOD: Path(presets.get('good', 'good_calib.xml')),
        }
        self.rescale_corners = calibration_config.get('rescale_corners', False)

        self.working_window = display_config.get('working_window', 'Working Frame')
        self.distorted_window = display_config.get('distorted_window', 'Distorted Image')
        self.calibrated_window = display_config.get('calibrated_window', 'Calibrated Image')

        self.source = source if source is not None else CameraSource(config=self.config)
        self.display = display if display is not None else Display()
        self.detector = detector if detector is not None else ChessboardDetector.from_config(self.config)
        self.solver = solver
        self.clock = clock

        self.running = False
        self.logger = get_logger(__name__)
        self.session = self.new_session()

    def new_session(self) -> Session:
        """Create an empty session for the configured board."""
        return Session(
            board=self.detector.board,
            target_count=self.number_of_images,
            min_capture_interval=self.min_capture_interval,
        )

    def stop(self):
        """Ask the running loop to exit at its next iteration."""
        self.running = False

    def run(self) -> Session:
        """
        Run the whole session.

        Returns:
            Final session (DONE unless stopped early)
        """
        self.running = True
        self.session = self.new_session()

        try:
            self.source.open()

            with self.display.windows(self.working_window):
                self.session = self.await_mode(self.session)
                if self.session.state is State.ACCUMULATING:
                    self.session = self.accumulate(self.session)
                elif self.session.state in (State.LOADING_PRESET_BAD, State.LOADING_PRESET_GOOD):
                    self.session = self.load_preset(self.session)

            if not self.running or self.session.state is not State.READY:
                self.logger.info("Stopped before calibration finished")
                return self.session

            self.session = start_live(self.session)
            if self.session.intrinsics is None or self.session.intrinsics.is_empty():
                self.logger.warning("Calibration data is unavailable")

            with self.display.windows(self.distorted_window, self.calibrated_window):
                self.session = self.live_undistort(self.session)

            return self.session
        finally:
            self.running = False
            self.display.close_all()
            self.source.release()

    def await_mode(self, session: Session) -> Session:
        """Poll keys until a calibration mode is chosen."""
        prompt = self._prompt_image()
        while self.running:
            self.display.show(self.working_window, prompt)
            key = self.display.poll_key()
            session = select_mode(session, key, self.controls)
            if session.state is not State.AWAITING_MODE:
                self.logger.info(f"Selected mode: {session.mode.value}")
                return session
        return session

    def accumulate(self, session: Session) -> Session:
        """
        Collect checkerboard views until the target count, then solve and save.

        Quitting discards the collected samples without solving.
        """
        quit_key = self.controls['quit']
        self.logger.info(f"Collecting {session.target_count} checkerboard views, '{quit_key}' to abort")

        # The key is polled after each frame is shown, so the view (including
        # the inverted accept frame) is rendered before the next step uses it
        key = None
        while self.running:
            if key is not None and key == quit_key:
                session, action = accumulate_step(session, None, key, self.clock(), quit_key)
            else:
                frame = self.source.read()
                observation, view = self._observe(frame)
                session, action = accumulate_step(session, observation, key, self.clock(), quit_key)

            if action is Action.ABORT:
                self.logger.info("Calibration aborted, collected samples discarded")
                return session
            if action is not Action.SKIP:
                if action in (Action.ACCEPTED, Action.SOLVE):
                    view = invert(view)
                    self.logger.info(f"Captured view {session.sample_count}/{session.target_count}")
                self.display.show(self.working_window, view)

            key = self.display.poll_key()

            if action is Action.SOLVE:
                return self.solve(session)

        return session

    def solve(self, session: Session) -> Session:
        """Run the solver on a complete session and persist the result."""
        intrinsics = self.solver(list(session.samples), session.image_size)
        self.logger.info(f"Reprojection error is: {intrinsics.reprojection_error}")
        save_intrinsics(self.output_path, intrinsics)
        return complete(session, intrinsics)

    def load_preset(self, session: Session) -> Session:
        """Load the preset parameter file for the selected mode."""
        path = self.preset_paths[session.mode]
        intrinsics = load_intrinsics(path)
        return complete(session, intrinsics)

    def live_undistort(self, session: Session) -> Session:
        """Show raw and corrected frames side by side until quit."""
        quit_key = self.controls['quit']
        self.logger.info(f"Showing undistorted feed, '{quit_key}' to quit")

        while self.running:
            frame = self.source.read()
            if frame is not None:
                self.display.show(self.distorted_window, frame)
                self.display.show(self.calibrated_window, undistort_frame(frame, session.intrinsics))

            key = self.display.poll_key()
            if key is not None and key == quit_key:
                break

        return finish(session)

    def _observe(self, frame: Optional[np.ndarray]):
        """Detect the board in a frame; returns (observation, working view)."""
        if frame is None:
            return None, None

        image_size = (frame.shape[1], frame.shape[0])
        working = self.detector.prepare(frame)
        corners = self.detector.detect(working)
        view = self.detector.draw(working, corners)

        if corners is not None and self.rescale_corners:
            corners = self.detector.scale_to_original(corners, image_size)
        return Observation(image_size=image_size, corners=corners), view

    def _prompt_image(self) -> np.ndarray:
        lines = [
            "Choose calibration method",
            f"'{self.controls['generate']}': Generate new calibration values",
            f"'{self.controls['preset_bad']}': Use bad calibration values",
            f"'{self.controls['preset_good']}': Use good calibration values",
        ]
        image = np.zeros((30 * len(lines) + 20, 520, 3), dtype=np.uint8)
        for i, line in enumerate(lines):
            cv2.putText(image, line, (10, 30 + 30 * i),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 1)
        return image
