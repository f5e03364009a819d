"""
Checkerboard detection on working frames.
"""

from typing import Optional, Tuple
import cv2
import numpy as np

from ..utils.data_structures import BoardGeometry


# Termination criteria for sub-pixel corner refinement
SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 30, 0.001)


class ChessboardDetector:
    """Finds the interior corners of a known checkerboard."""

    def __init__(self, board: BoardGeometry, working_size=(640, 480), subpixel_refine=False):
        """
        Initialize detector.

        Args:
            board: Board geometry
            working_size: (width, height) frames are resized to before detection
            subpixel_refine: Run cv2.cornerSubPix on detected corners
        """
        self.board = board
        self.working_size = tuple(int(v) for v in working_size)
        self.subpixel_refine = subpixel_refine

    @classmethod
    def from_config(cls, config):
        """Build a detector from the 'board' and 'camera' config sections."""
        board_config = config.get('board', {})
        camera_config = config.get('camera', {})
        board = BoardGeometry(
            width=int(board_config.get('width', 9)),
            height=int(board_config.get('height', 6)),
            square_size=float(board_config.get('square_size', 1.0)),
        )
        return cls(
            board,
            working_size=camera_config.get('working_size', (640, 480)),
            subpixel_refine=board_config.get('subpixel_refine', False),
        )

    def prepare(self, frame: np.ndarray) -> np.ndarray:
        """Resize a frame to the working resolution."""
        return cv2.resize(frame, self.working_size)

    def detect(self, working_frame: np.ndarray) -> Optional[np.ndarray]:
        """
        Detect checkerboard corners.

        Args:
            working_frame: BGR or grayscale image at working resolution

        Returns:
            (N, 1, 2) float32 corners in row-major board order, or None if not found
        """
        found, corners = cv2.findChessboardCorners(working_frame, self.board.pattern_size)
        if not found or corners is None:
            return None

        if self.subpixel_refine:
            gray = working_frame
            if gray.ndim == 3:
                gray = cv2.cvtColor(working_frame, cv2.COLOR_BGR2GRAY)
            corners = cv2.cornerSubPix(gray, corners, (11, 11), (-1, -1), SUBPIX_CRITERIA)

        # Some OpenCV releases return (N, 2) instead of (N, 1, 2)
        return corners.reshape(-1, 1, 2).astype(np.float32)

    def draw(self, working_frame: np.ndarray, corners: Optional[np.ndarray]) -> np.ndarray:
        """Draw the detection overlay in place and return the frame."""
        if corners is not None:
            cv2.drawChessboardCorners(working_frame, self.board.pattern_size, corners, True)
        return working_frame

    def scale_to_original(self, corners: np.ndarray, image_size: Tuple[int, int]) -> np.ndarray:
        """Map working-frame corner coordinates to original-frame pixels."""
        scale = np.array([
            image_size[0] / self.working_size[0],
            image_size[1] / self.working_size[1],
        ], dtype=np.float32)
        return (corners * scale).astype(np.float32)


def invert(frame: np.ndarray) -> np.ndarray:
    """Invert a frame's colours, used as feedback for an accepted view."""
    return cv2.bitwise_not(frame)
