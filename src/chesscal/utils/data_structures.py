"""
Data structures for calibration data.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np


def _frozen_array(values, dtype=np.float32) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class BoardGeometry:
    """Checkerboard described by its interior corners."""
    width: int  # Interior corners per row
    height: int  # Interior corners per column
    square_size: float = 1.0  # World units per square

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Board size must be positive, got {self.width}x{self.height}")
        if self.square_size <= 0:
            raise ValueError(f"Square size must be positive, got {self.square_size}")

    @property
    def pattern_size(self) -> Tuple[int, int]:
        """(columns, rows) as expected by the chessboard detector."""
        return (self.width, self.height)

    @property
    def corner_count(self) -> int:
        return self.width * self.height

    def world_points(self) -> np.ndarray:
        """
        Synthesize the 3D board points on the z = 0 plane.

        Point j is (j // width, j % width, 0) scaled by the square size,
        matching the row-major order of the detected corners.

        Returns:
            (N, 3) float32 array
        """
        j = np.arange(self.corner_count)
        points = np.zeros((self.corner_count, 3), dtype=np.float32)
        points[:, 0] = j // self.width
        points[:, 1] = j % self.width
        return points * np.float32(self.square_size)


@dataclass(frozen=True)
class Sample:
    """One accepted checkerboard view."""
    observed_corners: np.ndarray  # (N, 1, 2) float32 image points
    world_points: np.ndarray  # (N, 3) float32 board points

    @classmethod
    def from_corners(cls, corners: np.ndarray, board: BoardGeometry):
        """Pair detected corners with the board's synthetic world points."""
        corners = np.asarray(corners, dtype=np.float32).reshape(-1, 1, 2)
        if corners.shape[0] != board.corner_count:
            raise ValueError(
                f"Expected {board.corner_count} corners, got {corners.shape[0]}"
            )
        return cls(
            observed_corners=_frozen_array(corners),
            world_points=_frozen_array(board.world_points()),
        )


@dataclass(frozen=True)
class Intrinsics:
    """Camera matrix and lens distortion."""
    camera_matrix: Optional[np.ndarray]  # 3x3
    distortion_coefficients: Optional[np.ndarray]  # (1, k) or (k, 1)
    reprojection_error: Optional[float] = None  # RMS pixels, only when freshly solved

    def __post_init__(self):
        # Keep read-only float64 copies so callers cannot change the parameters
        for name in ('camera_matrix', 'distortion_coefficients'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _frozen_array(value, np.float64))

    def is_empty(self) -> bool:
        """True if either parameter array is missing or has no elements."""
        return (
            self.camera_matrix is None or self.camera_matrix.size == 0 or
            self.distortion_coefficients is None or self.distortion_coefficients.size == 0
        )


@dataclass(frozen=True)
class Observation:
    """Result of processing one frame in the accumulation loop."""
    image_size: Tuple[int, int]  # (width, height) of the original frame
    corners: Optional[np.ndarray] = None  # None when the board was not found

    @property
    def found(self) -> bool:
        return self.corners is not None
