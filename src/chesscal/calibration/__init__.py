"""
Calibration module.
Checkerboard detection, session state, solving, persistence and undistortion.
"""

from .board import ChessboardDetector
from .session import Session, State, Mode, Action
from .solver import solve_intrinsics
from .storage import save_intrinsics, load_intrinsics
from .undistort import undistort_frame
from .controller import CalibrationController

__all__ = [
    'ChessboardDetector', 'Session', 'State', 'Mode', 'Action',
    'solve_intrinsics', 'save_intrinsics', 'load_intrinsics',
    'undistort_frame', 'CalibrationController',
]
