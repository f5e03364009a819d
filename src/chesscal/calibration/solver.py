"""
Camera model fitting via cv2.calibrateCamera.
"""

from typing import Sequence, Tuple
import cv2
import numpy as np

from ..utils.data_structures import Intrinsics, Sample


# Tangential distortion fixed to zero, principal point fixed at the image centre
CALIBRATION_FLAGS = cv2.CALIB_ZERO_TANGENT_DIST | cv2.CALIB_FIX_PRINCIPAL_POINT


def solve_intrinsics(samples: Sequence[Sample], image_size: Tuple[int, int],
                     flags: int = CALIBRATION_FLAGS) -> Intrinsics:
    """
    Fit camera intrinsics to accumulated samples.
    
    Rotation and translation vectors are computed by the solver but not kept.
    
    Args:
        samples: Accepted checkerboard views
        image_size: (width, height) of the original frames
        flags: cv2.calibrateCamera flags
    
    Returns:
        Camera matrix, distortion coefficients and RMS reprojection error
    """
    if not samples:
        raise ValueError("At least one sample is required to calibrate")
    
    object_points = [np.ascontiguousarray(s.world_points, dtype=np.float32) for s in samples]
    image_points = [np.ascontiguousarray(s.observed_corners, dtype=np.float32) for s in samples]
    
    # Principal point is fixed to the centre of the initial camera matrix
    width, height = int(image_size[0]), int(image_size[1])
    
    error, camera_matrix, dist_coeffs, _rvecs, _tvecs = cv2.calibrateCamera(
        object_points,
        image_points,
        (width, height),
        None,
        None,
        flags=flags,
    )
    
    return Intrinsics(
        camera_matrix=np.asarray(camera_matrix, dtype=np.float64),
        distortion_coefficients=np.asarray(dist_coeffs, dtype=np.float64),
        reprojection_error=float(error),
    )
