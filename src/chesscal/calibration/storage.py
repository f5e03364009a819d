"""
Persisting intrinsics as OpenCV FileStorage XML.

Files contain ``intrinsic_matrix``, ``distortion_coefficients`` and, for
freshly solved parameters, ``reprojection_error``.
"""

from pathlib import Path
from typing import Optional
import cv2
import numpy as np

from ..utils.data_structures import Intrinsics
from ..utils.logger import get_logger


logger = get_logger(__name__)

INTRINSIC_MATRIX_KEY = "intrinsic_matrix"
DISTORTION_KEY = "distortion_coefficients"
REPROJECTION_ERROR_KEY = "reprojection_error"


def save_intrinsics(path, intrinsics: Intrinsics) -> Path:
    """
    Write intrinsics, overwriting any existing file.
    
    Args:
        path: Output file (.xml, .yml or .json as understood by cv2.FileStorage)
        intrinsics: Parameters to write
    
    Returns:
        Path written
    """
    if intrinsics.is_empty():
        raise ValueError("Refusing to save empty intrinsics")
    
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
    if not fs.isOpened():
        raise OSError(f"Could not open {path} for writing")
    try:
        fs.write(INTRINSIC_MATRIX_KEY, np.asarray(intrinsics.camera_matrix, dtype=np.float64))
        fs.write(DISTORTION_KEY, np.asarray(intrinsics.distortion_coefficients, dtype=np.float64))
        if intrinsics.reprojection_error is not None:
            fs.write(REPROJECTION_ERROR_KEY, float(intrinsics.reprojection_error))
    finally:
        fs.release()
    
    logger.info(f"Saved calibration data to {path}")
    return path


def load_intrinsics(path) -> Optional[Intrinsics]:
    """
    Read intrinsics from a file.
    
    Args:
        path: File written by save_intrinsics or a preset in the same format
    
    Returns:
        Intrinsics, or None if the file is missing or holds no camera matrix
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Calibration file not found: {path}")
        return None
    
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    if not fs.isOpened():
        logger.warning(f"Could not read calibration file: {path}")
        return None
    try:
        camera_matrix = fs.getNode(INTRINSIC_MATRIX_KEY).mat()
        dist_coeffs = fs.getNode(DISTORTION_KEY).mat()
        error_node = fs.getNode(REPROJECTION_ERROR_KEY)
        reprojection_error = None if error_node.empty() else float(error_node.real())
    finally:
        fs.release()
    
    if camera_matrix is None or dist_coeffs is None:
        logger.warning(f"Calibration file {path} is missing {INTRINSIC_MATRIX_KEY} or {DISTORTION_KEY}")
        return None
    
    logger.info(f"Loaded calibration data from {path}")
    return Intrinsics(
        camera_matrix=camera_matrix,
        distortion_coefficients=dist_coeffs,
        reprojection_error=reprojection_error,
    )
