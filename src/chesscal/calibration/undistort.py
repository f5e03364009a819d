"""
Lens distortion correction.
"""

from pathlib import Path
from typing import List, Optional
import cv2
import numpy as np

from ..utils.data_structures import Intrinsics
from ..utils.logger import get_logger


logger = get_logger(__name__)


def undistort_frame(frame: np.ndarray, intrinsics: Optional[Intrinsics]) -> np.ndarray:
    """
    Remove lens distortion from a frame.
    
    Args:
        frame: Image to correct
        intrinsics: Camera parameters; None or empty returns an unmodified copy
    
    Returns:
        Corrected image with the same dimensions as the input
    """
    if intrinsics is None or intrinsics.is_empty():
        return frame.copy()
    return cv2.undistort(frame, intrinsics.camera_matrix, intrinsics.distortion_coefficients)


IMAGE_SUFFIXES = ('.png', '.jpg', '.jpeg', '.bmp')


def undistort_directory(input_dir, output_dir, intrinsics: Intrinsics, suffix: str = "_undistorted") -> List[Path]:
    """
    Write undistorted copies of every image in a directory.
    
    Args:
        input_dir: Folder with source images
        output_dir: Folder for corrected images (created if missing)
        intrinsics: Camera parameters
        suffix: Appended to each output file stem
    
    Returns:
        Paths of the images written
    """
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input folder not found: {input_dir}")
    
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    
    written = []
    for path in sorted(input_dir.iterdir()):
        if path.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        image = cv2.imread(str(path))
        if image is None:
            logger.warning(f"Skipping unreadable image: {path.name}")
            continue
        out_path = output_dir / f"{path.stem}{suffix}{path.suffix}"
        if cv2.imwrite(str(out_path), undistort_frame(image, intrinsics)):
            written.append(out_path)
    return written
