"""
Camera frame source wrapping cv2.VideoCapture.
"""

from typing import Optional
import cv2
import numpy as np

from ..utils.logger import get_logger


class CameraUnavailableError(RuntimeError):
    """Raised when the camera keeps returning empty frames."""


class CameraSource:
    """Pulls frames from a video capture device."""
    
    def __init__(self, config=None, capture_factory=cv2.VideoCapture):
        """
        Initialize camera source.
        
        Args:
            config: Configuration dictionary (uses the 'camera' section)
            capture_factory: Callable creating the capture object from a device index
        """
        self.config = config or {}
        camera_config = self.config.get('camera', {})
        
        self.device_index = camera_config.get('device_index', 0)
        self.max_empty_frames = camera_config.get('max_empty_frames', 0)
        self.capture_factory = capture_factory
        
        self.capture = None
        self.opened = False
        self.empty_frames = 0  # Consecutive empty reads
        self.logger = get_logger(__name__)
    
    def open(self) -> bool:
        """
        Open the capture device.
        
        A device that cannot be opened is reported but not fatal; reads will
        then yield no frames.
        
        Returns:
            True if the device opened
        """
        if self.capture is not None:
            return self.opened
        
        self.capture = self.capture_factory(self.device_index)
        self.opened = bool(self.capture.isOpened())
        if self.opened:
            self.logger.info(f"Opened camera {self.device_index}")
        else:
            self.logger.error(f"Camera {self.device_index} could not be opened")
        return self.opened
    
    def read(self) -> Optional[np.ndarray]:
        """
        Read the next frame.
        
        Returns:
            BGR frame, or None if no frame was available
        
        Raises:
            CameraUnavailableError: if max_empty_frames consecutive reads were empty
        """
        if self.capture is None:
            self.open()
        
        ok, frame = self.capture.read()
        if not ok or frame is None or frame.size == 0:
            self.empty_frames += 1
            if self.max_empty_frames and self.empty_frames >= self.max_empty_frames:
                raise CameraUnavailableError(
                    f"No frames from camera {self.device_index} after {self.empty_frames} attempts"
                )
            return None
        
        self.empty_frames = 0
        return frame
    
    def release(self):
        """Release the capture device."""
        if self.capture is not None:
            self.capture.release()
            self.logger.info(f"Released camera {self.device_index}")
        self.capture = None
        self.opened = False
        self.empty_frames = 0
    
    def is_opened(self) -> bool:
        """Check if the device is open."""
        return self.opened
    
    def __enter__(self):
        self.open()
        return self
    
    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False
