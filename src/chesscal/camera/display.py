"""
On-screen viewports and keyboard polling via OpenCV HighGUI.
"""

from contextlib import contextmanager
from typing import Optional
import cv2

from ..utils.logger import get_logger


class Display:
    """Named windows plus single-key polling."""
    
    def __init__(self, wait_ms: int = 1):
        """
        Initialize display.
        
        Args:
            wait_ms: Milliseconds each key poll waits (also lets windows render)
        """
        self.wait_ms = wait_ms
        self.open_windows = []
        self.logger = get_logger(__name__)
    
    def open(self, name: str):
        """Create a window if it is not already open."""
        if name in self.open_windows:
            return
        cv2.namedWindow(name, cv2.WINDOW_AUTOSIZE)
        self.open_windows.append(name)
    
    def show(self, name: str, image):
        """Show an image in a window, opening it on first use."""
        self.open(name)
        cv2.imshow(name, image)
    
    def poll_key(self) -> Optional[str]:
        """
        Poll the keyboard once.
        
        Returns:
            The pressed character, or None if no key was pressed
        """
        code = cv2.waitKey(self.wait_ms)
        if code < 0:
            return None
        code &= 0xFF
        if code == 0xFF:
            return None
        return chr(code)
    
    def close(self, name: str):
        """Destroy a window."""
        if name not in self.open_windows:
            return
        self.open_windows.remove(name)
        try:
            cv2.destroyWindow(name)
        except cv2.error as e:
            # Window may already be gone if the user closed it
            self.logger.debug(f"Could not destroy window '{name}': {e}")
    
    def close_all(self):
        """Destroy every window this display opened."""
        for name in list(self.open_windows):
            self.close(name)
    
    @contextmanager
    def windows(self, *names: str):
        """
        Open windows for the duration of a phase.
        
        The windows are destroyed when the block exits, whether it returns,
        breaks out on quit, or raises.
        """
        for name in names:
            self.open(name)
        try:
            yield self
        finally:
            for name in names:
                self.close(name)
