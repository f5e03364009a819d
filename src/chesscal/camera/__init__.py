"""
Camera module.
Handles frame acquisition and on-screen viewports.
"""

from .frame_source import CameraSource, CameraUnavailableError
from .display import Display

__all__ = ['CameraSource', 'CameraUnavailableError', 'Display']
