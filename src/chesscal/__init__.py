"""
chesscal - checkerboard camera calibration.
Captures checkerboard views, solves camera intrinsics and undistorts a live feed.
"""

__version__ = "0.1.0"
