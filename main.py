#!/usr/bin/env python3
"""
Main entry point for chesscal.
Calibrates a camera from live checkerboard views and shows the undistorted feed.
"""

import sys
import signal
import argparse
from pathlib import Path

# Add src to path for running from a checkout
sys.path.insert(0, str(Path(__file__).parent / "src"))

from chesscal.calibration.controller import CalibrationController
from chesscal.utils.config import load_config
from chesscal.utils.logger import setup_logger


class CalibrationApp:
    """Wires configuration, logging and the calibration controller together."""
    
    def __init__(self, config_path=None):
        """
        Initialize the application.
        
        Args:
            config_path: Path to calibration config YAML (None for config/calibration_config.yaml)
        """
        self.config = load_config(config_path)
        
        logging_config = self.config.get('logging', {})
        self.logger = setup_logger(
            "chesscal",
            log_file=logging_config.get('log_file'),
            level=logging_config.get('level', 'INFO'),
        )
        
        self.logger.info("Calibrating a camera using OpenCV.")
        self.controller = CalibrationController(config=self.config)
        
        # Setup signal handlers
        signal.signal(signal.SIGINT, self.signal_handler)
        signal.signal(signal.SIGTERM, self.signal_handler)
    
    def signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        self.logger.info("Received shutdown signal, stopping...")
        self.controller.stop()
    
    def start(self) -> int:
        """Run the calibration session; returns a process exit code."""
        try:
            self.controller.run()
        except Exception as e:
            self.logger.error(f"Calibration failed: {e}", exc_info=True)
            return 1
        self.logger.info("Done.")
        return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Checkerboard camera calibration")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to calibration config YAML")
    args = parser.parse_args()
    
    print("=" * 50)
    print("chesscal - Camera Calibration")
    print("=" * 50)
    print("Controls:")
    print("  1 - Generate new calibration values")
    print("  2 - Use bad calibration values")
    print("  3 - Use good calibration values")
    print("  q - Quit (aborts collection, ends live view)")
    print("=" * 50)
    
    app = CalibrationApp(config_path=args.config)
    return app.start()


if __name__ == "__main__":
    sys.exit(main())
