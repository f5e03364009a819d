#!/usr/bin/env python3
"""
Undistort a folder of images.
Uses an intrinsics file written by the calibration session (or a preset).
"""

import sys
import argparse
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chesscal.calibration.storage import load_intrinsics
from chesscal.calibration.undistort import undistort_directory


def main():
    """Undistort images."""
    parser = argparse.ArgumentParser(description="Undistort a folder of images")
    parser.add_argument("--calibration", type=str, default="calibration_data.xml",
                        help="Intrinsics file (default: calibration_data.xml)")
    parser.add_argument("--input", type=str, required=True, help="Input image folder")
    parser.add_argument("--output", type=str, required=True, help="Output image folder")
    parser.add_argument("--suffix", type=str, default="_undistorted",
                        help="Suffix appended to output file names")
    args = parser.parse_args()
    
    intrinsics = load_intrinsics(args.calibration)
    if intrinsics is None or intrinsics.is_empty():
        print(f"ERROR: No calibration data in {args.calibration}")
        return 1
    
    try:
        written = undistort_directory(args.input, args.output, intrinsics, suffix=args.suffix)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    
    print(f"Wrote {len(written)} undistorted images to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
