"""
Configuration loading.
Reads the YAML calibration config and fills in defaults for missing keys.
"""

import copy
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "calibration_config.yaml"

DEFAULTS = {
    'camera': {
        'device_index': 0,
        'working_size': [640, 480],  # (width, height) used for detection
        'max_empty_frames': 0,  # 0 = keep polling forever
    },
    'board': {
        'width': 9,  # interior corners per row
        'height': 6,  # interior corners per column
        'square_size': 1.0,
        'subpixel_refine': False,
    },
    'calibration': {
        'number_of_images': 20,
        'min_capture_interval': 1.0,  # seconds
        'output_path': 'calibration_data.xml',
        'presets': {
            'bad': 'bad_calib.xml',
            'good': 'good_calib.xml',
        },
        'rescale_corners': False,
    },
    'controls': {
        'generate': '1',
        'preset_bad': '2',
        'preset_good': '3',
        'quit': 'q',
    },
    'display': {
        'working_window': 'Working Frame',
        'distorted_window': 'Distorted Image',
        'calibrated_window': 'Calibrated Image',
    },
    'logging': {
        'level': 'INFO',
        'log_file': None,
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path=None, overrides: Optional[dict] = None) -> dict:
    """
    Load calibration configuration.
    
    Args:
        config_path: Path to YAML config (None for the bundled default file)
        overrides: Dictionary merged on top of the file contents
    
    Returns:
        Complete configuration dictionary
    """
    explicit = config_path is not None
    path = Path(config_path) if explicit else DEFAULT_CONFIG_PATH
    
    file_config = {}
    if path.exists():
        with open(path, 'r') as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {path}")
    
    config = _merge(DEFAULTS, file_config)
    if overrides:
        config = _merge(config, overrides)
    return config
