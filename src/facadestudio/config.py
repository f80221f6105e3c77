"""
Configuration & Global Constants
================================
This module serves as the central registry for tunable constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (grid size, seed bounds, export
   resolution) from being scattered throughout the code.
2. Single source: The viewer, the CLI and the tests all read the same defaults.

Nothing here is read from the environment or persisted between runs.
"""
from typing import Tuple

# --- Facade defaults ---
DEFAULT_COLUMNS: int = 10
DEFAULT_ROWS: int = 6
DEFAULT_SEED: int = 1

# "Randomize" advances the seed by a fixed step, wrapping at the modulus
SEED_STEP: int = 1
SEED_MODULUS: int = 10000

# --- Export defaults ("8K") ---
EXPORT_WIDTH: int = 7680
EXPORT_HEIGHT: int = 4320
EXPORT_SAMPLES: int = 1

# Largest render buffer edge (pixels) the surface controller will allocate
MAX_SURFACE_SIZE: int = 16384

# --- Interactive viewport ---
DEFAULT_VIEWPORT: Tuple[int, int] = (1280, 720)
FRAME_INTERVAL_MS: int = 16
STATUS_CLEAR_MS: int = 3000

# --- Camera ---
CAMERA_POSITION: Tuple[float, float, float] = (6.0, 4.0, 10.0)
CAMERA_FOCAL_POINT: Tuple[float, float, float] = (0.0, 0.0, 0.0)
CAMERA_VIEW_UP: Tuple[float, float, float] = (0.0, 1.0, 0.0)
CAMERA_FOV: float = 45.0
CAMERA_CLIPPING_RANGE: Tuple[float, float] = (0.1, 100.0)

# --- Scene ---
GROUND_SIZE: float = 200.0
GROUND_LEVEL: float = -3.2

# Shadow mapping from the sun; the fill light casts none
SHADOWS_ENABLED: bool = True
