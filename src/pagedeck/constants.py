"""
PageDeck - Numeric Constants

Simple numeric constants with ZERO internal imports to avoid circular dependencies.
For application-level constants (strings, paths), use config.py.
"""

from typing import Final

# ============================================================================
# Grid Layout
# ============================================================================

DEFAULT_MIN_CELL_WIDTH_PX: Final[int] = 180
DEFAULT_MAX_COLUMNS: Final[int] = 5
MIN_COLUMNS: Final[int] = 2
DEFAULT_CELL_GAP_PX: Final[int] = 16
DEFAULT_FOOTER_HEIGHT_PX: Final[int] = 40

# Thumbnails are portrait 3:4 (width:height)
CELL_ASPECT_WIDTH: Final[int] = 3
CELL_ASPECT_HEIGHT: Final[int] = 4

# ============================================================================
# Lazy Loading
# ============================================================================

DEFAULT_OVERSCAN_ROWS: Final[int] = 3
DEFAULT_PRELOAD_MARGIN_PX: Final[int] = 320

# ============================================================================
# Rotation
# ============================================================================

QUARTER_TURN: Final[int] = 90
FULL_TURN: Final[int] = 360
VALID_ROTATIONS: Final[tuple[int, ...]] = (0, 90, 180, 270)

# ============================================================================
# Thumbnails & Network
# ============================================================================

DEFAULT_THUMBNAIL_WIDTH_PX: Final[int] = 200
DEFAULT_THUMBNAIL_CACHE_SIZE: Final[int] = 200
DEFAULT_THUMBNAIL_WORKERS: Final[int] = 4
DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[float] = 60.0
