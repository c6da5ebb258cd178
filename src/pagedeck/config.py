#!/usr/bin/env python3
"""
PageDeck - Configuration Module

This module contains all configuration constants and paths used by the application.
"""

import logging
import os
from typing import Final


# ============================================================================
# Application Constants
# ============================================================================

APP_NAME: Final[str] = "PageDeck"
APP_ID: Final[str] = "io.github.pagedeck"
APP_VERSION: Final[str] = "1.0.0"


# ============================================================================
# Configuration Directory
# ============================================================================

CONFIG_DIR: Final[str] = os.path.expanduser("~/.config/pagedeck")


# ============================================================================
# Processing Service
# ============================================================================

# Matches the base path the processing service mounts its PDF tools under
DEFAULT_API_BASE_URL: Final[str] = os.environ.get(
    "PAGEDECK_API_BASE_URL", "http://localhost:8080/api/pdf"
)


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: int = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME: Final[str] = "PageDeck"


# ============================================================================
# Window Configuration
# ============================================================================

DEFAULT_WINDOW_WIDTH: Final[int] = 1000
DEFAULT_WINDOW_HEIGHT: Final[int] = 760
WINDOW_STATE_KEY: Final[str] = "window"

# Resources shipped next to the package (stylesheet)
RESOURCES_DIR: Final[str] = os.path.join(os.path.dirname(os.path.abspath(__file__)), "resources")
