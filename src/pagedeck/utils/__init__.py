"""
PageDeck - Utilities Package

Logging, configuration, internationalization and exception helpers.
"""

from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger

__all__ = ["_", "logger"]
