#!/usr/bin/env python3
"""
PageDeck - Entry point for python -m pagedeck

This module allows the package to be run as a module:
    python -m pagedeck
"""

import sys

from pagedeck import main

if __name__ == "__main__":
    sys.exit(main())
