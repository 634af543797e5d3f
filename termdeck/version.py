"""
termdeck Version - Single source of truth for the package version.

Author: termdeck contributors | 2026-10-19
"""

__version__ = "0.1.0"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0
