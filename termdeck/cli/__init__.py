"""
termdeck CLI — termdeck command-line interface.

Usage:
    termdeck present <deck> [--start N] [--eval]
    termdeck check <deck> [--json]
    termdeck dump <deck> [--width W] [--eval]

Author: termdeck contributors | 2026-10-19
"""

from termdeck.cli.termdeckctl import main
