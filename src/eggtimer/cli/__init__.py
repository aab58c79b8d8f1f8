"""
CLI layer for eggtimer.

Entry point::

    eggtimer --help
"""

from eggtimer.cli.app import app

__all__ = ["app"]
