"""
eggtimer - named countdown timers with drift-safe completion.

Timers can be created, paused, resumed, canceled and observed; each
completes exactly once, anchored on a monotonic clock.
"""

__version__ = "0.1.0"

from eggtimer.core import *  # noqa
