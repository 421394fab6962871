"""
Utility modules for hpscore.

Provides logging, timing, and other shared utilities.
"""

from .logging import get_logger, log_call, setup_logging, timed

__all__ = [
    "get_logger",
    "log_call",
    "setup_logging",
    "timed",
]
