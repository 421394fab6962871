"""
Core module for hpscore.

Provides the read alignment accessor, the homopolymer region extractor and
the classification rule cascade.
"""

from .alignment import AlignmentAccessor, ReadAlignment
from .classifier import classify, score_homopolymer
from .extractor import FLANK_SIZE, extract

__all__ = [
    "FLANK_SIZE",
    "AlignmentAccessor",
    "ReadAlignment",
    "classify",
    "extract",
    "score_homopolymer",
]
