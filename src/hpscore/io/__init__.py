"""
I/O module for hpscore.

Provides readers for homopolymer annotations and reference sequences, and
writers for annotations and scored results.
"""

from .input import HomopolymerReader, ReferenceSequence, find_homopolymers
from .output import HomopolymerWriter, ResultWriter

__all__ = [
    "HomopolymerReader",
    "HomopolymerWriter",
    "ReferenceSequence",
    "ResultWriter",
    "find_homopolymers",
]
