"""
hpscore - Homopolymer length scoring of aligned sequencing reads.

This package provides a command-line interface and Python API for comparing
the length of reference homopolymer runs with the runs observed in aligned
reads, classifying each read as an exact match, an extension or contraction
of a given size, or an anomaly (skip, mismatch, ambiguous).

Example usage:
    $ hpscore annotate -f reference.fa -o homopolymers.bed
    $ hpscore run -H homopolymers.bed -b sample.bam -f reference.fa -o output/
"""

__version__ = "0.3.0"

from .core import ReadAlignment, classify, extract, score_homopolymer
from .models.core import (
    AlignmentWindow,
    Anomaly,
    HomopolymerRecord,
    HomopolymerResult,
    HomopolymerScore,
    HpscoreConfig,
)
from .pipeline import Pipeline

__all__ = [
    "__version__",
    "AlignmentWindow",
    "Anomaly",
    "HomopolymerRecord",
    "HomopolymerResult",
    "HomopolymerScore",
    "HpscoreConfig",
    "Pipeline",
    "ReadAlignment",
    "classify",
    "extract",
    "score_homopolymer",
]
