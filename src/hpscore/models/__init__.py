"""
Data models for hpscore.

Provides Pydantic models for homopolymer annotations, alignment windows,
classification outcomes and run configuration.
"""

from .core import (
    GAP,
    AlignmentWindow,
    Anomaly,
    HomopolymerRecord,
    HomopolymerResult,
    HomopolymerScore,
    HpscoreConfig,
)

__all__ = [
    "GAP",
    "AlignmentWindow",
    "Anomaly",
    "HomopolymerRecord",
    "HomopolymerResult",
    "HomopolymerScore",
    "HpscoreConfig",
]
