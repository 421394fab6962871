"""
Read Alignment: column-level view of a CIGAR-aligned read.

An alignment is laid out as a sequence of columns, each holding a read base,
a reference base, or both:

- M / = / X: read base over reference base
- I: read base over a reference gap
- D / N: reference base over a read gap
- S / H / P: no column (clipped or padding)

Reference coordinates are 0-based. ``rightmost_position`` is exclusive, as in
``pysam.AlignedSegment.reference_end``.
"""

from collections.abc import Sequence
from typing import Protocol

import pysam

from ..models.core import GAP

_BOTH = (pysam.CMATCH, pysam.CEQUAL, pysam.CDIFF)
_READ_ONLY = (pysam.CINS,)
_REF_ONLY = (pysam.CDEL, pysam.CREF_SKIP)
_NO_COLUMN = (pysam.CSOFT_CLIP, pysam.CHARD_CLIP, pysam.CPAD)


class AlignmentAccessor(Protocol):
    """Interface the region extractor needs from an alignment."""

    @property
    def leftmost_position(self) -> int: ...

    @property
    def rightmost_position(self) -> int: ...

    def to_alignment_column(self, reference_position: int) -> int: ...

    def extract(
        self, column_start: int, column_stop: int, reference_sequence: str
    ) -> tuple[str, str]: ...


class ReadAlignment:
    """
    Alignment accessor backed by a read's CIGAR.

    Args:
        query_name: Read name, kept for traceability
        reference_start: 0-based reference position of the first aligned base
        cigartuples: CIGAR as (op, length) tuples using pysam op codes
        query_sequence: Read sequence including soft-clipped bases
    """

    def __init__(
        self,
        query_name: str | None,
        reference_start: int,
        cigartuples: Sequence[tuple[int, int]],
        query_sequence: str,
    ):
        if reference_start < 0:
            raise ValueError(f"reference_start must be >= 0, got {reference_start}")
        if not cigartuples:
            raise ValueError(f"Read {query_name} has no CIGAR")

        self.query_name = query_name
        self.query_sequence = query_sequence.upper()
        self._start = reference_start

        # Per-column query / reference indices; None marks a gap
        self._query_idx: list[int | None] = []
        self._ref_idx: list[int | None] = []
        # Column of each covered reference position, offset by reference_start
        self._ref_columns: list[int] = []

        qpos = 0
        rpos = reference_start
        for op, length in cigartuples:
            if op in _BOTH:
                for _ in range(length):
                    self._ref_columns.append(len(self._ref_idx))
                    self._query_idx.append(qpos)
                    self._ref_idx.append(rpos)
                    qpos += 1
                    rpos += 1
            elif op in _READ_ONLY:
                for _ in range(length):
                    self._query_idx.append(qpos)
                    self._ref_idx.append(None)
                    qpos += 1
            elif op in _REF_ONLY:
                for _ in range(length):
                    self._ref_columns.append(len(self._ref_idx))
                    self._query_idx.append(None)
                    self._ref_idx.append(rpos)
                    rpos += 1
            elif op == pysam.CSOFT_CLIP:
                qpos += length
            elif op in _NO_COLUMN:
                continue
            else:
                raise ValueError(f"Unsupported CIGAR operation {op} in read {query_name}")

        if qpos != len(self.query_sequence):
            raise ValueError(
                f"CIGAR of read {query_name} consumes {qpos} bases "
                f"but the sequence has {len(self.query_sequence)}"
            )
        self._end = rpos

    @classmethod
    def from_segment(cls, aln: pysam.AlignedSegment) -> "ReadAlignment":
        """Build from a pysam AlignedSegment."""
        if aln.is_unmapped or aln.cigartuples is None:
            raise ValueError(f"Read {aln.query_name} is unmapped")
        if aln.query_sequence is None:
            raise ValueError(f"Read {aln.query_name} has no stored sequence")
        return cls(
            query_name=aln.query_name,
            reference_start=aln.reference_start,
            cigartuples=aln.cigartuples,
            query_sequence=aln.query_sequence,
        )

    @property
    def leftmost_position(self) -> int:
        return self._start

    @property
    def rightmost_position(self) -> int:
        return self._end

    @property
    def n_columns(self) -> int:
        return len(self._ref_idx)

    def covers(self, start: int, stop: int) -> bool:
        """True if [start, stop) lies inside the aligned reference span."""
        return self._start <= start and stop <= self._end

    def to_alignment_column(self, reference_position: int) -> int:
        """
        Map a reference position to its alignment column.

        Positions left of the alignment map to column 0 and positions at or
        beyond ``rightmost_position`` map to the column count.
        """
        if reference_position < self._start:
            return 0
        if reference_position >= self._end:
            return self.n_columns
        return self._ref_columns[reference_position - self._start]

    def extract(
        self, column_start: int, column_stop: int, reference_sequence: str
    ) -> tuple[str, str]:
        """
        Render columns [column_start, column_stop) as (read, reference) strings.

        ``reference_sequence`` is the full contig sequence.
        """
        if column_start > column_stop:
            raise ValueError(f"Column range is reversed: [{column_start}, {column_stop})")
        if column_start < 0 or column_stop > self.n_columns:
            raise ValueError(
                f"Column range [{column_start}, {column_stop}) outside alignment "
                f"of {self.n_columns} columns"
            )
        if self._end > len(reference_sequence):
            raise ValueError(
                f"Read {self.query_name} ends at {self._end} beyond the reference "
                f"sequence of length {len(reference_sequence)}"
            )

        read_chars = []
        ref_chars = []
        for col in range(column_start, column_stop):
            qpos = self._query_idx[col]
            rpos = self._ref_idx[col]
            read_chars.append(GAP if qpos is None else self.query_sequence[qpos])
            ref_chars.append(GAP if rpos is None else reference_sequence[rpos])
        return "".join(read_chars), "".join(ref_chars).upper()

    def __repr__(self) -> str:
        return (
            f"ReadAlignment({self.query_name!r}, "
            f"{self._start}-{self._end}, {self.n_columns} columns)"
        )
