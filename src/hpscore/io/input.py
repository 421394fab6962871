"""
Input Adapters: homopolymer annotations and reference sequences.

Homopolymer annotations are BED-like, tab separated, 0-based half-open::

    contig  start  stop  base  [length]

Lines starting with ``#``, ``track`` or ``browser`` are skipped. A missing
length column is taken as ``stop - start``.
"""

import itertools
import logging
from collections.abc import Iterator
from pathlib import Path

import pysam
from pydantic import ValidationError

from ..models.core import HomopolymerRecord

logger = logging.getLogger(__name__)

_SKIP_PREFIXES = ("#", "track", "browser")


class HomopolymerReader:
    """Reads homopolymer annotation records from a BED-like file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __iter__(self) -> Iterator[HomopolymerRecord]:
        with open(self.path) as f:
            for line_no, line in enumerate(f, start=1):
                line = line.rstrip("\n")
                if not line.strip() or line.startswith(_SKIP_PREFIXES):
                    continue
                yield self._parse(line, line_no)

    def _parse(self, line: str, line_no: int) -> HomopolymerRecord:
        fields = line.split("\t")
        if len(fields) < 4:
            raise ValueError(
                f"{self.path}:{line_no}: expected at least 4 columns "
                f"(contig, start, stop, base), got {len(fields)}"
            )
        try:
            start = int(fields[1])
            stop = int(fields[2])
            length = int(fields[4]) if len(fields) > 4 and fields[4] else stop - start
            return HomopolymerRecord(
                contig=fields[0], start=start, stop=stop, base=fields[3], length=length
            )
        except (ValueError, ValidationError) as e:
            raise ValueError(f"{self.path}:{line_no}: invalid homopolymer record: {e}") from e

    def by_contig(self) -> dict[str, list[HomopolymerRecord]]:
        """Group records by contig, each group sorted by start."""
        records = sorted(self, key=lambda r: (r.contig, r.start, r.stop))
        return {
            contig: list(group)
            for contig, group in itertools.groupby(records, key=lambda r: r.contig)
        }


class ReferenceSequence:
    """
    Reference genome access backed by an indexed FASTA.

    Builds the ``.fai`` index if it is missing.
    """

    def __init__(self, path: str | Path):
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Reference FASTA not found: {path}")
        if not Path(f"{path}.fai").exists():
            logger.info("Indexing reference %s", path)
            pysam.faidx(str(path))
        self.path = path
        self.fasta: pysam.FastaFile | None = pysam.FastaFile(str(path))

    def _require_open(self) -> pysam.FastaFile:
        if self.fasta is None:
            raise ValueError(f"Reference {self.path} is closed")
        return self.fasta

    @property
    def references(self) -> tuple[str, ...]:
        return tuple(self._require_open().references)

    def get_length(self, contig: str) -> int:
        return self._require_open().get_reference_length(contig)

    def fetch(self, contig: str, start: int | None = None, end: int | None = None) -> str:
        """Upper-cased sequence of ``contig`` over [start, end)."""
        return self._require_open().fetch(contig, start, end).upper()

    def close(self) -> None:
        if self.fasta is not None:
            self.fasta.close()
            self.fasta = None

    def __enter__(self) -> "ReferenceSequence":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def find_homopolymers(sequence: str, contig: str, min_length: int = 4) -> Iterator[HomopolymerRecord]:
    """
    Yield maximal single-base runs of at least ``min_length`` in ``sequence``.

    Runs of ``N`` are not homopolymers and are never reported.
    """
    if min_length < 1:
        raise ValueError(f"min_length must be at least 1, got {min_length}")

    pos = 0
    for base, group in itertools.groupby(sequence.upper()):
        length = sum(1 for _ in group)
        if base in "ACGT" and length >= min_length:
            yield HomopolymerRecord(
                contig=contig, start=pos, stop=pos + length, base=base, length=length
            )
        pos += length
