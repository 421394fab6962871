"""Pytest configuration and fixtures."""

import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pysam
import pytest

# Add src directory to path so tests use local code, not installed package
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))


# Reference layout (0-based):
#   [0, 60)    CGT x 20
#   [60, 65)   AAAAA   <- homopolymer
#   [65, 125)  GCT x 20
PREFIX = "CGT" * 20
HOMOPOLYMER = "AAAAA"
SUFFIX = "GCT" * 20
REF_SEQ = PREFIX + HOMOPOLYMER + SUFFIX
HP_START = 60
HP_STOP = 65


def make_read(name, seq, start, cigartuples, flag=0, mapq=60):
    """Create an AlignedSegment on reference 0 with sensible defaults."""
    a = pysam.AlignedSegment()
    a.query_name = name
    a.query_sequence = seq
    a.flag = flag
    a.reference_id = 0
    a.reference_start = start
    a.mapping_quality = mapq
    a.cigartuples = cigartuples
    a.query_qualities = pysam.qualitystring_to_array("I" * len(seq))
    return a


def standard_reads():
    """Reads covering the homopolymer: exact, 1-base contraction, 1-base extension."""
    return [
        make_read("exact", REF_SEQ, 0, [(0, 125)]),
        make_read("del", REF_SEQ[:64] + REF_SEQ[65:], 0, [(0, 64), (2, 1), (0, 60)]),
        make_read("ins", REF_SEQ[:65] + "A" + REF_SEQ[65:], 0, [(0, 65), (1, 1), (0, 60)]),
        make_read("dup", REF_SEQ, 0, [(0, 125)], flag=1024),
        make_read("lowmapq", REF_SEQ, 0, [(0, 125)], mapq=5),
    ]


def build_bam(path: Path, reads) -> Path:
    """Write reads to a sorted, indexed BAM and return its path."""
    header = {"HD": {"VN": "1.0", "SO": "coordinate"}, "SQ": [{"LN": len(REF_SEQ), "SN": "chr1"}]}
    unsorted = path.with_suffix(".unsorted.bam")
    with pysam.AlignmentFile(str(unsorted), "wb", header=header) as outf:
        for r in reads:
            outf.write(r)
    pysam.sort("-o", str(path), str(unsorted))
    pysam.index(str(path))
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_fasta(temp_dir: Path) -> Path:
    """Indexed single-contig reference with one A homopolymer."""
    fasta = temp_dir / "ref.fa"
    with open(fasta, "w") as f:
        f.write(">chr1\n")
        f.write(REF_SEQ + "\n")
    pysam.faidx(str(fasta))
    return fasta


@pytest.fixture
def sample_bam(temp_dir: Path) -> Path:
    """Sorted, indexed BAM of the standard reads."""
    return build_bam(temp_dir / "sample1.bam", standard_reads())


@pytest.fixture
def sample_homopolymers(temp_dir: Path) -> Path:
    """BED-like annotation holding the reference homopolymer."""
    bed = temp_dir / "homopolymers.bed"
    with open(bed, "w") as f:
        f.write("# contig\tstart\tstop\tbase\tlength\n")
        f.write(f"chr1\t{HP_START}\t{HP_STOP}\tA\t5\n")
    return bed
