"""
Core data models for hpscore.
"""

from collections.abc import Iterator
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

GAP = "-"
NUCLEOTIDES = frozenset("ACGTN")


class Anomaly(str, Enum):
    """Named outcome for a homopolymer that cannot be scored as a length change."""
    SKIP = "skip"
    MISMATCH = "mismatch"
    AMBIGUOUS = "ambiguous"


class HomopolymerRecord(BaseModel):
    """
    Reference annotation of one homopolymer run.

    Coordinates are 0-based, half-open [start, stop), matching
    ``ReadAlignment.to_alignment_column``.
    """
    model_config = ConfigDict(frozen=True)

    contig: str
    start: int = Field(ge=0, description="0-based start position (inclusive)")
    stop: int = Field(ge=0, description="0-based stop position (exclusive)")
    base: str
    length: int = Field(gt=0, description="Reference run length")

    @field_validator("base")
    @classmethod
    def validate_base(cls, v: str) -> str:
        v = v.upper()
        if len(v) != 1 or v not in NUCLEOTIDES:
            raise ValueError(f"Homopolymer base must be a single nucleotide, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_interval(self) -> "HomopolymerRecord":
        if self.stop <= self.start:
            raise ValueError(f"Stop position ({self.stop}) must be > start position ({self.start})")
        return self

    @property
    def name(self) -> str:
        return f"{self.contig}:{self.start}-{self.stop}({self.base}{self.length})"


class AlignmentWindow(BaseModel):
    """
    A pair of equal-length gapped strings covering the same alignment columns.

    ``read`` is the read side and ``ref`` the reference side; ``-`` marks a gap.
    """
    model_config = ConfigDict(frozen=True)

    read: str = ""
    ref: str = ""

    @field_validator("read", "ref")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_lengths(self) -> "AlignmentWindow":
        if len(self.read) != len(self.ref):
            raise ValueError(
                f"Alignment window sides differ in length: read={len(self.read)} ref={len(self.ref)}"
            )
        return self

    def __len__(self) -> int:
        return len(self.read)

    def __getitem__(self, item: slice) -> "AlignmentWindow":
        return AlignmentWindow(read=self.read[item], ref=self.ref[item])

    def __add__(self, other: "AlignmentWindow") -> "AlignmentWindow":
        return AlignmentWindow(read=self.read + other.read, ref=self.ref + other.ref)

    @property
    def read_has_gap(self) -> bool:
        return GAP in self.read

    @property
    def ref_has_gap(self) -> bool:
        return GAP in self.ref

    def columns(self) -> Iterator[tuple[str, str]]:
        """Iterate (read_char, ref_char) per alignment column."""
        return zip(self.read, self.ref)


class HomopolymerScore(BaseModel):
    """
    Tagged classification outcome: a signed length delta or a named anomaly.

    Positive delta means the read run is longer than the reference run.
    """
    model_config = ConfigDict(frozen=True)

    delta: int | None = None
    anomaly: Anomaly | None = None

    @model_validator(mode="after")
    def validate_tag(self) -> "HomopolymerScore":
        if (self.delta is None) == (self.anomaly is None):
            raise ValueError("HomopolymerScore holds exactly one of delta or anomaly")
        return self

    @classmethod
    def difference(cls, delta: int) -> "HomopolymerScore":
        return cls(delta=delta)

    @classmethod
    def other(cls, anomaly: Anomaly) -> "HomopolymerScore":
        return cls(anomaly=anomaly)

    @property
    def is_difference(self) -> bool:
        return self.delta is not None

    @property
    def label(self) -> str:
        if self.delta is None:
            return self.anomaly.value  # type: ignore[union-attr]
        return f"{self.delta:+d}" if self.delta else "0"


class HomopolymerResult(BaseModel):
    """
    Alignment windows extracted around one homopolymer for one read.

    The result only names the read it came from (``read_name``); it never
    holds the alignment object itself.
    """
    model_config = ConfigDict(frozen=True)

    homopolymer: HomopolymerRecord
    read_name: str | None = None
    start_column: int = Field(ge=0, description="Alignment column of the run start")
    stop_column: int = Field(ge=0, description="Alignment column of the run stop")
    region: AlignmentWindow
    body: AlignmentWindow
    upstream: AlignmentWindow
    downstream: AlignmentWindow
    score: HomopolymerScore | None = None

    @model_validator(mode="after")
    def validate_region(self) -> "HomopolymerResult":
        if self.upstream + self.body + self.downstream != self.region:
            raise ValueError("Region window must equal upstream + body + downstream")
        return self

    @property
    def base(self) -> str:
        return self.homopolymer.base

    @property
    def homo_length(self) -> int:
        """Reference run length."""
        return self.homopolymer.length

    @property
    def length(self) -> int:
        """Read-side run length in alignment columns (gap columns included)."""
        return len(self.body)


class HpscoreConfig(BaseModel):
    """
    Global configuration for an hpscore run.
    """
    # Input
    homopolymer_file: Path
    bam_files: dict[str, Path]  # sample_name -> bam_path
    reference_fasta: Path

    # Output
    output_dir: Path

    # Extraction
    flank_size: int = Field(default=30, ge=1)

    # Filters
    min_mapping_quality: int = Field(default=20, ge=0)
    filter_duplicates: bool = True
    filter_secondary: bool = True
    filter_supplementary: bool = True
    filter_qc_failed: bool = False

    # Performance
    threads: int = Field(default=1, ge=1)

    # Restrict to these contigs (None = all annotated contigs)
    contigs: list[str] | None = None

    @field_validator("homopolymer_file", "reference_fasta")
    @classmethod
    def validate_file_exists(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"File not found: {v}")
        return v

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: Path) -> Path:
        if v.is_file():
            raise ValueError(f"Output path must be a directory, not a file: {v}")
        return v

    @model_validator(mode="after")
    def validate_bams(self) -> "HpscoreConfig":
        if not self.bam_files:
            raise ValueError("At least one BAM file is required")
        for name, path in self.bam_files.items():
            if not path.exists():
                raise ValueError(f"BAM file for sample '{name}' not found: {path}")
            indexes = (
                path.with_suffix(".bai"),
                Path(f"{path}.bai"),
                Path(f"{path}.csi"),
            )
            if not any(index.exists() for index in indexes):
                raise ValueError(
                    f"BAM index not found for {path}. Please index with: samtools index {path}"
                )
        return self
