"""
Output Writers: scored results and homopolymer annotations.
"""

import csv
from collections.abc import Iterable
from pathlib import Path

from ..models.core import HomopolymerRecord, HomopolymerResult


class ResultWriter:
    """Writes scored homopolymer results to a TSV file, one row per read."""

    fieldnames = [
        "sample",
        "contig",
        "start",
        "stop",
        "base",
        "ref_length",
        "read_name",
        "read_length",
        "score",
        "score_type",
        "ref_body",
        "read_body",
        "ref_upstream",
        "read_upstream",
        "ref_downstream",
        "read_downstream",
    ]

    def __init__(self, path: Path, sample_name: str = "SAMPLE"):
        self.path = Path(path)
        self.sample_name = sample_name
        self.rows_written = 0
        self.file = open(self.path, "w", newline="")
        self.writer = csv.DictWriter(
            self.file, fieldnames=self.fieldnames, delimiter="\t", lineterminator="\n"
        )
        self.writer.writeheader()

    def write(self, result: HomopolymerResult) -> None:
        if result.score is None:
            raise ValueError(f"Result for {result.homopolymer.name} has not been classified")

        hp = result.homopolymer
        self.writer.writerow(
            {
                "sample": self.sample_name,
                "contig": hp.contig,
                "start": hp.start,
                "stop": hp.stop,
                "base": hp.base,
                "ref_length": result.homo_length,
                "read_name": result.read_name or ".",
                "read_length": result.length,
                "score": result.score.label,
                "score_type": "difference" if result.score.is_difference else "other",
                "ref_body": result.body.ref,
                "read_body": result.body.read,
                "ref_upstream": result.upstream.ref,
                "read_upstream": result.upstream.read,
                "ref_downstream": result.downstream.ref,
                "read_downstream": result.downstream.read,
            }
        )
        self.rows_written += 1

    def write_all(self, results: Iterable[HomopolymerResult]) -> None:
        for result in results:
            self.write(result)

    def append_part(self, path: Path) -> int:
        """
        Copy the rows of a part file written by another ResultWriter.

        Returns:
            Number of rows copied
        """
        rows = 0
        with open(path, newline="") as f:
            reader = csv.DictReader(f, delimiter="\t")
            if reader.fieldnames != self.fieldnames:
                raise ValueError(f"{path} is not a hpscore result file")
            for row in reader:
                self.writer.writerow(row)
                rows += 1
        self.rows_written += rows
        return rows

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class HomopolymerWriter:
    """Writes homopolymer annotations in the BED-like format read by HomopolymerReader."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.records_written = 0
        self.file = open(self.path, "w")

    def write(self, record: HomopolymerRecord) -> None:
        self.file.write(
            f"{record.contig}\t{record.start}\t{record.stop}\t{record.base}\t{record.length}\n"
        )
        self.records_written += 1

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> "HomopolymerWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
