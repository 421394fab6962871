"""
Pipeline Orchestrator: Manages the execution flow of hpscore.

This module handles:
1. Reading homopolymer annotations.
2. Iterating over samples (BAM files).
3. Scoring every (homopolymer, read) pair per contig, contigs in parallel.
4. Streaming results to per-contig part files and merging them per sample.
"""

import bisect
import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

import pysam
from rich.console import Console

from .core.alignment import ReadAlignment
from .core.classifier import score_homopolymer
from .io.input import HomopolymerReader, ReferenceSequence
from .io.output import ResultWriter
from .models.core import HomopolymerRecord, HomopolymerResult, HpscoreConfig
from .parallel import ParallelProcessor
from .utils.logging import log_call, timed

logger = logging.getLogger(__name__)


def should_filter_alignment(aln: pysam.AlignedSegment, config: HpscoreConfig) -> bool:
    """
    Check if an alignment should be excluded from scoring.

    Returns:
        True if the alignment should be filtered
    """
    if aln.is_unmapped:
        return True
    if config.filter_duplicates and aln.is_duplicate:
        return True
    if config.filter_secondary and aln.is_secondary:
        return True
    if config.filter_supplementary and aln.is_supplementary:
        return True
    if config.filter_qc_failed and aln.is_qcfail:
        return True
    if aln.mapping_quality < config.min_mapping_quality:
        return True
    return False


def iter_contig_results(
    bam_path: Path,
    reference_fasta: Path,
    contig: str,
    homopolymers: list[HomopolymerRecord],
    config: HpscoreConfig,
) -> Iterator[HomopolymerResult]:
    """
    Yield scored results for all reads of one contig.

    Each read is converted to a ReadAlignment once and scored against every
    homopolymer it fully spans. ``homopolymers`` must be sorted by start.
    """
    if not homopolymers:
        return

    with ReferenceSequence(reference_fasta) as reference:
        sequence = reference.fetch(contig)

    starts = [hp.start for hp in homopolymers]
    fetch_start = homopolymers[0].start
    fetch_end = max(hp.stop for hp in homopolymers)

    skipped_reads = 0
    with pysam.AlignmentFile(str(bam_path), "rb") as bam:
        if contig not in bam.references:
            logger.warning("Contig %s not present in %s", contig, bam_path)
            return

        for aln in bam.fetch(contig, fetch_start, fetch_end):
            if should_filter_alignment(aln, config):
                continue
            try:
                alignment = ReadAlignment.from_segment(aln)
            except ValueError as e:
                skipped_reads += 1
                logger.debug("Skipping read %s: %s", aln.query_name, e)
                continue

            lo = bisect.bisect_left(starts, alignment.leftmost_position)
            hi = bisect.bisect_left(starts, alignment.rightmost_position)
            for hp in homopolymers[lo:hi]:
                if not alignment.covers(hp.start, hp.stop):
                    continue
                yield score_homopolymer(
                    hp,
                    alignment,
                    sequence,
                    read_name=aln.query_name,
                    flank_size=config.flank_size,
                )

    if skipped_reads:
        logger.info("%s: skipped %d reads that could not be laid out", contig, skipped_reads)


@log_call()
def score_contig(
    bam_path: Path,
    reference_fasta: Path,
    contig: str,
    homopolymers: list[HomopolymerRecord],
    config: HpscoreConfig,
    part_path: Path,
    sample_name: str,
) -> tuple[Path, int]:
    """
    Score one contig and stream its rows to ``part_path``.

    Results are written as they are produced, so only the part path and the
    row count travel back to the parent process.

    Returns:
        (part_path, rows written)
    """
    with ResultWriter(part_path, sample_name=sample_name) as writer:
        writer.write_all(
            iter_contig_results(bam_path, reference_fasta, contig, homopolymers, config)
        )
        rows = writer.rows_written
    return part_path, rows


class Pipeline:
    def __init__(self, config: HpscoreConfig):
        self.config = config
        self.console = Console(stderr=True)

    def run(self) -> dict[str, Path]:
        """
        Execute the pipeline.

        Returns:
            Mapping of sample name to written output path
        """
        self.console.print("[bold blue]Starting hpscore pipeline[/bold blue]")
        self.console.print(f"Output directory: {self.config.output_dir}")

        # 1. Load homopolymers
        with self.console.status("[bold green]Loading homopolymers...[/bold green]"):
            with timed("Loading homopolymers", logger):
                by_contig = HomopolymerReader(self.config.homopolymer_file).by_contig()

        by_contig = self._select_contigs(by_contig)
        total = sum(len(records) for records in by_contig.values())
        self.console.print(
            f"Loaded [bold]{total}[/bold] homopolymers on {len(by_contig)} contigs."
        )

        if not total:
            self.console.print("[bold red]No homopolymers to score. Exiting.[/bold red]")
            return {}

        # 2. Score each sample
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        processor = ParallelProcessor(n_jobs=self.config.threads)
        outputs: dict[str, Path] = {}

        for sample_name, bam_path in self.config.bam_files.items():
            parts_dir = self.config.output_dir / f".{sample_name}.parts"
            parts_dir.mkdir(exist_ok=True)
            tasks = [
                (
                    bam_path,
                    self.config.reference_fasta,
                    contig,
                    records,
                    self.config,
                    parts_dir / f"{index:05d}.tsv",
                    sample_name,
                )
                for index, (contig, records) in enumerate(by_contig.items())
            ]
            try:
                parts = processor.starmap(
                    score_contig, tasks, description=f"Scoring {sample_name}"
                )
                outputs[sample_name] = self._write_output(sample_name, parts)
            except Exception as e:
                self.console.print(
                    f"[bold red]Error processing sample {sample_name}: {e}[/bold red]"
                )
                logger.debug("Sample %s failed", sample_name, exc_info=True)
                # Continue to next sample
            finally:
                shutil.rmtree(parts_dir)

        self.console.print("[bold green]Pipeline completed successfully.[/bold green]")
        return outputs

    def _select_contigs(
        self, by_contig: dict[str, list[HomopolymerRecord]]
    ) -> dict[str, list[HomopolymerRecord]]:
        """Keep requested contigs that exist in the reference."""
        if self.config.contigs is not None:
            wanted = set(self.config.contigs)
            by_contig = {c: r for c, r in by_contig.items() if c in wanted}

        with ReferenceSequence(self.config.reference_fasta) as reference:
            known = set(reference.references)

        missing = [c for c in by_contig if c not in known]
        for contig in missing:
            self.console.print(
                f"[yellow]Warning: contig {contig} not in reference; "
                f"skipping {len(by_contig[contig])} homopolymers[/yellow]"
            )
        return {c: r for c, r in by_contig.items() if c in known}

    def _write_output(self, sample_name: str, parts: list[tuple[Path, int]]) -> Path:
        """Merge the per-contig part files, in contig order, into the sample's output file."""
        output_path = self.config.output_dir / f"{sample_name}.hpscore.tsv"
        with ResultWriter(output_path, sample_name=sample_name) as writer:
            for part_path, expected in parts:
                copied = writer.append_part(part_path)
                if copied != expected:
                    raise ValueError(
                        f"Part {part_path} holds {copied} rows, expected {expected}"
                    )
            rows = writer.rows_written

        self.console.print(f"{sample_name}: wrote [bold]{rows}[/bold] scored reads to {output_path}")
        return output_path
