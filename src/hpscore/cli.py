"""
CLI Entry Point: Exposes the hpscore functionality via command line.
"""

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .io.input import ReferenceSequence, find_homopolymers
from .io.output import HomopolymerWriter
from .models.core import HpscoreConfig
from .pipeline import Pipeline
from .utils.logging import get_logger, setup_logging

app = typer.Typer(help="hpscore: homopolymer length scoring of aligned reads")

console = Console(stderr=True)
logger = get_logger(__name__)


@app.callback()
def main():
    """
    hpscore: homopolymer length scoring of aligned reads
    """
    pass


@app.command()
def version():
    """Print the hpscore version."""
    typer.echo(f"hpscore {__version__}")


def _collect_bams(bam_files: list[Path] | None, bam_list: Path | None) -> dict[str, Path]:
    """Map BAMs to sample names (filename stem)."""
    bams_dict: dict[str, Path] = {}

    for bam_path in bam_files or []:
        if not bam_path.exists():
            console.print(f"[bold red]Error: BAM file not found: {bam_path}[/bold red]")
            raise typer.Exit(code=1)
        bams_dict[bam_path.stem] = bam_path

    if bam_list:
        if not bam_list.exists():
            console.print(f"[bold red]Error: BAM list file not found: {bam_list}[/bold red]")
            raise typer.Exit(code=1)
        with open(bam_list) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                bam_path = Path(line)
                if not bam_path.exists():
                    console.print(
                        f"[yellow]Warning: BAM file from list not found: {bam_path}[/yellow]"
                    )
                    continue
                bams_dict[bam_path.stem] = bam_path

    return bams_dict


@app.command()
def run(
    homopolymer_file: Path = typer.Option(
        ..., "--homopolymers", "-H", help="BED-like file of homopolymers (contig, start, stop, base, length)"
    ),
    bam_files: list[Path] | None = typer.Option(
        None, "--bam", "-b", help="Path to BAM file(s). Can be specified multiple times."
    ),
    bam_list: Path | None = typer.Option(
        None, "--bam-list", "-L", help="File containing list of BAM paths (one per line)"
    ),
    reference: Path = typer.Option(..., "--fasta", "-f", help="Path to reference FASTA file"),
    output_dir: Path = typer.Option(
        ..., "--output-dir", "-o", help="Directory to write output files"
    ),
    flank_size: int = typer.Option(30, "--flank-size", help="Flank length in reference bases"),
    min_mapq: int = typer.Option(20, "--min-mapq", help="Minimum mapping quality"),
    filter_duplicates: bool = typer.Option(True, help="Filter duplicate reads"),
    filter_secondary: bool = typer.Option(True, help="Filter secondary alignments"),
    filter_supplementary: bool = typer.Option(True, help="Filter supplementary alignments"),
    filter_qc_failed: bool = typer.Option(False, help="Filter reads failing platform QC"),
    contigs: list[str] | None = typer.Option(
        None, "--contig", "-c", help="Only score this contig. Can be specified multiple times."
    ),
    threads: int = typer.Option(1, "--threads", "-t", help="Number of contigs scored in parallel"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """
    Score homopolymer lengths in one or more BAM files.
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None)

    bams_dict = _collect_bams(bam_files, bam_list)
    if not bams_dict:
        console.print(
            "[bold red]Error: No valid BAM files provided via --bam or --bam-list[/bold red]"
        )
        raise typer.Exit(code=1)

    try:
        config = HpscoreConfig(
            homopolymer_file=homopolymer_file,
            bam_files=bams_dict,
            reference_fasta=reference,
            output_dir=output_dir,
            flank_size=flank_size,
            min_mapping_quality=min_mapq,
            filter_duplicates=filter_duplicates,
            filter_secondary=filter_secondary,
            filter_supplementary=filter_supplementary,
            filter_qc_failed=filter_qc_failed,
            contigs=contigs or None,
            threads=threads,
        )
    except ValidationError as e:
        console.print(f"[bold red]Error: invalid configuration:[/bold red]\n{e}")
        raise typer.Exit(code=1) from e

    try:
        Pipeline(config).run()
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        logger.debug("Pipeline failed", exc_info=True)
        raise typer.Exit(code=1) from e


@app.command()
def annotate(
    reference: Path = typer.Option(..., "--fasta", "-f", help="Path to reference FASTA file"),
    output: Path = typer.Option(..., "--output", "-o", help="Output BED-like homopolymer file"),
    min_length: int = typer.Option(4, "--min-length", "-m", min=1, help="Minimum run length"),
    contigs: list[str] | None = typer.Option(
        None, "--contig", "-c", help="Only annotate this contig. Can be specified multiple times."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose debug logging"),
):
    """
    Annotate homopolymer runs in a reference FASTA.
    """
    setup_logging(verbose=verbose)

    if not reference.exists():
        console.print(f"[bold red]Error: Reference FASTA not found: {reference}[/bold red]")
        raise typer.Exit(code=1)

    try:
        with ReferenceSequence(reference) as ref, HomopolymerWriter(output) as writer:
            names = contigs or list(ref.references)
            for contig in names:
                if contig not in ref.references:
                    console.print(f"[yellow]Warning: contig {contig} not in reference[/yellow]")
                    continue
                for record in find_homopolymers(ref.fetch(contig), contig, min_length=min_length):
                    writer.write(record)
            written = writer.records_written
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(f"Wrote [bold]{written}[/bold] homopolymers to {output}")


if __name__ == "__main__":
    app()
