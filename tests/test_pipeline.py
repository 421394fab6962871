"""
Integration tests for the hpscore pipeline on a synthetic BAM.

The standard reads (conftest) cover one A homopolymer and carry an exact
match, a 1-base contraction and a 1-base extension, plus a duplicate and a
low-MAPQ read that must be filtered.
"""

import csv
import pickle
from pathlib import Path

import pytest

from conftest import HP_START, HP_STOP, REF_SEQ, build_bam, make_read
from hpscore.models.core import Anomaly, HomopolymerRecord, HpscoreConfig
from hpscore.pipeline import (
    Pipeline,
    iter_contig_results,
    score_contig,
    should_filter_alignment,
)

HP = HomopolymerRecord(contig="chr1", start=HP_START, stop=HP_STOP, base="A", length=5)


@pytest.fixture
def config(sample_fasta, sample_bam, sample_homopolymers, temp_dir) -> HpscoreConfig:
    return HpscoreConfig(
        homopolymer_file=sample_homopolymers,
        bam_files={"sample1": sample_bam},
        reference_fasta=sample_fasta,
        output_dir=temp_dir / "out",
    )


def test_should_filter_alignment(config):
    assert should_filter_alignment(make_read("dup", REF_SEQ, 0, [(0, 125)], flag=1024), config)
    assert should_filter_alignment(make_read("low", REF_SEQ, 0, [(0, 125)], mapq=10), config)
    assert should_filter_alignment(make_read("sec", REF_SEQ, 0, [(0, 125)], flag=256), config)
    assert should_filter_alignment(make_read("sup", REF_SEQ, 0, [(0, 125)], flag=2048), config)
    assert not should_filter_alignment(make_read("ok", REF_SEQ, 0, [(0, 125)]), config)

    relaxed = config.model_copy(update={"filter_duplicates": False, "min_mapping_quality": 0})
    assert not should_filter_alignment(make_read("dup", REF_SEQ, 0, [(0, 125)], flag=1024), relaxed)
    assert not should_filter_alignment(make_read("low", REF_SEQ, 0, [(0, 125)], mapq=10), relaxed)


def test_iter_contig_results(config, sample_bam, sample_fasta):
    results = list(iter_contig_results(sample_bam, sample_fasta, "chr1", [HP], config))
    scores = {r.read_name: r.score.label for r in results}
    assert scores == {"exact": "0", "del": "-1", "ins": "+1"}


def test_iter_contig_results_only_scores_spanning_reads(config, temp_dir, sample_fasta):
    reads = [
        make_read("spans", REF_SEQ, 0, [(0, 125)]),
        make_read("left_only", REF_SEQ[:62], 0, [(0, 62)]),
        make_read("right_only", REF_SEQ[63:], 63, [(0, 62)]),
        make_read("edge", REF_SEQ[HP_START:], HP_START, [(0, 65)]),
    ]
    bam = build_bam(temp_dir / "partial.bam", reads)
    results = iter_contig_results(bam, sample_fasta, "chr1", [HP], config)
    scores = {r.read_name: r.score for r in results}
    assert set(scores) == {"spans", "edge"}
    assert scores["spans"].delta == 0
    assert scores["edge"].anomaly == Anomaly.SKIP


def test_iter_contig_results_empty(config, sample_bam, sample_fasta):
    assert list(iter_contig_results(sample_bam, sample_fasta, "chr1", [], config)) == []


def test_iter_contig_results_custom_flank(config, sample_bam, sample_fasta):
    narrow = config.model_copy(update={"flank_size": 5})
    results = list(iter_contig_results(sample_bam, sample_fasta, "chr1", [HP], narrow))
    assert all(len(r.upstream) == 5 for r in results)


def test_score_contig_writes_part(config, sample_bam, sample_fasta, temp_dir):
    part = temp_dir / "part.tsv"
    assert score_contig(sample_bam, sample_fasta, "chr1", [HP], config, part, "s1") == (part, 3)

    with open(part) as f:
        rows = list(csv.DictReader(f, delimiter="\t"))
    assert sorted(row["score"] for row in rows) == ["+1", "-1", "0"]
    assert all(row["sample"] == "s1" for row in rows)


def test_score_contig_without_homopolymers_writes_header_only(
    config, sample_bam, sample_fasta, temp_dir
):
    part = temp_dir / "part.tsv"
    assert score_contig(sample_bam, sample_fasta, "chr1", [], config, part, "s1") == (part, 0)
    assert part.read_text().count("\n") == 1


def test_score_contig_return_size_independent_of_depth(config, temp_dir, sample_fasta):
    shallow = build_bam(temp_dir / "shallow.bam", [make_read("r0", REF_SEQ, 0, [(0, 125)])])
    deep = build_bam(
        temp_dir / "deep.bam",
        [make_read(f"r{i}", REF_SEQ, 0, [(0, 125)]) for i in range(200)],
    )
    parts = temp_dir / "parts"
    parts.mkdir()

    small = score_contig(shallow, sample_fasta, "chr1", [HP], config, parts / "a.tsv", "s")
    large = score_contig(deep, sample_fasta, "chr1", [HP], config, parts / "b.tsv", "s")

    assert small[1] == 1
    assert large[1] == 200
    assert len(pickle.dumps(large)) == len(pickle.dumps(small))


def test_pipeline_run(config: HpscoreConfig):
    outputs = Pipeline(config).run()
    assert set(outputs) == {"sample1"}

    output_path = outputs["sample1"]
    assert output_path == config.output_dir / "sample1.hpscore.tsv"
    with open(output_path) as f:
        rows = list(csv.DictReader(f, delimiter="\t"))

    assert {row["read_name"]: row["score"] for row in rows} == {
        "exact": "0",
        "del": "-1",
        "ins": "+1",
    }
    assert all(row["sample"] == "sample1" for row in rows)
    assert all(row["contig"] == "chr1" for row in rows)


def test_pipeline_skips_unknown_contigs(config: HpscoreConfig, temp_dir: Path):
    bed = temp_dir / "other.bed"
    bed.write_text("chrUn\t10\t15\tA\t5\n")
    outputs = Pipeline(config.model_copy(update={"homopolymer_file": bed})).run()
    assert outputs == {}


def test_pipeline_contig_selection(config: HpscoreConfig):
    outputs = Pipeline(config.model_copy(update={"contigs": ["chr2"]})).run()
    assert outputs == {}


def test_pipeline_multiple_samples(config: HpscoreConfig, temp_dir: Path):
    second = build_bam(
        temp_dir / "sample2.bam",
        [make_read("ins", REF_SEQ[:65] + "AA" + REF_SEQ[65:], 0, [(0, 65), (1, 2), (0, 60)])],
    )
    bams = dict(config.bam_files)
    bams["sample2"] = second
    outputs = Pipeline(config.model_copy(update={"bam_files": bams})).run()
    assert set(outputs) == {"sample1", "sample2"}

    with open(outputs["sample2"]) as f:
        rows = list(csv.DictReader(f, delimiter="\t"))
    assert [row["score"] for row in rows] == ["+2"]


def test_pipeline_removes_part_files(config: HpscoreConfig):
    Pipeline(config).run()
    assert sorted(p.name for p in config.output_dir.iterdir()) == ["sample1.hpscore.tsv"]
