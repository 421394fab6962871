"""
Region Extractor: gapped alignment windows around a homopolymer.

For one homopolymer and one read alignment, computes a flanking window of up
to ``FLANK_SIZE`` reference bases per side, maps it to alignment columns and
splits the rendered region into upstream flank, homopolymer body and
downstream flank.
"""

import logging

from ..models.core import AlignmentWindow, HomopolymerRecord, HomopolymerResult
from .alignment import AlignmentAccessor

logger = logging.getLogger(__name__)

FLANK_SIZE = 30


def flank_bounds(
    homopolymer: HomopolymerRecord, accessor: AlignmentAccessor, flank_size: int = FLANK_SIZE
) -> tuple[int, int]:
    """
    Reference bounds of the flanked region.

    The downstream bound is clamped to ``rightmost_position - flank_size``
    before the flank is added, so it never exceeds the aligned end. It is
    never placed before ``homopolymer.stop``.
    """
    upstream = max(max(homopolymer.start, flank_size) - flank_size, accessor.leftmost_position)
    downstream = min(homopolymer.stop, accessor.rightmost_position - flank_size) + flank_size
    return upstream, max(downstream, homopolymer.stop)


def extract(
    homopolymer: HomopolymerRecord,
    accessor: AlignmentAccessor,
    reference_sequence: str,
    read_name: str | None = None,
    flank_size: int = FLANK_SIZE,
) -> HomopolymerResult:
    """
    Extract the alignment windows covering a homopolymer and its flanks.

    Args:
        homopolymer: Annotated homopolymer run
        accessor: Alignment of one read against the reference
        reference_sequence: Contig sequence the alignment refers to
        read_name: Identifier of the read, stored on the result
        flank_size: Maximum flank length in reference bases

    Returns:
        Unscored HomopolymerResult

    Raises:
        ValueError: If the accessor maps the coordinates out of order or
            returns windows of unequal length
    """
    up_pos, down_pos = flank_bounds(homopolymer, accessor, flank_size)

    start_col = accessor.to_alignment_column(homopolymer.start)
    stop_col = accessor.to_alignment_column(homopolymer.stop)
    up_col = accessor.to_alignment_column(up_pos)
    down_col = accessor.to_alignment_column(down_pos)

    if not up_col <= start_col <= stop_col <= down_col:
        raise ValueError(
            f"Alignment columns out of order for {homopolymer.name}: "
            f"{up_col}, {start_col}, {stop_col}, {down_col}"
        )

    read_aln, ref_aln = accessor.extract(up_col, down_col, reference_sequence)
    region = AlignmentWindow(read=read_aln, ref=ref_aln)

    # Relative body bounds inside the region
    body_start = start_col - up_col
    body_stop = len(region) - (down_col - stop_col)

    logger.debug(
        "Extracted %s from %s: columns %d-%d, body %d-%d",
        homopolymer.name,
        read_name,
        up_col,
        down_col,
        body_start,
        body_stop,
    )

    return HomopolymerResult(
        homopolymer=homopolymer.model_copy(),
        read_name=read_name,
        start_column=start_col,
        stop_column=stop_col,
        region=region,
        body=region[body_start:body_stop],
        upstream=region[:body_start],
        downstream=region[body_stop:],
    )
