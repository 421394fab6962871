"""
Homopolymer Classifier: ordered rule cascade over extracted alignment windows.

Each rule inspects a HomopolymerResult and either returns a HomopolymerScore
or None when its guard does not apply. Rules are evaluated in order and the
first score returned wins:

0. No flank on one side                       -> skip
   Reference body disagrees with the base     -> mismatch
1. Ungapped body, unambiguous boundaries      -> 0
2. Ungapped read body, read gap at a boundary -> 0 or ambiguous
3. Reference gap in the body (extension)      -> +n or ambiguous
4. Read gap in the body (contraction)         -> -n or ambiguous
5. Reference gap at a boundary (insertion)    -> 0 or ambiguous

Inputs that no rule claims are scored ambiguous.
"""

import logging
from collections.abc import Callable, Iterable, Iterator

from ..models.core import (
    GAP,
    AlignmentWindow,
    Anomaly,
    HomopolymerRecord,
    HomopolymerResult,
    HomopolymerScore,
)
from .alignment import AlignmentAccessor
from .extractor import FLANK_SIZE, extract

logger = logging.getLogger(__name__)

SKIP = HomopolymerScore.other(Anomaly.SKIP)
MISMATCH = HomopolymerScore.other(Anomaly.MISMATCH)
AMBIGUOUS = HomopolymerScore.other(Anomaly.AMBIGUOUS)
EXACT = HomopolymerScore.difference(0)

Rule = Callable[[HomopolymerResult], HomopolymerScore | None]


def _outward(window: AlignmentWindow, upstream: bool, gapped_side: str) -> Iterator[tuple[str, str]]:
    """
    Columns of a flank ordered from the homopolymer boundary outward.

    Yields (gapped_side_char, other_side_char) pairs.
    """
    if gapped_side == "read":
        pairs = list(zip(window.read, window.ref))
    else:
        pairs = list(zip(window.ref, window.read))
    return reversed(pairs) if upstream else iter(pairs)


def _gap_run_is_ambiguous(
    columns: Iterable[tuple[str, str]], base: str, check_next: bool
) -> bool:
    """
    Walk a gap run away from the homopolymer.

    The run is ambiguous if the opposite side carries the homopolymer base
    inside it, or if it runs off the end of the flank. With ``check_next``,
    the first non-gap character after the run must also differ from the base.
    """
    for gapped, other in columns:
        if gapped != GAP:
            return check_next and gapped == base
        if other == base:
            return True
    # flank exhausted
    return True


def _exact_or_ambiguous(result: HomopolymerResult) -> HomopolymerScore:
    if all(c == result.base for c in result.body.read):
        return EXACT
    return AMBIGUOUS


def insufficient_context(result: HomopolymerResult) -> HomopolymerScore | None:
    if not len(result.upstream) or not len(result.downstream):
        return SKIP
    return None


def reference_mismatch(result: HomopolymerResult) -> HomopolymerScore | None:
    if any(c not in (result.base, GAP) for c in result.body.ref):
        return MISMATCH
    return None


def clean_match(result: HomopolymerResult) -> HomopolymerScore | None:
    base = result.base
    body = result.body
    if body.read_has_gap or body.ref_has_gap:
        return None
    if result.upstream.ref[-1] in (base, GAP) or result.downstream.ref[0] in (base, GAP):
        return None
    return _exact_or_ambiguous(result)


def flanking_read_gap(result: HomopolymerResult) -> HomopolymerScore | None:
    base = result.base
    up_gap = result.upstream.read.endswith(GAP)
    down_gap = result.downstream.read.startswith(GAP)
    if result.body.read_has_gap or not (up_gap or down_gap):
        return None

    if up_gap and _gap_run_is_ambiguous(
        _outward(result.upstream, upstream=True, gapped_side="read"), base, check_next=True
    ):
        return AMBIGUOUS
    if down_gap and _gap_run_is_ambiguous(
        _outward(result.downstream, upstream=False, gapped_side="read"), base, check_next=True
    ):
        return AMBIGUOUS
    return _exact_or_ambiguous(result)


def reference_body_gap(result: HomopolymerResult) -> HomopolymerScore | None:
    if not result.body.ref_has_gap:
        return None
    non_base = sum(1 for c in result.body.read if c != result.base)
    if non_base > 0:
        return AMBIGUOUS
    return HomopolymerScore.difference(result.length - result.homo_length)


def read_body_gap(result: HomopolymerResult) -> HomopolymerScore | None:
    base = result.base
    read = result.body.read
    if GAP not in read:
        return None
    if any(c not in (base, GAP) for c in read):
        return AMBIGUOUS
    if result.upstream.read.endswith(GAP) or result.downstream.read.startswith(GAP):
        # deletion bleeds into the flank
        return AMBIGUOUS
    gap = read.count(GAP)
    match = read.count(base)
    if gap + match > result.homo_length:
        return AMBIGUOUS
    return HomopolymerScore.difference(-gap)


def flanking_insertion(result: HomopolymerResult) -> HomopolymerScore | None:
    base = result.base
    up_gap = result.upstream.ref.endswith(GAP)
    down_gap = result.downstream.ref.startswith(GAP)
    if not (up_gap or down_gap):
        return None

    if up_gap and _gap_run_is_ambiguous(
        _outward(result.upstream, upstream=True, gapped_side="ref"), base, check_next=False
    ):
        return AMBIGUOUS
    if down_gap and _gap_run_is_ambiguous(
        _outward(result.downstream, upstream=False, gapped_side="ref"), base, check_next=False
    ):
        return AMBIGUOUS
    return _exact_or_ambiguous(result)


RULES: tuple[Rule, ...] = (
    insufficient_context,
    reference_mismatch,
    clean_match,
    flanking_read_gap,
    reference_body_gap,
    read_body_gap,
    flanking_insertion,
)


def classify(result: HomopolymerResult) -> HomopolymerResult:
    """
    Score an extracted homopolymer result.

    Returns a copy of ``result`` with ``score`` set; the input is not modified.
    """
    for rule in RULES:
        score = rule(result)
        if score is not None:
            return result.model_copy(update={"score": score})

    logger.debug(
        "No rule matched %s in read %s (body %s/%s, flanks ...%s | %s...); scoring ambiguous",
        result.homopolymer.name,
        result.read_name,
        result.body.read,
        result.body.ref,
        result.upstream.ref[-1:],
        result.downstream.ref[:1],
    )
    return result.model_copy(update={"score": AMBIGUOUS})


def score_homopolymer(
    homopolymer: HomopolymerRecord,
    accessor: AlignmentAccessor,
    reference_sequence: str,
    read_name: str | None = None,
    flank_size: int = FLANK_SIZE,
) -> HomopolymerResult:
    """Extract and classify one homopolymer against one read alignment."""
    return classify(
        extract(homopolymer, accessor, reference_sequence, read_name=read_name, flank_size=flank_size)
    )
