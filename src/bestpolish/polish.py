#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Polish records and the sim4 polish text format.

A polish is one spliced alignment of a query (cDNA/EST) against a target
(genomic) sequence. Each record in the text stream is a block:

.. code-block:: text

    sim4begin
    12[1500-0-0] 7[10000-25000] <1412-0-98-forward-forward>
    edef=>query description
    ddef=>target description
    1-350 (10500-10849) <344-0-98> ->
    351-1500 (12300-13449) <1068-0-97>
    sim4end

The header carries ``queryId[queryLen-polyA-polyT]``, ``targetId[lo-hi]`` and
``<matches-matchesN-percentIdentity-matchOrientation-strandOrientation>``.
Each exon line carries the query and target spans, per-exon scores and an
optional intron orientation marker. Optional alignment text follows the exon
lines, two lines (query, target) per exon.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, Iterator, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Regexes reused across functions (compiled once)
# ---------------------------------------------------------------------------

_RE_HEADER = re.compile(
    r'^(\d+)\[(\d+)-(\d+)-(\d+)\] (\d+)\[(\d+)-(\d+)\] '
    r'<(\d+)-(\d+)-(\d+)-(\w+)-(\w+)>$'
)
_RE_EXON = re.compile(
    r'^(\d+)-(\d+) \((\d+)-(\d+)\) <(\d+)-(\d+)-(\d+)>(?: (->|<-|==|--))?$'
)

POLISH_BEGIN = 'sim4begin'
POLISH_END = 'sim4end'


class PolishFormatError(ValueError):
    """Raised when the polish stream contains a malformed record."""

    def __init__(self, lineno: int, message: str):
        super().__init__(f'line {lineno}: {message}')
        self.lineno = lineno


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Exon:
    """
    One exon (contiguous sub-alignment) of a polish.

    Parameters
    ----------
    query_from, query_to : int
        1-based span on the query sequence.
    target_from, target_to : int
        1-based span on the target sequence.
    percent_identity : int
        Identity of this segment alone (0-100).
    num_matches, num_matches_n : int
        Matched bases, and matches against N, within the segment.
    intron_orientation : str
        Marker for the intron following this exon ('->', '<-', '==', '--')
        or '' for the last exon.
    """

    query_from: int
    query_to: int
    target_from: int
    target_to: int
    percent_identity: int
    num_matches: int = 0
    num_matches_n: int = 0
    intron_orientation: str = ''
    query_alignment: Optional[str] = None
    target_alignment: Optional[str] = None


@dataclass(frozen=True)
class Polish:
    """A candidate alignment of one query against one target."""

    query_id: int
    target_id: int
    percent_identity: int
    num_matches: int
    exons: Tuple[Exon, ...]
    query_len: int = 0
    poly_a: int = 0
    poly_t: int = 0
    target_lo: int = 0
    target_hi: int = 0
    num_matches_n: int = 0
    match_orientation: str = 'forward'
    strand_orientation: str = 'unknown'
    comment: Optional[str] = None
    query_defline: Optional[str] = None
    target_defline: Optional[str] = None

    @property
    def num_exons(self) -> int:
        return len(self.exons)

    @property
    def score(self) -> Tuple[int, int, int]:
        """(percent identity, matches, exon count) used by the selector."""
        return self.percent_identity, self.num_matches, len(self.exons)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_block(block: List[Tuple[int, str]]) -> Polish:
    """Build a Polish from the (lineno, text) lines between begin/end markers."""
    if not block:
        raise PolishFormatError(0, 'empty polish')
    lineno, header = block[0]
    m = _RE_HEADER.match(header)
    if m is None:
        raise PolishFormatError(lineno, f'bad polish header: {header!r}')
    (qid, qlen, poly_a, poly_t, tid, tlo, thi, nm, nmn, pid, m_ori, s_ori) = (
        m.groups()
    )

    comment = qdef = tdef = None
    exon_fields: List[Tuple[int, ...]] = []
    orientations: List[str] = []
    alignments: List[str] = []

    for lineno, ln in block[1:]:
        if not exon_fields and not alignments:
            if ln.startswith('comment='):
                comment = ln[len('comment=') :]
                continue
            if ln.startswith('edef='):
                qdef = ln[len('edef=') :]
                continue
            if ln.startswith('ddef='):
                tdef = ln[len('ddef=') :]
                continue
        em = _RE_EXON.match(ln) if not alignments else None
        if em is not None:
            exon_fields.append(tuple(int(x) for x in em.groups()[:7]))
            orientations.append(em.group(8) or '')
            continue
        if not exon_fields:
            raise PolishFormatError(lineno, f'expected an exon line, got {ln!r}')
        alignments.append(ln)

    if not exon_fields:
        raise PolishFormatError(block[0][0], 'polish has no exons')
    if alignments and len(alignments) != 2 * len(exon_fields):
        raise PolishFormatError(
            block[-1][0],
            f'expected {2 * len(exon_fields)} alignment lines, '
            f'found {len(alignments)}',
        )

    exons = []
    for i, (qf, qt, tf, tt, enm, enmn, epid) in enumerate(exon_fields):
        exons.append(
            Exon(
                query_from=qf,
                query_to=qt,
                target_from=tf,
                target_to=tt,
                percent_identity=epid,
                num_matches=enm,
                num_matches_n=enmn,
                intron_orientation=orientations[i],
                query_alignment=alignments[2 * i] if alignments else None,
                target_alignment=alignments[2 * i + 1] if alignments else None,
            )
        )

    return Polish(
        query_id=int(qid),
        target_id=int(tid),
        percent_identity=int(pid),
        num_matches=int(nm),
        exons=tuple(exons),
        query_len=int(qlen),
        poly_a=int(poly_a),
        poly_t=int(poly_t),
        target_lo=int(tlo),
        target_hi=int(thi),
        num_matches_n=int(nmn),
        match_orientation=m_ori,
        strand_orientation=s_ori,
        comment=comment,
        query_defline=qdef,
        target_defline=tdef,
    )


def read_polishes(lines: Iterable[str]) -> Iterator[Polish]:
    """
    Stream polishes from an iterable of text lines (e.g. an open file).

    Records are yielded as soon as their ``sim4end`` line is seen, so memory
    use is bounded by the largest single record.

    Raises
    ------
    PolishFormatError
        On text outside a record, a truncated record, or a malformed line.
    """
    block: Optional[List[Tuple[int, str]]] = None
    lineno = 0
    for lineno, raw in enumerate(lines, start=1):
        ln = raw.rstrip('\r\n')
        if block is None:
            if not ln.strip():
                continue
            if ln != POLISH_BEGIN:
                raise PolishFormatError(
                    lineno, f'expected {POLISH_BEGIN!r}, got {ln!r}'
                )
            block = []
            continue
        if ln == POLISH_END:
            yield _parse_block(block)
            block = None
            continue
        if ln == POLISH_BEGIN:
            raise PolishFormatError(lineno, f'{POLISH_BEGIN!r} inside a record')
        block.append((lineno, ln))
    if block is not None:
        raise PolishFormatError(lineno, f'truncated record (missing {POLISH_END!r})')


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_polish(p: Polish) -> str:
    """Return the full text representation of a polish, ending in a newline."""
    out = [
        POLISH_BEGIN,
        f'{p.query_id}[{p.query_len}-{p.poly_a}-{p.poly_t}] '
        f'{p.target_id}[{p.target_lo}-{p.target_hi}] '
        f'<{p.num_matches}-{p.num_matches_n}-{p.percent_identity}-'
        f'{p.match_orientation}-{p.strand_orientation}>',
    ]
    if p.comment is not None:
        out.append(f'comment={p.comment}')
    if p.query_defline is not None:
        out.append(f'edef={p.query_defline}')
    if p.target_defline is not None:
        out.append(f'ddef={p.target_defline}')
    for e in p.exons:
        line = (
            f'{e.query_from}-{e.query_to} ({e.target_from}-{e.target_to}) '
            f'<{e.num_matches}-{e.num_matches_n}-{e.percent_identity}>'
        )
        if e.intron_orientation:
            line += f' {e.intron_orientation}'
        out.append(line)
    for e in p.exons:
        if e.query_alignment is not None and e.target_alignment is not None:
            out.append(e.query_alignment)
            out.append(e.target_alignment)
    out.append(POLISH_END)
    return '\n'.join(out) + '\n'
