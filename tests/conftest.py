from __future__ import annotations

from pathlib import Path
import textwrap
from typing import Iterable, List

import pytest

from bestpolish.polish import Exon, Polish, format_polish


def make_polish(
    query_id: int,
    target_id: int,
    percent_identity: int,
    num_matches: int,
    num_exons: int = 1,
) -> Polish:
    """
    Build a synthetic polish with ``num_exons`` 100 bp exons.

    Exons are laid out back to back on the query and 100 bp apart on the
    target; every exon carries the polish identity.
    """
    exons: List[Exon] = []
    for i in range(num_exons):
        exons.append(
            Exon(
                query_from=1 + 100 * i,
                query_to=100 * (i + 1),
                target_from=1001 + 200 * i,
                target_to=1100 + 200 * i,
                percent_identity=percent_identity,
                num_matches=num_matches // num_exons,
                intron_orientation='->' if i < num_exons - 1 else '',
            )
        )
    return Polish(
        query_id=query_id,
        target_id=target_id,
        percent_identity=percent_identity,
        num_matches=num_matches,
        exons=tuple(exons),
        query_len=100 * num_exons,
        target_lo=0,
        target_hi=1100 + 200 * num_exons,
    )


def write_polishes(path: Path, polishes: Iterable[Polish]) -> Path:
    """Write polishes in full format."""
    with path.open('w', encoding='utf-8') as fh:
        for p in polishes:
            fh.write(format_polish(p))
    return path


@pytest.fixture
def polish_text() -> str:
    """Two hand-written polishes for the same query."""
    return textwrap.dedent("""\
        sim4begin
        12[1500-0-0] 7[10000-25000] <1412-0-98-forward-forward>
        edef=>est12
        ddef=>chr7
        1-350 (10500-10849) <344-0-98> ->
        351-1500 (12300-13449) <1068-0-97>
        sim4end
        sim4begin
        12[1500-0-12] 9[40000-50000] <1290-3-94-complement-reverse>
        1-1500 (44000-45499) <1290-3-94>
        sim4end
    """)


@pytest.fixture
def polishes_three_queries(tmp_path) -> Path:
    """
    Three queries:

    Query 1: (98,50,3 exons) t1, (98,50,5 exons) t2, (90,30,1) t3
             -> convergent, clear winner t2 (branch 1).
    Query 2: single candidate t4 -> wins outright.
    Query 3: (99,40,1) t1, (90,100,1) t2
             -> alpha ~0.85, identity margin 9 > 3 -> t1 (branch 7).
    """
    return write_polishes(
        tmp_path / 'three_queries.sim4',
        [
            make_polish(1, 1, 98, 50, 3),
            make_polish(1, 2, 98, 50, 5),
            make_polish(1, 3, 90, 30, 1),
            make_polish(2, 4, 95, 80, 2),
            make_polish(3, 1, 99, 40, 1),
            make_polish(3, 2, 90, 100, 1),
        ],
    )


@pytest.fixture
def polishes_match_slack(tmp_path) -> Path:
    """
    One query where the 4-exon polish is 13 matches short of the best:
    outside the EST slack (10) but inside the mRNA slack (15).
    """
    return write_polishes(
        tmp_path / 'slack.sim4',
        [
            make_polish(5, 1, 98, 50, 1),
            make_polish(5, 2, 98, 37, 4),
        ],
    )
