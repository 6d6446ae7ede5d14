#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pick the best polish (or tied set of polishes) for one query.

Candidates are compared on percent identity, number of matches and number of
exons. When the highest-identity polish is also the one with the most
matches, it wins, possibly traded for a polish with clearly more exons at a
slightly lower match count ("exon refine"). Otherwise the two best distinct
identities are compared, and when the lower-identity tier has more matches a
slope metric (alpha) decides whether the extra matches are worth the identity
lost.

Every decision ends in a triple (identity, matches, exons); all polishes of the
group carrying exactly that triple are winners.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import math
from typing import List, Optional, Sequence, Tuple

from bestpolish.polish import Polish

# ---------------------------------------------------------------------------
# Tolerances
# ---------------------------------------------------------------------------

EPS_X = 1  # exon-count slack
EPS_I = 3  # identity slack
EPS_N_ESTS = 10  # match-count slack for ESTs
EPS_N_MRNA = 15  # match-count slack for mRNA
ALPHA_THRESHOLD = 0.8


@dataclass(frozen=True)
class SelectionConfig:
    """
    Tolerances used by :func:`select_best`.

    Parameters
    ----------
    eps_n : int
        Match-count slack allowed when trading matches for exons.
    eps_x : int
        An exon count must exceed the current best by more than this to win.
    eps_i : int
        Identity margin that lets the higher-identity tier win outright.
    """

    eps_n: int = EPS_N_ESTS
    eps_x: int = EPS_X
    eps_i: int = EPS_I


class Branch(IntEnum):
    """Decision branch that produced a selection (validation labels 1-9)."""

    CLEAR_WINNER = 1
    EXON_CLEAR_WINNER = 2
    IDENTITY_LEADS = 3
    EXON_IDENTITY_LEADS = 4
    ALPHA_BELOW = 5
    EXON_PLUS_ALPHA_ABOVE = 6
    PCTID_PLUS_ALPHA_ABOVE = 7
    ALPHA_ABOVE = 8
    EXON_ALPHA_ABOVE = 9

    @property
    def description(self) -> str:
        return _BRANCH_DESCRIPTIONS[self]


_BRANCH_DESCRIPTIONS = {
    Branch.CLEAR_WINNER: 'Clear Winner',
    Branch.EXON_CLEAR_WINNER: 'Exon Clear Winner',
    Branch.IDENTITY_LEADS: '?',
    Branch.EXON_IDENTITY_LEADS: 'Exon ?',
    Branch.ALPHA_BELOW: 'alpha < 0.8',
    Branch.EXON_PLUS_ALPHA_ABOVE: 'Exon Plus alpha > 0.8',
    Branch.PCTID_PLUS_ALPHA_ABOVE: 'Pctid Plus alpha > 0.8',
    Branch.ALPHA_ABOVE: 'alpha > 0.8',
    Branch.EXON_ALPHA_ABOVE: 'Exon alpha > 0.8',
}


@dataclass(frozen=True)
class Selection:
    """
    Winning (identity, matches, exons) triple for a group.

    ``branch`` is None for a single-candidate group, where no comparison
    takes place.
    """

    percent_identity: int
    num_matches: int
    num_exons: int
    branch: Optional[Branch] = None

    @property
    def triple(self) -> Tuple[int, int, int]:
        return self.percent_identity, self.num_matches, self.num_exons

    def is_winner(self, polish: Polish) -> bool:
        return polish.score == self.triple

    def winners(self, group: Sequence[Polish]) -> List[Polish]:
        """Winning polishes in input order."""
        return [p for p in group if self.is_winner(p)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _div(a: float, b: float) -> float:
    """Floating-point division that yields inf/nan on a zero divisor."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def compute_alpha(
    identity_i: int, matches_i: int, identity_m: int, matches_m: int
) -> float:
    """
    Match-count gain per unit of identity lost between two tiers.

    ``alpha = ((mM - mI) / ((mM / iM) - (mI / iI))) / 100`` where ``i`` is the
    higher-identity tier and ``m`` the lower-identity tier with more matches.
    """
    slope = _div(matches_m, identity_m) - _div(matches_i, identity_i)
    return _div(matches_m - matches_i, slope) / 100


def _best_by_identity(group: Sequence[Polish]) -> Tuple[int, int]:
    """Highest identity; among ties, most matches."""
    best = max(group, key=lambda p: (p.percent_identity, p.num_matches))
    return best.percent_identity, best.num_matches


def _best_by_matches(group: Sequence[Polish]) -> Tuple[int, int]:
    """Most matches; among ties, highest identity."""
    best = max(group, key=lambda p: (p.num_matches, p.percent_identity))
    return best.percent_identity, best.num_matches


def _top_two_identities(group: Sequence[Polish]) -> Tuple[int, int, int, int]:
    """
    The two highest distinct identities, each with its best match count.

    Returns ``(identity_i, matches_i, identity_m, matches_m)``; the second tier
    is ``(0, 0)`` when the group holds a single distinct identity.
    """
    best_matches = {}
    for p in group:
        if p.num_matches > best_matches.get(p.percent_identity, -1):
            best_matches[p.percent_identity] = p.num_matches
    ranked = sorted(best_matches, reverse=True)
    identity_i = ranked[0]
    identity_m = ranked[1] if len(ranked) > 1 else 0
    return (
        identity_i,
        best_matches[identity_i],
        identity_m,
        best_matches.get(identity_m, 0),
    )


def _max_exons(
    group: Sequence[Polish], identity: int, matches: int, exact: bool = False
) -> int:
    """Most exons at ``identity`` with at least (or exactly) ``matches`` matches."""
    counts = [
        p.num_exons
        for p in group
        if p.percent_identity == identity
        and (p.num_matches == matches if exact else p.num_matches >= matches)
    ]
    return max(counts, default=0)


def exon_refine(
    group: Sequence[Polish],
    identity: int,
    base_matches: int,
    eps_n: int,
    eps_x: int = EPS_X,
) -> Tuple[int, int]:
    """
    Look for a polish with clearly more exons at a slightly lower match count.

    Starting from the most exons among polishes at ``identity`` with at least
    ``base_matches`` matches, scan the group in input order; any polish at
    ``identity`` with at least ``base_matches - eps_n`` matches and more than
    ``eps_x`` exons beyond the current best replaces it. Later qualifying
    polishes override earlier ones.

    Returns
    -------
    (int, int)
        ``(matches, exons)`` of the refined selection.
    """
    num_exons = _max_exons(group, identity, base_matches)
    num_matches = base_matches
    floor = base_matches - eps_n
    for p in group:
        if (
            p.percent_identity == identity
            and p.num_matches >= floor
            and p.num_exons > num_exons + eps_x
        ):
            num_matches = p.num_matches
            num_exons = p.num_exons
    return num_matches, num_exons


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_best(
    group: Sequence[Polish], config: Optional[SelectionConfig] = None
) -> Selection:
    """
    Choose the winning (identity, matches, exons) triple for one query group.

    Parameters
    ----------
    group : sequence of Polish
        All candidates for one query id, in input order.
    config : SelectionConfig, optional
        Tolerances; defaults to the EST settings.

    Raises
    ------
    ValueError
        If ``group`` is empty.
    """
    if not group:
        raise ValueError('cannot select from an empty group')
    if config is None:
        config = SelectionConfig()

    if len(group) == 1:
        p = group[0]
        return Selection(p.percent_identity, p.num_matches, p.num_exons)

    identity_i, matches_i = _best_by_identity(group)
    identity_m, matches_m = _best_by_matches(group)

    # Best identity also has the most matches.
    if identity_i == identity_m and matches_i == matches_m:
        matches, exons = exon_refine(
            group, identity_i, matches_i, config.eps_n, config.eps_x
        )
        branch = (
            Branch.CLEAR_WINNER if matches == matches_i else Branch.EXON_CLEAR_WINNER
        )
        return Selection(identity_i, matches, exons, branch)

    identity_i, matches_i, identity_m, matches_m = _top_two_identities(group)

    if matches_i >= matches_m:
        matches, exons = exon_refine(
            group, identity_i, matches_i, config.eps_n, config.eps_x
        )
        branch = (
            Branch.IDENTITY_LEADS
            if matches == matches_i
            else Branch.EXON_IDENTITY_LEADS
        )
        return Selection(identity_i, matches, exons, branch)

    alpha = compute_alpha(identity_i, matches_i, identity_m, matches_m)

    if alpha < ALPHA_THRESHOLD:
        exons = _max_exons(group, identity_i, matches_i)
        return Selection(identity_i, matches_i, exons, Branch.ALPHA_BELOW)

    exons_i = _max_exons(group, identity_i, matches_i, exact=True)
    exons_m = _max_exons(group, identity_m, matches_m, exact=True)

    if exons_i > exons_m + config.eps_x:
        return Selection(identity_i, matches_i, exons_i, Branch.EXON_PLUS_ALPHA_ABOVE)
    if identity_i > identity_m + config.eps_i:
        return Selection(
            identity_i, matches_i, exons_i, Branch.PCTID_PLUS_ALPHA_ABOVE
        )

    matches, exons = exon_refine(
        group, identity_m, matches_m, config.eps_n, config.eps_x
    )
    branch = Branch.ALPHA_ABOVE if exons == exons_m else Branch.EXON_ALPHA_ABOVE
    return Selection(identity_m, matches, exons, branch)
