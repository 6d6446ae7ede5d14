#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Write the outcome of a selection.

Normal mode writes the winning polishes in full polish format. Validation mode
writes every candidate as one summary line, marking winners with ``*``, under
a dashed header naming the decision branch:

.. code-block:: text

    --------------------1 (Clear Winner)
          12        7   98 1412 (     1/ 10500    350/ 10849  98) *
          12        9   94 1290 (     1/ 44000   1500/ 45499  94)
"""

from __future__ import annotations

from typing import Dict, List, Sequence, TextIO

import pandas as pd

from bestpolish.polish import Polish, format_polish
from bestpolish.selector import Selection

SUMMARY_COLUMNS = [
    'query_id',
    'target_id',
    'percent_identity',
    'num_matches',
    'num_exons',
    'candidates',
    'branch',
]


def format_validation_line(p: Polish, is_best: bool) -> str:
    """One-line summary of a polish with its exon spans."""
    parts = [
        f'{p.query_id:8d} {p.target_id:8d} {p.percent_identity:4d} {p.num_matches:4d}'
    ]
    for e in p.exons:
        parts.append(
            f' ({e.query_from:6d}/{e.target_from:6d} '
            f'{e.query_to:6d}/{e.target_to:6d} {e.percent_identity:3d})'
        )
    if is_best:
        parts.append(' *')
    return ''.join(parts)


def format_validation_header(selection: Selection) -> str:
    branch = selection.branch
    return '-' * 20 + f'{int(branch)} ({branch.description})'


class Reporter:
    """
    Emit selections to an output stream.

    Parameters
    ----------
    out : TextIO
        Destination for polishes or validation reports.
    validate : bool
        Write validation reports instead of winning polishes.
    keep_summary : bool
        Keep one row per winner for :meth:`summary_frame`. Off by default so
        nothing outlives the group being reported.
    """

    def __init__(
        self, out: TextIO, validate: bool = False, keep_summary: bool = False
    ):
        self.out = out
        self.validate = validate
        self.keep_summary = keep_summary
        self.n_winners = 0
        self._rows: List[Dict[str, object]] = []

    def report(self, group: Sequence[Polish], selection: Selection) -> int:
        """
        Write one group's result.

        Returns
        -------
        int
            Number of winning polishes in the group.
        """
        winners = selection.winners(group)
        self.n_winners += len(winners)
        if self.keep_summary:
            self._keep_rows(group, winners, selection)

        if not self.validate:
            for p in winners:
                self.out.write(format_polish(p))
            return len(winners)

        # Single candidates are not reported in validation mode.
        if selection.branch is None:
            return len(winners)

        self.out.write(format_validation_header(selection) + '\n')
        for p in group:
            self.out.write(format_validation_line(p, selection.is_winner(p)) + '\n')
        return len(winners)

    def _keep_rows(
        self, group: Sequence[Polish], winners: List[Polish], selection: Selection
    ) -> None:
        branch = int(selection.branch) if selection.branch is not None else 0
        for p in winners:
            self._rows.append(
                {
                    'query_id': p.query_id,
                    'target_id': p.target_id,
                    'percent_identity': p.percent_identity,
                    'num_matches': p.num_matches,
                    'num_exons': p.num_exons,
                    'candidates': len(group),
                    'branch': branch,
                }
            )

    def summary_frame(self) -> pd.DataFrame:
        """One row per winning polish reported so far (branch 0 = single candidate)."""
        return pd.DataFrame(self._rows, columns=SUMMARY_COLUMNS)
