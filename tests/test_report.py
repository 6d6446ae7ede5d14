from __future__ import annotations

import io

from bestpolish.polish import Exon, Polish, read_polishes
from bestpolish.report import Reporter, format_validation_line
from bestpolish.selector import select_best

from .conftest import make_polish


def test_validation_line_layout():
    p = Polish(
        query_id=12,
        target_id=7,
        percent_identity=98,
        num_matches=1412,
        exons=(Exon(1, 350, 10500, 10849, 98, num_matches=344),),
    )
    assert format_validation_line(p, True) == (
        '      12        7   98 1412 (     1/ 10500    350/ 10849  98) *'
    )
    assert not format_validation_line(p, False).endswith('*')


def test_normal_mode_writes_only_winners():
    group = [make_polish(1, 1, 98, 50, 3), make_polish(1, 2, 98, 50, 5)]
    out = io.StringIO()
    n = Reporter(out).report(group, select_best(group))
    assert n == 1
    (winner,) = read_polishes(io.StringIO(out.getvalue()))
    assert winner == group[1]


def test_validation_mode_lists_every_candidate_once():
    group = [
        make_polish(1, 1, 97, 40, 1),
        make_polish(1, 2, 95, 60, 1),
        make_polish(1, 3, 95, 55, 4),
    ]
    out = io.StringIO()
    Reporter(out, validate=True).report(group, select_best(group))
    lines = out.getvalue().splitlines()
    assert lines[0] == '--------------------9 (Exon alpha > 0.8)'
    assert len(lines) == 1 + len(group)
    assert [ln.split()[1] for ln in lines[1:]] == ['1', '2', '3']
    assert [ln.endswith(' *') for ln in lines[1:]] == [False, False, True]
    assert 'sim4begin' not in out.getvalue()


def test_validation_mode_skips_single_candidates():
    group = [make_polish(1, 1, 97, 40, 1)]
    out = io.StringIO()
    reporter = Reporter(out, validate=True)
    assert reporter.report(group, select_best(group)) == 1
    assert out.getvalue() == ''


def test_summary_frame_has_one_row_per_winner():
    reporter = Reporter(io.StringIO(), keep_summary=True)
    tied = [make_polish(1, 1, 98, 50, 2), make_polish(1, 2, 98, 50, 2)]
    single = [make_polish(2, 5, 90, 10, 1)]
    reporter.report(tied, select_best(tied))
    reporter.report(single, select_best(single))
    df = reporter.summary_frame()
    assert list(df['target_id']) == [1, 2, 5]
    assert list(df['candidates']) == [2, 2, 1]
    assert list(df['branch']) == [1, 1, 0]


def test_summary_frame_empty_keeps_columns():
    df = Reporter(io.StringIO(), keep_summary=True).summary_frame()
    assert df.empty
    assert 'num_exons' in df.columns


def test_rows_are_not_kept_unless_summary_requested():
    reporter = Reporter(io.StringIO())
    for q in range(2000):
        group = [make_polish(q, 1, 90, 10, 1)]
        reporter.report(group, select_best(group))
    assert reporter.n_winners == 2000
    assert reporter.summary_frame().empty
