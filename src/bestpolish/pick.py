#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pick the best polish (or set of equally good polishes) for each query.

Reads sim4 polishes grouped by query id, from a file or redirected stdin,
and writes the winners of each group to stdout.

Outputs
-------
1) Winning polishes in full polish format (stdout), or with ``-validate`` a
   report of every candidate with winners marked ``*``.
2) Optional TSV summary, one row per winning polish (``--out-tsv``).

Options follow the original command line: ``-n`` sets the initial group buffer
capacity, ``-mrna``/``-ests`` choose the match-count slack (15 or 10) and
``-validate`` switches to validation reports. Unknown options are logged and
ignored.

Examples
--------
    bestpolish pick -mrna < polishes.sim4 > best.sim4
    bestpolish pick -validate polishes.sim4 --out-tsv best.tsv
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Optional, Sequence, TextIO, Tuple

from bestpolish._version import __version__
from bestpolish.group import DEFAULT_CAPACITY, Group, GroupAccumulator
from bestpolish.polish import Polish, PolishFormatError, read_polishes
from bestpolish.report import Reporter
from bestpolish.selector import EPS_N_ESTS, EPS_N_MRNA, SelectionConfig, select_best

PROGRESS_INTERVAL = 1287


# ---------------------------------------------------------------------------
# Driving loop
# ---------------------------------------------------------------------------


def pick_group(group: Group, reporter: Reporter, config: SelectionConfig) -> None:
    """Select and report the winners of one closed group."""
    if len(group) > 1 and group[0].query_id % PROGRESS_INTERVAL == 0:
        logging.info(
            'Picking best for query=%d with %d choices', group[0].query_id, len(group)
        )
    selection = select_best(group, config)
    n_win = reporter.report(group, selection)
    logging.debug(
        '[Query %d] %d candidates -> %d winner(s) triple=%s branch=%s',
        group[0].query_id,
        len(group),
        n_win,
        selection.triple,
        selection.branch,
    )


def process_stream(
    polishes: Iterable[Polish],
    reporter: Reporter,
    config: SelectionConfig,
    capacity: int = DEFAULT_CAPACITY,
) -> int:
    """
    Run the selector over a stream of polishes grouped by query id.

    Returns
    -------
    int
        Number of groups processed.
    """
    acc = GroupAccumulator(capacity)
    n_groups = 0
    for polish in polishes:
        closed = acc.observe(polish)
        if closed is not None:
            pick_group(closed, reporter, config)
            n_groups += 1
    last = acc.flush()
    if last is not None:
        pick_group(last, reporter, config)
        n_groups += 1
    return n_groups


# ---------------------------------------------------------------------------
# CLI / main
# ---------------------------------------------------------------------------


def configure_logging(level: str = 'INFO') -> None:
    """
    Configure root logger with a standard format (logs to stderr).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s',
        stream=sys.stderr,
        force=True,
    )


def _open_in_handle(path: Optional[str]) -> Tuple[TextIO, bool]:
    """
    Return a readable handle and whether we own/should close it.
    """
    if path is None or path == '-' or path == '':
        return sys.stdin, False
    fh = open(path, 'r', encoding='utf-8')
    return fh, True


def build_arg_parser() -> argparse.ArgumentParser:
    """
    Build the command-line interface parser.
    """
    ap = argparse.ArgumentParser(
        prog='bestpolish pick',
        description=(
            'Pick the best polish(es) for each query from a sim4 polish stream. '
            f'Version {__version__}'
        ),
        usage='%(prog)s [-mrna|-ests] [-validate] [-n COUNT] [input] < file > file',
    )
    ap.add_argument(
        'input',
        nargs='?',
        default='-',
        help="Polish file path or '-' for redirected stdin (default: '-')",
    )
    ap.add_argument(
        '-n',
        dest='capacity',
        type=int,
        default=DEFAULT_CAPACITY,
        metavar='COUNT',
        help=f'Initial group buffer capacity; doubles as needed (default: {DEFAULT_CAPACITY})',
    )
    ap.add_argument(
        '-mrna',
        dest='eps_n',
        action='store_const',
        const=EPS_N_MRNA,
        default=EPS_N_ESTS,
        help=f'mRNA input: allow {EPS_N_MRNA} fewer matches when trading for exons',
    )
    ap.add_argument(
        '-ests',
        dest='eps_n',
        action='store_const',
        const=EPS_N_ESTS,
        help=f'EST input: allow {EPS_N_ESTS} fewer matches when trading for exons (default)',
    )
    ap.add_argument(
        '-validate',
        action='store_true',
        help='Report every candidate with winners marked, instead of the winning polishes',
    )
    ap.add_argument(
        '--out-tsv',
        default=None,
        help="Write a TSV summary of winners to PATH ('-' = stderr; default: none)",
    )
    ap.add_argument(
        '--log-level',
        default='INFO',
        help='Logging level (DEBUG, INFO, WARNING, ERROR; default: INFO)',
    )
    ap.add_argument('--version', action='version', version=f'bestpolish {__version__}')
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entrypoint.

    Returns
    -------
    int
        Exit status code.
    """
    ap = build_arg_parser()
    args, unknown = ap.parse_known_args(argv)

    configure_logging(args.log_level)
    for opt in unknown:
        logging.warning('unknown option: %s', opt)

    if args.capacity < 1:
        logging.warning('ignoring non-positive -n %d', args.capacity)
        args.capacity = DEFAULT_CAPACITY

    if args.input in (None, '', '-') and sys.stdin.isatty():
        ap.print_usage(sys.stderr)
        logging.error('cannot read polishes from the terminal')
        return 1

    config = SelectionConfig(eps_n=args.eps_n)
    logging.info('bestpolish version %s', __version__)
    logging.info(
        'Reading polishes: %s | eps_n=%d eps_x=%d eps_i=%d | validate=%s',
        args.input,
        config.eps_n,
        config.eps_x,
        config.eps_i,
        args.validate,
    )

    reporter = Reporter(
        sys.stdout, validate=args.validate, keep_summary=bool(args.out_tsv)
    )
    fh, close_me = None, False
    try:
        fh, close_me = _open_in_handle(args.input)
        n_groups = process_stream(read_polishes(fh), reporter, config, args.capacity)
    except PolishFormatError as e:
        logging.error('Malformed polish in %s: %s', args.input, e)
        return 1
    except BrokenPipeError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        logging.error('Cannot read polishes from %s: %s', args.input, e)
        return 1
    except MemoryError:
        logging.error('Out of memory: could not grow the polish buffer')
        return 1
    finally:
        if close_me:
            fh.close()

    logging.info(
        'Processed %d queries; %d winning polishes', n_groups, reporter.n_winners
    )

    if args.out_tsv == '-':
        reporter.summary_frame().to_csv(sys.stderr, sep='\t', index=False)
        logging.info('Wrote TSV summary to stderr')
    elif args.out_tsv:
        reporter.summary_frame().to_csv(args.out_tsv, sep='\t', index=False)
        logging.info('Wrote TSV summary: %s', args.out_tsv)

    return 0


if __name__ == '__main__':
    try:
        raise SystemExit(main())
    except BrokenPipeError:
        # allow piping into head/tail without noisy tracebacks
        try:
            sys.stderr.close()
        except Exception:
            pass
        try:
            sys.stdout.close()
        except Exception:
            pass
        raise
