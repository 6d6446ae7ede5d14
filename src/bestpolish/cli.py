#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
bestpolish CLI entrypoint.

Subcommands
-----------
- bestpolish pick      -> pick the best polish(es) per query (bestpolish.pick)
- bestpolish validate  -> same, writing validation reports (pick -validate)

All arguments after the subcommand are forwarded unchanged to
``bestpolish.pick.main(argv)``.

Examples
--------
    bestpolish pick --help

    # Typical usage
    bestpolish pick -mrna < polishes.sim4 > best.sim4
    bestpolish validate polishes.sim4 > report.txt
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from bestpolish._version import __version__


def _load_pick_main():
    """
    Import and return bestpolish.pick.main.
    """
    try:
        from bestpolish.pick import main as pick_main  # type: ignore
    except Exception as e:  # broad to show helpful message
        raise ModuleNotFoundError(
            "Failed to import 'bestpolish.pick'. Ensure 'src/bestpolish/pick.py' "
            'is on the Python path and exposes a callable main(argv) -> int.'
        ) from e
    if not callable(pick_main):
        raise TypeError('bestpolish.pick.main is not callable')
    return pick_main


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser that selects a subcommand."""
    parser = argparse.ArgumentParser(
        prog='bestpolish',
        description='Pick the best sim4 polish(es) for each query.',
        epilog="Use 'bestpolish pick --help' for options.",
        add_help=True,
    )
    parser.add_argument(
        '--version', action='version', version=f'bestpolish {__version__}'
    )
    subparsers = parser.add_subparsers(
        dest='command',
        metavar='{pick,validate}',
        required=True,
        help='Subcommand to run',
    )

    # Minimal subparsers; actual options belong to bestpolish.pick.
    subparsers.add_parser(
        'pick',
        help='Write the best polish(es) for each query.',
        add_help=False,  # let bestpolish.pick handle its own --help
    )
    subparsers.add_parser(
        'validate',
        help='Report every candidate, marking the best polish(es) for each query.',
        add_help=False,
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entrypoint. Parse the subcommand token and forward remaining args.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    # Only parse the subcommand; forward the rest (including --help) to pick.
    args, remainder = parser.parse_known_args(argv)

    if args.command in ('pick', 'validate'):
        try:
            pick_main = _load_pick_main()
        except (ModuleNotFoundError, TypeError) as e:
            print(str(e), file=sys.stderr)
            return 2
        if args.command == 'validate':
            remainder = ['-validate', *remainder]
        return int(pick_main(remainder))

    # Should not happen (subparsers.required=True), but keep a fallback:
    parser.print_usage(sys.stderr)
    return 2


if __name__ == '__main__':
    raise SystemExit(main())
