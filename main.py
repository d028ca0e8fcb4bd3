"""
Entry point for the gloss translation experiment harness.

Fetches the words of a verse range with their glosses, runs each requested
experiment over them and prints a CSV table: one row per word, one column
per experiment.

Usage:
    python main.py -t pol -s 01001001 -x gpt-standards
    python main.py -t spa -s 01001001 -e 01001005 -x google-translate gpt-standards
    python main.py -t pol -r eng -s 40001001 -x gpt-standards -m gpt-4o -o gen1.csv
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import config
from experiments.clients import load_credentials, open_run_context
from experiments.registry import EXPERIMENTS, RunOptions, select
from experiments.results import assemble_rows, format_table, run_experiments
from store.verses import fetch_verses


# ── Run ────────────────────────────────────────────────────────────────────────

async def run(options: RunOptions) -> str:
    """
    Execute one comparison run and return the rendered table.

    Credentials for the selected experiments are checked before anything
    touches the database; clients are closed before this returns or raises.
    """
    selected = select(options.experiments)
    credentials = load_credentials(
        {name for experiment in selected for name in experiment.requires}
    )

    async with open_run_context(credentials) as context:
        verses = await fetch_verses(
            context.engine,
            start=options.start,
            end=options.end,
            target=options.target,
            ref=options.ref,
        )
        print(f"Verses fetched  : {len(verses)}", file=sys.stderr)
        results = await run_experiments(selected, options, context, verses)

    rows = assemble_rows([experiment.name for experiment in selected], results, verses)
    return format_table(rows)


# ── CLI ────────────────────────────────────────────────────────────────────────

def parse_args(argv: list[str] | None = None) -> tuple[RunOptions, str | None]:
    parser = argparse.ArgumentParser(
        description="Compare word-level translation experiments over a verse range."
    )
    parser.add_argument(
        "--target", "-t",
        required=True,
        help="Target language code, e.g. pol",
    )
    parser.add_argument(
        "--ref", "-r",
        default=config.DEFAULT_REF,
        help=f"Reference language code (default: {config.DEFAULT_REF})",
    )
    parser.add_argument(
        "--start", "-s",
        required=True,
        help="Start verse ID, e.g. 01001001",
    )
    parser.add_argument(
        "--end", "-e",
        default=None,
        help="End verse ID (default: same as --start)",
    )
    parser.add_argument(
        "--experiments", "-x",
        nargs="+",
        required=True,
        help=f"Experiments to run, in column order. Known: {', '.join(sorted(EXPERIMENTS))}",
    )
    parser.add_argument(
        "--model", "-m",
        default=config.MODEL,
        help=f"OpenAI model for gpt-standards (default: {config.MODEL})",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the table to this file instead of stdout",
    )
    args = parser.parse_args(argv)

    return RunOptions(
        target=args.target,
        ref=args.ref,
        start=args.start,
        end=args.end or args.start,
        experiments=tuple(args.experiments),
        model=args.model,
    ), args.output


# ── Main ───────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    options, output = parse_args(argv)

    print(f"Target language : {options.target}", file=sys.stderr)
    print(f"Reference       : {options.ref}", file=sys.stderr)
    print(f"Verse range     : {options.start} .. {options.end}", file=sys.stderr)
    print(f"Experiments     : {', '.join(options.experiments)}", file=sys.stderr)

    try:
        table = asyncio.run(run(options))
    except Exception as exc:
        print(f"[ERROR] {type(exc).__name__}: {exc}", file=sys.stderr)
        sys.exit(1)

    if output:
        Path(output).write_text(table, encoding="utf-8")
        print(f"Saved → {output}", file=sys.stderr)
    else:
        sys.stdout.write(table)


if __name__ == "__main__":
    main()
