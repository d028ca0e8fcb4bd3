"""
Run the selected experiments and line their results up into one table.

Rows are built by looking each word id up in every experiment's result, so
a result that lost a word raises AlignmentError instead of shifting the
rows below it.
"""

from __future__ import annotations

import asyncio

# Importing the experiment modules registers them.
from experiments import gemini, google_translate, gpt  # noqa: F401
from experiments.clients import RunContext
from experiments.errors import AlignmentError
from experiments.registry import Experiment, ExperimentResult, RunOptions
from store.verses import Verse, flatten_words


async def run_experiments(
    selected: list[Experiment],
    options: RunOptions,
    context: RunContext,
    verses: list[Verse],
) -> list[ExperimentResult]:
    """Run all experiments concurrently; results follow the order of `selected`."""
    return list(
        await asyncio.gather(
            *(experiment.translate(options, context, verses) for experiment in selected)
        )
    )


def assemble_rows(
    names: list[str],
    results: list[ExperimentResult],
    verses: list[Verse],
) -> list[list[str]]:
    """
    Header row followed by one row per word.

    Returns:
        [["", name1, name2, ...], [word_id, value1, value2, ...], ...]

    Raises:
        AlignmentError: if any result has no entry for a fetched word.
    """
    rows = [["", *names]]
    for word in flatten_words(verses):
        row = [word.id]
        for name, result in zip(names, results):
            if word.id not in result:
                raise AlignmentError(name, word.id)
            row.append(result[word.id])
        rows.append(row)
    return rows


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def format_table(rows: list[list[str]]) -> str:
    """
    Render rows as CSV text.

    The header and the word id column are written bare; translations are
    always quoted.
    """
    header, *body = rows
    lines = [",".join(header)]
    lines.extend(
        ",".join([word_id, *(_quote(value) for value in values)])
        for word_id, *values in body
    )
    return "\n".join(lines) + "\n"
