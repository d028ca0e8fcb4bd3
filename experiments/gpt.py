"""
gpt-standards: per-verse instructed word translation with an OpenAI model.

Each verse is sent as its own chat request (all verses concurrently) with
the word ids, source text and reference glosses; the model answers with a
JSON object constrained by prompts.RESPONSE_FORMAT.
"""

from __future__ import annotations

from tqdm.asyncio import tqdm_asyncio

import config
from experiments.clients import OPENAI_API_KEY, RunContext, call_api
from experiments.prompts import (
    RESPONSE_FORMAT,
    build_system_prompt,
    build_user_prompt,
    decode_translations,
)
from experiments.registry import ExperimentResult, RunOptions, register
from store.verses import Verse, fetch_language_name


async def translate_verse(
    context: RunContext,
    verse: Verse,
    system_prompt: str,
    model: str,
) -> dict[str, str]:
    """Translate the words of one verse; undecodable output becomes sentinels."""
    if not verse.words:
        return {}

    response = await call_api(
        context.openai.chat.completions.create,
        model=model,
        messages=[
            {"role": "system", "content": [{"type": "text", "text": system_prompt}]},
            {"role": "user", "content": [{"type": "text", "text": build_user_prompt(verse)}]},
        ],
        response_format=RESPONSE_FORMAT,
        temperature=config.TEMPERATURE,
        max_completion_tokens=config.MAX_COMPLETION_TOKENS,
        top_p=config.TOP_P,
        frequency_penalty=0,
        presence_penalty=0,
    )

    raw = response.choices[0].message.content if response.choices else None
    return decode_translations(raw, verse)


@register("gpt-standards", requires=(OPENAI_API_KEY,))
async def gpt_standards(
    options: RunOptions,
    context: RunContext,
    verses: list[Verse],
) -> ExperimentResult:
    language_name = await fetch_language_name(context.engine, options.target)
    system_prompt = build_system_prompt(language_name)

    per_verse = await tqdm_asyncio.gather(
        *(translate_verse(context, verse, system_prompt, options.model) for verse in verses),
        desc="  gpt-standards",
        unit="verse",
        leave=False,
        disable=len(verses) < 2,
    )

    results: ExperimentResult = {}
    for translations in per_verse:
        results.update(translations)
    return results
