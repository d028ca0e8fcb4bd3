"""
gemini-standards: the gpt-standards prompt contract answered by Gemini.

Useful as a second LLM column when comparing how model families handle
inflection from the same reference glosses.
"""

from __future__ import annotations

from google.genai import types
from tqdm.asyncio import tqdm_asyncio

import config
from experiments.clients import GEMINI_API_KEY, RunContext, call_api
from experiments.prompts import (
    TRANSLATIONS_SCHEMA,
    build_system_prompt,
    build_user_prompt,
    decode_translations,
)
from experiments.registry import ExperimentResult, RunOptions, register
from store.verses import Verse, fetch_language_name


def _generation_config(system_prompt: str) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=system_prompt,
        temperature=config.TEMPERATURE,
        top_p=config.TOP_P,
        max_output_tokens=config.MAX_COMPLETION_TOKENS,
        response_mime_type="application/json",
        response_json_schema=TRANSLATIONS_SCHEMA,
    )


async def translate_verse(
    context: RunContext,
    verse: Verse,
    generation_config: types.GenerateContentConfig,
) -> dict[str, str]:
    if not verse.words:
        return {}

    response = await call_api(
        context.gemini.aio.models.generate_content,
        model=config.GEMINI_MODEL,
        contents=build_user_prompt(verse),
        config=generation_config,
    )
    return decode_translations(response.text, verse)


@register("gemini-standards", requires=(GEMINI_API_KEY,))
async def gemini_standards(
    options: RunOptions,
    context: RunContext,
    verses: list[Verse],
) -> ExperimentResult:
    language_name = await fetch_language_name(context.engine, options.target)
    generation_config = _generation_config(build_system_prompt(language_name))

    per_verse = await tqdm_asyncio.gather(
        *(translate_verse(context, verse, generation_config) for verse in verses),
        desc="  gemini-standards",
        unit="verse",
        leave=False,
        disable=len(verses) < 2,
    )

    results: ExperimentResult = {}
    for translations in per_verse:
        results.update(translations)
    return results
