"""
Prompt templates and the response contract for the LLM experiments.

The system prompt fixes the translation rules; the user prompt lists one
word per line as "<id> <source text> - <reference gloss>". Models answer
with {"translations": [{"id": ..., "translation": ...}, ...]}.
"""

from __future__ import annotations

import json
import sys

import config
from store.verses import Verse

SYSTEM_PROMPT = """\
You are going to be producing literal translations in {language_name} for individual words \
in the Hebrew Old Testament and Greek New Testament. I will give you a list of individual \
Hebrew or Greek words in order from the text with the ID you should use when outputting \
the translation and an example in English. The translation for each word should meet the \
following criteria:
- For Hebrew and Greek words with multiple translations, use context clues to determine \
which sense is most appropriate. When in doubt err on the side of literalness.
- Try to follow the grammar of the Hebrew and Greek word in the translation. For example, \
conjugate verbs, and match plurals for nouns and adjectives
- Transliterate proper nouns so their pronunciation is close.
- When a Hebrew or Greek word is untranslatable, use a single hyphen as the translation.
- In inflected languages, the translation should adjust the translation based on where \
the word is in the sentence
- Punctuation in Hebrew or Greek should not be translated"""

TRANSLATIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "translations": {
            "type": "array",
            "description": "An array of translation objects.",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": "The unique identifier for the translation.",
                    },
                    "translation": {
                        "type": "string",
                        "description": "The translation text.",
                    },
                },
                "required": ["id", "translation"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["translations"],
    "additionalProperties": False,
}

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "translations_array",
        "strict": True,
        "schema": TRANSLATIONS_SCHEMA,
    },
}


def build_system_prompt(language_name: str) -> str:
    return SYSTEM_PROMPT.format(language_name=language_name)


def build_user_prompt(verse: Verse) -> str:
    """
    One line per word of the verse.

    A missing reference gloss is rendered as an empty string after the dash.
    """
    return "\n".join(
        f"{word.id} {word.text} - {word.ref_gloss or ''}" for word in verse.words
    )


def _strip_fences(raw: str) -> str:
    # Some models wrap the object in ```json … ``` despite the schema.
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("```")[1]
        if raw.startswith("json"):
            raw = raw[4:]
        raw = raw.strip()
    return raw


def decode_translations(raw: str | None, verse: Verse) -> dict[str, str]:
    """
    Map every word id of `verse` to its translation from a model response.

    Never raises on bad output: if the response cannot be decoded, every
    word of the verse gets config.DECODE_FAILURE; if it decodes but leaves
    words out, only those words do. Ids not in the verse are dropped.
    """
    expected = [word.id for word in verse.words]

    try:
        payload = json.loads(_strip_fences(raw or ""))
        # A null or non-string translation counts as missing.
        found = {
            str(item["id"]): item["translation"]
            for item in payload["translations"]
            if isinstance(item["translation"], str)
        }
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        print(
            f"[WARN] Verse {verse.id}: undecodable model output ({exc!r}); "
            f"marking {len(expected)} words as {config.DECODE_FAILURE}",
            file=sys.stderr,
        )
        return {word_id: config.DECODE_FAILURE for word_id in expected}

    missing = [word_id for word_id in expected if word_id not in found]
    if missing:
        print(
            f"[WARN] Verse {verse.id}: model skipped {len(missing)} words: {', '.join(missing)}",
            file=sys.stderr,
        )
    return {word_id: found.get(word_id, config.DECODE_FAILURE) for word_id in expected}
