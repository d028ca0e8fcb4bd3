"""
Read-only access to the word / gloss store.

A verse is fetched together with every word in it, each word carrying the
latest non-deleted gloss (if any) in the target language and in the
reference language.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from experiments.errors import UnknownLanguageError


@dataclass(frozen=True)
class Word:
    id: str
    text: str
    target_gloss: str | None = None
    ref_gloss: str | None = None


@dataclass(frozen=True)
class Verse:
    id: str
    words: tuple[Word, ...]


# Picks the gloss of the newest non-deleted phrase that contains the word.
_GLOSS_LATERAL = """
    LEFT JOIN LATERAL (
        SELECT gloss.gloss FROM gloss
        JOIN phrase ON phrase.id = gloss.phrase_id
        JOIN phrase_word phw ON phw.phrase_id = phrase.id
        WHERE phw.word_id = word.id
            AND phrase.deleted_at IS NULL
            AND phrase.language_id = (SELECT id FROM language WHERE code = :{param})
        ORDER BY phrase.id DESC
        LIMIT 1
    ) AS {alias} ON true
"""

VERSES_QUERY = text(
    """
    SELECT
        word.verse_id AS id,
        JSON_AGG(
            JSON_BUILD_OBJECT(
                'id', word.id,
                'text', word.text,
                'targetGloss', target_gloss.gloss,
                'refGloss', ref_gloss.gloss
            )
            ORDER BY word.id
        ) AS words
    FROM word
    """
    + _GLOSS_LATERAL.format(param="target", alias="target_gloss")
    + _GLOSS_LATERAL.format(param="ref", alias="ref_gloss")
    + """
    WHERE word.verse_id >= :start AND word.verse_id <= :end
    GROUP BY word.verse_id
    ORDER BY word.verse_id
    """
)

LANGUAGE_NAME_QUERY = text("SELECT name FROM language WHERE code = :code")


def _word_from_json(raw: dict[str, Any]) -> Word:
    return Word(
        id=str(raw["id"]),
        text=raw.get("text") or "",
        target_gloss=raw.get("targetGloss"),
        ref_gloss=raw.get("refGloss"),
    )


def verse_from_row(verse_id: str, words: Any) -> Verse:
    """
    Build a Verse from one aggregated row.

    `words` is the JSON_AGG column; depending on the driver's codec setup it
    arrives either decoded (list of dicts) or as a JSON string.
    """
    if isinstance(words, str):
        words = json.loads(words)
    parsed = sorted((_word_from_json(w) for w in words or []), key=lambda w: w.id)
    return Verse(id=str(verse_id), words=tuple(parsed))


async def fetch_verses(
    engine: AsyncEngine,
    start: str,
    end: str,
    target: str,
    ref: str,
) -> list[Verse]:
    """
    Fetch every verse in the closed range [start, end], in verse order.

    Verse ids are fixed width, so string comparison matches canonical order.
    An inverted range yields no verses and issues no query.
    """
    if start > end:
        return []

    async with engine.connect() as conn:
        result = await conn.execute(
            VERSES_QUERY,
            {"start": start, "end": end, "target": target, "ref": ref},
        )
        rows = result.all()

    return [verse_from_row(row.id, row.words) for row in rows]


async def fetch_language_name(engine: AsyncEngine, code: str) -> str:
    """Return the display name of a language, e.g. "pol" -> "Polish"."""
    async with engine.connect() as conn:
        result = await conn.execute(LANGUAGE_NAME_QUERY, {"code": code})
        name = result.scalar_one_or_none()

    if name is None:
        raise UnknownLanguageError(code)
    return name


def flatten_words(verses: list[Verse]) -> list[Word]:
    """All words of all verses, in verse order then word order."""
    return [word for verse in verses for word in verse.words]
