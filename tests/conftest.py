"""Shared fixtures: a fake gloss store and mocked API clients."""

import json
import re
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from experiments.clients import RunContext
from store.verses import Verse, Word

GENESIS_1_1 = [
    {"id": "0100100101", "text": "בְּרֵאשִׁית", "targetGloss": "Na początku", "refGloss": "In the beginning"},
    {"id": "0100100102", "text": "בָּרָא", "targetGloss": "stworzył", "refGloss": "created"},
    {"id": "0100100103", "text": "אֱלֹהִים", "targetGloss": "Bóg", "refGloss": "God"},
    {"id": "0100100104", "text": "אֵת", "targetGloss": None, "refGloss": None},
    {"id": "0100100105", "text": "הַשָּׁמַיִם", "targetGloss": "niebo", "refGloss": "the heavens"},
]

GENESIS_1_2 = [
    {"id": "0100100201", "text": "וְהָאָרֶץ", "targetGloss": None, "refGloss": "and the earth"},
    {"id": "0100100202", "text": "הָיְתָה", "targetGloss": None, "refGloss": "was"},
]

LANGUAGES = {"eng": "English", "spa": "Spanish", "pol": "Polish"}


class FakeResult:
    def __init__(self, rows=(), scalar=None):
        self._rows = list(rows)
        self._scalar = scalar

    def all(self):
        return self._rows

    def scalar_one_or_none(self):
        return self._scalar


class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    async def execute(self, statement, params=None):
        self.engine.calls.append((str(statement), params))
        if "JSON_AGG" in str(statement):
            rows = [
                row for row in self.engine.verse_rows
                if params["start"] <= row.id <= params["end"]
            ]
            return FakeResult(rows=rows)
        return FakeResult(scalar=self.engine.languages.get(params["code"]))


class FakeEngine:
    """Stands in for an AsyncEngine; records every executed statement."""

    def __init__(self, verse_rows=(), languages=None):
        self.verse_rows = list(verse_rows)
        self.languages = dict(LANGUAGES if languages is None else languages)
        self.calls = []

    @asynccontextmanager
    async def connect(self):
        yield FakeConnection(self)


def verse_row(verse_id, words):
    return SimpleNamespace(id=verse_id, words=words)


def make_verse(verse_id, words):
    return Verse(
        id=verse_id,
        words=tuple(
            Word(id=w["id"], text=w["text"], target_gloss=w["targetGloss"], ref_gloss=w["refGloss"])
            for w in words
        ),
    )


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def echo_translations(user_prompt, prefix="pl"):
    """A well-formed model answer translating every listed word id."""
    ids = re.findall(r"^(\S+) ", user_prompt, flags=re.MULTILINE)
    return json.dumps(
        {"translations": [{"id": word_id, "translation": f"{prefix}-{word_id}"} for word_id in ids]}
    )


async def _fake_chat_create(**kwargs):
    user_prompt = kwargs["messages"][1]["content"][0]["text"]
    return chat_response(echo_translations(user_prompt))


async def _fake_translate_text(request):
    return SimpleNamespace(
        translations=[SimpleNamespace(translated_text=f"es:{text}") for text in request["contents"]]
    )


@pytest.fixture
def engine():
    return FakeEngine(
        verse_rows=[
            verse_row("01001001", GENESIS_1_1),
            verse_row("01001002", GENESIS_1_2),
        ]
    )


@pytest.fixture
def verses():
    return [make_verse("01001001", GENESIS_1_1), make_verse("01001002", GENESIS_1_2)]


@pytest.fixture
def single_verse():
    return [make_verse("01001001", GENESIS_1_1)]


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=_fake_chat_create)
    return client


@pytest.fixture
def translate_client():
    client = MagicMock()
    client.translate_text = AsyncMock(side_effect=_fake_translate_text)
    return client


@pytest.fixture
def gemini_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def context(engine, openai_client, translate_client, gemini_client):
    return RunContext(
        engine=engine,
        openai=openai_client,
        translate=translate_client,
        google_project="test-project",
        gemini=gemini_client,
    )
