import json

import config
from experiments.prompts import (
    build_system_prompt,
    build_user_prompt,
    decode_translations,
)


def test_system_prompt_names_the_language():
    prompt = build_system_prompt("Polish")

    assert prompt.startswith("You are going to be producing literal translations in Polish")
    assert "{language_name}" not in prompt


def test_user_prompt_lists_each_word(single_verse):
    lines = build_user_prompt(single_verse[0]).splitlines()

    assert lines[0] == "0100100101 בְּרֵאשִׁית - In the beginning"
    # No reference gloss: nothing after the dash.
    assert lines[3] == "0100100104 אֵת - "
    assert len(lines) == 5


class TestDecodeTranslations:
    def test_keys_by_returned_id(self, single_verse):
        verse = single_verse[0]
        # Answer in reverse order; lookup must not depend on position.
        raw = json.dumps({
            "translations": [
                {"id": word.id, "translation": f"t{word.id[-1]}"}
                for word in reversed(verse.words)
            ]
        })

        result = decode_translations(raw, verse)

        assert list(result) == [word.id for word in verse.words]
        assert result["0100100101"] == "t1"
        assert result["0100100105"] == "t5"

    def test_invalid_json_marks_every_word(self, single_verse, capsys):
        result = decode_translations("not json at all", single_verse[0])

        assert len(result) == 5
        assert set(result.values()) == {config.DECODE_FAILURE}
        assert "[WARN] Verse 01001001" in capsys.readouterr().err

    def test_empty_content_marks_every_word(self, single_verse):
        result = decode_translations(None, single_verse[0])

        assert list(result.values()) == [config.DECODE_FAILURE] * 5

    def test_wrong_shape_marks_every_word(self, single_verse):
        for raw in ("[]", '{"words": []}', '{"translations": ["a", "b"]}'):
            result = decode_translations(raw, single_verse[0])
            assert list(result.values()) == [config.DECODE_FAILURE] * 5

    def test_missing_ids_get_sentinel_and_extras_are_dropped(self, single_verse, capsys):
        raw = json.dumps({
            "translations": [
                {"id": "0100100101", "translation": "Na początku"},
                {"id": "0100100103", "translation": "Bóg"},
                {"id": "9999999999", "translation": "?"},
            ]
        })

        result = decode_translations(raw, single_verse[0])

        assert result == {
            "0100100101": "Na początku",
            "0100100102": config.DECODE_FAILURE,
            "0100100103": "Bóg",
            "0100100104": config.DECODE_FAILURE,
            "0100100105": config.DECODE_FAILURE,
        }
        assert "skipped 3 words" in capsys.readouterr().err

    def test_null_translation_gets_sentinel(self, single_verse):
        verse = single_verse[0]
        items = [{"id": word.id, "translation": "x"} for word in verse.words]
        items[1]["translation"] = None
        items[2]["translation"] = 7

        result = decode_translations(json.dumps({"translations": items}), verse)

        assert result["0100100101"] == "x"
        assert result["0100100102"] == config.DECODE_FAILURE
        assert result["0100100103"] == config.DECODE_FAILURE
        assert "None" not in result.values()

    def test_strips_markdown_fences(self, single_verse):
        verse = single_verse[0]
        body = json.dumps({
            "translations": [{"id": word.id, "translation": "x"} for word in verse.words]
        })

        result = decode_translations(f"```json\n{body}\n```", verse)

        assert set(result.values()) == {"x"}
