"""
google-translate: machine translation of the reference-language glosses.

All reference glosses of the run go out in one Cloud Translation v3 batch,
from the reference locale to the target locale. Words without a reference
gloss are left out of the request and get an empty translation.
"""

from __future__ import annotations

from experiments.clients import GOOGLE_TRANSLATE_CREDENTIALS, RunContext, call_api
from experiments.errors import ExperimentError, UnsupportedLocaleError
from experiments.registry import ExperimentResult, RunOptions, register
from store.verses import Verse, flatten_words

# ISO 639-3 codes used by the gloss store → Google Translate language codes.
LOCALES: dict[str, str] = {
    "afr": "af",
    "amh": "am",
    "arb": "ar",
    "ben": "bn",
    "ces": "cs",
    "cmn": "zh-CN",
    "dan": "da",
    "deu": "de",
    "ell": "el",
    "eng": "en",
    "fin": "fi",
    "fra": "fr",
    "hat": "ht",
    "hau": "ha",
    "heb": "iw",
    "hin": "hi",
    "hun": "hu",
    "ind": "id",
    "ita": "it",
    "jpn": "ja",
    "kor": "ko",
    "mya": "my",
    "nld": "nl",
    "nor": "no",
    "pes": "fa",
    "pol": "pl",
    "por": "pt",
    "ron": "ro",
    "rus": "ru",
    "spa": "es",
    "swe": "sv",
    "swh": "sw",
    "tgl": "tl",
    "tha": "th",
    "tur": "tr",
    "ukr": "uk",
    "urd": "ur",
    "vie": "vi",
    "yor": "yo",
    "zul": "zu",
}


def google_locale(code: str) -> str:
    try:
        return LOCALES[code]
    except KeyError:
        raise UnsupportedLocaleError(code) from None


@register("google-translate", requires=(GOOGLE_TRANSLATE_CREDENTIALS,))
async def google_translate(
    options: RunOptions,
    context: RunContext,
    verses: list[Verse],
) -> ExperimentResult:
    source = google_locale(options.ref)
    target = google_locale(options.target)

    words = flatten_words(verses)
    results: ExperimentResult = {word.id: "" for word in words}
    glossed = [word for word in words if word.ref_gloss]
    if not glossed:
        return results

    response = await call_api(
        context.translate.translate_text,
        request={
            "parent": f"projects/{context.google_project}",
            "contents": [word.ref_gloss for word in glossed],
            "mime_type": "text/plain",
            "source_language_code": source,
            "target_language_code": target,
        },
    )

    if len(response.translations) != len(glossed):
        raise ExperimentError(
            f"Translation count mismatch: sent {len(glossed)}, "
            f"received {len(response.translations)}"
        )

    # Translations come back in request order.
    for word, translation in zip(glossed, response.translations):
        results[word.id] = translation.translated_text
    return results
