"""Fatal error types raised while preparing or running experiments."""

from __future__ import annotations


class ExperimentError(Exception):
    """Base class for errors that abort an experiment run."""


class UnknownLanguageError(ExperimentError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Language code {code!r} is not in the language table.")
        self.code = code


class UnsupportedLocaleError(ExperimentError):
    def __init__(self, code: str) -> None:
        super().__init__(
            f"No Google Translate locale is mapped for language code {code!r}. "
            "Add it to LOCALES in experiments/google_translate.py."
        )
        self.code = code


class AlignmentError(ExperimentError):
    """An experiment result has no value for a fetched word."""

    def __init__(self, experiment: str, word_id: str) -> None:
        super().__init__(
            f"Experiment {experiment!r} returned no translation for word {word_id}."
        )
        self.experiment = experiment
        self.word_id = word_id
