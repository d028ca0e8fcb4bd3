"""
Registry of translation experiments selectable by name.

An experiment is an async callable

    translate(options, context, verses) -> {word_id: translation}

that must return an entry for every word of every verse it is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable

import config

if TYPE_CHECKING:
    from experiments.clients import RunContext
    from store.verses import Verse


@dataclass(frozen=True)
class RunOptions:
    target: str
    start: str
    end: str
    ref: str = config.DEFAULT_REF
    experiments: tuple[str, ...] = ()
    model: str = config.MODEL


ExperimentResult = dict[str, str]
Translate = Callable[[RunOptions, "RunContext", "list[Verse]"], Awaitable[ExperimentResult]]


@dataclass(frozen=True)
class Experiment:
    name: str
    translate: Translate
    # Environment variables that must be set for this experiment to run.
    requires: tuple[str, ...] = field(default_factory=tuple)


EXPERIMENTS: dict[str, Experiment] = {}


def register(name: str, *, requires: Iterable[str] = ()) -> Callable[[Translate], Translate]:
    """Decorator adding a translate function to the registry under `name`."""
    def decorator(func: Translate) -> Translate:
        EXPERIMENTS[name] = Experiment(name=name, translate=func, requires=tuple(requires))
        return func
    return decorator


def select(names: Iterable[str]) -> list[Experiment]:
    """Registered experiments for `names`, in request order; unknown names are skipped."""
    return [EXPERIMENTS[name] for name in names if name in EXPERIMENTS]
