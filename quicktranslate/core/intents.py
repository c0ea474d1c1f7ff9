"""
User intents emitted by the UI and consumed by the orchestrator.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class SetSource:
    code: str


@dataclass(frozen=True)
class SetTarget:
    code: str


@dataclass(frozen=True)
class SwapLanguages:
    pass


@dataclass(frozen=True)
class Translate:
    text: str


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Speak:
    pass


Intent = Union[SetSource, SetTarget, SwapLanguages, Translate, Cancel, Speak]
