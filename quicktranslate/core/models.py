"""
Data structures shared by the request pipeline.
"""

import hashlib
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from .languages import LanguagePair


def make_fingerprint(text: str, source: str, target: str) -> str:
    """
    Deterministic key identifying a logically identical request.

    The three fields are JSON-encoded as an array before hashing, so a
    separator inside the text cannot make two different requests collide.
    Text is used verbatim: requests differing only in case or whitespace
    are different requests.
    """
    payload = json.dumps([text, source, target], ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class TranslationRequest:
    """One translate call: the text and the pair it was issued with"""
    text: str
    pair: LanguagePair
    fingerprint: str

    @classmethod
    def create(cls, text: str, pair: LanguagePair) -> 'TranslationRequest':
        return cls(text=text, pair=pair, fingerprint=make_fingerprint(text, pair.source, pair.target))

    def to_payload(self) -> dict:
        """JSON body expected by the translation endpoint"""
        return {
            "src_lang": self.pair.source,
            "tgt_lang": self.pair.target,
            "input_text": self.text,
        }


@dataclass(frozen=True)
class TranslationResult:
    """Successful translation"""
    text: str
    fingerprint: str
    attempts: int = 1  # Network attempts it took, retries included


class RequestState(Enum):
    """Lifecycle of the current request"""
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TranslatorState:
    """Everything the UI displays, as one immutable snapshot"""
    status: RequestState
    pair: LanguagePair
    input_text: str = ""
    result_text: str = ""
    fingerprint: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def evolve(self, **changes) -> 'TranslatorState':
        return replace(self, **changes)

    @property
    def is_pending(self) -> bool:
        return self.status == RequestState.PENDING


@dataclass
class CancellationToken:
    """Cooperative cancellation flag threaded through one request.

    Checked before a settled result is applied to displayed state.
    """
    reason: Optional[str] = None
    _cancelled: bool = field(default=False, repr=False)

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled
