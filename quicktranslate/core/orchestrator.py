"""
Translation orchestrator.

Single entry point for a translator session. It owns the language pair and
the displayed state, and runs each translate call through the request
coalescer and the HTTP client.

Request lifecycle: IDLE -> PENDING -> SUCCEEDED | FAILED | CANCELLED.
Only the most recently issued request may update displayed state; a request
superseded by a newer translate call, or cancelled, has its outcome dropped.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from quicktranslate.config import TranslatorConfig
from quicktranslate.speech import SpeechError, SpeechProvider, create_edge_tts_speaker
from .client import TranslationClient
from .coalescer import RequestCoalescer
from .events import Event, EventBus, EventType
from .exceptions import (
    EmptyInputError,
    TranslationError,
    UNEXPECTED_ERROR_KIND,
    user_message,
)
from .intents import Cancel, Intent, SetSource, SetTarget, Speak, SwapLanguages, Translate
from .languages import LanguageCatalog, LanguagePair, LanguageSelector
from .models import (
    CancellationToken,
    RequestState,
    TranslationRequest,
    TranslationResult,
    TranslatorState,
)
from .retry_manager import RetryConfig

logger = logging.getLogger(__name__)


@dataclass
class _ActiveRequest:
    request: TranslationRequest
    token: CancellationToken
    # One coalescer handle per caller awaiting this request
    handles: List[asyncio.Future] = field(default_factory=list)


class TranslationOrchestrator:
    """Coordinates language selection, translation requests and speech"""

    def __init__(self, catalog: LanguageCatalog, client: TranslationClient,
                 coalescer: Optional[RequestCoalescer] = None,
                 speaker: Optional[SpeechProvider] = None,
                 event_bus: Optional[EventBus] = None,
                 source: Optional[str] = None, target: Optional[str] = None):
        """
        Args:
            catalog: Languages the user can pick from
            client: HTTP client for the translation endpoint
            coalescer: In-flight table, may be shared between sessions
            speaker: Speech collaborator, None disables speech
            event_bus: Where state transitions are published
            source: Initial source language code (default: first in catalog)
            target: Initial target language code (default: second in catalog)
        """
        self.selector = LanguageSelector(catalog, source, target)
        self.client = client
        self.coalescer = coalescer or RequestCoalescer()
        self.speaker = speaker
        self.events = event_bus or EventBus()
        self._state = TranslatorState(status=RequestState.IDLE, pair=self.selector.pair)
        self._active: Optional[_ActiveRequest] = None

    @classmethod
    def from_config(cls, config: TranslatorConfig, event_bus: Optional[EventBus] = None,
                    coalescer: Optional[RequestCoalescer] = None) -> 'TranslationOrchestrator':
        """Build an orchestrator with the HTTP client and speaker described by `config`."""
        catalog = LanguageCatalog.from_entries(config.catalog_entries())
        retry_config = RetryConfig(
            max_retries=config.max_retries,
            initial_delay=config.retry_initial_delay,
            max_delay=config.retry_max_delay,
            backoff_factor=config.retry_backoff_factor,
            jitter=config.retry_jitter,
        )
        client = TranslationClient(config.api_endpoint, config.timeout, retry_config)

        speaker = None
        if config.tts_enabled:
            try:
                speaker = create_edge_tts_speaker(config.voices, config.tts_output_dir)
            except SpeechError as e:
                logger.warning(f"Speech disabled: {e}")

        return cls(catalog, client, coalescer=coalescer, speaker=speaker, event_bus=event_bus,
                   source=config.source_language, target=config.target_language)

    # === State ===

    @property
    def state(self) -> TranslatorState:
        return self._state

    @property
    def pair(self) -> LanguagePair:
        return self.selector.pair

    @property
    def catalog(self) -> LanguageCatalog:
        return self.selector.catalog

    def _transition(self, **changes) -> None:
        self._state = self._state.evolve(**changes)
        self.events.publish(Event(
            type=EventType.STATE_CHANGED,
            data={"state": self._state},
            source="orchestrator"
        ))

    def _is_current(self, active: _ActiveRequest) -> bool:
        return self._active is active and not active.token.is_cancelled

    # === Languages ===

    def set_source(self, code: str) -> LanguagePair:
        """Select the source language. Does not retranslate."""
        return self._languages_changed(self.selector.set_source(code))

    def set_target(self, code: str) -> LanguagePair:
        """Select the target language. Does not retranslate."""
        return self._languages_changed(self.selector.set_target(code))

    def swap_languages(self) -> LanguagePair:
        """
        Swap source and target and mirror the displayed texts.

        The previous result becomes the input and the previous input becomes
        the result. Nothing is retranslated.

        Swapping while a request is pending also cancels that request, so the
        state moves to CANCELLED before the pair changes. A late result would
        otherwise overwrite the mirrored text in the wrong language.
        """
        self.cancel()
        input_text, result_text = self._state.input_text, self._state.result_text
        pair = self.selector.swap()
        self._transition(pair=pair, input_text=result_text, result_text=input_text)
        self._publish_languages(pair)
        return pair

    def _languages_changed(self, pair: LanguagePair) -> LanguagePair:
        self._transition(pair=pair)
        self._publish_languages(pair)
        return pair

    def _publish_languages(self, pair: LanguagePair) -> None:
        self.events.publish(Event(
            type=EventType.LANGUAGES_CHANGED,
            data={"source": pair.source, "target": pair.target},
            source="orchestrator"
        ))

    # === Translation ===

    async def translate(self, text: str) -> Optional[TranslationResult]:
        """
        Translate `text` with the current language pair.

        A pending request for different text or a different pair is
        superseded. A pending request with the same fingerprint is joined:
        both callers share one network call and receive the same result,
        which is applied to displayed state once.

        Args:
            text: Text to translate, sent verbatim

        Returns:
            The result if the request completed without being cancelled or
            superseded. None otherwise, or if it failed (see `state`).

        Raises:
            EmptyInputError: Text is empty or whitespace. Raised before any
                request is made; state is left unchanged.
        """
        if not text or not text.strip():
            raise EmptyInputError()

        request = TranslationRequest.create(text, self.selector.pair)
        previous = self._active

        handle = self.coalescer.submit(
            request.fingerprint,
            lambda: self.client.send(request, on_retry=self._on_retry)
        )

        if previous is not None and previous.request.fingerprint == request.fingerprint:
            active = previous
            active.handles.append(handle)
            logger.debug(f"Joined pending request {request.fingerprint[:12]}")
        else:
            active = _ActiveRequest(request=request, token=CancellationToken(), handles=[handle])
            self._active = active
            # Abandon after submitting, so the coalescer entry for the new
            # fingerprint exists before the old one can be released.
            if previous is not None:
                self._abandon(previous, "superseded")
                self.events.publish(Event(
                    type=EventType.REQUEST_SUPERSEDED,
                    data={
                        "fingerprint": previous.request.fingerprint,
                        "superseded_by": request.fingerprint,
                    },
                    source="orchestrator"
                ))
            self._transition(
                status=RequestState.PENDING,
                input_text=text,
                result_text="",
                fingerprint=request.fingerprint,
                error_kind=None,
                error_message=None,
            )

        try:
            result = await handle
        except asyncio.CancelledError:
            if active.token.is_cancelled:
                return None
            # The caller's own task was cancelled. Other callers joined to
            # the same request keep waiting; the last one out cancels it.
            active.handles.remove(handle)
            if not active.handles and self._active is active:
                self.cancel()
            raise
        except TranslationError as error:
            logger.warning(f"Translation failed after {error.attempts} attempt(s): {error}")
            self._apply_failure(active, error.kind)
            return None
        except Exception:
            logger.exception("Unexpected error during translation")
            self._apply_failure(active, UNEXPECTED_ERROR_KIND)
            return None

        if active.token.is_cancelled:
            logger.debug(f"Discarding stale result for {request.fingerprint[:12]}")
            return None

        if self._active is active:
            self._active = None
            self._transition(status=RequestState.SUCCEEDED, result_text=result.text)
        return result

    def _apply_failure(self, active: _ActiveRequest, kind: str) -> None:
        if not self._is_current(active):
            logger.debug(f"Discarding stale failure for {active.request.fingerprint[:12]}")
            return
        self._active = None
        self._transition(
            status=RequestState.FAILED,
            result_text="",
            error_kind=kind,
            error_message=user_message(kind),
        )

    def _abandon(self, active: _ActiveRequest, reason: str) -> None:
        active.token.cancel(reason)
        for handle in active.handles:
            handle.cancel()

    def _on_retry(self, error: TranslationError, attempt: int, delay: float) -> None:
        self.events.publish(Event(
            type=EventType.REQUEST_RETRY,
            data={"error_kind": error.kind, "attempt": attempt, "delay": delay},
            source="orchestrator"
        ))

    def cancel(self) -> bool:
        """
        Cancel the pending request, if any.

        The network call is abandoned best-effort; its eventual outcome is
        discarded.

        Returns:
            True if a pending request was cancelled
        """
        active = self._active
        if active is None:
            return False
        self._abandon(active, "cancelled")
        self._active = None
        self._transition(status=RequestState.CANCELLED)
        return True

    # === Speech ===

    async def speak(self) -> bool:
        """
        Speak the displayed result in the target language.

        Speech failures are logged and reported, never raised.

        Returns:
            True if the speech collaborator accepted the text
        """
        text = self._state.result_text
        if not text:
            return False
        if self.speaker is None:
            logger.info("Speech is disabled")
            return False

        language = self.selector.pair.target
        try:
            await self.speaker.speak(text, language)
        except Exception as e:
            logger.warning(f"Speech failed for {language}: {e}")
            self.events.publish(Event(
                type=EventType.SPEECH_FAILED,
                data={"language": language, "error": str(e)},
                source="orchestrator"
            ))
            return False
        return True

    # === Intents ===

    async def dispatch(self, intent: Intent):
        """Apply a UI intent and return the result of the matching operation."""
        if isinstance(intent, Translate):
            return await self.translate(intent.text)
        if isinstance(intent, SetSource):
            return self.set_source(intent.code)
        if isinstance(intent, SetTarget):
            return self.set_target(intent.code)
        if isinstance(intent, SwapLanguages):
            return self.swap_languages()
        if isinstance(intent, Cancel):
            return self.cancel()
        if isinstance(intent, Speak):
            return await self.speak()
        raise TypeError(f"Unknown intent: {intent!r}")

    async def close(self) -> None:
        """Cancel pending work and release the HTTP client"""
        self.cancel()
        await self.client.close()
