"""
Unit tests for TranslationOrchestrator.

Most tests drive the orchestrator with FakeTranslationClient so that the
timing of each response is under test control. The end-to-end tests use the
real TranslationClient over a mocked transport.
"""

import asyncio

import httpx
import pytest

from quicktranslate.config import TranslatorConfig
from quicktranslate.core.client import TranslationClient
from quicktranslate.core.coalescer import RequestCoalescer
from quicktranslate.core.events import EventBus, EventType
from quicktranslate.core.exceptions import (
    EmptyInputError,
    InvalidLanguageError,
    NetworkError,
    user_message,
)
from quicktranslate.core.intents import Cancel, SetSource, SetTarget, Speak, SwapLanguages, Translate
from quicktranslate.core.languages import LanguagePair
from quicktranslate.core.models import RequestState
from quicktranslate.core.orchestrator import TranslationOrchestrator
from quicktranslate.core.retry_manager import RetryConfig
from quicktranslate.speech import SpeechError, SpeechProvider

ENDPOINT = "https://translate.example.test/open_translate"


class RecordingSpeaker(SpeechProvider):
    """Speaker that records what it was asked to say."""

    def __init__(self, error=None):
        self.spoken = []
        self.error = error

    @property
    def name(self):
        return "recording"

    async def speak(self, text, language_code):
        if self.error is not None:
            raise self.error
        self.spoken.append((text, language_code))


@pytest.fixture
def bus():
    event_bus = EventBus()
    event_bus.enable_history()
    return event_bus


@pytest.fixture
def orchestrator(catalog, fake_client, bus):
    return TranslationOrchestrator(catalog, fake_client, event_bus=bus)


def shown_results(bus):
    """Every result_text the UI was ever asked to display."""
    return [e.data["state"].result_text for e in bus.get_events_by_type(EventType.STATE_CHANGED)]


class TestTranslate:
    """Tests for single translate calls."""

    @pytest.mark.asyncio
    async def test_success(self, orchestrator, fake_client):
        result = await orchestrator.translate("Hello")

        assert result.text == "<Hello>"
        state = orchestrator.state
        assert state.status == RequestState.SUCCEEDED
        assert state.input_text == "Hello"
        assert state.result_text == "<Hello>"
        assert state.error_kind is None
        assert fake_client.calls[0].pair == LanguagePair("eng_Latn", "asm_Beng")

    @pytest.mark.asyncio
    async def test_pending_while_in_flight(self, orchestrator, fake_client):
        gate = fake_client.gate("Hello")
        task = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        assert orchestrator.state.is_pending
        assert orchestrator.state.result_text == ""

        gate.set()
        await task
        assert orchestrator.state.status == RequestState.SUCCEEDED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_input_rejected_without_request(self, orchestrator, fake_client, bus, text):
        with pytest.raises(EmptyInputError):
            await orchestrator.translate(text)
        assert orchestrator.state.status == RequestState.IDLE
        assert fake_client.calls == []
        assert bus.get_history() == []

    @pytest.mark.asyncio
    async def test_failure_is_shown_as_state(self, orchestrator, fake_client):
        fake_client.failures["Hello"] = NetworkError("unreachable")

        assert await orchestrator.translate("Hello") is None
        state = orchestrator.state
        assert state.status == RequestState.FAILED
        assert state.error_kind == "NetworkError"
        assert state.error_message == user_message("NetworkError")
        assert state.result_text == ""

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_classified(self, orchestrator, fake_client):
        fake_client.failures["Hello"] = KeyError("bug")

        assert await orchestrator.translate("Hello") is None
        assert orchestrator.state.status == RequestState.FAILED
        assert orchestrator.state.error_kind == "UnexpectedError"

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self, orchestrator, fake_client):
        fake_client.failures["A"] = NetworkError("unreachable")
        await orchestrator.translate("A")

        result = await orchestrator.translate("B")
        assert result.text == "<B>"
        assert orchestrator.state.status == RequestState.SUCCEEDED
        assert orchestrator.state.error_kind is None
        assert orchestrator.state.error_message is None


class TestSuperseding:
    """Only the most recent translate call may update displayed state."""

    @pytest.mark.asyncio
    async def test_newer_request_wins(self, orchestrator, fake_client, bus):
        fake_client.gate("A")
        task_a = asyncio.create_task(orchestrator.translate("A"))
        await asyncio.sleep(0)

        result_b = await orchestrator.translate("B")

        assert result_b.text == "<B>"
        assert await task_a is None
        assert orchestrator.state.result_text == "<B>"
        assert len(bus.get_events_by_type(EventType.REQUEST_SUPERSEDED)) == 1

    @pytest.mark.asyncio
    async def test_late_response_of_superseded_request_is_dropped(self, orchestrator, fake_client, bus):
        gate_a = fake_client.gate("A")
        gate_b = fake_client.gate("B")
        task_a = asyncio.create_task(orchestrator.translate("A"))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(orchestrator.translate("B"))
        await asyncio.sleep(0)

        gate_b.set()
        assert (await task_b).text == "<B>"
        gate_a.set()
        assert await task_a is None
        await asyncio.sleep(0)

        assert orchestrator.state.result_text == "<B>"
        assert "<A>" not in shown_results(bus)

    @pytest.mark.asyncio
    async def test_identical_request_joins_in_flight_call(self, orchestrator, fake_client, bus):
        gate = fake_client.gate("Hello")
        first = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)
        second = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        gate.set()
        assert (await first).text == "<Hello>"
        assert (await second).text == "<Hello>"
        assert len(fake_client.calls) == 1
        assert bus.get_events_by_type(EventType.REQUEST_SUPERSEDED) == []
        succeeded = [s for s in shown_results(bus) if s == "<Hello>"]
        assert len(succeeded) == 1
        assert orchestrator.state.status == RequestState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_identical_request_shares_failure(self, orchestrator, fake_client):
        gate = fake_client.gate("Hello")
        fake_client.failures["Hello"] = NetworkError("unreachable")
        first = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)
        second = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        gate.set()
        assert await first is None
        assert await second is None
        assert orchestrator.state.error_kind == "NetworkError"
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_cancelling_one_joined_caller_keeps_the_other(self, orchestrator, fake_client):
        gate = fake_client.gate("Hello")
        first = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)
        second = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        assert orchestrator.state.is_pending

        gate.set()
        assert (await second).text == "<Hello>"
        assert orchestrator.state.status == RequestState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_cancel_stops_every_joined_caller(self, orchestrator, fake_client):
        fake_client.gate("Hello")
        first = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)
        second = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        assert orchestrator.cancel() is True
        assert await first is None
        assert await second is None
        assert orchestrator.state.status == RequestState.CANCELLED


class TestCoalescing:
    """Sessions sharing a coalescer share in-flight calls."""

    @pytest.mark.asyncio
    async def test_same_request_from_two_sessions_is_sent_once(self, catalog, fake_client):
        coalescer = RequestCoalescer()
        first = TranslationOrchestrator(catalog, fake_client, coalescer=coalescer)
        second = TranslationOrchestrator(catalog, fake_client, coalescer=coalescer)
        gate = fake_client.gate("Hello")

        tasks = [
            asyncio.create_task(first.translate("Hello")),
            asyncio.create_task(second.translate("Hello")),
        ]
        await asyncio.sleep(0)
        assert coalescer.in_flight_count == 1

        gate.set()
        results = await asyncio.gather(*tasks)
        assert [r.text for r in results] == ["<Hello>", "<Hello>"]
        assert len(fake_client.calls) == 1
        assert coalescer.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_different_pairs_are_not_coalesced(self, catalog, fake_client):
        coalescer = RequestCoalescer()
        first = TranslationOrchestrator(catalog, fake_client, coalescer=coalescer)
        second = TranslationOrchestrator(catalog, fake_client, coalescer=coalescer,
                                         source="asm_Beng", target="eng_Latn")

        await asyncio.gather(first.translate("Hello"), second.translate("Hello"))
        assert len(fake_client.calls) == 2


class TestCancel:
    """Tests for cancel()."""

    @pytest.mark.asyncio
    async def test_cancel_pending_request(self, orchestrator, fake_client, bus):
        gate = fake_client.gate("Hello")
        task = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        assert orchestrator.cancel() is True
        assert await task is None
        assert orchestrator.state.status == RequestState.CANCELLED

        gate.set()
        await asyncio.sleep(0)
        assert orchestrator.state.status == RequestState.CANCELLED
        assert "<Hello>" not in shown_results(bus)

    def test_cancel_without_pending_request(self, orchestrator):
        assert orchestrator.cancel() is False
        assert orchestrator.state.status == RequestState.IDLE

    @pytest.mark.asyncio
    async def test_cancelling_caller_task_cancels_request(self, orchestrator, fake_client):
        fake_client.gate("Hello")
        task = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert orchestrator.state.status == RequestState.CANCELLED


class TestLanguages:
    """Tests for language selection and swapping."""

    def test_set_source_and_target(self, orchestrator, bus, fake_client):
        orchestrator.set_source("asm_Beng")
        orchestrator.set_target("eng_Latn")

        assert orchestrator.pair == LanguagePair("asm_Beng", "eng_Latn")
        assert orchestrator.state.pair == LanguagePair("asm_Beng", "eng_Latn")
        assert len(bus.get_events_by_type(EventType.LANGUAGES_CHANGED)) == 2
        assert fake_client.calls == []

    def test_invalid_language_leaves_pair_unchanged(self, orchestrator):
        with pytest.raises(InvalidLanguageError):
            orchestrator.set_target("fra_Latn")
        assert orchestrator.pair == LanguagePair("eng_Latn", "asm_Beng")

    @pytest.mark.asyncio
    async def test_swap_mirrors_texts(self, orchestrator, fake_client):
        await orchestrator.translate("Hello")

        orchestrator.swap_languages()

        state = orchestrator.state
        assert state.pair == LanguagePair("asm_Beng", "eng_Latn")
        assert state.input_text == "<Hello>"
        assert state.result_text == "Hello"
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_swap_twice_restores_everything(self, orchestrator):
        await orchestrator.translate("Hello")
        before = orchestrator.state

        orchestrator.swap_languages()
        orchestrator.swap_languages()

        after = orchestrator.state
        assert after.pair == before.pair
        assert after.input_text == before.input_text
        assert after.result_text == before.result_text

    @pytest.mark.asyncio
    async def test_swap_cancels_pending_request(self, orchestrator, fake_client):
        gate = fake_client.gate("Hello")
        task = asyncio.create_task(orchestrator.translate("Hello"))
        await asyncio.sleep(0)

        orchestrator.swap_languages()
        assert await task is None
        gate.set()
        await asyncio.sleep(0)

        assert orchestrator.state.status == RequestState.CANCELLED
        assert orchestrator.state.result_text == "Hello"

    @pytest.mark.asyncio
    async def test_new_pair_used_for_next_request(self, orchestrator, fake_client):
        orchestrator.swap_languages()
        await orchestrator.translate("নমস্কাৰ")
        assert fake_client.calls[0].to_payload()["src_lang"] == "asm_Beng"
        assert fake_client.calls[0].to_payload()["tgt_lang"] == "eng_Latn"


class TestSpeak:
    """Tests for speak()."""

    @pytest.mark.asyncio
    async def test_speaks_result_in_target_language(self, catalog, fake_client):
        speaker = RecordingSpeaker()
        orchestrator = TranslationOrchestrator(catalog, fake_client, speaker=speaker)
        await orchestrator.translate("Hello")

        assert await orchestrator.speak() is True
        assert speaker.spoken == [("<Hello>", "asm_Beng")]

    @pytest.mark.asyncio
    async def test_nothing_to_speak(self, catalog, fake_client):
        speaker = RecordingSpeaker()
        orchestrator = TranslationOrchestrator(catalog, fake_client, speaker=speaker)

        assert await orchestrator.speak() is False
        assert speaker.spoken == []

    @pytest.mark.asyncio
    async def test_speech_failure_is_reported_not_raised(self, catalog, fake_client, bus):
        speaker = RecordingSpeaker(error=SpeechError("no voice", provider="recording"))
        orchestrator = TranslationOrchestrator(catalog, fake_client, speaker=speaker, event_bus=bus)
        await orchestrator.translate("Hello")

        assert await orchestrator.speak() is False
        failures = bus.get_events_by_type(EventType.SPEECH_FAILED)
        assert failures[0].data["language"] == "asm_Beng"
        assert orchestrator.state.status == RequestState.SUCCEEDED

    @pytest.mark.asyncio
    async def test_speech_disabled(self, orchestrator):
        await orchestrator.translate("Hello")
        assert await orchestrator.speak() is False


class TestDispatch:
    """Tests for intent dispatch."""

    @pytest.mark.asyncio
    async def test_intents_route_to_operations(self, catalog, fake_client):
        speaker = RecordingSpeaker()
        orchestrator = TranslationOrchestrator(catalog, fake_client, speaker=speaker)

        assert await orchestrator.dispatch(SetSource("asm_Beng")) == LanguagePair("asm_Beng", "asm_Beng")
        assert await orchestrator.dispatch(SetTarget("eng_Latn")) == LanguagePair("asm_Beng", "eng_Latn")
        assert await orchestrator.dispatch(SwapLanguages()) == LanguagePair("eng_Latn", "asm_Beng")
        assert (await orchestrator.dispatch(Translate("Hi"))).text == "<Hi>"
        assert await orchestrator.dispatch(Speak()) is True
        assert await orchestrator.dispatch(Cancel()) is False

    @pytest.mark.asyncio
    async def test_unknown_intent(self, orchestrator):
        with pytest.raises(TypeError):
            await orchestrator.dispatch("translate")

    @pytest.mark.asyncio
    async def test_close_releases_client(self, orchestrator, fake_client):
        await orchestrator.close()
        assert fake_client.closed


class TestEndToEnd:
    """Orchestrator wired to the real HTTP client over a mocked transport."""

    def build(self, catalog, handler, bus, fake_sleep, make_http_client):
        client = TranslationClient(
            ENDPOINT,
            retry_config=RetryConfig(max_retries=2),
            http_client=make_http_client(handler),
            sleep=fake_sleep,
        )
        return TranslationOrchestrator(catalog, client, event_bus=bus)

    @pytest.mark.asyncio
    async def test_successful_round_trip(self, catalog, bus, fake_sleep, make_http_client):
        def handler(request):
            return httpx.Response(200, json={"output_text": ["নমস্কাৰ"]})

        orchestrator = self.build(catalog, handler, bus, fake_sleep, make_http_client)
        result = await orchestrator.translate("Hello")

        assert result.text == "নমস্কাৰ"
        assert orchestrator.state.status == RequestState.SUCCEEDED
        assert orchestrator.state.result_text == "নমস্কাৰ"

    @pytest.mark.asyncio
    async def test_unreachable_endpoint(self, catalog, bus, fake_sleep, make_http_client):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        orchestrator = self.build(catalog, handler, bus, fake_sleep, make_http_client)
        assert await orchestrator.translate("Hello") is None

        assert len(calls) == 3
        assert orchestrator.state.status == RequestState.FAILED
        assert orchestrator.state.error_kind == "NetworkError"
        retries = bus.get_events_by_type(EventType.REQUEST_RETRY)
        assert [e.data["attempt"] for e in retries] == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_output_is_not_retried(self, catalog, bus, fake_sleep, make_http_client):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"output_text": []})

        orchestrator = self.build(catalog, handler, bus, fake_sleep, make_http_client)
        assert await orchestrator.translate("Hello") is None

        assert len(calls) == 1
        assert orchestrator.state.error_kind == "MalformedResponseError"
        assert orchestrator.state.error_message == "Error: could not translate."


class TestFromConfig:
    """Tests for building an orchestrator from TranslatorConfig."""

    @pytest.mark.asyncio
    async def test_from_config(self):
        config = TranslatorConfig(
            api_endpoint=ENDPOINT,
            timeout=3.0,
            max_retries=1,
            language_catalog="eng_Latn=English,asm_Beng=Assamese,hin_Deva=Hindi",
            source_language="hin_Deva",
            target_language="eng_Latn",
            tts_enabled=False,
        )
        orchestrator = TranslationOrchestrator.from_config(config)

        assert orchestrator.pair == LanguagePair("hin_Deva", "eng_Latn")
        assert orchestrator.catalog.codes == ["eng_Latn", "asm_Beng", "hin_Deva"]
        assert orchestrator.client.api_endpoint == ENDPOINT
        assert orchestrator.client.timeout == 3.0
        assert orchestrator.client.retry_manager.config.max_attempts == 2
        assert orchestrator.speaker is None
        await orchestrator.close()
