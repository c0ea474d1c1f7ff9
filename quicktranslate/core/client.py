"""
HTTP client for the translation endpoint.

This module owns the network boundary: it posts a request, enforces the
deadline, retries transient failures and turns every failure into one of the
classified TranslationError subclasses.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from quicktranslate.config import API_ENDPOINT, REQUEST_TIMEOUT
from .exceptions import (
    EmptyInputError,
    MalformedResponseError,
    NetworkError,
    RemoteError,
    TranslationError,
    TranslationTimeoutError,
)
from .models import TranslationRequest, TranslationResult
from .retry_manager import RetryConfig, RetryManager

logger = logging.getLogger(__name__)


def extract_translation(data: Any, raw_body: str = "") -> str:
    """
    Pull the translation out of a decoded response body.

    The endpoint answers {"output_text": ["..."]}; the first element is the
    translation.

    Raises:
        MalformedResponseError: If output_text is missing, empty, or its
            first element is not a string
    """
    output = data.get("output_text") if isinstance(data, dict) else None
    if not isinstance(output, list) or not output:
        raise MalformedResponseError("Response has no output_text", body_preview=raw_body)
    first = output[0]
    if not isinstance(first, str):
        raise MalformedResponseError(
            f"output_text[0] is {type(first).__name__}, expected a string",
            body_preview=raw_body
        )
    return first


class TranslationClient:
    """Sends translation requests to a remote endpoint over HTTP POST"""

    def __init__(self, api_endpoint: str = API_ENDPOINT, timeout: float = REQUEST_TIMEOUT,
                 retry_config: Optional[RetryConfig] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 on_attempt: Optional[Callable[[TranslationRequest, int], None]] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        """
        Args:
            api_endpoint: URL receiving the POST
            timeout: Deadline for one attempt, in seconds
            retry_config: Backoff policy for network errors and timeouts
            http_client: Pre-built client (not closed by close())
            on_attempt: Called with (request, attempt number) before each POST
            sleep: Coroutine used for backoff waits
        """
        self.api_endpoint = api_endpoint
        self.timeout = timeout
        self.on_attempt = on_attempt
        self.retry_manager = RetryManager(retry_config, sleep=sleep)
        self.attempt_count = 0
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"}
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> 'TranslationClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def send(self, request: TranslationRequest,
                   on_retry: Optional[Callable[[TranslationError, int, float], None]] = None
                   ) -> TranslationResult:
        """
        Translate one request, retrying transient failures.

        Args:
            request: Text and language pair to translate
            on_retry: Callback called before each retry (error, attempt, delay)

        Returns:
            TranslationResult with the first output_text element

        Raises:
            EmptyInputError: Text is empty or whitespace; nothing is sent
            NetworkError: Transport failure on every attempt
            TranslationTimeoutError: Deadline exceeded on every attempt
            MalformedResponseError: Unusable response body (not retried)
            RemoteError: Non-success HTTP status (not retried)
        """
        if not request.text or not request.text.strip():
            raise EmptyInputError()

        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return await self._send_once(request, attempts)

        text = await self.retry_manager.execute_with_retry(
            attempt,
            operation_id=f"translate[{request.fingerprint[:12]}]",
            on_retry=on_retry
        )
        return TranslationResult(text=text, fingerprint=request.fingerprint, attempts=attempts)

    async def _send_once(self, request: TranslationRequest, attempt: int) -> str:
        self.attempt_count += 1
        if self.on_attempt:
            self.on_attempt(request, attempt)

        client = await self._get_client()
        context = {'endpoint': self.api_endpoint, 'attempt': attempt}
        logger.debug(f"POST {self.api_endpoint} ({request.pair}, {len(request.text)} chars, attempt {attempt})")
        start_time = time.monotonic()

        try:
            # wait_for bounds the whole exchange and cancels the call on expiry
            response = await asyncio.wait_for(
                client.post(self.api_endpoint, json=request.to_payload()),
                timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TranslationTimeoutError(
                f"No response within {self.timeout}s", timeout=self.timeout, context=context
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Could not reach translation endpoint: {e}", context) from e
        except httpx.DecodingError as e:
            raise MalformedResponseError(f"Response body could not be decoded: {e}", context=context) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request to translation endpoint failed: {e}", context) from e

        execution_time = time.monotonic() - start_time
        logger.debug(f"HTTP {response.status_code} in {execution_time:.2f}s")

        if not response.is_success:
            raise RemoteError(
                f"Endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                body_preview=response.text,
                context=context
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Response is not valid JSON: {e}", body_preview=response.text, context=context
            ) from e

        return extract_translation(data, response.text)
