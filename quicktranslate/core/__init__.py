"""
Core translation request pipeline

The client and orchestrator read defaults from quicktranslate.config and are
imported from their modules directly.
"""
from .exceptions import (
    TranslationError,
    InvalidLanguageError,
    EmptyInputError,
    NetworkError,
    TranslationTimeoutError,
    MalformedResponseError,
    RemoteError,
    ConfigurationError,
    user_message,
)
from .languages import Language, LanguageCatalog, LanguagePair, LanguageSelector
from .models import (
    make_fingerprint,
    TranslationRequest,
    TranslationResult,
    RequestState,
    TranslatorState,
    CancellationToken,
)
from .coalescer import RequestCoalescer
from .retry_manager import RetryConfig, RetryManager, RetryStrategy
from .events import Event, EventBus, EventType
