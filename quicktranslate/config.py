"""
Centralized configuration class
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from dotenv import load_dotenv

from quicktranslate.core.exceptions import ConfigurationError

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

# .env is looked up in the current working directory
_env_file = Path.cwd() / '.env'
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"Loaded .env from {_env_file.absolute()}: {_dotenv_result}")

# Translation endpoint
API_ENDPOINT = os.getenv('API_ENDPOINT', 'https://clst.iitg.ac.in/apiv3/translate/open_translate')
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '10'))

# Retry policy for transient failures (network errors and timeouts)
MAX_RETRIES = int(os.getenv('MAX_RETRIES', '2'))
RETRY_INITIAL_DELAY = float(os.getenv('RETRY_INITIAL_DELAY', '0.5'))
RETRY_BACKOFF_FACTOR = float(os.getenv('RETRY_BACKOFF_FACTOR', '2.0'))
RETRY_MAX_DELAY = float(os.getenv('RETRY_MAX_DELAY', '8.0'))
RETRY_JITTER = float(os.getenv('RETRY_JITTER', '0.1'))

# Language catalog: comma separated "code=Display Name" entries
LANGUAGE_CATALOG = os.getenv('LANGUAGE_CATALOG', 'eng_Latn=English,asm_Beng=Assamese')
DEFAULT_SOURCE_LANGUAGE = os.getenv('DEFAULT_SOURCE_LANGUAGE', 'eng_Latn')
DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'asm_Beng')

# Speech output
TTS_ENABLED = os.getenv('TTS_ENABLED', 'true').lower() == 'true'
# Comma separated "code=VoiceName" entries, merged over DEFAULT_VOICES
TTS_VOICES = os.getenv('TTS_VOICES', '')
TTS_OUTPUT_DIR = os.getenv('TTS_OUTPUT_DIR', 'speech_output')

DEFAULT_VOICES: Dict[str, str] = {
    "eng_Latn": "en-US-AriaNeural",
    "asm_Beng": "as-IN-YashicaNeural",
    "ben_Beng": "bn-IN-TanishaaNeural",
    "hin_Deva": "hi-IN-SwaraNeural",
}

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   API_ENDPOINT: {API_ENDPOINT}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   MAX_RETRIES: {MAX_RETRIES}")
    _config_logger.debug(f"   LANGUAGE_CATALOG: {LANGUAGE_CATALOG}")
    _config_logger.debug(f"   DEFAULT_SOURCE_LANGUAGE: {DEFAULT_SOURCE_LANGUAGE}")
    _config_logger.debug(f"   DEFAULT_TARGET_LANGUAGE: {DEFAULT_TARGET_LANGUAGE}")
    _config_logger.debug(f"   TTS_ENABLED: {TTS_ENABLED}")
    _config_logger.debug("=" * 60)


def parse_mapping(raw: str, setting: str = "mapping") -> List[Tuple[str, str]]:
    """
    Parse a "key=value,key=value" setting into ordered pairs.

    Args:
        raw: Raw setting string
        setting: Setting name, used in error messages

    Returns:
        List of (key, value) tuples in declaration order

    Raises:
        ConfigurationError: If an entry has no '=' or an empty key
    """
    pairs = []
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ConfigurationError(
                f"Invalid {setting} entry '{entry}', expected key=value",
                {'setting': setting}
            )
        key, value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigurationError(f"Empty key in {setting} entry '{entry}'", {'setting': setting})
        pairs.append((key, value.strip() or key))
    return pairs


def _voices_from_env(raw: str) -> Dict[str, str]:
    voices = dict(DEFAULT_VOICES)
    voices.update(dict(parse_mapping(raw, "TTS_VOICES")))
    return voices


@dataclass
class TranslatorConfig:
    """Configuration shared by the CLI and library callers"""

    # Endpoint
    api_endpoint: str = API_ENDPOINT
    timeout: float = REQUEST_TIMEOUT

    # Retry policy
    max_retries: int = MAX_RETRIES
    retry_initial_delay: float = RETRY_INITIAL_DELAY
    retry_backoff_factor: float = RETRY_BACKOFF_FACTOR
    retry_max_delay: float = RETRY_MAX_DELAY
    retry_jitter: float = RETRY_JITTER

    # Languages
    language_catalog: str = LANGUAGE_CATALOG
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE

    # Speech
    tts_enabled: bool = TTS_ENABLED
    tts_output_dir: str = TTS_OUTPUT_DIR
    voices: Dict[str, str] = field(default_factory=lambda: _voices_from_env(TTS_VOICES))

    # Interface-specific
    enable_colors: bool = True

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", {'timeout': self.timeout})
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative", {'max_retries': self.max_retries})

    @classmethod
    def from_cli_args(cls, args) -> 'TranslatorConfig':
        """Create config from CLI arguments"""
        return cls(
            api_endpoint=getattr(args, 'api_endpoint', API_ENDPOINT),
            timeout=getattr(args, 'timeout', REQUEST_TIMEOUT),
            max_retries=getattr(args, 'max_retries', MAX_RETRIES),
            source_language=getattr(args, 'source_lang', DEFAULT_SOURCE_LANGUAGE),
            target_language=getattr(args, 'target_lang', DEFAULT_TARGET_LANGUAGE),
            tts_enabled=TTS_ENABLED and not getattr(args, 'no_speech', False),
            enable_colors=not getattr(args, 'no_color', False),
        )

    def catalog_entries(self) -> List[Tuple[str, str]]:
        """Return the configured catalog as (code, display_name) pairs."""
        entries = parse_mapping(self.language_catalog, "LANGUAGE_CATALOG")
        if not entries:
            raise ConfigurationError("LANGUAGE_CATALOG is empty")
        return entries

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'api_endpoint': self.api_endpoint,
            'timeout': self.timeout,
            'max_retries': self.max_retries,
            'retry_initial_delay': self.retry_initial_delay,
            'retry_backoff_factor': self.retry_backoff_factor,
            'retry_max_delay': self.retry_max_delay,
            'retry_jitter': self.retry_jitter,
            'language_catalog': self.language_catalog,
            'source_language': self.source_language,
            'target_language': self.target_language,
            'tts_enabled': self.tts_enabled,
            'tts_output_dir': self.tts_output_dir,
            'voices': dict(self.voices),
        }
