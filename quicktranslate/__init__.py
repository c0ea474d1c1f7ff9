"""
QuickTranslate: resilient client for a remote text translation endpoint
"""
from quicktranslate.config import TranslatorConfig
from quicktranslate.core.client import TranslationClient
from quicktranslate.core.orchestrator import TranslationOrchestrator

__version__ = "1.0.0"

__all__ = [
    'TranslatorConfig',
    'TranslationClient',
    'TranslationOrchestrator',
]
