"""
Language catalog and language pair state.

The catalog is injected configuration: a list of (code, display name)
entries. A LanguagePair is an immutable value; the LanguageSelector owns the
current pair and replaces it as a whole on every change.
"""

import threading
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional, Tuple

from .exceptions import ConfigurationError, InvalidLanguageError


@dataclass(frozen=True)
class Language:
    """A selectable language"""
    code: str  # Opaque identifier sent to the endpoint (e.g. "eng_Latn")
    display_name: str  # Label shown to the user (e.g. "English")


class LanguageCatalog:
    """Ordered, read-only collection of supported languages"""

    def __init__(self, languages: Iterable[Language]):
        self._languages: List[Language] = []
        self._by_code = {}
        for language in languages:
            if language.code in self._by_code:
                raise ConfigurationError(f"Duplicate language code '{language.code}' in catalog")
            self._languages.append(language)
            self._by_code[language.code] = language
        if not self._languages:
            raise ConfigurationError("Language catalog cannot be empty")

    @classmethod
    def from_entries(cls, entries: Iterable[Tuple[str, str]]) -> 'LanguageCatalog':
        """Build a catalog from (code, display_name) pairs."""
        return cls(Language(code=code, display_name=name) for code, name in entries)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self) -> Iterator[Language]:
        return iter(self._languages)

    def __len__(self) -> int:
        return len(self._languages)

    @property
    def codes(self) -> List[str]:
        return [language.code for language in self._languages]

    def get(self, code: str) -> Language:
        """
        Look up a language by code.

        Raises:
            InvalidLanguageError: If the code is not in the catalog
        """
        try:
            return self._by_code[code]
        except KeyError:
            raise InvalidLanguageError(code, self.codes) from None

    def validate(self, code: str) -> str:
        """Return `code` unchanged if it is in the catalog."""
        self.get(code)
        return code

    def display_name(self, code: str) -> str:
        return self.get(code).display_name


@dataclass(frozen=True)
class LanguagePair:
    """Source and target language codes.

    source == target is allowed; the endpoint receives it as a degenerate
    but legal request.
    """
    source: str
    target: str

    def swapped(self) -> 'LanguagePair':
        return LanguagePair(source=self.target, target=self.source)

    def with_source(self, code: str) -> 'LanguagePair':
        return replace(self, source=code)

    def with_target(self, code: str) -> 'LanguagePair':
        return replace(self, target=code)

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"


class LanguageSelector:
    """Owns the current LanguagePair for one translator session.

    Every operation validates first, then replaces the whole pair, so
    observers never see a half-updated pair.
    """

    def __init__(self, catalog: LanguageCatalog, source: Optional[str] = None,
                 target: Optional[str] = None):
        self.catalog = catalog
        codes = catalog.codes
        source = source if source is not None else codes[0]
        target = target if target is not None else codes[min(1, len(codes) - 1)]
        for code in (source, target):
            if code not in catalog:
                raise ConfigurationError(
                    f"Default language '{code}' is not in the catalog",
                    {'available': ", ".join(codes)}
                )
        self._pair = LanguagePair(source=source, target=target)
        self._lock = threading.Lock()

    @property
    def pair(self) -> LanguagePair:
        return self._pair

    def set_source(self, code: str) -> LanguagePair:
        """Select a new source language. Does not trigger a translation."""
        self.catalog.validate(code)
        with self._lock:
            self._pair = self._pair.with_source(code)
            return self._pair

    def set_target(self, code: str) -> LanguagePair:
        """Select a new target language. Does not trigger a translation."""
        self.catalog.validate(code)
        with self._lock:
            self._pair = self._pair.with_target(code)
            return self._pair

    def swap(self) -> LanguagePair:
        """Exchange source and target. Always succeeds."""
        with self._lock:
            self._pair = self._pair.swapped()
            return self._pair
