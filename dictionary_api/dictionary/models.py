"""Data models for dictionary lookups.

This module defines the request identity used for caching, the canonical
entry schema produced by the normalizer and the legacy (``v1``) shape
derived from it. All entry models are immutable once produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import NotFoundError
from .languages import is_version_supported, normalize_word, resolve_language

EXAMPLE_FLAG = "example"


def parse_include_flags(raw: Optional[str | Iterable[str]]) -> frozenset[str]:
    """Return the set of include flags from a comma-separated string or iterable."""

    if raw is None:
        return frozenset()
    items = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(item.strip() for item in items if item and item.strip())


@dataclass(frozen=True, slots=True)
class RequestFingerprint:
    """Tuple that uniquely identifies a cacheable lookup."""

    api_version: str
    language: str
    word: str
    include: frozenset[str] = frozenset()

    @property
    def key(self) -> str:
        """Render the fingerprint as a stable string key."""
        flags = ",".join(sorted(self.include))
        return f"{self.api_version}:{self.language}:{self.word}:{flags}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True, slots=True)
class LookupRequest:
    """A validated lookup for one word in one corpus and API version."""

    word: str
    language: str
    api_version: str
    include: frozenset[str] = frozenset()

    @classmethod
    def from_params(
        cls,
        version: Optional[str],
        language: Optional[str],
        word: Optional[str],
        include: Optional[str | Iterable[str]] = None,
    ) -> "LookupRequest":
        """Validate raw boundary values and build a request.

        Raises:
            NotFoundError: when any value is missing, or the version or
                language is unsupported.
        """

        if not word or not language or not version:
            raise NotFoundError(details={"reason": "missing_parameter"})
        if not is_version_supported(version):
            raise NotFoundError(details={"reason": "unsupported_version", "version": version})
        resolved_language = resolve_language(language)
        if resolved_language is None:
            raise NotFoundError(
                details={"reason": "unsupported_language", "language": language}
            )
        normalized = normalize_word(word, resolved_language)
        if not normalized:
            raise NotFoundError(details={"reason": "empty_word"})
        return cls(
            word=normalized,
            language=resolved_language,
            api_version=version,
            include=parse_include_flags(include),
        )

    @property
    def include_examples(self) -> bool:
        return EXAMPLE_FLAG in self.include

    @property
    def fingerprint(self) -> RequestFingerprint:
        return RequestFingerprint(
            api_version=self.api_version,
            language=self.language,
            word=self.word,
            include=self.include,
        )


@dataclass(frozen=True, slots=True)
class Phonetic:
    """A pronunciation string with an optional audio recording."""

    text: Optional[str] = None
    audio_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.text is not None:
            payload["text"] = self.text
        if self.audio_url is not None:
            payload["audio"] = self.audio_url
        return payload


@dataclass(frozen=True, slots=True)
class Definition:
    """One sense of a word."""

    definition: str
    example: Optional[str] = None
    synonyms: Tuple[str, ...] = ()
    antonyms: Tuple[str, ...] = ()
    examples: Optional[Tuple[str, ...]] = None
    """All examples in source order; ``None`` unless the caller asked for them."""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"definition": self.definition}
        if self.example is not None:
            payload["example"] = self.example
        payload["synonyms"] = list(self.synonyms)
        payload["antonyms"] = list(self.antonyms)
        if self.examples is not None:
            payload["examples"] = list(self.examples)
        return payload


@dataclass(frozen=True, slots=True)
class Meaning:
    """Definitions grouped under a single part of speech."""

    part_of_speech: Optional[str]
    definitions: Tuple[Definition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.part_of_speech is not None:
            payload["partOfSpeech"] = self.part_of_speech
        payload["definitions"] = [item.to_dict() for item in self.definitions]
        return payload


def _base_entry_dict(
    word: Optional[str],
    phonetic: Optional[str],
    phonetics: Tuple[Phonetic, ...],
    origin: Optional[str],
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if word is not None:
        payload["word"] = word
    if phonetic is not None:
        payload["phonetic"] = phonetic
    payload["phonetics"] = [item.to_dict() for item in phonetics]
    if origin is not None:
        payload["origin"] = origin
    return payload


@dataclass(frozen=True, slots=True)
class CanonicalEntry:
    """Source-independent representation of one dictionary entry (``v2``)."""

    word: Optional[str]
    phonetic: Optional[str] = None
    phonetics: Tuple[Phonetic, ...] = ()
    origin: Optional[str] = None
    meanings: Tuple[Meaning, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload = _base_entry_dict(self.word, self.phonetic, self.phonetics, self.origin)
        payload["meanings"] = [item.to_dict() for item in self.meanings]
        return payload


@dataclass(frozen=True)
class LegacyEntry:
    """The ``v1`` entry shape, meanings keyed by part of speech."""

    word: Optional[str]
    phonetic: Optional[str] = None
    phonetics: Tuple[Phonetic, ...] = ()
    origin: Optional[str] = None
    meaning: Mapping[str, Tuple[Definition, ...]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload = _base_entry_dict(self.word, self.phonetic, self.phonetics, self.origin)
        payload["meaning"] = {
            key: [item.to_dict() for item in definitions]
            for key, definitions in self.meaning.items()
        }
        return payload


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Serialized response body and whether it came from the cache."""

    body: str
    cache_status: CacheStatus
    fingerprint: RequestFingerprint
    headers: Mapping[str, str] = field(default_factory=dict)
    """Extra response headers, e.g. ``RateLimit-*`` from admission control."""

    @property
    def is_hit(self) -> bool:
        return self.cache_status is CacheStatus.HIT


def entries_to_payload(entries: Iterable[CanonicalEntry | LegacyEntry]) -> List[Dict[str, Any]]:
    """Convert entries into JSON-ready dictionaries."""

    return [entry.to_dict() for entry in entries]


__all__ = [
    "CacheStatus",
    "CanonicalEntry",
    "Definition",
    "EXAMPLE_FLAG",
    "LegacyEntry",
    "LookupRequest",
    "LookupResult",
    "Meaning",
    "Phonetic",
    "RequestFingerprint",
    "entries_to_payload",
    "parse_include_flags",
]
