"""Supported API versions and dictionary corpora."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

V1 = "v1"
V2 = "v2"

SUPPORTED_VERSIONS: frozenset[str] = frozenset({V1, V2})

# Corpus codes understood by the upstream source, keyed by display name.
SUPPORTED_LANGUAGES: Mapping[str, str] = {
    "hi": "Hindi",
    "en": "English (US)",
    "en-uk": "English (UK)",
    "es": "Spanish",
    "fr": "French",
    "ja": "Japanese",
    "cs": "Czech",
    "nl": "Dutch",
    "sk": "Slovak",
    "ru": "Russian",
    "de": "German",
    "it": "Italian",
    "ko": "Korean",
    "pt-BR": "Brazilian Portuguese",
    "ar": "Arabic",
    "tr": "Turkish",
}

# Locale spellings that browsers send for the default English corpus.
LANGUAGE_ALIASES: Mapping[str, str] = {
    "en_us": "en",
    "en_gb": "en",
}

_CASEFOLDED_LANGUAGES: Dict[str, str] = {code.lower(): code for code in SUPPORTED_LANGUAGES}

# Corpora whose lower-casing maps İ to i and I to ı.
TURKIC_LANGUAGES: frozenset[str] = frozenset({"tr"})
_TURKIC_CAPITALS = str.maketrans({"\u0130": "i", "I": "\u0131"})


def is_version_supported(version: Optional[str]) -> bool:
    return version in SUPPORTED_VERSIONS


def resolve_language(language: Optional[str]) -> Optional[str]:
    """Return the canonical corpus code for ``language`` or ``None``.

    Matching is case-insensitive, so ``pt-br`` resolves to ``pt-BR``.
    """

    if not language:
        return None
    candidate = language.strip().lower()
    candidate = LANGUAGE_ALIASES.get(candidate, candidate)
    return _CASEFOLDED_LANGUAGES.get(candidate)


def is_language_supported(language: Optional[str]) -> bool:
    return resolve_language(language) is not None


def normalize_word(word: Optional[str], language: Optional[str] = None) -> str:
    """Return the cache-identity form of ``word`` (trimmed, lower-cased).

    Turkish corpora fold the dotted and dotless capitals the Turkish way, so
    ``İstanbul`` becomes ``istanbul`` rather than ``i`` plus a combining dot.
    """

    if not word:
        return ""
    word = word.strip()
    if language in TURKIC_LANGUAGES:
        word = word.translate(_TURKIC_CAPITALS)
    return word.lower()


__all__ = [
    "LANGUAGE_ALIASES",
    "SUPPORTED_LANGUAGES",
    "SUPPORTED_VERSIONS",
    "TURKIC_LANGUAGES",
    "V1",
    "V2",
    "is_language_supported",
    "is_version_supported",
    "normalize_word",
    "resolve_language",
]
