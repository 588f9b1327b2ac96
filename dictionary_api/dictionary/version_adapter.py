"""Derive the legacy ``v1`` response shape from canonical entries."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .models import CanonicalEntry, Definition, LegacyEntry

# Key used for meanings whose part of speech could not be determined.
UNKNOWN_PART_OF_SPEECH = ""


def to_legacy_entry(entry: CanonicalEntry) -> LegacyEntry:
    """Fold ``entry.meanings`` into a part-of-speech mapping.

    When two meanings share a part of speech the later one replaces the
    earlier one. This mirrors the historical ``v1`` behaviour and is kept
    on purpose; clients that need every group should use ``v2``.
    """

    meaning: Dict[str, Tuple[Definition, ...]] = {}
    for item in entry.meanings:
        key = item.part_of_speech if item.part_of_speech is not None else UNKNOWN_PART_OF_SPEECH
        meaning[key] = item.definitions
    return LegacyEntry(
        word=entry.word,
        phonetic=entry.phonetic,
        phonetics=entry.phonetics,
        origin=entry.origin,
        meaning=meaning,
    )


def to_legacy(entries: Iterable[CanonicalEntry]) -> List[LegacyEntry]:
    return [to_legacy_entry(entry) for entry in entries]


__all__ = ["UNKNOWN_PART_OF_SPEECH", "to_legacy", "to_legacy_entry"]
