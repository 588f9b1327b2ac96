"""Normalize the upstream source's irregular entries into the canonical schema.

The upstream payload is undocumented and inconsistent: an entry carries
either ``subentries`` or direct sense data, sense families may appear as a
list or as a single ``sense_family``, and parts of speech are sometimes only
present on the contained senses. The helpers below apply a small set of named
heuristics to produce :class:`~dictionary_api.dictionary.models.CanonicalEntry`
values and report every heuristic that fires to an :class:`AnomalySink`.

Normalization is a pure function of its inputs. It never performs I/O, never
mutates the raw payload and never raises for malformed-but-present data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .anomalies import AnomalyEvent, AnomalyRule, AnomalySink, LoggingAnomalySink
from .models import (
    EXAMPLE_FLAG,
    CanonicalEntry,
    Definition,
    Meaning,
    Phonetic,
    parse_include_flags,
)

# Fields a subentry inherits from its parent when it has none of its own.
INHERITED_SUBENTRY_FIELDS: tuple[str, ...] = ("phonetics", "etymology")


@dataclass(frozen=True, slots=True)
class NormalizeOptions:
    include: frozenset[str] = frozenset()

    @classmethod
    def from_include(cls, include: Optional[str | Iterable[str]]) -> "NormalizeOptions":
        return cls(include=parse_include_flags(include))

    @property
    def include_examples(self) -> bool:
        return EXAMPLE_FLAG in self.include


def _dig(value: Any, *path: str | int, default: Any = None) -> Any:
    """Walk ``path`` through nested mappings and sequences."""

    current = value
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, Sequence) or isinstance(current, (str, bytes)):
                return default
            if key >= len(current) or key < -len(current):
                return default
            current = current[key]
        else:
            if not isinstance(current, Mapping) or key not in current:
                return default
            current = current[key]
        if current is None:
            return default
    return current


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


class _Normalizer:
    """Single-use worker carrying the lookup identity for anomaly reporting."""

    def __init__(
        self,
        word: str,
        language: str,
        options: NormalizeOptions,
        sink: AnomalySink,
        entry_count: int,
    ) -> None:
        self._word = word
        self._language = language
        self._options = options
        self._sink = sink
        self._entry_count = entry_count

    def _report(self, rule: AnomalyRule, **context: Any) -> None:
        self._sink.record(
            AnomalyEvent(
                rule=rule,
                word=self._word,
                language=self._language,
                context={"entry_count": self._entry_count, **context},
            )
        )

    # ------------------------------------------------------------------
    # Entry expansion
    # ------------------------------------------------------------------
    def expand(self, raw_entries: Iterable[Any]) -> List[Mapping[str, Any]]:
        """Unwrap ``entry`` payloads and flatten subentries into entries."""

        expanded: List[Mapping[str, Any]] = []
        for raw in raw_entries:
            entry = raw.get("entry") if isinstance(raw, Mapping) else None
            if not isinstance(entry, Mapping):
                continue
            subentries = entry.get("subentries")
            if isinstance(subentries, (list, tuple)):
                # An empty list still marks a subentry entry; it yields nothing.
                expanded.extend(self._expand_subentries(entry, list(subentries)))
            else:
                expanded.append(entry)
        return expanded

    def _expand_subentries(
        self, entry: Mapping[str, Any], subentries: List[Any]
    ) -> List[Mapping[str, Any]]:
        if len(subentries) > 1:
            self._report(AnomalyRule.MULTIPLE_SUBENTRIES, subentry_count=len(subentries))
        if entry.get("sense_families"):
            self._report(AnomalyRule.SUBENTRIES_WITH_SENSE_FAMILIES)
        if entry.get("etymology"):
            self._report(AnomalyRule.SUBENTRIES_WITH_ETYMOLOGY)

        merged: List[Mapping[str, Any]] = []
        for subentry in subentries:
            if not isinstance(subentry, Mapping):
                continue
            merged.append(self._merge_subentry(entry, subentry))
        return merged

    def _merge_subentry(
        self, entry: Mapping[str, Any], subentry: Mapping[str, Any]
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = dict(subentry)
        if subentry.get("sense_families"):
            self._report(AnomalyRule.SUBENTRY_HAS_SENSE_FAMILIES)
        if subentry.get("sense_family"):
            result["sense_families"] = [subentry["sense_family"]]
        for key in INHERITED_SUBENTRY_FIELDS:
            if result.get(key) is None and key in entry:
                result[key] = entry[key]
        return result

    # ------------------------------------------------------------------
    # Shaping
    # ------------------------------------------------------------------
    def shape(self, entry: Mapping[str, Any]) -> CanonicalEntry:
        phonetics = tuple(
            Phonetic(
                text=_as_text(item.get("text")),
                audio_url=_as_text(item.get("oxford_audio")),
            )
            for item in _as_list(entry.get("phonetics"))
            if isinstance(item, Mapping)
        )
        return CanonicalEntry(
            word=_as_text(entry.get("lemma")) or _as_text(entry.get("headword")),
            phonetic=_as_text(_dig(entry, "phonetics", 0, "text")),
            phonetics=phonetics,
            origin=_as_text(_dig(entry, "etymology", "etymology", "text")),
            meanings=tuple(
                self._shape_meaning(family)
                for family in _as_list(entry.get("sense_families"))
                if isinstance(family, Mapping)
            ),
        )

    def _shape_meaning(self, sense_family: Mapping[str, Any]) -> Meaning:
        senses = [sense for sense in _as_list(sense_family.get("senses")) if isinstance(sense, Mapping)]
        parts_of_speech = self._parts_of_speech(sense_family, senses)
        return Meaning(
            part_of_speech=_as_text(_dig(parts_of_speech, 0, "value")),
            definitions=tuple(self._shape_definition(sense) for sense in senses),
        )

    def _parts_of_speech(
        self, sense_family: Mapping[str, Any], senses: List[Mapping[str, Any]]
    ) -> List[Any]:
        """Return the family's parts of speech, borrowing from its first sense if absent."""

        raw = sense_family.get("parts_of_speech")
        if raw is None:
            # A family without parts of speech is expected to hold a single
            # sense that carries them instead.
            raw = _dig(senses, 0, "parts_of_speech", default=[])
            if len(senses) > 1:
                self._report(AnomalyRule.BORROWED_PART_OF_SPEECH, sense_count=len(senses))
        parts_of_speech = _as_list(raw)
        if len(parts_of_speech) > 1:
            self._report(
                AnomalyRule.MULTIPLE_PARTS_OF_SPEECH,
                parts_of_speech=[_dig(item, "value") for item in parts_of_speech],
            )
        return parts_of_speech

    def _shape_definition(self, sense: Mapping[str, Any]) -> Definition:
        example_groups = _as_list(sense.get("example_groups"))
        thesaurus_entries = _as_list(sense.get("thesaurus_entries"))

        examples: Optional[tuple[str, ...]] = None
        if self._options.include_examples:
            examples = tuple(
                text
                for group in example_groups
                for text in (_as_text(item) for item in _as_list(_dig(group, "examples")))
                if text is not None
            )

        return Definition(
            definition=_as_text(_dig(sense, "definition", "text")) or "",
            example=_as_text(_dig(example_groups, 0, "examples", 0)),
            synonyms=_nyms(_dig(thesaurus_entries, 0, "synonyms", 0, "nyms", default=[])),
            antonyms=_nyms(_dig(thesaurus_entries, 0, "antonyms", 0, "nyms", default=[])),
            examples=examples,
        )


def _nyms(values: Any) -> tuple[str, ...]:
    return tuple(
        text
        for text in (_as_text(_dig(item, "nym")) for item in _as_list(values))
        if text is not None
    )


def normalize(
    word: str,
    language: str,
    raw_entries: Sequence[Any],
    options: Optional[NormalizeOptions] = None,
    *,
    sink: Optional[AnomalySink] = None,
) -> List[CanonicalEntry]:
    """Convert raw upstream results into canonical entries.

    Args:
        word: The looked-up word, used only to label anomaly events.
        language: The corpus code, used only to label anomaly events.
        raw_entries: ``single_results`` items as returned by the source client.
        options: Include flags; ``example`` adds the ``examples`` field.
        sink: Receiver for anomaly events. Defaults to structured logging.

    Returns:
        Canonical entries in source order.
    """

    worker = _Normalizer(
        word,
        language,
        options or NormalizeOptions(),
        sink if sink is not None else LoggingAnomalySink(),
        entry_count=len(raw_entries),
    )
    return [worker.shape(entry) for entry in worker.expand(raw_entries)]


__all__ = ["INHERITED_SUBENTRY_FIELDS", "NormalizeOptions", "normalize"]
