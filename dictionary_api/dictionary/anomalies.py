"""Structured events for upstream data that breaks shape assumptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from dictionary_api import logging_manager as log_mgr
from dictionary_api import observability


class AnomalyRule(str, Enum):
    """Named normalization rules that can fire on irregular source data."""

    MULTIPLE_SUBENTRIES = "multiple_subentries"
    SUBENTRIES_WITH_SENSE_FAMILIES = "subentries_with_sense_families"
    SUBENTRIES_WITH_ETYMOLOGY = "subentries_with_etymology"
    SUBENTRY_HAS_SENSE_FAMILIES = "subentry_has_sense_families"
    BORROWED_PART_OF_SPEECH = "borrowed_part_of_speech_from_multiple_senses"
    MULTIPLE_PARTS_OF_SPEECH = "multiple_parts_of_speech"


ANOMALY_MESSAGES: Mapping[AnomalyRule, str] = {
    AnomalyRule.MULTIPLE_SUBENTRIES: "subentries length is greater than 1",
    AnomalyRule.SUBENTRIES_WITH_SENSE_FAMILIES: "entry has subentries and sense families",
    AnomalyRule.SUBENTRIES_WITH_ETYMOLOGY: "entry has subentries and etymology",
    AnomalyRule.SUBENTRY_HAS_SENSE_FAMILIES: "subentry has sense families",
    AnomalyRule.BORROWED_PART_OF_SPEECH: (
        "part of speech missing but more than one sense present"
    ),
    AnomalyRule.MULTIPLE_PARTS_OF_SPEECH: "more than one part of speech present",
}


@dataclass(frozen=True, slots=True)
class AnomalyEvent:
    rule: AnomalyRule
    word: str
    language: str
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return ANOMALY_MESSAGES[self.rule]


class AnomalySink(Protocol):
    """Receiver for anomaly events emitted during normalization."""

    def record(self, event: AnomalyEvent) -> None:
        ...


class LoggingAnomalySink:
    """Emit anomaly events as structured log records and metric increments."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or log_mgr.get_logger().getChild("dictionary.anomalies")

    def record(self, event: AnomalyEvent) -> None:
        self._logger.info(
            event.message,
            extra={
                "event": "dictionary.normalizer.anomaly",
                "attributes": {
                    "rule": event.rule.value,
                    "word": event.word,
                    "language": event.language,
                    **dict(event.context),
                },
            },
        )
        observability.record_anomaly(event.rule.value)


class CollectingAnomalySink:
    """Keep anomaly events in memory; handy for diagnostics and tests."""

    def __init__(self) -> None:
        self.events: List[AnomalyEvent] = []

    def record(self, event: AnomalyEvent) -> None:
        self.events.append(event)

    def rules(self) -> List[AnomalyRule]:
        return [event.rule for event in self.events]

    def counts(self) -> Dict[AnomalyRule, int]:
        counts: Dict[AnomalyRule, int] = {}
        for event in self.events:
            counts[event.rule] = counts.get(event.rule, 0) + 1
        return counts


__all__ = [
    "ANOMALY_MESSAGES",
    "AnomalyEvent",
    "AnomalyRule",
    "AnomalySink",
    "CollectingAnomalySink",
    "LoggingAnomalySink",
]
