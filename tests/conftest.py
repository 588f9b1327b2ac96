"""Shared fixtures for the dictionary-api test suite."""

from __future__ import annotations

import asyncio
import copy
import os
from typing import Any, Dict, List, Optional

import pytest

# Keep test runs from writing rotating log files beside the package.
os.environ["DICTIONARY_API_LOG_DIR"] = ""

HELLO_AUDIO_URL = "https://ssl.gstatic.com/dictionary/static/sounds/oxford/hello--_gb_1.mp3"

HELLO_RESULTS: List[Dict[str, Any]] = [
    {
        "entry": {
            "headword": "hello",
            "phonetics": [{"text": "həˈlō", "oxford_audio": HELLO_AUDIO_URL}],
            "etymology": {
                "etymology": {"text": "early 19th century: variant of earlier <i>hollo</i>."}
            },
            "sense_families": [
                {
                    "parts_of_speech": [{"value": "exclamation"}],
                    "senses": [
                        {
                            "definition": {
                                "text": "used as a greeting or to begin a phone conversation."
                            },
                            "example_groups": [{"examples": ["hello there, Katie!"]}],
                            "thesaurus_entries": [
                                {
                                    "synonyms": [{"nyms": [{"nym": "hi"}, {"nym": "howdy"}]}],
                                    "antonyms": [{"nyms": [{"nym": "goodbye"}]}],
                                }
                            ],
                        }
                    ],
                },
                {
                    "parts_of_speech": [{"value": "noun"}],
                    "senses": [
                        {
                            "definition": {"text": "an utterance of &ldquo;hello&rdquo;; a greeting."},
                            "example_groups": [
                                {
                                    "examples": [
                                        "she was getting polite nods and hellos from people",
                                        "a chorus of hellos",
                                    ]
                                }
                            ],
                        }
                    ],
                },
            ],
        }
    }
]


def build_hello_results() -> List[Dict[str, Any]]:
    return copy.deepcopy(HELLO_RESULTS)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource:
    """In-memory stand-in for :class:`SourceClient`.

    ``gate`` holds every fetch until it is set; ``started`` is set as soon as
    a fetch begins. Both are created lazily inside the running event loop.
    """

    def __init__(
        self,
        results: Optional[List[Dict[str, Any]]] = None,
        *,
        error: Optional[BaseException] = None,
        gated: bool = False,
    ) -> None:
        self.results = results if results is not None else build_hello_results()
        self.error = error
        self.gated = gated
        self.calls: List[tuple[str, str]] = []
        self.closed = False
        self._gate: Optional[asyncio.Event] = None
        self._started: Optional[asyncio.Event] = None

    @property
    def gate(self) -> asyncio.Event:
        if self._gate is None:
            self._gate = asyncio.Event()
        return self._gate

    @property
    def started(self) -> asyncio.Event:
        if self._started is None:
            self._started = asyncio.Event()
        return self._started

    async def fetch(self, word: str, language: str) -> List[Dict[str, Any]]:
        self.calls.append((word, language))
        self.started.set()
        if self.gated:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.results)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def hello_results() -> List[Dict[str, Any]]:
    return build_hello_results()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_source_cls() -> type[FakeSource]:
    return FakeSource
