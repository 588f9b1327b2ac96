"""Closed exception hierarchy shared by every stage of the lookup pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

DEFAULT_RESOLUTION = (
    "You can try the search again at later time or head to the web instead."
)


class ErrorKind(str, Enum):
    """Stable, machine-readable failure identifiers."""

    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL_ERROR = "internal_error"


STATUS_CODES: Mapping[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_ERROR: 500,
    ErrorKind.INTERNAL_ERROR: 500,
}


class DictionaryError(Exception):
    """Base class for failures that may leave the lookup pipeline.

    Subclasses pin ``kind``, ``title`` and the default ``message``; callers
    may override the message and resolution and attach private ``details``
    that are logged but never rendered to clients. ``headers`` holds extra
    response headers for the transport boundary.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    title: str = "Something Went Wrong"
    default_message: str = "Sorry pal, something went wrong, and it's not your fault."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        resolution: Optional[str] = DEFAULT_RESOLUTION,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.resolution = resolution
        self.details: Dict[str, Any] = dict(details or {})
        self.headers: Dict[str, str] = {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_payload(self) -> Dict[str, Optional[str]]:
        """Return the public error body."""
        return {
            "title": self.title,
            "message": self.message,
            "resolution": self.resolution,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class NotFoundError(DictionaryError):
    """No definitions exist, or the version/language is unsupported."""

    kind = ErrorKind.NOT_FOUND
    title = "No Definitions Found"
    default_message = (
        "Sorry pal, we couldn't find definitions for the word you were looking for."
    )


class RateLimitedError(DictionaryError):
    """Admission was denied locally or the upstream source throttled us."""

    kind = ErrorKind.RATE_LIMITED
    title = "API Rate Limit Exceeded"
    default_message = "Sorry pal, you have made too many requests in a short time."


class UpstreamError(DictionaryError):
    """The upstream source answered with something we cannot use."""

    kind = ErrorKind.UPSTREAM_ERROR
    title = "Upstream Error"
    default_message = "Sorry pal, the dictionary source returned an unexpected response."


class InternalError(DictionaryError):
    """Catch-all for failures that are not one of the other kinds."""

    kind = ErrorKind.INTERNAL_ERROR


def as_dictionary_error(exc: BaseException) -> DictionaryError:
    """Return ``exc`` if already classified, otherwise wrap it as :class:`InternalError`."""

    if isinstance(exc, DictionaryError):
        return exc
    wrapped = InternalError(details={"error_type": type(exc).__name__, "error": str(exc)})
    wrapped.__cause__ = exc
    return wrapped


__all__ = [
    "DEFAULT_RESOLUTION",
    "DictionaryError",
    "ErrorKind",
    "InternalError",
    "NotFoundError",
    "RateLimitedError",
    "STATUS_CODES",
    "UpstreamError",
    "as_dictionary_error",
]
