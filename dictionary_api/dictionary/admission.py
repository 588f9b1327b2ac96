"""Fixed-window admission control keyed by client identity."""

from __future__ import annotations

import ipaddress
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence

from dictionary_api import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("dictionary.admission")

DEFAULT_WINDOW_SECONDS = 5 * 60
DEFAULT_MAX_REQUESTS = 450
UNKNOWN_CLIENT = "unknown"
TRUST_ALL_PROXIES = "*"

Clock = Callable[[], float]


@dataclass(slots=True)
class AdmissionWindow:
    window_start: float
    count: int = 0


@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float
    """Seconds until the client's current window rolls over."""

    def headers(self) -> Dict[str, str]:
        """Return ``RateLimit-*`` response headers describing this decision."""
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(max(0, math.ceil(self.reset_after))),
        }


class AdmissionController:
    """Allow at most ``max_requests`` per client within each window.

    Each identity gets its own window that starts with its first request and
    resets once ``window_seconds`` have elapsed. Requests over the ceiling are
    refused, and still counted, until the window rolls over.
    """

    def __init__(
        self,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._windows: Dict[str, AdmissionWindow] = {}
        self._lock = threading.Lock()

    def check(self, identity: Optional[str]) -> AdmissionDecision:
        """Count a request for ``identity`` and return the admission decision."""

        key = identity or UNKNOWN_CLIENT
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.window_start >= self.window_seconds:
                window = AdmissionWindow(window_start=now)
                self._windows[key] = window
            window.count += 1
            allowed = window.count <= self.max_requests
            decision = AdmissionDecision(
                allowed=allowed,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - window.count),
                reset_after=window.window_start + self.window_seconds - now,
            )
        if not allowed:
            logger.warning(
                "Admission denied for client",
                extra={
                    "event": "dictionary.admission.denied",
                    "client_id": key,
                    "attributes": {"count": window.count, "limit": self.max_requests},
                },
            )
        return decision

    def allow(self, identity: Optional[str]) -> bool:
        return self.check(identity).allowed

    def sweep(self) -> int:
        """Forget identities whose window has elapsed."""

        with self._lock:
            now = self._clock()
            stale = [
                key
                for key, window in self._windows.items()
                if now - window.window_start >= self.window_seconds
            ]
            for key in stale:
                del self._windows[key]
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)


def _parse_networks(
    values: Iterable[str],
) -> list[ipaddress.IPv4Network | ipaddress.IPv6Network]:
    networks = []
    for value in values:
        try:
            networks.append(ipaddress.ip_network(value.strip(), strict=False))
        except ValueError:
            logger.warning(
                "Ignoring invalid trusted proxy entry %r",
                value,
                extra={"event": "dictionary.admission.invalid_proxy"},
            )
    return networks


class ClientIdentityResolver:
    """Derive the requester's address, honouring a trusted proxy chain.

    ``X-Forwarded-For`` is only consulted when the direct peer is trusted.
    The chain is then walked from the right, skipping trusted hops; the first
    untrusted address is the client. ``"*"`` trusts every hop, which makes the
    left-most forwarded address the client.
    """

    def __init__(self, trusted_proxies: Sequence[str] = ()) -> None:
        values = [value for value in trusted_proxies if value and value.strip()]
        self._trust_all = any(value.strip() == TRUST_ALL_PROXIES for value in values)
        self._networks = _parse_networks(
            value for value in values if value.strip() != TRUST_ALL_PROXIES
        )

    def is_trusted(self, address: Optional[str]) -> bool:
        if self._trust_all:
            return True
        if not address:
            return False
        try:
            parsed = ipaddress.ip_address(address)
        except ValueError:
            return False
        return any(parsed in network for network in self._networks)

    def resolve(self, peer: Optional[str], forwarded_for: Optional[str] = None) -> str:
        if not forwarded_for or not self.is_trusted(peer):
            return peer or UNKNOWN_CLIENT
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        if not hops:
            return peer or UNKNOWN_CLIENT
        if self._trust_all:
            return hops[0]
        for hop in reversed(hops):
            if not self.is_trusted(hop):
                return hop
        return hops[0]


__all__ = [
    "AdmissionController",
    "AdmissionDecision",
    "AdmissionWindow",
    "ClientIdentityResolver",
    "DEFAULT_MAX_REQUESTS",
    "DEFAULT_WINDOW_SECONDS",
    "TRUST_ALL_PROXIES",
    "UNKNOWN_CLIENT",
]
