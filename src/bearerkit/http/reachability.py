"""Network reachability hints.

Reachability is advisory: it only picks the cache policy sent with each
request and never blocks or rejects a call.
"""

from __future__ import annotations

from typing import Protocol

CACHE_BYPASS = "no-cache"
CACHE_FIRST = "max-stale"


class ReachabilityObserver(Protocol):
    """Reports whether the network is currently believed to be reachable."""

    @property
    def is_online(self) -> bool: ...


class StaticReachability:
    """Reachability observer with a manually controlled state."""

    def __init__(self, online: bool = True):
        self.online = online

    @property
    def is_online(self) -> bool:
        return self.online


def cache_policy(observer: ReachabilityObserver | None) -> str:
    """Return the ``Cache-Control`` value to send with the next request.

    Without an observer the network is assumed to be reachable.
    """
    if observer is None or observer.is_online:
        return CACHE_BYPASS
    return CACHE_FIRST
