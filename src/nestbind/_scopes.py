from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from ._context import ResolutionContext
    from ._providers import Provider


logger = logging.getLogger(__name__)


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ScopePolicy(Protocol):
    lifetime: Lifetime

    def resolve(self, provider: Provider, context: ResolutionContext) -> object: ...


class TransientScope:
    lifetime = Lifetime.TRANSIENT

    def resolve(self, provider: Provider, context: ResolutionContext) -> object:
        return provider.produce(context)


class SingletonScope:
    """Produce once, then hand out the cached instance for the binding's lifetime."""

    lifetime = Lifetime.SINGLETON

    _EMPTY = object()

    def __init__(self) -> None:
        self._instance: object = self._EMPTY
        self._lock = threading.RLock()

    def resolve(self, provider: Provider, context: ResolutionContext) -> object:
        if self._instance is not self._EMPTY:
            return self._instance

        with self._lock:
            # another thread may have finished first
            if self._instance is self._EMPTY:
                self._instance = provider.produce(context)
                logger.debug("Cached singleton from %r", provider)
            return self._instance


def make_scope(lifetime: Lifetime) -> ScopePolicy:
    if lifetime is Lifetime.SINGLETON:
        return SingletonScope()
    return TransientScope()
