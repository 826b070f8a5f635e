from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence


def token_name(token: Any) -> str:
    return getattr(token, "__qualname__", None) or repr(token)


class ResolutionError(RuntimeError):
    pass


class ComponentNotFoundError(ResolutionError, LookupError):
    """No binding for `token` is reachable from the queried container."""

    def __init__(self, token: Any, chain: Sequence[Any] = ()) -> None:
        self.token = token
        self.chain = tuple(chain)
        msg = f"No binding found for {token_name(token)}"
        if self.chain:
            msg += f" (required by {' -> '.join(token_name(t) for t in self.chain)})"
        super().__init__(msg)


class CircularDependencyError(ResolutionError):
    """`token` was requested while it was already being resolved.

    `chain` holds the in-flight tokens, outermost first; the cycle starts at the
    first occurrence of `token`.
    """

    def __init__(self, token: Any, chain: Sequence[Any]) -> None:
        self.token = token
        self.chain = tuple(chain)
        cycle = [*self.chain[self.chain.index(token) :], token] if token in self.chain else [*self.chain, token]
        msg = f"Circular dependency found: {' -> '.join(token_name(t) for t in cycle)}"
        super().__init__(msg)
