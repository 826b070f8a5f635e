from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._binding import Binding, BindingBuilder
from ._context import ResolutionContext
from ._errors import ComponentNotFoundError, token_name
from ._manifest import Collection
from ._scopes import Lifetime, make_scope


if TYPE_CHECKING:
    from ._providers import Provider

    T = TypeVar("T")


logger = logging.getLogger(__name__)


class Container:
    """Binding registry with optional parent fallback.

    - bind one or more tokens to a class, a factory function or a constant
    - lifetimes: transient (default) / singleton
    - single resolution takes the first-registered binding, locally first,
      then from the ancestors
    - collection resolution gathers every binding from the root down to
      this container
    - a parent never sees its children's bindings.
    """

    def __init__(self, parent: Container | None = None, *, default_lifetime: Lifetime | None = None) -> None:
        self._parent = parent
        self._registrations: dict[Any, list[Binding]] = {}
        self._counter = 0
        self._lock = threading.RLock()
        if default_lifetime is None:
            default_lifetime = parent.default_lifetime if parent is not None else Lifetime.TRANSIENT
        self.default_lifetime = default_lifetime

    @property
    def parent(self) -> Container | None:
        return self._parent

    def create_child(self, *, default_lifetime: Lifetime | None = None) -> Container:
        """Create a container that resolves in itself first, then falls back to this one."""
        return Container(self, default_lifetime=default_lifetime)

    def bind(self, *tokens: Any) -> BindingBuilder:
        """Begin a registration for one or more tokens.

        Example:
          container.bind(IRunner).to(Cheetah)
          container.bind(IWalker, IRunner).to(Human).in_singleton_scope()

        Binding a token again adds an alternative; the first registration
        stays the one `get` returns.
        """
        return BindingBuilder(self, tokens)

    def _add_binding(self, tokens: tuple[Any, ...], provider: Provider) -> Binding:
        with self._lock:
            binding = Binding(tokens, provider, make_scope(self.default_lifetime), self, self._counter)
            self._counter += 1
            for token in dict.fromkeys(tokens):
                self._registrations.setdefault(token, []).append(binding)

        logger.debug("Registered %r", binding)
        return binding

    def bindings(self, token: Any) -> list[Binding]:
        """Local bindings of `token`, in registration order."""
        with self._lock:
            return list(self._registrations.get(token, ()))

    def is_bound(self, token: Any) -> bool:
        container: Container | None = self
        while container is not None:
            if container.bindings(token):
                return True
            container = container.parent
        return False

    @overload
    def get(self, token: Collection, context: ResolutionContext | None = None) -> list[Any]: ...

    @overload
    def get(self, token: type[T], context: ResolutionContext | None = None) -> T: ...

    @overload
    def get(self, token: Any, context: ResolutionContext | None = None) -> Any: ...

    def get(self, token: Any, context: ResolutionContext | None = None) -> Any:
        """Resolve `token` to one instance.

        Pass `context` when resolving from inside a factory so that cycle
        detection and requester tracking continue through the nested call.
        `get(collection_of(T))` is the same as `get_all(T)`.
        """
        if isinstance(token, Collection):
            return self.get_all(token.token, context)

        if context is None:
            context = ResolutionContext(self)

        context.check(token)

        local = self.bindings(token)
        if local:
            return local[0].resolve(token, context)

        if self._parent is not None:
            return self._parent.get(token, context)

        logger.debug("No binding for %s", token_name(token))
        raise ComponentNotFoundError(token, context.chain)

    def get_all(self, token: Any, context: ResolutionContext | None = None) -> list[Any]:
        """Resolve every binding of `token` visible from this container.

        Ancestor bindings come first (root first), then this container's own,
        each in registration order. Returns an empty list when nothing is bound.
        """
        if context is None:
            context = ResolutionContext(self)

        context.check(token)

        return [binding.resolve(token, context) for binding in self._chain_bindings(token)]

    def _chain_bindings(self, token: Any) -> list[Binding]:
        lineage: list[Container] = []
        container: Container | None = self
        while container is not None:
            lineage.append(container)
            container = container.parent

        return [binding for c in reversed(lineage) for binding in c.bindings(token)]

    def __repr__(self) -> str:
        depth = 0
        container = self._parent
        while container is not None:
            depth += 1
            container = container.parent
        return f"Container(depth={depth}, tokens={len(self._registrations)})"
