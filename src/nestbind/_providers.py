"""Providers: the three ways a binding can produce an instance."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ._manifest import manifest_for


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._context import ResolutionContext
    from ._manifest import ComponentManifest


class Provider(Protocol):
    manifest: ComponentManifest | None
    name: str | None

    def produce(self, context: ResolutionContext) -> object: ...


class ConstructorProvider:
    """Resolve every declared dependency, then call the construction function."""

    def __init__(self, impl: type) -> None:
        self.impl = impl
        self._manifest = manifest_for(impl)
        self.manifest: ComponentManifest | None = self._manifest
        self.name = self._manifest.name or impl.__qualname__

    def produce(self, context: ResolutionContext) -> object:
        manifest = self._manifest
        container = context.container
        values = []
        for dependency in manifest.dependencies:
            if dependency.collection:
                values.append(dependency.collection_type(container.get_all(dependency.token, context)))
            elif dependency.optional and not container.is_bound(dependency.token):
                values.append(dependency.default)
            else:
                values.append(container.get(dependency.token, context))
        return manifest.build(values)

    def __repr__(self) -> str:
        return f"ConstructorProvider({self.impl.__qualname__})"


class FunctionProvider:
    """Call `factory(context)`.

    The factory may resolve further values through `context.container.get(T, context)`.
    Resolving without forwarding `context` starts a fresh resolution: cycle
    detection and requester tracking do not span that sub-tree.
    """

    manifest: ComponentManifest | None = None

    def __init__(self, factory: Callable[[ResolutionContext], object], name: str | None = None) -> None:
        self.factory = factory
        self.name = name

    def produce(self, context: ResolutionContext) -> object:
        return self.factory(context)

    def __repr__(self) -> str:
        return f"FunctionProvider({getattr(self.factory, '__qualname__', self.factory)!r})"


class ConstantProvider:
    manifest: ComponentManifest | None = None

    def __init__(self, value: object) -> None:
        self.value = value
        self.name = type(value).__qualname__

    def produce(self, context: ResolutionContext) -> object:  # noqa: ARG002
        return self.value

    def __repr__(self) -> str:
        return f"ConstantProvider({self.value!r})"
