"""Hierarchical inversion-of-control container.

This package builds object graphs from declared bindings: tokens (classes,
protocols or any hashable key) are bound to a class, a factory function or a
constant, with a transient or singleton lifetime. Containers can be nested;
a child sees its ancestors' bindings, never the other way round.

Exports:
- `Container`: binding registry and resolution engine (`bind`, `get`, `get_all`).
- `Lifetime`: transient or singleton.
- `ResolutionContext`: per-call state handed to factory functions; exposes the
  container in scope and the requesting component.
- `component` / `collection_of`: declare constructor dependencies explicitly and
  request every binding of a token.
- `ResolutionError`, `ComponentNotFoundError`, `CircularDependencyError`.
"""

from ._binding import Binding, BindingBuilder, BindingHandle
from ._container import Container
from ._context import ResolutionContext, Requester
from ._errors import CircularDependencyError, ComponentNotFoundError, ResolutionError
from ._manifest import ComponentManifest, Dependency, collection_of, component, manifest_for
from ._scopes import Lifetime


__all__ = [
    "Binding",
    "BindingBuilder",
    "BindingHandle",
    "CircularDependencyError",
    "ComponentManifest",
    "ComponentNotFoundError",
    "Container",
    "Dependency",
    "Lifetime",
    "Requester",
    "ResolutionContext",
    "ResolutionError",
    "collection_of",
    "component",
    "manifest_for",
]
