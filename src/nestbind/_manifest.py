"""Component manifests: what a concrete type needs and how to build it.

A manifest is computed once per class, either from an explicit `@component`
declaration or by reflecting over the `__init__` type hints, and is then
consumed by the container without further introspection.
"""

from __future__ import annotations

import collections.abc
import contextlib
import inspect
import logging
import types
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, Union, get_args, get_origin, get_type_hints


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    T = TypeVar("T")


logger = logging.getLogger(__name__)

_COLLECTION_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)


@dataclass(frozen=True)
class Collection:
    """Request marker: resolve every binding of `token` instead of one."""

    token: Any


def collection_of(token: Any) -> Collection:
    return Collection(token)


@dataclass(frozen=True)
class Dependency:
    """One constructor requirement.

    `parameter` is the keyword the value is passed under; positional when None.
    A collection dependency is handed over as `collection_type` (list or tuple).
    A dependency with a `default` is optional: the default is used when the
    token is not bound anywhere in the container chain.
    """

    token: Any
    collection: bool = False
    collection_type: type = list
    parameter: str | None = None
    default: Any = inspect.Parameter.empty

    @property
    def optional(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass(frozen=True)
class ComponentManifest:
    construct: Callable[..., object]
    dependencies: tuple[Dependency, ...] = ()
    name: str | None = None

    def build(self, values: Sequence[object]) -> object:
        """Invoke the construction function with already-resolved values, in order."""
        args: list[object] = []
        kwargs: dict[str, object] = {}
        for dependency, value in zip(self.dependencies, values, strict=True):
            if dependency.parameter is None:
                args.append(value)
            else:
                kwargs[dependency.parameter] = value
        return self.construct(*args, **kwargs)


@dataclass(frozen=True)
class _Declaration:
    dependencies: tuple[Dependency, ...] | None
    name: str | None


_DECLARATION_ATTR = "__nestbind_declaration__"
_MANIFEST_ATTR = "__nestbind_manifest__"


def component(*dependencies: Any, name: str | None = None) -> Callable[[type[T]], type[T]]:
    """Declare the manifest of a class explicitly.

    Example:
      @component(IMaterial, collection_of(ISnake), name="encyclopedia")
      class SnakeEncyclopedia: ...

    Dependencies are passed positionally, in the declared order. When no
    dependencies are given they are reflected from `__init__` and only the
    display name is taken from the declaration.
    """

    def decorator(cls: type[T]) -> type[T]:
        declared = (
            tuple(
                Dependency(d.token, collection=True) if isinstance(d, Collection) else Dependency(d)
                for d in dependencies
            )
            if dependencies
            else None
        )
        setattr(cls, _DECLARATION_ATTR, _Declaration(dependencies=declared, name=name))
        if _MANIFEST_ATTR in cls.__dict__:
            delattr(cls, _MANIFEST_ATTR)
        return cls

    return decorator


def manifest_for(cls: type) -> ComponentManifest:
    """Return the (cached) manifest of a concrete class."""
    manifest = cls.__dict__.get(_MANIFEST_ATTR)
    if manifest is None:
        manifest = _make_manifest(cls)
        # built-in types cannot carry attributes
        with contextlib.suppress(TypeError):
            setattr(cls, _MANIFEST_ATTR, manifest)
    return manifest


def _make_manifest(cls: type) -> ComponentManifest:
    declaration = cls.__dict__.get(_DECLARATION_ATTR)
    name = declaration.name if declaration else None

    if declaration is not None and declaration.dependencies is not None:
        return ComponentManifest(construct=cls, dependencies=declaration.dependencies, name=name)

    manifest = ComponentManifest(construct=cls, dependencies=_reflect_dependencies(cls), name=name)
    logger.debug(
        "Reflected manifest for %s: %s",
        cls.__qualname__,
        [getattr(d.token, "__name__", d.token) for d in manifest.dependencies],
    )
    return manifest


def _reflect_dependencies(cls: type) -> tuple[Dependency, ...]:
    if cls.__init__ is object.__init__:  # type: ignore[misc]
        return ()

    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError) as e:
        msg = f"Cannot read constructor signature of {cls.__qualname__}: {e}"
        raise TypeError(msg) from e

    hints = _get_init_type_hints(cls)
    dependencies = []

    for name, p in sig.parameters.items():
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue

        ann = hints.get(name, inspect.Signature.empty)
        if ann is inspect.Signature.empty:
            if p.default is not inspect.Parameter.empty:
                # left to its default
                continue
            msg = (
                f"Cannot reflect constructor parameter '{name}' of {cls.__qualname__}: "
                "it has neither a type annotation nor a default. "
                "Annotate it or declare the dependencies with @component."
            )
            raise TypeError(msg)

        parameter = None if p.kind is p.POSITIONAL_ONLY else name
        token, collection_type = _unwrap_annotation(ann)
        dependencies.append(
            Dependency(
                token,
                collection=collection_type is not None,
                collection_type=collection_type or list,
                parameter=parameter,
                default=p.default,
            )
        )

    return tuple(dependencies)


def _unwrap_annotation(ann: Any) -> tuple[Any, type | None]:
    """Map an annotation to (token, collection type); None for a single value."""
    origin = get_origin(ann)

    # Optional[T] -> T; the default carries the optionality
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(ann) if a is not type(None)]
        if len(args) == 1:
            return _unwrap_annotation(args[0])
        return ann, None

    if origin is tuple:
        args = get_args(ann)
        if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
            return args[0], tuple

    if origin in _COLLECTION_ORIGINS:
        args = get_args(ann)
        if len(args) == 1:
            return args[0], list

    return ann, None


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    hints.pop("return", None)
    return hints
