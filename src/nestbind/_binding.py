from __future__ import annotations

import inspect
import logging
import typing
from typing import TYPE_CHECKING, Any, Protocol, cast, get_type_hints

from ._errors import token_name
from ._providers import ConstantProvider, ConstructorProvider, FunctionProvider
from ._scopes import Lifetime, make_scope


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._container import Container
    from ._context import ResolutionContext
    from ._manifest import ComponentManifest
    from ._providers import Provider
    from ._scopes import ScopePolicy


logger = logging.getLogger(__name__)


class Binding:
    """One registration: a set of tokens served by a single provider and scope.

    All tokens share the same scope instance, so a singleton is cached once for
    every token it was bound under.
    """

    def __init__(
        self,
        tokens: tuple[Any, ...],
        provider: Provider,
        scope: ScopePolicy,
        owner: Container,
        index: int,
    ) -> None:
        self.tokens = tokens
        self.provider = provider
        self.scope = scope
        self.owner = owner
        self.index = index

    @property
    def manifest(self) -> ComponentManifest | None:
        return self.provider.manifest

    @property
    def lifetime(self) -> Lifetime:
        return self.scope.lifetime

    def display_name(self, token: Any) -> str:
        return self.provider.name or token_name(token)

    def resolve(self, token: Any, context: ResolutionContext) -> object:
        with context.frame(token, self.manifest, self.owner, self.display_name(token)):
            instance = self.scope.resolve(self.provider, context)

        if isinstance(self.provider, FunctionProvider):
            _check_instance(token, instance)
        return instance

    def __repr__(self) -> str:
        tokens = ", ".join(token_name(t) for t in self.tokens)
        return f"Binding(#{self.index} [{tokens}] -> {self.provider!r}, {self.lifetime.value})"


class BindingHandle:
    """Returned by the `to*` methods; switches the lifetime of the new binding."""

    def __init__(self, binding: Binding) -> None:
        self.binding = binding

    def in_scope(self, lifetime: Lifetime) -> BindingHandle:
        if self.binding.lifetime is not lifetime:
            self.binding.scope = make_scope(lifetime)
            logger.debug("Switched %r to %s scope", self.binding, lifetime.value)
        return self

    def in_singleton_scope(self) -> BindingHandle:
        return self.in_scope(Lifetime.SINGLETON)

    def in_transient_scope(self) -> BindingHandle:
        return self.in_scope(Lifetime.TRANSIENT)


class BindingBuilder:
    """Collects the tokens of `Container.bind(...)` until a provider is chosen.

    Example:
      container.bind(IWalker, IRunner).to(Cheetah).in_singleton_scope()
      container.bind(Home).to_function(lambda ctx: Home(ctx.requester.name))
      container.bind(Config).to_constant(config)
    """

    def __init__(self, container: Container, tokens: tuple[Any, ...]) -> None:
        if not tokens:
            msg = "bind() needs at least one token."
            raise ValueError(msg)
        self._container = container
        self._tokens = tokens
        self._handle: BindingHandle | None = None

    def to(self, impl: type) -> BindingHandle:
        if not inspect.isclass(impl):
            msg = f"Implementation must be a class, got {impl!r}. Use to_function() or to_constant()."
            raise TypeError(msg)

        for token in self._tokens:
            # Non-type tokens (like strings): cannot validate statically.
            if inspect.isclass(token):
                _validate_impl(cls=token, impl=impl)

        return self._register(ConstructorProvider(impl))

    def to_self(self) -> BindingHandle:
        if len(self._tokens) != 1:
            msg = "to_self() needs exactly one bound token."
            raise ValueError(msg)
        return self.to(self._tokens[0])

    def to_function(
        self,
        factory: Callable[[ResolutionContext], object],
        *,
        name: str | None = None,
    ) -> BindingHandle:
        if not callable(factory):
            msg = f"Factory must be callable, got {factory!r}."
            raise TypeError(msg)
        return self._register(FunctionProvider(factory, name=name))

    def to_constant(self, value: object) -> BindingHandle:
        for token in self._tokens:
            if inspect.isclass(token):
                _validate_impl(cls=token, impl=type(value))
        return self._register(ConstantProvider(value))

    def _register(self, provider: Provider) -> BindingHandle:
        if self._handle is not None:
            msg = f"Tokens {self._tokens!r} were already bound by this builder."
            raise RuntimeError(msg)
        binding = self._container._add_binding(self._tokens, provider)  # noqa: SLF001
        self._handle = BindingHandle(binding)
        return self._handle


def _check_instance(token: Any, instance: object) -> None:
    """Validate what a factory returned against a class token."""
    if not inspect.isclass(token):
        return

    if _is_protocol(token):
        try:
            _validate_impl(cls=token, impl=type(instance))
        except TypeError as e:
            msg = f"Resolved instance {type(instance).__name__} does not conform to protocol {token.__name__}"
            raise TypeError(msg) from e

        if _is_runtime_checkable_protocol(token) and not isinstance(instance, token):
            msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {token.__name__}"
            raise TypeError(msg)
        return

    if not isinstance(instance, token):
        msg = f"Resolved instance {type(instance).__name__} is not an instance of {token.__name__}"
        raise TypeError(msg)


def _is_protocol(tp: type) -> bool:
    """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
    if hasattr(typing, "is_protocol"):
        # https://docs.python.org/3/library/typing.html#typing.is_protocol
        return inspect.isclass(tp) and typing.is_protocol(tp)
    return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False)) and issubclass(tp, cast("type", Protocol))


def _is_runtime_checkable_protocol(tp: type) -> bool:
    if not _is_protocol(tp):
        return False

    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True


def _validate_impl(cls: type, impl: type) -> None:
    """Validate that 'impl' implements 'cls'.

    - For normal classes/ABCs: require issubclass(impl, cls).
    - For Protocols: nominal via MRO, otherwise structural conformance.
    """
    if not _is_protocol(cls):
        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)
        return

    if cls in getattr(impl, "__mro__", ()):
        return

    _validate_protocol_structural_conformance(cls, impl)


def _positional_arity(params: list[inspect.Parameter]) -> int:
    return sum(
        1
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


def _validate_protocol_structural_conformance(proto_cls: type, impl: type) -> None:  # noqa: C901
    """Best-effort structural conformance: presence + basic callable arity + return type checks."""
    missing: list[str] = []
    signature_mismatches: list[str] = []

    try:
        proto_hints = get_type_hints(proto_cls)
    except (NameError, TypeError):
        proto_hints = {}

    for name in proto_hints:
        if not name.startswith("_") and not hasattr(impl, name):
            missing.append(name)

    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_attr = getattr(impl, name)
        if not callable(impl_attr):
            signature_mismatches.append(f"{name}: not Callable on {impl.__name__}")
            continue

        try:
            proto_sig = inspect.signature(proto_attr)
            impl_sig = inspect.signature(impl_attr)
        except (TypeError, ValueError) as e:
            signature_mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        proto_params = [p for p in proto_sig.parameters.values() if p.name != "self"]
        impl_params = [p for p in impl_sig.parameters.values() if p.name != "self"]

        if _positional_arity(impl_params) < _positional_arity(proto_params):
            signature_mismatches.append(
                f"{name}: impl has fewer required positional params "
                f"({_positional_arity(impl_params)}) than protocol "
                f"({_positional_arity(proto_params)})"
            )

        proto_ret = proto_sig.return_annotation
        impl_ret = impl_sig.return_annotation
        if (
            proto_ret is not inspect.Signature.empty
            and impl_ret is not inspect.Signature.empty
            and proto_ret is not Any
            and impl_ret is not Any
            and not _is_return_type_compatible(impl_ret, proto_ret)
        ):
            signature_mismatches.append(
                f"{name}: return type {impl_ret!r} is not compatible with protocol return type {proto_ret!r}"
            )

    if missing or signature_mismatches:
        msgs = []
        if missing:
            msgs.append(f"missing members: {', '.join(missing)}")
        if signature_mismatches:
            msgs.append(f"signature mismatches: {', '.join(signature_mismatches)}")

        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{proto_cls.__name__}: {'; '.join(msgs)}"
        )
        raise TypeError(msg)


def _is_return_type_compatible(impl_ret: object, proto_ret: object) -> bool:
    if impl_ret == proto_ret:
        return True

    if isinstance(impl_ret, type) and isinstance(proto_ret, type):
        return issubclass(impl_ret, proto_ret)

    # Union, Protocol, TypeVar, string annotations, ... -> conservative failure
    return False
