from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._errors import CircularDependencyError


if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._container import Container
    from ._manifest import ComponentManifest


logger = logging.getLogger(__name__)

ROOT_REQUESTER_NAME = "<root>"


@dataclass(frozen=True)
class Frame:
    """One in-flight resolution: the token, the manifest of the binding chosen
    for it (None for factories and constants without one) and the container
    that owns that binding.
    """

    token: Any
    manifest: ComponentManifest | None
    container: Container
    name: str


@dataclass(frozen=True)
class Requester:
    name: str
    token: Any = None


class ResolutionContext:
    """Per top-level resolution state, passed explicitly through every nested step.

    - `container`: the container nested lookups go to (the owner of the
      binding currently being built).
    - `requester`: the component whose construction asked for the value
      currently being resolved.
    """

    def __init__(self, container: Container) -> None:
        self._root = container
        self._stack: list[Frame] = []

    @property
    def container(self) -> Container:
        return self._stack[-1].container if self._stack else self._root

    def get_container(self) -> Container:
        return self.container

    @property
    def requester(self) -> Requester:
        if len(self._stack) < 2:  # noqa: PLR2004
            return Requester(ROOT_REQUESTER_NAME)
        frame = self._stack[-2]
        return Requester(frame.name, frame.token)

    def get_requester(self) -> Requester:
        return self.requester

    @property
    def chain(self) -> tuple[Any, ...]:
        return tuple(f.token for f in self._stack)

    def check(self, token: Any) -> None:
        """Raise if `token` is already being resolved further up the chain."""
        if any(f.token == token for f in self._stack):
            raise CircularDependencyError(token, self.chain)

    @contextmanager
    def frame(self, token: Any, manifest: ComponentManifest | None, container: Container, name: str) -> Iterator[Frame]:
        self.check(token)
        frame = Frame(token, manifest, container, name)
        self._stack.append(frame)
        logger.debug("Resolving %s (depth %d)", name, len(self._stack))
        try:
            yield frame
        finally:
            self._stack.pop()
