from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar


if TYPE_CHECKING:
    from ._container import Container

    A = TypeVar("A", bound="ContainerAware")


class ContainerAware:
    """Mixin for objects that keep a reference to the container that built them."""

    _container: Container | None = None

    def set_container(self: A, container: Container) -> A:
        self._container = container
        return self

    def get_container(self) -> Container | None:
        return self._container
