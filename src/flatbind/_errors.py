from __future__ import annotations

from typing import Any


class ContainerError(Exception):
    """Base class for every error raised by the container."""


class NotFoundError(ContainerError, KeyError):
    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"No binding found for key: {key!r}")

    def __str__(self) -> str:
        # KeyError would otherwise render the repr of the message
        return str(self.args[0])


class InvalidArgumentError(ContainerError, ValueError):
    pass


class InvalidStateError(ContainerError, RuntimeError):
    pass


class ResolutionError(ContainerError, RuntimeError):
    """Raised when a binding, override or constructor cannot produce a value.

    Failures coming from user code are chained, so ``__cause__`` holds the
    original exception.
    """


class UnresolvableDependencyError(ResolutionError):
    def __init__(self, parameter: str, consumer: Any, annotation: Any = None) -> None:
        self.parameter = parameter
        self.consumer = consumer
        ann_repr = getattr(annotation, "__name__", repr(annotation)) if annotation is not None else "no-annotation"
        msg = (
            f"Cannot satisfy parameter '{parameter}' of {_describe(consumer)}. "
            f"No explicit value/override/binding/default found (annotation: {ann_repr})."
        )
        super().__init__(msg)


class CyclicDependencyError(ResolutionError):
    def __init__(self, cycle: list[Any]) -> None:
        self.cycle = cycle
        chain = " -> ".join(_describe(t) for t in cycle)
        super().__init__(f"Cyclic dependency detected: {chain}")


def _describe(target: Any) -> str:
    return getattr(target, "__qualname__", None) or getattr(target, "__name__", None) or repr(target)
