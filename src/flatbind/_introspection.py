from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, get_type_hints


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger(__name__)

_EMPTY = inspect.Parameter.empty


@dataclass(frozen=True)
class ParameterSpec:
    """One constructor (or function) parameter as seen by the resolver."""

    name: str
    kind: inspect._ParameterKind
    annotation: Any = None
    default: Any = _EMPTY

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY

    @property
    def is_variadic(self) -> bool:
        return self.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class Introspector(Protocol):
    def describe(self, target: type | Callable[..., Any]) -> list[ParameterSpec]: ...


class SignatureIntrospector:
    """Describe classes and callables with ``inspect.signature`` and type hints.

    Classes are described by their constructor, without ``self``. Builtin
    types that expose no signature are treated as parameterless.
    """

    def describe(self, target: type | Callable[..., Any]) -> list[ParameterSpec]:
        try:
            sig = inspect.signature(target)
        except (TypeError, ValueError):
            if not inspect.isclass(target):
                raise
            logger.debug("No signature available for %r, assuming a parameterless constructor", target)
            return []

        hints = _get_init_type_hints(target) if inspect.isclass(target) else _get_callable_type_hints(target)

        specs = []
        for name, p in sig.parameters.items():
            ann = hints.get(name, p.annotation)
            if ann is _EMPTY or isinstance(ann, str):
                # unevaluated forward references cannot be resolved to a type
                ann = None
            specs.append(ParameterSpec(name=name, kind=p.kind, annotation=ann, default=p.default))
        return specs


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except (TypeError, AttributeError):
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints


def _get_callable_type_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    try:
        hints = get_type_hints(fn)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %r type hints", exc.name, fn)
        hints = {}

    return hints
