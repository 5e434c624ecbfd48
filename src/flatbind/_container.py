from __future__ import annotations

import importlib
import inspect
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
    overload,
)

from ._errors import (
    CyclicDependencyError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    ResolutionError,
    UnresolvableDependencyError,
)
from ._introspection import Introspector, ParameterSpec, SignatureIntrospector


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    T = TypeVar("T")

    Token = type[T] | str
    Producer = Callable[["Container"], Any]

_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)

# Marks a parameter that stays unfilled (variadics without explicit values).
_SKIP = object()


class BindingKind(Enum):
    VALUE = "value"
    FACTORY = "factory"
    SINGLETON = "singleton"


@dataclass(frozen=True)
class Binding:
    key: Any
    kind: BindingKind
    value: object | None = None
    producer: Producer | None = None


@dataclass(frozen=True)
class _Plan:
    """Cached resolution strategy for one constructible type."""

    params: list[ParameterSpec]
    resolvers: list[Callable[[], Any]]


class Container:
    """Flat DI container.

    - bind values, factories or singletons under string/class keys
    - construct unbound classes by constructor injection
    - per-consumer dependency overrides
    - per-type memo of the parameter resolution strategy.
    """

    def __init__(self, *, introspector: Introspector | None = None) -> None:
        self._bindings: dict[Any, Binding] = {}
        self._overrides: dict[tuple[Any, type], Producer] = {}
        self._plans: dict[type, _Plan] = {}
        self._in_flight: list[tuple[str, Any]] = []
        self._introspector = introspector or SignatureIntrospector()
        self._lock = threading.RLock()

    # -- registry ---------------------------------------------------------

    def set(self, key: Token[T], concrete: object, shared: bool = False) -> Container:  # noqa: FBT001, FBT002
        """Bind ``concrete`` under ``key``.

        Example:
          container.set(Mailer, SmtpMailer)
          container.set("db", lambda c: connect(c.get("dsn")), shared=True)
          container.set("dsn", "sqlite://")

        Classes and other callables become factories, anything else is stored
        as a value. ``shared=True`` invokes the factory right away and keeps
        the result.
        """
        self._check_key(key)
        producer = _as_producer(concrete, key)

        with self._lock:
            if producer is None:
                kind = BindingKind.SINGLETON if shared else BindingKind.VALUE
                binding = Binding(key=key, kind=kind, value=concrete)
            elif shared:
                binding = Binding(key=key, kind=BindingKind.SINGLETON, value=self._invoke(producer, key))
            else:
                binding = Binding(key=key, kind=BindingKind.FACTORY, producer=producer)

            self._bindings[key] = binding
            logger.debug("Bound %r as %s", key, binding.kind.value)

        return self

    def set_if(self, key: Token[T], concrete: object, shared: bool = False) -> Container:  # noqa: FBT001, FBT002
        """Bind ``concrete`` only when ``key`` has no binding yet."""
        self._check_key(key)
        with self._lock:
            if key not in self._bindings:
                self.set(key, concrete, shared)
        return self

    def singleton(self, key: Token[T], concrete: object) -> Container:
        return self.set(key, concrete, shared=True)

    def instance(self, key: Token[T], obj: object) -> Container:
        """Bind a pre-built object. Primitive values are rejected."""
        self._check_key(key)
        if isinstance(obj, _PRIMITIVES):
            msg = f"Only objects can be bound as instances, got {type(obj).__name__} for {key!r}"
            raise InvalidArgumentError(msg)

        with self._lock:
            self._bindings[key] = Binding(key=key, kind=BindingKind.VALUE, value=obj)
        return self

    def set_to(self, consumer: Any, dependency: type | str, value: object) -> Container:
        """Use ``value`` for every ``dependency`` parameter of ``consumer``.

        ``consumer`` is a class (or dotted path) built by :meth:`make`, or a
        function run through :meth:`call`. Classes given as ``value`` are
        built on demand, callables are invoked, anything else is used as is.
        """
        if isinstance(consumer, str):
            consumer = self._load_type_or_fail(consumer)
        if isinstance(dependency, str):
            dependency = self._load_type_or_fail(dependency)

        producer = _as_producer(value)
        if producer is None:
            producer = _constant(value)

        with self._lock:
            self._overrides[(consumer, dependency)] = producer
        return self

    def extend(self, key: Token[T], fn: Callable[[Any, Container], Any]) -> Container:
        """Decorate the binding of ``key`` with ``fn(current, container)``.

        Factories stay lazy and ``fn`` runs on every resolution; values and
        singletons are replaced once by the result of ``fn``.
        """
        with self._lock:
            binding = self._bindings.get(key)
            if binding is None:
                raise NotFoundError(key)

            if binding.kind is BindingKind.FACTORY:
                inner = binding.producer

                def extended(container: Container) -> Any:
                    return fn(container._invoke(inner, key), container)  # noqa: SLF001

                self._bindings[key] = Binding(key=key, kind=BindingKind.FACTORY, producer=extended)
            else:
                self._bindings[key] = Binding(key=key, kind=binding.kind, value=fn(binding.value, self))

        return self

    def share(self, key: Token[T]) -> Container:
        """Promote a factory binding to a singleton by invoking it once."""
        with self._lock:
            binding = self._bindings.get(key)
            if binding is None:
                raise NotFoundError(key)
            if binding.kind is not BindingKind.FACTORY:
                msg = f"Cannot share {key!r}: binding is a {binding.kind.value}, not a factory"
                raise InvalidStateError(msg)

            value = self._invoke(binding.producer, key)
            self._bindings[key] = Binding(key=key, kind=BindingKind.SINGLETON, value=value)
        return self

    def get(self, key: Token[T]) -> Any:
        with self._lock:
            binding = self._lookup(key)
            if binding is None:
                raise NotFoundError(key)

            if binding.kind is not BindingKind.FACTORY:
                return binding.value

            self._enter("key", key)
            try:
                return self._invoke(binding.producer, key)
            finally:
                self._in_flight.pop()

    def has(self, key: Token[T]) -> bool:
        return self._is_bound(key)

    def is_singleton(self, key: Token[T]) -> bool:
        binding = self._lookup(key)
        return binding is not None and binding.kind is BindingKind.SINGLETON

    def is_instance(self, key: Token[T]) -> bool:
        binding = self._lookup(key)
        return binding is not None and binding.kind is BindingKind.VALUE

    def unset(self, key: Token[T]) -> None:
        with self._lock:
            self._bindings.pop(key, None)

    def flush(self) -> None:
        """Drop every binding, override and cached resolution plan."""
        with self._lock:
            self._bindings = {}
            self._overrides = {}
            self._plans = {}

    # -- resolution -------------------------------------------------------

    @overload
    def make(self, token: type[T], parameters: Mapping[str, Any] | None = ..., *, force: bool = ...) -> T: ...

    @overload
    def make(self, token: str, parameters: Mapping[str, Any] | None = ..., *, force: bool = ...) -> Any: ...

    def make(self, token: Token[T], parameters: Mapping[str, Any] | None = None, *, force: bool = False) -> Any:
        """Resolve ``token`` to an instance.

        - If a binding exists: return what :meth:`get` returns.
        - Otherwise ``token`` must be a class or a dotted path to one; it is
          built by constructor injection.
        `parameters` supplies constructor arguments by name. `force` rebuilds
        the cached resolution plan of the type.
        """
        with self._lock:
            if self._is_bound(token):
                return self.get(token)

            cls = self._load_type_or_fail(token) if isinstance(token, str) else token
            if not inspect.isclass(cls):
                msg = f"Cannot construct {token!r}: not a class and no binding found"
                raise ResolutionError(msg)

            return self._construct(cls, parameters or {}, force=force)

    def _construct(self, cls: type[T], parameters: Mapping[str, Any], *, force: bool = False) -> T:
        with self._lock:
            self._enter("type", cls)
            try:
                plan = self._plans.get(cls)
                if plan is None or force:
                    plan = self._build_plan(cls, self._describe(cls))
                    self._plans[cls] = plan

                args, kwargs = self._arguments(cls, plan, parameters)
                try:
                    return cls(*args, **kwargs)
                except ResolutionError:
                    raise
                except Exception as exc:
                    msg = f"Constructor of {cls.__qualname__} raised {type(exc).__name__}: {exc}"
                    raise ResolutionError(msg) from exc
            finally:
                self._in_flight.pop()

    def call(self, fn: Callable[..., T], parameters: Mapping[str, Any] | None = None) -> T:
        """Invoke ``fn`` with its parameters resolved like constructor arguments."""
        with self._lock:
            try:
                specs = self._introspector.describe(fn)
            except Exception as exc:
                msg = f"Cannot inspect the signature of {fn!r}"
                raise ResolutionError(msg) from exc

            args, kwargs = self._arguments(fn, self._build_plan(fn, specs), parameters or {})

        return fn(*args, **kwargs)

    def _describe(self, cls: type) -> list[ParameterSpec]:
        try:
            specs = self._introspector.describe(cls)
        except Exception as exc:
            msg = f"Cannot inspect the constructor of {cls.__qualname__}"
            raise ResolutionError(msg) from exc
        logger.debug("Built resolution plan for %s (%d parameters)", cls.__qualname__, len(specs))
        return specs

    def _build_plan(self, consumer: Any, specs: list[ParameterSpec]) -> _Plan:
        return _Plan(params=specs, resolvers=[self._param_resolver(consumer, p) for p in specs])

    def _param_resolver(self, consumer: Any, p: ParameterSpec) -> Callable[[], Any]:
        """Pick how a parameter gets its value when no explicit one is given.

        Resolution precedence:
        1. dependency override (decided here, once per plan)
        2. binding or constructor injection for the annotated type
        3. default
        4. error.
        """
        if p.is_variadic:
            return lambda: _SKIP

        ann = p.annotation
        if ann is not None and (consumer, ann) in self._overrides:
            # the current producer is read on each call, so replacing an override takes effect
            return lambda: self._invoke(self._overrides[(consumer, ann)], ann)

        def resolve() -> Any:
            if ann is not None and (self._is_bound(ann) or _is_injectable(ann)):
                return self.make(ann)
            if p.has_default:
                return p.default
            raise UnresolvableDependencyError(p.name, consumer, ann)

        return resolve

    def _arguments(
        self, consumer: Any, plan: _Plan, parameters: Mapping[str, Any]
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        extra = dict(parameters)
        var_keyword = None

        for p, resolver in zip(plan.params, plan.resolvers):
            value = extra.pop(p.name) if p.name in extra else resolver()

            if p.kind is inspect.Parameter.VAR_KEYWORD:
                var_keyword = p
                if value is not _SKIP:
                    kwargs.update(value)
            elif p.kind is inspect.Parameter.VAR_POSITIONAL:
                if value is not _SKIP:
                    args.extend(value)
            elif p.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[p.name] = value
            else:
                args.append(value)

        if extra:
            if var_keyword is None:
                name = getattr(consumer, "__qualname__", repr(consumer))
                msg = f"Parameters {sorted(extra)} don't match the signature of {name}"
                raise InvalidArgumentError(msg)
            kwargs.update(extra)

        return args, kwargs

    # -- helpers ----------------------------------------------------------

    def _invoke(self, producer: Producer, key: Any) -> Any:
        try:
            return producer(self)
        except ResolutionError:
            raise
        except Exception as exc:
            msg = f"Producer for {key!r} raised {type(exc).__name__}: {exc}"
            raise ResolutionError(msg) from exc

    def _enter(self, kind: str, token: Any) -> None:
        """Push ``token`` on the in-flight chain, failing when it is already being resolved."""
        entry = (kind, token)
        if entry in self._in_flight:
            start = self._in_flight.index(entry)
            cycle = [t for _, t in self._in_flight[start:]] + [token]
            logger.debug("Cycle detected while resolving %r", token)
            raise CyclicDependencyError(cycle)
        self._in_flight.append(entry)

    def _lookup(self, key: Any) -> Binding | None:
        try:
            return self._bindings.get(key)
        except TypeError:
            # unhashable keys are never bound
            return None

    def _is_bound(self, token: Any) -> bool:
        return self._lookup(token) is not None

    def _load_type_or_fail(self, name: str) -> type:
        try:
            return _load_type(name)
        except (ImportError, AttributeError, ValueError) as exc:
            msg = f"Unknown type name: {name!r}"
            raise ResolutionError(msg) from exc

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str) and not inspect.isclass(key):
            msg = f"Binding keys must be strings or classes, got {type(key).__name__}"
            raise InvalidArgumentError(msg)


def _as_producer(concrete: object, key: Any = None) -> Producer | None:
    """Turn a class or callable into a producer taking the container; None for plain values."""
    if inspect.isclass(concrete):
        if concrete is key:
            # a class bound to itself must skip the registry or it resolves to its own binding
            return lambda container: container._construct(concrete, {})  # noqa: SLF001
        return lambda container: container.make(concrete)

    if callable(concrete):
        if _accepts_container(concrete):
            return concrete
        return lambda _: concrete()

    return None


def _constant(value: object) -> Producer:
    return lambda _: value


def _accepts_container(fn: Callable[..., Any]) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return True

    return any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL) for p in params
    )


def _is_injectable(ann: Any) -> bool:
    return inspect.isclass(ann) and getattr(ann, "__module__", "") not in ("builtins", "typing")


def _load_type(name: str) -> type:
    """Import ``package.module.Class`` or ``package.module:Class``."""
    if ":" in name:
        module_name, _, qualname = name.partition(":")
        obj: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            obj = getattr(obj, part)
    else:
        module_name, _, attr = name.rpartition(".")
        if not module_name:
            msg = f"{name!r} is not a dotted path"
            raise ValueError(msg)
        obj = getattr(importlib.import_module(module_name), attr)

    if not inspect.isclass(obj):
        msg = f"{name!r} does not name a class"
        raise ValueError(msg)
    return obj
