"""Flat dependency injection container.

This package provides a small dependency injection container for Python:
one registry of values, factories and singletons keyed by strings or
classes, plus constructor injection for anything that is not registered.

Exports:
- `Container`: the registry and resolution engine (`set`, `get`, `make`, `call`, ...).
- `BindingKind`, `Binding`: how a key is currently bound (value, factory or singleton).
- `ContainerAware`: mixin for objects that hold on to their container.
- `Introspector`, `SignatureIntrospector`, `ParameterSpec`: the pluggable
  constructor/function introspection used by the resolver.
- the exception hierarchy rooted at `ContainerError`.
"""

import logging

from ._aware import ContainerAware
from ._container import Binding, BindingKind, Container
from ._errors import (
    ContainerError,
    CyclicDependencyError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    ResolutionError,
    UnresolvableDependencyError,
)
from ._introspection import Introspector, ParameterSpec, SignatureIntrospector


logging.getLogger(__name__).addHandler(logging.NullHandler())


__all__ = [
    "Binding",
    "BindingKind",
    "Container",
    "ContainerAware",
    "ContainerError",
    "CyclicDependencyError",
    "Introspector",
    "InvalidArgumentError",
    "InvalidStateError",
    "NotFoundError",
    "ParameterSpec",
    "ResolutionError",
    "SignatureIntrospector",
    "UnresolvableDependencyError",
]
