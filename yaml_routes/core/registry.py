"""
registry.py
===========
Operation registry for builder receivers.

Builder methods declare the operations they implement with ``@operation``.
Each declaration names the operation, the kind of every positional argument,
and the effect the operation has on the interpreter's scope stack. The
registry for a receiver type is collected once from its declared
capabilities (walking the MRO, subclasses overriding bases) under a lock and
is read-only afterwards, so it can be shared by concurrent translations.

Author: Route Loader Maintainers
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

_DECLARATIONS_ATTR = "__route_operations__"

# Declared argument kinds. ``object`` accepts any runtime kind.
ARGUMENT_KINDS: tuple[type, ...] = (str, list, dict, type(None), object)


class ScopeEffect(str, Enum):
    """What an operation does to the scope stack."""

    OPEN = "open"          # push the current receiver; the result becomes current
    NEUTRAL = "neutral"    # the result becomes current
    CLOSE = "close"        # pop; control returns to the parent receiver
    HANDOFF = "handoff"    # close, then resolve the same step on the parent


@dataclass(frozen=True)
class Capability:
    """One resolvable (name, shape) pair of a receiver type."""

    name: str
    shape: tuple[type, ...]
    scope: ScopeEffect
    handler: Callable[..., Any]

    @property
    def arity(self) -> int:
        return len(self.shape)

    def accepts(self, shape: tuple[type, ...]) -> bool:
        if len(shape) != len(self.shape):
            return False
        return all(
            declared is object or declared is actual
            for declared, actual in zip(self.shape, shape)
        )

    def invoke(self, receiver: Any, values: Iterable[Any]) -> Any:
        return self.handler(receiver, *values)

    def describe(self) -> str:
        kinds = ", ".join(t.__name__ for t in self.shape)
        return f"{self.name}({kinds})"


def operation(
    name: str, *arg_types: type, scope: ScopeEffect = ScopeEffect.NEUTRAL
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Declare that the decorated builder method implements ``name``.

    The decorator may be stacked to register one method under several
    names or argument shapes.

    Example
    -------
    ::

        class ProcessorScope:
            @operation("log", str)
            @operation("log", str, str)
            def log(self, *args):
                return self
    """
    for kind in arg_types:
        if kind not in ARGUMENT_KINDS:
            raise TypeError(f"Unsupported argument kind for '{name}': {kind!r}")

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        declared = list(getattr(fn, _DECLARATIONS_ATTR, ()))
        declared.append((name, tuple(arg_types), ScopeEffect(scope)))
        setattr(fn, _DECLARATIONS_ATTR, tuple(declared))
        return fn

    return decorator


class OperationRegistry:
    """
    The capability set of one receiver type, keyed by (name, shape).

    Use ``OperationRegistry.for_type(cls)``; instances are cached per type.
    """

    _registries: dict[type, OperationRegistry] = {}
    _lock = threading.Lock()

    def __init__(self, receiver_type: type, capabilities: Iterable[Capability]) -> None:
        self.receiver_type = receiver_type
        self._capabilities: dict[tuple[str, tuple[type, ...]], Capability] = {}
        for cap in capabilities:
            self._capabilities[(cap.name, cap.shape)] = cap

    @classmethod
    def for_type(cls, receiver_type: type) -> OperationRegistry:
        registry = cls._registries.get(receiver_type)
        if registry is not None:
            return registry
        with cls._lock:
            registry = cls._registries.get(receiver_type)
            if registry is not None:
                return registry
            registry = cls(receiver_type, _collect(receiver_type))
            cls._registries[receiver_type] = registry
            logger.debug(
                "Built operation registry for %s: %s",
                receiver_type.__name__,
                ", ".join(sorted(c.describe() for c in registry)),
            )
        return registry

    @classmethod
    def clear(cls) -> None:
        """Drop cached registries (mainly for testing)."""
        with cls._lock:
            cls._registries.clear()

    def __iter__(self):
        return iter(self._capabilities.values())

    def __len__(self) -> int:
        return len(self._capabilities)

    def names(self) -> set[str]:
        return {name for name, _ in self._capabilities}

    def candidates(self, name: str) -> list[Capability]:
        return [c for (n, _), c in self._capabilities.items() if n == name]

    def resolve(self, name: str, shape: tuple[type, ...]) -> Capability | None:
        """
        Find the operation matching ``name`` and the runtime argument ``shape``.

        An exact shape match wins over a declaration using ``object``.
        """
        exact = self._capabilities.get((name, shape))
        if exact is not None:
            return exact
        for cap in self.candidates(name):
            if cap.accepts(shape):
                return cap
        return None


def _collect(receiver_type: type) -> list[Capability]:
    found: dict[tuple[str, tuple[type, ...]], Capability] = {}
    for klass in reversed(receiver_type.__mro__):
        for attr in vars(klass).values():
            for name, shape, scope in getattr(attr, _DECLARATIONS_ATTR, ()):
                found[(name, shape)] = Capability(name=name, shape=shape, scope=scope, handler=attr)
    return list(found.values())


# ---------------------------------------------------------------------------
# Markup schema (shared with the transcoder path)
# ---------------------------------------------------------------------------


class MarkupSchema:
    """
    Element vocabulary accepted by the markup loader for one builder family.

    It is the union of the (name, arity) pairs declared by every receiver
    type in the family. Scope structure is not checked here.
    """

    def __init__(self, family: Iterable[type]) -> None:
        self.family = tuple(family)
        self._signatures: set[tuple[str, int]] = set()
        for receiver_type in self.family:
            for cap in OperationRegistry.for_type(receiver_type):
                self._signatures.add((cap.name, cap.arity))

    @property
    def names(self) -> set[str]:
        return {name for name, _ in self._signatures}

    def accepts(self, name: str, arity: int) -> bool:
        return (name, arity) in self._signatures

    def arities(self, name: str) -> list[int]:
        return sorted(a for n, a in self._signatures if n == name)
