"""
interpreter.py
==============
Direct step interpreter: walks a route's step list and invokes each step on a
live builder receiver, without an intermediate markup form.

Per step:
    1. The step entry's only key is the operation name.
    2. The entry's value is classified into an argument payload.
    3. (name, argument shape) is resolved on the current receiver's registry.
    4. The operation is invoked; its return value is the next receiver, and its
       declared scope effect is applied to an explicit scope stack.

Any failure aborts the route being interpreted; the caller discards it.

Author: Route Loader Maintainers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .exceptions import AmbiguousStep, OperationNotFound, ScopeError, TranslationError
from .models import StepArgument, StepDefinition
from .registry import Capability, OperationRegistry, ScopeEffect
from .tree import AttributeBag, Mapping, Node, Sequence, classify_payload

logger = logging.getLogger(__name__)


@dataclass
class ChainState:
    """Mutable state of one in-flight translation. Never shared."""

    root: Any
    receiver: Any
    stack: list[Any] = field(default_factory=list)
    steps: list[StepDefinition] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.stack)


class StepInterpreter:
    """
    Interprets step sequences against receivers produced by ``root_factory``.

    Parameters
    ----------
    root_factory:
        Creates the fresh root receiver for each route (e.g. ``RouteBuilder``).
    kind:
        Label used in log and error messages ("route" or "rest").
    """

    def __init__(self, root_factory: Callable[[], Any], kind: str = "route") -> None:
        self.root_factory = root_factory
        self.kind = kind

    def interpret(
        self,
        steps: Node | None,
        *,
        document_index: int | None = None,
        route_index: int | None = None,
    ) -> ChainState:
        """
        Run every step of one route/rest and return the final chain state.

        Raises
        ------
        TranslationError
            (AmbiguousStep, OperationNotFound, ScopeError or a wrapped handler
            failure) on the first step that cannot be applied.
        """
        context = {"document_index": document_index, "route_index": route_index}

        if not isinstance(steps, Sequence):
            raise TranslationError(
                f"{self.kind} must be a sequence of steps, got {_describe(steps)}", **context
            )

        root = self.root_factory()
        state = ChainState(root=root, receiver=root)

        for step_index, entry in enumerate(steps):
            name, value = self._step_entry(entry, step_index, context)
            payload = classify_payload(value)
            capability = self._resolve(state, name, payload.shape, step_index, context)
            self._invoke(state, capability, payload.values, step_index, context)

            state.steps.append(
                StepDefinition(
                    operation=name,
                    arguments=[
                        StepArgument(name=n, value=v) for n, v in zip(payload.names, payload.values)
                    ],
                    attributes=payload.attributes,
                )
            )
            logger.debug(
                "%s step %d: %s → %s (depth %d)",
                self.kind,
                step_index,
                state.steps[-1],
                type(state.receiver).__name__,
                state.depth,
            )

        if state.stack:
            logger.debug(
                "Closing %d open scope(s) at the end of %s #%s", state.depth, self.kind, route_index
            )
            state.stack.clear()
        state.receiver = root
        return state

    # ------------------------------------------------------------------
    # Step handling
    # ------------------------------------------------------------------

    def _step_entry(
        self, entry: Node | None, step_index: int, context: dict
    ) -> tuple[str, Node | None]:
        if not isinstance(entry, Mapping):
            raise AmbiguousStep(
                f"step {step_index} must be a single-key mapping, got {_describe(entry)}",
                step_index=step_index,
                **context,
            )
        if len(entry) != 1:
            raise AmbiguousStep(
                f"step {step_index} has {len(entry)} keys {entry.keys()}; expected exactly one",
                step_index=step_index,
                **context,
            )
        name, value = entry.items()[0]
        if isinstance(value, AttributeBag):
            raise AmbiguousStep(
                f"step {step_index} only holds attributes '{name}' and names no operation",
                step_index=step_index,
                **context,
            )
        return name, value

    def _resolve(
        self,
        state: ChainState,
        name: str,
        shape: tuple[type, ...],
        step_index: int,
        context: dict,
    ) -> Capability:
        while True:
            registry = OperationRegistry.for_type(type(state.receiver))
            capability = registry.resolve(name, shape)
            if capability is None:
                available = ", ".join(c.describe() for c in registry.candidates(name))
                raise OperationNotFound(
                    f"step {step_index}: no operation {name}"
                    f"({', '.join(t.__name__ for t in shape)}) on "
                    f"{type(state.receiver).__name__}"
                    + (f" (declared: {available})" if available else ""),
                    step_index=step_index,
                    **context,
                )
            if capability.scope is not ScopeEffect.HANDOFF:
                return capability

            if not state.stack:
                raise ScopeError(
                    f"step {step_index}: '{name}' closes a scope but none is open",
                    step_index=step_index,
                    **context,
                )
            state.receiver = state.stack.pop()

    def _invoke(
        self,
        state: ChainState,
        capability: Capability,
        values: tuple[Any, ...],
        step_index: int,
        context: dict,
    ) -> None:
        if capability.scope is ScopeEffect.CLOSE and not state.stack:
            raise ScopeError(
                f"step {step_index}: '{capability.name}' closes a scope but none is open",
                step_index=step_index,
                **context,
            )

        try:
            result = capability.invoke(state.receiver, values)
        except TranslationError:
            raise
        except Exception as exc:
            raise TranslationError(
                f"step {step_index}: {capability.describe()} failed: {exc}",
                step_index=step_index,
                **context,
            ) from exc

        if capability.scope is ScopeEffect.CLOSE:
            state.receiver = state.stack.pop()
            return

        if result is None:
            raise TranslationError(
                f"step {step_index}: {capability.describe()} returned no receiver",
                step_index=step_index,
                **context,
            )

        if capability.scope is ScopeEffect.OPEN:
            state.stack.append(state.receiver)
        state.receiver = result


def _describe(node: Node | None) -> str:
    if node is None:
        return "nothing"
    return type(node).__name__.lower()
