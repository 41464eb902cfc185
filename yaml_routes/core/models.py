"""
models.py
=========
Route and rest pipeline models handed to the routing engine.

Both translation strategies produce the same models: an ordered list of
steps per route/rest, each step carrying its operation name, its argument
bindings and its attributes. Derived properties (route id, input uri, rest
path, verbs) are read from the steps and attributes so that neither strategy
has to compute them on its own.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Union

from pydantic import BaseModel, Field

from .exceptions import ParseError, RouteLoadError, TranslationError

logger = logging.getLogger(__name__)

ROUTE_INPUT_OPERATIONS = ("from", "start")
HTTP_VERBS = ("get", "post", "put", "delete", "patch", "head")


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class StepArgument(BaseModel):
    """One bound argument. Unnamed for scalar and list payloads."""

    name: str | None = None
    value: Any = None

    model_config = {"frozen": True}


class StepDefinition(BaseModel):
    """A single applied operation, in document order."""

    operation: str = Field(..., min_length=1)
    arguments: list[StepArgument] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)

    @property
    def values(self) -> list[Any]:
        return [a.value for a in self.arguments]

    @property
    def signature(self) -> tuple[str, tuple[tuple[str | None, Any], ...]]:
        """Operation plus argument bindings; equal across strategies."""
        return self.operation, tuple((a.name, _freeze(a.value)) for a in self.arguments)

    def first_value(self) -> Any:
        return self.arguments[0].value if self.arguments else None

    def __str__(self) -> str:
        rendered = ", ".join(
            f"{a.name}={a.value!r}" if a.name else repr(a.value) for a in self.arguments
        )
        return f"{self.operation}({rendered})"


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple((k, _freeze(v)) for k, v in value.items())
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


# ---------------------------------------------------------------------------
# Route / rest definitions
# ---------------------------------------------------------------------------


class RouteDefinition(BaseModel):
    attributes: dict[str, str] = Field(default_factory=dict)
    steps: list[StepDefinition] = Field(default_factory=list)

    @property
    def route_id(self) -> str | None:
        for step in reversed(self.steps):
            if step.operation == "routeId" and step.arguments:
                return str(step.first_value())
        return self.attributes.get("id")

    @property
    def input_uri(self) -> str | None:
        for step in self.steps:
            if step.operation in ROUTE_INPUT_OPERATIONS:
                return step.first_value()
        return self.attributes.get("uri")

    @property
    def description(self) -> str | None:
        for step in reversed(self.steps):
            if step.operation == "description" and step.arguments:
                return str(step.first_value())
        return self.attributes.get("description")

    @property
    def operations(self) -> list[str]:
        return [s.operation for s in self.steps]


class RestDefinition(BaseModel):
    attributes: dict[str, str] = Field(default_factory=dict)
    steps: list[StepDefinition] = Field(default_factory=list)

    @property
    def path(self) -> str | None:
        for step in reversed(self.steps):
            if step.operation == "path" and step.arguments:
                return str(step.first_value())
        return self.attributes.get("path")

    @property
    def verbs(self) -> list[StepDefinition]:
        return [s for s in self.steps if s.operation in HTTP_VERBS]

    @property
    def operations(self) -> list[str]:
        return [s.operation for s in self.steps]


class RoutesDefinition(BaseModel):
    routes: list[RouteDefinition] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.routes)


class RestsDefinition(BaseModel):
    rests: list[RestDefinition] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rests)


AnyDefinition = Union[RouteDefinition, RestDefinition]


# ---------------------------------------------------------------------------
# Append-only accumulation
# ---------------------------------------------------------------------------


class _Staging:
    """Definitions produced inside one transaction, committed together."""

    def __init__(self) -> None:
        self.routes: list[RouteDefinition] = []
        self.rests: list[RestDefinition] = []
        self.error: RouteLoadError | None = None

    def add(self, definition: AnyDefinition) -> None:
        if isinstance(definition, RouteDefinition):
            self.routes.append(definition)
        else:
            self.rests.append(definition)


class ModelAccumulator:
    """
    Best-effort collector for the models of one source.

    Definitions are only ever appended. Each translation attempt runs inside
    ``transaction()``; on a parse or translation failure the staged
    definitions are dropped and the failure is logged, leaving everything
    committed before it untouched.
    """

    def __init__(self) -> None:
        self._routes: list[RouteDefinition] = []
        self._rests: list[RestDefinition] = []
        self.failures: list[tuple[str, RouteLoadError]] = []

    @contextmanager
    def transaction(self, label: str) -> Iterator[_Staging]:
        staging = _Staging()
        try:
            yield staging
        except (ParseError, TranslationError) as exc:
            logger.warning("Discarding %s: %s", label, exc)
            staging.error = exc
            self.failures.append((label, exc))
            return
        except Exception as exc:
            logger.error("Unexpected failure while translating %s: %s", label, exc, exc_info=True)
            staging.error = TranslationError(f"unexpected error: {exc}")
            self.failures.append((label, staging.error))
            return

        self._routes.extend(staging.routes)
        self._rests.extend(staging.rests)
        logger.debug(
            "Committed %s: %d routes, %d rests", label, len(staging.routes), len(staging.rests)
        )

    @property
    def route_count(self) -> int:
        return len(self._routes)

    @property
    def rest_count(self) -> int:
        return len(self._rests)

    def routes(self) -> RoutesDefinition:
        return RoutesDefinition(routes=list(self._routes))

    def rests(self) -> RestsDefinition:
        return RestsDefinition(rests=list(self._rests))
