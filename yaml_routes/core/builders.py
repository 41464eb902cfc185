"""
builders.py
===========
Fluent builder receivers for route and rest definitions.

Each receiver type declares its capability set with ``@operation``; the step
interpreter resolves every step against the receiver returned by the previous
step. Receivers describe which operations are legal where (a ``when`` only
inside a ``choice``, an HTTP verb's target only inside that verb) and track
the little state that this requires. The steps themselves are recorded by the
interpreter.

Scope layout
------------
Route family::

    RouteBuilder --from/start--> ProcessorScope
    ProcessorScope --filter/split (open)--> ProcessorScope
    ProcessorScope --choice (open)--> ChoiceScope --when/otherwise (open)--> WhenScope

Rest family::

    RestBuilder --get/post/... (open)--> VerbScope
"""

from __future__ import annotations

import logging

from .models import RestDefinition, RouteDefinition, StepDefinition
from .registry import ScopeEffect, operation

logger = logging.getLogger(__name__)

OPEN = ScopeEffect.OPEN
CLOSE = ScopeEffect.CLOSE
HANDOFF = ScopeEffect.HANDOFF


# ---------------------------------------------------------------------------
# Route family
# ---------------------------------------------------------------------------


class RouteBuilder:
    """Root receiver: a fresh one is created for every route."""

    def __init__(self) -> None:
        self.route_id: str | None = None

    def build(self, steps: list[StepDefinition]) -> RouteDefinition:
        """Collapse the finished chain into the route definition."""
        attributes = {"id": self.route_id} if self.route_id is not None else {}
        return RouteDefinition(attributes=attributes, steps=steps)

    @operation("from", str)
    @operation("start", str)
    def from_(self, _uri: str) -> ProcessorScope:
        return ProcessorScope(self)

    @operation("routeId", str)
    def set_route_id(self, route_id: str) -> RouteBuilder:
        self.route_id = route_id
        return self

    @operation("description", str)
    def description(self, text: str) -> RouteBuilder:
        return self


class ProcessorScope:
    """Processor chain of a route or of a nested block."""

    def __init__(self, route: RouteBuilder) -> None:
        self.route = route

    @operation("to", str)
    @operation("to", list)
    @operation("toD", str)
    @operation("wireTap", str)
    @operation("enrich", str)
    def endpoint(self, _uri) -> ProcessorScope:
        return self

    @operation("transform", str)
    @operation("transform", dict)
    @operation("setBody", str)
    @operation("setBody", dict)
    @operation("convertBodyTo", str)
    @operation("removeHeader", str)
    @operation("log", str)
    @operation("process", str)
    @operation("bean", str)
    @operation("delay", str)
    @operation("marshal", object)
    @operation("unmarshal", object)
    @operation("description", str)
    def processor(self, _argument) -> ProcessorScope:
        return self

    @operation("setHeader", str, str)
    @operation("setHeader", str, dict)
    @operation("log", str, str)
    @operation("bean", str, str)
    def processor_pair(self, _first, _second) -> ProcessorScope:
        return self

    @operation("stop")
    def stop(self) -> ProcessorScope:
        return self

    @operation("routeId", str)
    def set_route_id(self, route_id: str) -> ProcessorScope:
        self.route.route_id = route_id
        return self

    @operation("filter", str, scope=OPEN)
    @operation("filter", dict, scope=OPEN)
    @operation("split", str, scope=OPEN)
    @operation("split", dict, scope=OPEN)
    def block(self, _expression) -> ProcessorScope:
        return ProcessorScope(self.route)

    @operation("choice", scope=OPEN)
    def choice(self) -> ChoiceScope:
        return ChoiceScope(self.route)

    @operation("end", scope=CLOSE)
    def end(self) -> None:
        return None


class ChoiceScope:
    """Content-based router: a series of ``when`` blocks and one ``otherwise``."""

    def __init__(self, route: RouteBuilder) -> None:
        self.route = route
        self.when_count = 0
        self.has_otherwise = False

    @operation("when", str, scope=OPEN)
    @operation("when", dict, scope=OPEN)
    def when(self, _predicate) -> WhenScope:
        if self.has_otherwise:
            raise ValueError("'when' cannot follow 'otherwise' in the same choice")
        self.when_count += 1
        return WhenScope(self)

    @operation("otherwise", scope=OPEN)
    def otherwise(self) -> WhenScope:
        if self.has_otherwise:
            raise ValueError("a choice can only have one 'otherwise'")
        if not self.when_count:
            raise ValueError("'otherwise' requires at least one 'when'")
        self.has_otherwise = True
        return WhenScope(self)

    @operation("end", scope=CLOSE)
    def end(self) -> None:
        return None


class WhenScope(ProcessorScope):
    """
    Body of a ``when``/``otherwise`` block.

    A following ``when``/``otherwise`` closes this body and continues on the
    choice; ``end`` closes the body and then the choice itself.
    """

    def __init__(self, choice: ChoiceScope) -> None:
        super().__init__(choice.route)
        self.choice = choice

    @operation("when", str, scope=HANDOFF)
    @operation("when", dict, scope=HANDOFF)
    @operation("otherwise", scope=HANDOFF)
    @operation("end", scope=HANDOFF)
    def handoff(self, *_args) -> None:
        return None


ROUTE_FAMILY: tuple[type, ...] = (RouteBuilder, ProcessorScope, ChoiceScope, WhenScope)


# ---------------------------------------------------------------------------
# Rest family
# ---------------------------------------------------------------------------


class RestBuilder:
    """Root receiver: a fresh one is created for every rest definition."""

    def __init__(self) -> None:
        self.path: str | None = None

    def build(self, steps: list[StepDefinition]) -> RestDefinition:
        """Collapse the finished chain into the rest definition."""
        attributes = {"path": self.path} if self.path is not None else {}
        return RestDefinition(attributes=attributes, steps=steps)

    @operation("path", str)
    def set_path(self, path: str) -> RestBuilder:
        self.path = path
        return self

    @operation("consumes", str)
    @operation("produces", str)
    @operation("description", str)
    def option(self, _value: str) -> RestBuilder:
        return self

    @operation("get", scope=OPEN)
    @operation("get", str, scope=OPEN)
    @operation("post", scope=OPEN)
    @operation("post", str, scope=OPEN)
    @operation("put", scope=OPEN)
    @operation("put", str, scope=OPEN)
    @operation("delete", scope=OPEN)
    @operation("delete", str, scope=OPEN)
    @operation("patch", scope=OPEN)
    @operation("patch", str, scope=OPEN)
    @operation("head", scope=OPEN)
    @operation("head", str, scope=OPEN)
    def verb(self, uri: str | None = None) -> VerbScope:
        return VerbScope(self, uri)


class VerbScope:
    """One HTTP verb of a rest definition and where it is routed to."""

    def __init__(self, rest: RestBuilder, uri: str | None) -> None:
        self.rest = rest
        self.uri = uri
        self.target: str | None = None

    @operation("to", str)
    @operation("toD", str)
    def to(self, uri: str) -> VerbScope:
        if self.target is not None:
            raise ValueError(f"verb '{self.uri or '/'}' is already routed to '{self.target}'")
        self.target = uri
        return self

    @operation("consumes", str)
    @operation("produces", str)
    @operation("description", str)
    @operation("param", str, str)
    @operation("param", dict)
    def option(self, *_values) -> VerbScope:
        return self

    @operation("end", scope=CLOSE)
    def end(self) -> None:
        return None

    @operation("get", scope=HANDOFF)
    @operation("get", str, scope=HANDOFF)
    @operation("post", scope=HANDOFF)
    @operation("post", str, scope=HANDOFF)
    @operation("put", scope=HANDOFF)
    @operation("put", str, scope=HANDOFF)
    @operation("delete", scope=HANDOFF)
    @operation("delete", str, scope=HANDOFF)
    @operation("patch", scope=HANDOFF)
    @operation("patch", str, scope=HANDOFF)
    @operation("head", scope=HANDOFF)
    @operation("head", str, scope=HANDOFF)
    def next_verb(self, *_args) -> None:
        return None


REST_FAMILY: tuple[type, ...] = (RestBuilder, VerbScope)
