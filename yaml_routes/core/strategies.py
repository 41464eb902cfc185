"""
strategies.py
=============
The two interchangeable translation strategies behind one interface.

    TranscoderStrategy   document tree → markup → schema-driven loader
    InterpreterStrategy  document tree → step-by-step builder invocation

For any document valid under both, the resulting step signatures are
identical.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from .builders import REST_FAMILY, ROUTE_FAMILY, RestBuilder, RouteBuilder
from .document_parser import DEFAULT_ATTRIBUTE_KEY
from .exceptions import RouteLoadError, TranslationError
from .interpreter import StepInterpreter
from .markup_loader import MarkupLoader, REST_ELEMENT, ROUTE_ELEMENT
from .models import RestDefinition, RouteDefinition
from .registry import MarkupSchema
from .transcoder import DEFAULT_NAMESPACE, DEFAULT_ROOT_ELEMENT, StructuralTranscoder
from .tree import Mapping, Node, Sequence

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Diagnostic:
    """Why a document, route or rest contributed nothing to the model."""

    scope: str                      # "document" | "route" | "rest"
    error: RouteLoadError
    document_index: int | None = None
    index: int | None = None        # route/rest position inside the document

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def error_type(self) -> str:
        return type(self.error).__name__


@dataclass
class Translation:
    """Everything one document contributed."""

    routes: list[RouteDefinition] = field(default_factory=list)
    rests: list[RestDefinition] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class TranslationStrategy(ABC):
    """Translates one parsed document into route/rest definitions."""

    name: str = ""

    @abstractmethod
    def translate(self, node: Node, *, document_index: int | None = None) -> Translation:
        """
        Raises
        ------
        TranslationError
            When the whole document has to be discarded. Failures scoped to a
            single route/rest are reported in ``Translation.diagnostics``.
        """


# ---------------------------------------------------------------------------
# Strategy A: structural transcoder
# ---------------------------------------------------------------------------


class TranscoderStrategy(TranslationStrategy):
    name = "transcoder"

    def __init__(
        self,
        *,
        root_element: str = DEFAULT_ROOT_ELEMENT,
        namespace: str = DEFAULT_NAMESPACE,
        attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
        route_key: str = ROUTE_ELEMENT,
        rest_key: str = REST_ELEMENT,
        route_family: tuple[type, ...] = ROUTE_FAMILY,
        rest_family: tuple[type, ...] = REST_FAMILY,
    ) -> None:
        self.transcoder = StructuralTranscoder(root_element=root_element, namespace=namespace)
        self.loader = MarkupLoader(
            MarkupSchema(route_family),
            MarkupSchema(rest_family),
            root_element=root_element,
            namespace=namespace,
            attribute_key=attribute_key,
            route_element=route_key,
            rest_element=rest_key,
        )

    def translate(self, node: Node, *, document_index: int | None = None) -> Translation:
        markup = self.transcoder.to_markup(node)
        routes, rests = self.loader.load(markup, document_index=document_index)
        return Translation(routes=routes, rests=rests)


# ---------------------------------------------------------------------------
# Strategy B: step interpreter
# ---------------------------------------------------------------------------


class InterpreterStrategy(TranslationStrategy):
    """
    Interprets every route/rest entry of a document on its own.

    The factories create the root receivers. A root must offer
    ``build(steps)``, which turns the collapsed chain into its definition.
    """

    name = "interpreter"

    def __init__(
        self,
        *,
        route_key: str = ROUTE_ELEMENT,
        rest_key: str = REST_ELEMENT,
        route_factory: Callable[[], Any] = RouteBuilder,
        rest_factory: Callable[[], Any] = RestBuilder,
    ) -> None:
        self.route_key = route_key
        self.rest_key = rest_key
        self.route_interpreter = StepInterpreter(route_factory, kind="route")
        self.rest_interpreter = StepInterpreter(rest_factory, kind="rest")

    def translate(self, node: Node, *, document_index: int | None = None) -> Translation:
        if isinstance(node, Mapping):
            entries = [node]
        elif isinstance(node, Sequence):
            entries = list(node)
        else:
            raise TranslationError(
                f"document must be a mapping or a sequence, got {type(node).__name__.lower()}",
                document_index=document_index,
            )

        translation = Translation()
        route_index = rest_index = 0

        for entry in entries:
            if not isinstance(entry, Mapping):
                logger.warning(
                    "Document #%s: ignoring top-level item that is not a mapping", document_index
                )
                continue

            for key, value in entry.data_items():
                if key == self.route_key:
                    self._translate_one(
                        self.route_interpreter, value, document_index, route_index, translation
                    )
                    route_index += 1
                elif key == self.rest_key:
                    self._translate_one(
                        self.rest_interpreter, value, document_index, rest_index, translation
                    )
                    rest_index += 1
                else:
                    logger.warning(
                        "Document #%s: ignoring unknown top-level key '%s'", document_index, key
                    )

        return translation

    def _translate_one(
        self,
        interpreter: StepInterpreter,
        steps: Node | None,
        document_index: int | None,
        index: int,
        translation: Translation,
    ) -> None:
        try:
            state = interpreter.interpret(steps, document_index=document_index, route_index=index)
        except TranslationError as exc:
            logger.warning(
                "Document #%s: discarding %s #%d (%s): %s",
                document_index,
                interpreter.kind,
                index,
                type(exc).__name__,
                exc.message,
            )
            translation.diagnostics.append(
                Diagnostic(
                    scope=interpreter.kind, error=exc, document_index=document_index, index=index
                )
            )
            return

        definition = state.root.build(state.steps)
        if isinstance(definition, RestDefinition):
            translation.rests.append(definition)
        else:
            translation.routes.append(definition)
