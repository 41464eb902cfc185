"""
routes_loader.py
================
Route loading orchestrator.

This module is the single entry point between a host (the routing engine)
and the translation core.

Responsibilities:
    - Read a located source once; I/O failures abort the load.
    - Parse every document of the stream and translate each one with the
      configured strategy, isolating failures to one document (or one
      route/rest for the interpreter).
    - Accumulate a best-effort model and hand routes and rests to the host
      registry in two independent calls.
    - Emit structured load events and log a diagnostic for everything that
      was skipped.

Author: Route Loader Maintainers
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from yaml_routes.core.document_parser import DocumentFailure, parse_documents
from yaml_routes.core.models import ModelAccumulator, RestsDefinition, RoutesDefinition
from yaml_routes.core.strategies import Diagnostic, TranslationStrategy

from .config import LoaderConfig, Source

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Host interface
# ---------------------------------------------------------------------------


class RouteRegistry(Protocol):
    """Registration callbacks of the routing engine."""

    def set_route_collection(self, routes: RoutesDefinition) -> None: ...

    def set_rest_collection(self, rests: RestsDefinition) -> None: ...


# ---------------------------------------------------------------------------
# Event system
# ---------------------------------------------------------------------------


class EventKind(Enum):
    DOCUMENT_LOADED = "document_loaded"
    DOCUMENT_SKIPPED = "document_skipped"
    ROUTE_SKIPPED = "route_skipped"
    LOAD_COMPLETE = "load_complete"


@dataclass(frozen=True)
class LoadEvent:
    """Immutable event emitted by RoutesLoader for subscribers."""

    kind: EventKind
    message: str
    payload: dict = field(default_factory=dict)
    timestamp: float = field(default_factory=time.monotonic)


EventCallback = Callable[[LoadEvent], None]


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class LoadResult:
    """Best-effort outcome of loading one source."""

    source_name: str
    routes: RoutesDefinition
    rests: RestsDefinition
    diagnostics: list[Diagnostic] = field(default_factory=list)
    documents_total: int = 0
    documents_loaded: int = 0

    @property
    def route_count(self) -> int:
        return len(self.routes.routes)

    @property
    def rest_count(self) -> int:
        return len(self.rests.rests)

    @property
    def documents_skipped(self) -> int:
        return self.documents_total - self.documents_loaded

    @property
    def is_complete(self) -> bool:
        """True when nothing was skipped."""
        return not self.diagnostics


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class RoutesLoader:
    """
    Loads YAML route sources into route and rest models.

    Example
    -------
    ::

        loader = RoutesLoader(LoaderConfig(strategy="transcoder"))
        result = loader.load(Source.from_path("routes.yaml"), registry)
        print(result.route_count, [d.message for d in result.diagnostics])

    The loader itself is stateless between calls apart from its subscribers;
    every load builds its own accumulator, trees and receivers.
    """

    def __init__(
        self,
        config: LoaderConfig | None = None,
        strategy: TranslationStrategy | None = None,
    ) -> None:
        self.config = config or LoaderConfig()
        self.strategy = strategy or self.config.create_strategy()
        self._callbacks: list[EventCallback] = []
        logger.debug("RoutesLoader initialised: strategy=%s", self.strategy.name)

    def supported_languages(self) -> list[str]:
        return [self.config.language]

    # ------------------------------------------------------------------
    # Event subscription
    # ------------------------------------------------------------------

    def subscribe(self, callback: EventCallback) -> None:
        """Register a callback to receive LoadEvents."""
        self._callbacks.append(callback)

    def _emit(self, kind: EventKind, message: str, **payload) -> None:
        event = LoadEvent(kind=kind, message=message, payload=payload)
        for cb in self._callbacks:
            try:
                cb(event)
            except Exception as exc:
                logger.warning("Load event callback raised: %s", exc)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, source: Source, registry: RouteRegistry | None = None) -> LoadResult:
        """
        Load every route and rest of ``source``.

        Never raises for malformed documents or untranslatable routes; those
        are skipped and reported in ``LoadResult.diagnostics``. Raises
        ``OSError`` if the source cannot be read and ``ValueError`` if its
        language is not supported.
        """
        if source.language not in self.supported_languages():
            raise ValueError(
                f"Unsupported source language '{source.language}' for {source.name}; "
                f"supported: {self.supported_languages()}"
            )

        text = source.read()
        result = self.load_text(text, name=source.name)

        if registry is not None:
            registry.set_route_collection(result.routes)
            registry.set_rest_collection(result.rests)
        return result

    def load_text(self, text: str, name: str = "<inline>") -> LoadResult:
        logger.info("Loading routes from %s with the %s strategy.", name, self.strategy.name)

        accumulator = ModelAccumulator()
        diagnostics: list[Diagnostic] = []
        total = loaded = 0

        for document in parse_documents(text, attribute_key=self.config.attribute_key):
            total += 1

            if isinstance(document, DocumentFailure):
                diagnostics.append(
                    Diagnostic(scope="document", error=document.error, document_index=document.index)
                )
                self._emit(
                    EventKind.DOCUMENT_SKIPPED,
                    f"Document #{document.index} skipped: {document.error.message}",
                    document_index=document.index,
                    error=document.error.message,
                )
                continue

            label = f"document #{document.index} of {name}"
            with accumulator.transaction(label) as staging:
                translation = self.strategy.translate(
                    document.node, document_index=document.index
                )
                for route in translation.routes:
                    staging.add(route)
                for rest in translation.rests:
                    staging.add(rest)

            if staging.error is not None:
                diagnostics.append(
                    Diagnostic(scope="document", error=staging.error, document_index=document.index)
                )
                self._emit(
                    EventKind.DOCUMENT_SKIPPED,
                    f"Document #{document.index} skipped: {staging.error.message}",
                    document_index=document.index,
                    error=staging.error.message,
                )
                continue

            loaded += 1
            for diagnostic in translation.diagnostics:
                diagnostics.append(diagnostic)
                self._emit(
                    EventKind.ROUTE_SKIPPED,
                    f"{diagnostic.scope} #{diagnostic.index} of document "
                    f"#{document.index} skipped: {diagnostic.message}",
                    document_index=document.index,
                    index=diagnostic.index,
                    scope=diagnostic.scope,
                    error=diagnostic.error.message,
                )
            self._emit(
                EventKind.DOCUMENT_LOADED,
                f"Document #{document.index} loaded: "
                f"{len(staging.routes)} routes, {len(staging.rests)} rests.",
                document_index=document.index,
                routes=len(staging.routes),
                rests=len(staging.rests),
            )

        routes = accumulator.routes()
        rests = accumulator.rests()
        logger.debug("Loaded %d routes from %s", len(routes.routes), name)
        logger.debug("Loaded %d rests from %s", len(rests.rests), name)
        logger.info(
            "Finished loading %s: %d routes, %d rests, %d of %d documents loaded, %d skipped item(s).",
            name,
            len(routes.routes),
            len(rests.rests),
            loaded,
            total,
            len(diagnostics),
        )

        result = LoadResult(
            source_name=name,
            routes=routes,
            rests=rests,
            diagnostics=diagnostics,
            documents_total=total,
            documents_loaded=loaded,
        )
        self._emit(
            EventKind.LOAD_COMPLETE,
            f"Loaded {result.route_count} routes and {result.rest_count} rests from {name}.",
            routes=result.route_count,
            rests=result.rest_count,
            skipped=len(diagnostics),
        )
        return result
