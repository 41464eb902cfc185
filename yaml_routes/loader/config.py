"""
config.py
=========
Loader configuration and route sources.

``LoaderConfig`` is immutable so that a single instance can be shared by
concurrent loads. ``Source`` stands for an already-located document; reading
it is the only I/O the loader performs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from yaml_routes.core.document_parser import DEFAULT_ATTRIBUTE_KEY
from yaml_routes.core.markup_loader import REST_ELEMENT, ROUTE_ELEMENT
from yaml_routes.core.strategies import (
    InterpreterStrategy,
    TranscoderStrategy,
    TranslationStrategy,
)
from yaml_routes.core.transcoder import DEFAULT_NAMESPACE, DEFAULT_ROOT_ELEMENT

logger = logging.getLogger(__name__)

YAML_LANGUAGE = "yaml"
_YAML_SUFFIXES = {".yaml", ".yml"}

STRATEGIES = {
    InterpreterStrategy.name: InterpreterStrategy,
    TranscoderStrategy.name: TranscoderStrategy,
}


@dataclass(frozen=True)
class LoaderConfig:
    """Translation settings, shared read-only across loads."""

    strategy: str = InterpreterStrategy.name
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY
    route_key: str = ROUTE_ELEMENT
    rest_key: str = REST_ELEMENT
    root_element: str = DEFAULT_ROOT_ELEMENT
    namespace: str = DEFAULT_NAMESPACE
    language: str = YAML_LANGUAGE

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown translation strategy '{self.strategy}'. "
                f"Available: {', '.join(sorted(STRATEGIES))}"
            )
        if not self.attribute_key.strip():
            raise ValueError("attribute_key must not be blank")

    def with_strategy(self, strategy: str) -> LoaderConfig:
        return replace(self, strategy=strategy)

    def create_strategy(self) -> TranslationStrategy:
        if self.strategy == TranscoderStrategy.name:
            return TranscoderStrategy(
                root_element=self.root_element,
                namespace=self.namespace,
                attribute_key=self.attribute_key,
                route_key=self.route_key,
                rest_key=self.rest_key,
            )
        return InterpreterStrategy(route_key=self.route_key, rest_key=self.rest_key)


@dataclass(frozen=True)
class Source:
    """
    A located route document.

    Either ``content`` is given inline, or ``location`` points to a file that
    is read on demand. Read failures (``OSError``) are not caught anywhere in
    the loader: they abort the load.
    """

    name: str
    location: Path | None = None
    content: str | None = None
    language: str = YAML_LANGUAGE

    @classmethod
    def from_path(cls, path: str | Path) -> Source:
        path = Path(path)
        language = YAML_LANGUAGE if path.suffix.lower() in _YAML_SUFFIXES else path.suffix.lstrip(".")
        return cls(name=str(path), location=path, language=language)

    @classmethod
    def from_text(cls, content: str, name: str = "<inline>") -> Source:
        return cls(name=name, content=content)

    def read(self) -> str:
        if self.content is not None:
            return self.content
        if self.location is None:
            raise ValueError(f"Source '{self.name}' has neither content nor a location")
        logger.debug("Reading route source %s", self.location)
        return self.location.read_text(encoding="utf-8")
