"""yaml_routes — translate declarative YAML route documents into route and rest models."""
from .core import (
    AmbiguousStep,
    OperationNotFound,
    ParseError,
    RestDefinition,
    RestsDefinition,
    RouteDefinition,
    RoutesDefinition,
    SchemaViolation,
    ScopeError,
    StepDefinition,
    TranslationError,
    UnmarshalError,
)
from .loader import LoaderConfig, LoadResult, RoutesLoader, Source

__version__ = "0.1.0"

__all__ = [
    "AmbiguousStep", "OperationNotFound", "ParseError", "SchemaViolation", "ScopeError",
    "TranslationError", "UnmarshalError",
    "RestDefinition", "RestsDefinition", "RouteDefinition", "RoutesDefinition", "StepDefinition",
    "LoaderConfig", "LoadResult", "RoutesLoader", "Source",
]
