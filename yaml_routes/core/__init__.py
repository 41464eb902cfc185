"""core — document parsing, the tree model and both translation strategies."""
from .document_parser import DocumentFailure, ParsedDocument, parse_document, parse_documents
from .exceptions import (
    AmbiguousStep,
    OperationNotFound,
    ParseError,
    RouteLoadError,
    SchemaViolation,
    ScopeError,
    TranslationError,
    UnmarshalError,
)
from .models import (
    ModelAccumulator,
    RestDefinition,
    RestsDefinition,
    RouteDefinition,
    RoutesDefinition,
    StepArgument,
    StepDefinition,
)
from .registry import MarkupSchema, OperationRegistry, ScopeEffect, operation
from .strategies import (
    Diagnostic,
    InterpreterStrategy,
    TranscoderStrategy,
    Translation,
    TranslationStrategy,
)

__all__ = [
    "DocumentFailure", "ParsedDocument", "parse_document", "parse_documents",
    "AmbiguousStep", "OperationNotFound", "ParseError", "RouteLoadError", "SchemaViolation",
    "ScopeError", "TranslationError", "UnmarshalError",
    "ModelAccumulator", "RestDefinition", "RestsDefinition", "RouteDefinition",
    "RoutesDefinition", "StepArgument", "StepDefinition",
    "MarkupSchema", "OperationRegistry", "ScopeEffect", "operation",
    "Diagnostic", "InterpreterStrategy", "TranscoderStrategy", "Translation", "TranslationStrategy",
]
