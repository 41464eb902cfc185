"""
exceptions.py
=============
Error hierarchy for YAML route loading.

Three tiers:
    1. ParseError          malformed YAML; scope is one document.
    2. TranslationError    well-formed YAML that cannot become a model;
                           scope is one document (transcoder) or one
                           route/rest (interpreter).
    3. I/O errors          raised by the source itself (OSError) and never
                           wrapped; they abort the whole load.
"""

from __future__ import annotations


class RouteLoadError(Exception):
    """Base class for every non-fatal loading failure."""

    def __init__(self, message: str, *, document_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.document_index = document_index

    def __str__(self) -> str:
        if self.document_index is None:
            return self.message
        return f"document #{self.document_index}: {self.message}"


class ParseError(RouteLoadError, ValueError):
    """The document text is not valid YAML, or violates the tree constraints."""

    def __init__(
        self,
        message: str,
        *,
        document_index: int | None = None,
        line: int | None = None,
    ) -> None:
        super().__init__(message, document_index=document_index)
        self.line = line


class TranslationError(RouteLoadError):
    """A parsed document could not be translated into a route/rest model."""

    def __init__(
        self,
        message: str,
        *,
        document_index: int | None = None,
        route_index: int | None = None,
        step_index: int | None = None,
    ) -> None:
        super().__init__(message, document_index=document_index)
        self.route_index = route_index
        self.step_index = step_index


# ---------------------------------------------------------------------------
# Transcoder (markup) failures
# ---------------------------------------------------------------------------


class SchemaViolation(TranslationError):
    """The generated markup is well-formed but does not fit the route schema."""


class UnmarshalError(TranslationError):
    """The generated markup could not be read back at all."""


# ---------------------------------------------------------------------------
# Interpreter failures
# ---------------------------------------------------------------------------


class AmbiguousStep(TranslationError):
    """A step entry does not have exactly one key."""


class OperationNotFound(TranslationError):
    """No operation on the current receiver matches the step name and shape."""


class ScopeError(TranslationError):
    """A step tried to close a scope when no scope was open."""
