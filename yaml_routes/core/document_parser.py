"""
document_parser.py
==================
Lazy, multi-document YAML ingestion into generic document trees.

Responsibilities:
    - Split a stream on explicit document boundaries so that one malformed
      document never prevents the following ones from being read.
    - Compose each document with PyYAML (no type construction) so that every
      scalar keeps its source text and mapping order is preserved.
    - Decide attribute bags at parse time: a mapping under the reserved
      attribute key becomes an AttributeBag node.

Author: Route Loader Maintainers
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Union

import yaml

from .exceptions import ParseError
from .tree import AttributeBag, Mapping, Node, Scalar, Sequence

logger = logging.getLogger(__name__)

DEFAULT_ATTRIBUTE_KEY = "attr"

_NULL_TAG = "tag:yaml.org,2002:null"
_MERGE_TAG = "tag:yaml.org,2002:merge"

_DOCUMENT_START_RE = re.compile(r"^---(?:[ \t].*)?$")
_DOCUMENT_END_RE = re.compile(r"^\.\.\.(?:[ \t].*)?$")
_PREAMBLE_RE = re.compile(r"^(?:%.*|#.*|[ \t]*)$")


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedDocument:
    """One successfully parsed document."""

    index: int
    node: Node
    line: int = 1


@dataclass(frozen=True)
class DocumentFailure:
    """One document that could not be parsed; the stream continues after it."""

    index: int
    error: ParseError
    line: int = 1


DocumentResult = Union[ParsedDocument, DocumentFailure]


# ---------------------------------------------------------------------------
# Stream splitting
# ---------------------------------------------------------------------------


def split_documents(text: str) -> Iterator[tuple[str, int]]:
    """
    Split a YAML stream into per-document chunks.

    Yields ``(chunk_text, first_line)`` with 1-based line numbers. A ``---``
    line starts a new document; a ``...`` line ends the current one. Directive
    and comment lines before a ``---`` stay attached to the document that
    follows them.
    """
    chunk: list[str] = []
    start = 1
    ended = False

    for lineno, line in enumerate(text.splitlines(), start=1):
        if _DOCUMENT_START_RE.match(line):
            if chunk and not all(_PREAMBLE_RE.match(c) for c in chunk):
                yield "\n".join(chunk) + "\n", start
                chunk = []
            if not chunk:
                start = lineno
            chunk.append(line)
            ended = False
            continue

        if _DOCUMENT_END_RE.match(line):
            if chunk:
                yield "\n".join(chunk) + "\n", start
            chunk = []
            ended = True
            continue

        if ended:
            # Only directives, comments and blanks may follow a document end marker.
            if _PREAMBLE_RE.match(line):
                continue
            ended = False

        if not chunk:
            start = lineno
        chunk.append(line)

    if chunk:
        yield "\n".join(chunk) + "\n", start


# ---------------------------------------------------------------------------
# Node conversion
# ---------------------------------------------------------------------------


class _TreeBuilder:
    """Converts a composed PyYAML node graph into generic tree nodes."""

    def __init__(self, attribute_key: str, document_index: int | None, first_line: int) -> None:
        self._attribute_key = attribute_key
        self._document_index = document_index
        self._first_line = first_line
        self._active: set[int] = set()

    def _error(self, message: str, node: yaml.Node) -> ParseError:
        line = self._first_line + node.start_mark.line
        return ParseError(
            f"{message} (line {line})", document_index=self._document_index, line=line
        )

    def build(self, node: yaml.Node) -> Node | None:
        if isinstance(node, yaml.ScalarNode):
            if node.tag == _NULL_TAG:
                return None
            return Scalar(node.value)

        if id(node) in self._active:
            raise self._error("recursive alias", node)
        self._active.add(id(node))
        try:
            if isinstance(node, yaml.SequenceNode):
                return Sequence(tuple(self.build(item) for item in node.value))
            if isinstance(node, yaml.MappingNode):
                return self._build_mapping(node)
        finally:
            self._active.discard(id(node))

        raise self._error(f"unsupported YAML node {type(node).__name__}", node)

    def _build_mapping(self, node: yaml.MappingNode) -> Mapping:
        entries: dict[str, Node | None] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise self._error("mapping keys must be scalars", key_node)
            if key_node.tag == _MERGE_TAG:
                raise self._error("merge keys are not supported", key_node)

            key = key_node.value
            if key in entries:
                raise self._error(f"duplicate key '{key}'", key_node)

            if key == self._attribute_key and isinstance(value_node, yaml.MappingNode):
                entries[key] = self._build_attributes(value_node)
            else:
                entries[key] = self.build(value_node)
        return Mapping(entries)

    def _build_attributes(self, node: yaml.MappingNode) -> AttributeBag:
        values: dict[str, str] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise self._error("attribute names must be scalars", key_node)
            if not isinstance(value_node, yaml.ScalarNode):
                raise self._error(
                    f"attribute '{key_node.value}' must have a scalar value", value_node
                )
            if key_node.value in values:
                raise self._error(f"duplicate attribute '{key_node.value}'", key_node)
            values[key_node.value] = "" if value_node.tag == _NULL_TAG else value_node.value
        return AttributeBag(values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_document(
    text: str,
    *,
    attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
    document_index: int | None = None,
    first_line: int = 1,
) -> Node | None:
    """
    Parse exactly one YAML document into a generic tree.

    Returns ``None`` for an empty document.

    Raises
    ------
    ParseError
        If the text is not valid YAML or breaks a tree constraint
        (duplicate or non-scalar keys, structured attribute values).
    """
    try:
        composed = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        line = first_line + mark.line if mark is not None else None
        problem = exc.problem or exc.context or "invalid YAML"
        raise ParseError(
            f"{problem} (line {line})" if line else problem,
            document_index=document_index,
            line=line,
        ) from exc
    except yaml.YAMLError as exc:
        raise ParseError(str(exc), document_index=document_index) from exc

    if composed is None:
        return None
    return _TreeBuilder(attribute_key, document_index, first_line).build(composed)


def parse_documents(
    text: str, *, attribute_key: str = DEFAULT_ATTRIBUTE_KEY
) -> Iterator[DocumentResult]:
    """
    Lazily parse every document of a YAML stream, in source order.

    A malformed document yields a DocumentFailure and parsing continues with
    the next one. Empty documents are skipped and do not consume an index.
    """
    index = 0
    for chunk, first_line in split_documents(text):
        try:
            node = parse_document(
                chunk, attribute_key=attribute_key, document_index=index, first_line=first_line
            )
        except ParseError as exc:
            logger.warning("Skipping malformed YAML document #%d: %s", index, exc.message)
            yield DocumentFailure(index=index, error=exc, line=first_line)
            index += 1
            continue

        if node is None:
            logger.debug("Skipping empty YAML document at line %d", first_line)
            continue

        yield ParsedDocument(index=index, node=node, line=first_line)
        index += 1
