"""
tree.py
=======
Generic document tree shared by both translation strategies.

A document is parsed into a tagged union of four node kinds:

    Scalar        a single string (YAML numbers and booleans keep their source text)
    Sequence      an ordered list of nodes
    Mapping       an ordered str -> node mapping; order encodes stage order
    AttributeBag  a str -> str mapping found under the reserved attribute key

YAML null is represented by the absence of a node (``None``).

The module also classifies a step's value into an ArgumentPayload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Union


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Scalar:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Sequence:
    items: tuple[Node | None, ...] = ()

    def __iter__(self) -> Iterator[Node | None]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class AttributeBag:
    """Entries that become attributes of the enclosing element, not children."""

    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Mapping:
    entries: dict[str, Node | None] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> list[str]:
        return list(self.entries)

    def items(self) -> list[tuple[str, Node | None]]:
        return list(self.entries.items())

    def get(self, key: str) -> Node | None:
        return self.entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    @property
    def attributes(self) -> dict[str, str]:
        """Merged attribute bags of this mapping (normally at most one)."""
        merged: dict[str, str] = {}
        for value in self.entries.values():
            if isinstance(value, AttributeBag):
                merged.update(value.values)
        return merged

    def data_items(self) -> list[tuple[str, Node | None]]:
        """Entries that are ordinary data, i.e. not attribute bags."""
        return [(k, v) for k, v in self.entries.items() if not isinstance(v, AttributeBag)]


Node = Union[Scalar, Sequence, Mapping, AttributeBag]


def to_python(node: Node | None) -> Any:
    """Convert a node into plain str / list / dict / None values."""
    if node is None:
        return None
    if isinstance(node, Scalar):
        return node.value
    if isinstance(node, Sequence):
        return [to_python(item) for item in node.items]
    if isinstance(node, AttributeBag):
        return dict(node.values)
    # Attributes come first and empty bags carry nothing, as in the markup form.
    bags = [(k, v) for k, v in node.entries.items() if isinstance(v, AttributeBag) and v.values]
    return {key: to_python(value) for key, value in bags + node.data_items()}


# ---------------------------------------------------------------------------
# Argument payloads
# ---------------------------------------------------------------------------


class PayloadKind(str, Enum):
    ABSENT = "absent"
    SCALAR = "scalar"
    NAMED = "named"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class ArgumentPayload:
    """Arguments of one step, classified from the step entry's value."""

    kind: PayloadKind
    names: tuple[str | None, ...] = ()
    values: tuple[Any, ...] = ()
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def arity(self) -> int:
        return len(self.values)

    @property
    def shape(self) -> tuple[type, ...]:
        """Runtime kind of each positional argument, in order."""
        return tuple(argument_kind(v) for v in self.values)


def argument_kind(value: Any) -> type:
    if value is None:
        return type(None)
    if isinstance(value, dict):
        return dict
    if isinstance(value, list):
        return list
    return str


def classify_payload(value: Node | None) -> ArgumentPayload:
    """
    Classify a step value.

    Absent (no node) → zero arguments; Scalar → one string argument;
    Mapping → named arguments in insertion order. Attribute bags inside a
    Mapping are lifted out as step attributes. A Sequence is passed as a
    single unnamed list argument.
    """
    if value is None:
        return ArgumentPayload(kind=PayloadKind.ABSENT)
    if isinstance(value, Scalar):
        return ArgumentPayload(kind=PayloadKind.SCALAR, names=(None,), values=(value.value,))
    if isinstance(value, Mapping):
        data = value.data_items()
        return ArgumentPayload(
            kind=PayloadKind.NAMED,
            names=tuple(k for k, _ in data),
            values=tuple(to_python(v) for _, v in data),
            attributes=value.attributes,
        )
    if isinstance(value, Sequence):
        return ArgumentPayload(
            kind=PayloadKind.SEQUENCE, names=(None,), values=(to_python(value),)
        )
    raise TypeError(f"attribute bag cannot be a step payload: {value!r}")
