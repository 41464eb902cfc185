"""
transcoder.py
=============
Structural transcoder: rewrites a generic document tree into an attributed
element tree for the schema-driven markup loader.

Mapping rules (recursive descent):
    - AttributeBag entry  → attributes on the *enclosing* element
    - Mapping value       → child element named by the key, recurse
    - Scalar value        → child element with the scalar as text
    - Absent value        → empty child element
    - Sequence value      → child element named by the key whose content is
                            each item in order

Sequence items are written in one of two ways. At the step-list level (the
root and the route/rest elements directly under it) mapping items contribute
their entries to the enclosing element, so each step becomes one child.
Everywhere else every item is wrapped in its own <value> element, which keeps
lists of mappings distinct from a single mapping.

The result is wrapped in one root element carrying a fixed namespace
declaration.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from .tree import AttributeBag, Mapping, Node, Scalar, Sequence

logger = logging.getLogger(__name__)

DEFAULT_ROOT_ELEMENT = "routes"
DEFAULT_NAMESPACE = "http://camel.apache.org/schema/spring"
VALUE_ELEMENT = "value"

# Root is depth 0, route/rest elements are depth 1.
_STEP_LIST_DEPTH = 1


class StructuralTranscoder:
    """Converts one document tree into namespaced markup."""

    def __init__(
        self,
        root_element: str = DEFAULT_ROOT_ELEMENT,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.root_element = root_element
        self.namespace = namespace

    def transcode(self, node: Node | None) -> ET.Element:
        root = ET.Element(self.root_element)
        root.set("xmlns", self.namespace)
        self._write_content(root, node, 0)
        return root

    def to_markup(self, node: Node | None) -> bytes:
        """Serialise ``transcode(node)`` as a UTF-8 XML document."""
        markup = ET.tostring(self.transcode(node), encoding="utf-8", xml_declaration=True)
        # A raw carriage return would be normalised to a line feed by the parser.
        markup = markup.replace(b"\r", b"&#13;")
        logger.debug("Transcoded document into %d bytes of markup", len(markup))
        return markup

    # ------------------------------------------------------------------
    # Recursive descent
    # ------------------------------------------------------------------

    def _write_mapping(self, element: ET.Element, mapping: Mapping, depth: int) -> None:
        for key, value in mapping.items():
            if isinstance(value, AttributeBag):
                _set_attributes(element, value)
                continue
            child = ET.SubElement(element, key)
            self._write_content(child, value, depth + 1)

    def _write_content(self, element: ET.Element, value: Node | None, depth: int) -> None:
        if value is None:
            return
        if isinstance(value, Scalar):
            element.text = value.value
        elif isinstance(value, Mapping):
            self._write_mapping(element, value, depth)
        elif isinstance(value, Sequence):
            for item in value:
                if isinstance(item, Mapping) and depth <= _STEP_LIST_DEPTH:
                    self._write_mapping(element, item, depth)
                else:
                    self._write_content(ET.SubElement(element, VALUE_ELEMENT), item, depth + 1)
        elif isinstance(value, AttributeBag):
            _set_attributes(element, value)


def _set_attributes(element: ET.Element, bag: AttributeBag) -> None:
    for name, attr_value in bag.values.items():
        element.set(name, str(attr_value))
