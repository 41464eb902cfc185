"""
markup_loader.py
================
Schema-driven loader that unmarshals transcoded markup into route and rest
models.

Expected layout::

    <routes xmlns="http://camel.apache.org/schema/spring">
        <route id="...">                 route attributes
            <from>direct:a</from>        step with one unnamed argument
            <setHeader>                  step with named arguments
                <name>x</name>
                <constant>1</constant>
            </setHeader>
            <stop/>                      step without arguments
        </route>
        <rest path="/api"> ... </rest>
    </routes>

The element vocabulary is the ``MarkupSchema`` of each builder family, so the
markup path and the interpreter accept the same operations.

Author: Route Loader Maintainers
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

from .document_parser import DEFAULT_ATTRIBUTE_KEY
from .exceptions import SchemaViolation, UnmarshalError
from .models import RestDefinition, RouteDefinition, StepArgument, StepDefinition
from .registry import MarkupSchema
from .transcoder import DEFAULT_NAMESPACE, DEFAULT_ROOT_ELEMENT, VALUE_ELEMENT

logger = logging.getLogger(__name__)

ROUTE_ELEMENT = "route"
REST_ELEMENT = "rest"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _has_text(text: str | None) -> bool:
    return bool(text and text.strip())


class MarkupLoader:
    """
    Unmarshals one markup document into route and rest definitions.

    Failure scope is the whole document: any violation raises and nothing
    from the document is kept. The loader holds no per-document state and
    can be shared.
    """

    def __init__(
        self,
        route_schema: MarkupSchema,
        rest_schema: MarkupSchema,
        *,
        root_element: str = DEFAULT_ROOT_ELEMENT,
        namespace: str = DEFAULT_NAMESPACE,
        attribute_key: str = DEFAULT_ATTRIBUTE_KEY,
        route_element: str = ROUTE_ELEMENT,
        rest_element: str = REST_ELEMENT,
    ) -> None:
        self.route_schema = route_schema
        self.rest_schema = rest_schema
        self.route_element = route_element
        self.rest_element = rest_element
        self.root_element = root_element
        self.namespace = namespace
        self.attribute_key = attribute_key

    def load(
        self, markup: bytes | str, *, document_index: int | None = None
    ) -> tuple[list[RouteDefinition], list[RestDefinition]]:
        """
        Raises
        ------
        UnmarshalError
            If the markup is not well-formed.
        SchemaViolation
            If the markup does not fit the route/rest schema.
        """
        try:
            root = ET.fromstring(markup)
        except ET.ParseError as exc:
            raise UnmarshalError(
                f"unable to read markup: {exc}", document_index=document_index
            ) from exc

        reader = _DocumentReader(self.attribute_key, document_index)
        expected = f"{{{self.namespace}}}{self.root_element}"
        if root.tag != expected:
            raise reader.violation(f"root element must be {expected}, got {root.tag}")
        if root.attrib:
            raise reader.violation(f"unexpected root attributes {sorted(root.attrib)}")
        if _has_text(root.text):
            raise reader.violation("root element cannot hold text")

        routes: list[RouteDefinition] = []
        rests: list[RestDefinition] = []
        for child in root:
            name = _local(child.tag)
            if name == self.route_element:
                routes.append(
                    RouteDefinition(
                        attributes=dict(child.attrib),
                        steps=reader.read_steps(child, self.route_schema),
                    )
                )
            elif name == self.rest_element:
                rests.append(
                    RestDefinition(
                        attributes=dict(child.attrib),
                        steps=reader.read_steps(child, self.rest_schema),
                    )
                )
            else:
                logger.warning(
                    "Document #%s: ignoring unknown top-level element '%s'", document_index, name
                )

        logger.debug(
            "Unmarshalled document #%s: %d routes, %d rests", document_index, len(routes), len(rests)
        )
        return routes, rests


# ---------------------------------------------------------------------------
# Element readers
# ---------------------------------------------------------------------------


class _DocumentReader:
    def __init__(self, attribute_key: str, document_index: int | None) -> None:
        self.attribute_key = attribute_key
        self.document_index = document_index

    def violation(self, message: str, step_index: int | None = None) -> SchemaViolation:
        return SchemaViolation(message, document_index=self.document_index, step_index=step_index)

    def read_steps(self, element: ET.Element, schema: MarkupSchema) -> list[StepDefinition]:
        kind = _local(element.tag)
        if _has_text(element.text):
            raise self.violation(f"<{kind}> must contain step elements, not text")

        steps: list[StepDefinition] = []
        for step_index, child in enumerate(element):
            operation = _local(child.tag)
            arguments = self.read_arguments(child, step_index)
            if not schema.accepts(operation, len(arguments)):
                arities = schema.arities(operation)
                detail = f"accepts {arities} argument(s)" if arities else "is not a known operation"
                raise self.violation(
                    f"<{kind}> step {step_index}: '{operation}' with {len(arguments)} "
                    f"argument(s); '{operation}' {detail}",
                    step_index,
                )
            steps.append(
                StepDefinition(
                    operation=operation, arguments=arguments, attributes=dict(child.attrib)
                )
            )
        return steps

    def read_arguments(self, element: ET.Element, step_index: int) -> list[StepArgument]:
        children = list(element)
        if not children:
            if element.text:
                return [StepArgument(value=element.text)]
            return []

        if _has_text(element.text):
            raise self.violation(
                f"step {step_index} <{_local(element.tag)}> mixes text and child elements",
                step_index,
            )

        if all(_local(c.tag) == VALUE_ELEMENT for c in children):
            return [StepArgument(value=[self.read_value(c, step_index) for c in children])]

        arguments: list[StepArgument] = []
        seen: set[str] = set()
        for child in children:
            name = _local(child.tag)
            if name in seen:
                raise self.violation(f"step {step_index} repeats argument '{name}'", step_index)
            seen.add(name)
            arguments.append(StepArgument(name=name, value=self.read_value(child, step_index)))
        return arguments

    def read_value(self, element: ET.Element, step_index: int) -> Any:
        """Element → str / list / dict / None, mirroring the document tree."""
        children = list(element)
        if not children and not element.attrib:
            return element.text if element.text else None

        if _has_text(element.text):
            raise self.violation(
                f"step {step_index} argument <{_local(element.tag)}> mixes text and structure",
                step_index,
            )

        if not element.attrib and all(_local(c.tag) == VALUE_ELEMENT for c in children):
            return [self.read_value(c, step_index) for c in children]

        value: dict[str, Any] = {}
        if element.attrib:
            value[self.attribute_key] = dict(element.attrib)
        for child in children:
            name = _local(child.tag)
            if name in value:
                raise self.violation(
                    f"step {step_index} argument <{_local(element.tag)}> repeats '{name}'",
                    step_index,
                )
            value[name] = self.read_value(child, step_index)
        return value
