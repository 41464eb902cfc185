from __future__ import annotations

import pytest

from yaml_routes.core.builders import REST_FAMILY, ROUTE_FAMILY
from yaml_routes.core.document_parser import parse_document
from yaml_routes.core.exceptions import SchemaViolation, UnmarshalError
from yaml_routes.core.markup_loader import MarkupLoader
from yaml_routes.core.registry import MarkupSchema
from yaml_routes.core.transcoder import DEFAULT_NAMESPACE, StructuralTranscoder

NS = DEFAULT_NAMESPACE


def _loader() -> MarkupLoader:
    return MarkupLoader(MarkupSchema(ROUTE_FAMILY), MarkupSchema(REST_FAMILY))


# ---------------------------------------------------------------------------
# Transcoding
# ---------------------------------------------------------------------------


def test_steps_become_ordered_child_elements() -> None:
    root = StructuralTranscoder().transcode(
        parse_document("route:\n  - from: direct:a\n  - transform: body\n  - to: direct:b\n")
    )
    assert root.tag == "routes"
    route = root[0]
    assert route.tag == "route"
    assert [(c.tag, c.text) for c in route] == [
        ("from", "direct:a"),
        ("transform", "body"),
        ("to", "direct:b"),
    ]


def test_attribute_bag_sets_attributes_on_enclosing_element() -> None:
    root = StructuralTranscoder().transcode(
        parse_document(
            "route:\n"
            "  attr:\n"
            "    id: r1\n"
            "    autoStartup: false\n"
            "  from:\n"
            "    attr:\n"
            "      uri: direct:a\n"
        )
    )
    route = root.find("route")
    assert route.attrib == {"id": "r1", "autoStartup": "false"}
    assert route.find("attr") is None
    assert route.find("from").get("uri") == "direct:a"
    assert len(route.find("from")) == 0


def test_absent_value_is_an_empty_element() -> None:
    root = StructuralTranscoder().transcode(parse_document("route:\n  - stop:\n"))
    stop = root.find("route/stop")
    assert stop is not None
    assert stop.text is None
    assert len(stop) == 0


def test_scalar_items_become_value_elements() -> None:
    root = StructuralTranscoder().transcode(parse_document("route:\n  - to: [\"direct:a\", \"direct:b\"]\n"))
    to = root.find("route/to")
    assert [(c.tag, c.text) for c in to] == [("value", "direct:a"), ("value", "direct:b")]


def test_markup_declares_the_namespace() -> None:
    markup = StructuralTranscoder().to_markup(parse_document("route:\n  - from: direct:a\n"))
    assert markup.startswith(b"<?xml")
    assert f'xmlns="{NS}"'.encode() in markup


def test_custom_root_and_namespace() -> None:
    transcoder = StructuralTranscoder(root_element="flows", namespace="urn:flows")
    markup = transcoder.to_markup(parse_document("route:\n  - from: direct:a\n"))
    assert b"<flows" in markup
    assert b'xmlns="urn:flows"' in markup


# ---------------------------------------------------------------------------
# Markup loading
# ---------------------------------------------------------------------------


def test_loader_reads_arguments_by_shape() -> None:
    markup = (
        f'<routes xmlns="{NS}">'
        '<route id="r1">'
        "<from>direct:a</from>"
        "<setHeader><name>x</name><constant>1</constant></setHeader>"
        "<to><value>log:a</value><value>log:b</value></to>"
        "<stop/>"
        "</route>"
        "</routes>"
    )
    routes, rests = _loader().load(markup)
    assert rests == []
    route = routes[0]
    assert route.attributes == {"id": "r1"}
    assert route.route_id == "r1"
    assert [s.signature for s in route.steps] == [
        ("from", ((None, "direct:a"),)),
        ("setHeader", (("name", "x"), ("constant", "1"))),
        ("to", ((None, ("log:a", "log:b")),)),
        ("stop", ()),
    ]


def test_nested_argument_reads_back_as_dict() -> None:
    markup = (
        f'<routes xmlns="{NS}"><route>'
        '<marshal><json library="jackson"><pretty>true</pretty></json></marshal>'
        "</route></routes>"
    )
    routes, _ = _loader().load(markup)
    step = routes[0].steps[0]
    assert step.arguments[0].name == "json"
    assert step.first_value() == {"attr": {"library": "jackson"}, "pretty": "true"}


def test_malformed_markup_is_an_unmarshal_error() -> None:
    with pytest.raises(UnmarshalError):
        _loader().load(b"<routes><route></routes>", document_index=2)


def test_invalid_element_name_from_yaml_key() -> None:
    markup = StructuralTranscoder().to_markup(parse_document("route:\n  - my step: x\n"))
    with pytest.raises(UnmarshalError):
        _loader().load(markup)


def test_wrong_root_element() -> None:
    with pytest.raises(SchemaViolation, match="root element"):
        _loader().load(f'<flows xmlns="{NS}"><route/></flows>')


def test_missing_namespace() -> None:
    with pytest.raises(SchemaViolation):
        _loader().load("<routes><route><from>direct:a</from></route></routes>")


def test_unknown_operation_violates_schema() -> None:
    markup = f'<routes xmlns="{NS}"><route><from>x</from><teleport>y</teleport></route></routes>'
    with pytest.raises(SchemaViolation, match="not a known operation") as excinfo:
        _loader().load(markup, document_index=0)
    assert excinfo.value.step_index == 1


def test_wrong_arity_violates_schema() -> None:
    markup = f'<routes xmlns="{NS}"><route><stop>now</stop></route></routes>'
    with pytest.raises(SchemaViolation, match=r"accepts \[0\]"):
        _loader().load(markup)


def test_mixed_content_violates_schema() -> None:
    markup = f'<routes xmlns="{NS}"><route><log>hi<name>x</name></log></route></routes>'
    with pytest.raises(SchemaViolation, match="mixes text"):
        _loader().load(markup)


def test_repeated_argument_violates_schema() -> None:
    markup = (
        f'<routes xmlns="{NS}"><route>'
        "<setHeader><name>a</name><name>b</name></setHeader>"
        "</route></routes>"
    )
    with pytest.raises(SchemaViolation, match="repeats argument 'name'"):
        _loader().load(markup)


def test_unknown_top_level_element_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    markup = f'<routes xmlns="{NS}"><beans/><route><from>direct:a</from></route></routes>'
    routes, _ = _loader().load(markup, document_index=4)
    assert len(routes) == 1
    assert "unknown top-level element 'beans'" in caplog.text


def test_rest_elements_use_the_rest_schema() -> None:
    markup = (
        f'<routes xmlns="{NS}"><rest path="/api">'
        "<get>/hello</get><to>direct:hello</to>"
        "</rest></routes>"
    )
    routes, rests = _loader().load(markup)
    assert routes == []
    assert rests[0].path == "/api"
    assert [v.first_value() for v in rests[0].verbs] == ["/hello"]


def test_mapping_items_inside_arguments_are_wrapped() -> None:
    root = StructuralTranscoder().transcode(
        parse_document("route:\n  - marshal:\n      json: [{a: \"1\"}, {b: \"2\"}]\n")
    )
    route = root.find("route")
    assert [c.tag for c in route] == ["marshal"]
    json = route.find("marshal/json")
    assert [c.tag for c in json] == ["value", "value"]
    assert [c[0].tag for c in json] == ["a", "b"]


def test_carriage_return_is_a_character_reference() -> None:
    markup = StructuralTranscoder().to_markup(parse_document('route:\n  - log: "a\\r\\nb"\n'))
    assert b"\r" not in markup
    assert b"a&#13;\nb" in markup
    routes, _ = _loader().load(markup)
    assert routes[0].steps[0].values == ["a\r\nb"]


def test_custom_route_and_rest_elements() -> None:
    loader = MarkupLoader(
        MarkupSchema(ROUTE_FAMILY),
        MarkupSchema(REST_FAMILY),
        route_element="flow",
        rest_element="api",
    )
    markup = (
        f'<routes xmlns="{NS}">'
        "<flow><from>direct:a</from></flow>"
        "<api><path>/x</path></api>"
        "<route><from>direct:b</from></route>"
        "</routes>"
    )
    routes, rests = loader.load(markup)
    assert [r.input_uri for r in routes] == ["direct:a"]
    assert [r.path for r in rests] == ["/x"]
