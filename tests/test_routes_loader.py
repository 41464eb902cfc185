from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from yaml_routes import LoaderConfig, RoutesLoader, Source
from yaml_routes.core.exceptions import ParseError, TranslationError
from yaml_routes.core.models import ModelAccumulator, RouteDefinition, StepDefinition
from yaml_routes.core.strategies import Translation, TranslationStrategy
from yaml_routes.loader.routes_loader import EventKind, LoadEvent


@pytest.mark.parametrize("strategy", ["interpreter", "transcoder"])
def test_malformed_document_is_skipped(strategy: str, three_document_stream: str, registry) -> None:
    loader = RoutesLoader(LoaderConfig(strategy=strategy))
    result = loader.load(Source.from_text(three_document_stream, name="stream.yaml"), registry)

    assert [r.input_uri for r in result.routes.routes] == ["direct:one", "direct:three"]
    assert result.documents_total == 3
    assert result.documents_loaded == 2
    assert result.documents_skipped == 1
    assert not result.is_complete
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].scope == "document"
    assert result.diagnostics[0].document_index == 1
    assert isinstance(result.diagnostics[0].error, ParseError)


def test_registry_receives_routes_and_rests_once(choice_route: str, registry) -> None:
    result = RoutesLoader().load(Source.from_text(choice_route), registry)
    assert registry.route_collections == [result.routes]
    assert registry.rest_collections == [result.rests]
    assert result.route_count == 1
    assert result.rest_count == 1
    assert result.is_complete


def test_rests_are_registered_even_when_empty(registry) -> None:
    RoutesLoader().load(Source.from_text("route:\n  - from: direct:a\n"), registry)
    assert len(registry.rest_collections) == 1
    assert len(registry.rest_collections[0]) == 0


def test_failing_route_keeps_its_siblings(registry) -> None:
    text = (
        "- route:\n"
        "    - from: direct:a\n"
        "- route:\n"
        "    - from: direct:b\n"
        "    - end:\n"
        "---\n"
        "route:\n"
        "  - from: direct:c\n"
    )
    events: list[LoadEvent] = []
    loader = RoutesLoader()
    loader.subscribe(events.append)
    result = loader.load(Source.from_text(text), registry)

    assert [r.input_uri for r in result.routes.routes] == ["direct:a", "direct:c"]
    assert result.documents_loaded == 2
    assert [d.scope for d in result.diagnostics] == ["route"]
    assert result.diagnostics[0].error_type == "ScopeError"
    assert [e.kind for e in events] == [
        EventKind.ROUTE_SKIPPED,
        EventKind.DOCUMENT_LOADED,
        EventKind.DOCUMENT_LOADED,
        EventKind.LOAD_COMPLETE,
    ]


def test_events_follow_document_order(three_document_stream: str) -> None:
    events: list[LoadEvent] = []
    loader = RoutesLoader()
    loader.subscribe(events.append)
    loader.load_text(three_document_stream)

    assert [e.kind for e in events] == [
        EventKind.DOCUMENT_LOADED,
        EventKind.DOCUMENT_SKIPPED,
        EventKind.DOCUMENT_LOADED,
        EventKind.LOAD_COMPLETE,
    ]
    assert events[1].payload["document_index"] == 1
    assert events[-1].payload == {"routes": 2, "rests": 0, "skipped": 1}


def test_raising_callback_does_not_break_the_load(caplog: pytest.LogCaptureFixture) -> None:
    def explode(_event: LoadEvent) -> None:
        raise RuntimeError("subscriber down")

    loader = RoutesLoader()
    loader.subscribe(explode)
    result = loader.load_text("route:\n  - from: direct:a\n")
    assert result.route_count == 1
    assert "subscriber down" in caplog.text


def test_skipped_documents_are_logged(three_document_stream: str, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="yaml_routes")
    RoutesLoader().load_text(three_document_stream, name="stream.yaml")
    assert "Skipping malformed YAML document #1" in caplog.text
    assert "Loaded 2 routes from stream.yaml" in caplog.text
    assert "Loaded 0 rests from stream.yaml" in caplog.text


class ExplodingStrategy(TranslationStrategy):
    name = "exploding"

    def translate(self, node, *, document_index=None) -> Translation:
        if document_index == 0:
            raise RuntimeError("unexpected")
        return Translation(routes=[RouteDefinition(steps=[StepDefinition(operation="from")])])


def test_unexpected_strategy_failure_skips_one_document() -> None:
    result = RoutesLoader(strategy=ExplodingStrategy()).load_text("a: 1\n---\nb: 2\n")
    assert result.route_count == 1
    assert result.diagnostics[0].document_index == 0
    assert "unexpected error" in result.diagnostics[0].message


# ---------------------------------------------------------------------------
# Sources and configuration
# ---------------------------------------------------------------------------


def test_load_from_file(tmp_path: Path, registry) -> None:
    path = tmp_path / "routes.yml"
    path.write_text("route:\n  - from: direct:file\n", encoding="utf-8")
    result = RoutesLoader().load(Source.from_path(path), registry)
    assert result.source_name == str(path)
    assert result.routes.routes[0].input_uri == "direct:file"


def test_missing_file_aborts_the_load(tmp_path: Path, registry) -> None:
    with pytest.raises(OSError):
        RoutesLoader().load(Source.from_path(tmp_path / "missing.yaml"), registry)
    assert registry.route_collections == []


def test_unsupported_language_is_rejected(tmp_path: Path) -> None:
    source = Source.from_path(tmp_path / "routes.xml")
    assert source.language == "xml"
    with pytest.raises(ValueError, match="Unsupported source language"):
        RoutesLoader().load(source)


def test_supported_languages() -> None:
    assert RoutesLoader().supported_languages() == ["yaml"]


def test_source_without_content_or_location() -> None:
    with pytest.raises(ValueError):
        Source(name="empty").read()


def test_config_validation() -> None:
    with pytest.raises(ValueError, match="Unknown translation strategy"):
        LoaderConfig(strategy="xslt")
    with pytest.raises(ValueError):
        LoaderConfig(attribute_key="  ")


def test_config_is_immutable() -> None:
    config = LoaderConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.strategy = "transcoder"  # type: ignore[misc]
    assert config.with_strategy("transcoder").strategy == "transcoder"
    assert config.strategy == "interpreter"


def test_config_selects_strategy() -> None:
    assert RoutesLoader(LoaderConfig(strategy="transcoder")).strategy.name == "transcoder"
    assert RoutesLoader().strategy.name == "interpreter"


def test_custom_attribute_key_reaches_both_stages() -> None:
    text = "route:\n  _meta:\n    id: r9\n  from: direct:a\n"
    config = LoaderConfig(strategy="transcoder", attribute_key="_meta")
    result = RoutesLoader(config).load_text(text)
    assert result.routes.routes[0].route_id == "r9"


# ---------------------------------------------------------------------------
# Accumulator
# ---------------------------------------------------------------------------


def test_accumulator_drops_only_the_failed_transaction() -> None:
    accumulator = ModelAccumulator()
    with accumulator.transaction("first") as staging:
        staging.add(RouteDefinition())
    with accumulator.transaction("second") as staging:
        staging.add(RouteDefinition())
        raise TranslationError("boom")

    assert accumulator.route_count == 1
    assert isinstance(staging.error, TranslationError)
    assert [label for label, _ in accumulator.failures] == ["second"]


@pytest.mark.parametrize("strategy", ["interpreter", "transcoder"])
def test_custom_route_key_reaches_both_strategies(strategy: str) -> None:
    config = LoaderConfig(strategy=strategy, route_key="flow")
    result = RoutesLoader(config).load_text("flow:\n  - from: direct:a\n")
    assert result.route_count == 1
    assert result.routes.routes[0].input_uri == "direct:a"
