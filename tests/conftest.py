from __future__ import annotations

import pytest

from yaml_routes.core.models import RestsDefinition, RoutesDefinition


class CollectingRegistry:
    """Stands in for the routing engine's registration callbacks."""

    def __init__(self) -> None:
        self.route_collections: list[RoutesDefinition] = []
        self.rest_collections: list[RestsDefinition] = []

    def set_route_collection(self, routes: RoutesDefinition) -> None:
        self.route_collections.append(routes)

    def set_rest_collection(self, rests: RestsDefinition) -> None:
        self.rest_collections.append(rests)


@pytest.fixture
def registry() -> CollectingRegistry:
    return CollectingRegistry()


@pytest.fixture
def three_document_stream() -> str:
    return (
        "route:\n"
        "  - from: \"direct:one\"\n"
        "  - to: \"log:one\"\n"
        "---\n"
        "route: [unclosed\n"
        "---\n"
        "route:\n"
        "  - from: \"direct:three\"\n"
        "  - to: \"log:three\"\n"
    )


@pytest.fixture
def choice_route() -> str:
    return (
        "- route:\n"
        "    - from: \"direct:start\"\n"
        "    - routeId: \"orders\"\n"
        "    - setHeader:\n"
        "        name: region\n"
        "        constant: emea\n"
        "    - choice:\n"
        "    - when: \"${header.region} == 'emea'\"\n"
        "    - to: \"direct:emea\"\n"
        "    - otherwise:\n"
        "    - to: \"direct:other\"\n"
        "    - end:\n"
        "    - to: [\"log:a\", \"log:b\"]\n"
        "    - stop:\n"
        "- rest:\n"
        "    - path: \"/api\"\n"
        "    - get: \"/orders\"\n"
        "    - to: \"direct:orders\"\n"
        "    - post: \"/orders\"\n"
        "    - consumes: \"application/json\"\n"
        "    - to: \"direct:create\"\n"
    )
