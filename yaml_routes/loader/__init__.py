"""loader — configuration, sources and the route loading orchestrator."""
from .config import LoaderConfig, Source
from .routes_loader import EventKind, LoadEvent, LoadResult, RouteRegistry, RoutesLoader

__all__ = [
    "LoaderConfig", "Source",
    "EventKind", "LoadEvent", "LoadResult", "RouteRegistry", "RoutesLoader",
]
