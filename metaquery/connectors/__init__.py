from __future__ import annotations

from metaquery.core.config import get_settings

from .base import MetadataConnection, MetadataConnector, Operation
from .exceptions import ConnectorInvocationError, ConnectorLoadError, MetaRuntimeError
from .registry import ConnectorRegistry


__all__ = [
    "ConnectorInvocationError",
    "ConnectorLoadError",
    "ConnectorRegistry",
    "MetaRuntimeError",
    "MetadataConnection",
    "MetadataConnector",
    "Operation",
    "build_registry",
]


def _postgres_factory() -> MetadataConnector:
    # Imported on first use so psycopg is only needed when a postgresql source is queried
    from .postgres import PostgresConnector

    return PostgresConnector()


def build_registry() -> ConnectorRegistry:
    registry = ConnectorRegistry(entry_point_group=get_settings().connector_entry_point_group)
    registry.register_factory("postgresql", _postgres_factory)
    return registry
