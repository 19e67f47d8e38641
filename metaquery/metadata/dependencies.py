from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from metaquery.connectors import ConnectorRegistry, build_registry
from metaquery.core.config import get_settings
from metaquery.core.security import Principal, get_admin_checker, get_current_principal
from metaquery.datasources.client import HttpDataSourceDirectory
from metaquery.datasources.defaults import DefaultDataSourceStore
from metaquery.datasources.resolver import DataSourceResolver
from metaquery.metadata.services import MetadataQueryService
from metaquery.metadata.sql.synthesizer import SqlSynthesizer


@lru_cache
def get_registry() -> ConnectorRegistry:
    return build_registry()


@lru_cache
def get_default_store() -> DefaultDataSourceStore:
    return DefaultDataSourceStore.from_config(get_settings().default_data_sources)


@lru_cache
def get_directory() -> HttpDataSourceDirectory:
    settings = get_settings()
    return HttpDataSourceDirectory(settings.data_source_service_url, timeout_s=settings.data_source_service_timeout_s)


def get_service() -> MetadataQueryService:
    registry = get_registry()
    resolver = DataSourceResolver(get_directory(), get_default_store(), get_admin_checker())
    synthesizer = SqlSynthesizer(registry, get_settings().relational_types)
    return MetadataQueryService(resolver, registry, synthesizer)


def get_principal(principal: Principal = Depends(get_current_principal)) -> Principal:
    return principal
