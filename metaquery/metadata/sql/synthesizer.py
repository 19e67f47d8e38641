from __future__ import annotations

import logging
from typing import Iterable, Optional

from metaquery.connectors import ConnectorRegistry, Operation
from metaquery.datasources.models import ResolvedDataSource
from metaquery.metadata.models import ColumnFetch, Engine, GeneratedSql, Technology
from metaquery.metadata.sql.templates import BUILDERS, SqlContext


logger = logging.getLogger(__name__)

ELASTICSEARCH_TABLE = "_doc"


def normalize_type(data_source_type: Optional[str]) -> str:
    return (data_source_type or "").strip().lower()


def columns_table(data_source_type: str, table: str) -> str:
    """Elasticsearch exposes a fixed document type instead of the requested table."""
    if normalize_type(data_source_type) == Technology.ELASTICSEARCH.value:
        return ELASTICSEARCH_TABLE
    return table


class SqlSynthesizer:
    def __init__(self, registry: ConnectorRegistry, relational_types: Iterable[str]) -> None:
        self.registry = registry
        self.relational_types = frozenset(filter(None, (normalize_type(t) for t in relational_types)))

    def technology_of(self, data_source_type: str) -> Optional[Technology]:
        key = normalize_type(data_source_type)
        if not key:
            return None
        if key in self.relational_types:
            return Technology.JDBC
        for technology in (Technology.KAFKA, Technology.MONGODB, Technology.ELASTICSEARCH):
            if key == technology.value:
                return technology
        return None

    def generate(self, engine: Engine, source: ResolvedDataSource, database: str, table: str) -> GeneratedSql:
        technology = self.technology_of(source.type)
        if technology is None:
            logger.info("No %s SQL generation policy for data source type '%s'", engine.value, source.type)
            return GeneratedSql()
        builder = BUILDERS.get((technology, engine))
        if builder is None:
            logger.info("%s SQL is not supported for %s data sources", engine.value, technology.value)
            return GeneratedSql()

        fetch = self.fetch_columns(source, database, table)
        connect_url = None
        if technology is Technology.JDBC:
            connector = self.registry.resolve(source.type)
            connect_url = self.registry.invoke(connector, Operation.GET_SQL_CONNECT_URL, (source.creator, source.parameters))

        ctx = SqlContext(
            database=database,
            table=table,
            params=source.parameters,
            columns=tuple(fetch.columns),
            connect_url=connect_url,
        )
        return builder(ctx)

    def fetch_columns(self, source: ResolvedDataSource, database: str, table: str) -> ColumnFetch:
        try:
            connector = self.registry.resolve(source.type)
            columns = self.registry.invoke(
                connector,
                Operation.GET_COLUMNS,
                (source.creator, source.parameters, database, columns_table(source.type, table)),
            )
        except Exception as e:
            logger.warning("Fail to get Sql columns for %s.%s (%s), falling back to all columns: %s", database, table, source.type, e)
            return ColumnFetch.failed(e)
        return ColumnFetch(columns=tuple(columns or ()))
