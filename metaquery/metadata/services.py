from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from metaquery.connectors import ConnectorRegistry, MetadataConnection, Operation
from metaquery.datasources.models import DataSourceReference, ResolvedDataSource
from metaquery.datasources.resolver import DataSourceResolver
from metaquery.metadata.models import Engine, GeneratedSql, MetaColumnInfo, MetaPartitionInfo
from metaquery.metadata.sql.synthesizer import SqlSynthesizer, columns_table


logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetadataQueryService:
    """Uniform metadata operations over any registered data source type.

    Every call resolves and authorizes the data source first, then forwards
    ``(creator, params, *args)`` to the connector for its type. A source whose
    type is empty yields an empty result instead of an error.
    """

    def __init__(self, resolver: DataSourceResolver, registry: ConnectorRegistry, synthesizer: SqlSynthesizer) -> None:
        self.resolver = resolver
        self.registry = registry
        self.synthesizer = synthesizer

    # Introspection

    def get_databases(self, ref: DataSourceReference, user_name: str) -> List[str]:
        return self._dispatch(ref, user_name, Operation.GET_DATABASES, (), list)

    def get_tables(self, ref: DataSourceReference, user_name: str, database: str) -> List[str]:
        return self._dispatch(ref, user_name, Operation.GET_TABLES, (database,), list)

    def get_columns(self, ref: DataSourceReference, user_name: str, database: str, table: str) -> List[MetaColumnInfo]:
        source = self.resolver.resolve(ref, user_name)
        if not source.type:
            return []
        return self._invoke(source, Operation.GET_COLUMNS, (database, columns_table(source.type, table)), list)

    def get_table_props(self, ref: DataSourceReference, user_name: str, database: str, table: str) -> Dict[str, str]:
        return self._dispatch(ref, user_name, Operation.GET_TABLE_PROPS, (database, table), dict)

    def get_partition_props(self, ref: DataSourceReference, user_name: str, database: str, table: str, partition: str) -> Dict[str, str]:
        return self._dispatch(ref, user_name, Operation.GET_PARTITION_PROPS, (database, table, partition), dict)

    def get_partitions(self, ref: DataSourceReference, user_name: str, database: str, table: str, traverse: bool = False) -> MetaPartitionInfo:
        return self._dispatch(ref, user_name, Operation.GET_PARTITIONS, (database, table, traverse), MetaPartitionInfo)

    def get_connection_info(self, ref: DataSourceReference, user_name: str, query_params: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        return self._dispatch(ref, user_name, Operation.GET_CONNECTION_INFO, (dict(query_params or {}),), dict)

    def get_connection(self, data_source_type: str, operator: str, params: Mapping[str, Any]) -> None:
        """Liveness probe: open a connection for the given type and close it straight away."""
        connector = self.registry.resolve(data_source_type)
        connection: Optional[MetadataConnection] = self.registry.invoke(connector, Operation.GET_CONNECTION, (operator, params))
        if connection is None:
            return
        try:
            connection.close()
        except Exception as e:
            logger.warning("Fail to close connection for %s: %s", data_source_type, e, exc_info=True)

    # SQL generation

    def get_spark_sql(self, ref: DataSourceReference, user_name: str, database: str, table: str) -> GeneratedSql:
        return self._generate(Engine.SPARK, ref, user_name, database, table)

    def get_flink_sql(self, ref: DataSourceReference, user_name: str, database: str, table: str) -> GeneratedSql:
        return self._generate(Engine.FLINK, ref, user_name, database, table)

    def get_jdbc_sql(self, ref: DataSourceReference, user_name: str, database: str, table: str) -> GeneratedSql:
        result = self._dispatch(ref, user_name, Operation.GET_JDBC_SQL, (database, table), GeneratedSql)
        return result if isinstance(result, GeneratedSql) else GeneratedSql()

    # Helpers

    def _generate(self, engine: Engine, ref: DataSourceReference, user_name: str, database: str, table: str) -> GeneratedSql:
        source = self.resolver.resolve(ref, user_name)
        if not source.type:
            return GeneratedSql()
        return self.synthesizer.generate(engine, source, database, table)

    def _dispatch(self, ref: DataSourceReference, user_name: str, operation: Operation, args: tuple, empty: Callable[[], T]) -> T:
        source = self.resolver.resolve(ref, user_name)
        if not source.type:
            logger.debug("Data source [%s] has no type, %s returns an empty result", ref.label, operation.value)
            return empty()
        return self._invoke(source, operation, args, empty)

    def _invoke(self, source: ResolvedDataSource, operation: Operation, args: tuple, empty: Callable[[], T]) -> T:
        connector = self.registry.resolve(source.type)
        result = self.registry.invoke(connector, operation, (source.creator, source.parameters, *args))
        return empty() if result is None else result
