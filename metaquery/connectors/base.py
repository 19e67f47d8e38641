from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

from metaquery.metadata.models import GeneratedSql, MetaColumnInfo, MetaPartitionInfo


C = TypeVar("C")


class Operation(str, Enum):
    GET_DATABASES = "getDatabases"
    GET_TABLES = "getTables"
    GET_COLUMNS = "getColumns"
    GET_PARTITIONS = "getPartitions"
    GET_PARTITION_PROPS = "getPartitionProps"
    GET_TABLE_PROPS = "getTableProps"
    GET_CONNECTION_INFO = "getConnectionInfo"
    GET_CONNECTION = "getConnection"
    GET_SQL_CONNECT_URL = "getSqlConnectUrl"
    GET_JDBC_SQL = "getJdbcSql"


class MetadataConnection(Generic[C]):
    """A live connection handed out by a connector, closed by the caller."""

    def __init__(self, connection: C, close: Optional[Callable[[C], None]] = None) -> None:
        self.connection = connection
        self._close = close

    def close(self) -> None:
        if self._close is not None:
            self._close(self.connection)
        else:
            self.connection.close()  # type: ignore[attr-defined]


class MetadataConnector:
    """Interface implemented once per data source type.

    Every operation receives the data source creator as ``operator`` and the
    published connect params, followed by the operation specific arguments.
    Connectors signal expected failures with ``MetaRuntimeError``.
    """

    type_slug: str = ""
    display_name: str = ""
    version: str = "1.0.0"

    def get_databases(self, operator: str, params: Mapping[str, Any]) -> List[str]:
        raise NotImplementedError

    def get_tables(self, operator: str, params: Mapping[str, Any], database: str) -> List[str]:
        raise NotImplementedError

    def get_columns(self, operator: str, params: Mapping[str, Any], database: str, table: str) -> List[MetaColumnInfo]:
        raise NotImplementedError

    def get_partitions(self, operator: str, params: Mapping[str, Any], database: str, table: str, traverse: bool) -> MetaPartitionInfo:
        raise NotImplementedError

    def get_partition_props(self, operator: str, params: Mapping[str, Any], database: str, table: str, partition: str) -> Dict[str, str]:
        raise NotImplementedError

    def get_table_props(self, operator: str, params: Mapping[str, Any], database: str, table: str) -> Dict[str, str]:
        raise NotImplementedError

    def get_connection_info(self, operator: str, params: Mapping[str, Any], query_params: Mapping[str, str]) -> Dict[str, str]:
        raise NotImplementedError

    def get_connection(self, operator: str, params: Mapping[str, Any]) -> Optional[MetadataConnection]:
        raise NotImplementedError

    def get_sql_connect_url(self, operator: str, params: Mapping[str, Any]) -> str:
        """Connection URL template with ``{host}``, ``{port}`` and ``{database}`` fields."""
        raise NotImplementedError

    def get_jdbc_sql(self, operator: str, params: Mapping[str, Any], database: str, table: str) -> GeneratedSql:
        raise NotImplementedError


_BINDINGS: Dict[Operation, Callable[[MetadataConnector], Callable[..., Any]]] = {
    Operation.GET_DATABASES: lambda c: c.get_databases,
    Operation.GET_TABLES: lambda c: c.get_tables,
    Operation.GET_COLUMNS: lambda c: c.get_columns,
    Operation.GET_PARTITIONS: lambda c: c.get_partitions,
    Operation.GET_PARTITION_PROPS: lambda c: c.get_partition_props,
    Operation.GET_TABLE_PROPS: lambda c: c.get_table_props,
    Operation.GET_CONNECTION_INFO: lambda c: c.get_connection_info,
    Operation.GET_CONNECTION: lambda c: c.get_connection,
    Operation.GET_SQL_CONNECT_URL: lambda c: c.get_sql_connect_url,
    Operation.GET_JDBC_SQL: lambda c: c.get_jdbc_sql,
}


def bind(connector: MetadataConnector, operation: Operation) -> Callable[..., Any]:
    return _BINDINGS[operation](connector)
