"""Shared fakes and fixtures for the metadata query tests."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import pytest

from metaquery.connectors import ConnectorRegistry, MetadataConnection, MetadataConnector
from metaquery.core.security import StaticAdminChecker
from metaquery.datasources.defaults import DefaultDataSourceStore
from metaquery.datasources.models import DefaultDataSource, DsInfoQueryRequest
from metaquery.datasources.resolver import DataSourceResolver
from metaquery.metadata.models import GeneratedSql, MetaColumnInfo, MetaPartitionInfo
from metaquery.metadata.services import MetadataQueryService
from metaquery.metadata.sql.synthesizer import SqlSynthesizer


RELATIONAL_TYPES = ["mysql", "postgresql", "oracle"]


class FakeDirectory:
    """In-memory data source directory keyed by id and by name."""

    def __init__(self) -> None:
        self.records: Dict[str, Any] = {}
        self.requests: List[DsInfoQueryRequest] = []
        self.error: Optional[Exception] = None

    def add(self, key: str, ds_type: str, creator: str, params: Optional[dict] = None, *, status: bool = True, error_msg: str = "") -> None:
        self.records[key] = {
            "status": status,
            "dsType": ds_type,
            "creator": creator,
            "params": {} if params is None else params,
            "errorMsg": error_msg,
        }

    def query(self, request: DsInfoQueryRequest) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        key = request.id or request.name or ""
        if request.env_id and f"{key}@{request.env_id}" in self.records:
            return self.records[f"{key}@{request.env_id}"]
        return self.records.get(key, {"status": False, "errorMsg": f"data source {key} not found"})


class ClosingHandle:
    def __init__(self, fail: bool = False) -> None:
        self.closed = False
        self.fail = fail

    def close(self) -> None:
        if self.fail:
            raise OSError("socket already closed")
        self.closed = True


class FakeConnector(MetadataConnector):
    """Records every call as (operation, args) and answers from canned data."""

    def __init__(self, type_slug: str = "mysql", columns: Optional[List[MetaColumnInfo]] = None) -> None:
        self.type_slug = type_slug
        self.calls: List[tuple] = []
        self.columns = columns if columns is not None else [MetaColumnInfo("id", "int"), MetaColumnInfo("name", "varchar")]
        self.columns_error: Optional[Exception] = None
        self.connect_url = "jdbc:mysql://{host}:{port}/{database}"
        self.handle = ClosingHandle()

    def get_databases(self, operator: str, params: Mapping[str, Any]) -> List[str]:
        self.calls.append(("getDatabases", (operator, params)))
        return ["db1", "db2"]

    def get_tables(self, operator, params, database):
        self.calls.append(("getTables", (operator, params, database)))
        return ["sales", "orders"]

    def get_columns(self, operator, params, database, table):
        self.calls.append(("getColumns", (operator, params, database, table)))
        if self.columns_error is not None:
            raise self.columns_error
        return list(self.columns)

    def get_partitions(self, operator, params, database, table, traverse):
        self.calls.append(("getPartitions", (operator, params, database, table, traverse)))
        return MetaPartitionInfo(part_keys=["ds"], name=table)

    def get_partition_props(self, operator, params, database, table, partition):
        self.calls.append(("getPartitionProps", (operator, params, database, table, partition)))
        return {"location": f"/warehouse/{database}/{table}/{partition}"}

    def get_table_props(self, operator, params, database, table):
        self.calls.append(("getTableProps", (operator, params, database, table)))
        return {"owner": operator}

    def get_connection_info(self, operator, params, query_params):
        self.calls.append(("getConnectionInfo", (operator, params, query_params)))
        return {"host": str(params.get("host")), **query_params}

    def get_connection(self, operator, params):
        self.calls.append(("getConnection", (operator, params)))
        return MetadataConnection(self.handle)

    def get_sql_connect_url(self, operator, params):
        self.calls.append(("getSqlConnectUrl", (operator, params)))
        return self.connect_url

    def get_jdbc_sql(self, operator, params, database, table):
        self.calls.append(("getJdbcSql", (operator, params, database, table)))
        return GeneratedSql(ddl="", dml=f"INSERT INTO {table}", dql=f"SELECT * FROM {database}.{table}")

    def operations(self) -> List[str]:
        return [c[0] for c in self.calls]


MYSQL_PARAMS = {"host": "10.0.0.5", "port": "3306", "username": "etl", "password": "s3cret"}


@pytest.fixture
def directory() -> FakeDirectory:
    d = FakeDirectory()
    d.add("mysql_demo", "mysql", "alice", dict(MYSQL_PARAMS))
    d.add("42", "mysql", "alice", dict(MYSQL_PARAMS))
    d.add("kafka_events", "kafka", "alice", {"uris": "k1:9092,k2:9092"})
    d.add("mongo_users", "mongodb", "alice", {"host": "m1", "port": 27017})
    d.add("es_logs", "elasticsearch", "alice", {"elasticUrls": '["es1:9200","es2:9200"]'})
    d.add("redis_cache", "redis", "alice", {"host": "r1"})
    d.add("draft", "mysql", "alice", {})
    d.add("typeless", "", "alice", {"host": "x"})
    return d


@pytest.fixture
def defaults() -> DefaultDataSourceStore:
    return DefaultDataSourceStore(
        [DefaultDataSource(name="sandbox_hive", type="hive", connect_params={}, create_user="alice")]
    )


@pytest.fixture
def admin_checker() -> StaticAdminChecker:
    return StaticAdminChecker.from_users(["hadoop"])


@pytest.fixture
def resolver(directory, defaults, admin_checker) -> DataSourceResolver:
    return DataSourceResolver(directory, defaults, admin_checker)


@pytest.fixture
def connectors() -> Dict[str, FakeConnector]:
    return {
        "mysql": FakeConnector("mysql"),
        "kafka": FakeConnector("kafka", columns=[MetaColumnInfo("key", "STRING"), MetaColumnInfo("payload", "STRING")]),
        "mongodb": FakeConnector("mongodb", columns=[MetaColumnInfo("_id", "objectid"), MetaColumnInfo("name", "string")]),
        "elasticsearch": FakeConnector("elasticsearch", columns=[MetaColumnInfo("ts", "TIMESTAMP"), MetaColumnInfo("msg", "STRING")]),
        "hive": FakeConnector("hive"),
        "redis": FakeConnector("redis"),
    }


@pytest.fixture
def registry(connectors) -> ConnectorRegistry:
    reg = ConnectorRegistry(entry_point_group=None)
    for connector in connectors.values():
        reg.register(connector)
    return reg


@pytest.fixture
def synthesizer(registry) -> SqlSynthesizer:
    return SqlSynthesizer(registry, RELATIONAL_TYPES)


@pytest.fixture
def service(resolver, registry, synthesizer) -> MetadataQueryService:
    return MetadataQueryService(resolver, registry, synthesizer)
