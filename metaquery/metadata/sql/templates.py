"""External table SQL for the batch (Spark) and streaming (Flink) engines.

Each builder is a pure function of identifiers, connect params and columns.
DML and DQL have one shape per engine; only the DDL depends on the technology.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import httpx

from metaquery.datasources.utils import parse_string_list
from metaquery.metadata.models import Engine, GeneratedSql, MetaColumnInfo, Technology


logger = logging.getLogger(__name__)

ALL_COLUMNS = "*"
RESULT_TABLE_PLACEHOLDER = "${resultTable}"
CONNECT_URL_FIELDS = ("host", "port", "database")

DEFAULT_KAFKA_SERVERS = "localhost:9092"
DEFAULT_ELASTIC_URLS = ["localhost:9200"]
DEFAULT_ELASTIC_PORT = 9200

SPARK_JDBC_DDL = (
    "CREATE TEMPORARY TABLE {table} "
    "USING org.apache.spark.sql.jdbc "
    "OPTIONS (url '{url}', dbtable '{qualified_table}', user '{username}', password '{password}')"
)
SPARK_KAFKA_DDL = (
    "CREATE TEMPORARY TABLE {table} "
    "USING kafka "
    "OPTIONS ('kafka.bootstrap.servers' '{servers}', 'subscribe' '{table}')"
)
SPARK_MONGO_DDL = (
    "CREATE TEMPORARY TABLE {table} "
    "USING mongo "
    "OPTIONS ('spark.mongodb.input.uri' '{url}', 'spark.mongodb.input.database' '{database}', "
    "'spark.mongodb.input.collection' '{table}')"
)
SPARK_ES_DDL = (
    "CREATE TEMPORARY TABLE {table} "
    "USING org.elasticsearch.spark.sql "
    "OPTIONS ('es.nodes' '{host}', 'es.port' '{port}', 'es.resource' '{table}/_doc')"
)
SPARK_DML = "INSERT INTO {table} SELECT * FROM {result_table}"
SPARK_DQL = "SELECT {columns} FROM {table}"

FLINK_JDBC_DDL = (
    "CREATE TABLE {table} ({columns}) WITH ("
    "'connector' = 'jdbc', 'url' = '{url}', 'username' = '{username}', "
    "'password' = '{password}', 'table-name' = '{qualified_table}')"
)
FLINK_KAFKA_DDL = (
    "CREATE TABLE {table} ({columns}) WITH ("
    "'connector' = 'kafka', 'topic' = '{table}', 'properties.bootstrap.servers' = '{servers}', "
    "'scan.startup.mode' = 'earliest-offset', 'format' = 'json')"
)
FLINK_ES_DDL = "CREATE TABLE {table} ({columns}) WITH ('connector' = 'elasticsearch-7', 'index' = '{table}')"
FLINK_DML = "INSERT INTO {table} SELECT * FROM {result_table}"
FLINK_DQL = "SELECT {columns} FROM {table}"


@dataclass(frozen=True)
class SqlContext:
    """Inputs shared by every builder."""

    database: str
    table: str
    params: Mapping[str, Any]
    columns: Sequence[MetaColumnInfo] = ()
    connect_url: Optional[str] = None


# Helpers


def unqualified(table: str) -> str:
    """Drop a leading ``db.`` qualifier: everything up to and including the first dot."""
    return table.split(".", 1)[1] if "." in table else table


def column_names(columns: Sequence[MetaColumnInfo], exclude: Tuple[str, ...] = ()) -> str:
    names = [c.name for c in columns if c.name not in exclude]
    return ",".join(names) if names else ALL_COLUMNS


def column_definitions(columns: Sequence[MetaColumnInfo]) -> str:
    if not columns:
        return ALL_COLUMNS
    return ",".join(f"{c.name} {c.type}" for c in columns)


def fill_connect_url(template: str, params: Mapping[str, Any], database: str) -> str:
    """Substitute host/port/database into a connector supplied URL template.

    Templates use ``{host}``/``{port}``/``{database}`` fields; positional ``%s``
    templates (host, port, database in that order) are accepted too. Anything
    else in the template, such as ``%2B`` escapes or other braces, is kept as is.
    """
    values = (str(params.get("host", "")), str(params.get("port", "")), database)
    if "%s" in template:
        remaining = iter(values)
        return re.sub(r"%s", lambda _: next(remaining), template, count=len(values))
    for name, value in zip(CONNECT_URL_FIELDS, values):
        template = template.replace("{" + name + "}", value)
    return template


def elastic_endpoint(params: Mapping[str, Any]) -> Tuple[str, int]:
    """Host and port of the first ``elasticUrls`` endpoint.

    Values that are neither a list nor a JSON encoded list, or that hold no
    endpoint, fall back to the default endpoint.
    """
    raw = params.get("elasticUrls", DEFAULT_ELASTIC_URLS)
    try:
        urls = parse_string_list(raw)
    except ValueError as e:
        logger.warning("Fail to get ElasticSearch urls, using %s: %s", DEFAULT_ELASTIC_URLS[0], e)
        urls = []
    endpoints = [u.strip() for u in urls if u and u.strip()]
    if not endpoints:
        endpoints = list(DEFAULT_ELASTIC_URLS)
    endpoint = endpoints[0]
    if "://" not in endpoint:
        endpoint = f"http://{endpoint}"
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as e:
        logger.warning("Invalid ElasticSearch url %r, using %s: %s", endpoints[0], DEFAULT_ELASTIC_URLS[0], e)
        url = httpx.URL(f"http://{DEFAULT_ELASTIC_URLS[0]}")
    return url.host, url.port or DEFAULT_ELASTIC_PORT


def mongo_url(params: Mapping[str, Any], database: str) -> str:
    return f"mongodb://{params.get('host', '')}:{params.get('port', '')}/{database}"


# Shared DML / DQL


def spark_dml(table: str) -> str:
    return SPARK_DML.format(table=table, result_table=RESULT_TABLE_PLACEHOLDER)


def spark_dql(columns: str, table: str) -> str:
    return SPARK_DQL.format(columns=columns, table=table)


def flink_dml(table: str) -> str:
    return FLINK_DML.format(table=table, result_table=RESULT_TABLE_PLACEHOLDER)


def flink_dql(columns: str, table: str) -> str:
    return FLINK_DQL.format(columns=columns, table=table)


# Spark


def spark_jdbc(ctx: SqlContext) -> GeneratedSql:
    url = fill_connect_url(ctx.connect_url or "", ctx.params, ctx.database)
    ddl = SPARK_JDBC_DDL.format(
        table=ctx.table,
        url=url,
        qualified_table=ctx.table,
        username=ctx.params.get("username", ""),
        password=ctx.params.get("password", ""),
    )
    return GeneratedSql(ddl=ddl, dml=spark_dml(ctx.table), dql=spark_dql(column_names(ctx.columns), ctx.table))


def spark_kafka(ctx: SqlContext) -> GeneratedSql:
    servers = str(ctx.params.get("uris", DEFAULT_KAFKA_SERVERS))
    ddl = SPARK_KAFKA_DDL.format(table=ctx.table, servers=servers)
    return GeneratedSql(ddl=ddl, dml=spark_dml(ctx.table), dql=spark_dql("CAST(value AS STRING)", ctx.table))


def spark_mongo(ctx: SqlContext) -> GeneratedSql:
    ddl = SPARK_MONGO_DDL.format(table=ctx.table, url=mongo_url(ctx.params, ctx.database), database=ctx.database)
    projection = column_names(ctx.columns, exclude=("_id",))
    return GeneratedSql(ddl=ddl, dml=spark_dml(ctx.table), dql=spark_dql(projection, ctx.table))


def spark_elasticsearch(ctx: SqlContext) -> GeneratedSql:
    host, port = elastic_endpoint(ctx.params)
    ddl = SPARK_ES_DDL.format(table=ctx.table, host=host, port=port)
    return GeneratedSql(ddl=ddl, dml=spark_dml(ctx.table), dql=spark_dql(column_names(ctx.columns), ctx.table))


# Flink


def flink_jdbc(ctx: SqlContext) -> GeneratedSql:
    url = fill_connect_url(ctx.connect_url or "", ctx.params, ctx.database)
    ddl = FLINK_JDBC_DDL.format(
        table=unqualified(ctx.table),
        columns=column_definitions(ctx.columns),
        url=url,
        username=ctx.params.get("username", ""),
        password=ctx.params.get("password", ""),
        qualified_table=ctx.table,
    )
    return GeneratedSql(ddl=ddl, dml=flink_dml(ctx.table), dql=flink_dql(column_names(ctx.columns), ctx.table))


def flink_kafka(ctx: SqlContext) -> GeneratedSql:
    servers = str(ctx.params.get("uris", DEFAULT_KAFKA_SERVERS))
    ddl = FLINK_KAFKA_DDL.format(table=unqualified(ctx.table), columns=column_definitions(ctx.columns), servers=servers)
    return GeneratedSql(ddl=ddl, dml=flink_dml(ctx.table), dql=flink_dql(column_names(ctx.columns), ctx.table))


def flink_elasticsearch(ctx: SqlContext) -> GeneratedSql:
    ddl = FLINK_ES_DDL.format(table=unqualified(ctx.table), columns=column_definitions(ctx.columns))
    return GeneratedSql(ddl=ddl, dml=flink_dml(ctx.table), dql=flink_dql(column_names(ctx.columns), ctx.table))


SqlBuilder = Callable[[SqlContext], GeneratedSql]

BUILDERS: Dict[Tuple[Technology, Engine], SqlBuilder] = {
    (Technology.JDBC, Engine.SPARK): spark_jdbc,
    (Technology.KAFKA, Engine.SPARK): spark_kafka,
    (Technology.MONGODB, Engine.SPARK): spark_mongo,
    (Technology.ELASTICSEARCH, Engine.SPARK): spark_elasticsearch,
    (Technology.JDBC, Engine.FLINK): flink_jdbc,
    (Technology.KAFKA, Engine.FLINK): flink_kafka,
    (Technology.ELASTICSEARCH, Engine.FLINK): flink_elasticsearch,
}
