from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Mapping

import psycopg
from pydantic import BaseModel, Field, ValidationError, field_validator

from metaquery.connectors.base import MetadataConnection, MetadataConnector
from metaquery.connectors.exceptions import MetaRuntimeError
from metaquery.metadata.models import MetaColumnInfo


SslMode = Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]

CONNECT_URL_TEMPLATE = "jdbc:postgresql://{host}:{port}/{database}"


class PostgresParams(BaseModel):
    host: str
    port: int = Field(default=5432, ge=1, le=65535)
    username: str
    password: str = ""
    database: str = "postgres"
    ssl_mode: SslMode = Field(default="prefer", alias="sslmode")
    connect_timeout_s: int = Field(default=10, ge=1)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("host", "username", "database")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


@dataclass
class PostgresConnector(MetadataConnector):
    type_slug: str = "postgresql"
    display_name: str = "PostgreSQL"
    version: str = "1.0.0"

    def get_databases(self, operator: str, params: Mapping[str, Any]) -> List[str]:
        # Schemas play the role of databases in the metadata tree
        rows = self._fetch(
            params,
            "SELECT schema_name FROM information_schema.schemata "
            "WHERE left(schema_name, 3) <> 'pg_' AND schema_name <> 'information_schema' "
            "ORDER BY schema_name",
        )
        return [r[0] for r in rows]

    def get_tables(self, operator: str, params: Mapping[str, Any], database: str) -> List[str]:
        rows = self._fetch(
            params,
            "SELECT table_name FROM information_schema.tables WHERE table_schema = %s ORDER BY table_name",
            (database,),
        )
        return [r[0] for r in rows]

    def get_columns(self, operator: str, params: Mapping[str, Any], database: str, table: str) -> List[MetaColumnInfo]:
        rows = self._fetch(
            params,
            """
            SELECT c.column_name, c.data_type, c.ordinal_position,
                   EXISTS (
                       SELECT 1 FROM information_schema.table_constraints tc
                       JOIN information_schema.key_column_usage k
                         ON k.constraint_name = tc.constraint_name AND k.table_schema = tc.table_schema
                       WHERE tc.constraint_type = 'PRIMARY KEY'
                         AND tc.table_schema = c.table_schema AND tc.table_name = c.table_name
                         AND k.column_name = c.column_name
                   ) AS is_pk
            FROM information_schema.columns c
            WHERE c.table_schema = %s AND c.table_name = %s
            ORDER BY c.ordinal_position
            """,
            (database, table),
        )
        if not rows:
            raise MetaRuntimeError(f"Table not found: {database}.{table}", code="META_TABLE_NOT_FOUND")
        return [MetaColumnInfo(name=r[0], type=r[1], index=r[2], primary_key=bool(r[3])) for r in rows]

    def get_table_props(self, operator: str, params: Mapping[str, Any], database: str, table: str) -> Dict[str, str]:
        rows = self._fetch(
            params,
            """
            SELECT t.table_type, obj_description(format('%%I.%%I', t.table_schema, t.table_name)::regclass, 'pg_class')
            FROM information_schema.tables t
            WHERE t.table_schema = %s AND t.table_name = %s
            """,
            (database, table),
        )
        if not rows:
            raise MetaRuntimeError(f"Table not found: {database}.{table}", code="META_TABLE_NOT_FOUND")
        table_type, comment = rows[0]
        props = {"table_type": str(table_type)}
        if comment:
            props["comment"] = str(comment)
        return props

    def get_connection_info(self, operator: str, params: Mapping[str, Any], query_params: Mapping[str, str]) -> Dict[str, str]:
        pg = _parse(params)
        database = query_params.get("database") or pg.database
        return {
            "url": CONNECT_URL_TEMPLATE.format(host=pg.host, port=pg.port, database=database),
            "username": pg.username,
            "driverClassName": "org.postgresql.Driver",
        }

    def get_connection(self, operator: str, params: Mapping[str, Any]) -> MetadataConnection:
        return MetadataConnection(_connect(_parse(params)))

    def get_sql_connect_url(self, operator: str, params: Mapping[str, Any]) -> str:
        return CONNECT_URL_TEMPLATE

    def _fetch(self, params: Mapping[str, Any], sql: str, args: tuple | None = None) -> list[tuple]:
        with _connection(_parse(params)) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, args)
                return cur.fetchall()


def _parse(params: Mapping[str, Any]) -> PostgresParams:
    try:
        return PostgresParams.model_validate(dict(params))
    except ValidationError as ve:
        raise MetaRuntimeError(f"Invalid postgresql connect params: {ve.errors()}", code="META_INVALID_PARAMS")


def _connect(pg: PostgresParams) -> psycopg.Connection:
    try:
        return psycopg.connect(
            host=pg.host,
            port=pg.port,
            dbname=pg.database,
            user=pg.username,
            password=pg.password,
            sslmode=pg.ssl_mode,
            connect_timeout=pg.connect_timeout_s,
        )
    except psycopg.OperationalError as e:  # network/auth issues
        detail_text = str(e).lower()
        code = "DS_UNREACHABLE"
        if "authentication failed" in detail_text:
            code = "DS_AUTH_FAILED"
        elif "timeout" in detail_text:
            code = "DS_TIMEOUT"
        raise MetaRuntimeError(str(e), code=code) from e


@contextmanager
def _connection(pg: PostgresParams) -> Iterator[psycopg.Connection]:
    conn = _connect(pg)
    try:
        yield conn
    finally:
        conn.close()
