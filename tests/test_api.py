"""Tests for the HTTP API surface."""

import pytest
from fastapi.testclient import TestClient

from metaquery.core.security import Principal
from metaquery.main import app
from metaquery.metadata.dependencies import get_principal, get_service


HEADERS = {"Token-User": "alice"}


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_databases_by_name(client):
    resp = client.get("/api/v1/metadata-query/databases", params={"dataSourceName": "mysql_demo", "system": "IDE"}, headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {"dbs": ["db1", "db2"]}


def test_columns_by_name(client):
    resp = client.get(
        "/api/v1/metadata-query/columns",
        params={"dataSourceName": "mysql_demo", "system": "IDE", "database": "db1", "table": "sales"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()["columns"]] == ["id", "name"]
    assert resp.json()["columns"][0]["primaryKey"] is False


def test_partitions_by_name(client):
    resp = client.get(
        "/api/v1/metadata-query/partitions",
        params={"dataSourceName": "mysql_demo", "system": "IDE", "database": "db1", "table": "sales", "traverse": "true"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["partKeys"] == ["ds"]


def test_connection_info_forwards_extra_query_params(client, connectors):
    resp = client.get(
        "/api/v1/metadata-query/connection-info",
        params={"dataSourceName": "mysql_demo", "system": "IDE", "tz": "UTC"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["info"] == {"host": "10.0.0.5", "tz": "UTC"}


def test_spark_sql(client):
    resp = client.get(
        "/api/v1/metadata-query/sql/spark",
        params={"dataSourceName": "mysql_demo", "system": "IDE", "database": "db1", "table": "sales"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["sql"]["dql"] == "SELECT id,name FROM sales"


def test_flink_sql_for_unsupported_technology_is_empty(client):
    resp = client.get(
        "/api/v1/metadata-query/sql/flink",
        params={"dataSourceName": "redis_cache", "system": "IDE", "database": "0", "table": "keys"},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["sql"] == {"ddl": "", "dml": "", "dql": ""}


def test_tables_by_id(client):
    resp = client.get("/api/v1/metadata-query/by-id/42/tables", params={"system": "IDE", "database": "db1"}, headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {"tables": ["sales", "orders"]}


def test_permission_denied_maps_to_403(client):
    resp = client.get(
        "/api/v1/metadata-query/databases",
        params={"dataSourceName": "mysql_demo", "system": "IDE"},
        headers={"Token-User": "mallory"},
    )

    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "DS_PERMISSION_DENIED"


def test_not_published_maps_to_409(client):
    resp = client.get("/api/v1/metadata-query/databases", params={"dataSourceName": "draft", "system": "IDE"}, headers=HEADERS)

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DS_NOT_PUBLISHED"


def test_missing_user_header_is_rejected(client):
    resp = client.get("/api/v1/metadata-query/databases", params={"dataSourceName": "mysql_demo", "system": "IDE"})

    assert resp.status_code == 401


def test_connection_test_as_admin(client, connectors):
    app.dependency_overrides[get_principal] = lambda: Principal(user_name="hadoop", is_admin=True)

    resp = client.post(
        "/api/v1/metadata-query/connection/test",
        json={"dataSourceType": "mysql", "params": {"host": "h"}},
        headers={"Token-User": "hadoop"},
    )

    assert resp.status_code == 200
    assert connectors["mysql"].handle.closed is True
    assert connectors["mysql"].calls == [("getConnection", ("hadoop", {"host": "h"}))]


def test_connection_test_requires_admin(client, connectors):
    app.dependency_overrides[get_principal] = lambda: Principal(user_name="alice", is_admin=False)

    resp = client.post(
        "/api/v1/metadata-query/connection/test",
        json={"dataSourceType": "mysql", "params": {"host": "attacker.example", "port": 22}},
        headers=HEADERS,
    )

    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "DS_PERMISSION_DENIED"
    assert connectors["mysql"].calls == []
