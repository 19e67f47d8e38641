from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from metaquery.core.security import Principal
from metaquery.datasources.exceptions import PermissionDenied
from metaquery.datasources.models import DataSourceReference
from metaquery.metadata.dependencies import get_principal, get_service
from metaquery.metadata.schemas import (
    ColumnResponse,
    ColumnsResponse,
    ConnectRequest,
    ConnectResponse,
    ConnectionInfoResponse,
    DatabasesResponse,
    GeneratedSqlResponse,
    PartitionsResponse,
    PropsResponse,
    SqlResponse,
    TablesResponse,
)
from metaquery.metadata.services import MetadataQueryService


router = APIRouter(prefix="/metadata-query", tags=["metadata-query"])

# Query parameters that select the data source rather than feed the connector
_RESERVED_PARAMS = {"dataSourceName", "system", "envId"}


def _by_name(
    data_source_name: str = Query(..., alias="dataSourceName", min_length=1),
    system: str = Query(..., min_length=1),
    env_id: Optional[str] = Query(default=None, alias="envId"),
) -> DataSourceReference:
    return DataSourceReference.by_name(data_source_name, system, env_id)


def _columns(columns) -> ColumnsResponse:
    items = [ColumnResponse.model_validate(asdict(c) if is_dataclass(c) else c) for c in columns]
    return ColumnsResponse(columns=items)


# By data source name


@router.get("/databases", response_model=DatabasesResponse)
def get_databases(ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"dbs": service.get_databases(ref, principal.user_name)}


@router.get("/tables", response_model=TablesResponse)
def get_tables(database: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"tables": service.get_tables(ref, principal.user_name, database)}


@router.get("/columns", response_model=ColumnsResponse)
def get_columns(database: str, table: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return _columns(service.get_columns(ref, principal.user_name, database, table))


@router.get("/props", response_model=PropsResponse)
def get_table_props(database: str, table: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"props": service.get_table_props(ref, principal.user_name, database, table)}


@router.get("/partitions", response_model=PartitionsResponse)
def get_partitions(
    database: str,
    table: str,
    traverse: bool = False,
    ref: DataSourceReference = Depends(_by_name),
    principal: Principal = Depends(get_principal),
    service: MetadataQueryService = Depends(get_service),
):
    return PartitionsResponse.model_validate(service.get_partitions(ref, principal.user_name, database, table, traverse))


@router.get("/partitions/props", response_model=PropsResponse)
def get_partition_props(
    database: str,
    table: str,
    partition: str,
    ref: DataSourceReference = Depends(_by_name),
    principal: Principal = Depends(get_principal),
    service: MetadataQueryService = Depends(get_service),
):
    return {"props": service.get_partition_props(ref, principal.user_name, database, table, partition)}


@router.get("/connection-info", response_model=ConnectionInfoResponse)
def get_connection_info(request: Request, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    query_params = {k: v for k, v in request.query_params.items() if k not in _RESERVED_PARAMS}
    return {"info": service.get_connection_info(ref, principal.user_name, query_params)}


@router.get("/sql/spark", response_model=SqlResponse)
def get_spark_sql(database: str, table: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"sql": GeneratedSqlResponse.model_validate(service.get_spark_sql(ref, principal.user_name, database, table))}


@router.get("/sql/flink", response_model=SqlResponse)
def get_flink_sql(database: str, table: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"sql": GeneratedSqlResponse.model_validate(service.get_flink_sql(ref, principal.user_name, database, table))}


@router.get("/sql/jdbc", response_model=SqlResponse)
def get_jdbc_sql(database: str, table: str, ref: DataSourceReference = Depends(_by_name), principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    return {"sql": GeneratedSqlResponse.model_validate(service.get_jdbc_sql(ref, principal.user_name, database, table))}


@router.post("/connection/test", response_model=ConnectResponse)
def test_connection(payload: ConnectRequest, principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    # Caller supplied connect params: administrators only
    if not principal.is_admin:
        raise PermissionDenied("Only administrators can test connections")
    service.get_connection(payload.data_source_type, principal.user_name, payload.params)
    return {"ok": True}


# By data source id (deprecated)


@router.get("/by-id/{data_source_id}/databases", response_model=DatabasesResponse, deprecated=True)
def get_databases_by_id(data_source_id: str, system: str, principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    ref = DataSourceReference.by_id(data_source_id, system)
    return {"dbs": service.get_databases(ref, principal.user_name)}


@router.get("/by-id/{data_source_id}/tables", response_model=TablesResponse, deprecated=True)
def get_tables_by_id(data_source_id: str, system: str, database: str, principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    ref = DataSourceReference.by_id(data_source_id, system)
    return {"tables": service.get_tables(ref, principal.user_name, database)}


@router.get("/by-id/{data_source_id}/columns", response_model=ColumnsResponse, deprecated=True)
def get_columns_by_id(data_source_id: str, system: str, database: str, table: str, principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    ref = DataSourceReference.by_id(data_source_id, system)
    return _columns(service.get_columns(ref, principal.user_name, database, table))


@router.get("/by-id/{data_source_id}/props", response_model=PropsResponse, deprecated=True)
def get_table_props_by_id(data_source_id: str, system: str, database: str, table: str, principal: Principal = Depends(get_principal), service: MetadataQueryService = Depends(get_service)):
    ref = DataSourceReference.by_id(data_source_id, system)
    return {"props": service.get_table_props(ref, principal.user_name, database, table)}


@router.get("/by-id/{data_source_id}/partitions", response_model=PartitionsResponse, deprecated=True)
def get_partitions_by_id(
    data_source_id: str,
    system: str,
    database: str,
    table: str,
    traverse: bool = False,
    principal: Principal = Depends(get_principal),
    service: MetadataQueryService = Depends(get_service),
):
    ref = DataSourceReference.by_id(data_source_id, system)
    return PartitionsResponse.model_validate(service.get_partitions(ref, principal.user_name, database, table, traverse))


@router.get("/by-id/{data_source_id}/partitions/props", response_model=PropsResponse, deprecated=True)
def get_partition_props_by_id(
    data_source_id: str,
    system: str,
    database: str,
    table: str,
    partition: str,
    principal: Principal = Depends(get_principal),
    service: MetadataQueryService = Depends(get_service),
):
    ref = DataSourceReference.by_id(data_source_id, system)
    return {"props": service.get_partition_props(ref, principal.user_name, database, table, partition)}
