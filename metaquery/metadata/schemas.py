from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    name: str
    type: str
    index: Optional[int] = None
    primary_key: bool = Field(default=False, alias="primaryKey")


class PartitionNodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str = ""
    partitions: Dict[str, "PartitionNodeResponse"] = Field(default_factory=dict)


PartitionNodeResponse.model_rebuild()


class PartitionsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    part_keys: List[str] = Field(default_factory=list, alias="partKeys")
    name: str = ""
    root: PartitionNodeResponse = Field(default_factory=PartitionNodeResponse)


class GeneratedSqlResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ddl: str = ""
    dml: str = ""
    dql: str = ""


class DatabasesResponse(BaseModel):
    dbs: List[str]


class TablesResponse(BaseModel):
    tables: List[str]


class ColumnsResponse(BaseModel):
    columns: List[ColumnResponse]


class PropsResponse(BaseModel):
    props: Dict[str, Any]


class ConnectionInfoResponse(BaseModel):
    info: Dict[str, Any]


class SqlResponse(BaseModel):
    sql: GeneratedSqlResponse


class ConnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data_source_type: str = Field(..., alias="dataSourceType", min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)


class ConnectResponse(BaseModel):
    ok: bool = True
