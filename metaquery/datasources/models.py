from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class DataSourceReference:
    """Identity of a data source: an opaque id, or a name within a system/environment."""

    system: str
    id: Optional[str] = None
    name: Optional[str] = None
    env_id: Optional[str] = None

    def __post_init__(self) -> None:
        if bool(self.id) == bool(self.name):
            raise ValueError("exactly one of 'id' or 'name' must be provided")

    @classmethod
    def by_id(cls, data_source_id: str, system: str) -> "DataSourceReference":
        return cls(system=system, id=data_source_id)

    @classmethod
    def by_name(cls, name: str, system: str, env_id: Optional[str] = None) -> "DataSourceReference":
        return cls(system=system, name=name, env_id=env_id or None)

    @property
    def label(self) -> str:
        if self.id:
            return f"id={self.id}"
        return f"name={self.name}" + (f", env={self.env_id}" if self.env_id else "")


@dataclass(frozen=True)
class DsInfoQueryRequest:
    id: Optional[str]
    name: Optional[str]
    system: str
    env_id: Optional[str] = None

    def to_payload(self) -> dict:
        return {"id": self.id, "name": self.name, "system": self.system, "envId": self.env_id}


class DsInfoResponse(BaseModel):
    """Wire shape returned by the data source directory service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: bool
    ds_type: str = Field(default="", alias="dsType")
    creator: str = ""
    params: Dict[str, Any] = Field(default_factory=dict)
    error_msg: str = Field(default="", alias="errorMsg")

    @field_validator("ds_type", "creator", "error_msg", mode="before")
    @classmethod
    def _none_as_empty_str(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("params", mode="before")
    @classmethod
    def _none_as_empty_params(cls, v: Any) -> Any:
        return {} if v is None else v


@dataclass(frozen=True)
class DefaultDataSource:
    name: str
    type: str
    connect_params: Dict[str, Any] = field(default_factory=dict)
    create_user: str = ""

    def to_response(self) -> DsInfoResponse:
        return DsInfoResponse(
            status=True,
            ds_type=self.type,
            creator=self.create_user,
            params=dict(self.connect_params),
            error_msg="",
        )


@dataclass
class ResolvedDataSource:
    type: str
    creator: str
    parameters: Dict[str, Any]
    status: bool = True
    error_message: Optional[str] = None
    use_default: bool = False

    @classmethod
    def from_response(cls, response: DsInfoResponse, *, use_default: bool = False) -> "ResolvedDataSource":
        return cls(
            type=response.ds_type or "",
            creator=response.creator or "",
            parameters=response.params,
            status=response.status,
            error_message=response.error_msg or None,
            use_default=use_default,
        )
