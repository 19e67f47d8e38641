from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any, Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # Application
    app_name: str = 'Metadata Query Service'
    app_version: str = '0.1.0'
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')

    # Data source directory service
    data_source_service_url: str = Field(default='http://localhost:9600/api/rest_j/v1/data-source-manager', alias='DATA_SOURCE_SERVICE_URL')
    data_source_service_timeout_s: float = Field(default=10.0, alias='DATA_SOURCE_SERVICE_TIMEOUT_S')

    # Authorization
    admin_users: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ['hadoop'], alias='ADMIN_USERS')

    # Data source types whose external tables are generated through the JDBC templates
    relational_types: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            'mysql',
            'oracle',
            'postgresql',
            'sqlserver',
            'db2',
            'greenplum',
            'dm',
            'doris',
            'clickhouse',
            'tidb',
            'starrocks',
            'gaussdb',
            'oceanbase',
        ],
        alias='RELATIONAL_TYPES',
    )

    # Builtin data sources, keyed by name: {"type": ..., "connect_params": {...}, "create_user": ...}
    default_data_sources: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias='DEFAULT_DATA_SOURCES')

    # Connector plugins
    connector_entry_point_group: str = 'metaquery.connectors'

    @field_validator('admin_users', 'relational_types', mode='before')
    @classmethod
    def _split_list(cls, v: Any) -> Any:
        # Env values may be a JSON list or comma separated: ADMIN_USERS=hadoop,alice
        if isinstance(v, str):
            text = v.strip()
            if text.startswith('['):
                return json.loads(text)
            return [item.strip() for item in text.split(',') if item.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
