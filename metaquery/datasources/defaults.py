from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from metaquery.datasources.models import DefaultDataSource


logger = logging.getLogger(__name__)


class DefaultDataSourceStore:
    """Read-only table of builtin data sources (sandbox/demo environments), keyed by name."""

    def __init__(self, sources: Iterable[DefaultDataSource] = ()) -> None:
        self._sources: Mapping[str, DefaultDataSource] = MappingProxyType({s.name: s for s in sources})

    @classmethod
    def from_config(cls, config: Mapping[str, Mapping[str, Any]] | None) -> "DefaultDataSourceStore":
        sources: list[DefaultDataSource] = []
        for name, entry in (config or {}).items():
            ds_type = entry.get("type") or entry.get("data_source_type")
            if not ds_type:
                raise ValueError(f"Default data source '{name}' has no type")
            sources.append(
                DefaultDataSource(
                    name=name,
                    type=str(ds_type),
                    connect_params=dict(entry.get("connect_params") or {}),
                    create_user=str(entry.get("create_user") or ""),
                )
            )
        if sources:
            logger.info("Loaded %d default data source(s): %s", len(sources), ", ".join(s.name for s in sources))
        return cls(sources)

    def get(self, name: Optional[str]) -> Optional[DefaultDataSource]:
        if not name:
            return None
        return self._sources.get(name)

    def names(self) -> list[str]:
        return sorted(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

