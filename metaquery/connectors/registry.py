from __future__ import annotations

import logging
import threading
from importlib.metadata import EntryPoint, entry_points
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import MetadataConnector, Operation, bind
from .exceptions import ConnectorInvocationError, ConnectorLoadError, MetaRuntimeError


logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[], MetadataConnector]


class ConnectorRegistry:
    """Registry of metadata connectors, keyed by data source type.

    Connectors come from factories registered in-process or from installed
    plugins exposed through an entry point group (entry point name = type).
    Each type is instantiated lazily, at most once, and kept for the life of
    the process.
    """

    def __init__(self, entry_point_group: Optional[str] = "metaquery.connectors") -> None:
        self.entry_point_group = entry_point_group
        self._connectors: Dict[str, MetadataConnector] = {}
        self._factories: Dict[str, ConnectorFactory] = {}
        self._entry_points: Optional[Dict[str, EntryPoint]] = None
        self._lock = threading.Lock()
        self._type_locks: Dict[str, threading.Lock] = {}

    def register(self, connector: MetadataConnector) -> None:
        key = _key(connector.type_slug)
        if not key:
            raise ValueError(f"{type(connector).__name__} has no type_slug to register under")
        with self._lock:
            self._connectors[key] = connector

    def register_factory(self, data_source_type: str, factory: ConnectorFactory) -> None:
        key = _key(data_source_type)
        with self._lock:
            self._factories[key] = factory
            self._connectors.pop(key, None)

    def registered_types(self) -> List[str]:
        with self._lock:
            names = set(self._connectors) | set(self._factories)
        names |= set(self._discover())
        return sorted(names)

    def resolve(self, data_source_type: str) -> MetadataConnector:
        key = _key(data_source_type)
        if not key:
            raise ConnectorLoadError(data_source_type, "empty data source type")
        connector = self._connectors.get(key)
        if connector is not None:
            return connector
        with self._type_lock(key):
            connector = self._connectors.get(key)
            if connector is None:
                connector = self._load(key)
                self._connectors[key] = connector
        return connector

    def invoke(self, connector: MetadataConnector, operation: Operation, args: Sequence[Any]) -> Any:
        method = bind(connector, operation)
        try:
            return method(*args)
        except MetaRuntimeError as e:
            raise ConnectorInvocationError.passthrough(operation.value, args, e) from e
        except Exception as e:
            logger.error("Connector '%s' failed on %s: %s", connector.type_slug or type(connector).__name__, operation.value, e)
            raise ConnectorInvocationError.wrap(operation.value, args, e) from e

    def _type_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._type_locks.setdefault(key, threading.Lock())

    def _load(self, key: str) -> MetadataConnector:
        factory = self._factories.get(key)
        source = "builtin"
        if factory is None:
            ep = self._discover().get(key)
            if ep is None:
                raise ConnectorLoadError(key, "no connector registered for this type")
            source = f"plugin {ep.value}"
            try:
                factory = ep.load()
            except Exception as e:
                logger.error("Failed to load connector plugin '%s': %s", ep.value, e)
                raise ConnectorLoadError(key, str(e)) from e
        try:
            connector = factory()
        except Exception as e:
            logger.error("Failed to initialize connector for '%s': %s", key, e)
            raise ConnectorLoadError(key, str(e)) from e
        logger.info("Loaded metadata connector for '%s' (%s)", key, source)
        return connector

    def _discover(self) -> Dict[str, EntryPoint]:
        if self._entry_points is not None:
            return self._entry_points
        found: Dict[str, EntryPoint] = {}
        if self.entry_point_group:
            for ep in entry_points(group=self.entry_point_group):
                found.setdefault(_key(ep.name), ep)
        self._entry_points = found
        return found


def _key(data_source_type: Optional[str]) -> str:
    return (data_source_type or "").strip().lower()
