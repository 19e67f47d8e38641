from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from metaquery.core.security import AdminChecker
from metaquery.datasources.client import DataSourceDirectory
from metaquery.datasources.defaults import DefaultDataSourceStore
from metaquery.datasources.exceptions import (
    DataSourceNotPublished,
    PermissionDenied,
    RemoteServiceError,
    SourceStatusError,
)
from metaquery.datasources.models import (
    DataSourceReference,
    DsInfoQueryRequest,
    DsInfoResponse,
    ResolvedDataSource,
)
from metaquery.datasources.utils import redact_params


logger = logging.getLogger(__name__)


class DataSourceResolver:
    """Turns a data source reference into its type, creator and connect params.

    Every resolution goes through the same checks, in order: the directory
    answered with a well formed record, the record reports success, the caller
    is an administrator or the creator, and the params are published (unless
    the source is a builtin default).
    """

    def __init__(self, directory: DataSourceDirectory, defaults: DefaultDataSourceStore, admin_checker: AdminChecker) -> None:
        self.directory = directory
        self.defaults = defaults
        self.admin_checker = admin_checker

    def resolve(self, reference: DataSourceReference, user_name: str) -> ResolvedDataSource:
        if reference.id:
            return self.resolve_by_id(reference.id, reference.system, user_name)
        return self.resolve_by_name(reference.name or "", reference.system, user_name, reference.env_id)

    def resolve_by_id(self, data_source_id: str, system: str, user_name: str) -> ResolvedDataSource:
        """Deprecated: data sources should be addressed by name."""
        raw = self._ask(DsInfoQueryRequest(id=data_source_id, name=None, system=system))
        return self._check(raw, user_name, use_default=False, label=f"id={data_source_id}")

    def resolve_by_name(self, name: str, system: str, user_name: str, env_id: str | None = None) -> ResolvedDataSource:
        default = self.defaults.get(name)
        if default is not None:
            logger.debug("Data source '%s' resolved from the default data sources", name)
            return self._check(default.to_response(), user_name, use_default=True, label=f"name={name}")
        raw = self._ask(DsInfoQueryRequest(id=None, name=name, system=system, env_id=env_id))
        return self._check(raw, user_name, use_default=False, label=f"name={name}")

    def _ask(self, request: DsInfoQueryRequest) -> Any:
        try:
            return self.directory.query(request)
        except Exception as e:
            logger.error("Data source directory request failed (id=%s, name=%s, system=%s): %s", request.id, request.name, request.system, e)
            raise RemoteServiceError() from e

    def _check(self, raw: Any, user_name: str, *, use_default: bool, label: str) -> ResolvedDataSource:
        response = _as_response(raw)
        if not response.status:
            raise SourceStatusError(response.error_msg)

        has_permission = self.admin_checker.is_administrator(user_name) or (
            bool(response.creator) and user_name == response.creator
        )
        if not has_permission:
            logger.warning("User '%s' denied access to data source [%s]", user_name, label)
            raise PermissionDenied()
        if not use_default and not response.params:
            raise DataSourceNotPublished()

        resolved = ResolvedDataSource.from_response(response, use_default=use_default)
        logger.debug(
            "Resolved data source [%s] type=%s creator=%s params=%s",
            label,
            resolved.type,
            resolved.creator,
            redact_params(resolved.parameters),
        )
        return resolved


def _as_response(raw: Any) -> DsInfoResponse:
    if isinstance(raw, DsInfoResponse):
        return raw
    if not isinstance(raw, dict):
        raise RemoteServiceError()
    try:
        return DsInfoResponse.model_validate(raw)
    except ValidationError as e:
        logger.error("Unexpected data source directory response: %s", e)
        raise RemoteServiceError() from e
