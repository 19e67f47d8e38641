from __future__ import annotations

from typing import Any, Sequence

from fastapi import status

from metaquery.core.exceptions import MetaQueryError


class MetaRuntimeError(Exception):
    """Raised by connectors for expected, user facing failures."""

    code: str = "META_RUNTIME_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ConnectorLoadError(MetaQueryError):
    code = "META_LOAD_FAILED"

    def __init__(self, data_source_type: str, reason: str | None = None):
        self.data_source_type = data_source_type
        detail = f"Load meta service for {data_source_type} fail"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(status.HTTP_501_NOT_IMPLEMENTED, detail, self.code)


class ConnectorInvocationError(MetaQueryError):
    code = "META_INVOKE_FAILED"

    def __init__(self, operation: str, args: Sequence[Any], detail: str, code: str | None = None):
        # args may carry credentials; they stay on the exception and out of the detail
        self.operation = operation
        self.args_ = tuple(args)
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, code or self.code)

    @classmethod
    def passthrough(cls, operation: str, args: Sequence[Any], error: MetaRuntimeError) -> "ConnectorInvocationError":
        return cls(operation, args, error.message, error.code)

    @classmethod
    def wrap(cls, operation: str, args: Sequence[Any], error: BaseException) -> "ConnectorInvocationError":
        message = str(error) or type(error).__name__
        return cls(operation, args, f"Failed to invoke method: {operation}, message: {message}")
