from __future__ import annotations

from fastapi import status

from metaquery.core.exceptions import MetaQueryError, PermissionDeniedError


class RemoteServiceError(MetaQueryError):
    code = "REMOTE_SERVICE_ERROR"

    def __init__(self, detail: str = "Remote Service Error, please contact the operator"):
        super().__init__(status.HTTP_502_BAD_GATEWAY, detail, self.code)


class SourceStatusError(RemoteServiceError):
    code = "DS_STATUS_ERROR"

    def __init__(self, remote_message: str = ""):
        self.remote_message = remote_message
        MetaQueryError.__init__(
            self,
            status.HTTP_502_BAD_GATEWAY,
            f"Error in Data Source Manager Server: {remote_message}",
            self.code,
        )


class PermissionDenied(PermissionDeniedError):
    code = "DS_PERMISSION_DENIED"

    def __init__(self, detail: str = "Don't have query permission for data source"):
        MetaQueryError.__init__(self, status.HTTP_403_FORBIDDEN, detail, self.code)


class DataSourceNotPublished(MetaQueryError):
    code = "DS_NOT_PUBLISHED"

    def __init__(self, detail: str = "Have you published the data source? Its connect parameters are empty"):
        super().__init__(status.HTTP_409_CONFLICT, detail, self.code)
