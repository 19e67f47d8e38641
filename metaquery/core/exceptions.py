from __future__ import annotations

from fastapi import HTTPException, status


class MetaQueryError(HTTPException):
    code: str = "META_QUERY_ERROR"

    def __init__(self, status_code: int, detail: str, code: str | None = None):
        self.message = detail
        self.code = code or self.code
        super().__init__(status_code=status_code, detail={"message": detail, "code": self.code})

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class PermissionDeniedError(MetaQueryError):
    code = "FORBIDDEN"

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, self.code)
