from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class MythboardError(Exception):
    """Base error, rendered as {"detail": ...} with `status_code`"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)

    def payload(self) -> dict:
        return {"detail": self.detail}


class AuthenticationRequired(MythboardError):
    """No session exists in the account identity mode"""
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication required"


class TargetNotFound(MythboardError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Target not found"


class InvalidReactionType(MythboardError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Unknown reaction type"


class StoreError(MythboardError):
    """The row store rejected or failed an operation"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Store operation failed"


class StoreConflictError(StoreError):
    """A uniqueness constraint was violated, usually by a concurrent write"""
    status_code = status.HTTP_409_CONFLICT
    detail = "Conflicting write"


class ReactionToggleError(MythboardError):
    """A reaction toggle failed; carries the summary reloaded after the attempt"""

    def __init__(self, cause: StoreError, summary: Any = None):
        super().__init__(cause.detail)
        self.status_code = cause.status_code
        self.cause = cause
        self.summary = summary

    def payload(self) -> dict:
        payload = super().payload()
        if self.summary is not None:
            payload["summary"] = self.summary.model_dump(mode="json") if hasattr(self.summary, "model_dump") else self.summary
        return payload


async def mythboard_error_handler(request: Request, exc: MythboardError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MythboardError, mythboard_error_handler)
