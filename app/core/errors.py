# app/core/errors.py
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorWithCode(Exception):
    """
    Tagged error raised by core operations.

    Rendered to clients as `{"code": ..., "message": ...}` with `status_code`
    as the HTTP status.
    """

    def __init__(self, code: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"ErrorWithCode(code={self.code!r}, message={self.message!r})"


def user_not_authenticated() -> ErrorWithCode:
    return ErrorWithCode("USER_NOT_AUTHENTICATED", "User not authenticated", 401)


def validation_error(message: str) -> ErrorWithCode:
    return ErrorWithCode("VALIDATION_ERROR", message, 422)


def not_found(message: str = "Not found") -> ErrorWithCode:
    return ErrorWithCode("NOT_FOUND", message, 404)


def forbidden(message: str) -> ErrorWithCode:
    return ErrorWithCode("FORBIDDEN", message, 403)


def conflict(message: str) -> ErrorWithCode:
    return ErrorWithCode("CONFLICT", message, 409)


def credential_missing() -> ErrorWithCode:
    return ErrorWithCode("CREDENTIAL_MISSING", "API key not configured", 400)


def generation_failed(message: str = "Failed to generate media") -> ErrorWithCode:
    return ErrorWithCode("GENERATION_FAILED", message, 502)


def invalid_aspect_ratio() -> ErrorWithCode:
    return ErrorWithCode("INVALID_ASPECT_RATIO", "Invalid aspect ratio specified", 422)


def invalid_duration() -> ErrorWithCode:
    return ErrorWithCode("INVALID_DURATION", "Invalid video duration specified", 422)


async def error_with_code_handler(request: Request, exc: ErrorWithCode):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Collapse FastAPI's per-field details into the same {code, message} shape
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    message = "; ".join(messages) or "Invalid request"
    return JSONResponse(status_code=422, content={"code": "VALIDATION_ERROR", "message": message})
