"""Map the feedback error taxonomy onto HTTP responses.

Registered after Protean's stock handlers. Starlette picks the handler by
walking the exception's MRO, and every feedback error lists
``FeedbackError`` first, so these responses win over the generic ones.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from feedback.shared.errors import FeedbackError

logger = structlog.get_logger(__name__)

STATUS_BY_CODE = {
    "NOT_FOUND": 404,
    "EXPIRED": 410,
    "ALREADY_USED": 409,
    "INVALID_REFERENCE": 400,
    "INVALID_RATING": 400,
    "MISSING_REQUIRED_FIELD": 400,
    "UNEXPECTED_FIELD": 400,
    "INVALID_TRANSITION": 409,
    "CONFLICT_ALREADY_CLOSED": 409,
    "MISSING_RESOLUTION_TYPE": 400,
    "INVARIANT_VIOLATION": 500,
}


def error_body(code: str, message: str, fields=None) -> dict:
    error = {"code": code, "message": message}
    if fields is not None:
        error["fields"] = fields
    return {"error": error}


def register_feedback_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FeedbackError)
    async def feedback_error_handler(request: Request, exc: FeedbackError) -> JSONResponse:
        status_code = STATUS_BY_CODE.get(exc.code, 400)
        if status_code >= 500:
            logger.critical(
                "feedback_invariant_violation",
                alert=True,
                code=exc.code,
                path=request.url.path,
                detail=str(exc),
                extra_info=getattr(exc, "extra_info", None),
            )

        fields = exc.messages if isinstance(exc, ValidationError) and isinstance(exc.messages, dict) else None
        return JSONResponse(status_code=status_code, content=error_body(exc.code, exc.message, fields))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        fields = exc.messages if isinstance(exc.messages, dict) else None
        return JSONResponse(
            status_code=400,
            content=error_body("VALIDATION_ERROR", "The request is invalid.", fields),
        )
