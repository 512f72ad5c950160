"""Exception handlers mapping domain errors to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from greenreceipt.exceptions import DatabaseNotConfiguredError, InvalidIdError, ReceiptPayloadError
from greenreceipt.i18n import get_language, translate


def _language(request: Request):
    return get_language(request.headers.get("accept-language"))


async def receipt_payload_error_handler(request: Request, exc: ReceiptPayloadError) -> JSONResponse:
    logger.info(f"Rejected receipt payload on {request.url.path}: {len(exc.issues)} issue(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "message": translate("validation_failed", _language(request)),
                "code": "VALIDATION_FAILED",
                "issues": exc.issues,
            }
        },
    )


async def invalid_id_error_handler(request: Request, exc: InvalidIdError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": translate("invalid_id", _language(request))},
    )


async def database_error_handler(request: Request, exc: DatabaseNotConfiguredError) -> JSONResponse:
    logger.error(f"Database unavailable for {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": translate("database_unavailable", _language(request))},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": translate("something_went_wrong", _language(request))},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReceiptPayloadError, receipt_payload_error_handler)
    app.add_exception_handler(InvalidIdError, invalid_id_error_handler)
    app.add_exception_handler(DatabaseNotConfiguredError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
