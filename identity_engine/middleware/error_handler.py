"""
Error Handling
Maps identity errors to JSON responses
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from identity_engine.core.errors import IdentityError, ReferenceMigrationFailure

logger = logging.getLogger(__name__)


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    if isinstance(exc, ReferenceMigrationFailure):
        # already logged with traceback by the merge engine
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
