import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from pharmaflow.app.api.v1.router import router as v1_router
from pharmaflow.app.logging_setup import setup_logging
from pharmaflow.app.settings import settings
from pharmaflow.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

log_path = setup_logging(settings)
if log_path:
    logger.info("logging to %s", log_path)

app = FastAPI(title="PharmaFlow", version="0.1.0")
app.include_router(v1_router, prefix="/v1")

settings.BLOB_ROOT.mkdir(parents=True, exist_ok=True)
app.mount(settings.BLOB_URL_PREFIX, StaticFiles(directory=settings.BLOB_ROOT), name="blobs")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    logger.info("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})
