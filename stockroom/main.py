import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stockroom.api import categories, products
from stockroom.config import settings
from stockroom.database import init_db
from stockroom.exceptions import StockroomError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    logger.info("%s started", settings.APP_NAME)
    yield


app = FastAPI(
    title="Stockroom API",
    description="Per-organization categories, products and stock ledger",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(StockroomError)
async def stockroom_exception_handler(request: Request, exc: StockroomError):
    """Map typed domain errors to a JSON body with a stable error code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.code})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return JSON for unhandled exceptions so clients can parse the error."""
    logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(categories.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok"}
