import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.cache import cache
from app.config import settings
from app.errors import AppError, TransactionValidationError
from app.middleware import DiagnosticsMiddleware
from app.routers import metrics, transactions

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: a missing Redis only costs latency, never availability.
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()

app = FastAPI(
    title="Transactions API",
    description="Per-user income/expense transactions with cache-aside reads",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(DiagnosticsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, TransactionValidationError) and exc.details:
        body["errors"] = exc.details
    return JSONResponse(status_code=exc.http_status, content=body)

# Routers
app.include_router(transactions.router)
app.include_router(metrics.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0", "cache_connected": cache.connected}
