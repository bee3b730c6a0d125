import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reader.api.routes import router
from reader.core.config import settings
from reader.core.errors import ReaderError
from reader.fetch.transport import build_safe_client

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    The outbound client (and its connection pool) lives for the whole process.
    """
    logger.info("Starting Readable Web")
    app.state.http_client = build_safe_client()

    yield

    await app.state.http_client.aclose()
    logger.info("Shutting down Readable Web")

app = FastAPI(
    title="Readable Web",
    description="Fetch a web page and serve its readable article as HTML, Markdown, JSON or text",
    version="1.0.0",
    lifespan=lifespan
)

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Content-Security-Policy"] = settings.content_security_policy
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer-when-downgrade"
    return response

@app.exception_handler(ReaderError)
async def reader_error_handler(request: Request, exc: ReaderError):
    # Detail stays in the logs; clients only get the generic message
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

app.include_router(router)

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "Readable Web",
        "version": "1.0.0",
        "endpoints": {
            "read": "GET /api?url=<target>&format=<html|md|json|text>",
            "health": "GET /health"
        }
    }
