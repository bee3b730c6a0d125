import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from reader.core.errors import InvalidURLError, ReaderError
from reader.fetch.utils import normalize_url, reconstruct_target_url
from reader.render.dispatcher import render
from reader.schemas import ErrorResponse
from reader.services.negotiation import OutputFormat, RequestSignals, select_format
from reader.services.read import read_article

logger = logging.getLogger(__name__)

router = APIRouter()

def get_http_client(request: Request) -> httpx.AsyncClient:
    """Outbound client created in the app lifespan"""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise RuntimeError("outbound HTTP client is not initialized")
    return client

@router.get(
    "/api",
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def read(request: Request, client: httpx.AsyncClient = Depends(get_http_client)) -> Response:
    """
    Fetch ``url`` and return its readable content.

    Format comes from ``format``, then Accept, then User-Agent, else html.
    """
    raw_link = reconstruct_target_url(request.query_params.multi_items())
    requested = select_format(RequestSignals.from_request(request))
    # %r keeps user-controlled newlines from forging log lines
    logger.info("request: %r %r", requested, raw_link)

    fmt = OutputFormat.parse(requested)

    try:
        target = normalize_url(raw_link)
    except InvalidURLError as e:
        logger.warning("error normalizing URL %r: %s", raw_link, e)
        raise

    try:
        article = await read_article(client, target, request.headers.get("accept-language"))
    except ReaderError as e:
        logger.warning("error fetching or parsing URL %r: %s", raw_link, e)
        raise

    return render(article, fmt)

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Readable Web"}
