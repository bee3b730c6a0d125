import logging
from typing import Optional

import anyio
import httpx
from anyio import to_thread

from reader.core.config import settings
from reader.core.errors import FetchError
from reader.fetch.base import SanitizedArticle
from reader.fetch.extractor import extract_article
from reader.fetch.scraper import fetch_document

logger = logging.getLogger(__name__)

async def read_article(
    client: httpx.AsyncClient,
    target_url: httpx.URL,
    accept_language: Optional[str] = None,
) -> SanitizedArticle:
    """
    Fetch -> parse -> extract -> sanitize for one request.

    The whole fetch (DNS, connects, every redirect hop, body read) shares a
    single deadline. Transport failures are normalized to FetchError; the
    original exception stays chained for the logs.
    """
    try:
        with anyio.fail_after(settings.REQUEST_TIMEOUT):
            result = await fetch_document(client, target_url, accept_language)
    except FetchError:
        raise
    except TimeoutError as e:
        raise FetchError(f"fetching {str(target_url)!r} exceeded {settings.REQUEST_TIMEOUT}s") from e
    except httpx.HTTPError as e:
        raise FetchError(f"fetching {str(target_url)!r} failed: {e!r}") from e

    # readability and bleach are CPU-bound; keep them off the event loop
    return await to_thread.run_sync(extract_article, result)
