import datetime as dt
import logging
import random
import zlib
from typing import Dict, Optional, Tuple

from anyio import to_thread
import httpx
from bs4 import BeautifulSoup

from reader.core.config import settings
from reader.core.errors import FetchError
from reader.fetch.base import FetchResult
from reader.fetch.transport import send_following_redirects

logger = logging.getLogger(__name__)

# Real browser strings; many sites block default client User-Agents.
# Needs refreshing as browser versions move on.
USER_AGENT_POOL = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36 Edg/134.0.0.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:135.0) Gecko/20100101 Firefox/135.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 18_3 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.3 Mobile/15E148 Safari/604.1",
)

_NAVIGATION_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    # No br/zstd: bodies are decompressed incrementally with zlib
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}

def random_user_agent() -> str:
    return random.choice(USER_AGENT_POOL)

def build_request_headers(accept_language: Optional[str] = None) -> Dict[str, str]:
    """Headers that make the fetch look like a browser navigation"""
    headers = {"User-Agent": random_user_agent()}
    headers.update(_NAVIGATION_HEADERS)
    headers["Accept-Language"] = accept_language or settings.DEFAULT_ACCEPT_LANGUAGE
    return headers

def _decompressor(content_encoding: str):
    """
    Incremental decoder for the response's Content-Encoding, or None for identity.

    Only the encodings we advertise are accepted; anything else would have to
    be decoded without an output bound.
    """
    encoding = content_encoding.strip().lower()
    if encoding in ("", "identity"):
        return None
    if encoding in ("gzip", "x-gzip", "deflate"):
        # 32 + MAX_WBITS: detect gzip or zlib header
        return zlib.decompressobj(32 + zlib.MAX_WBITS)
    raise FetchError(f"unsupported content encoding {content_encoding!r}")

async def read_capped_body(response: httpx.Response, limit: int) -> Tuple[bytes, bool]:
    """
    Read at most ``limit`` bytes of the decoded body.

    Raw chunks are decompressed here with a bounded output size, so a small
    compressed body cannot expand past the cap in memory. Stops pulling from
    the stream as soon as the cap is hit, whatever the server declared in
    Content-Length. Returns (body, truncated).
    """
    decoder = _decompressor(response.headers.get("Content-Encoding", ""))
    body = bytearray()
    async for chunk in response.aiter_raw():
        if decoder is not None:
            try:
                chunk = decoder.decompress(chunk, limit - len(body) + 1)
            except zlib.error as e:
                raise FetchError(f"corrupt compressed body from {str(response.url)!r}: {e}") from e
        remaining = limit - len(body)
        if len(chunk) > remaining:
            body.extend(chunk[:remaining])
            return bytes(body), True
        body.extend(chunk)
    return bytes(body), False

def parse_document(body: bytes, encoding: Optional[str] = None) -> BeautifulSoup:
    return BeautifulSoup(body, "html.parser", from_encoding=encoding)

async def fetch_document(
    client: httpx.AsyncClient,
    target_url: httpx.URL,
    accept_language: Optional[str] = None,
) -> FetchResult:
    """
    Fetch the target through the safe client and parse the size-capped body.

    Non-2xx responses are parsed like any other page; the extractor decides
    whether anything readable is in there.
    """
    headers = build_request_headers(accept_language)
    response = await send_following_redirects(client, target_url, headers)
    try:
        body, truncated = await read_capped_body(response, settings.MAX_BODY_BYTES)
    finally:
        await response.aclose()

    final_url = str(response.url)
    if truncated:
        logger.warning("body of %r truncated at %d bytes", final_url, settings.MAX_BODY_BYTES)
    logger.info("fetched %r: status=%d bytes=%d", final_url, response.status_code, len(body))

    document = await to_thread.run_sync(parse_document, body, response.charset_encoding)
    return FetchResult(
        url=str(target_url),
        final_url=final_url,
        status_code=response.status_code,
        document=document,
        truncated=truncated,
        fetched_at=dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
    )
