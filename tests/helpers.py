import socket
from typing import Callable, Dict, List, Optional

import httpx

from reader.fetch.base import FetchResult
from reader.fetch.scraper import parse_document

ARTICLE_HTML = """
<html>
<head><title>Understanding Tide Pools</title></head>
<body>
  <nav><a href="/">Home</a> <a href="/about">About</a></nav>
  <article>
    <h2>Life between the tides</h2>
    <p>Tide pools are rocky hollows along the shore that keep a little seawater
    when the tide goes out. They are home to anemones, sea stars, crabs and many
    kinds of small fish that have adapted to a world that changes twice a day.</p>
    <p>The animals that live there must survive waves, sunlight, predators and
    sudden changes in salt and temperature. Visiting at low tide is the best way
    to see them, and walking carefully keeps both visitors and residents safe.</p>
    <p>Scientists study these pools because they are small, accessible ecosystems
    where competition and cooperation between species can be watched up close,
    often over many years at the same stretch of coastline. <a href="/more">More</a></p>
  </article>
  <footer>Copyright Coastal Notes</footer>
</body>
</html>
"""

def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient configured like the real one but answered by ``handler``"""
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        follow_redirects=False,
        trust_env=False,
    )

def streamed_response(status_code: int, body: bytes, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """Response whose body is still unread, like one coming off the wire"""
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))

def html_response(html: str = ARTICLE_HTML, status_code: int = 200) -> httpx.Response:
    return streamed_response(
        status_code,
        html.encode("utf-8"),
        {"Content-Type": "text/html; charset=utf-8"},
    )

def redirect_response(location: str, status_code: int = 302) -> httpx.Response:
    return httpx.Response(status_code, headers={"Location": location})

def responses_by_url(routes: Dict[str, httpx.Response], seen: Optional[List[str]] = None):
    """MockTransport handler serving a fixed response per URL"""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        return routes.get(str(request.url), streamed_response(404, b"not found"))
    return handler

def static_resolver(table: Dict[str, List[str]]):
    """Resolver answering from a fixed table; unknown hosts fail like DNS would"""
    calls: List[str] = []

    async def resolve(host: str, port: int) -> List[str]:
        calls.append(host)
        if host not in table:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return table[host]

    resolve.calls = calls
    return resolve

def make_fetch_result(
    html: str = ARTICLE_HTML,
    final_url: str = "https://example.com/post",
    status_code: int = 200,
) -> FetchResult:
    return FetchResult(
        url=final_url,
        final_url=final_url,
        status_code=status_code,
        document=parse_document(html.encode("utf-8"), "utf-8"),
        truncated=False,
        fetched_at="2026-01-01T00:00:00+00:00",
    )
