"""
SSRF-resistant outbound HTTP.

The address check lives in the network backend's ``connect_tcp``: the host is
resolved there, every candidate address is vetted, and the socket is opened
against a vetted address. Checking the URL string up front would leave a
window for a second DNS answer to point somewhere else before the connect.

Redirects are never followed by httpx itself. ``send_following_redirects``
walks them by hand so each hop goes back through ``normalize_url`` and the
same dial-time check.
"""

import logging
import socket
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Awaitable, Callable, List, Mapping, Optional

import anyio
import httpcore
import httpx

from reader.core.config import settings
from reader.core.errors import (
    ForbiddenAddressError,
    InvalidURLError,
    TooManyRedirectsError,
    UnsupportedRedirectError,
)
from reader.fetch.ip_policy import first_forbidden
from reader.fetch.utils import normalize_url

logger = logging.getLogger(__name__)

Resolver = Callable[[str, int], Awaitable[List[str]]]

async def resolve_host(host: str, port: int) -> List[str]:
    """Resolve a hostname to its distinct IP addresses, in resolver order"""
    infos = await anyio.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    addresses: List[str] = []
    for *_, sockaddr in infos:
        address = sockaddr[0]
        if address not in addresses:
            addresses.append(address)
    return addresses

class GuardedNetworkBackend(httpcore.AsyncNetworkBackend):
    """Network backend that refuses to dial forbidden addresses."""

    def __init__(
        self,
        dial_timeout: Optional[float] = None,
        resolver: Optional[Resolver] = None,
        backend: Optional[httpcore.AsyncNetworkBackend] = None,
    ):
        self._dial_timeout = settings.DIAL_TIMEOUT if dial_timeout is None else dial_timeout
        self._resolve = resolver or resolve_host
        self._backend = backend or httpcore.AnyIOBackend()

    async def connect_tcp(self, host, port, timeout=None, local_address=None, socket_options=None):
        try:
            with anyio.fail_after(self._dial_timeout):
                return await self._dial(host, port, timeout, local_address, socket_options)
        except TimeoutError as e:
            raise httpcore.ConnectTimeout(f"dialing {host!r} timed out after {self._dial_timeout}s") from e

    async def _dial(self, host, port, timeout, local_address, socket_options):
        try:
            addresses = await self._resolve(host, port)
        except OSError as e:
            raise httpcore.ConnectError(f"failed to resolve {host!r}: {e}") from e
        if not addresses:
            raise httpcore.ConnectError(f"no addresses found for {host!r}")

        # One bad candidate poisons the whole answer
        blocked = first_forbidden(addresses)
        if blocked is not None:
            logger.warning("blocked connection to %r (resolved %r)", host, blocked)
            raise ForbiddenAddressError()

        last_error: Optional[Exception] = None
        for address in addresses:
            try:
                return await self._backend.connect_tcp(
                    address,
                    port,
                    timeout=timeout,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except httpcore.ConnectError as e:
                last_error = e
        raise last_error

    async def connect_unix_socket(self, path, timeout=None, socket_options=None):
        raise ForbiddenAddressError("refusing to connect to a unix socket")

    async def sleep(self, seconds: float) -> None:
        await self._backend.sleep(seconds)

class SafeTransport(httpx.AsyncHTTPTransport):
    """httpx transport whose connection pool dials through GuardedNetworkBackend."""

    def __init__(
        self,
        dial_timeout: Optional[float] = None,
        resolver: Optional[Resolver] = None,
        backend: Optional[httpcore.AsyncNetworkBackend] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        # httpx does not expose the pool's network backend as an argument.
        # Refuse to build an unguarded transport if its internals move.
        pool = getattr(self, "_pool", None)
        if not isinstance(pool, httpcore.AsyncConnectionPool) or not hasattr(pool, "_network_backend"):
            raise RuntimeError("cannot install the address guard on this httpx/httpcore version")
        pool._network_backend = GuardedNetworkBackend(dial_timeout, resolver, backend)

def no_cookies_jar() -> CookieJar:
    """Cookie jar that never stores or sends a cookie"""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))

def build_safe_client(
    resolver: Optional[Resolver] = None,
    backend: Optional[httpcore.AsyncNetworkBackend] = None,
) -> httpx.AsyncClient:
    """
    Build the outbound client used for fetching articles.

    Redirects are disabled here and handled by send_following_redirects.
    Proxy environment variables are ignored since a proxy would dial on our
    behalf and bypass the address check. The client is shared by all
    requests, so it keeps no cookies.
    """
    return httpx.AsyncClient(
        transport=SafeTransport(settings.DIAL_TIMEOUT, resolver, backend),
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT, connect=settings.DIAL_TIMEOUT),
        cookies=no_cookies_jar(),
        follow_redirects=False,
        trust_env=False,
    )

async def send_following_redirects(
    client: httpx.AsyncClient,
    url: httpx.URL,
    headers: Mapping[str, str],
    max_redirects: Optional[int] = None,
) -> httpx.Response:
    """
    GET ``url`` and follow redirects by hand.

    Returns the first non-redirect response, unread (the caller owns it and
    must close it). Fails with TooManyRedirectsError on the ``max_redirects``-th
    redirect and with UnsupportedRedirectError when a Location does not
    normalize to an http(s) URL.
    """
    if max_redirects is None:
        max_redirects = settings.MAX_REDIRECTS

    redirects = 0
    while True:
        request = client.build_request("GET", url, headers=headers)
        response = await client.send(request, stream=True)
        if not response.has_redirect_location:
            return response

        location = response.headers["Location"]
        await response.aclose()
        redirects += 1
        if redirects >= max_redirects:
            raise TooManyRedirectsError(max_redirects)

        try:
            url = normalize_url(str(response.url.join(location)))
        except (InvalidURLError, httpx.InvalidURL) as e:
            raise UnsupportedRedirectError(f"refusing redirect to {location!r}: {e}") from e
        logger.debug("following redirect %d to %r", redirects, str(url))
