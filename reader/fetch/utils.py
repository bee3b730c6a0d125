from typing import Iterable, List, Tuple

import httpx

from reader.core.errors import InvalidURLError

ALLOWED_SCHEMES = ("http", "https")
# Query parameters that belong to this API, never to the target site
CONTROL_PARAMS = ("url", "format")

def normalize_url(raw: str) -> httpx.URL:
    """
    Turn user input into an absolute http(s) URL.

    Examples: 'example.com' -> https://example.com,
    'http:/foo.bar' -> http://foo.bar, 'ftp://x' -> InvalidURLError
    """
    if not raw:
        raise InvalidURLError("url parameter is empty")

    # Some proxies collapse "://" into ":/"
    for scheme in ALLOWED_SCHEMES:
        collapsed = f"{scheme}:/"
        if raw.startswith(collapsed) and not raw.startswith(collapsed + "/"):
            raw = f"{scheme}://{raw[len(collapsed):]}"
            break

    if "://" not in raw:
        raw = f"https://{raw}"

    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"invalid URL: {e}") from e

    if url.scheme not in ALLOWED_SCHEMES:
        raise InvalidURLError("unsupported URL scheme")
    if not url.host:
        raise InvalidURLError("URL has no host")
    return url

def reconstruct_target_url(query_items: Iterable[Tuple[str, str]]) -> str:
    """
    Re-attach query parameters that a rewrite layer split off the target URL.

    ``/api?url=http://example.com?a=b&c=d`` arrives as url='http://example.com?a=b'
    plus a stray c='d'; the result is 'http://example.com?a=b&c=d'. Pairs the
    target already carries are not added twice, so the operation is idempotent.
    """
    items = list(query_items)
    raw = next((value for key, value in items if key == "url"), "")
    if not raw:
        return ""

    stray = [(key, value) for key, value in items if key not in CONTROL_PARAMS]
    if not stray:
        return raw

    try:
        target = httpx.URL(raw)
    except httpx.InvalidURL:
        return raw

    pairs: List[Tuple[str, str]] = list(target.params.multi_items())
    # An exact repeat of a pair already present is dropped, which keeps this idempotent
    added = False
    for pair in stray:
        if pair not in pairs:
            pairs.append(pair)
            added = True

    if not added:
        return raw
    return str(target.copy_with(params=httpx.QueryParams(pairs)))
