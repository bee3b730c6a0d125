"""
Article extraction and sanitization.

readability picks the main content out of the page; bleach then reduces it to
an allow-list of tags, attributes and URL protocols. Everything downstream
(the renderers) trusts ``SanitizedArticle.content`` only because it went
through ``sanitize_html`` here.
"""

import logging

import bleach
from readability import Document
from readability.readability import Unparseable

from reader.core.errors import ExtractionError
from reader.fetch.base import FetchResult, SanitizedArticle

logger = logging.getLogger(__name__)

ALLOWED_TAGS = frozenset(bleach.sanitizer.ALLOWED_TAGS) | {
    "article", "section", "div", "span", "p", "br", "hr",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "pre", "figure", "figcaption", "img", "picture",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td", "caption",
    "dl", "dt", "dd", "sub", "sup", "del", "ins", "small", "mark",
}

ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "rel"],
    "abbr": ["title"],
    "acronym": ["title"],
    "img": ["src", "alt", "title", "width", "height"],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan", "scope"],
}

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

def sanitize_html(html: str) -> str:
    """Strip everything outside the allow-list (scripts, event handlers, javascript: URLs...)"""
    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )

def extract_article(result: FetchResult) -> SanitizedArticle:
    """
    Run readability over a fetched document and sanitize the outcome.

    Relative links are resolved against the final (post-redirect) URL.
    """
    try:
        doc = Document(str(result.document), url=result.final_url)
        content = doc.summary(html_partial=True)
        title = doc.title()
    except Unparseable as e:
        raise ExtractionError(f"could not extract article from {result.final_url}: {e}") from e

    article = SanitizedArticle(title=title, content=sanitize_html(content))
    logger.debug("extracted %r: %d chars", article.title, len(article.content))
    return article
