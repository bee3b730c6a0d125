"""
Render a sanitized article in the negotiated format.

Each renderer sets its own content type and builds the whole body before the
response starts, so a failure can still become a 500. None of them sanitize:
``SanitizedArticle.content`` has already been through the sanitizer in
``reader.fetch.extractor``.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict

from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from jinja2 import Environment, FileSystemLoader, Template, select_autoescape
from markdownify import markdownify
from markupsafe import Markup

from reader.core.config import settings
from reader.core.errors import RenderError
from reader.fetch.base import SanitizedArticle
from reader.schemas import ArticlePayload
from reader.services.negotiation import OutputFormat

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

Renderer = Callable[[SanitizedArticle], Response]

@lru_cache(maxsize=1)
def get_article_template() -> Template:
    """Build the reader-view template once, on first use"""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    return env.get_template("article.html")

def render_html(article: SanitizedArticle) -> Response:
    template = get_article_template()
    page = template.render(
        title=article.title,
        content=Markup(article.content),
        stylesheet=settings.THEME_STYLESHEET,
        theme_script=settings.THEME_SCRIPT,
    )
    return HTMLResponse(page)

def render_markdown(article: SanitizedArticle) -> Response:
    return PlainTextResponse(markdownify(article.content, heading_style="ATX"), media_type="text/markdown")

def render_json(article: SanitizedArticle) -> Response:
    payload = ArticlePayload(title=article.title, content=article.content)
    return JSONResponse(payload.model_dump())

def render_text(article: SanitizedArticle) -> Response:
    return PlainTextResponse(article.content)

RENDERERS: Dict[OutputFormat, Renderer] = {
    OutputFormat.HTML: render_html,
    OutputFormat.MARKDOWN: render_markdown,
    OutputFormat.JSON: render_json,
    OutputFormat.TEXT: render_text,
}

_missing = set(OutputFormat) - set(RENDERERS)
if _missing:
    raise RuntimeError(f"no renderer registered for {sorted(f.value for f in _missing)}")

def render(article: SanitizedArticle, fmt: OutputFormat) -> Response:
    """
    Build the response for ``fmt``.

    Failures while building the response become a RenderError, which the
    API turns into a 500 JSON error.
    """
    renderer = RENDERERS[fmt]
    try:
        return renderer(article)
    except Exception as e:
        logger.exception("error rendering %s response", fmt.value)
        raise RenderError(f"{fmt.value} renderer failed: {e}") from e
