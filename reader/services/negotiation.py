"""
Output format negotiation.

The chosen format comes from the first rule in ``FORMAT_RULES`` that has an
opinion, in priority order:

1. explicit ``format`` query parameter (any non-empty value, validated later)
2. ``Accept`` header
3. known crawler / LLM agent in ``User-Agent`` -> markdown
4. html
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from starlette.requests import Request

from reader.core.errors import InvalidFormatError

class OutputFormat(str, Enum):
    HTML = "html"
    MARKDOWN = "markdown"
    JSON = "json"
    TEXT = "text"

    @classmethod
    def parse(cls, value: str) -> "OutputFormat":
        """Map a requested format (aliases included) to an OutputFormat"""
        fmt = FORMAT_ALIASES.get(value.strip().lower())
        if fmt is None:
            raise InvalidFormatError(f"invalid format: {value!r}")
        return fmt

FORMAT_ALIASES = {
    "html": OutputFormat.HTML,
    "md": OutputFormat.MARKDOWN,
    "markdown": OutputFormat.MARKDOWN,
    "json": OutputFormat.JSON,
    "text": OutputFormat.TEXT,
    "txt": OutputFormat.TEXT,
}

# Substrings of User-Agents that want token-efficient output
LLM_USER_AGENTS = (
    "gptbot",
    "chatgpt",
    "claude",
    "googlebot",
    "bingbot",
    "anthropic",
    "perplexity",
    "claudebot",
    "github-copilot",
)

# Checked in order; first match wins
ACCEPT_RULES = (
    (("application/json",), "json"),
    (("text/markdown", "text/x-markdown"), "md"),
    (("text/plain",), "text"),
    (("text/html",), "html"),
)

DEFAULT_FORMAT = "html"

@dataclass(frozen=True)
class RequestSignals:
    format_param: str = ""
    accept: str = ""
    user_agent: str = ""

    @classmethod
    def from_request(cls, request: Request) -> "RequestSignals":
        return cls(
            format_param=request.query_params.get("format", ""),
            accept=request.headers.get("accept", ""),
            user_agent=request.headers.get("user-agent", ""),
        )

def is_llm(user_agent: str) -> bool:
    ua = user_agent.lower()
    return any(marker in ua for marker in LLM_USER_AGENTS)

def _explicit_format(signals: RequestSignals) -> Optional[str]:
    return signals.format_param or None

def _accept_header(signals: RequestSignals) -> Optional[str]:
    accept = signals.accept.lower()
    for media_types, fmt in ACCEPT_RULES:
        if any(media_type in accept for media_type in media_types):
            return fmt
    return None

def _llm_agent(signals: RequestSignals) -> Optional[str]:
    return "md" if is_llm(signals.user_agent) else None

FORMAT_RULES: List[Callable[[RequestSignals], Optional[str]]] = [
    _explicit_format,
    _accept_header,
    _llm_agent,
]

def select_format(signals: RequestSignals) -> str:
    """Return the requested format string; never fails, may be unrecognized"""
    for rule in FORMAT_RULES:
        fmt = rule(signals)
        if fmt is not None:
            return fmt
    return DEFAULT_FORMAT
