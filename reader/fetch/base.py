from dataclasses import dataclass

from bs4 import BeautifulSoup

@dataclass
class FetchResult:
    url: str
    final_url: str
    status_code: int
    document: BeautifulSoup
    truncated: bool
    fetched_at: str  # ISO 8601

@dataclass(frozen=True)
class SanitizedArticle:
    title: str
    content: str  # HTML that has already been through the sanitizer
