"""Tests for per-format content extractors"""

import pytest
from bs4 import BeautifulSoup

from docweave.extractors import (
    EXTRACTORS,
    RenderedPage,
    extract_interactive_reference,
    extract_rich_text,
    extract_structured_reference,
    extract_video,
    get_extractor,
    infer_language,
)
from docweave.extractors.base import find_endpoint_mentions
from docweave.models import ContentFormat, HTTPMethod, ParameterLocation

SWAGGER_HTML = """
<html><head><title>Swagger UI</title><script>var x = 1;</script></head>
<body><div class="swagger-ui">
  <div class="info"><h2 class="title">QTI Assessment API</h2></div>
  <div class="opblock-tag-section">
    <h3 class="opblock-tag" data-tag="Assessment Tests"><a>Assessment Tests</a></h3>
    <div class="opblock opblock-get" id="operations-tests-list">
      <div class="opblock-summary">
        <span class="opblock-summary-method">GET</span>
        <span class="opblock-summary-path" data-path="/assessment&#8203;Tests"><a>/assessmentTests</a></span>
        <div class="opblock-summary-description">List assessment tests</div>
      </div>
      <table><tbody>
        <tr data-param-name="limit" data-param-in="query">
          <td><div class="parameter__name">limit</div><div class="parameter__type">integer</div></td>
          <td class="parameters-col_description"><div class="markdown">Page size</div></td>
        </tr>
        <tr data-param-name="sourcedId" data-param-in="path">
          <td><div class="parameter__name required">sourcedId</div></td>
          <td class="parameters-col_description">Identifier</td>
        </tr>
      </tbody></table>
    </div>
    <div class="opblock opblock-post">
      <div class="opblock-summary">
        <span class="opblock-summary-method">POST</span>
        <span class="opblock-summary-path">/assessmentTests</span>
      </div>
    </div>
    <div class="opblock"><span class="opblock-summary-method">BREW</span></div>
  </div>
  <div class="model-container" data-name="AssessmentTest">
    <span class="model-title"><span class="model-title__text">AssessmentTest</span></span>
    <table>
      <tr class="property-row required"><td>identifier*</td><td>string</td></tr>
      <tr class="property-row"><td>title</td><td>string</td></tr>
    </table>
  </div>
</div></body></html>
"""

SCALAR_HTML = """
<html><head><title>OneRoster Reference</title></head><body>
<h1>OneRoster API</h1>
<div data-testid="auth-section">Use OAuth2 client credentials</div>
<section data-testid="operation-get-users">
  <span data-testid="operation-method">get</span>
  <span data-testid="operation-path">/users</span>
  <span data-testid="operation-summary">List users</span>
</section>
<section data-testid="operation-get-users-dup">
  <span data-testid="operation-method">GET</span>
  <span data-testid="operation-path">/users</span>
</section>
<pre class="language-javascript"><code>fetch('/users').then(r => r.json())</code></pre>
<pre><code class="language-python">requests.get(base_url + '/users')</code></pre>
<pre><code>curl https://api.example.com/users</code></pre>
<pre><code>short</code></pre>
<pre class="language-javascript"><code>fetch('/users').then(r => r.json())</code></pre>
</body></html>
"""


def _page(html: str, url: str = "https://docs.example.com/") -> RenderedPage:
    return RenderedPage(url=url, html=html)


class TestStructuredReference:
    """Test Swagger UI style extraction"""

    def test_extracts_endpoints(self) -> None:
        content = extract_structured_reference(_page(SWAGGER_HTML))

        assert content.format == ContentFormat.STRUCTURED_API_REFERENCE
        assert content.title == "QTI Assessment API"
        assert [(e.method, e.path) for e in content.endpoints] == [
            (HTTPMethod.GET, "/assessmentTests"),
            (HTTPMethod.POST, "/assessmentTests"),
        ]

    def test_endpoint_details(self) -> None:
        endpoint = extract_structured_reference(_page(SWAGGER_HTML)).endpoints[0]

        assert endpoint.summary == "List assessment tests"
        assert endpoint.tags == ["Assessment Tests"]
        assert endpoint.operation_id == "operations-tests-list"
        limit, sourced_id = endpoint.parameters
        assert limit.name == "limit"
        assert limit.type == "integer"
        assert limit.location == ParameterLocation.QUERY
        assert limit.description == "Page size"
        assert limit.required is False
        assert sourced_id.location == ParameterLocation.PATH
        assert sourced_id.required is True

    def test_extracts_schemas(self) -> None:
        content = extract_structured_reference(_page(SWAGGER_HTML))

        assert len(content.schemas) == 1
        schema = content.schemas[0]
        assert schema.name == "AssessmentTest"
        assert schema.properties == {"identifier": {"type": "string"}, "title": {"type": "string"}}
        assert schema.required == ["identifier"]
        assert content.metadata["operation_count"] == 2
        assert content.metadata["model_count"] == 1

    def test_scripts_are_not_content(self) -> None:
        content = extract_structured_reference(_page(SWAGGER_HTML))
        assert "var x" not in content.content

    def test_empty_page(self) -> None:
        content = extract_structured_reference(_page("<html><body><p>Loading</p></body></html>"))
        assert content.endpoints == []
        assert content.title == "API Documentation"


class TestInteractiveReference:
    """Test Scalar style extraction"""

    def test_operations_are_deduplicated(self) -> None:
        content = extract_interactive_reference(_page(SCALAR_HTML))

        assert content.format == ContentFormat.INTERACTIVE_REFERENCE
        assert content.title == "OneRoster API"
        assert len(content.endpoints) == 1
        assert content.endpoints[0].method == HTTPMethod.GET
        assert content.endpoints[0].summary == "List users"

    def test_code_examples(self) -> None:
        examples = extract_interactive_reference(_page(SCALAR_HTML)).code_examples

        assert [e.language for e in examples] == ["javascript", "python", "curl"]
        assert [e.context for e in examples] == ["Example 1", "Example 2", "Example 3"]

    def test_authentication_notes(self) -> None:
        content = extract_interactive_reference(_page(SCALAR_HTML))
        assert content.metadata["authentication"] == ["Use OAuth2 client credentials"]

    def test_falls_back_to_inline_mentions(self) -> None:
        html = "<html><body><p>Call GET /v1/events then POST /v1/events.</p></body></html>"
        content = extract_interactive_reference(_page(html))

        assert [(e.method, e.path) for e in content.endpoints] == [
            (HTTPMethod.GET, "/v1/events"),
            (HTTPMethod.POST, "/v1/events"),
        ]


class TestRichText:
    """Test document extraction"""

    def test_document_structure(self) -> None:
        html = """
        <html><head><title>Integration Guide - Google Docs</title></head><body>
        <div class="doc-content">
          <h1>Getting Started</h1>
          <p>Send GET /ims/oneroster/v1p2/users to list users.</p>
          <h2>Auth</h2>
          <a href="https://example.com/auth">Auth docs</a>
          <a href="#section">Anchor</a>
          <table><tr><th>Field</th><th>Type</th></tr><tr><td>id</td><td>string</td></tr></table>
        </div></body></html>
        """
        content = extract_rich_text(_page(html, "https://docs.google.com/document/d/abc"))

        assert content.format == ContentFormat.RICH_TEXT_DOCUMENT
        assert content.title == "Integration Guide"
        assert content.metadata["headings"] == [
            {"level": 1, "text": "Getting Started"},
            {"level": 2, "text": "Auth"},
        ]
        assert content.metadata["links"] == [{"text": "Auth docs", "href": "https://example.com/auth"}]
        assert content.metadata["tables"] == [[["Field", "Type"], ["id", "string"]]]
        assert content.metadata["endpoint_mentions"] == ["GET /ims/oneroster/v1p2/users"]
        assert content.endpoints == []
        assert "Send GET" in content.content

    def test_title_falls_back_to_heading(self) -> None:
        content = extract_rich_text(_page("<html><body><h2>Roster Sync</h2><p>text</p></body></html>"))
        assert content.title == "Roster Sync"


class TestVideo:
    """Test video walkthrough extraction"""

    def test_video_page(self) -> None:
        html = """
        <html><head>
          <meta property="og:description" content="Walkthrough of Caliper events">
          <meta property="og:image" content="https://cdn.example.com/thumb.png">
        </head><body>
          <h1>Caliper in 5 minutes</h1>
          <div class="transcript">First we send an event</div>
          <video src="v.mp4"></video>
        </body></html>
        """
        page = RenderedPage(url="https://www.loom.com/share/abc", html=html, media={"duration": 312.5})
        content = extract_video(page)

        assert content.format == ContentFormat.VIDEO_WALKTHROUGH
        assert content.title == "Caliper in 5 minutes"
        assert content.metadata["description"] == "Walkthrough of Caliper events"
        assert content.metadata["duration"] == 312.5
        assert content.metadata["poster"] == "https://cdn.example.com/thumb.png"
        assert content.metadata["has_transcript"] is True
        assert "First we send an event" in content.content

    def test_missing_details(self) -> None:
        content = extract_video(_page("<html><body><video></video></body></html>"))
        assert content.title == "Untitled Video"
        assert content.metadata["duration"] is None
        assert content.metadata["has_transcript"] is False


class TestRegistry:
    def test_every_format_has_one_extractor(self) -> None:
        assert set(EXTRACTORS) == set(ContentFormat)
        for content_format, extractor in EXTRACTORS.items():
            assert extractor.format == content_format

    def test_only_rich_text_skips_the_browser(self) -> None:
        assert not get_extractor(ContentFormat.RICH_TEXT_DOCUMENT).requires_browser
        assert get_extractor(ContentFormat.STRUCTURED_API_REFERENCE).requires_browser


class TestHelpers:
    @pytest.mark.parametrize(
        "html,expected",
        [
            ('<code data-language="TypeScript">x</code>', "javascript"),
            ('<code class="lang-py">x</code>', "python"),
            ('<code class="language-sh">x</code>', "curl"),
            ('<code class="language-json">{"id": 1}</code>', "unknown"),
            ('<code class="language-js">x</code>', "javascript"),
            ('<code class="hljs language-python3">x</code>', "python"),
            ("<code>curl -X GET https://x</code>", "curl"),
            ("<code>SELECT 1</code>", "unknown"),
        ],
    )
    def test_infer_language(self, html: str, expected: str) -> None:
        element = BeautifulSoup(html, "lxml").find("code")
        assert infer_language(element) == expected

    def test_endpoint_mentions_are_unique(self) -> None:
        text = "Use GET /users. Then GET /users again and DELETE /users/{id}"
        assert find_endpoint_mentions(text) == ["GET /users", "DELETE /users/{id}"]
