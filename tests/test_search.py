import asyncio
import json

import httpx

from horizon.app.search import serper
from horizon.app.search.formatter import (
    format_search_results_for_ai,
    format_search_results_for_user,
    format_shopping_results_for_user,
    format_video_results_for_user,
)
from horizon.app.search.serper import (
    ShoppingResult,
    VideoSearchResult,
    WebSearchResult,
    extract_youtube_id,
    parse_trending_topics,
    parse_video_results,
    parse_web_results,
)


ORGANIC = [
    {"title": "NASA news", "link": "https://www.nasa.gov/news", "snippet": "Rover update", "date": "1 day ago"},
    {"title": "Clip", "link": "https://www.youtube.com/watch?v=abc123", "snippet": "Video coverage"},
]


def test_extract_youtube_id():
    assert extract_youtube_id("https://www.youtube.com/watch?v=abc123&t=10") == "abc123"
    assert extract_youtube_id("https://youtu.be/xyz789?si=1") == "xyz789"
    assert extract_youtube_id("https://example.com") is None
    assert extract_youtube_id("") is None


def test_knowledge_graph_is_prepended():
    data = {
        "organic": ORGANIC,
        "knowledgeGraph": {"title": "Mars", "description": "Fourth planet", "attributes": {"Moons": "2"}},
        "images": [{"imageUrl": "https://img.example.com/mars.jpg"}],
    }
    results = parse_web_results(data)
    assert results[0].type == "knowledge_graph"
    assert results[0].position == 0
    assert results[0].image_url == "https://img.example.com/mars.jpg"
    assert results[0].link == "https://www.google.com/search?q=Mars"
    assert results[0].attributes == {"Moons": "2"}
    assert [r.position for r in results[1:]] == [1, 2]


def test_top_result_promoted_without_knowledge_graph():
    data = {"organic": ORGANIC, "images": [{"imageUrl": "https://img.example.com/top.jpg"}]}
    results = parse_web_results(data)
    assert results[0].type == "knowledge_graph"
    assert results[0].image_url == "https://img.example.com/top.jpg"
    assert results[1].type == "organic"


def test_video_thumbnail_fallback():
    videos = parse_video_results({"videos": [{"title": "T", "link": "https://youtu.be/vid1"}]})
    assert videos[0].image_url == "https://i.ytimg.com/vi/vid1/maxresdefault.jpg"
    assert videos[0].source == "YouTube"


def test_trending_topics_dedupe_and_cap():
    data = {
        "peopleAlsoAsk": [{"question": f"Q{i}"} for i in range(6)],
        "relatedSearches": [{"query": "Q0"}, {"query": "R1"}, {"query": "R2"}, {"query": "R3"}],
    }
    topics = parse_trending_topics(data)
    titles = [t["title"] for t in topics]
    assert titles == ["Q0", "Q1", "Q2", "Q3", "R1", "R2", "R3"]
    assert len(topics) <= 8


def test_search_without_key_returns_empty(monkeypatch):
    monkeypatch.delenv("SERPER_API_KEY", raising=False)
    assert asyncio.run(serper.perform_web_search("anything")) == []


def test_search_http_failure_returns_empty(monkeypatch):
    monkeypatch.setenv("SERPER_API_KEY", "test-key")

    class FailingClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def post(self, *args, **kwargs):
            raise httpx.ConnectError("boom")

    monkeypatch.setattr(serper.httpx, "AsyncClient", FailingClient)
    assert asyncio.run(serper.perform_video_search("anything")) == []


def test_search_non_json_body_returns_empty(monkeypatch):
    monkeypatch.setenv("SERPER_API_KEY", "test-key")
    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>captcha</html>"))
    monkeypatch.setattr(serper.httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    assert asyncio.run(serper.perform_web_search("anything")) == []
    assert asyncio.run(serper.perform_video_search("anything")) == []


def test_format_for_ai_numbers_sources_and_skips_entity():
    results = [
        WebSearchResult(title="Mars", link="https://mars", snippet="Planet", position=0, type="knowledge_graph",
                        attributes={"Moons": "2"}),
        WebSearchResult(title="A", link="https://a", snippet="first", position=1, date="today"),
    ]
    text = format_search_results_for_ai(results)
    assert text.startswith("SEARCH RESULTS CONTEXT")
    assert "[KNOWLEDGE_GRAPH_ENTITY]" in text
    assert "SOURCE [2]:" in text
    assert "SOURCE [1]:" not in text
    assert "Date: today" in text


def test_format_for_ai_empty():
    assert format_search_results_for_ai([]) == "No web search results found."


def test_format_for_user_renders_entity_card_and_video_feed():
    results = parse_web_results({
        "organic": ORGANIC,
        "knowledgeGraph": {"title": "Mars", "description": "Fourth planet"},
    })
    markdown = format_search_results_for_user("mars", results)
    assert "[ENTITY_CARD]" in markdown
    assert "#### 1. [NASA news](https://www.nasa.gov/news)" in markdown
    assert "[YOUTUBE_FEED]" in markdown
    assert "nasa.gov" in markdown


def test_format_video_results_only_youtube():
    videos = [
        VideoSearchResult(title="YT", link="https://youtu.be/id1", snippet="", image_url="", duration="1:00",
                          source="YouTube", channel="Chan", date=""),
        VideoSearchResult(title="Vimeo", link="https://vimeo.com/1", snippet="", image_url="", duration="",
                          source="Vimeo", channel="", date=""),
    ]
    block = format_video_results_for_user(videos)
    payload = json.loads(block.split("[YOUTUBE_FEED]")[1].split("[/YOUTUBE_FEED]")[0])
    assert [v["id"] for v in payload] == ["id1"]
    assert format_video_results_for_user(videos[1:]) == ""


def test_format_shopping_results():
    items = [ShoppingResult(title="Headphones X", link="https://shop/x", price="$99", source="Shop", rating=4.4,
                            reviews=12)]
    markdown = format_shopping_results_for_user("headphones", items)
    assert "Headphones X" in markdown
    assert "$99" in markdown
    assert "⭐⭐⭐⭐ (12 reviews)" in markdown
    assert format_shopping_results_for_user("x", []) == "### 🛒 Shopping: No products found."
