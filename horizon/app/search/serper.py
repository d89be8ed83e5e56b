"""
Serper.dev client: web, shopping, video and trending searches.

All searches degrade to an empty list when the key is missing or the request
fails, so callers can fan them out without individual error handling.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Optional
from urllib.parse import quote_plus

import httpx

from horizon.app.core.config import get_settings
from horizon.app.observability.logging import log_event


SERPER_BASE_URL = "https://google.serper.dev"
REQUEST_TIMEOUT_SECONDS = 15
TRENDING_QUERIES = ("trending news today", "what's viral on social media", "breaking news")


@dataclass
class WebSearchResult:
    title: str
    link: str
    snippet: str
    position: int
    source: Optional[str] = None
    date: Optional[str] = None
    image_url: Optional[str] = None
    type: str = "organic"
    attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ShoppingResult:
    title: str
    link: str
    price: str
    source: str
    image_url: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None


@dataclass
class VideoSearchResult:
    title: str
    link: str
    snippet: str
    image_url: str
    duration: str
    source: str
    channel: str
    date: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_youtube_id(link: str) -> Optional[str]:
    if not link:
        return None
    match = re.search(r"[?&]v=([^&]+)", link) or re.search(r"youtu\.be/([^?]+)", link)
    return match.group(1) if match else None


async def _post(endpoint: str, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    api_key = get_settings().serper_api_key
    if not api_key:
        log_event("serper_key_missing", level=logging.WARNING, endpoint=endpoint)
        return None
    try:
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                f"{SERPER_BASE_URL}/{endpoint}",
                headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
                json=payload,
            )
    except httpx.HTTPError as exc:
        log_event("serper_request_failed", level=logging.ERROR, endpoint=endpoint, error=str(exc))
        return None
    if resp.status_code != 200:
        log_event(
            "serper_bad_status",
            level=logging.ERROR,
            endpoint=endpoint,
            status_code=resp.status_code,
            body=resp.text[:300],
        )
        return None
    try:
        data = resp.json()
    except ValueError as exc:
        log_event("serper_invalid_json", level=logging.ERROR, endpoint=endpoint, error=str(exc), body=resp.text[:300])
        return None
    if not isinstance(data, dict):
        log_event("serper_invalid_json", level=logging.ERROR, endpoint=endpoint, body=resp.text[:300])
        return None
    return data


def parse_web_results(data: dict[str, Any]) -> list[WebSearchResult]:
    results: list[WebSearchResult] = []
    for index, item in enumerate(data.get("organic") or []):
        rich_images = ((item.get("richSnippet") or {}).get("cse_image") or [])
        image_url = item.get("imageUrl") or item.get("thumbnailUrl") or (rich_images[0].get("src") if rich_images else None)
        results.append(
            WebSearchResult(
                title=item.get("title", ""),
                link=item.get("link", ""),
                snippet=item.get("snippet", ""),
                position=index + 1,
                source=item.get("source"),
                date=item.get("date"),
                image_url=image_url,
            )
        )

    images = data.get("images") or []
    top_image = images[0].get("imageUrl") if images else None

    kg = data.get("knowledgeGraph")
    if kg:
        title = kg.get("title", "")
        link = kg.get("website") or kg.get("descriptionLink") or f"https://www.google.com/search?q={quote_plus(title)}"
        results.insert(
            0,
            WebSearchResult(
                title=title,
                link=link,
                snippet=kg.get("description", ""),
                position=0,
                source="Knowledge Graph",
                image_url=kg.get("imageUrl") or top_image,
                type="knowledge_graph",
                attributes=dict(kg.get("attributes") or {}),
            ),
        )
    elif results and top_image:
        # Promote the lead result so it renders as an entity card.
        results[0].type = "knowledge_graph"
        if not results[0].image_url:
            results[0].image_url = top_image
    return results


def parse_video_results(data: dict[str, Any]) -> list[VideoSearchResult]:
    videos = []
    for item in data.get("videos") or []:
        link = item.get("link", "")
        yt_id = extract_youtube_id(link)
        fallback_thumb = f"https://i.ytimg.com/vi/{yt_id}/maxresdefault.jpg" if yt_id else ""
        videos.append(
            VideoSearchResult(
                title=item.get("title", ""),
                link=link,
                snippet=item.get("snippet") or "",
                image_url=item.get("imageUrl") or item.get("thumbnailUrl") or fallback_thumb,
                duration=item.get("duration") or "",
                source=item.get("source") or "YouTube",
                channel=item.get("channel") or item.get("source") or "",
                date=item.get("date") or "",
            )
        )
    return videos


def parse_trending_topics(data: dict[str, Any]) -> list[dict[str, str]]:
    topics: list[dict[str, str]] = []
    for item in (data.get("peopleAlsoAsk") or [])[:4]:
        question = item.get("question")
        if question:
            topics.append({"title": question, "query": question})
    for item in (data.get("relatedSearches") or [])[:4]:
        query = item.get("query")
        if query:
            topics.append({"title": query, "query": query})

    seen: set[str] = set()
    unique = []
    for topic in topics:
        if topic["title"] in seen:
            continue
        seen.add(topic["title"])
        unique.append(topic)
    return unique[:8]


async def perform_web_search(query: str, num: int = 5) -> list[WebSearchResult]:
    data = await _post("search", {"q": query, "num": num})
    return parse_web_results(data) if data else []


async def perform_shopping_search(query: str, num: int = 10) -> list[ShoppingResult]:
    data = await _post("shopping", {"q": query, "num": num})
    if not data:
        return []
    return [
        ShoppingResult(
            title=item.get("title", ""),
            link=item.get("link", ""),
            price=item.get("price", ""),
            source=item.get("source", ""),
            image_url=item.get("imageUrl"),
            rating=item.get("rating"),
            reviews=item.get("reviews"),
        )
        for item in data.get("shopping") or []
    ]


async def perform_video_search(query: str, num: int = 6) -> list[VideoSearchResult]:
    data = await _post("videos", {"q": query, "num": num})
    return parse_video_results(data) if data else []


async def fetch_trending_topics() -> list[dict[str, str]]:
    data = await _post("search", {"q": random.choice(TRENDING_QUERIES), "num": 10})
    return parse_trending_topics(data) if data else []
