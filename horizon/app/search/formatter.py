"""
Markdown and prompt formatting for search results.

`[ENTITY_CARD]` and `[YOUTUBE_FEED]` tags carry JSON payloads that the
front-end renders as rich components.
"""

from __future__ import annotations

import json
from urllib.parse import urlparse

from horizon.app.search.serper import ShoppingResult, VideoSearchResult, WebSearchResult, extract_youtube_id


def _hostname(link: str) -> str:
    host = urlparse(link or "").hostname or ""
    return host.replace("www.", "")


def _youtube_thumbnail(yt_id: str) -> str:
    return f"https://img.youtube.com/vi/{yt_id}/maxresdefault.jpg"


def search_system_instructions(query: str, context: str) -> str:
    return (
        "You are a world-class AI research assistant and professional technical writer. "
        "Synthesize the following search results into a definitive, executive-style response.\n\n"
        "### CORE OBJECTIVES:\n"
        "1. Prioritize official documentation, reputable news organizations and primary sources.\n"
        "2. Do NOT just list snippets; weave the best information into one narrative. "
        "Note conflicts between sources and lean towards the more reputable one.\n"
        "3. A claim is verified when more than one reputable source mentions it.\n"
        "4. Structure: Executive Summary, Deep Dive, Expert Insights.\n\n"
        "### CITATION RULES:\n"
        "- Use inline citations like [1], [2] matching the numbered sources.\n"
        "- Multiple citations like [1][3] are encouraged for cross-referenced facts.\n\n"
        "### STRUCTURE:\n"
        f"# {query}\n\n"
        "## Executive Summary\n"
        "## Key Insights & Analysis\n"
        "## Expert Perspectives\n"
        "## Verified Sources\n"
        "## Live Market & X (Twitter) Context\n\n"
        "### DATA CONTEXT:\n"
        f"{context}\n"
    )


def format_search_results_for_ai(results: list[WebSearchResult]) -> str:
    if not results:
        return "No web search results found."

    lines = ["SEARCH RESULTS CONTEXT (USE THESE FOR CITATIONS [1], [2], etc.):", ""]
    kg = next((r for r in results if r.type == "knowledge_graph"), None)
    if kg:
        lines.append("[KNOWLEDGE_GRAPH_ENTITY]")
        lines.append(f"Name: {kg.title}")
        lines.append(f"Description: {kg.snippet}")
        if kg.attributes:
            lines.append(f"Attributes: {json.dumps(kg.attributes)}")
        lines.append(f"Image Available: {'true' if kg.image_url else 'false'}")
        lines.append("")

    for index, result in enumerate(results):
        if result.type == "knowledge_graph":
            continue
        lines.append(f"SOURCE [{index + 1}]:")
        lines.append(f"Title: {result.title}")
        lines.append(f"URL: {result.link}")
        lines.append(f"Snippet: {result.snippet}")
        if result.date:
            lines.append(f"Date: {result.date}")
        lines.append("")
    return "\n".join(lines) + "\n"


def format_search_results_for_user(query: str, results: list[WebSearchResult]) -> str:
    if not results:
        return f"### 🔍 Search: {query}\n\nNo relevant results were found for this query."

    markdown = f"# 🌐 Web Search: {query}\n\n"
    entity = next((r for r in results if r.type == "knowledge_graph"), None)
    organic = [r for r in results if r.type != "knowledge_graph"]

    if entity:
        entity_data = {
            "title": entity.title,
            "subtitle": entity.snippet,
            "imageUrl": entity.image_url,
            "attributes": entity.attributes or {},
            "link": entity.link,
        }
        markdown += f"[ENTITY_CARD]{json.dumps(entity_data)}[/ENTITY_CARD]\n\n"

    if organic:
        top = organic[0]
        markdown += f"### 💡 Top Insight\n> [!IMPORTANT]\n> **[{top.title}]({top.link})**\n> {top.snippet}\n\n"

    markdown += "### 🔦 Key Results\n\n"

    web_results = [r for r in organic if not extract_youtube_id(r.link)]
    video_feed = []
    for r in organic:
        yt_id = extract_youtube_id(r.link)
        if not yt_id:
            continue
        video_feed.append(
            {
                "id": yt_id,
                "title": r.title,
                "link": r.link,
                "thumbnail": _youtube_thumbnail(yt_id),
                "channel": r.source or _hostname(r.link),
                "duration": "",
                "date": r.date or "",
            }
        )

    for index, result in enumerate(web_results):
        date = f" • {result.date}" if result.date else ""
        source_name = result.source or _hostname(result.link)
        markdown += f"#### {index + 1}. [{result.title}]({result.link})\n"
        if result.image_url:
            markdown += f"![{result.title}]({result.image_url})\n\n"
        markdown += "> [!NOTE]\n"
        markdown += f"> **Source:** [{source_name}]({result.link}){date}\n"
        markdown += f"> {result.snippet}\n\n"

    if video_feed:
        feed = {"title": "Video News Coverage", "videos": video_feed}
        markdown += f"[YOUTUBE_FEED] {json.dumps(feed)} [/YOUTUBE_FEED]\n\n"

    markdown += "\n---\n> [!TIP]\n> Search conducted via **Serper.dev**. All links are verified external sources.\n"
    return markdown


def format_shopping_results_for_user(query: str, results: list[ShoppingResult]) -> str:
    if not results:
        return "### 🛒 Shopping: No products found."

    markdown = f"# 🛒 Shopping Results: {query}\n\n"
    for index, item in enumerate(results):
        markdown += f"### {index + 1}. {item.title}\n\n"
        if item.image_url:
            markdown += f"![{item.title[:30]}]({item.image_url})\n\n"
        markdown += f"💰 **Price:** {item.price}\n"
        markdown += f"🏪 **Seller:** {item.source}\n"
        if item.rating:
            stars = "⭐" * round(item.rating)
            markdown += f"🌟 **Rating:** {stars} ({item.reviews or 0} reviews)\n"
        markdown += f"🔗 **Buy Now:** [View Product]({item.link})\n\n"
        markdown += "---\n\n"
    return markdown


def format_video_results_for_user(results: list[VideoSearchResult]) -> str:
    videos = []
    for v in results:
        yt_id = extract_youtube_id(v.link)
        if not yt_id:
            continue
        videos.append(
            {
                "id": yt_id,
                "title": v.title,
                "link": v.link,
                "thumbnail": _youtube_thumbnail(yt_id),
                "channel": v.channel,
                "duration": v.duration,
                "date": v.date,
            }
        )
    if not videos:
        return ""
    return f"\n\n[YOUTUBE_FEED] {json.dumps(videos)} [/YOUTUBE_FEED]\n\n"
