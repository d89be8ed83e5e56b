"""
Dashboard analytics for a single user.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func

from horizon.app.core.db.relational import DBChat, DBMessage, DBUserImage, get_relational_session


TREND_DAYS = 7


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def build_activity_trend(
    chat_times: list[datetime],
    message_times: list[datetime],
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Chats and messages per day for the last seven days, oldest first, labelled Mon..Sun."""
    now = now or datetime.now(timezone.utc)
    days = [(now - timedelta(days=offset)).date() for offset in range(TREND_DAYS - 1, -1, -1)]
    buckets = {day: {"name": day.strftime("%a"), "chats": 0, "messages": 0} for day in days}
    for ts in chat_times:
        day = _as_utc(ts).date()
        if day in buckets:
            buckets[day]["chats"] += 1
    for ts in message_times:
        day = _as_utc(ts).date()
        if day in buckets:
            buckets[day]["messages"] += 1
    return [buckets[day] for day in days]


def estimate_tool_usage(chat_count: int, library_count: int) -> list[dict[str, Any]]:
    return [
        {"name": "Image Gen", "value": library_count},
        {"name": "Video Gen", "value": int(library_count * 0.2)},
        {"name": "Web Search", "value": chat_count * 2},
        {"name": "Research", "value": int(chat_count * 0.5)},
    ]


def get_dashboard(user_id: str, now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=TREND_DAYS)
    with get_relational_session() as db:
        chat_count = db.query(func.count(DBChat.id)).filter(DBChat.user_id == user_id).scalar() or 0
        message_count = (
            db.query(func.count(DBMessage.id))
            .join(DBChat, DBChat.id == DBMessage.chat_id)
            .filter(DBChat.user_id == user_id)
            .scalar()
            or 0
        )
        library_count = db.query(func.count(DBUserImage.id)).filter(DBUserImage.user_id == user_id).scalar() or 0
        chat_times = [
            row[0]
            for row in db.query(DBChat.created_at).filter(DBChat.user_id == user_id, DBChat.created_at >= since).all()
        ]
        message_times = [
            row[0]
            for row in db.query(DBMessage.created_at)
            .join(DBChat, DBChat.id == DBMessage.chat_id)
            .filter(DBChat.user_id == user_id, DBMessage.created_at >= since)
            .all()
        ]

    return {
        "success": True,
        "stats": {
            "totalChats": chat_count,
            "totalMessages": message_count,
            "totalLibraryItems": library_count,
        },
        "activityTrend": build_activity_trend(chat_times, message_times, now),
        "toolUsage": estimate_tool_usage(chat_count, library_count),
    }
