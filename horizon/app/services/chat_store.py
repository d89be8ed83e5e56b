"""
Relational persistence for chats, messages, summaries and the per-user rate limit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func

from horizon.app.ai.types import AIContent
from horizon.app.core.config import get_settings
from horizon.app.core.db.relational import (
    DBChat,
    DBMessage,
    DBRateLimit,
    DBSummary,
    get_relational_session,
)


DEFAULT_CHAT_ID = "default-chat"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return _utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _title_from(prompt: str) -> str:
    text = " ".join((prompt or "").split())
    if not text:
        return "New Conversation"
    return text if len(text) <= 60 else text[:57] + "..."


class ChatAccessError(PermissionError):
    """The chat exists but belongs to another user."""

    def __init__(self, chat_id: str):
        super().__init__(f"Chat {chat_id} belongs to another user")
        self.chat_id = chat_id


def default_chat_id(user_id: Optional[str]) -> str:
    return f"{DEFAULT_CHAT_ID}:{user_id}" if user_id else DEFAULT_CHAT_ID


def ensure_chat(chat_id: str, user_id: Optional[str], title_hint: str = "") -> str:
    """Create the chat row when missing and bump `updated_at`. Returns the chat id.

    Raises ChatAccessError when the chat is owned by someone other than `user_id`.
    """
    cid = (chat_id or "").strip() or default_chat_id(user_id)
    owner = user_id or None
    with get_relational_session() as db:
        row = db.get(DBChat, cid)
        if row is None:
            db.add(DBChat(id=cid, user_id=owner, title=_title_from(title_hint)))
        elif row.user_id != owner:
            raise ChatAccessError(cid)
        else:
            row.updated_at = _utc_now()
    return cid


def save_message(chat_id: str, role: str, content: str) -> None:
    with get_relational_session() as db:
        db.add(DBMessage(chat_id=chat_id, role=role, content=content or ""))
        row = db.get(DBChat, chat_id)
        if row is not None:
            row.updated_at = _utc_now()


def count_messages(chat_id: str) -> int:
    with get_relational_session() as db:
        return db.query(func.count(DBMessage.id)).filter(DBMessage.chat_id == chat_id).scalar() or 0


def get_chat_history(chat_id: str, user_id: Optional[str], limit: int = 10) -> list[AIContent]:
    """Last `limit` stored messages of a chat owned by `user_id`, oldest first, as provider history.

    Anonymous chats have no owner to check against, so they never yield stored history.
    """
    if not user_id:
        return []
    with get_relational_session() as db:
        rows = (
            db.query(DBMessage)
            .join(DBChat, DBChat.id == DBMessage.chat_id)
            .filter(DBMessage.chat_id == chat_id, DBChat.user_id == user_id)
            .order_by(DBMessage.created_at.desc(), DBMessage.id.desc())
            .limit(limit)
            .all()
        )
    rows.reverse()
    return [AIContent(role="user" if row.role == "user" else "model", text=row.content) for row in rows]


def get_summary(chat_id: str) -> Optional[str]:
    with get_relational_session() as db:
        row = (
            db.query(DBSummary)
            .filter(DBSummary.chat_id == chat_id)
            .order_by(DBSummary.created_at.desc(), DBSummary.id.desc())
            .first()
        )
        return row.content if row else None


def save_summary(chat_id: str, content: str) -> None:
    with get_relational_session() as db:
        db.add(DBSummary(chat_id=chat_id, content=content))


def list_chats(user_id: str) -> list[dict[str, Any]]:
    with get_relational_session() as db:
        counts = dict(
            db.query(DBMessage.chat_id, func.count(DBMessage.id))
            .join(DBChat, DBChat.id == DBMessage.chat_id)
            .filter(DBChat.user_id == user_id)
            .group_by(DBMessage.chat_id)
            .all()
        )
        rows = db.query(DBChat).filter(DBChat.user_id == user_id).order_by(DBChat.updated_at.desc()).all()
        return [
            {
                "id": row.id,
                "title": row.title or "New Conversation",
                "createdAt": _as_utc(row.created_at).isoformat(),
                "updatedAt": _as_utc(row.updated_at).isoformat(),
                "messageCount": int(counts.get(row.id, 0)),
            }
            for row in rows
        ]


def get_chat(chat_id: str, user_id: str) -> Optional[dict[str, Any]]:
    """The chat with its messages, or None when missing or owned by someone else."""
    with get_relational_session() as db:
        row = db.get(DBChat, chat_id)
        if row is None or row.user_id != user_id:
            return None
        messages = (
            db.query(DBMessage)
            .filter(DBMessage.chat_id == chat_id)
            .order_by(DBMessage.created_at.asc(), DBMessage.id.asc())
            .all()
        )
        return {
            "id": row.id,
            "title": row.title,
            "createdAt": _as_utc(row.created_at).isoformat(),
            "updatedAt": _as_utc(row.updated_at).isoformat(),
            "messages": [
                {
                    "id": m.id,
                    "role": m.role,
                    "content": m.content,
                    "createdAt": _as_utc(m.created_at).isoformat(),
                }
                for m in messages
            ],
        }


def delete_chat(chat_id: str, user_id: str) -> bool:
    with get_relational_session() as db:
        row = db.get(DBChat, chat_id)
        if row is None or row.user_id != user_id:
            return False
        # SQLite does not enforce ON DELETE CASCADE without a pragma.
        db.query(DBMessage).filter(DBMessage.chat_id == chat_id).delete(synchronize_session=False)
        db.query(DBSummary).filter(DBSummary.chat_id == chat_id).delete(synchronize_session=False)
        db.delete(row)
    return True


def is_rate_limited(user_id: Optional[str]) -> bool:
    """Count one request for `user_id` and report whether it exceeds the window budget."""
    if not user_id:
        return False
    settings = get_settings()
    now = _utc_now()
    with get_relational_session() as db:
        row = db.query(DBRateLimit).filter(DBRateLimit.user_id == user_id).first()
        if row is None:
            db.add(DBRateLimit(user_id=user_id, count=1, last_message_at=now))
            return False

        elapsed = (now - _as_utc(row.last_message_at)).total_seconds()
        if elapsed > settings.rate_limit_window_seconds:
            row.count = 1
            row.last_message_at = now
            return False
        if row.count >= settings.rate_limit_max_requests:
            return True
        row.count += 1
        return False
