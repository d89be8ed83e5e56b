"""
Per-user long-term memory: key/value facts the assistant may store or forget.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from horizon.app.core.db.relational import DBMemory, get_relational_session


@dataclass
class Memory:
    id: int
    user_id: str
    key: str
    value: str
    reason: Optional[str]
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        created = self.created_at if self.created_at.tzinfo else self.created_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "reason": self.reason,
            "createdAt": created.isoformat(),
        }


def get_memories(user_id: str) -> list[Memory]:
    with get_relational_session() as db:
        rows = db.query(DBMemory).filter(DBMemory.user_id == user_id).order_by(DBMemory.id.asc()).all()
        return [
            Memory(id=r.id, user_id=r.user_id, key=r.key, value=r.value, reason=r.reason, created_at=r.created_at)
            for r in rows
        ]


def save_memory(user_id: Optional[str], key: str, value: str, reason: Optional[str] = None) -> None:
    if not user_id:
        return
    with get_relational_session() as db:
        existing = db.query(DBMemory).filter(DBMemory.user_id == user_id, DBMemory.key == key).first()
        if existing is not None:
            existing.value = value
            existing.reason = reason
            existing.created_at = datetime.now(timezone.utc)
        else:
            db.add(DBMemory(user_id=user_id, key=key, value=value, reason=reason))


def forget_memory(user_id: Optional[str], key: str) -> bool:
    if not user_id:
        return False
    with get_relational_session() as db:
        deleted = (
            db.query(DBMemory)
            .filter(DBMemory.user_id == user_id, DBMemory.key == key)
            .delete(synchronize_session=False)
        )
    return bool(deleted)


def format_memories_for_context(memories: list[Memory]) -> str:
    if not memories:
        return ""
    formatted = "\n".join(f"- {m.key}: {m.value}" for m in memories)
    return f"\n[LONG-TERM MEMORY & CONTEXT]\n{formatted}\n"
