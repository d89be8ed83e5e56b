from datetime import datetime, timedelta, timezone

from horizon.app.core.db.relational import DBRateLimit, get_relational_session
from horizon.app.services import chat_store, memory_service


def test_rate_limit_window(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "2")

    assert chat_store.is_rate_limited("u") is False
    assert chat_store.is_rate_limited("u") is False
    assert chat_store.is_rate_limited("u") is True
    assert chat_store.is_rate_limited("other") is False
    assert chat_store.is_rate_limited(None) is False

    with get_relational_session() as db:
        row = db.query(DBRateLimit).filter(DBRateLimit.user_id == "u").one()
        row.last_message_at = datetime.now(timezone.utc) - timedelta(minutes=5)

    assert chat_store.is_rate_limited("u") is False


def test_history_is_oldest_first_and_limited():
    chat_store.ensure_chat("c", "u")
    for i in range(4):
        chat_store.save_message("c", "user" if i % 2 == 0 else "assistant", f"m{i}")

    history = chat_store.get_chat_history("c", "u", limit=3)

    assert [h.text for h in history] == ["m1", "m2", "m3"]
    assert [h.role for h in history] == ["model", "user", "model"]


def test_summary_upsert():
    chat_store.ensure_chat("c", "u")
    assert chat_store.get_summary("c") is None
    chat_store.save_summary("c", "first")
    chat_store.save_summary("c", "second")
    assert chat_store.get_summary("c") == "second"


def test_chat_title_comes_from_first_prompt():
    chat_store.ensure_chat("t", "u", title_hint="How do I bake sourdough bread at home?")
    chat_store.ensure_chat("t", "u", title_hint="ignored later")
    chat = chat_store.list_chats("u")[0]
    assert chat["id"] == "t"
    assert chat["title"].startswith("How do I bake")


def test_memory_upsert_and_forget():
    memory_service.save_memory("u", "food", "pizza")
    memory_service.save_memory("u", "food", "sushi", "changed taste")
    memory_service.save_memory(None, "ignored", "x")

    memories = memory_service.get_memories("u")
    assert [(m.key, m.value, m.reason) for m in memories] == [("food", "sushi", "changed taste")]
    assert memories[0].to_dict()["createdAt"].endswith("+00:00")

    assert memory_service.forget_memory("u", "food") is True
    assert memory_service.forget_memory("u", "food") is False


def test_format_memories_for_context():
    assert memory_service.format_memories_for_context([]) == ""
    memory_service.save_memory("u", "name", "Ana")
    block = memory_service.format_memories_for_context(memory_service.get_memories("u"))
    assert block == "\n[LONG-TERM MEMORY & CONTEXT]\n- name: Ana\n"
