from datetime import datetime, timedelta, timezone

from horizon.app.services import chat_store
from horizon.app.services.analytics_service import build_activity_trend, estimate_tool_usage


HEADERS = {"X-User-ID": "user-1"}


def test_activity_trend_buckets_by_weekday():
    now = datetime(2024, 5, 12, 15, 0, tzinfo=timezone.utc)  # Sunday
    chats = [now, now - timedelta(days=1), now - timedelta(days=10)]
    messages = [now, now, now - timedelta(days=6)]

    trend = build_activity_trend(chats, messages, now)

    assert [d["name"] for d in trend] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert trend[-1] == {"name": "Sun", "chats": 1, "messages": 2}
    assert trend[-2]["chats"] == 1
    assert trend[0]["messages"] == 1


def test_tool_usage_estimates():
    usage = {u["name"]: u["value"] for u in estimate_tool_usage(chat_count=3, library_count=7)}
    assert usage == {"Image Gen": 7, "Video Gen": 1, "Web Search": 6, "Research": 1}


def test_dashboard_counts_only_the_caller(client):
    chat_store.ensure_chat("a", "user-1")
    chat_store.save_message("a", "user", "hi")
    chat_store.save_message("a", "assistant", "hello")
    chat_store.ensure_chat("b", "user-2")
    chat_store.save_message("b", "user", "other")
    client.post("/api/save-image", json={"imageUrl": "https://x/1.png", "publicId": "p"}, headers=HEADERS)

    body = client.get("/api/analytics", headers=HEADERS).json()

    assert body["success"] is True
    assert body["stats"] == {"totalChats": 1, "totalMessages": 2, "totalLibraryItems": 1}
    assert len(body["activityTrend"]) == 7
    assert body["activityTrend"][-1]["messages"] == 2


def test_dashboard_requires_auth(client):
    assert client.get("/api/analytics").status_code == 401
