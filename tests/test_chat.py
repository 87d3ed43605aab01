"""AI chat: replies, sessions, history and limits."""
from jewelshop.ai.groq_client import AIServiceBusy, AIServiceUnavailable
from jewelshop.ai.prompts import CHAT_HISTORY_LIMIT


def _chat(client, auth, message="How do I add a stock item?", session_id=None):
    body = {"message": message}
    if session_id:
        body["sessionId"] = session_id
    return client.post("/ai/chat", json=body, headers=auth)


class TestChat:
    def test_reply_starts_a_session(self, client, auth, fake_chat):
        resp = _chat(client, auth)

        assert resp.status_code == 200
        body = resp.json()
        assert body["response"] == "Hello from the assistant"
        assert body["tokensUsed"] == 42
        assert body["sessionId"]
        assert body["messageId"] != body["userMessageId"]

        sent = fake_chat.requests[0]
        assert sent[0]["role"] == "system"
        assert sent[-1] == {"role": "user", "content": "How do I add a stock item?"}

    def test_history_is_sent_and_bounded(self, client, auth, fake_chat):
        session_id = _chat(client, auth, "first").json()["sessionId"]
        for i in range(7):
            _chat(client, auth, f"message {i}", session_id=session_id)

        last = fake_chat.requests[-1]
        # system prompt + bounded history + the new message
        assert len(last) == 1 + CHAT_HISTORY_LIMIT + 1
        assert last[-1]["content"] == "message 6"

    def test_message_validation(self, client, auth, fake_chat):
        resp = client.post("/ai/chat", json={"message": ""}, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid message"}

        resp = client.post("/ai/chat", json={"message": 123}, headers=auth)
        assert resp.json() == {"error": "Invalid message"}

        resp = client.post("/ai/chat", json={"message": "x" * 2001}, headers=auth)
        assert resp.json() == {"error": "Message too long"}
        assert fake_chat.requests == []

    def test_foreign_session_is_not_found(self, client, auth, other_auth, fake_chat):
        session_id = _chat(client, auth).json()["sessionId"]
        resp = _chat(client, other_auth, session_id=session_id)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Session not found"}

    def test_rate_limited_per_user(self, client, auth, other_auth, fake_chat):
        for _ in range(10):
            assert _chat(client, auth).status_code == 200

        resp = _chat(client, auth)
        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests. Please wait a moment before trying again."}
        assert _chat(client, other_auth).status_code == 200

    def test_provider_busy(self, client, auth, fake_chat):
        fake_chat.error = AIServiceBusy("rate limit")
        resp = _chat(client, auth)
        assert resp.status_code == 429
        assert resp.json() == {"error": "AI service is busy. Please try again in a moment."}

    def test_provider_unavailable_keeps_user_message(self, client, auth, fake_chat):
        session_id = client.post("/ai/chat/new-session", headers=auth).json()["sessionId"]
        fake_chat.error = AIServiceUnavailable("down")

        resp = _chat(client, auth, "hello?", session_id=session_id)

        assert resp.status_code == 503
        assert resp.json() == {"error": "AI assistant is temporarily unavailable. Please try again later."}
        history = client.get(f"/ai/chat/history?sessionId={session_id}", headers=auth).json()
        assert [m["content"] for m in history["messages"]] == ["hello?"]


class TestSessions:
    def test_new_session_deactivates_others(self, client, auth):
        first = client.post("/ai/chat/new-session", headers=auth).json()
        second = client.post("/ai/chat/new-session", headers=auth).json()
        assert second["title"] == "New Chat"

        sessions = {s["id"]: s for s in client.get("/ai/chat/sessions", headers=auth).json()["sessions"]}
        assert sessions[first["sessionId"]]["is_active"] is False
        assert sessions[second["sessionId"]]["is_active"] is True

    def test_sessions_carry_message_counts(self, client, auth, fake_chat):
        session_id = _chat(client, auth).json()["sessionId"]
        _chat(client, auth, session_id=session_id)

        sessions = client.get("/ai/chat/sessions", headers=auth).json()["sessions"]
        assert len(sessions) == 1
        assert sessions[0]["message_count"] == 4

    def test_history_paging(self, client, auth, fake_chat):
        session_id = _chat(client, auth, "one").json()["sessionId"]
        _chat(client, auth, "two", session_id=session_id)

        page = client.get(f"/ai/chat/history?sessionId={session_id}&limit=3", headers=auth).json()
        assert page["total"] == 4
        assert page["hasMore"] is True
        assert [m["role"] for m in page["messages"]] == ["user", "assistant", "user"]
        assert page["messages"][1]["metadata"] == {"model": "fake-model"}
        assert page["session"]["id"] == session_id

        rest = client.get(f"/ai/chat/history?sessionId={session_id}&limit=3&offset=3", headers=auth).json()
        assert rest["hasMore"] is False
        assert len(rest["messages"]) == 1

    def test_history_requires_session_id(self, client, auth):
        resp = client.get("/ai/chat/history", headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Session ID is required"}

    def test_history_of_foreign_session(self, client, auth, other_auth, fake_chat):
        session_id = _chat(client, auth).json()["sessionId"]
        resp = client.get(f"/ai/chat/history?sessionId={session_id}", headers=other_auth)
        assert resp.status_code == 404

    def test_delete_session(self, client, auth, other_auth, fake_chat):
        session_id = _chat(client, auth).json()["sessionId"]
        assert client.delete(f"/ai/chat/session/{session_id}", headers=other_auth).status_code == 404
        assert client.delete(f"/ai/chat/session/{session_id}", headers=auth).json() == {"success": True}
        assert client.get("/ai/chat/sessions", headers=auth).json()["sessions"] == []
