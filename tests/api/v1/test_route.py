from fastapi.testclient import TestClient

import app.api.v1.route as v1_router_module
from app.core.exceptions import StorageError
from app.main import app


def test_home_without_session_is_empty(client):
    response = client.get("/api/v1/messages")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "messages": []}


def test_send_message_then_home_shows_it(client):
    response = client.post("/api/v1/send-message", json={"message": "  hello  "})

    assert response.status_code == 201
    assert response.json()["status"] == "sent"

    messages = client.get("/api/v1/messages").json()["messages"]
    assert len(messages) == 1
    assert messages[0]["body"] == "hello"
    assert messages[0]["is_admin_reply"] is False


def test_two_sends_share_one_conversation(client, admin_client):
    client.post("/api/v1/send-message", json={"message": "first"})
    client.post("/api/v1/send-message", json={"message": "second"})

    conversations = admin_client.get("/api/v1/admin").json()["conversations"]
    assert len(conversations) == 1
    assert conversations[0]["message_count"] == 2


def test_send_message_empty_body(client):
    response = client.post("/api/v1/send-message", json={"message": "   "})

    assert response.status_code == 400
    assert response.json()["status"] == "empty"
    assert client.get("/api/v1/messages").json()["messages"] == []


def test_send_message_missing_field(client):
    response = client.post("/api/v1/send-message", json={})

    assert response.status_code == 422


def test_send_message_storage_failure(client, monkeypatch):
    def broken_send(*_args, **_kwargs):
        raise StorageError("db down")

    monkeypatch.setattr(v1_router_module, "send", broken_send)

    response = client.post("/api/v1/send-message", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json()["status"] == "failed"


def test_home_storage_failure_is_reported(client, monkeypatch):
    def broken_resolve(*_args, **_kwargs):
        raise StorageError("db down")

    monkeypatch.setattr(v1_router_module, "resolve", broken_resolve)

    response = client.get("/api/v1/messages")

    assert response.status_code == 500
    assert response.json() == {"status": "failed", "messages": []}


def test_admin_routes_redirect_to_login_when_anonymous(client):
    for method, url in [
        ("get", "/api/v1/admin"),
        ("get", "/api/v1/admin/conversation/1"),
        ("post", "/api/v1/admin/reply/1"),
    ]:
        kwargs = {"json": {"reply": "hi"}} if method == "post" else {}
        response = getattr(client, method)(url, follow_redirects=False, **kwargs)

        assert response.status_code == 303
        assert response.headers["location"] == "/api/v1/admin/login"


def test_admin_login_rejects_bad_credentials(client, admin_credentials):
    response = client.post(
        "/api/v1/admin/login",
        json={"username": "admin", "password": "wrong"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin/login?error=invalid"
    assert client.get("/api/v1/admin", follow_redirects=False).status_code == 303


def test_admin_login_page(client, admin_client):
    response = admin_client.get("/api/v1/admin/login", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin"


def test_admin_logout_clears_context(admin_client):
    response = admin_client.post("/api/v1/admin/logout", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin/login"
    assert admin_client.get("/api/v1/admin", follow_redirects=False).status_code == 303
    assert admin_client.get("/api/v1/admin/login").json() == {
        "authenticated": False,
        "error": None,
    }


def test_admin_reply_flow(admin_client):
    visitor = TestClient(app)
    visitor.post("/api/v1/send-message", json={"message": "hello"})
    other = TestClient(app)
    other.post("/api/v1/send-message", json={"message": "me too"})

    summary = admin_client.get("/api/v1/admin").json()["conversations"]
    hello_id = summary[1]["conversation"]["id"]

    response = admin_client.post(f"/api/v1/admin/reply/{hello_id}", json={"reply": " hi there "})
    assert response.status_code == 201
    assert response.json()["status"] == "replied"

    detail = admin_client.get(f"/api/v1/admin/conversation/{hello_id}").json()
    assert [(m["body"], m["is_admin_reply"]) for m in detail["messages"]] == [
        ("hello", False),
        ("hi there", True),
    ]

    summary = admin_client.get("/api/v1/admin").json()["conversations"]
    assert summary[0]["conversation"]["id"] == hello_id
    assert summary[0]["message_count"] == 2

    visitor_messages = visitor.get("/api/v1/messages").json()["messages"]
    assert [m["body"] for m in visitor_messages] == ["hello", "hi there"]


def test_admin_reply_empty_body(admin_client):
    admin_client.post("/api/v1/send-message", json={"message": "hello"})
    conversation_id = admin_client.get("/api/v1/admin").json()["conversations"][0]["conversation"]["id"]

    response = admin_client.post(f"/api/v1/admin/reply/{conversation_id}", json={"reply": "  "})

    assert response.status_code == 400
    assert response.json()["status"] == "empty"
    assert admin_client.get("/api/v1/admin").json()["conversations"][0]["message_count"] == 1


def test_admin_unknown_conversation_redirects_to_summary(admin_client):
    response = admin_client.get("/api/v1/admin/conversation/404", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin"

    response = admin_client.post(
        "/api/v1/admin/reply/404", json={"reply": "hello?"}, follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin"
    assert admin_client.get("/api/v1/admin").json()["conversations"] == []


def test_admin_summary_storage_failure(admin_client, monkeypatch):
    def broken_summary(*_args, **_kwargs):
        raise StorageError("db down")

    monkeypatch.setattr(v1_router_module, "list_conversations_summary", broken_summary)

    response = admin_client.get("/api/v1/admin")

    assert response.status_code == 500
    assert response.json() == {"status": "failed", "conversations": []}


def test_admin_reply_storage_failure(admin_client, monkeypatch):
    admin_client.post("/api/v1/send-message", json={"message": "hello"})
    conversation_id = admin_client.get("/api/v1/admin").json()["conversations"][0]["conversation"]["id"]

    def broken_reply(*_args, **_kwargs):
        raise StorageError("db down")

    monkeypatch.setattr(v1_router_module, "reply", broken_reply)

    response = admin_client.post(
        f"/api/v1/admin/reply/{conversation_id}", json={"reply": "hi there"}, follow_redirects=False
    )

    assert response.status_code == 500
    assert response.json() == {"status": "failed", "message_id": None}


def test_admin_conversation_storage_failure_redirects_to_summary(admin_client, monkeypatch):
    def broken_get_conversation(*_args, **_kwargs):
        raise StorageError("db down")

    monkeypatch.setattr(v1_router_module, "get_conversation", broken_get_conversation)

    response = admin_client.get("/api/v1/admin/conversation/1", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/v1/admin"
