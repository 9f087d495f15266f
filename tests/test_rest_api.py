import time
from http import HTTPStatus

from tests.helpers import auth_headers


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == {"status": "ok", "version": "3.0.0", "service": "messenger"}


def test_v1_requires_token(client):
    assert client.get("/api/v1/users").status_code == HTTPStatus.UNAUTHORIZED
    resp = client.get("/api/v1/users", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_me_and_users(client, dan_headers):
    me = client.get("/api/v1/users/me", headers=dan_headers).json()["user"]
    assert me["username"] == "dan"
    assert me["tenant_id"] == "T.UBL"

    users = client.get("/api/v1/users", headers=dan_headers).json()["users"]
    assert {u["id"] for u in users} == {"U.001", "U.002", "U.003"}


def test_other_tenant_sees_nothing(client):
    headers = auth_headers("U.001", tenant_id="T.OTHER")
    assert client.get("/api/v1/users", headers=headers).json() == {"users": []}
    assert client.get("/api/v1/users/me", headers=headers).status_code == HTTPStatus.NOT_FOUND
    resp = client.get("/api/v1/conversations/conv_001", headers=headers)
    assert resp.status_code == HTTPStatus.NOT_FOUND


def test_update_status(client, dan_headers):
    resp = client.patch("/api/v1/users/me/status", json={"status": "away"}, headers=dan_headers)
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["user"]["status"] == "away"

    resp = client.patch("/api/v1/users/me/status", json={"status": "busy"}, headers=dan_headers)
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_conversations_sorted_by_last_message(client, dan_headers):
    conversations = client.get("/api/v1/conversations", headers=dan_headers).json()["conversations"]
    assert [c["id"] for c in conversations] == ["conv_003", "conv_002", "conv_001"]


def test_conversations_only_list_participating(client, sarah_headers):
    conversations = client.get("/api/v1/conversations", headers=sarah_headers).json()["conversations"]
    assert [c["id"] for c in conversations] == ["conv_003", "conv_002"]


def test_get_conversation_membership(client, dan_headers, sarah_headers):
    assert client.get("/api/v1/conversations/conv_001", headers=dan_headers).status_code == HTTPStatus.OK
    assert client.get("/api/v1/conversations/conv_001", headers=sarah_headers).status_code == HTTPStatus.FORBIDDEN
    assert client.get("/api/v1/conversations/nope", headers=dan_headers).status_code == HTTPStatus.NOT_FOUND


def test_create_group_conversation_adds_creator(client, dan_headers):
    resp = client.post(
        "/api/v1/conversations",
        json={"type": "group", "name": "Launch", "participants": ["U.002", "U.003", "U.002"]},
        headers=dan_headers,
    )
    assert resp.status_code == HTTPStatus.CREATED
    conversation = resp.json()["conversation"]
    assert conversation["id"].startswith("conv_")
    assert conversation["participants"] == ["U.001", "U.002", "U.003"]
    assert conversation["last_message"] is None
    assert conversation["unread_count"] == 0

    listed = client.get("/api/v1/conversations", headers=dan_headers).json()["conversations"]
    assert listed[-1]["id"] == conversation["id"]


def test_direct_conversation_needs_two_people(client, dan_headers):
    resp = client.post(
        "/api/v1/conversations",
        json={"type": "direct", "participants": ["U.002", "U.003"]},
        headers=dan_headers,
    )
    assert resp.status_code == HTTPStatus.BAD_REQUEST


def test_mark_read(client, dan_headers):
    resp = client.post("/api/v1/conversations/conv_002/read", headers=dan_headers)
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["conversation"]["unread_count"] == 0
    assert client.post("/api/v1/conversations/nope/read", headers=dan_headers).status_code == HTTPStatus.NOT_FOUND


def test_messages_page(client, dan_headers):
    messages = client.get("/api/v1/conversations/conv_001/messages", headers=dan_headers).json()["messages"]
    assert [m["id"] for m in messages] == ["msg_001", "msg_002", "msg_003", "msg_004"]

    page = client.get(
        "/api/v1/conversations/conv_001/messages", params={"limit": 2}, headers=dan_headers
    ).json()["messages"]
    assert [m["id"] for m in page] == ["msg_003", "msg_004"]

    older = client.get(
        "/api/v1/conversations/conv_001/messages",
        params={"before": messages[2]["timestamp"]},
        headers=dan_headers,
    ).json()["messages"]
    assert [m["id"] for m in older] == ["msg_001", "msg_002"]


def test_messages_limit_is_bounded(client, dan_headers):
    resp = client.get("/api/v1/conversations/conv_001/messages", params={"limit": 0}, headers=dan_headers)
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_send_message(client, dan_headers):
    resp = client.post(
        "/api/v1/conversations/conv_001/messages", json={"text": "See you Thursday"}, headers=dan_headers
    )
    assert resp.status_code == HTTPStatus.CREATED
    message = resp.json()["message"]
    assert message["sender_id"] == "U.001"
    assert message["status"] == "sent"
    assert message["type"] == "text"

    conversation = client.get("/api/v1/conversations/conv_001", headers=dan_headers).json()["conversation"]
    assert conversation["last_message"]["text"] == "See you Thursday"
    assert conversation["last_message"]["sender"] == "U.001"
    assert conversation["unread_count"] == 1

    listed = client.get("/api/v1/conversations", headers=dan_headers).json()["conversations"]
    assert listed[0]["id"] == "conv_001"


def test_non_participant_cannot_post(client, sarah_headers):
    resp = client.post(
        "/api/v1/conversations/conv_001/messages", json={"text": "hi"}, headers=sarah_headers
    )
    assert resp.status_code == HTTPStatus.FORBIDDEN


def test_update_and_delete_message(client, dan_headers, sarah_headers):
    resp = client.patch("/api/v1/messages/msg_002", json={"status": "delivered"}, headers=dan_headers)
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["message"]["status"] == "delivered"

    assert client.delete("/api/v1/messages/msg_002", headers=sarah_headers).status_code == HTTPStatus.FORBIDDEN
    assert client.delete("/api/v1/messages/msg_002", headers=dan_headers).json() == {"success": True}
    assert client.delete("/api/v1/messages/msg_002", headers=dan_headers).status_code == HTTPStatus.NOT_FOUND


def test_typing_indicator(client, dan_headers, demo_storage):
    resp = client.post("/api/v1/conversations/conv_003/typing", json={"is_typing": True}, headers=dan_headers)
    assert resp.json() == {"success": True}
    typing = client.get("/api/v1/conversations/conv_003/typing", headers=dan_headers).json()
    assert typing == {"typing_users": ["U.001"]}

    demo_storage.typing["conv_003"]["U.001"] = time.time() - 60
    typing = client.get("/api/v1/conversations/conv_003/typing", headers=dan_headers).json()
    assert typing == {"typing_users": []}


def test_search_messages(client, dan_headers, sarah_headers):
    results = client.get("/api/v1/search/messages", params={"q": "DECK"}, headers=dan_headers).json()["messages"]
    assert [m["id"] for m in results] == ["msg_004", "msg_003", "msg_001"]

    results = client.get(
        "/api/v1/search/messages", params={"q": "deck", "conversation_id": "conv_002"}, headers=dan_headers
    ).json()["messages"]
    assert results == []

    results = client.get("/api/v1/search/messages", params={"q": "deck"}, headers=sarah_headers).json()["messages"]
    assert results == []


def test_search_requires_query(client, dan_headers):
    resp = client.get("/api/v1/search/messages", headers=dan_headers)
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert resp.json()["detail"] == 'Query parameter "q" is required'


def test_unauthenticated_session_claim_is_rejected(client):
    headers = auth_headers("U.001", authenticated=False)
    assert client.get("/api/v1/users/me", headers=headers).status_code == HTTPStatus.UNAUTHORIZED


def test_messages_before_without_offset_is_utc(client, dan_headers):
    url = "/api/v1/conversations/conv_001/messages"

    resp = client.get(url, params={"before": "2099-01-01T00:00:00"}, headers=dan_headers)
    assert resp.status_code == HTTPStatus.OK
    assert [m["id"] for m in resp.json()["messages"]] == ["msg_001", "msg_002", "msg_003", "msg_004"]

    resp = client.get(url, params={"before": "2000-01-01T00:00:00"}, headers=dan_headers)
    assert resp.json() == {"messages": []}
