import asyncio

from starlette.websockets import WebSocketState

from messenger.api.websocket import Connection, ConnectionManager
from tests.helpers import auth_headers, make_token


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(data)


def _connection(user_id=None, tenant_id=None, fail=False):
    connection = Connection(FakeSocket(fail=fail))
    connection.user_id = user_id
    connection.tenant_id = tenant_id
    return connection


def _manager(*connections):
    manager = ConnectionManager()
    manager.connections.extend(connections)
    return manager


def test_broadcast_skips_sender():
    sender, other = _connection("U1"), _connection("U2")
    manager = _manager(sender, other)

    delivered = asyncio.run(manager.broadcast({"type": "ping"}, sender=sender))

    assert delivered == 1
    assert sender.websocket.sent == []
    assert other.websocket.sent == [{"type": "ping"}]


def test_broadcast_filters_by_tenant():
    sender = _connection("U1", "T1")
    same, foreign, untagged = _connection("U2", "T1"), _connection("U3", "T2"), _connection()
    manager = _manager(sender, same, foreign, untagged)

    asyncio.run(manager.handle(sender, {"type": "read_receipt", "message_id": "msg_1"}))

    assert same.websocket.sent[0]["type"] == "read_receipt"
    assert same.websocket.sent[0]["user_id"] == "U1"
    assert foreign.websocket.sent == []
    assert untagged.websocket.sent == []


def test_untagged_sender_reaches_everyone():
    sender = _connection("U1")
    others = [_connection("U2", "T1"), _connection("U3", "T2")]
    manager = _manager(sender, *others)

    asyncio.run(manager.handle(sender, {"type": "typing", "conversation_id": "c1", "is_typing": True}))

    for other in others:
        assert other.websocket.sent[0]["is_typing"] is True


def test_failed_socket_is_dropped():
    sender, broken, healthy = _connection("U1"), _connection("U2", fail=True), _connection("U3")
    manager = _manager(sender, broken, healthy)

    delivered = asyncio.run(manager.broadcast({"type": "ping"}, sender=sender))

    assert delivered == 1
    assert broken not in manager.connections
    assert healthy in manager.connections


def test_closed_socket_is_skipped():
    sender, closed = _connection("U1"), _connection("U2")
    closed.websocket.client_state = WebSocketState.DISCONNECTED
    manager = _manager(sender, closed)

    assert asyncio.run(manager.broadcast({"type": "ping"}, sender=sender)) == 0


def test_authenticate_with_user_id(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "userId": "U.002", "tenant_id": "T.UBL"})
        reply = ws.receive_json()
    assert reply["type"] == "authenticated"
    assert reply["userId"] == "U.002"
    assert reply["tenantId"] == "T.UBL"


def test_authenticate_defaults_user(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate"})
        assert ws.receive_json()["userId"] == "U.001"


def test_authenticate_with_token(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": make_token("U.003", username="sarah")})
        reply = ws.receive_json()
        assert reply["userId"] == "U.003"
        assert reply["tenantId"] == "T.UBL"

        ws.send_json({"type": "authenticate", "token": "garbage"})
        assert ws.receive_json()["type"] == "error"


def test_malformed_frames_keep_connection_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        ws.send_text("[1, 2, 3]")
        ws.send_json({"type": "mystery"})
        ws.send_json({"type": "authenticate", "userId": "U.002"})
        assert ws.receive_json()["type"] == "authenticated"


def test_message_is_relayed_to_other_socket(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        alice.send_json({"type": "authenticate", "userId": "U.001"})
        alice.receive_json()
        bob.send_json({"type": "authenticate", "userId": "U.002"})
        bob.receive_json()

        alice.send_json({"type": "message", "message": {"id": "m1", "text": "hi"}})
        relayed = bob.receive_json()

    assert relayed["type"] == "new_message"
    assert relayed["message"] == {"id": "m1", "text": "hi"}
    assert "timestamp" in relayed


def test_rest_message_is_pushed_to_sockets(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": make_token("U.002", username="alex")})
        ws.receive_json()

        resp = client.post(
            "/api/v1/conversations/conv_001/messages",
            json={"text": "Deck is attached"},
            headers=auth_headers("U.001"),
        )
        pushed = ws.receive_json()

    assert pushed["type"] == "new_message"
    assert pushed["message"]["id"] == resp.json()["message"]["id"]
    assert pushed["message"]["text"] == "Deck is attached"


def test_recipients_restricted_to_users():
    member, outsider = _connection("U2", "T1"), _connection("U3", "T1")
    manager = _manager(member, outsider)

    delivered = asyncio.run(manager.broadcast({"type": "ping"}, tenant_id="T1", user_ids=["U1", "U2"]))

    assert delivered == 1
    assert member.websocket.sent == [{"type": "ping"}]
    assert outsider.websocket.sent == []


def test_binary_frames_are_parsed(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b"\xff\xfe not json")
        ws.send_bytes(b'{"type": "authenticate", "userId": "U.002"}')
        reply = ws.receive_json()
    assert reply["type"] == "authenticated"
    assert reply["userId"] == "U.002"


def test_unauthenticated_token_is_refused(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": make_token("U.002", authenticated=False)})
        assert ws.receive_json()["type"] == "error"


def test_rest_events_only_reach_participants(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": make_token("U.003", username="sarah")})
        ws.receive_json()

        headers = auth_headers("U.001")
        client.post("/api/v1/conversations/conv_001/messages", json={"text": "private"}, headers=headers)
        client.post("/api/v1/conversations/conv_001/typing", json={"is_typing": True}, headers=headers)
        client.post("/api/v1/conversations/conv_003/messages", json={"text": "team update"}, headers=headers)
        pushed = ws.receive_json()

    assert pushed["type"] == "new_message"
    assert pushed["message"]["conversation_id"] == "conv_003"
    assert pushed["message"]["text"] == "team update"
