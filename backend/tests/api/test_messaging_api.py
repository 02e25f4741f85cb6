import pytest

from mycircle.infra import jwt as jwt_helper

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}
CAROL = {"X-User-Id": "carol"}


async def _approved_conversation(api_client) -> tuple[str, str]:
    created = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    request_id = created.json()["id"]
    decided = await api_client.put(f"/contacts/{request_id}/status", json={"status": "approved"}, headers=ALICE)
    return request_id, decided.json()["conversation_id"]


@pytest.mark.asyncio
async def test_requests_require_authentication(world, api_client):
    response = await api_client.get("/contacts/received")
    assert response.status_code == 401
    assert response.json()["detail"] == "invalid_token"
    assert response.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_bearer_token_authenticates(world, api_client):
    token = jwt_helper.encode_access({"sub": "alice"})
    response = await api_client.get("/contacts/received", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == {"items": []}


@pytest.mark.asyncio
async def test_create_request_accepts_camel_case_body(world, api_client):
    response = await api_client.post(
        "/contacts/request",
        json={"postId": "post-bike", "recipientId": "alice", "message": "Hi!"},
        headers=BOB,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "pending"
    assert body["recipient_id"] == "alice"
    assert body["post"]["title"] == "Road bike"


@pytest.mark.asyncio
async def test_create_request_by_path(world, api_client):
    response = await api_client.post("/contacts/post-bike", json={"message": "Hi!"}, headers=BOB)
    assert response.status_code == 200
    assert response.json()["post_id"] == "post-bike"


@pytest.mark.asyncio
async def test_create_request_by_path_without_body(world, api_client):
    response = await api_client.post("/contacts/post-bike", headers=BOB)

    assert response.status_code == 200
    body = response.json()
    assert body["post_id"] == "post-bike"
    assert body["recipient_id"] == "alice"
    assert body["message"] is None


@pytest.mark.asyncio
async def test_domain_errors_map_to_status_codes(world, api_client):
    missing = await api_client.post("/contacts/request", json={"postId": "nope"}, headers=BOB)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "not_found"
    assert missing.json()["request_id"]

    own = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=ALICE)
    assert own.status_code == 400
    assert own.json()["detail"] == "validation_error"

    await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    duplicate = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "duplicate_request"


@pytest.mark.asyncio
async def test_cooldown_returns_retry_after(world, api_client):
    created = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    request_id = created.json()["id"]
    await api_client.put(f"/contacts/{request_id}/status", json={"status": "rejected"}, headers=ALICE)

    response = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)

    assert response.status_code == 429
    body = response.json()
    assert body["detail"] == "cooldown"
    assert 0 < body["remaining_hours"] <= 24
    assert int(response.headers["Retry-After"]) == body["retry_after_seconds"]


@pytest.mark.asyncio
async def test_status_update_conflict_and_authorization(world, api_client):
    created = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    request_id = created.json()["id"]

    forbidden = await api_client.put(f"/contacts/{request_id}/status", json={"status": "approved"}, headers=BOB)
    assert forbidden.status_code == 401

    await api_client.put(f"/contacts/{request_id}/status", json={"status": "rejected"}, headers=ALICE)
    conflict = await api_client.put(f"/contacts/{request_id}/status", json={"status": "approved"}, headers=ALICE)
    assert conflict.status_code == 409
    assert conflict.json()["detail"] == "conflict"


@pytest.mark.asyncio
async def test_sent_list_reveals_contact_after_approval(world, api_client):
    request_id, conversation_id = await _approved_conversation(api_client)

    sent = await api_client.get("/contacts/sent", headers=BOB)
    item = sent.json()["items"][0]
    assert item["id"] == request_id
    assert item["post"]["contact_phone"] == "+15550001"
    assert conversation_id


@pytest.mark.asyncio
async def test_chat_flow(world, api_client):
    _, conversation_id = await _approved_conversation(api_client)

    sent = await api_client.post("/chat/message", json={"recipientId": "alice", "text": "Hello!"}, headers=BOB)
    assert sent.status_code == 201
    assert sent.json()["conversation_id"] == conversation_id

    unread = await api_client.get("/chat/unread/count", headers=ALICE)
    assert unread.json() == {"count": 1}

    conversations = await api_client.get("/chat/conversations", headers=ALICE)
    assert conversations.json()["items"][0]["unread_count"] == 1

    messages = await api_client.get(f"/chat/messages/{conversation_id}", headers=ALICE)
    assert [item["text"] for item in messages.json()["items"]] == ["Hello!"]

    read = await api_client.put(f"/chat/read/{conversation_id}", headers=ALICE)
    assert read.json() == {"updated": 1}
    assert (await api_client.get("/chat/unread/count", headers=ALICE)).json() == {"count": 0}

    deleted = await api_client.delete(f"/chat/conversation/{conversation_id}", headers=ALICE)
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_chat_requires_connection(world, api_client):
    response = await api_client.post("/chat/message", json={"recipientId": "alice", "text": "hi"}, headers=CAROL)
    assert response.status_code == 403
    assert response.json()["detail"] == "not_connected"

    placeholder = await api_client.get("/chat/conversation/alice", headers=CAROL)
    assert placeholder.status_code == 200
    assert placeholder.json()["id"] is None

    init = await api_client.post("/chat/init/alice", headers=CAROL)
    assert init.status_code == 403


@pytest.mark.asyncio
async def test_content_violation_is_rejected(world, api_client):
    await _approved_conversation(api_client)
    response = await api_client.post("/chat/message", json={"recipientId": "alice", "text": "shit"}, headers=BOB)
    assert response.status_code == 400
    assert response.json()["detail"] == "content_violation"


@pytest.mark.asyncio
async def test_missing_body_field_is_422(world, api_client):
    response = await api_client.post("/chat/message", json={"text": "hi"}, headers=BOB)
    assert response.status_code == 422
    assert response.json()["detail"] == "validation_error"


@pytest.mark.asyncio
async def test_notification_endpoints(world, api_client):
    await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)

    listing = await api_client.get("/notifications", headers=ALICE)
    items = listing.json()["items"]
    assert [item["title"] for item in items] == ["New Contact Request"]
    assert items[0]["sender"]["display_name"] == "Bob"
    assert items[0]["related"]["kind"] == "request"
    notification_id = items[0]["id"]

    assert (await api_client.get("/notifications/unread/count", headers=ALICE)).json() == {"count": 1}

    not_mine = await api_client.put(f"/notifications/{notification_id}/read", headers=BOB)
    assert not_mine.status_code == 401

    marked = await api_client.put(f"/notifications/{notification_id}/read", headers=ALICE)
    assert marked.status_code == 204
    assert (await api_client.put("/notifications/read-all", headers=ALICE)).json() == {"updated": 0}

    deleted = await api_client.delete(f"/notifications/{notification_id}", headers=ALICE)
    assert deleted.status_code == 204
    assert (await api_client.get("/notifications", headers=ALICE)).json() == {"items": []}


@pytest.mark.asyncio
async def test_block_endpoints(world, api_client):
    blocked = await api_client.post("/users/bob/block", headers=ALICE)
    assert blocked.status_code == 200
    assert blocked.json()["id"] == "bob"

    listing = await api_client.get("/users/blocked", headers=ALICE)
    assert [item["id"] for item in listing.json()["items"]] == ["bob"]

    request = await api_client.post("/contacts/request", json={"postId": "post-bike"}, headers=BOB)
    assert request.status_code == 403
    assert request.json()["detail"] == "blocked"

    assert (await api_client.delete("/users/bob/block", headers=ALICE)).status_code == 204
    assert (await api_client.delete("/users/bob/block", headers=ALICE)).status_code == 404
