import json

import pytest

from heartline.services.chat_service import ChatService


async def join(client, headers, name="Travel"):
    res = await client.get("/api/user/getCommunity", headers=headers)
    cid = next(c["id"] for c in res.json()["communities"] if c["name"] == name)
    await client.post("/api/user/joinCommunity", headers=headers, json={"communityId": cid})
    return cid


@pytest.mark.asyncio
async def test_direct_message_is_stored_and_published(client, register, providers):
    alice_id, alice = await register("alice@example.com")
    bob_id, bob = await register("bob@example.com", name="Bob")

    res = await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": bob_id, "message": " hi Bob "})

    assert res.status_code == 201
    chat = res.json()["chat"]
    assert chat["message"] == "hi Bob"
    assert chat["receiverIds"] == [bob_id]
    assert chat["communityId"] is None

    receiver_id, payload = providers.notifier.published[0]
    assert receiver_id == bob_id
    assert payload["type"] == "CHAT_NOTIFICATION"
    assert payload["senderId"] == alice_id


@pytest.mark.asyncio
async def test_direct_history_is_shared_and_ordered(client, register):
    alice_id, alice = await register("alice@example.com")
    bob_id, bob = await register("bob@example.com", name="Bob")
    _, carl = await register("carl@example.com", name="Carl")
    await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": bob_id, "message": "one"})
    await client.post("/api/user/sendMessage", headers=bob, json={"receiverId": alice_id, "message": "two"})
    await client.post("/api/user/sendMessage", headers=carl, json={"receiverId": bob_id, "message": "other"})

    for headers, other in ((alice, bob_id), (bob, alice_id)):
        res = await client.get(f"/api/user/{other}", headers=headers)
        assert res.status_code == 200
        assert [m["message"] for m in res.json()["messages"]] == ["one", "two"]


@pytest.mark.asyncio
async def test_fixed_routes_are_not_shadowed_by_history_route(client, register):
    _, alice = await register("alice@example.com")

    res = await client.get("/api/user/getImages", headers=alice)

    assert res.status_code == 200
    assert "images" in res.json()


@pytest.mark.asyncio
async def test_direct_message_validation(client, register):
    alice_id, alice = await register("alice@example.com")

    to_self = await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": alice_id, "message": "me"})
    unknown = await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": 999, "message": "hi"})
    blank = await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": 999, "message": "   "})

    assert to_self.status_code == 400
    assert unknown.status_code == 404
    assert blank.status_code == 400


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_the_send(client, register, providers):
    _, alice = await register("alice@example.com")
    bob_id, _ = await register("bob@example.com")
    providers.notifier.error = ConnectionError("redis down")

    res = await client.post("/api/user/sendMessage", headers=alice, json={"receiverId": bob_id, "message": "hi"})

    assert res.status_code == 201


@pytest.mark.asyncio
async def test_group_message_reaches_every_other_member(client, register, providers):
    alice_id, alice = await register("alice@example.com")
    bob_id, bob = await register("bob@example.com")
    carl_id, carl = await register("carl@example.com")
    cid = await join(client, alice)
    await join(client, bob)
    await join(client, carl)

    res = await client.post("/api/user/sendGroupMessage", headers=alice, json={"communityId": cid, "message": "hello all"})

    assert res.status_code == 201
    assert sorted(res.json()["chat"]["receiverIds"]) == sorted([bob_id, carl_id])
    assert sorted(r for r, _ in providers.notifier.published) == sorted([bob_id, carl_id])

    history = await client.get("/api/user/chatHistory", headers=bob, params={"communityId": cid})
    assert [m["message"] for m in history.json()["messages"]] == ["hello all"]


@pytest.mark.asyncio
async def test_non_members_cannot_read_or_post_group_messages(client, register):
    _, alice = await register("alice@example.com")
    _, bob = await register("bob@example.com")
    cid = await join(client, alice)

    post = await client.post("/api/user/sendGroupMessage", headers=bob, json={"communityId": cid, "message": "let me in"})
    read = await client.get("/api/user/chatHistory", headers=bob, params={"communityId": cid})

    assert post.status_code == 403
    assert read.status_code == 403


@pytest.mark.asyncio
async def test_group_message_needs_another_member(client, register):
    _, alice = await register("alice@example.com")
    cid = await join(client, alice)

    res = await client.post("/api/user/sendGroupMessage", headers=alice, json={"communityId": cid, "message": "anyone?"})

    assert res.status_code == 400


@pytest.mark.asyncio
async def test_socket_frames_that_never_reach_the_database(providers):
    notifier = providers.notifier

    assert await ChatService.process_message(1, json.dumps({"type": "PING"}), notifier) is None
    assert (await ChatService.process_message(1, "{not json", notifier))["type"] == "ERROR"
    missing = await ChatService.process_message(1, json.dumps({"message": "hi"}), notifier)
    assert missing == {"type": "ERROR", "message": "to_user_id and message are required."}
    bad_id = await ChatService.process_message(1, json.dumps({"to_user_id": "abc", "message": "hi"}), notifier)
    assert bad_id["type"] == "ERROR"
    assert notifier.published == []
