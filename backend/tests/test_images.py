import pytest


def image_file(name="photo.png", data=b"\x89PNG fake image bytes", content_type="image/png"):
    return ("images", (name, data, content_type))


@pytest.mark.asyncio
async def test_upload_and_list_images(client, register, providers):
    user_id, headers = await register("alice@example.com")

    res = await client.post(
        "/api/user/uploadImage",
        headers=headers,
        files=[image_file("a.png"), image_file("b.jpeg", content_type="image/jpeg")],
    )

    assert res.status_code == 201
    images = res.json()["images"]
    assert len(images) == 2
    assert images[1]["key"].endswith(".jpg")
    assert all(name.startswith(f"{user_id}/") for name in providers.storage.objects)
    assert images[0]["url"].startswith("https://storage.test/")

    listed = await client.get("/api/user/getImages", headers=headers)
    assert [i["key"] for i in listed.json()["images"]] == [i["key"] for i in images]


@pytest.mark.asyncio
async def test_upload_requires_a_file(client, register):
    _, headers = await register("alice@example.com")

    res = await client.post("/api/user/uploadImage", headers=headers, data={"note": "nothing"})

    assert res.status_code == 400
    assert res.json()["message"] == "Please upload at least one image."


@pytest.mark.asyncio
async def test_upload_rejects_more_than_five(client, register, providers):
    _, headers = await register("alice@example.com")

    res = await client.post(
        "/api/user/uploadImage",
        headers=headers,
        files=[image_file(f"{i}.png") for i in range(6)],
    )

    assert res.status_code == 400
    assert providers.storage.objects == {}


@pytest.mark.asyncio
async def test_upload_rejects_non_images(client, register, providers):
    _, headers = await register("alice@example.com")

    res = await client.post(
        "/api/user/uploadImage",
        headers=headers,
        files=[image_file("a.png"), image_file("notes.txt", b"hello", "text/plain")],
    )

    assert res.status_code == 400
    assert "File type not allowed" in res.json()["message"]
    assert providers.storage.objects == {}


@pytest.mark.asyncio
async def test_failed_storage_upload_returns_500(client, register, providers):
    _, headers = await register("alice@example.com")
    providers.storage.fail_uploads = True

    res = await client.post("/api/user/uploadImage", headers=headers, files=[image_file()])

    assert res.status_code == 500
    listed = await client.get("/api/user/getImages", headers=headers)
    assert listed.json()["images"] == []


@pytest.mark.asyncio
async def test_replace_image(client, register, providers):
    user_id, headers = await register("alice@example.com")
    res = await client.post("/api/user/uploadImage", headers=headers, files=[image_file("a.png")])
    old_key = res.json()["images"][0]["key"]

    res = await client.put(
        f"/api/user/replace/{old_key}",
        headers=headers,
        files=[image_file("b.webp", b"RIFF webp", "image/webp")],
    )

    assert res.status_code == 200
    new_key = res.json()["image"]["key"]
    assert new_key != old_key and new_key.endswith(".webp")
    assert list(providers.storage.objects) == [f"{user_id}/{new_key}"]


@pytest.mark.asyncio
async def test_delete_image(client, register, providers):
    _, headers = await register("alice@example.com")
    res = await client.post("/api/user/uploadImage", headers=headers, files=[image_file()])
    key = res.json()["images"][0]["key"]

    res = await client.delete(f"/api/user/remove/{key}", headers=headers)

    assert res.status_code == 200
    assert providers.storage.objects == {}
    listed = await client.get("/api/user/getImages", headers=headers)
    assert listed.json()["images"] == []


@pytest.mark.asyncio
async def test_cannot_touch_someone_elses_image(client, register):
    _, alice = await register("alice@example.com")
    _, bob = await register("bob@example.com")
    res = await client.post("/api/user/uploadImage", headers=alice, files=[image_file()])
    key = res.json()["images"][0]["key"]

    assert (await client.delete(f"/api/user/remove/{key}", headers=bob)).status_code == 404
    assert (await client.put(f"/api/user/replace/{key}", headers=bob, files=[image_file()])).status_code == 404


@pytest.mark.asyncio
async def test_delete_drops_the_row_even_if_storage_fails(client, register, providers):
    _, headers = await register("alice@example.com")
    res = await client.post("/api/user/uploadImage", headers=headers, files=[image_file()])
    key = res.json()["images"][0]["key"]
    providers.storage.fail_deletes = True

    res = await client.delete(f"/api/user/remove/{key}", headers=headers)

    assert res.status_code == 200
    listed = await client.get("/api/user/getImages", headers=headers)
    assert listed.json()["images"] == []
