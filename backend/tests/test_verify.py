from datetime import timedelta

import pytest
from sqlalchemy import select, update

from conftest import signup_payload
from heartline.db.models.user import User, get_utc_now


async def signup(client, providers, identifier="user@example.com"):
    res = await client.post("/api/user/signup", json=signup_payload(identifier))
    assert res.status_code == 201
    return providers.email.last_code(identifier)


async def is_verified(session_maker, identifier="user@example.com"):
    async with session_maker() as session:
        result = await session.execute(select(User.is_verified).where(User.phone_or_email == identifier))
        return result.scalar_one()


def wrong_code(code):
    return "100000" if code != "100000" else "100001"


@pytest.mark.asyncio
async def test_correct_code_verifies_account(client, providers, session_maker):
    code = await signup(client, providers)

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": code})

    assert res.status_code == 200
    body = res.json()
    assert body["user"]["isVerified"] is True
    assert "password" not in body["user"]
    assert await is_verified(session_maker)

    async with session_maker() as session:
        user = (await session.execute(select(User))).scalar_one()
        assert user.verification_code is None
        assert user.otp_expires is None


@pytest.mark.asyncio
async def test_code_verifies_only_once(client, providers):
    code = await signup(client, providers)
    payload = {"phoneOrEmail": "user@example.com", "code": code}

    first = await client.post("/api/user/verify", json=payload)
    second = await client.post("/api/user/verify", json=payload)

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["message"] == "Account already verified."


@pytest.mark.asyncio
async def test_wrong_code_leaves_account_unverified(client, providers, session_maker):
    code = await signup(client, providers)

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": wrong_code(code)})

    assert res.status_code == 400
    assert res.json()["message"] == "Invalid verification code."
    assert not await is_verified(session_maker)


@pytest.mark.asyncio
async def test_expired_code_is_rejected(client, providers, session_maker):
    code = await signup(client, providers)
    async with session_maker() as session:
        await session.execute(update(User).values(otp_expires=get_utc_now() - timedelta(seconds=1)))
        await session.commit()

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": code})

    assert res.status_code == 400
    assert res.json()["message"] == "Verification code has expired."
    assert not await is_verified(session_maker)


@pytest.mark.asyncio
async def test_verify_unknown_user(client):
    res = await client.post("/api/user/verify", json={"phoneOrEmail": "ghost@example.com", "code": "123456"})

    assert res.status_code == 404
    assert res.json()["message"] == "User not found."


@pytest.mark.asyncio
async def test_verify_requires_both_fields(client):
    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com"})

    assert res.status_code == 400


@pytest.mark.asyncio
async def test_resent_code_replaces_the_old_one(client, providers, session_maker):
    old_code = await signup(client, providers)
    await client.post("/api/user/resendCode", json={"phoneOrEmail": "user@example.com"})
    new_code = providers.email.last_code("user@example.com")

    if old_code != new_code:
        stale = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": old_code})
        assert stale.status_code == 400

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": new_code})
    assert res.status_code == 200

    again = await client.post("/api/user/resendCode", json={"phoneOrEmail": "user@example.com"})
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_non_ascii_code_is_a_wrong_code(client, providers, session_maker):
    await signup(client, providers)

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": "１２３４５６"})

    assert res.status_code == 400
    assert res.json()["message"] == "Invalid verification code."
    assert not await is_verified(session_maker)


@pytest.mark.asyncio
async def test_code_sent_as_a_number_verifies(client, providers, session_maker):
    code = await signup(client, providers)

    res = await client.post("/api/user/verify", json={"phoneOrEmail": "user@example.com", "code": int(code)})

    assert res.status_code == 200
    assert await is_verified(session_maker)
