import hashlib
import hmac
import json
import urllib.parse

import pytest
from fastapi import HTTPException

from app import dependencies
from app.dependencies import check_init_data, verify_telegram_authentication

BOT_TOKEN = "123456:TEST-TOKEN"


def _init_data(user: dict, token: str = BOT_TOKEN, **extra) -> str:
    fields = {"auth_date": "1710000000", "query_id": "AAHdF60UAAAAAN0XrRT9", "user": json.dumps(user), **extra}
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    fields["hash"] = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urllib.parse.urlencode(fields)


def test_valid_init_data():
    user = check_init_data(_init_data({"id": 12345, "first_name": "TestUser"}), BOT_TOKEN)

    assert user["id"] == "12345"
    assert user["first_name"] == "TestUser"


def test_tampered_init_data():
    init_data = _init_data({"id": 12345}).replace("12345", "99999", 1)

    with pytest.raises(HTTPException) as exc:
        check_init_data(init_data, BOT_TOKEN)
    assert exc.value.status_code == 403


def test_signed_with_another_token():
    with pytest.raises(HTTPException) as exc:
        check_init_data(_init_data({"id": 1}, token="other:TOKEN"), BOT_TOKEN)
    assert exc.value.status_code == 403


def test_missing_hash():
    with pytest.raises(HTTPException) as exc:
        check_init_data("user=%7B%22id%22%3A1%7D&auth_date=1", BOT_TOKEN)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_missing_header():
    with pytest.raises(HTTPException) as exc:
        await verify_telegram_authentication(None)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_owner_only(monkeypatch):
    monkeypatch.setattr(dependencies, "BOT_TOKEN", BOT_TOKEN)
    monkeypatch.setattr(dependencies, "OWNER_ID", "12345")

    owner = await verify_telegram_authentication(_init_data({"id": 12345}))
    assert owner["id"] == "12345"

    with pytest.raises(HTTPException) as exc:
        await verify_telegram_authentication(_init_data({"id": 777}))
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_malformed_user_is_unauthorized(monkeypatch):
    monkeypatch.setattr(dependencies, "BOT_TOKEN", BOT_TOKEN)
    monkeypatch.setattr(dependencies, "OWNER_ID", None)

    fields = {"auth_date": "1", "user": "not-json"}
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hmac.new(b"WebAppData", BOT_TOKEN.encode(), hashlib.sha256).digest()
    fields["hash"] = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()

    with pytest.raises(HTTPException) as exc:
        await verify_telegram_authentication(urllib.parse.urlencode(fields))
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_missing_bot_token(monkeypatch):
    monkeypatch.setattr(dependencies, "BOT_TOKEN", None)

    with pytest.raises(HTTPException) as exc:
        await verify_telegram_authentication("hash=abc")
    assert exc.value.status_code == 500
