import hmac
import hashlib
import json
import logging
import urllib.parse
from typing import AsyncGenerator
from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import BOT_TOKEN, OWNER_ID
from app.database import async_session_maker
from app.services.months import parse_offset

logger = logging.getLogger(__name__)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_timezone_offset(x_timezone_offset: str | None = Header(None, alias="X-Timezone-Offset")) -> int:
    return parse_offset(x_timezone_offset)


def check_init_data(init_data: str, bot_token: str) -> dict:
    """
    Validates Telegram WebApp init data and returns the user it carries.

    Raises HTTPException on any mismatch.
    """
    parsed_data = dict(urllib.parse.parse_qsl(init_data))
    received_hash = parsed_data.pop("hash", None)
    if not received_hash:
        raise HTTPException(status_code=401, detail="No hash provided")

    # Telegram data-check-string requires alphabetical sorting of keys
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(parsed_data.items()))

    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    calculated_hash = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()

    if not hmac.compare_digest(calculated_hash, received_hash):
        logger.warning("[AUTH FAIL] Hash mismatch")
        raise HTTPException(status_code=403, detail="Data integrity check failed")

    user_data = json.loads(parsed_data.get("user", "{}"))
    user_data["id"] = str(user_data["id"])
    return user_data


async def verify_telegram_authentication(x_telegram_init_data: str = Header(None, alias="X-Telegram-Init-Data")):
    if not x_telegram_init_data:
        raise HTTPException(status_code=401, detail="Missing auth header")

    if not BOT_TOKEN:
        logger.error("[AUTH]: BOT_TOKEN is missing on server")
        raise HTTPException(status_code=500, detail="Server config error")

    try:
        user_data = check_init_data(x_telegram_init_data, BOT_TOKEN)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[AUTH ERROR]: {e}")
        raise HTTPException(status_code=401, detail="Invalid authentication data")

    # Single-user deployment: only the owner gets in
    if OWNER_ID and user_data["id"] != str(OWNER_ID):
        raise HTTPException(status_code=403, detail="This ledger belongs to another user")

    return user_data
