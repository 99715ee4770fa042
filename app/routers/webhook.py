import hmac
import logging

from fastapi import APIRouter, Header, HTTPException, Request
from telegram import Update

from app.bot.loader import ptb_app
from app.config import WEBHOOK_SECRET

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    secret_token: str | None = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
):
    """Entry point for Telegram updates (text/voice entries and button presses)."""
    if not ptb_app:
        return {"error": "Bot not initialized"}

    if WEBHOOK_SECRET and not hmac.compare_digest(secret_token or "", WEBHOOK_SECRET):
        raise HTTPException(status_code=403, detail="Invalid webhook secret")

    try:
        update = Update.de_json(await request.json(), ptb_app.bot)
        await ptb_app.process_update(update)
    except Exception as e:
        # Answer 200 anyway: Telegram would keep redelivering a broken update
        logger.error(f"Webhook error: {e}")
        return {"status": "error"}
    return {"status": "ok"}
