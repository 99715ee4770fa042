"""
Deployment helper: registers the webhook and the bot's commands.

    python setup_bot.py            # point Telegram at BASE_URL/webhook
    python setup_bot.py --delete   # stop receiving updates
"""

import asyncio
import os
import sys

from dotenv import load_dotenv
from telegram import Bot, BotCommand, MenuButtonWebApp, WebAppInfo

load_dotenv()

COMMANDS = [BotCommand("start", "Abrir Finanzas AI")]

# Only what the handlers in app/bot consume
ALLOWED_UPDATES = ["message", "callback_query"]


async def configure(bot: Bot, base_url: str, web_app_url: str | None) -> bool:
    webhook_url = f"{base_url.rstrip('/')}/webhook"
    print(f"Setting webhook to: {webhook_url} ...")

    ok = await bot.set_webhook(
        url=webhook_url,
        allowed_updates=ALLOWED_UPDATES,
        drop_pending_updates=True,
        secret_token=os.getenv("WEBHOOK_SECRET") or None,
    )
    await bot.set_my_commands(COMMANDS)

    if web_app_url:
        await bot.set_chat_menu_button(
            menu_button=MenuButtonWebApp(text="Finanzas", web_app=WebAppInfo(url=web_app_url))
        )
    return ok


async def main(argv: list[str]) -> int:
    token = os.getenv("BOT_TOKEN")
    base_url = os.getenv("BASE_URL")

    if not token:
        print("Error: BOT_TOKEN is missing in environment variables.")
        return 1

    async with Bot(token=token) as bot:
        if "--delete" in argv:
            ok = await bot.delete_webhook()
            print("Webhook removed." if ok else "Failed to remove webhook.")
            return 0 if ok else 1

        if not base_url:
            print("Error: BASE_URL is missing in environment variables.")
            return 1

        ok = await configure(bot, base_url, os.getenv("WEB_APP_URL"))

    print("Webhook set successfully." if ok else "Failed to set webhook (API returned False).")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
