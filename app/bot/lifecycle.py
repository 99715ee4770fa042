from telegram.ext import CallbackQueryHandler, CommandHandler, MessageHandler, filters

from app.bot.handlers import handle_confirmation, handle_text, handle_voice, start_command
from app.bot.loader import ptb_app


def register_handlers(application):
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))
    application.add_handler(MessageHandler(filters.VOICE | filters.AUDIO, handle_voice))
    application.add_handler(CallbackQueryHandler(handle_confirmation, pattern="^ai:"))


async def start_bot():
    if not ptb_app:
        print("⚠️ [Bot]: BOT_TOKEN not found, skipping bot initialization")
        return

    register_handlers(ptb_app)

    await ptb_app.initialize()
    print("--- [Bot]: Initialized successfully")


async def stop_bot():
    if ptb_app:
        await ptb_app.shutdown()
        print("--- [Bot]: Shutdown successfully")
