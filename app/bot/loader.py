from telegram.ext import Application
from app.config import BOT_TOKEN

# Updates arrive through the FastAPI webhook, so no polling updater is built
ptb_app = None
if BOT_TOKEN:
    ptb_app = Application.builder().token(BOT_TOKEN).updater(None).build()
