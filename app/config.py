import os
import sys
from dotenv import load_dotenv

load_dotenv()

BOT_TOKEN = os.getenv("BOT_TOKEN")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
WEB_APP_URL = os.getenv("WEB_APP_URL")
BASE_URL = os.getenv("BASE_URL")
# Sent back by Telegram on every webhook call when set (see setup_bot.py)
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET")

# Telegram id of the only user allowed to use the API (empty = anyone with valid init data)
OWNER_ID = os.getenv("OWNER_ID")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Dolar MEP (ARS per USD)
MEP_API_URL = os.getenv("MEP_API_URL", "https://dolarapi.com/v1/dolares/bolsa")
DEFAULT_MEP_RATE = float(os.getenv("DEFAULT_MEP_RATE", "1180"))
MEP_MIN_RATE = float(os.getenv("MEP_MIN_RATE", "800"))
MEP_MAX_RATE = float(os.getenv("MEP_MAX_RATE", "5000"))
MEP_UPDATE_INTERVAL = int(os.getenv("MEP_UPDATE_INTERVAL", "3600"))

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    print("❌ CRITICAL ERROR: DATABASE_URL is missing!")
    sys.exit(1)

# Ensure async driver usage for SQLAlchemy compatibility
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

if not BOT_TOKEN:
    print("⚠️ WARNING: BOT_TOKEN is missing. Bot functionality will be disabled.")

if not GOOGLE_API_KEY:
    print("⚠️ WARNING: GOOGLE_API_KEY is missing. AI parsing and asset prices will be disabled.")
