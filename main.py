import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.bot.lifecycle import start_bot, stop_bot
from app.config import WEB_APP_URL
from app.routers import ai, dashboard, data, investments, savings, transactions, webhook
from app.services.currency import MepRateService

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await start_bot()

    # Hourly MEP refresh; the reference keeps the task alive
    rates = MepRateService()
    mep_task = asyncio.create_task(rates.start_periodic_update())

    # First quote (or the fallback) is in place before the first request
    print("⏳ Warming up MEP rate...")
    rate = await rates.warmup()
    print(f"✅ MEP rate ready: {rate} ARS/USD ({'live' if rates.is_live else 'fallback'})")

    yield

    print("🛑 Stopping MEP updates...")
    mep_task.cancel()
    try:
        await mep_task
    except asyncio.CancelledError:
        print("✅ MEP task cancelled")

    await stop_bot()


app = FastAPI(title="Finanzas AI API", lifespan=lifespan)

# The web app is served from its own origin (Telegram WebApp URL)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[WEB_APP_URL.rstrip("/")] if WEB_APP_URL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (dashboard, transactions, investments, savings, ai, data):
    app.include_router(module.router, prefix="/api")
app.include_router(webhook.router)


@app.get("/health")
async def health():
    rates = MepRateService()
    return {"status": "ok", "mep_rate": rates.get_rate(), "mep_live": rates.is_live}
