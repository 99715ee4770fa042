import asyncio
import logging
import re
from decimal import Decimal, InvalidOperation

from app.config import GEMINI_MODEL
from app.services import gemini
from constants import CRYPTO_TICKERS, PROMPTS

logger = logging.getLogger(__name__)

_PRICE_PATTERN = re.compile(r"(\d[\d,]*\.?\d*)")


def parse_price_text(text: str) -> Decimal:
    """First number in the answer, thousands separators removed; 0 if none."""
    match = _PRICE_PATTERN.search(text or "")
    if not match:
        return Decimal("0")
    try:
        return Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:
        return Decimal("0")


async def _ask(prompt: str) -> str:
    """Asks with Google Search grounding so quotes reflect today's market."""
    response = await gemini.search_client.aio.models.generate_content(
        model=GEMINI_MODEL,
        contents=prompt,
        config=gemini.search_config(),
    )
    return response.text or ""


async def fetch_mep_text() -> str:
    """Raw AI answer to the MEP quote question ("" when unavailable)."""
    if not gemini.search_client:
        return ""
    try:
        return await _ask(PROMPTS["mep"])
    except Exception as e:
        logger.error(f"Error fetching MEP from AI: {e}")
        return ""


async def fetch_asset_price(asset_name: str) -> Decimal:
    """Current market price of a ticker in USD, or 0 when it can't be found."""
    if not gemini.search_client:
        return Decimal("0")
    try:
        text = await _ask(PROMPTS["asset_price"].format(asset_name=asset_name))
        return parse_price_text(text)
    except Exception as e:
        logger.error(f"Error fetching price for {asset_name}: {e}")
        return Decimal("0")


async def fetch_crypto_ticker() -> dict[str, Decimal]:
    prices = await asyncio.gather(*(fetch_asset_price(ticker) for ticker in CRYPTO_TICKERS))
    return dict(zip(CRYPTO_TICKERS, prices))


async def refresh_prices(investments) -> int:
    """
    Updates current_price_usd in place for every investment whose price
    lookup returned something positive. Returns the number updated.
    """
    prices = await asyncio.gather(*(fetch_asset_price(inv.asset_name) for inv in investments))

    updated = 0
    for inv, price in zip(investments, prices):
        if price > 0:
            inv.current_price_usd = price
            updated += 1
    return updated
