import asyncio
import logging
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import httpx

from app.config import DEFAULT_MEP_RATE, MEP_API_URL, MEP_MAX_RATE, MEP_MIN_RATE, MEP_UPDATE_INTERVAL
from app.services.prices import fetch_mep_text

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# First number with 3 to 6 integer digits, e.g. "1185.50" or "148185"
_RATE_PATTERN = re.compile(r"(\d{3,6}(?:\.\d{1,2})?)")


def to_cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_mep_rate(value) -> Decimal | None:
    """
    Sanity-checks a quoted MEP rate.

    Quotes above 100000 are assumed to have lost their decimal point
    (1481.85 read as 148185) and are divided by 100. Anything outside the
    configured band is rejected with None.
    """
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None

    if rate > 100000:
        rate = rate / 100

    if Decimal(str(MEP_MIN_RATE)) < rate < Decimal(str(MEP_MAX_RATE)):
        return rate
    return None


def parse_rate_text(text: str) -> Decimal | None:
    """Extracts a MEP rate from a free-text answer ("1185.50", "Hoy: 1185")."""
    match = _RATE_PATTERN.search(text or "")
    if not match:
        return None
    return normalize_mep_rate(match.group(1))


def _effective_rate(rate) -> Decimal:
    rate = Decimal(str(rate)) if rate is not None else Decimal("0")
    if rate <= 0:
        return Decimal(str(DEFAULT_MEP_RATE))
    return rate


def ars_to_usd(amount, rate) -> Decimal:
    return to_cents(Decimal(str(amount)) / _effective_rate(rate))


def usd_to_ars(amount, rate) -> Decimal:
    return to_cents(Decimal(str(amount)) * _effective_rate(rate))


class MepRateService:
    _instance = None
    _rate: Decimal | None = None
    _last_update: datetime = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def start_periodic_update(self):
        """Starts the infinite loop for updating the MEP rate."""
        logger.info("Starting background MEP rate update task...")
        while True:
            try:
                await self._update_rate_from_api()
            except Exception as e:
                logger.error(f"Error in periodic update: {e}")

            await asyncio.sleep(MEP_UPDATE_INTERVAL)

    def get_rate(self) -> Decimal:
        """
        Current ARS per USD rate.

        Never waits for the network: if nothing has been fetched yet the
        fallback constant is returned and the background task fills the cache.
        """
        if self._rate is None:
            return Decimal(str(DEFAULT_MEP_RATE))
        return self._rate

    @property
    def last_update(self) -> datetime | None:
        return self._last_update

    @property
    def is_live(self) -> bool:
        return self._rate is not None

    def seed(self, rate) -> bool:
        """Adopts a known rate (e.g. from a restored backup) if none is cached."""
        if self._rate is not None:
            return False
        normalized = normalize_mep_rate(rate)
        if normalized is None:
            return False
        self._rate = normalized
        self._last_update = datetime.now()
        return True

    async def warmup(self) -> Decimal:
        if self._rate is None:
            await self._update_rate_from_api()
        return self.get_rate()

    async def _update_rate_from_api(self):
        rate = await self._fetch_quote()
        source = "api"

        if rate is None:
            # Second opinion: ask the AI model to look the quote up
            rate = parse_rate_text(await fetch_mep_text())
            source = "ai"

        if rate is None:
            logger.warning("No plausible MEP quote available, keeping previous rate")
            return

        self._rate = rate
        self._last_update = datetime.now()
        logger.info(f"MEP rate updated from {source}: {rate}")

    async def _fetch_quote(self) -> Decimal | None:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(MEP_API_URL, timeout=5.0)
                if resp.status_code != 200:
                    logger.warning(f"Failed to update MEP rate: {resp.status_code}")
                    return None
                data = resp.json()
                rate = normalize_mep_rate(data.get("venta"))
                if rate is None:
                    logger.warning(f"Discarding implausible MEP quote: {data.get('venta')}")
                return rate
        except Exception as e:
            logger.error(f"Network error updating MEP rate: {e}")
            return None
