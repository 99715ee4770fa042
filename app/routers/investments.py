import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, verify_telegram_authentication
from app.models.schemas import Investment, InvestmentCreate, InvestmentUpdate
from app.services.analytics import AnalyticsService
from app.services.ledger import LedgerService
from app.services.prices import fetch_crypto_ticker, refresh_prices

logger = logging.getLogger(__name__)

router = APIRouter(tags=["investments"])


@router.get("/investments", response_model=list[Investment])
async def get_investments(
    type: Literal["traditional", "crypto"] | None = None,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    return await AnalyticsService(session).get_investments(user["id"], type)


@router.get("/investments/portfolio")
async def get_portfolio(
    type: Literal["traditional", "crypto"] | None = None,
    refresh: bool = False,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    """
    Valued positions with per-type and global totals.

    With ``refresh=true`` market prices are looked up first and the ones
    that came back are saved.
    """
    service = AnalyticsService(session)
    investments = await service.get_investments(user["id"])

    if refresh and investments:
        if await refresh_prices(investments):
            await session.commit()

    return await service.get_portfolio(user["id"], type, investments=investments)


@router.get("/investments/crypto-ticker")
async def get_crypto_ticker(user=Depends(verify_telegram_authentication)):
    return await fetch_crypto_ticker()


@router.post("/investments", response_model=Investment)
async def add_investment(
    inv: InvestmentCreate,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await LedgerService(session, user["id"]).add_investment(
            asset_name=inv.asset_name,
            amount=inv.amount,
            quantity=inv.quantity,
            investment_type=inv.investment_type,
            currency=inv.currency,
            manual_current_price=inv.manual_current_price,
        )
    except Exception as e:
        logger.error(f"Could not save record for user {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Could not save the record, try again later.") from e


@router.patch("/investments/{investment_id}", response_model=Investment)
async def update_investment(
    investment_id: str,
    update_data: InvestmentUpdate,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    investment = await LedgerService(session, user["id"]).update_investment(
        investment_id, quantity=update_data.quantity, current_price_usd=update_data.current_price_usd
    )
    if not investment:
        raise HTTPException(status_code=404, detail="Investment not found")
    return investment


@router.delete("/investments/{investment_id}")
async def delete_investment(
    investment_id: str, user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)
):
    if not await LedgerService(session, user["id"]).delete_investment(investment_id):
        raise HTTPException(status_code=404, detail="Investment not found")
    return {"status": "deleted"}
