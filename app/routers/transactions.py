import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, get_timezone_offset, verify_telegram_authentication
from app.models.schemas import MonthlyIncomeUpdate, Transaction, TransactionCreate
from app.services.analytics import AnalyticsService
from app.services.ledger import LedgerService
from app.services.months import MAX_YEAR, MIN_YEAR, date_in_month, month_bounds, resolve_month

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])


@router.get("/transactions", response_model=list[Transaction])
async def get_transactions(
    year: int | None = Query(None, ge=MIN_YEAR, le=MAX_YEAR),
    month: int | None = Query(None, ge=1, le=12),
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    """All transactions (expenses and income) of one calendar month, newest first."""
    year, month = resolve_month(year, month, offset)
    start, end = month_bounds(year, month, offset)
    return await AnalyticsService(session).get_month_transactions(user["id"], start, end)


@router.get("/expenses")
async def get_expenses(
    year: int | None = Query(None, ge=MIN_YEAR, le=MAX_YEAR),
    month: int | None = Query(None, ge=1, le=12),
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    year, month = resolve_month(year, month, offset)
    start, end = month_bounds(year, month, offset)

    data = await AnalyticsService(session).get_expenses(user["id"], start, end)
    data["expenses"] = [Transaction.model_validate(t) for t in data["expenses"]]
    return {"year": year, "month": month, **data}


@router.post("/transactions", response_model=Transaction)
async def add_transaction(
    tx: TransactionCreate,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    year, month = resolve_month(tx.year, tx.month, offset)

    try:
        return await LedgerService(session, user["id"]).add_expense(
            concept=tx.concept,
            amount_ars=tx.amount_ars,
            category=tx.category,
            when=date_in_month(year, month, offset),
        )
    except Exception as e:
        logger.error(f"Could not save record for user {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Could not save the record, try again later.") from e


@router.put("/income", response_model=Transaction)
async def update_monthly_income(
    income: MonthlyIncomeUpdate,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    """Sets the monthly income of the selected month, replacing any previous one."""
    year, month = resolve_month(income.year, income.month, offset)

    try:
        return await LedgerService(session, user["id"]).set_monthly_income(
            amount=income.amount,
            currency=income.currency,
            year=year,
            month=month,
            when=date_in_month(year, month, offset),
            offset_minutes=offset,
        )
    except Exception as e:
        logger.error(f"Could not save record for user {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Could not save the record, try again later.") from e


@router.delete("/transactions/{tx_id}")
async def delete_transaction(
    tx_id: str, user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)
):
    if not await LedgerService(session, user["id"]).delete_transaction(tx_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"status": "deleted"}
