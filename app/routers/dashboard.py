from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, get_timezone_offset, verify_telegram_authentication
from app.models.schemas import Transaction
from app.services.analytics import AnalyticsService
from app.services.currency import MepRateService
from app.services.months import MAX_YEAR, MIN_YEAR, month_bounds, resolve_month, shift_month

router = APIRouter(tags=["dashboard"])


@router.get("/rates/mep")
async def get_mep_rate(user=Depends(verify_telegram_authentication)):
    service = MepRateService()
    return {
        "rate": service.get_rate(),
        "last_update": service.last_update,
        "is_fallback": not service.is_live,
    }


@router.get("/dashboard")
async def get_dashboard(
    year: int | None = Query(None, ge=MIN_YEAR, le=MAX_YEAR),
    month: int | None = Query(None, ge=1, le=12),
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    year, month = resolve_month(year, month, offset)
    start, end = month_bounds(year, month, offset)

    data = await AnalyticsService(session).get_dashboard(user["id"], start, end)

    monthly_income = data["summary"]["monthly_income"]
    data["summary"]["monthly_income"] = Transaction.model_validate(monthly_income) if monthly_income else None

    prev_year, prev_month = shift_month(year, month, "prev")
    next_year, next_month = shift_month(year, month, "next")

    return {
        "year": year,
        "month": month,
        "previous": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
        "mep_rate": MepRateService().get_rate(),
        **data,
    }
