import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, verify_telegram_authentication
from app.models.schemas import Saving, SavingCreate
from app.services.analytics import AnalyticsService, total_saved
from app.services.ledger import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["savings"])


@router.get("/savings")
async def get_savings(user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)):
    savings = await AnalyticsService(session).get_savings(user["id"])
    return {
        "savings": [Saving.model_validate(s) for s in savings],
        "total_usd": total_saved(savings),
    }


@router.post("/savings", response_model=Saving)
async def add_saving(
    saving: SavingCreate,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await LedgerService(session, user["id"]).add_saving(saving.concept, saving.amount_usd)
    except Exception as e:
        logger.error(f"Could not save record for user {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Could not save the record, try again later.") from e


@router.delete("/savings/{saving_id}")
async def delete_saving(
    saving_id: str, user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)
):
    if not await LedgerService(session, user["id"]).delete_saving(saving_id):
        raise HTTPException(status_code=404, detail="Saving not found")
    return {"status": "deleted"}
