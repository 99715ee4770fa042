import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, verify_telegram_authentication
from app.models.schemas import AiParsedResult, AiParseRequest, Investment, Saving, Transaction
from app.models.sql import InvestmentDB, SavingDB
from app.services.currency import MepRateService
from app.services.ledger import LedgerService
from app.services.parser import AiUnavailableError, process_financial_input

router = APIRouter(tags=["ai"])


@router.post("/ai/parse", response_model=AiParsedResult)
async def parse_input(request: AiParseRequest, user=Depends(verify_telegram_authentication)):
    """
    Turns a text or a voice recording into a pending record.

    Nothing is stored: the client shows the result for confirmation and
    posts the (possibly edited) version to /ai/confirm.
    """
    audio = None
    if request.audio_base64:
        try:
            audio = base64.b64decode(request.audio_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="Invalid base64 audio")

    if not request.text and not audio:
        raise HTTPException(status_code=400, detail="Send either text or audio")

    try:
        result = await process_financial_input(
            text=request.text,
            audio=audio,
            mime_type=request.mime_type,
            current_mep=MepRateService().get_rate(),
        )
    except AiUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if result is None:
        # 503 lets the frontend offer a retry
        raise HTTPException(status_code=503, detail="AI is currently busy, try again later.")

    return result


@router.post("/ai/confirm")
async def confirm_result(
    result: AiParsedResult,
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    try:
        record = await LedgerService(session, user["id"]).confirm_ai_result(result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if isinstance(record, InvestmentDB):
        return {"kind": "investment", "record": Investment.model_validate(record)}
    if isinstance(record, SavingDB):
        return {"kind": "saving", "record": Saving.model_validate(record)}
    return {"kind": "transaction", "record": Transaction.model_validate(record)}
