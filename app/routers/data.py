import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_session, get_timezone_offset, verify_telegram_authentication
from app.services.backup import InvalidBackupError, build_backup, export_csv, restore_backup
from app.services.ledger import LedgerService
from app.services.months import month_bounds, resolve_month

logger = logging.getLogger(__name__)

router = APIRouter(tags=["data"])


def _today() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d")


@router.get("/data/backup")
async def download_backup(
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
    offset: int = Depends(get_timezone_offset),
):
    start, end = month_bounds(*resolve_month(None, None, offset), offset)
    backup = await build_backup(session, user["id"], start, end)
    return JSONResponse(
        content=backup,
        headers={"Content-Disposition": f'attachment; filename="finanzas_backup_{_today()}.json"'},
    )


@router.post("/data/restore")
async def upload_backup(
    data: dict = Body(...),
    user=Depends(verify_telegram_authentication),
    session: AsyncSession = Depends(get_session),
):
    """Replaces every record of the user with the backup's contents."""
    try:
        counts = await restore_backup(session, user["id"], data)
    except InvalidBackupError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Restore failed for user {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Could not restore the backup, nothing was changed.") from e
    return {"status": "restored", **counts}


@router.get("/data/export.csv")
async def download_csv(user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)):
    content = await export_csv(session, user["id"])
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="finanzas_reporte_{_today()}.csv"'},
    )


@router.delete("/users/me/reset")
async def reset_user_data(user=Depends(verify_telegram_authentication), session: AsyncSession = Depends(get_session)):
    await LedgerService(session, user["id"]).reset()
    return {"status": "success"}
