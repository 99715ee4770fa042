"""
Whole-ledger import/export.

The backup document mirrors what the web app keeps in local storage
(camelCase keys), so a file downloaded from either side restores on the
other.
"""

import csv
import io
import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.sql import InvestmentDB, SavingDB, TransactionDB, new_id
from app.services.analytics import AnalyticsService
from app.services.currency import MepRateService
from app.services.ledger import LedgerService

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Fecha", "Tipo", "Concepto", "Categoría", "Monto ARS", "Monto USD"]

_SENTIMENTS = {"positive", "negative", "neutral"}


class InvalidBackupError(ValueError):
    pass


def _number(value) -> Decimal:
    """Lenient numeric coercion: anything unusable becomes 0."""
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not number.is_finite():
        return Decimal("0")
    return number


def _date(value) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed.astimezone(UTC)
        except ValueError:
            pass
    return datetime.now(UTC)


def _float(value) -> float:
    return float(value) if value is not None else 0.0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _iso(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")


# --- Export ---


def transaction_to_dict(t) -> dict:
    return {
        "id": t.id,
        "date": _iso(t.date),
        "concept": t.concept,
        "amountARS": _float(t.amount_ars),
        "amountUSD": _float(t.amount_usd),
        "category": t.category,
        "type": t.type,
        "sentiment": t.sentiment,
        "tags": t.tags,
        "isMonthlyIncome": bool(t.is_monthly_income),
    }


def investment_to_dict(inv) -> dict:
    return {
        "id": inv.id,
        "date": _iso(inv.date),
        "assetName": inv.asset_name,
        "investedARS": _float(inv.invested_ars),
        "investedUSD": _float(inv.invested_usd),
        "quantity": _float(inv.quantity),
        "currentPriceUSD": _float(inv.current_price_usd) if inv.current_price_usd is not None else None,
        "investmentType": inv.investment_type,
    }


def saving_to_dict(s) -> dict:
    return {"id": s.id, "date": _iso(s.date), "concept": s.concept, "amountUSD": _float(s.amount_usd)}


async def build_backup(session: AsyncSession, user_id: str, month_start: datetime, month_end: datetime) -> dict:
    analytics = AnalyticsService(session)
    transactions = await analytics.get_transactions(user_id)
    investments = await analytics.get_investments(user_id)
    savings = await analytics.get_savings(user_id)

    current_income = next(
        (t for t in transactions if t.is_monthly_income and month_start <= _as_utc(t.date) < month_end), None
    )

    return {
        "transactions": [transaction_to_dict(t) for t in reversed(transactions)],
        "investments": [investment_to_dict(inv) for inv in investments],
        "savings": [saving_to_dict(s) for s in savings],
        "monthlyIncomeARS": _float(current_income.amount_ars) if current_income else 0.0,
        "monthlyIncomeUSD": _float(current_income.amount_usd) if current_income else 0.0,
        "lastMepRate": float(MepRateService().get_rate()),
        "lastUpdated": _iso(datetime.now(UTC)),
    }


async def export_csv(session: AsyncSession, user_id: str) -> str:
    transactions = await AnalyticsService(session).get_transactions(user_id)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)
    for t in reversed(transactions):
        writer.writerow(
            [
                _as_utc(t.date).strftime("%d/%m/%Y"),
                t.type,
                t.concept,
                t.category or "-",
                f"{_number(t.amount_ars):.2f}",
                f"{_number(t.amount_usd):.2f}",
            ]
        )
    return buffer.getvalue()


# --- Restore ---


def normalize_backup(data) -> dict:
    """
    Cleans a backup document into rows ready for insertion.

    Raises InvalidBackupError when the document holds neither transactions
    nor investments.
    """
    if not isinstance(data, dict) or not (
        isinstance(data.get("transactions"), list) or isinstance(data.get("investments"), list)
    ):
        raise InvalidBackupError("El archivo no parece ser un backup válido.")

    transactions = []
    for t in data.get("transactions") or []:
        if not isinstance(t, dict):
            continue
        tags = t.get("tags")
        transactions.append(
            {
                "id": str(t.get("id") or new_id()),
                "date": _date(t.get("date")),
                "concept": str(t.get("concept") or ""),
                "amount_ars": _number(t.get("amountARS")),
                "amount_usd": _number(t.get("amountUSD")),
                "category": t.get("category"),
                "type": t.get("type") if t.get("type") in ("expense", "income") else "expense",
                "sentiment": t.get("sentiment") if t.get("sentiment") in _SENTIMENTS else None,
                "tags": [str(tag) for tag in tags] if isinstance(tags, list) else None,
                "is_monthly_income": bool(t.get("isMonthlyIncome")),
            }
        )

    investments = []
    for inv in data.get("investments") or []:
        if not isinstance(inv, dict):
            continue
        price = _number(inv.get("currentPriceUSD"))
        investments.append(
            {
                "id": str(inv.get("id") or new_id()),
                "date": _date(inv.get("date")),
                "asset_name": str(inv.get("assetName") or ""),
                "invested_ars": _number(inv.get("investedARS")),
                "invested_usd": _number(inv.get("investedUSD")),
                "quantity": _number(inv.get("quantity")),
                "current_price_usd": price or None,
                "investment_type": inv.get("investmentType") if inv.get("investmentType") == "crypto" else "traditional",
            }
        )

    savings = []
    for s in data.get("savings") if isinstance(data.get("savings"), list) else []:
        if not isinstance(s, dict):
            continue
        savings.append(
            {
                "id": str(s.get("id") or new_id()),
                "date": _date(s.get("date")),
                "concept": str(s.get("concept") or ""),
                "amount_usd": _number(s.get("amountUSD")),
            }
        )

    return {
        "transactions": transactions,
        "investments": investments,
        "savings": savings,
        "last_mep_rate": _number(data.get("lastMepRate")),
    }


async def _claim_ids(session: AsyncSession, model, user_id: str, rows: list[dict]):
    """Gives a fresh id to every row whose backup id cannot be inserted as is."""
    ids = {row["id"] for row in rows}
    taken = set()
    if ids:
        result = await session.execute(select(model.id).where(model.id.in_(ids), model.user_id != user_id))
        taken = set(result.scalars().all())

    seen = set()
    for row in rows:
        if row["id"] in taken or row["id"] in seen or len(row["id"]) > 36:
            row["id"] = new_id()
        seen.add(row["id"])


async def restore_backup(session: AsyncSession, user_id: str, data) -> dict:
    """Replaces the user's ledger with the backup's contents."""
    cleaned = normalize_backup(data)

    for model, key in ((TransactionDB, "transactions"), (InvestmentDB, "investments"), (SavingDB, "savings")):
        await _claim_ids(session, model, user_id, cleaned[key])

    await LedgerService(session, user_id).reset(commit=False)

    session.add_all(TransactionDB(user_id=user_id, **row) for row in cleaned["transactions"])
    session.add_all(InvestmentDB(user_id=user_id, **row) for row in cleaned["investments"])
    session.add_all(SavingDB(user_id=user_id, **row) for row in cleaned["savings"])

    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    if cleaned["last_mep_rate"] > 0:
        MepRateService().seed(cleaned["last_mep_rate"])

    counts = {key: len(cleaned[key]) for key in ("transactions", "investments", "savings")}
    logger.info(f"Backup restored for user {user_id}: {counts}")
    return counts
