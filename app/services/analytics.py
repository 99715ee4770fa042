from datetime import datetime
from decimal import Decimal

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.sql import InvestmentDB, SavingDB, TransactionDB
from app.services.currency import to_cents
from constants import UNCATEGORIZED

ZERO = Decimal("0")


# --- Pure calculations (work on ORM rows or anything with the same attributes) ---


def unit_price(inv) -> Decimal:
    """Last known price, or the average cost when no price is known."""
    if inv.current_price_usd:
        return Decimal(inv.current_price_usd)
    return Decimal(inv.invested_usd or 0) / Decimal(inv.quantity or 1)


def position_value(inv) -> Decimal:
    return unit_price(inv) * Decimal(inv.quantity or 0)


def gain_percent(gain: Decimal, invested: Decimal) -> Decimal:
    if invested > 0:
        return gain / invested * 100
    return ZERO


def portfolio_totals(investments) -> dict:
    invested = sum((Decimal(inv.invested_usd or 0) for inv in investments), ZERO)
    value = sum((position_value(inv) for inv in investments), ZERO)
    gain = value - invested
    return {
        "invested_usd": to_cents(invested),
        "value_usd": to_cents(value),
        "gain_usd": to_cents(gain),
        "gain_percent": to_cents(gain_percent(gain, invested)),
    }


def position_summary(inv) -> dict:
    value = position_value(inv)
    gain = value - Decimal(inv.invested_usd or 0)
    return {
        "id": inv.id,
        "date": inv.date,
        "asset_name": inv.asset_name,
        "investment_type": inv.investment_type,
        "quantity": inv.quantity,
        "invested_ars": inv.invested_ars,
        "invested_usd": inv.invested_usd,
        "current_price_usd": unit_price(inv),
        "value_usd": to_cents(value),
        "gain_usd": to_cents(gain),
        "gain_percent": to_cents(gain_percent(gain, Decimal(inv.invested_usd or 0))),
    }


def month_summary(transactions) -> dict:
    expenses = [t for t in transactions if t.type == "expense"]
    income = [t for t in transactions if t.type == "income"]

    total_expenses = sum((Decimal(t.amount_usd or 0) for t in expenses), ZERO)
    total_income = sum((Decimal(t.amount_usd or 0) for t in income), ZERO)

    by_category: dict[str, Decimal] = {}
    for t in expenses:
        cat = t.category or UNCATEGORIZED
        by_category[cat] = by_category.get(cat, ZERO) + Decimal(t.amount_usd or 0)

    categories = [
        {"name": name, "total_usd": to_cents(total)}
        for name, total in sorted(by_category.items(), key=lambda item: item[1], reverse=True)
        if to_cents(total) > 0
    ]

    monthly_income = next((t for t in transactions if t.is_monthly_income), None)

    return {
        "total_expenses_usd": to_cents(total_expenses),
        "total_income_usd": to_cents(total_income),
        "leftover_usd": to_cents(total_income - total_expenses),
        "expenses_by_category": categories,
        "monthly_income": monthly_income,
    }


def total_saved(savings) -> Decimal:
    return to_cents(sum((Decimal(s.amount_usd or 0) for s in savings), ZERO))


# --- Queries ---


class AnalyticsService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_transactions(self, user_id: str):
        stmt = select(TransactionDB).where(TransactionDB.user_id == user_id).order_by(desc(TransactionDB.date))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_month_transactions(self, user_id: str, start: datetime, end: datetime):
        stmt = (
            select(TransactionDB)
            .where(TransactionDB.user_id == user_id, TransactionDB.date >= start, TransactionDB.date < end)
            .order_by(desc(TransactionDB.date))
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_investments(self, user_id: str, investment_type: str | None = None):
        stmt = select(InvestmentDB).where(InvestmentDB.user_id == user_id)
        if investment_type:
            stmt = stmt.where(InvestmentDB.investment_type == investment_type)
        stmt = stmt.order_by(desc(InvestmentDB.date))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_savings(self, user_id: str):
        stmt = select(SavingDB).where(SavingDB.user_id == user_id).order_by(desc(SavingDB.date))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_expenses(self, user_id: str, start: datetime, end: datetime) -> dict:
        """Month expenses newest first, plus the month's balance."""
        transactions = await self.get_month_transactions(user_id, start, end)
        summary = month_summary(transactions)
        return {
            "expenses": [t for t in transactions if t.type == "expense"],
            "total_expenses_usd": summary["total_expenses_usd"],
            "total_income_usd": summary["total_income_usd"],
            "balance_usd": summary["leftover_usd"],
        }

    async def get_portfolio(self, user_id: str, investment_type: str | None = None, investments=None) -> dict:
        if investments is None:
            investments = await self.get_investments(user_id)
        selected = [inv for inv in investments if not investment_type or inv.investment_type == investment_type]
        return {
            "type": investment_type,
            "positions": [position_summary(inv) for inv in selected],
            "totals": portfolio_totals(selected),
            "global_totals": portfolio_totals(investments),
        }

    async def get_dashboard(self, user_id: str, start: datetime, end: datetime) -> dict:
        transactions = await self.get_month_transactions(user_id, start, end)
        investments = await self.get_investments(user_id)
        savings = await self.get_savings(user_id)

        summary = month_summary(transactions)
        portfolio = portfolio_totals(investments)
        saved = total_saved(savings)

        return {
            "summary": summary,
            "investments": portfolio,
            "total_saved_usd": saved,
            # Current portfolio value + savings + what is left of this month's income
            "total_wealth_usd": portfolio["value_usd"] + saved + summary["leftover_usd"],
        }
