import logging
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schemas import AiParsedResult
from app.models.sql import InvestmentDB, SavingDB, TransactionDB
from app.services.currency import MepRateService, ars_to_usd, to_cents, usd_to_ars
from app.services.months import month_bounds
from constants import (
    AI_EXPENSE_CATEGORY,
    AI_INCOME_CATEGORY,
    DEFAULT_ASSET_NAME,
    DEFAULT_EXPENSE_CATEGORY,
    MONTHLY_INCOME_CATEGORY,
    MONTHLY_INCOME_CONCEPT,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Writes to one user's books.

    Every amount entered in one currency is mirrored in the other at the
    MEP rate in effect when the record is created.
    """

    def __init__(self, session: AsyncSession, user_id: str, rate: Decimal | None = None):
        self.session = session
        self.user_id = user_id
        self.rate = rate if rate is not None else MepRateService().get_rate()

    async def _commit(self):
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _save(self, record):
        self.session.add(record)
        await self._commit()
        await self.session.refresh(record)
        return record

    # --- Transactions ---

    async def add_expense(
        self,
        concept: str,
        amount_ars: Decimal,
        category: str | None = None,
        when: datetime | None = None,
        sentiment: str | None = None,
        tags: list[str] | None = None,
    ) -> TransactionDB:
        return await self._save(
            TransactionDB(
                user_id=self.user_id,
                date=when or datetime.now(UTC),
                concept=concept,
                amount_ars=to_cents(amount_ars),
                amount_usd=ars_to_usd(amount_ars, self.rate),
                category=category or DEFAULT_EXPENSE_CATEGORY,
                type="expense",
                sentiment=sentiment,
                tags=tags,
            )
        )

    async def add_income(self, concept: str, amount_ars: Decimal, category: str = AI_INCOME_CATEGORY) -> TransactionDB:
        return await self._save(
            TransactionDB(
                user_id=self.user_id,
                date=datetime.now(UTC),
                concept=concept,
                amount_ars=to_cents(amount_ars),
                amount_usd=ars_to_usd(amount_ars, self.rate),
                category=category,
                type="income",
            )
        )

    async def set_monthly_income(
        self, amount: Decimal, currency: str, year: int, month: int, when: datetime, offset_minutes: int = 0
    ) -> TransactionDB:
        """Replaces the monthly income of (year, month) with a single new record."""
        if currency == "ARS":
            amount_ars, amount_usd = to_cents(amount), ars_to_usd(amount, self.rate)
        else:
            amount_ars, amount_usd = usd_to_ars(amount, self.rate), to_cents(amount)

        start, end = month_bounds(year, month, offset_minutes)
        await self.session.execute(
            delete(TransactionDB)
            .where(
                TransactionDB.user_id == self.user_id,
                TransactionDB.is_monthly_income.is_(True),
                TransactionDB.date >= start,
                TransactionDB.date < end,
            )
            .execution_options(synchronize_session="fetch")
        )

        return await self._save(
            TransactionDB(
                user_id=self.user_id,
                date=when,
                concept=MONTHLY_INCOME_CONCEPT,
                amount_ars=amount_ars,
                amount_usd=amount_usd,
                category=MONTHLY_INCOME_CATEGORY,
                type="income",
                is_monthly_income=True,
            )
        )

    # --- Investments ---

    async def add_investment(
        self,
        asset_name: str,
        amount: Decimal,
        quantity: Decimal = Decimal("0"),
        investment_type: str = "traditional",
        currency: str = "ARS",
        manual_current_price: Decimal | None = None,
    ) -> InvestmentDB:
        # Crypto is always entered in USD
        if investment_type == "crypto" or currency == "USD":
            invested_usd, invested_ars = to_cents(amount), usd_to_ars(amount, self.rate)
        else:
            invested_ars, invested_usd = to_cents(amount), ars_to_usd(amount, self.rate)

        return await self._save(
            InvestmentDB(
                user_id=self.user_id,
                date=datetime.now(UTC),
                asset_name=asset_name.strip().upper(),
                invested_ars=invested_ars,
                invested_usd=invested_usd,
                quantity=quantity or Decimal("1"),
                investment_type=investment_type,
                current_price_usd=manual_current_price or None,
            )
        )

    async def update_investment(
        self, investment_id: str, quantity: Decimal | None = None, current_price_usd: Decimal | None = None
    ) -> InvestmentDB | None:
        investment = await self._get(InvestmentDB, investment_id)
        if not investment:
            return None

        if quantity is not None:
            investment.quantity = quantity or Decimal("1")
        if current_price_usd is not None:
            investment.current_price_usd = current_price_usd or None

        return await self._save(investment)

    # --- Savings ---

    async def add_saving(self, concept: str, amount_usd: Decimal) -> SavingDB:
        return await self._save(
            SavingDB(
                user_id=self.user_id,
                date=datetime.now(UTC),
                concept=concept,
                amount_usd=to_cents(amount_usd),
            )
        )

    # --- AI confirmation ---

    async def confirm_ai_result(self, result: AiParsedResult):
        """Stores a user-confirmed AI result in the collection its type belongs to."""
        if result.type == "expense":
            return await self.add_expense(
                concept=result.concept,
                amount_ars=result.amount_ars,
                category=result.category or AI_EXPENSE_CATEGORY,
                sentiment=result.sentiment,
                tags=result.tags,
            )
        if result.type == "income":
            return await self.add_income(result.concept, result.amount_ars)
        if result.type == "investment":
            return await self.add_investment(
                asset_name=result.asset_name or DEFAULT_ASSET_NAME,
                amount=result.amount_ars,
                investment_type=result.investment_type or "traditional",
                currency="ARS",
            )
        if result.type == "saving":
            return await self.add_saving(result.concept, ars_to_usd(result.amount_ars, self.rate))

        raise ValueError(f"Cannot store an AI result of type '{result.type}'")

    # --- Deletes ---

    async def _get(self, model, record_id: str):
        stmt = select(model).where((model.id == record_id) & (model.user_id == self.user_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _delete(self, model, record_id: str) -> bool:
        result = await self.session.execute(
            delete(model).where((model.id == record_id) & (model.user_id == self.user_id))
        )
        await self._commit()
        return result.rowcount > 0

    async def delete_transaction(self, tx_id: str) -> bool:
        return await self._delete(TransactionDB, tx_id)

    async def delete_investment(self, investment_id: str) -> bool:
        return await self._delete(InvestmentDB, investment_id)

    async def delete_saving(self, saving_id: str) -> bool:
        return await self._delete(SavingDB, saving_id)

    async def reset(self, commit: bool = True):
        for model in (TransactionDB, InvestmentDB, SavingDB):
            await self.session.execute(delete(model).where(model.user_id == self.user_id))
        if commit:
            await self._commit()
        logger.info(f"Ledger of user {self.user_id} cleared")
