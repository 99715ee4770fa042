import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Numeric, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class TransactionDB(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)

    # Telegram User ID
    user_id = Column(Text, nullable=False, index=True)

    date = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    concept = Column(Text, nullable=False)

    # Both sides are stored at the MEP rate of the moment the record was created
    amount_ars = Column(Numeric(16, 2), nullable=False)
    amount_usd = Column(Numeric(16, 2), nullable=False)

    category = Column(Text, nullable=True)
    type = Column(String(10), nullable=False)  # 'expense' or 'income'

    sentiment = Column(String(10), nullable=True)
    tags = Column(JSON, nullable=True)

    is_monthly_income = Column(Boolean, default=False, server_default="false", nullable=False)


class InvestmentDB(Base):
    __tablename__ = "investments"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)

    date = Column(DateTime(timezone=True), server_default=func.now())

    asset_name = Column(Text, nullable=False)

    invested_ars = Column(Numeric(16, 2), nullable=False)
    invested_usd = Column(Numeric(16, 2), nullable=False)

    quantity = Column(Numeric(24, 8), nullable=False, default=1)

    # Last known unit price; NULL means "valued at cost"
    current_price_usd = Column(Numeric(24, 8), nullable=True)

    investment_type = Column(String(12), default="traditional", server_default="traditional", nullable=False)


class SavingDB(Base):
    __tablename__ = "savings"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)

    date = Column(DateTime(timezone=True), server_default=func.now())

    concept = Column(Text, nullable=False)
    amount_usd = Column(Numeric(16, 2), nullable=False)
