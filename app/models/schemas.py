from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.services.months import MAX_YEAR, MIN_YEAR

TransactionType = Literal["expense", "income"]
InvestmentType = Literal["traditional", "crypto"]
Sentiment = Literal["positive", "negative", "neutral"]
Currency = Literal["ARS", "USD"]


# --- Transaction Models ---
class TransactionCreate(BaseModel):
    """Manual expense entry; dated inside the selected month."""

    concept: str = Field(min_length=1)
    amount_ars: Decimal = Field(ge=0)
    category: str = "General"
    year: int | None = Field(default=None, ge=MIN_YEAR, le=MAX_YEAR)
    month: int | None = Field(default=None, ge=1, le=12)


class MonthlyIncomeUpdate(BaseModel):
    amount: Decimal = Field(ge=0)
    currency: Currency = "ARS"
    year: int | None = Field(default=None, ge=MIN_YEAR, le=MAX_YEAR)
    month: int | None = Field(default=None, ge=1, le=12)


class Transaction(BaseModel):
    id: str
    date: datetime
    concept: str
    amount_ars: Decimal
    amount_usd: Decimal
    category: str | None = None
    type: TransactionType
    sentiment: Sentiment | None = None
    tags: list[str] | None = None
    is_monthly_income: bool = False

    class Config:
        from_attributes = True


# --- Investment Models ---
class InvestmentCreate(BaseModel):
    asset_name: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    investment_type: InvestmentType = "traditional"
    # Ignored for crypto, which is always entered in USD
    currency: Currency = "ARS"
    manual_current_price: Decimal | None = Field(default=None, ge=0)


class InvestmentUpdate(BaseModel):
    quantity: Decimal | None = Field(default=None, ge=0)
    current_price_usd: Decimal | None = Field(default=None, ge=0)


class Investment(BaseModel):
    id: str
    date: datetime
    asset_name: str
    invested_ars: Decimal
    invested_usd: Decimal
    quantity: Decimal
    current_price_usd: Decimal | None = None
    investment_type: InvestmentType

    class Config:
        from_attributes = True


# --- Saving Models ---
class SavingCreate(BaseModel):
    concept: str = Field(min_length=1)
    amount_usd: Decimal = Field(ge=0)


class Saving(BaseModel):
    id: str
    date: datetime
    concept: str
    amount_usd: Decimal

    class Config:
        from_attributes = True


# --- AI Models ---
class AiParsedResult(BaseModel):
    """Structured output of the AI model; also what the user confirms."""

    type: Literal["expense", "investment", "income", "saving", "unknown"]
    concept: str = ""
    amount_ars: Decimal = Field(default=Decimal("0"), ge=0, alias="amountARS")
    asset_name: str | None = Field(default=None, alias="assetName")
    category: str | None = None
    sentiment: Sentiment | None = None
    tags: list[str] | None = None
    investment_type: InvestmentType | None = Field(default=None, alias="investmentType")

    class Config:
        populate_by_name = True


class AiParseRequest(BaseModel):
    text: str | None = None
    # Base64 encoded recording, as produced by the browser's MediaRecorder
    audio_base64: str | None = None
    mime_type: str = "audio/webm"
