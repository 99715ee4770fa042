import pytest
from sqlalchemy import text

from app.models.sql import InvestmentDB, SavingDB, TransactionDB


@pytest.mark.asyncio
async def test_database_connection(session):
    result = await session.execute(text("SELECT 1"))
    assert result.scalar() == 1


@pytest.mark.asyncio
async def test_tables_exist(session):
    # Should not raise if the tables exist
    for model in (TransactionDB, InvestmentDB, SavingDB):
        assert await session.get(model, "non-existent-id") is None


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
