import base64
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from app.models.sql import InvestmentDB, TransactionDB
from app.services.parser import AiUnavailableError, decode_result, process_financial_input, strip_code_fences
from app.services.prices import fetch_asset_price, fetch_mep_text, parse_price_text, refresh_prices

PIZZA_JSON = '{"type": "expense", "concept": "Pizza", "amountARS": 15000, "category": "Comida", "tags": ["salida"]}'


@pytest.fixture
def mock_model(mocker):
    model = MagicMock()
    model.generate_content_async = AsyncMock()
    mocker.patch("app.services.gemini.model", model)
    return model


def _answer(model, text):
    model.generate_content_async.return_value = MagicMock(text=text)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'
    assert strip_code_fences(None) == ""


def test_decode_result_rejects_garbage():
    assert decode_result("no soy json") is None
    assert decode_result('{"type": "lottery", "amountARS": 1}') is None
    assert decode_result("") is None


@pytest.mark.asyncio
async def test_parse_text(mock_model):
    _answer(mock_model, f"```json\n{PIZZA_JSON}\n```")

    result = await process_financial_input(text="Gasté 15 lucas en pizza", current_mep=Decimal("1000"))

    assert result.type == "expense"
    assert result.amount_ars == Decimal("15000")
    assert result.tags == ["salida"]

    contents = mock_model.generate_content_async.call_args[0][0]
    assert contents[0] == "Gasté 15 lucas en pizza"
    # The prompt carries the current rate
    assert "1000" in contents[-1]


@pytest.mark.asyncio
async def test_parse_audio_sends_inline_data(mock_model):
    _answer(mock_model, PIZZA_JSON)

    await process_financial_input(audio=b"OggS", mime_type="audio/ogg")

    contents = mock_model.generate_content_async.call_args[0][0]
    assert contents[0] == {"mime_type": "audio/ogg", "data": b"OggS"}


@pytest.mark.asyncio
async def test_parse_model_error_returns_none(mock_model):
    mock_model.generate_content_async.side_effect = Exception("Google Down")

    assert await process_financial_input(text="algo") is None


@pytest.mark.asyncio
async def test_parse_without_model(mocker):
    mocker.patch("app.services.gemini.model", None)

    with pytest.raises(AiUnavailableError):
        await process_financial_input(text="algo")


# --- Prices ---


def test_parse_price_text():
    assert parse_price_text("The price is 65,432.10 USD") == Decimal("65432.10")
    assert parse_price_text("230") == Decimal("230")
    assert parse_price_text("not found") == Decimal("0")
    assert parse_price_text("") == Decimal("0")


@pytest.fixture
def mock_search(mocker):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    mocker.patch("app.services.gemini.search_client", client)
    return client.aio.models.generate_content


@pytest.mark.asyncio
async def test_fetch_asset_price_uses_search_grounding(mock_search):
    mock_search.return_value = MagicMock(text="185.5")

    assert await fetch_asset_price("AAPL") == Decimal("185.5")

    call = mock_search.call_args
    assert "AAPL" in call.kwargs["contents"]
    assert call.kwargs["config"].temperature == 0
    assert call.kwargs["config"].tools[0].google_search is not None


@pytest.mark.asyncio
async def test_fetch_mep_text_uses_search_grounding(mock_search):
    mock_search.return_value = MagicMock(text="El MEP cierra hoy a 1185.50")

    assert await fetch_mep_text() == "El MEP cierra hoy a 1185.50"
    assert mock_search.call_args.kwargs["config"].tools[0].google_search is not None


@pytest.mark.asyncio
async def test_fetch_asset_price_failure_is_zero(mock_search):
    mock_search.side_effect = Exception("quota")

    assert await fetch_asset_price("AAPL") == Decimal("0")


@pytest.mark.asyncio
async def test_fetch_mep_text_without_client(mocker):
    mocker.patch("app.services.gemini.search_client", None)

    assert await fetch_mep_text() == ""


@pytest.mark.asyncio
async def test_refresh_prices_keeps_old_price_on_failure(mocker):
    prices = {"SPY": Decimal("510"), "XYZ": Decimal("0")}
    mocker.patch("app.services.prices.fetch_asset_price", side_effect=lambda name: prices[name])

    spy = MagicMock(asset_name="SPY", current_price_usd=Decimal("500"))
    xyz = MagicMock(asset_name="XYZ", current_price_usd=Decimal("12"))

    updated = await refresh_prices([spy, xyz])

    assert updated == 1
    assert spy.current_price_usd == Decimal("510")
    assert xyz.current_price_usd == Decimal("12")


# --- Endpoints ---


@pytest.mark.asyncio
async def test_parse_endpoint(client, mock_model):
    _answer(mock_model, PIZZA_JSON)

    response = await client.post("/api/ai/parse", json={"text": "Gasté 15 lucas en pizza"})

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["type"] == "expense"
    assert float(data["amountARS"]) == 15000.0


@pytest.mark.asyncio
async def test_parse_endpoint_audio(client, mock_model):
    _answer(mock_model, PIZZA_JSON)
    audio = base64.b64encode(b"fake-webm").decode()

    response = await client.post("/api/ai/parse", json={"audio_base64": audio})

    assert response.status_code == 200
    contents = mock_model.generate_content_async.call_args[0][0]
    assert contents[0] == {"mime_type": "audio/webm", "data": b"fake-webm"}


@pytest.mark.asyncio
async def test_parse_endpoint_bad_requests(client, mock_model):
    assert (await client.post("/api/ai/parse", json={})).status_code == 400
    assert (await client.post("/api/ai/parse", json={"audio_base64": "%%%"})).status_code == 400
    mock_model.generate_content_async.assert_not_called()


@pytest.mark.asyncio
async def test_parse_endpoint_ai_busy(client, mock_model):
    mock_model.generate_content_async.side_effect = Exception("Google Down")

    response = await client.post("/api/ai/parse", json={"text": "algo"})

    assert response.status_code == 503
    assert "AI is currently busy" in response.json()["detail"]


@pytest.mark.asyncio
async def test_parse_endpoint_without_key(client, mocker):
    mocker.patch("app.services.gemini.model", None)

    response = await client.post("/api/ai/parse", json={"text": "algo"})

    assert response.status_code == 503
    assert "No API Key" in response.json()["detail"]


@pytest.mark.asyncio
async def test_confirm_expense(client, session):
    response = await client.post("/api/ai/confirm", json={"type": "expense", "concept": "Pizza", "amountARS": 15000})

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["kind"] == "transaction"
    assert data["record"]["category"] == "Varios"
    assert float(data["record"]["amount_usd"]) == 15.0

    result = await session.execute(select(TransactionDB))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_confirm_investment(client, session):
    response = await client.post(
        "/api/ai/confirm",
        json={"type": "investment", "concept": "Compra", "amountARS": 100000, "assetName": "ggal"},
    )

    assert response.json()["kind"] == "investment"
    result = await session.execute(select(InvestmentDB))
    assert result.scalar_one().asset_name == "GGAL"


@pytest.mark.asyncio
async def test_confirm_saving(client):
    response = await client.post("/api/ai/confirm", json={"type": "saving", "concept": "Dólares", "amountARS": 50000})

    assert response.json()["kind"] == "saving"
    assert float(response.json()["record"]["amount_usd"]) == 50.0


@pytest.mark.asyncio
async def test_confirm_unknown_is_rejected(client):
    response = await client.post("/api/ai/confirm", json={"type": "unknown", "amountARS": 0})
    assert response.status_code == 400
