from decimal import Decimal

import httpx
import pytest

from app.services.currency import (
    MepRateService,
    ars_to_usd,
    normalize_mep_rate,
    parse_rate_text,
    usd_to_ars,
)


def test_normalize_accepts_plausible_rate():
    assert normalize_mep_rate("1185.50") == Decimal("1185.50")


def test_normalize_fixes_missing_decimal_point():
    """148185 is 1481.85 read without its decimal point."""
    assert normalize_mep_rate(148185) == Decimal("1481.85")


@pytest.mark.parametrize("value", [12, "750", 99999, "abc", None])
def test_normalize_rejects_out_of_band_or_garbage(value):
    assert normalize_mep_rate(value) is None


def test_parse_rate_text_extracts_first_number():
    assert parse_rate_text("El dólar MEP cotiza hoy a 1185.50 pesos") == Decimal("1185.50")
    assert parse_rate_text("sin datos") is None
    assert parse_rate_text("") is None


def test_conversions_round_to_cents():
    assert ars_to_usd(Decimal("50000"), Decimal("1000")) == Decimal("50.00")
    assert ars_to_usd(Decimal("100"), Decimal("3")) == Decimal("33.33")
    assert usd_to_ars(Decimal("12.5"), Decimal("1180")) == Decimal("14750.00")


def test_conversion_with_bad_rate_uses_fallback():
    # DEFAULT_MEP_RATE is 1180
    assert usd_to_ars(Decimal("1"), Decimal("0")) == Decimal("1180.00")


def test_service_is_a_singleton():
    assert MepRateService() is MepRateService()


def test_get_rate_without_data_returns_fallback(monkeypatch):
    service = MepRateService()
    monkeypatch.setattr(service, "_rate", None)

    assert service.get_rate() == Decimal("1180")
    assert service.is_live is False


def test_seed_only_when_empty(monkeypatch):
    service = MepRateService()
    monkeypatch.setattr(service, "_rate", None)

    assert service.seed(1250) is True
    assert service.get_rate() == Decimal("1250")
    assert service.last_update is not None
    # Already has a rate now
    assert service.seed(1300) is False
    assert service.get_rate() == Decimal("1250")


@pytest.mark.asyncio
async def test_update_from_api(mocker):
    def handler(request):
        return httpx.Response(200, json={"compra": 1160, "venta": 1185.5})

    real_client = httpx.AsyncClient
    mocker.patch(
        "app.services.currency.httpx.AsyncClient",
        lambda: real_client(transport=httpx.MockTransport(handler)),
    )

    service = MepRateService()
    await service._update_rate_from_api()

    assert service.get_rate() == Decimal("1185.5")
    assert service.last_update is not None


@pytest.mark.asyncio
async def test_update_falls_back_to_ai_quote(mocker):
    mocker.patch.object(MepRateService, "_fetch_quote", return_value=None)
    mocker.patch("app.services.currency.fetch_mep_text", return_value="1210.75")

    service = MepRateService()
    await service._update_rate_from_api()

    assert service.get_rate() == Decimal("1210.75")


@pytest.mark.asyncio
async def test_update_keeps_previous_rate_when_everything_fails(mocker, mep_rate):
    mocker.patch.object(MepRateService, "_fetch_quote", return_value=None)
    mocker.patch("app.services.currency.fetch_mep_text", return_value="")

    service = MepRateService()
    await service._update_rate_from_api()

    assert service.get_rate() == mep_rate


@pytest.mark.asyncio
async def test_fetch_quote_discards_implausible_value(mocker):
    def handler(request):
        return httpx.Response(200, json={"venta": 3})

    real_client = httpx.AsyncClient
    mocker.patch(
        "app.services.currency.httpx.AsyncClient",
        lambda: real_client(transport=httpx.MockTransport(handler)),
    )

    assert await MepRateService()._fetch_quote() is None


@pytest.mark.asyncio
async def test_fetch_quote_network_error(mocker):
    def handler(request):
        raise httpx.ConnectError("down")

    real_client = httpx.AsyncClient
    mocker.patch(
        "app.services.currency.httpx.AsyncClient",
        lambda: real_client(transport=httpx.MockTransport(handler)),
    )

    assert await MepRateService()._fetch_quote() is None
