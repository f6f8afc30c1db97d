from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.core.errors import CurrencyConversionError
from src.services.currency_service import CurrencyService, parse_rate_table


def test_parse_rate_table():
    assert parse_rate_table(" inr:1, USD:83 ,") == {"INR": Decimal("1"), "USD": Decimal("83")}


@pytest.mark.parametrize("raw", ["INR", "USD:abc", "USD:0", "USD:-2"])
def test_parse_rate_table_rejects_bad_entries(raw):
    with pytest.raises(ValueError):
        parse_rate_table(raw)


def test_convert_usd_to_inr(currency_service):
    assert currency_service.convert(Decimal("2"), "USD", "INR") == Decimal("166")
    assert currency_service.convert(Decimal("166"), "inr", "usd") == Decimal("2")


def test_convert_same_currency_is_identity(currency_service):
    assert currency_service.convert(Decimal("12.34"), "USD", "USD") == Decimal("12.34")


def test_blank_currency_normalizes_to_default(currency_service):
    assert currency_service.normalize(None) == "INR"
    assert currency_service.normalize("  ") == "INR"
    assert currency_service.convert(Decimal("5"), None, "INR") == Decimal("5")


def test_unknown_currency_raises(currency_service):
    with pytest.raises(CurrencyConversionError):
        currency_service.convert(Decimal("5"), "XYZ", "INR")
    with pytest.raises(CurrencyConversionError):
        currency_service.convert(Decimal("5"), "INR", "XYZ")


def test_zero_amount_never_needs_a_rate(currency_service):
    assert currency_service.convert(Decimal("0"), "XYZ", "INR") == Decimal("0")


def test_supports(currency_service):
    assert currency_service.supports("usd")
    assert not currency_service.supports("EUR")


def test_rates_default_to_settings():
    settings = SimpleNamespace(
        currency_rates="INR:1,USD:80,EUR:90",
        reporting_currency="inr",
        default_target_currency="INR",
    )

    service = CurrencyService(settings=settings)

    assert service.reporting_currency == "INR"
    assert service.convert(Decimal("1"), "EUR", "USD") == Decimal("90") / Decimal("80")
