from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from src.core.config import Settings, get_settings
from src.core.errors import CurrencyConversionError


def parse_rate_table(raw: str) -> Dict[str, Decimal]:
    """Parse ``"INR:1,USD:83"`` into ``{"INR": Decimal("1"), "USD": Decimal("83")}``.

    Each rate is the number of base units one unit of the code is worth, so any
    pair converts through the base without a dedicated cross rate.
    """
    table: Dict[str, Decimal] = {}
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        if ":" not in item:
            raise ValueError(f"Malformed currency rate entry: {item!r}")
        code, value = item.split(":", 1)
        try:
            rate = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Malformed currency rate for {code.strip()!r}") from exc
        if rate <= 0:
            raise ValueError(f"Currency rate for {code.strip()!r} must be positive")
        table[code.strip().upper()] = rate
    return table


class CurrencyService:
    def __init__(
        self,
        rates: Optional[Mapping[str, Decimal]] = None,
        reporting_currency: Optional[str] = None,
        default_currency: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        if rates is None or reporting_currency is None or default_currency is None:
            settings = settings or get_settings()
        self.rates: Dict[str, Decimal] = {
            code.upper(): Decimal(str(rate))
            for code, rate in (rates if rates is not None else parse_rate_table(settings.currency_rates)).items()
        }
        self.reporting_currency = (reporting_currency or settings.reporting_currency).strip().upper()
        self.default_currency = (default_currency or settings.default_target_currency).strip().upper()

    @staticmethod
    def _to_decimal(value: object) -> Decimal:
        if value is None:
            return Decimal("0")
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float, str)):
            try:
                return Decimal(str(value))
            except InvalidOperation:
                return Decimal("0")
        return Decimal("0")

    def normalize(self, currency_code: Optional[str]) -> str:
        normalized = (currency_code or "").strip().upper()
        return normalized or self.default_currency

    def supports(self, currency_code: Optional[str]) -> bool:
        return self.normalize(currency_code) in self.rates

    def convert(self, amount: object, from_currency: Optional[str], to_currency: Optional[str]) -> Decimal:
        value = self._to_decimal(amount)
        source = self.normalize(from_currency)
        target = self.normalize(to_currency)
        if source == target or not value:
            return value
        if source not in self.rates:
            raise CurrencyConversionError(f"Unknown currency code: {source}")
        if target not in self.rates:
            raise CurrencyConversionError(f"Unknown currency code: {target}")
        return value * self.rates[source] / self.rates[target]
