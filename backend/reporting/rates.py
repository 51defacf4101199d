# reporting/rates.py
"""
Exchange rate resolution for report translation.

ExchangeRateResolver answers "multiplier from currency X to the
reporting currency" for a transaction date. It is built once per report
run from a single bulk load of ExchangeRate rows (build_resolver) and
does no I/O afterwards.

Fallback chain (never raises):
- same currency as the reporting currency -> 1
- AVERAGE    -> period mean, else CURRENT
- HISTORICAL -> latest rate effective on/before the date, else CURRENT
- CURRENT    -> latest rate on/before period end, else 1
"""

import logging
from bisect import bisect_right
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from django.conf import settings

from businesses.models import ExchangeRate
from reporting.types import TranslationMode


logger = logging.getLogger(__name__)

ONE = Decimal("1")


def foreign_currencies(base_currencies: Iterable[str], reporting_currency: str) -> List[str]:
    """Distinct base currencies other than the reporting currency, sorted."""
    reporting = reporting_currency.upper()
    return sorted({c.upper() for c in base_currencies if c and c.upper() != reporting})


class ExchangeRateResolver:
    """
    In-memory rate table for one report run.

    Args:
        mode: TranslationMode used by resolve()
        reporting_currency: Target currency code
        average_rates: currency -> mean rate over the report period
        current_rates: currency -> latest rate on/before period end
        historical_rates: currency -> {effective_date: rate}
    """

    def __init__(
        self,
        mode,
        reporting_currency: str,
        average_rates: Optional[Mapping[str, Decimal]] = None,
        current_rates: Optional[Mapping[str, Decimal]] = None,
        historical_rates: Optional[Mapping[str, Mapping[date, Decimal]]] = None,
    ):
        self.mode = TranslationMode(mode)
        self.reporting_currency = reporting_currency.upper()
        self.average_rates: Dict[str, Decimal] = {k.upper(): v for k, v in (average_rates or {}).items()}
        self.current_rates: Dict[str, Decimal] = {k.upper(): v for k, v in (current_rates or {}).items()}

        # Sorted parallel lists per currency for bisect.
        self._historical = {}
        for currency, series in (historical_rates or {}).items():
            dates = sorted(series)
            self._historical[currency.upper()] = (dates, [series[d] for d in dates])

    def __repr__(self):
        return f"<ExchangeRateResolver {self.mode} -> {self.reporting_currency}>"

    def resolve(self, from_currency: str, transaction_date: date) -> Decimal:
        """Multiplier converting an amount in from_currency into the reporting currency."""
        currency = (from_currency or "").upper()
        if currency == self.reporting_currency:
            return ONE

        if self.mode == TranslationMode.AVERAGE:
            rate = self.average_rates.get(currency)
            return rate if rate is not None else self.current_rate(currency)

        if self.mode == TranslationMode.HISTORICAL:
            rate = self.historical_rate(currency, transaction_date)
            return rate if rate is not None else self.current_rate(currency)

        return self.current_rate(currency)

    def current_rate(self, currency: str) -> Decimal:
        return self.current_rates.get(currency.upper(), ONE)

    def average_rate(self, currency: str) -> Decimal:
        """Period mean, 1 when the currency has no rows in the period."""
        return self.average_rates.get(currency.upper(), ONE)

    def historical_rate(self, currency: str, on_date: date) -> Optional[Decimal]:
        """Rate with the latest effective date <= on_date, or None."""
        series = self._historical.get(currency.upper())
        if not series:
            return None
        dates, rates = series
        index = bisect_right(dates, on_date) - 1
        if index < 0:
            return None
        return rates[index]

    def has_rates(self, currency: str) -> bool:
        code = currency.upper()
        return code in self.current_rates or code in self.average_rates or code in self._historical


def _years_before(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return value.replace(year=value.year - years, day=28)


def build_resolver(
    mode,
    reporting_currency: str,
    base_currencies: Iterable[str],
    from_date: date,
    to_date: date,
) -> ExchangeRateResolver:
    """
    Build a resolver from one bulk query of ExchangeRate rows.

    Rows loaded: from a foreign base currency to the reporting currency,
    effective between (from_date - lookback years) and to_date. The
    lookback gives HISTORICAL and CURRENT something to fall back on when
    the period itself has no rows.
    """
    reporting = reporting_currency.upper()
    foreign = foreign_currencies(base_currencies, reporting)
    if not foreign:
        return ExchangeRateResolver(mode, reporting)

    window_start = _years_before(from_date, settings.REPORTING_RATE_LOOKBACK_YEARS)
    rows = (
        ExchangeRate.objects.filter(
            from_currency__in=foreign,
            to_currency=reporting,
            effective_date__gte=window_start,
            effective_date__lte=to_date,
        )
        .order_by("from_currency", "effective_date", "id")
        .values_list("from_currency", "effective_date", "rate")
    )

    current = {}
    historical = defaultdict(dict)
    period_rates = defaultdict(list)
    row_count = 0
    for currency, effective_date, rate in rows:
        row_count += 1
        # Ordered ascending, so the last row seen per date/currency wins.
        historical[currency][effective_date] = rate
        current[currency] = rate
        if from_date <= effective_date <= to_date:
            period_rates[currency].append(rate)

    average = {
        currency: sum(values, Decimal("0")) / len(values)
        for currency, values in period_rates.items()
    }

    logger.debug(
        "Built %s resolver to %s from %s rate rows for %s",
        mode,
        reporting,
        row_count,
        ", ".join(foreign),
    )
    return ExchangeRateResolver(mode, reporting, average, current, historical)
