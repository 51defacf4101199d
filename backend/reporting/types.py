# reporting/types.py
"""
Value objects produced by the financial report engine.

A FinancialReport is built once per generate_report() call and handed
unchanged to renderers (PDF/Excel/CSV live elsewhere). All monetary
fields on ReportLine, ReportSection and the summaries are final and
rounded to 2 decimal places; to_dict() gives a JSON-safe form with
decimals as strings and dates in ISO format.
"""

from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from django.db import models


ZERO = Decimal("0.00")


class ReportType(models.TextChoices):
    PROFIT_AND_LOSS = "PROFIT_AND_LOSS", "Profit & Loss"
    BALANCE_SHEET = "BALANCE_SHEET", "Balance Sheet"
    TRIAL_BALANCE = "TRIAL_BALANCE", "Trial Balance"


class TranslationMode(models.TextChoices):
    AVERAGE = "AVERAGE", "Average rate"
    CURRENT = "CURRENT", "Current (closing) rate"
    HISTORICAL = "HISTORICAL", "Historical rate"


class ConsolidationLevel(models.TextChoices):
    GROUP = "GROUP", "Group"
    COMPANY = "COMPANY", "Company"
    DIVISION = "DIVISION", "Division"


def _serialize(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


@dataclass
class ReportValue:
    """Base class for report value objects."""

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary."""
        return {f.name: _serialize(getattr(self, f.name)) for f in dataclass_fields(self)}


@dataclass
class AggregatedAccount(ReportValue):
    """
    Summed ledger activity of one account over the report window.

    total_* are in each business's base currency; translated_* are the
    same lines multiplied by the resolver rate for their date. Values
    are unrounded; rounding happens when a section is built.
    """
    account_id: int
    account_number: str
    account_name: str
    account_type: str
    account_category: str
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    translated_debits: Decimal = ZERO
    translated_credits: Decimal = ZERO

    @property
    def is_zero_balance(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass
class ReportLine(ReportValue):
    account_id: int
    account_number: str
    account_name: str
    account_type: str
    account_category: str
    total_debits: Decimal
    total_credits: Decimal
    balance: Decimal
    translated_debits: Decimal
    translated_credits: Decimal
    translated_balance: Decimal
    exchange_rate_applied: Decimal


@dataclass
class ReportSection(ReportValue):
    name: str
    account_type: str
    lines: List[ReportLine] = field(default_factory=list)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    total_balance: Decimal = ZERO
    translated_total_debits: Decimal = ZERO
    translated_total_credits: Decimal = ZERO
    translated_total_balance: Decimal = ZERO


@dataclass
class CurrencyRateSummary(ReportValue):
    """Rate applied to one foreign base currency (1 when none was found)."""
    from_currency: str
    to_currency: str
    rate_used: Decimal
    translation_mode: str
    as_of_date: Optional[date] = None


@dataclass
class ProfitAndLossSummary(ReportValue):
    total_revenue: Decimal = ZERO
    total_cost_of_goods_sold: Decimal = ZERO
    total_operating_expenses: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_income: Decimal = ZERO


@dataclass
class BalanceSheetSummary(ReportValue):
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO
    total_liabilities_and_equity: Decimal = ZERO
    is_balanced: bool = True


@dataclass
class TrialBalanceSummary(ReportValue):
    # Not asserted equal here; posting is where balance is enforced.
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO


ReportSummary = Union[ProfitAndLossSummary, BalanceSheetSummary, TrialBalanceSummary]


@dataclass
class FinancialReport(ReportValue):
    title: str
    report_type: str
    from_date: date
    to_date: date
    reporting_currency: str
    translation_mode: str
    consolidation_level: str
    business_names: List[str]
    generated_at: datetime
    sections: List[ReportSection]
    summary: ReportSummary
    exchange_rates: List[CurrencyRateSummary] = field(default_factory=list)

    def section(self, name: str) -> Optional[ReportSection]:
        """Section by name, or None."""
        for section in self.sections:
            if section.name == name:
                return section
        return None
