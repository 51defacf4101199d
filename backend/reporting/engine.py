# reporting/engine.py
"""
Financial report engine.

generate_report() orchestrates one read-only report run:
load businesses -> build resolver -> aggregate lines -> build sections
-> compute summary -> attach rate metadata.

Report types are a closed table (REPORT_DEFINITIONS): each maps to its
titles, its section layouts and its summary function. Adding a report
type means adding a row, not another branch.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Tuple

from django.utils import timezone

from accounting.errors import LedgerError
from accounting.serializers import flatten_errors
from businesses.models import Business
from reporting.aggregation import load_aggregated_accounts
from reporting.rates import build_resolver, foreign_currencies
from reporting.sections import (
    BALANCE_SHEET_SECTIONS,
    PROFIT_AND_LOSS_SECTIONS,
    TRIAL_BALANCE_SECTIONS,
    SectionLayout,
    build_sections,
)
from reporting.serializers import ReportRequestSerializer
from reporting.types import (
    BalanceSheetSummary,
    ConsolidationLevel,
    CurrencyRateSummary,
    FinancialReport,
    ProfitAndLossSummary,
    ReportType,
    TranslationMode,
    TrialBalanceSummary,
)


logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")


def _translated_balance(sections, name) -> Decimal:
    for section in sections:
        if section.name == name:
            return section.translated_total_balance
    return Decimal("0.00")


def _profit_and_loss_summary(sections) -> ProfitAndLossSummary:
    revenue = _translated_balance(sections, "Revenue")
    cogs = _translated_balance(sections, "Cost of Goods Sold")
    opex = _translated_balance(sections, "Operating Expenses")
    return ProfitAndLossSummary(
        total_revenue=revenue,
        total_cost_of_goods_sold=cogs,
        total_operating_expenses=opex,
        total_expenses=cogs + opex,
        net_income=revenue - cogs - opex,
    )


def _balance_sheet_summary(sections) -> BalanceSheetSummary:
    assets = _translated_balance(sections, "Assets")
    liabilities = _translated_balance(sections, "Liabilities")
    equity = _translated_balance(sections, "Equity")
    return BalanceSheetSummary(
        total_assets=assets,
        total_liabilities=liabilities,
        total_equity=equity,
        total_liabilities_and_equity=liabilities + equity,
        is_balanced=abs(assets - (liabilities + equity)) < BALANCE_TOLERANCE,
    )


def _trial_balance_summary(sections) -> TrialBalanceSummary:
    return TrialBalanceSummary(
        total_debits=sum((s.translated_total_debits for s in sections), Decimal("0.00")),
        total_credits=sum((s.translated_total_credits for s in sections), Decimal("0.00")),
    )


@dataclass(frozen=True)
class ReportDefinition:
    title: str
    consolidated_title: str
    sections: Tuple[SectionLayout, ...]
    summarize: Callable


REPORT_DEFINITIONS: Dict[str, ReportDefinition] = {
    ReportType.PROFIT_AND_LOSS: ReportDefinition(
        title="Profit & Loss Statement",
        consolidated_title="Consolidated Profit & Loss Statement",
        sections=PROFIT_AND_LOSS_SECTIONS,
        summarize=_profit_and_loss_summary,
    ),
    ReportType.BALANCE_SHEET: ReportDefinition(
        title="Balance Sheet",
        consolidated_title="Consolidated Balance Sheet",
        sections=BALANCE_SHEET_SECTIONS,
        summarize=_balance_sheet_summary,
    ),
    ReportType.TRIAL_BALANCE: ReportDefinition(
        title="Trial Balance",
        consolidated_title="Trial Balance",
        sections=TRIAL_BALANCE_SECTIONS,
        summarize=_trial_balance_summary,
    ),
}


def _rate_metadata(resolver, currencies, translation_mode, to_date) -> list:
    summaries = []
    for currency in currencies:
        if not resolver.has_rates(currency):
            logger.warning(
                "No %s->%s exchange rates found; amounts translated at 1",
                currency,
                resolver.reporting_currency,
            )
        if translation_mode == TranslationMode.AVERAGE:
            rate_used = resolver.average_rate(currency)
            as_of_date = None
        else:
            rate_used = resolver.current_rate(currency)
            as_of_date = to_date
        summaries.append(CurrencyRateSummary(
            from_currency=currency,
            to_currency=resolver.reporting_currency,
            rate_used=rate_used,
            translation_mode=translation_mode,
            as_of_date=as_of_date,
        ))
    return summaries


def generate_report(
    report_type,
    business_ids,
    from_date,
    to_date,
    reporting_currency: str = "USD",
    translation_mode=TranslationMode.AVERAGE,
    consolidation_level=ConsolidationLevel.COMPANY,
    include_zero_balances: bool = False,
) -> FinancialReport:
    """
    Generate a Profit & Loss, Balance Sheet or Trial Balance report.

    Args:
        report_type: ReportType value
        business_ids: Businesses whose ledgers are combined
        from_date, to_date: Report period (Balance Sheet uses all history up to to_date)
        reporting_currency: Currency the report is expressed in
        translation_mode: Which rate applies to each line (TranslationMode)
        consolidation_level: GROUP produces "Consolidated" titles
        include_zero_balances: Keep accounts whose debits equal credits

    Raises:
        LedgerError: VALIDATION_FAILED for bad parameters, UNSUPPORTED for
        an unknown report type, NOT_FOUND when a business does not exist
    """
    serializer = ReportRequestSerializer(data={
        "report_type": report_type,
        "business_ids": business_ids,
        "from_date": from_date,
        "to_date": to_date,
        "reporting_currency": reporting_currency,
        "translation_mode": translation_mode,
        "consolidation_level": consolidation_level,
        "include_zero_balances": include_zero_balances,
    })
    if not serializer.is_valid():
        errors = flatten_errors(serializer.errors)
        raise LedgerError.validation("; ".join(errors), errors=errors)
    params = serializer.validated_data

    if params["report_type"] not in ReportType.values:
        raise LedgerError.unsupported(
            f"Report type '{params['report_type']}' is not supported.",
            report_type=params["report_type"],
        )
    report_type = ReportType(params["report_type"])
    definition = REPORT_DEFINITIONS[report_type]
    translation_mode = TranslationMode(params["translation_mode"])
    consolidation_level = ConsolidationLevel(params["consolidation_level"])
    from_date, to_date = params["from_date"], params["to_date"]
    currency = params["reporting_currency"]

    businesses = list(Business.objects.filter(id__in=params["business_ids"]).order_by("name", "id"))
    missing = sorted(set(params["business_ids"]) - {b.id for b in businesses})
    if missing:
        raise LedgerError.not_found(
            f"Business(es) not found: {', '.join(str(i) for i in missing)}",
            business_ids=missing,
        )
    business_ids = [b.id for b in businesses]
    base_currencies = [b.base_currency for b in businesses]

    resolver = build_resolver(translation_mode, currency, base_currencies, from_date, to_date)
    accounts = load_aggregated_accounts(
        business_ids,
        report_type,
        from_date,
        to_date,
        resolver,
        include_zero_balances=params["include_zero_balances"],
    )
    sections = build_sections(definition.sections, accounts)

    title = definition.consolidated_title if consolidation_level == ConsolidationLevel.GROUP else definition.title

    report = FinancialReport(
        title=title,
        report_type=report_type,
        from_date=from_date,
        to_date=to_date,
        reporting_currency=currency,
        translation_mode=translation_mode,
        consolidation_level=consolidation_level,
        business_names=[b.name for b in businesses],
        generated_at=timezone.now(),
        sections=sections,
        summary=definition.summarize(sections),
        exchange_rates=_rate_metadata(
            resolver,
            foreign_currencies(base_currencies, currency),
            translation_mode,
            to_date,
        ),
    )

    logger.info(
        "%s generated",
        title,
        extra={
            "report_type": report_type.value,
            "business_count": len(businesses),
            "account_count": len(accounts),
            "reporting_currency": currency,
        },
    )
    return report
