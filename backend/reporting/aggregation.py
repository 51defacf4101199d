# reporting/aggregation.py
"""
Ledger line aggregation for financial reports.

Loads the lines of posted entries for a set of businesses, translates
each line with the resolver at its transaction date and sums per
account. Reversed originals and their reversal mirrors are both left
out, so a reversed entry disappears from every period.
"""

from decimal import Decimal

from django.conf import settings

from accounting.models import Account, JournalEntry, JournalLine
from reporting.types import AggregatedAccount, ReportType


ACCOUNT_TYPES_BY_REPORT = {
    ReportType.PROFIT_AND_LOSS: (
        Account.AccountType.REVENUE,
        Account.AccountType.EXPENSE,
    ),
    ReportType.BALANCE_SHEET: (
        Account.AccountType.ASSET,
        Account.AccountType.LIABILITY,
        Account.AccountType.EQUITY,
    ),
    ReportType.TRIAL_BALANCE: tuple(Account.AccountType.values),
}

# Balance Sheet is cumulative; the others cover the period only.
CUMULATIVE_REPORTS = {ReportType.BALANCE_SHEET}


def ledger_lines(business_ids, report_type, from_date, to_date):
    """Queryset of the lines a report of this type reads."""
    lines = JournalLine.objects.filter(
        entry__business_id__in=business_ids,
        entry__status=JournalEntry.Status.POSTED,
        account__account_type__in=ACCOUNT_TYPES_BY_REPORT[report_type],
        entry__transaction_date__lte=to_date,
    )
    if report_type not in CUMULATIVE_REPORTS:
        lines = lines.filter(entry__transaction_date__gte=from_date)
    return lines


def load_aggregated_accounts(
    business_ids,
    report_type,
    from_date,
    to_date,
    resolver,
    include_zero_balances: bool = False,
) -> list[AggregatedAccount]:
    """
    One AggregatedAccount per account with activity, ordered by account number.

    Accounts whose summed debits equal their summed credits are dropped
    unless include_zero_balances is set.
    """
    rows = ledger_lines(business_ids, report_type, from_date, to_date).values_list(
        "account_id",
        "account__account_number",
        "account__name",
        "account__account_type",
        "account__category",
        "entry__business__base_currency",
        "entry__transaction_date",
        "debit_amount_base",
        "credit_amount_base",
    )

    default_currency = settings.REPORTING_DEFAULT_CURRENCY
    accounts = {}
    for (
        account_id,
        number,
        name,
        account_type,
        category,
        base_currency,
        transaction_date,
        debit,
        credit,
    ) in rows:
        account = accounts.get(account_id)
        if account is None:
            account = accounts[account_id] = AggregatedAccount(
                account_id=account_id,
                account_number=number,
                account_name=name,
                account_type=account_type,
                account_category=category,
            )

        rate = resolver.resolve(base_currency or default_currency, transaction_date)
        debit = debit or Decimal("0")
        credit = credit or Decimal("0")
        account.total_debits += debit
        account.total_credits += credit
        account.translated_debits += debit * rate
        account.translated_credits += credit * rate

    result = sorted(accounts.values(), key=lambda a: (a.account_number, a.account_id))
    if not include_zero_balances:
        result = [a for a in result if not a.is_zero_balance]
    return result
