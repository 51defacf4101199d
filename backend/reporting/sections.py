# reporting/sections.py
"""
Report section construction.

build_section() is the single place where aggregated accounts become
displayable lines and subtotals. Report types differ only in which
accounts go to which section (SectionLayout.include) and in the sign
convention used for the balance columns.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable

from accounting.models import Account
from reporting.types import AggregatedAccount, ReportLine, ReportSection


MONEY_Q = Decimal("0.01")
RATE_Q = Decimal("0.000001")


def money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SignConvention:
    """Balance functions for base and translated amounts."""
    name: str
    balance: Callable[[AggregatedAccount], Decimal]
    translated_balance: Callable[[AggregatedAccount], Decimal]


DEBIT_NORMAL = SignConvention(
    name="debit-credit",
    balance=lambda a: a.total_debits - a.total_credits,
    translated_balance=lambda a: a.translated_debits - a.translated_credits,
)

CREDIT_NORMAL = SignConvention(
    name="credit-debit",
    balance=lambda a: a.total_credits - a.total_debits,
    translated_balance=lambda a: a.translated_credits - a.translated_debits,
)


@dataclass(frozen=True)
class SectionLayout:
    """Named section: which accounts it holds and how it signs them."""
    name: str
    account_type: str
    convention: SignConvention
    include: Callable[[AggregatedAccount], bool]


def of_type(account_type: str) -> Callable[[AggregatedAccount], bool]:
    return lambda a: a.account_type == account_type


def _is_cost_of_goods_sold(account: AggregatedAccount) -> bool:
    return (
        account.account_type == Account.AccountType.EXPENSE
        and account.account_category == Account.Category.COST_OF_GOODS_SOLD
    )


def _is_operating_expense(account: AggregatedAccount) -> bool:
    return account.account_type == Account.AccountType.EXPENSE and not _is_cost_of_goods_sold(account)


PROFIT_AND_LOSS_SECTIONS = (
    SectionLayout("Revenue", Account.AccountType.REVENUE, CREDIT_NORMAL, of_type(Account.AccountType.REVENUE)),
    SectionLayout("Cost of Goods Sold", Account.AccountType.EXPENSE, DEBIT_NORMAL, _is_cost_of_goods_sold),
    SectionLayout("Operating Expenses", Account.AccountType.EXPENSE, DEBIT_NORMAL, _is_operating_expense),
)

BALANCE_SHEET_SECTIONS = (
    SectionLayout("Assets", Account.AccountType.ASSET, DEBIT_NORMAL, of_type(Account.AccountType.ASSET)),
    SectionLayout("Liabilities", Account.AccountType.LIABILITY, CREDIT_NORMAL, of_type(Account.AccountType.LIABILITY)),
    SectionLayout("Equity", Account.AccountType.EQUITY, CREDIT_NORMAL, of_type(Account.AccountType.EQUITY)),
)

TRIAL_BALANCE_SECTIONS = tuple(
    SectionLayout(name, account_type, DEBIT_NORMAL, of_type(account_type))
    for name, account_type in (
        ("Assets", Account.AccountType.ASSET),
        ("Liabilities", Account.AccountType.LIABILITY),
        ("Equity", Account.AccountType.EQUITY),
        ("Revenue", Account.AccountType.REVENUE),
        ("Expenses", Account.AccountType.EXPENSE),
    )
)


def effective_rate(account: AggregatedAccount) -> Decimal:
    """Translated total over base total, 1 when there is no base activity."""
    base_total = account.total_debits + account.total_credits
    if base_total == 0:
        return Decimal("1")
    translated_total = account.translated_debits + account.translated_credits
    return (translated_total / base_total).quantize(RATE_Q, rounding=ROUND_HALF_UP)


def build_section(
    name: str,
    account_type: str,
    accounts: Iterable[AggregatedAccount],
    balance: Callable[[AggregatedAccount], Decimal],
    translated_balance: Callable[[AggregatedAccount], Decimal],
) -> ReportSection:
    """
    Turn aggregated accounts into a section with rounded lines and subtotals.

    Subtotals are sums of the already rounded line values, so a section
    always adds up to what is displayed.
    """
    section = ReportSection(name=name, account_type=account_type)
    for account in accounts:
        line = ReportLine(
            account_id=account.account_id,
            account_number=account.account_number,
            account_name=account.account_name,
            account_type=account.account_type,
            account_category=account.account_category,
            total_debits=money(account.total_debits),
            total_credits=money(account.total_credits),
            balance=money(balance(account)),
            translated_debits=money(account.translated_debits),
            translated_credits=money(account.translated_credits),
            translated_balance=money(translated_balance(account)),
            exchange_rate_applied=effective_rate(account),
        )
        section.lines.append(line)
        section.total_debits += line.total_debits
        section.total_credits += line.total_credits
        section.total_balance += line.balance
        section.translated_total_debits += line.translated_debits
        section.translated_total_credits += line.translated_credits
        section.translated_total_balance += line.translated_balance
    return section


def build_sections(layouts, accounts) -> list[ReportSection]:
    """Route accounts to each layout's section, preserving account order."""
    accounts = list(accounts)
    return [
        build_section(
            layout.name,
            layout.account_type,
            [a for a in accounts if layout.include(a)],
            layout.convention.balance,
            layout.convention.translated_balance,
        )
        for layout in layouts
    ]
