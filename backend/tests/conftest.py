# tests/conftest.py
"""
Pytest fixtures for the ledger tests.

Businesses, a chart of accounts, an actor, and draft/posted entries
created through the real command layer.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from businesses.authz import ActorContext
from businesses.models import Business, ExchangeRate
from accounting.commands import create_journal_entry, post_journal_entry
from accounting.models import Account
from tests.factories import balanced_lines, make_account


# =============================================================================
# Business & Actor Fixtures
# =============================================================================

@pytest.fixture
def business(db):
    """Create a USD test business."""
    return Business.objects.create(name="Acme Trading", base_currency="USD")


@pytest.fixture
def second_business(db):
    """Create a EUR business for multi-business and isolation tests."""
    return Business.objects.create(name="Euro Branch", base_currency="EUR")


@pytest.fixture
def actor():
    return ActorContext(user_id=uuid4(), display_name="Test Accountant")


@pytest.fixture
def second_actor():
    return ActorContext(user_id=uuid4(), display_name="Second Reviewer")


# =============================================================================
# Account Fixtures
# =============================================================================

@pytest.fixture
def cash_account(db, business):
    """Create a cash account."""
    return make_account(
        business, "1000", "Cash",
        Account.AccountType.ASSET, Account.Category.CURRENT_ASSET,
    )


@pytest.fixture
def header_account(db, business):
    """Create a header (non-postable) account."""
    return make_account(
        business, "1900", "Current Assets",
        Account.AccountType.ASSET, Account.Category.CURRENT_ASSET,
        is_header=True,
    )


@pytest.fixture
def inactive_account(db, business):
    return make_account(
        business, "1500", "Old Equipment",
        Account.AccountType.ASSET, Account.Category.FIXED_ASSET,
        is_active=False,
    )


@pytest.fixture
def loan_account(db, business):
    return make_account(
        business, "2500", "Bank Loan",
        Account.AccountType.LIABILITY, Account.Category.LONG_TERM_LIABILITY,
    )


@pytest.fixture
def capital_account(db, business):
    return make_account(
        business, "3000", "Owner's Capital",
        Account.AccountType.EQUITY, Account.Category.OWNERS_EQUITY,
    )


@pytest.fixture
def revenue_account(db, business):
    """Create a revenue account."""
    return make_account(
        business, "4000", "Sales Revenue",
        Account.AccountType.REVENUE, Account.Category.OPERATING_REVENUE,
    )


@pytest.fixture
def cogs_account(db, business):
    return make_account(
        business, "5000", "Cost of Goods Sold",
        Account.AccountType.EXPENSE, Account.Category.COST_OF_GOODS_SOLD,
    )


@pytest.fixture
def expense_account(db, business):
    """Create an operating expense account."""
    return make_account(
        business, "6000", "Rent Expense",
        Account.AccountType.EXPENSE, Account.Category.OPERATING_EXPENSE,
    )


@pytest.fixture
def foreign_cash_account(db, second_business):
    return make_account(
        second_business, "1000", "Cash EUR",
        Account.AccountType.ASSET, Account.Category.CURRENT_ASSET,
    )


@pytest.fixture
def foreign_revenue_account(db, second_business):
    return make_account(
        second_business, "4000", "Sales EUR",
        Account.AccountType.REVENUE, Account.Category.OPERATING_REVENUE,
    )


# =============================================================================
# Journal Entry Fixtures
# =============================================================================

@pytest.fixture
def make_entry(actor):
    """
    Factory creating (and optionally posting) an entry through the commands.

    Usage:
        entry = make_entry(business, balanced_lines(cash, revenue), post=True)
    """
    def _make(business, lines, transaction_date=date(2025, 3, 15), description="Test entry", post=False, **kwargs):
        result = create_journal_entry(
            actor,
            business_id=business.id,
            transaction_date=transaction_date,
            description=description,
            lines=lines,
            **kwargs,
        )
        assert result.success is True, result.error
        entry = result.data
        if post:
            posted = post_journal_entry(actor, entry.id)
            assert posted.success is True, posted.error
            entry = posted.data
        return entry

    return _make


@pytest.fixture
def draft_journal_entry(make_entry, business, cash_account, revenue_account):
    """Create a draft entry: Debit Cash 1000 / Credit Revenue 1000."""
    return make_entry(business, balanced_lines(cash_account, revenue_account), description="Cash sale")


@pytest.fixture
def posted_journal_entry(make_entry, business, cash_account, revenue_account):
    """Create a posted entry: Debit Cash 1000 / Credit Revenue 1000."""
    return make_entry(business, balanced_lines(cash_account, revenue_account), description="Cash sale", post=True)


# =============================================================================
# Exchange Rate Fixtures
# =============================================================================

@pytest.fixture
def eur_usd_rates(db):
    """EUR->USD rates on Jan 1, Mar 1 and Jun 1 2025."""
    return [
        ExchangeRate.objects.create(
            from_currency="EUR", to_currency="USD", rate=Decimal(rate), effective_date=effective,
        )
        for effective, rate in (
            (date(2025, 1, 1), "1.10"),
            (date(2025, 3, 1), "1.15"),
            (date(2025, 6, 1), "1.20"),
        )
    ]
