# tests/test_journal_entries.py
"""
Tests for the journal entry lifecycle.

Tests cover:
- Creation and validation (accounts, line amounts, input)
- Draft updates and deletion
- Posting rules (state, line count, exact balance)
- Reversal mirroring and linkage
- Audit trail
"""

import pytest
from datetime import date
from decimal import Decimal

from django.utils import timezone

from accounting.commands import (
    create_journal_entry,
    update_journal_entry,
    delete_journal_entry,
    post_journal_entry,
    reverse_journal_entry,
)
from accounting.errors import ErrorCode, LedgerError
from accounting.models import JournalEntry, JournalLine, JournalEntryAuditLog
from tests.factories import line, balanced_lines


def audit_actions(entry_id):
    return list(
        JournalEntryAuditLog.objects.filter(entry_id=entry_id)
        .order_by("occurred_at", "id")
        .values_list("action", flat=True)
    )


# =============================================================================
# Create
# =============================================================================

@pytest.mark.django_db
class TestCreateJournalEntry:
    """Creating draft entries."""

    def test_creates_draft_with_lines_and_audit_row(self, actor, business, cash_account, revenue_account):
        result = create_journal_entry(
            actor,
            business_id=business.id,
            transaction_date=date(2025, 3, 15),
            description="  Cash sale  ",
            lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is True
        entry = result.data
        assert entry.status == JournalEntry.Status.DRAFT
        assert entry.entry_number == f"JE-{timezone.now().year}-00001"
        assert entry.fiscal_period == "2025-03"
        assert entry.description == "Cash sale"
        assert entry.currency == "USD"
        assert entry.source_type == "Manual"
        assert entry.created_by == actor.user_id

        lines = list(entry.lines.order_by("line_number"))
        assert [l.line_number for l in lines] == [1, 2]
        assert lines[0].account_id == cash_account.id
        assert lines[0].debit_amount == Decimal("1000.00")
        assert lines[0].debit_amount_base == Decimal("1000.00")
        assert lines[1].credit_amount_base == Decimal("1000.00")

        logs = list(JournalEntryAuditLog.objects.filter(entry=entry))
        assert len(logs) == 1
        assert logs[0].action == JournalEntryAuditLog.Action.CREATED
        assert logs[0].actor_id == actor.user_id
        assert logs[0].actor_display_name == "Test Accountant"

    def test_base_amounts_use_exchange_rate_and_round_half_up(self, actor, business, cash_account, revenue_account):
        result = create_journal_entry(
            actor,
            business_id=business.id,
            transaction_date=date(2025, 3, 15),
            description="EUR invoice",
            currency="eur",
            exchange_rate=Decimal("1.23456789"),
            lines=balanced_lines(cash_account, revenue_account, amount="10.01"),
        )

        assert result.success is True
        entry = result.data
        assert entry.currency == "EUR"
        debit_line = entry.lines.get(line_number=1)
        assert debit_line.debit_amount == Decimal("10.01")
        # 10.01 * 1.23456789 = 12.3580245...
        assert debit_line.debit_amount_base == Decimal("12.36")

    def test_line_text_and_tags_are_trimmed(self, actor, business, cash_account, revenue_account):
        lines = [
            line(cash_account, debit="50", cost_center=" CC-01 ", project_code=" P9 ", description="  till  "),
            line(revenue_account, credit="50"),
        ]
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="Tagged", lines=lines,
        )

        assert result.success is True
        first = result.data.lines.get(line_number=1)
        assert first.cost_center == "CC-01"
        assert first.project_code == "P9"
        assert first.description == "till"
        second = result.data.lines.get(line_number=2)
        assert second.cost_center == ""

    def test_unknown_business_is_not_found(self, actor, cash_account, revenue_account):
        result = create_journal_entry(
            actor, business_id=999999, transaction_date=date(2025, 1, 2),
            description="Nowhere", lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is False
        assert result.code == ErrorCode.NOT_FOUND
        assert "999999" in result.error

    def test_collects_all_account_violations(
        self, actor, business, header_account, inactive_account, foreign_cash_account
    ):
        lines = [
            line(header_account, debit="100"),
            line(inactive_account, credit="50"),
            line(foreign_cash_account, credit="50"),
            {"account_id": 999999, "credit_amount": Decimal("0"), "debit_amount": Decimal("0")},
        ]
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="Bad accounts", lines=lines,
        )

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED
        joined = " | ".join(result.errors)
        assert "not found: 999999" in joined
        assert "do not belong" in joined
        assert "inactive" in joined
        assert "header" in joined
        # Line 4 has neither side set
        assert "Line 4: Both DebitAmount and CreditAmount are zero." in result.errors
        assert JournalEntry.objects.count() == 0

    def test_collects_line_amount_violations(self, actor, business, cash_account, revenue_account, expense_account):
        lines = [
            line(cash_account),
            line(revenue_account, debit="5", credit="5"),
            line(expense_account, debit="-5"),
        ]
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="Bad amounts", lines=lines,
        )

        assert result.success is False
        assert result.errors == [
            "Line 1: Both DebitAmount and CreditAmount are zero.",
            "Line 2: A line cannot have both DebitAmount and CreditAmount > 0.",
            "Line 3: Amounts cannot be negative.",
        ]

    def test_rejects_invalid_input(self, actor, business, cash_account, revenue_account):
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="", lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED
        assert any(e.startswith("description:") for e in result.errors)

    def test_rejects_empty_line_set(self, actor, business):
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="No lines", lines=[],
        )

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED

    def test_rejects_non_positive_exchange_rate(self, actor, business, cash_account, revenue_account):
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="Zero rate", exchange_rate=Decimal("0"),
            lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is False
        assert "greater than zero" in result.error

    @pytest.mark.parametrize("currency", ["1$9", "E1R", "EURO"])
    def test_rejects_malformed_currency(self, actor, business, cash_account, revenue_account, currency):
        result = create_journal_entry(
            actor, business_id=business.id, transaction_date=date(2025, 1, 2),
            description="Bad currency", currency=currency, exchange_rate=Decimal("1.1"),
            lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED
        assert any(e.startswith("currency:") for e in result.errors)
        assert JournalEntry.objects.count() == 0


# =============================================================================
# Update / Delete
# =============================================================================

@pytest.mark.django_db
class TestDraftEditing:
    """Updating and deleting draft entries."""

    def test_update_replaces_header_and_lines(self, actor, draft_journal_entry, cash_account, expense_account):
        result = update_journal_entry(
            actor,
            draft_journal_entry.id,
            transaction_date=date(2025, 4, 30),
            description="Rent paid",
            lines=balanced_lines(expense_account, cash_account, amount="250.00"),
        )

        assert result.success is True
        entry = JournalEntry.objects.get(pk=draft_journal_entry.id)
        assert entry.entry_number == draft_journal_entry.entry_number
        assert entry.fiscal_period == "2025-04"
        assert entry.description == "Rent paid"
        lines = list(entry.lines.order_by("line_number"))
        assert [(l.account_id, l.debit_amount, l.credit_amount) for l in lines] == [
            (expense_account.id, Decimal("250.00"), Decimal("0.00")),
            (cash_account.id, Decimal("0.00"), Decimal("250.00")),
        ]
        assert audit_actions(entry.id) == ["CREATED", "UPDATED"]

    def test_update_validates_like_create(self, actor, draft_journal_entry, header_account, cash_account):
        result = update_journal_entry(
            actor,
            draft_journal_entry.id,
            transaction_date=date(2025, 4, 30),
            description="Into a header",
            lines=balanced_lines(header_account, cash_account),
        )

        assert result.success is False
        assert "header" in result.error
        assert draft_journal_entry.lines.count() == 2

    def test_cannot_update_posted_entry(self, actor, posted_journal_entry, cash_account, revenue_account):
        result = update_journal_entry(
            actor,
            posted_journal_entry.id,
            transaction_date=date(2025, 4, 30),
            description="Too late",
            lines=balanced_lines(cash_account, revenue_account),
        )

        assert result.success is False
        assert result.code == ErrorCode.INVALID_STATE

    def test_delete_draft_keeps_audit_trail(self, actor, draft_journal_entry):
        entry_id = draft_journal_entry.id

        result = delete_journal_entry(actor, entry_id)

        assert result.success is True
        assert result.data["entry_number"] == draft_journal_entry.entry_number
        assert not JournalEntry.objects.filter(pk=entry_id).exists()
        assert not JournalLine.objects.filter(entry_id=entry_id).exists()
        assert audit_actions(entry_id) == ["CREATED", "DELETED"]

    def test_cannot_delete_posted_entry(self, actor, posted_journal_entry):
        result = delete_journal_entry(actor, posted_journal_entry.id)

        assert result.success is False
        assert result.code == ErrorCode.INVALID_STATE
        assert JournalEntry.objects.filter(pk=posted_journal_entry.id).exists()

    def test_audit_rows_are_append_only(self, draft_journal_entry):
        log = JournalEntryAuditLog.objects.get(entry=draft_journal_entry)

        log.notes = "tampered"
        with pytest.raises(RuntimeError):
            log.save()
        with pytest.raises(RuntimeError):
            log.delete()


# =============================================================================
# Post
# =============================================================================

@pytest.mark.django_db
class TestPostJournalEntry:
    """Posting rules."""

    def test_post_sets_totals_and_poster(self, actor, draft_journal_entry):
        result = post_journal_entry(actor, draft_journal_entry.id, notes="Month-end batch")

        assert result.success is True
        entry = result.data
        assert entry.status == JournalEntry.Status.POSTED
        assert entry.total_debits == Decimal("1000.00")
        assert entry.total_credits == Decimal("1000.00")
        assert entry.posted_by == actor.user_id
        assert entry.posted_at is not None

        posted_log = JournalEntryAuditLog.objects.get(entry=entry, action=JournalEntryAuditLog.Action.POSTED)
        assert posted_log.notes == "Month-end batch"
        assert audit_actions(entry.id) == ["CREATED", "POSTED"]

    def test_cannot_post_twice(self, actor, posted_journal_entry):
        result = post_journal_entry(actor, posted_journal_entry.id)

        assert result.success is False
        assert result.code == ErrorCode.INVALID_STATE
        assert result.error == "Only Draft entries can be posted. Current status: Posted."

    def test_requires_two_lines(self, actor, make_entry, business, cash_account):
        entry = make_entry(business, [line(cash_account, debit="100")])

        result = post_journal_entry(actor, entry.id)

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED
        assert "at least 2 lines" in result.error

    def test_unbalanced_entry_reports_totals(self, actor, make_entry, business, cash_account, revenue_account):
        entry = make_entry(business, [
            line(cash_account, debit="1000.00"),
            line(revenue_account, credit="900.00"),
        ])

        result = post_journal_entry(actor, entry.id)

        assert result.success is False
        assert result.code == ErrorCode.UNBALANCED
        assert "Total debits (1,000.00)" in result.error
        assert "Total credits (900.00)" in result.error
        assert result.details == {"total_debits": "1000.00", "total_credits": "900.00"}
        entry.refresh_from_db()
        assert entry.status == JournalEntry.Status.DRAFT

    def test_balance_check_is_exact_on_base_amounts(
        self, actor, make_entry, business, cash_account, expense_account, revenue_account
    ):
        # 333.33 * 1.5 = 499.995 -> 500.00 and 666.67 * 1.5 = 1000.005 -> 1000.01
        entry = make_entry(
            business,
            [
                line(cash_account, debit="333.33"),
                line(expense_account, debit="666.67"),
                line(revenue_account, credit="1000.00"),
            ],
            currency="EUR",
            exchange_rate=Decimal("1.5"),
        )

        result = post_journal_entry(actor, entry.id)

        assert result.success is False
        assert result.code == ErrorCode.UNBALANCED
        assert result.details["total_debits"] == "1500.01"
        assert result.details["total_credits"] == "1500.00"

    def test_rechecks_accounts_at_posting(self, actor, draft_journal_entry, revenue_account):
        revenue_account.is_active = False
        revenue_account.save()

        result = post_journal_entry(actor, draft_journal_entry.id)

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED
        assert "Line 2: Cannot post to inactive account: 4000" in result.errors

    def test_missing_entry_is_not_found(self, actor):
        result = post_journal_entry(actor, 999999)

        assert result.success is False
        assert result.code == ErrorCode.NOT_FOUND

    def test_scoped_to_business(self, actor, draft_journal_entry, second_business):
        result = post_journal_entry(actor, draft_journal_entry.id, business_id=second_business.id)

        assert result.success is False
        assert result.code == ErrorCode.NOT_FOUND


# =============================================================================
# Reverse
# =============================================================================

@pytest.mark.django_db
class TestReverseJournalEntry:
    """Reversal creates a mirrored, linked entry."""

    def test_reversal_mirrors_lines(self, actor, posted_journal_entry, cash_account, revenue_account):
        result = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate")

        assert result.success is True
        original = result.data["original"]
        reversal = result.data["reversal"]

        assert original.status == JournalEntry.Status.REVERSED
        assert reversal.status == JournalEntry.Status.REVERSAL
        assert reversal.description == f"Reversal of {original.entry_number}: duplicate"
        assert reversal.reversal_of_id == original.id
        assert original.reversed_by_entry_id == reversal.id
        assert original.reversed_by_user == actor.user_id
        assert original.reversed_at is not None
        assert reversal.posted_by == actor.user_id
        assert reversal.posted_at is not None

        mirrored = list(reversal.lines.order_by("line_number"))
        assert [(l.line_number, l.account_id, l.debit_amount, l.credit_amount) for l in mirrored] == [
            (1, cash_account.id, Decimal("0.00"), Decimal("1000.00")),
            (2, revenue_account.id, Decimal("1000.00"), Decimal("0.00")),
        ]
        assert reversal.total_debits == original.total_credits
        assert reversal.total_credits == original.total_debits

    def test_reversal_gets_next_number(self, actor, posted_journal_entry):
        result = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate")

        year = timezone.now().year
        assert posted_journal_entry.entry_number == f"JE-{year}-00001"
        assert result.data["reversal"].entry_number == f"JE-{year}-00002"

    def test_reversal_copies_source_currency_and_tags(self, actor, make_entry, business, cash_account, revenue_account):
        entry = make_entry(
            business,
            [
                line(cash_account, debit="100", cost_center="CC-7", project_code="PRJ"),
                line(revenue_account, credit="100"),
            ],
            source_type="SalesInvoice",
            source_reference="INV-42",
            currency="EUR",
            exchange_rate=Decimal("1.1"),
            post=True,
        )

        reversal = reverse_journal_entry(actor, entry.id, reason="wrong customer").data["reversal"]

        assert reversal.source_type == "SalesInvoice"
        assert reversal.source_reference == "INV-42"
        assert reversal.currency == "EUR"
        assert reversal.exchange_rate == Decimal("1.1")
        first = reversal.lines.get(line_number=1)
        assert first.cost_center == "CC-7"
        assert first.project_code == "PRJ"
        assert first.credit_amount_base == Decimal("110.00")

    def test_reversal_date_sets_period(self, actor, posted_journal_entry):
        result = reverse_journal_entry(
            actor, posted_journal_entry.id, reason="duplicate", reversal_date=date(2025, 7, 1)
        )

        reversal = result.data["reversal"]
        assert reversal.transaction_date == date(2025, 7, 1)
        assert reversal.fiscal_period == "2025-07"

    def test_reversal_defaults_to_today(self, actor, posted_journal_entry):
        reversal = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate").data["reversal"]

        assert reversal.transaction_date == timezone.localdate()

    def test_audit_rows_on_both_entries(self, actor, posted_journal_entry):
        result = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate")
        original = result.data["original"]
        reversal = result.data["reversal"]

        assert audit_actions(original.id) == ["CREATED", "POSTED", "REVERSED"]
        assert audit_actions(reversal.id) == ["REVERSED"]

        original_log = JournalEntryAuditLog.objects.filter(entry=original).order_by("-id").first()
        assert original_log.notes == f"Reversed by entry {reversal.entry_number}. Reason: duplicate"
        reversal_log = JournalEntryAuditLog.objects.get(entry=reversal)
        assert reversal_log.notes == "duplicate"

    def test_at_most_one_reversal(self, actor, posted_journal_entry):
        first = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate")
        second = reverse_journal_entry(actor, posted_journal_entry.id, reason="again")

        assert first.success is True
        assert second.success is False
        assert second.code == ErrorCode.INVALID_STATE
        assert "already been reversed" in second.error
        assert JournalEntry.objects.filter(status=JournalEntry.Status.REVERSAL).count() == 1

    def test_cannot_reverse_a_reversal(self, actor, posted_journal_entry):
        reversal = reverse_journal_entry(actor, posted_journal_entry.id, reason="duplicate").data["reversal"]

        result = reverse_journal_entry(actor, reversal.id, reason="undo")

        assert result.success is False
        assert result.code == ErrorCode.INVALID_STATE
        assert "Only Posted entries can be reversed" in result.error

    def test_cannot_reverse_draft(self, actor, draft_journal_entry):
        result = reverse_journal_entry(actor, draft_journal_entry.id, reason="nope")

        assert result.success is False
        assert result.code == ErrorCode.INVALID_STATE

    def test_reason_is_required(self, actor, posted_journal_entry):
        result = reverse_journal_entry(actor, posted_journal_entry.id, reason="   ")

        assert result.success is False
        assert result.code == ErrorCode.VALIDATION_FAILED

    def test_raise_for_error(self, actor, draft_journal_entry):
        result = reverse_journal_entry(actor, draft_journal_entry.id, reason="nope")

        with pytest.raises(LedgerError) as excinfo:
            result.raise_for_error()
        assert excinfo.value.code == ErrorCode.INVALID_STATE
