# accounting/models.py
"""
General ledger models.

All mutations of JournalEntry, JournalLine and JournalEntryAuditLog go
through the command layer (accounting/commands.py), which validates the
request, applies policies and writes entry, lines and audit rows inside
one transaction.

Models:
- Account: Chart of Accounts (reference data for the engine)
- JournalEntry: Journal entry headers
- JournalLine: Journal entry lines (amounts in entry and base currency)
- JournalEntryAuditLog: Append-only lifecycle trail
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from businesses.models import Business


class Account(models.Model):
    """
    Chart of Accounts entry.

    Supports:
    - Hierarchical structure (parent/child)
    - Header accounts (non-postable groupings)
    - Account type plus a finer reporting category
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    class Category(models.TextChoices):
        CURRENT_ASSET = "CURRENT_ASSET", "Current Asset"
        FIXED_ASSET = "FIXED_ASSET", "Fixed Asset"
        CONTRA_ASSET = "CONTRA_ASSET", "Contra Asset"
        CURRENT_LIABILITY = "CURRENT_LIABILITY", "Current Liability"
        LONG_TERM_LIABILITY = "LONG_TERM_LIABILITY", "Long-term Liability"
        OWNERS_EQUITY = "OWNERS_EQUITY", "Owner's Equity"
        RETAINED_EARNINGS = "RETAINED_EARNINGS", "Retained Earnings"
        OPERATING_REVENUE = "OPERATING_REVENUE", "Operating Revenue"
        OTHER_REVENUE = "OTHER_REVENUE", "Other Revenue"
        COST_OF_GOODS_SOLD = "COST_OF_GOODS_SOLD", "Cost of Goods Sold"
        OPERATING_EXPENSE = "OPERATING_EXPENSE", "Operating Expense"
        DEPRECIATION_EXPENSE = "DEPRECIATION_EXPENSE", "Depreciation Expense"
        TAX_EXPENSE = "TAX_EXPENSE", "Tax Expense"
        INTEREST_EXPENSE = "INTEREST_EXPENSE", "Interest Expense"
        OTHER_EXPENSE = "OTHER_EXPENSE", "Other Expense"

    DEBIT_NORMAL_TYPES = {AccountType.ASSET, AccountType.EXPENSE}

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    account_number = models.CharField(max_length=20)
    name = models.CharField(max_length=200)
    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
    )
    category = models.CharField(
        max_length=30,
        choices=Category.choices,
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    is_header = models.BooleanField(
        default=False,
        help_text="Header accounts group other accounts and cannot receive postings",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["business", "account_number"],
                name="uniq_account_number_per_business",
            )
        ]
        ordering = ["account_number"]
        indexes = [
            models.Index(fields=["business", "account_type"], name="idx_account_business_type"),
        ]

    def __str__(self):
        return f"{self.account_number} - {self.name}"

    @property
    def is_postable(self) -> bool:
        return self.is_active and not self.is_header

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in self.DEBIT_NORMAL_TYPES


class JournalEntry(models.Model):
    """
    Journal Entry header.

    Workflow: DRAFT -> POSTED -> REVERSED
    - DRAFT: Entry is editable and has no ledger effect
    - POSTED: Entry is balanced and finalized; lines are frozen
    - REVERSED: A posted entry that a reversal entry has cancelled
    - REVERSAL: Mirror entry generated by a reversal (functionally posted)
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        POSTED = "POSTED", "Posted"
        REVERSED = "REVERSED", "Reversed"
        REVERSAL = "REVERSAL", "Reversal"

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="journal_entries",
    )

    entry_number = models.CharField(
        max_length=30,
        help_text="JE-{year}-{sequence}, unique per business",
    )
    fiscal_period = models.CharField(max_length=7, help_text="YYYY-MM")
    transaction_date = models.DateField()
    description = models.CharField(max_length=500)

    status = models.CharField(
        max_length=12,
        choices=Status.choices,
        default=Status.DRAFT,
    )

    # Source tracking (traceability to the originating business document)
    source_type = models.CharField(max_length=50, default="Manual")
    source_reference = models.CharField(max_length=200, blank=True, default="")
    source_document_id = models.UUIDField(null=True, blank=True)

    # Currency (transaction vs base)
    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="Transaction currency for this entry",
    )
    exchange_rate = models.DecimalField(
        max_digits=18,
        decimal_places=8,
        default=Decimal("1"),
        help_text="Rate to convert entry currency to the business base currency",
    )

    # Base-currency totals, stored at posting time
    total_debits = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credits = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    created_by = models.UUIDField()
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    posted_by = models.UUIDField(null=True, blank=True)
    posted_at = models.DateTimeField(null=True, blank=True)

    reversed_by_user = models.UUIDField(null=True, blank=True)
    reversed_at = models.DateTimeField(null=True, blank=True)

    # Reversal linkage; at most one reversal per entry in either direction
    reversal_of = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="+",
    )
    reversed_by_entry = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.RESTRICT,
        related_name="+",
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["business", "entry_number"],
                name="uniq_entry_number_per_business",
            ),
        ]
        indexes = [
            models.Index(fields=["business", "transaction_date"], name="idx_entry_business_date"),
            models.Index(fields=["business", "status"], name="idx_entry_business_status"),
            models.Index(fields=["business", "fiscal_period"], name="idx_entry_business_period"),
        ]
        ordering = ["-transaction_date", "-created_at"]
        verbose_name_plural = "Journal entries"

    def __str__(self):
        return f"{self.entry_number} ({self.transaction_date}) {self.status}"

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalLine(models.Model):
    """
    Individual line within a journal entry.
    Each line affects one account with either a debit or credit amount.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )
    line_number = models.PositiveIntegerField()

    # Entry currency
    debit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Business base currency
    debit_amount_base = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit_amount_base = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    cost_center = models.CharField(max_length=50, blank=True, default="")
    project_code = models.CharField(max_length=50, blank=True, default="")
    description = models.CharField(max_length=300, blank=True, default="")

    class Meta:
        ordering = ["entry", "line_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["entry", "line_number"],
                name="uniq_line_number_per_entry",
            ),
            models.CheckConstraint(
                condition=~(Q(debit_amount__gt=0) & Q(credit_amount__gt=0)),
                name="chk_line_not_both_debit_credit",
            ),
            models.CheckConstraint(
                condition=Q(debit_amount__gte=0) & Q(credit_amount__gte=0),
                name="chk_line_non_negative",
            ),
        ]

    def __str__(self):
        return f"JE#{self.entry_id} L{self.line_number}"

    @property
    def amount(self) -> Decimal:
        """Returns the non-zero amount (debit or credit)."""
        return self.debit_amount if self.debit_amount > 0 else self.credit_amount

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > 0


class JournalEntryAuditLog(models.Model):
    """
    One row per lifecycle transition of a journal entry.

    Rows are append-only: saving an existing row or deleting one raises.
    The entry link carries no database constraint so the trail of a
    deleted draft survives the entry itself.
    """

    class Action(models.TextChoices):
        CREATED = "CREATED", "Created"
        UPDATED = "UPDATED", "Updated"
        POSTED = "POSTED", "Posted"
        REVERSED = "REVERSED", "Reversed"
        DELETED = "DELETED", "Deleted"

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="audit_logs",
    )
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="journal_audit_logs",
    )
    entry_number = models.CharField(max_length=30)
    action = models.CharField(max_length=10, choices=Action.choices)
    actor_id = models.UUIDField()
    actor_display_name = models.CharField(max_length=256, blank=True, default="")
    occurred_at = models.DateTimeField(default=timezone.now)
    notes = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["occurred_at", "id"]
        indexes = [
            models.Index(fields=["entry", "occurred_at"], name="idx_audit_entry_time"),
        ]

    def __str__(self):
        return f"{self.entry_number} {self.action} @ {self.occurred_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise RuntimeError("Journal audit rows are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Journal audit rows are append-only.")
