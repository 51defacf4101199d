# accounting/serializers.py
"""
Serializers for the general ledger.

Note: These serializers are used for:
1. Input validation of raw command/query payloads
2. Output formatting of entries, lines and audit rows

The actual business logic happens in commands.py and queries.py.
"""

from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import JournalEntry, JournalLine, JournalEntryAuditLog


CURRENCY_CODE_PATTERN = r"^[A-Za-z]{3}$"
CURRENCY_CODE_ERROR = "Enter a three-letter currency code."


def flatten_errors(detail, prefix: str = "") -> list[str]:
    """
    Flatten DRF error detail (nested dicts/lists) into "field: message" strings.

    Nested line errors come out as "lines[2].debit_amount: ...", using the
    1-based line position.
    """
    messages = []
    if isinstance(detail, dict):
        for field, value in detail.items():
            name = field if field != "non_field_errors" else ""
            path = f"{prefix}.{name}" if prefix and name else (prefix or name)
            messages.extend(flatten_errors(value, path))
    elif isinstance(detail, list):
        for index, value in enumerate(detail, start=1):
            if isinstance(value, (dict, list)):
                messages.extend(flatten_errors(value, f"{prefix}[{index}]"))
            else:
                messages.append(f"{prefix}: {value}" if prefix else str(value))
    else:
        messages.append(f"{prefix}: {detail}" if prefix else str(detail))
    return messages


# =============================================================================
# Journal Entry Input Serializers
# =============================================================================

class JournalLineInputSerializer(serializers.Serializer):
    """
    Serializer for journal line input (creation/update).

    Sign rules (exactly one positive side, no negatives) are checked by
    accounting.policies so every violation is reported together.
    """
    account_id = serializers.IntegerField(required=True, help_text="Account ID (integer)")
    debit_amount = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, default=Decimal("0.00"))
    credit_amount = serializers.DecimalField(max_digits=18, decimal_places=2, required=False, default=Decimal("0.00"))
    cost_center = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    project_code = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=300, required=False, allow_blank=True, default="")


class JournalEntryInputSerializer(serializers.Serializer):
    """Header fields plus the full line set of a draft entry."""
    transaction_date = serializers.DateField()
    description = serializers.CharField(max_length=500)
    source_type = serializers.CharField(max_length=50, required=False, default="Manual")
    source_reference = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    source_document_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    currency = serializers.RegexField(
        CURRENCY_CODE_PATTERN,
        required=False,
        allow_null=True,
        default=None,
        error_messages={"invalid": CURRENCY_CODE_ERROR},
    )
    exchange_rate = serializers.DecimalField(
        max_digits=18,
        decimal_places=8,
        required=False,
        default=Decimal("1"),
    )
    lines = JournalLineInputSerializer(many=True, allow_empty=False)

    def validate_currency(self, value):
        return value.upper() if value else value

    def validate_exchange_rate(self, value):
        if value <= 0:
            raise serializers.ValidationError("Exchange rate must be greater than zero.")
        return value


class PostEntryInputSerializer(serializers.Serializer):
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class ReverseEntryInputSerializer(serializers.Serializer):
    # Leaves room for "Reversal of {entry_number}: " in the 500-char description.
    reason = serializers.CharField(max_length=450)
    reversal_date = serializers.DateField(required=False, allow_null=True, default=None)


class JournalEntryFilterSerializer(serializers.Serializer):
    """Filters and paging for list_journal_entries."""
    business_id = serializers.IntegerField()
    fiscal_period = serializers.RegexField(r"^\d{4}-\d{2}$", required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=JournalEntry.Status.choices, required=False)
    source_type = serializers.CharField(max_length=50, required=False)
    account_id = serializers.IntegerField(required=False)
    search = serializers.CharField(max_length=200, required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    page_size = serializers.IntegerField(min_value=1, required=False)

    def validate_page_size(self, value):
        return min(value, settings.LEDGER_MAX_PAGE_SIZE)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError("date_from must be on or before date_to.")
        attrs.setdefault("page_size", settings.LEDGER_DEFAULT_PAGE_SIZE)
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    """Serializer for individual journal lines."""
    account_number = serializers.CharField(source="account.account_number", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = [
            "id", "line_number", "account", "account_number", "account_name",
            "debit_amount", "credit_amount", "debit_amount_base", "credit_amount_base",
            "cost_center", "project_code", "description",
        ]
        read_only_fields = fields


class JournalEntryAuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = JournalEntryAuditLog
        fields = [
            "id", "entry", "entry_number", "action", "actor_id", "actor_display_name",
            "occurred_at", "notes",
        ]
        read_only_fields = fields


class JournalEntrySummarySerializer(serializers.ModelSerializer):
    """Header-only representation used by paged listings."""

    class Meta:
        model = JournalEntry
        fields = [
            "id", "business", "entry_number", "fiscal_period", "transaction_date",
            "description", "status", "source_type", "source_reference",
            "currency", "exchange_rate", "total_debits", "total_credits",
            "created_at", "posted_at", "reversed_at",
        ]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """
    Full journal entry serializer with nested lines and audit trail.
    Used for retrieval and display.
    """
    lines = JournalLineSerializer(many=True, read_only=True)
    audit_logs = JournalEntryAuditLogSerializer(many=True, read_only=True)
    reversal_of_entry_number = serializers.CharField(
        source="reversal_of.entry_number", read_only=True, default=None
    )
    reversed_by_entry_number = serializers.CharField(
        source="reversed_by_entry.entry_number", read_only=True, default=None
    )

    class Meta:
        model = JournalEntry
        fields = [
            "id", "business", "entry_number", "fiscal_period", "transaction_date",
            "description", "status",
            "source_type", "source_reference", "source_document_id",
            "currency", "exchange_rate", "total_debits", "total_credits",
            "created_by", "created_at", "updated_at",
            "posted_by", "posted_at",
            "reversed_by_user", "reversed_at",
            "reversal_of", "reversal_of_entry_number",
            "reversed_by_entry", "reversed_by_entry_number",
            "lines", "audit_logs",
        ]
        read_only_fields = fields
