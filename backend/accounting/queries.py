# accounting/queries.py
"""
Read-side operations for journal entries.

Queries never change state and never return entries belonging to a
business other than the one requested. Failures raise LedgerError.
"""

from dataclasses import dataclass, field
from typing import List

from django.db.models import Q

from accounting.errors import LedgerError
from accounting.models import JournalEntry, JournalEntryAuditLog
from accounting.serializers import (
    JournalEntryFilterSerializer,
    JournalEntrySummarySerializer,
    flatten_errors,
)


@dataclass
class PagedResult:
    """One page of a listing plus the total number of matches."""
    items: List[JournalEntry] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 50

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> dict:
        return {
            "items": JournalEntrySummarySerializer(self.items, many=True).data,
            "total_count": self.total_count,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
        }


def list_journal_entries(**filters) -> PagedResult:
    """
    Paged journal entry listing for one business.

    Filters:
        business_id (required), fiscal_period, date_from, date_to, status,
        source_type, account_id (entries with any line on the account),
        search (case-insensitive on entry number, description and source
        reference), page, page_size

    Ordered by transaction date then creation time, newest first.
    """
    serializer = JournalEntryFilterSerializer(data=filters)
    if not serializer.is_valid():
        errors = flatten_errors(serializer.errors)
        raise LedgerError.validation("; ".join(errors), errors=errors)
    params = serializer.validated_data

    qs = JournalEntry.objects.filter(business_id=params["business_id"])

    if params.get("fiscal_period"):
        qs = qs.filter(fiscal_period=params["fiscal_period"])
    if params.get("date_from"):
        qs = qs.filter(transaction_date__gte=params["date_from"])
    if params.get("date_to"):
        qs = qs.filter(transaction_date__lte=params["date_to"])
    if params.get("status"):
        qs = qs.filter(status=params["status"])
    if params.get("source_type"):
        qs = qs.filter(source_type=params["source_type"])
    if params.get("account_id") is not None:
        qs = qs.filter(lines__account_id=params["account_id"]).distinct()
    if params.get("search"):
        term = params["search"].strip()
        qs = qs.filter(
            Q(entry_number__icontains=term)
            | Q(description__icontains=term)
            | Q(source_reference__icontains=term)
        )

    qs = qs.order_by("-transaction_date", "-created_at", "-id")

    page = params["page"]
    page_size = params["page_size"]
    offset = (page - 1) * page_size

    total = qs.count()
    items = list(qs[offset:offset + page_size])

    return PagedResult(items=items, total_count=total, page=page, page_size=page_size)


def get_journal_entry(business_id, entry_id) -> JournalEntry:
    """Fetch one entry with its lines (and their accounts) and audit trail."""
    entry = (
        JournalEntry.objects.filter(business_id=business_id, pk=entry_id)
        .select_related("reversal_of", "reversed_by_entry")
        .prefetch_related("lines__account", "audit_logs")
        .first()
    )
    if entry is None:
        raise LedgerError.not_found(
            f"Journal entry {entry_id} not found.",
            entry_id=entry_id,
            business_id=business_id,
        )
    return entry


def get_audit_log(business_id, entry_id) -> List[JournalEntryAuditLog]:
    """Audit rows of an entry, oldest first."""
    if not JournalEntry.objects.filter(business_id=business_id, pk=entry_id).exists():
        raise LedgerError.not_found(
            f"Journal entry {entry_id} not found.",
            entry_id=entry_id,
            business_id=business_id,
        )
    return list(
        JournalEntryAuditLog.objects.filter(entry_id=entry_id, business_id=business_id)
        .order_by("occurred_at", "id")
    )
