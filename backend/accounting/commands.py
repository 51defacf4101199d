# accounting/commands.py
"""
Command layer for journal entry operations.

Commands are the single point where ledger state changes. Callers pass
raw payloads; commands enforce rules and write the audit trail.

Pattern:
1. Validate input (serializers)
2. Apply business policies (can_*)
3. Perform the operation (model changes)
4. Append audit row(s)
5. Return CommandResult

Every command runs in one transaction: entry, lines and audit rows are
written together or not at all. Business-rule failures are detected
before the first write and reported through CommandResult, never raised.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models.functions import Length
from django.utils import timezone

from businesses.authz import ActorContext
from businesses.models import Business
from accounting.errors import ErrorCode, LedgerError
from accounting.models import JournalEntry, JournalLine, JournalEntryAuditLog
from accounting.policies import (
    PolicyViolation,
    can_delete_entry,
    can_edit_entry,
    can_post_entry,
    can_post_to_account,
    can_reverse_entry,
    collect_account_violations,
    collect_line_violations,
    validate_status_transition,
)
from accounting.serializers import (
    JournalEntryInputSerializer,
    PostEntryInputSerializer,
    ReverseEntryInputSerializer,
    flatten_errors,
)


logger = logging.getLogger(__name__)

MONEY_Q = Decimal("0.01")
ENTRY_NUMBER_PREFIX = "JE"


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = post_journal_entry(actor, entry_id)
        if result.success:
            entry = result.data
        else:
            error_message = result.error
            error_code = result.code      # ErrorCode
            all_problems = result.errors  # every violation found
    """

    def __init__(
        self,
        success: bool,
        data=None,
        error: str = None,
        code: ErrorCode = None,
        errors: list = None,
        details: dict = None,
    ):
        self.success = success
        self.data = data
        self.error = error
        self.code = code
        self.errors = errors or ([error] if error else [])
        self.details = details or {}

    def __repr__(self):
        if self.success:
            return f"<CommandResult ok data={self.data!r}>"
        return f"<CommandResult fail code={self.code} error={self.error!r}>"

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: ErrorCode = ErrorCode.VALIDATION_FAILED, errors: list = None, details: dict = None):
        return cls(success=False, error=error, code=code, errors=errors, details=details)

    def raise_for_error(self):
        """Return data on success, raise LedgerError otherwise."""
        if not self.success:
            raise LedgerError(self.code, self.error, {"errors": self.errors, **self.details})
        return self.data


# =============================================================================
# Helpers
# =============================================================================

def _to_base(amount: Decimal, exchange_rate: Decimal) -> Decimal:
    return (amount * exchange_rate).quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def _fiscal_period(value) -> str:
    return value.strftime("%Y-%m")


def _invalid_input(serializer) -> CommandResult:
    errors = flatten_errors(serializer.errors)
    return CommandResult.fail(
        "; ".join(errors),
        code=ErrorCode.VALIDATION_FAILED,
        errors=errors,
    )


def _next_entry_number(business_id, year: int) -> str:
    """
    Next JE-{year}-{sequence} for a business.

    The sequence is one more than the highest existing one under the
    year prefix. Ordering by length first keeps sequences past 99999
    sorted correctly.
    """
    prefix = f"{ENTRY_NUMBER_PREFIX}-{year}-"
    last = (
        JournalEntry.objects.filter(business_id=business_id, entry_number__startswith=prefix)
        .annotate(number_length=Length("entry_number"))
        .order_by("-number_length", "-entry_number")
        .values_list("entry_number", flat=True)
        .first()
    )
    sequence = 0
    if last:
        suffix = last[len(prefix):]
        if suffix.isdigit():
            sequence = int(suffix)
    return f"{prefix}{sequence + 1:05d}"


def _insert_with_entry_number(entry: JournalEntry, year: int) -> JournalEntry:
    """
    Insert a new entry, allocating its number.

    Read-then-insert races with concurrent creators; the unique
    constraint on (business, entry_number) catches that and the insert
    is retried in a savepoint with a fresh number.
    """
    attempts = max(1, settings.LEDGER_ENTRY_NUMBER_RETRIES)
    for attempt in range(1, attempts + 1):
        entry.entry_number = _next_entry_number(entry.business_id, year)
        try:
            with transaction.atomic():
                entry.save(force_insert=True)
            return entry
        except IntegrityError:
            if attempt == attempts:
                logger.error(
                    "Could not allocate entry number for business %s after %s attempts",
                    entry.business_id,
                    attempts,
                )
                raise
            logger.warning(
                "Entry number %s already taken for business %s, retrying (%s/%s)",
                entry.entry_number,
                entry.business_id,
                attempt,
                attempts,
            )
            entry.pk = None


def _lock_entry(entry_id, business_id=None):
    qs = JournalEntry.objects.select_for_update().filter(pk=entry_id)
    if business_id is not None:
        qs = qs.filter(business_id=business_id)
    return qs.first()


def _not_found(entry_id) -> CommandResult:
    return CommandResult.fail(
        f"Journal entry {entry_id} not found.",
        code=ErrorCode.NOT_FOUND,
        details={"entry_id": entry_id},
    )


def _transition(entry: JournalEntry, new_status: str) -> None:
    allowed, reason = validate_status_transition(entry.status, new_status)
    if not allowed:
        raise PolicyViolation(reason)
    entry.status = new_status


def _audit(entry: JournalEntry, actor: ActorContext, action: str, occurred_at, notes: str = "") -> JournalEntryAuditLog:
    return JournalEntryAuditLog.objects.create(
        entry=entry,
        business_id=entry.business_id,
        entry_number=entry.entry_number,
        action=action,
        actor_id=actor.user_id,
        actor_display_name=actor.audit_name,
        occurred_at=occurred_at,
        notes=(notes or "")[:500],
    )


def _validate_entry_payload(business_id, **payload):
    """
    Run input, account and amount validation for create/update.

    Returns:
        (validated_data, None) on success
        (None, CommandResult) on failure
    """
    serializer = JournalEntryInputSerializer(data=payload)
    if not serializer.is_valid():
        return None, _invalid_input(serializer)

    data = serializer.validated_data
    lines = data["lines"]

    _, violations = collect_account_violations(business_id, [line["account_id"] for line in lines])
    violations.extend(collect_line_violations(lines))
    if violations:
        return None, CommandResult.fail(
            "; ".join(violations),
            code=ErrorCode.VALIDATION_FAILED,
            errors=violations,
        )
    return data, None


def _build_lines(entry: JournalEntry, lines: list) -> list:
    rate = entry.exchange_rate
    return JournalLine.objects.bulk_create([
        JournalLine(
            entry=entry,
            account_id=line["account_id"],
            line_number=line_number,
            debit_amount=line["debit_amount"],
            credit_amount=line["credit_amount"],
            debit_amount_base=_to_base(line["debit_amount"], rate),
            credit_amount_base=_to_base(line["credit_amount"], rate),
            cost_center=line.get("cost_center", "").strip(),
            project_code=line.get("project_code", "").strip(),
            description=line.get("description", "").strip(),
        )
        for line_number, line in enumerate(lines, start=1)
    ])


# =============================================================================
# Journal Entry Commands
# =============================================================================

@transaction.atomic
def create_journal_entry(
    actor: ActorContext,
    business_id,
    transaction_date,
    description: str,
    lines: list,
    source_type: str = "Manual",
    source_reference: str = "",
    source_document_id=None,
    currency: str = None,
    exchange_rate=Decimal("1"),
) -> CommandResult:
    """
    Create a new DRAFT journal entry.

    Args:
        actor: The actor context
        business_id: Owning business
        transaction_date: Entry date; also determines the fiscal period
        description: Free text (trimmed)
        lines: List of line dicts with account_id, debit_amount, credit_amount
               and optional cost_center, project_code, description
        currency: Entry currency, defaults to the business base currency
        exchange_rate: Rate from entry currency to base currency

    Returns:
        CommandResult with created JournalEntry or error
    """
    try:
        business = Business.objects.get(pk=business_id)
    except Business.DoesNotExist:
        return CommandResult.fail(
            f"Business {business_id} not found.",
            code=ErrorCode.NOT_FOUND,
            details={"business_id": business_id},
        )

    data, failure = _validate_entry_payload(
        business.id,
        transaction_date=transaction_date,
        description=description,
        lines=lines,
        source_type=source_type,
        source_reference=source_reference,
        source_document_id=source_document_id,
        currency=currency,
        exchange_rate=exchange_rate,
    )
    if failure:
        return failure

    now = timezone.now()
    entry = JournalEntry(
        business=business,
        fiscal_period=_fiscal_period(data["transaction_date"]),
        transaction_date=data["transaction_date"],
        description=data["description"],
        status=JournalEntry.Status.DRAFT,
        source_type=data["source_type"],
        source_reference=data["source_reference"],
        source_document_id=data["source_document_id"],
        currency=data["currency"] or business.base_currency.upper(),
        exchange_rate=data["exchange_rate"],
        created_by=actor.user_id,
        created_at=now,
    )
    _insert_with_entry_number(entry, now.year)
    _build_lines(entry, data["lines"])
    _audit(entry, actor, JournalEntryAuditLog.Action.CREATED, now)

    logger.info(
        "Journal entry %s created",
        entry.entry_number,
        extra={"entry_id": entry.id, "business_id": business.id, "line_count": len(data["lines"])},
    )
    return CommandResult.ok(entry)


@transaction.atomic
def update_journal_entry(
    actor: ActorContext,
    entry_id,
    transaction_date,
    description: str,
    lines: list,
    source_type: str = "Manual",
    source_reference: str = "",
    source_document_id=None,
    currency: str = None,
    exchange_rate=Decimal("1"),
    business_id=None,
) -> CommandResult:
    """
    Replace the header fields and the full line set of a DRAFT entry.

    The entry number is kept; the fiscal period follows the new date.
    """
    entry = _lock_entry(entry_id, business_id)
    if entry is None:
        return _not_found(entry_id)

    allowed, reason = can_edit_entry(entry)
    if not allowed:
        return CommandResult.fail(reason, code=ErrorCode.INVALID_STATE)

    data, failure = _validate_entry_payload(
        entry.business_id,
        transaction_date=transaction_date,
        description=description,
        lines=lines,
        source_type=source_type,
        source_reference=source_reference,
        source_document_id=source_document_id,
        currency=currency,
        exchange_rate=exchange_rate,
    )
    if failure:
        return failure

    now = timezone.now()
    entry.transaction_date = data["transaction_date"]
    entry.fiscal_period = _fiscal_period(data["transaction_date"])
    entry.description = data["description"]
    entry.source_type = data["source_type"]
    entry.source_reference = data["source_reference"]
    entry.source_document_id = data["source_document_id"]
    entry.currency = data["currency"] or entry.business.base_currency.upper()
    entry.exchange_rate = data["exchange_rate"]
    entry.save()

    entry.lines.all().delete()
    _build_lines(entry, data["lines"])
    _audit(entry, actor, JournalEntryAuditLog.Action.UPDATED, now)

    logger.info("Journal entry %s updated", entry.entry_number, extra={"entry_id": entry.id})
    return CommandResult.ok(entry)


@transaction.atomic
def delete_journal_entry(actor: ActorContext, entry_id, business_id=None) -> CommandResult:
    """
    Delete a DRAFT journal entry together with its lines.

    The audit trail is kept; a DELETED row is appended before removal.
    """
    entry = _lock_entry(entry_id, business_id)
    if entry is None:
        return _not_found(entry_id)

    allowed, reason = can_delete_entry(entry)
    if not allowed:
        return CommandResult.fail(reason, code=ErrorCode.INVALID_STATE)

    entry_number = entry.entry_number
    _audit(entry, actor, JournalEntryAuditLog.Action.DELETED, timezone.now())
    entry.delete()

    logger.info("Journal entry %s deleted", entry_number, extra={"entry_id": entry_id})
    return CommandResult.ok({"deleted": True, "entry_number": entry_number})


@transaction.atomic
def post_journal_entry(actor: ActorContext, entry_id, notes: str = "", business_id=None) -> CommandResult:
    """
    Post a journal entry, making it affect account balances.

    Rules:
    - Entry must be DRAFT
    - At least 2 lines
    - Every line account still postable
    - Base-currency debits equal credits exactly

    Returns:
        CommandResult with posted JournalEntry or error
    """
    serializer = PostEntryInputSerializer(data={"notes": notes or ""})
    if not serializer.is_valid():
        return _invalid_input(serializer)

    entry = _lock_entry(entry_id, business_id)
    if entry is None:
        return _not_found(entry_id)

    allowed, reason = can_post_entry(entry)
    if not allowed:
        return CommandResult.fail(reason, code=ErrorCode.INVALID_STATE)

    lines = list(entry.lines.select_related("account"))
    if len(lines) < 2:
        return CommandResult.fail(
            "A journal entry must have at least 2 lines.",
            code=ErrorCode.VALIDATION_FAILED,
        )

    violations = []
    for line in lines:
        allowed, reason = can_post_to_account(line.account, entry.business_id)
        if not allowed:
            violations.append(f"Line {line.line_number}: {reason}")
    if violations:
        return CommandResult.fail("; ".join(violations), code=ErrorCode.VALIDATION_FAILED, errors=violations)

    total_debits = sum((line.debit_amount_base for line in lines), Decimal("0.00"))
    total_credits = sum((line.credit_amount_base for line in lines), Decimal("0.00"))
    if total_debits != total_credits:
        return CommandResult.fail(
            f"Entry is not balanced. Total debits ({total_debits:,.2f}) "
            f"≠ Total credits ({total_credits:,.2f}).",
            code=ErrorCode.UNBALANCED,
            details={"total_debits": str(total_debits), "total_credits": str(total_credits)},
        )

    now = timezone.now()
    _transition(entry, JournalEntry.Status.POSTED)
    entry.total_debits = total_debits
    entry.total_credits = total_credits
    entry.posted_by = actor.user_id
    entry.posted_at = now
    entry.save(update_fields=["status", "total_debits", "total_credits", "posted_by", "posted_at", "updated_at"])
    _audit(entry, actor, JournalEntryAuditLog.Action.POSTED, now, serializer.validated_data["notes"])

    logger.info(
        "Journal entry %s posted",
        entry.entry_number,
        extra={"entry_id": entry.id, "business_id": entry.business_id, "total": str(total_debits)},
    )
    return CommandResult.ok(entry)


@transaction.atomic
def reverse_journal_entry(
    actor: ActorContext,
    entry_id,
    reason: str,
    reversal_date=None,
    business_id=None,
) -> CommandResult:
    """
    Reverse a posted journal entry.

    Creates a new REVERSAL entry whose lines mirror the original's with
    debit and credit swapped (same order, accounts and tags), links both
    entries and marks the original as REVERSED. Both entries get a
    REVERSED audit row.

    Args:
        actor: The actor context
        entry_id: ID of entry to reverse
        reason: Why the entry is reversed; part of the mirror's description
        reversal_date: Transaction date of the mirror, defaults to today

    Returns:
        CommandResult with {"original": entry, "reversal": reversal_entry} or error
    """
    serializer = ReverseEntryInputSerializer(data={"reason": reason, "reversal_date": reversal_date})
    if not serializer.is_valid():
        return _invalid_input(serializer)
    reason = serializer.validated_data["reason"]

    original = _lock_entry(entry_id, business_id)
    if original is None:
        return _not_found(entry_id)

    allowed, message = can_reverse_entry(original)
    if not allowed:
        return CommandResult.fail(message, code=ErrorCode.INVALID_STATE)

    now = timezone.now()
    reversal_date = serializer.validated_data["reversal_date"] or timezone.localdate()
    original_lines = list(original.lines.all())

    reversal = JournalEntry(
        business_id=original.business_id,
        fiscal_period=_fiscal_period(reversal_date),
        transaction_date=reversal_date,
        description=f"Reversal of {original.entry_number}: {reason}",
        status=JournalEntry.Status.REVERSAL,
        source_type=original.source_type,
        source_reference=original.source_reference,
        source_document_id=original.source_document_id,
        currency=original.currency,
        exchange_rate=original.exchange_rate,
        total_debits=sum((line.credit_amount_base for line in original_lines), Decimal("0.00")),
        total_credits=sum((line.debit_amount_base for line in original_lines), Decimal("0.00")),
        created_by=actor.user_id,
        created_at=now,
        posted_by=actor.user_id,
        posted_at=now,
        reversal_of=original,
    )
    _insert_with_entry_number(reversal, now.year)

    JournalLine.objects.bulk_create([
        JournalLine(
            entry=reversal,
            account_id=line.account_id,
            line_number=line.line_number,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount,
            debit_amount_base=line.credit_amount_base,
            credit_amount_base=line.debit_amount_base,
            cost_center=line.cost_center,
            project_code=line.project_code,
            description=line.description,
        )
        for line in original_lines
    ])
    _audit(reversal, actor, JournalEntryAuditLog.Action.REVERSED, now, reason)

    _transition(original, JournalEntry.Status.REVERSED)
    original.reversed_by_entry = reversal
    original.reversed_by_user = actor.user_id
    original.reversed_at = now
    original.save(update_fields=["status", "reversed_by_entry", "reversed_by_user", "reversed_at", "updated_at"])
    _audit(
        original,
        actor,
        JournalEntryAuditLog.Action.REVERSED,
        now,
        f"Reversed by entry {reversal.entry_number}. Reason: {reason}",
    )

    logger.info(
        "Journal entry %s reversed by %s",
        original.entry_number,
        reversal.entry_number,
        extra={"entry_id": original.id, "reversal_id": reversal.id, "business_id": original.business_id},
    )
    return CommandResult.ok({
        "original": original,
        "reversal": reversal,
    })
