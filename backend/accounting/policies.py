# accounting/policies.py
"""
Business policy functions for journal entry operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that is the command's job.

Usage:
    from accounting.policies import can_post_entry, can_reverse_entry

    # Option 1: Check and get boolean + reason
    allowed, reason = can_post_entry(entry)
    if not allowed:
        return CommandResult.fail(reason, code=ErrorCode.INVALID_STATE)

    # Option 2: Assert and raise on failure
    assert_can_reverse_entry(entry)  # raises PolicyViolation

Validation helpers (collect_account_violations, collect_line_violations)
return every problem found instead of stopping at the first one, so the
caller can report them all at once.
"""

from decimal import Decimal

from accounting.models import Account, JournalEntry


class PolicyViolation(Exception):
    """Raised when a business policy is violated."""
    pass


# =============================================================================
# Business Boundary
# =============================================================================

def check_business_boundary(business_id, entity) -> bool:
    """Verify entity belongs to the given business."""
    return getattr(entity, "business_id", None) == business_id


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(account, business_id=None) -> tuple[bool, str]:
    """
    Check if journal lines can be posted to this account.

    Rules:
    - Must belong to the entry's business (when business_id is given)
    - Cannot post to inactive accounts
    - Cannot post to header accounts
    """
    if business_id is not None and not check_business_boundary(business_id, account):
        return False, f"Account {account.account_number} does not belong to business {business_id}."

    if not account.is_active:
        return False, f"Cannot post to inactive account: {account.account_number}"

    if account.is_header:
        return False, f"Cannot post to header account: {account.account_number}"

    return True, ""


def collect_account_violations(business_id, account_ids) -> tuple[dict, list[str]]:
    """
    Load the referenced accounts and check every one of them.

    Returns:
        (accounts_by_id, violations) where violations lists one message
        per problem class (not found, wrong business, inactive, header).
    """
    ids = list(dict.fromkeys(account_ids))
    accounts = {acc.id: acc for acc in Account.objects.filter(id__in=ids)}

    violations = []

    not_found = [str(i) for i in ids if i not in accounts]
    if not_found:
        violations.append(f"Account(s) not found: {', '.join(not_found)}")

    wrong_business = [a for a in accounts.values() if a.business_id != business_id]
    if wrong_business:
        violations.append(
            f"Account(s) do not belong to business {business_id}: "
            f"{', '.join(a.account_number for a in wrong_business)}"
        )

    inactive = [a for a in accounts.values() if not a.is_active]
    if inactive:
        violations.append(
            "Account(s) are inactive and cannot receive postings: "
            f"{', '.join(a.account_number for a in inactive)}"
        )

    headers = [a for a in accounts.values() if a.is_header]
    if headers:
        violations.append(
            "Account(s) are header/group accounts and cannot receive direct postings: "
            f"{', '.join(a.account_number for a in headers)}"
        )

    return accounts, violations


def collect_line_violations(lines) -> list[str]:
    """
    Check each line has exactly one positive side and no negative amounts.

    Lines are dicts with Decimal "debit_amount" and "credit_amount";
    messages use 1-based line positions.
    """
    violations = []
    for index, line in enumerate(lines, start=1):
        debit = line.get("debit_amount") or Decimal("0")
        credit = line.get("credit_amount") or Decimal("0")

        if debit < 0 or credit < 0:
            violations.append(f"Line {index}: Amounts cannot be negative.")
        elif debit > 0 and credit > 0:
            violations.append(f"Line {index}: A line cannot have both DebitAmount and CreditAmount > 0.")
        elif debit == 0 and credit == 0:
            violations.append(f"Line {index}: Both DebitAmount and CreditAmount are zero.")
    return violations


# =============================================================================
# Journal Entry Policies
# =============================================================================

def can_edit_entry(entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be edited.

    Rules:
    - Only DRAFT entries can be edited; posted lines are frozen
    """
    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only Draft entries can be updated. Current status: {entry.get_status_display()}."
    return True, ""


def can_delete_entry(entry) -> tuple[bool, str]:
    """Check if a journal entry can be deleted (DRAFT only)."""
    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only Draft entries can be deleted. Current status: {entry.get_status_display()}."
    return True, ""


def can_post_entry(entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be posted.

    Rules:
    - Must be in DRAFT status

    Line count and balance are checked by the command, which needs the
    computed totals for its error message.
    """
    if entry.status != JournalEntry.Status.DRAFT:
        return False, f"Only Draft entries can be posted. Current status: {entry.get_status_display()}."
    return True, ""


def can_reverse_entry(entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be reversed.

    Rules:
    - Must be in POSTED status (reversal mirrors cannot be reversed)
    - Must not already be reversed
    """
    if entry.reversed_by_entry_id is not None:
        return False, (
            f"Entry {entry.entry_number} has already been reversed by entry "
            f"{entry.reversed_by_entry.entry_number}."
        )

    if entry.status != JournalEntry.Status.POSTED:
        return False, f"Only Posted entries can be reversed. Current status: {entry.get_status_display()}."

    return True, ""


def validate_status_transition(old_status, new_status) -> tuple[bool, str]:
    """
    Validate a status transition is allowed.

    Allowed transitions:
    - DRAFT -> POSTED (posting)
    - POSTED -> REVERSED (reversal marks original)

    REVERSAL is never reached by a transition; mirror entries are
    created in that state.
    """
    if old_status == new_status:
        return True, ""

    allowed_transitions = {
        (JournalEntry.Status.DRAFT, JournalEntry.Status.POSTED),
        (JournalEntry.Status.POSTED, JournalEntry.Status.REVERSED),
    }

    if (old_status, new_status) in allowed_transitions:
        return True, ""

    return False, f"Invalid status transition: {old_status} -> {new_status}"


# =============================================================================
# Assertion Helpers
# =============================================================================

def assert_can_post_entry(entry) -> None:
    """Raise PolicyViolation if entry cannot be posted."""
    allowed, reason = can_post_entry(entry)
    if not allowed:
        raise PolicyViolation(reason)


def assert_can_reverse_entry(entry) -> None:
    """Raise PolicyViolation if entry cannot be reversed."""
    allowed, reason = can_reverse_entry(entry)
    if not allowed:
        raise PolicyViolation(reason)
