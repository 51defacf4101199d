# accounting/__init__.py
"""
Accounting app - double-entry general ledger.

This app provides:
- Account: Chart of Accounts with hierarchy
- JournalEntry: Journal entry headers with draft/posted/reversed lifecycle
- JournalLine: Debit/credit lines in entry and base currency
- JournalEntryAuditLog: Append-only lifecycle trail

Commands (accounting.commands) handle all mutations.
"""
