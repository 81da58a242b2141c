from journal_desk.models.account import Account, AccountStatus, AccountType
from journal_desk.models.draft import DraftLine, JournalEntryDraft
from journal_desk.models.journal import (
    EntrySide,
    JournalEntry,
    JournalEntryPayload,
    JournalEntryStatus,
    JournalEntryType,
    JournalLine,
    JournalLinePayload,
    ReversalRequest,
)
from journal_desk.models.reports import TrialBalance, TrialBalanceAccount
from journal_desk.models.validation import (
    Unvalidated,
    Validated,
    ValidationResult,
    ValidationState,
    ValidationUnavailable,
    Validating,
)

__all__ = [
    # Chart of accounts
    "Account",
    "AccountStatus",
    "AccountType",
    # Journal entries
    "EntrySide",
    "JournalEntry",
    "JournalEntryPayload",
    "JournalEntryStatus",
    "JournalEntryType",
    "JournalLine",
    "JournalLinePayload",
    "ReversalRequest",
    # Composition
    "DraftLine",
    "JournalEntryDraft",
    # Validation
    "ValidationResult",
    "ValidationState",
    "Unvalidated",
    "Validating",
    "Validated",
    "ValidationUnavailable",
    # Reports
    "TrialBalance",
    "TrialBalanceAccount",
]
