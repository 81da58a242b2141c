"""Journal entry wire schemas: persisted entries and request payloads."""
from __future__ import annotations

import datetime
import enum
from typing import Any

from pydantic import field_validator

from journal_desk.models.base import ZERO, CamelModel, Money


class JournalEntryType(str, enum.Enum):
    STANDARD = "STANDARD"
    ADJUSTING = "ADJUSTING"
    CLOSING = "CLOSING"
    REVERSING = "REVERSING"


class JournalEntryStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    REVERSED = "REVERSED"


class EntrySide(str, enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"


def _date_part(value: Any) -> Any:
    # The API may return full ISO timestamps for entry dates.
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class JournalLine(CamelModel):
    """Individual debit or credit line of a persisted journal entry."""
    id: str | None = None
    account_id: str
    description: str = ""
    debit_amount: Money = ZERO
    credit_amount: Money = ZERO
    reference: str | None = None

    def __repr__(self) -> str:
        return (
            f"<JournalLine {self.account_id!r} "
            f"debit={self.debit_amount} credit={self.credit_amount}>"
        )


class JournalEntry(CamelModel):
    """A journal entry as stored by the ledger."""
    id: str
    entry_number: int | str | None = None
    date: datetime.date
    type: JournalEntryType = JournalEntryType.STANDARD
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    description: str
    reference: str | None = None
    lines: list[JournalLine] = []
    total_debits: Money = ZERO
    total_credits: Money = ZERO
    reversal_entry_id: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time(cls, v):
        return _date_part(v)

    def __repr__(self) -> str:
        return f"<JournalEntry #{self.entry_number} status={self.status.value!r}>"


class JournalLinePayload(CamelModel):
    account_id: str = ""
    description: str = ""
    debit_amount: Money = ZERO
    credit_amount: Money = ZERO
    reference: str | None = None


class JournalEntryPayload(CamelModel):
    """Request body shared by validate, create and update.

    Header fields are optional so that an incomplete draft can still be
    sent for server-side validation while the user is typing.
    """
    date: datetime.date | None = None
    type: JournalEntryType | None = None
    description: str = ""
    reference: str | None = None
    lines: list[JournalLinePayload] = []


class ReversalRequest(CamelModel):
    reversal_date: datetime.date
    description: str | None = None
