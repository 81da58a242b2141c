"""Chart of accounts as seen by the journal composer (read-only)."""
from __future__ import annotations

import enum

from journal_desk.models.base import ZERO, CamelModel, Money


class AccountType(str, enum.Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class AccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class Account(CamelModel):
    """Chart of Accounts entry."""
    id: str
    code: str
    name: str
    description: str | None = None
    type: AccountType
    status: AccountStatus = AccountStatus.ACTIVE
    allow_transactions: bool = True
    current_balance: Money = ZERO
    debit_balance: Money = ZERO
    credit_balance: Money = ZERO
    parent_account_id: str | None = None
    level: int = 0

    @property
    def is_postable(self) -> bool:
        """Only active accounts that allow transactions may receive lines."""
        return self.status == AccountStatus.ACTIVE and self.allow_transactions

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

    def __repr__(self) -> str:
        return f"<Account {self.code!r} {self.name!r} {self.status.value}>"
