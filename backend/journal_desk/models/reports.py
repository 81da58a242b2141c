"""Trial balance report schemas."""
from __future__ import annotations

import datetime

from pydantic import field_validator

from journal_desk.models.account import AccountType
from journal_desk.models.base import ZERO, CamelModel, Money
from journal_desk.models.journal import _date_part


class TrialBalanceAccount(CamelModel):
    id: str
    code: str
    name: str
    type: AccountType
    debit_balance: Money = ZERO
    credit_balance: Money = ZERO
    net_balance: Money = ZERO


class TrialBalance(CamelModel):
    as_of_date: datetime.date
    accounts: list[TrialBalanceAccount] = []
    total_debits: Money = ZERO
    total_credits: Money = ZERO
    is_balanced: bool = False

    @field_validator("as_of_date", mode="before")
    @classmethod
    def strip_time(cls, v):
        return _date_part(v)
