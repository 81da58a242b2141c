"""Chart-of-accounts registry used while composing an entry.

Loaded once per session from the ledger and treated as read-only; an
account archived mid-edit is only noticed when the ledger rejects the
submission.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from journal_desk.exceptions import AccountNotPostable
from journal_desk.models.account import Account, AccountStatus

if TYPE_CHECKING:
    from journal_desk.client import LedgerClient

logger = logging.getLogger(__name__)


class AccountRegistry:
    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: dict[str, Account] = {}
        for account in accounts:
            self._accounts[account.id] = account

    @classmethod
    async def load(cls, client: LedgerClient) -> AccountRegistry:
        """Fetch the postable accounts (active, allowing transactions)."""
        accounts = await client.list_accounts(status=AccountStatus.ACTIVE, allow_transactions=True)
        logger.info(f"Loaded {len(accounts)} postable accounts")
        return cls(accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts

    def get(self, account_id: str) -> Account | None:
        return self._accounts.get(account_id)

    def all(self) -> list[Account]:
        return sorted(self._accounts.values(), key=lambda a: a.code)

    def postable(self) -> list[Account]:
        return [a for a in self.all() if a.is_postable]

    def choices(self) -> list[tuple[str, str]]:
        """``(id, "code - name")`` pairs for a line-item account picker."""
        return [(a.id, a.label) for a in self.postable()]

    def unpostable_reason(self, account_id: str) -> str | None:
        account = self._accounts.get(account_id)
        if account is None:
            return "Account not found"
        if account.status != AccountStatus.ACTIVE:
            return f"Account {account.code} is {account.status.value.lower()}"
        if not account.allow_transactions:
            return f"Account {account.code} does not allow transactions"
        return None

    def is_postable(self, account_id: str) -> bool:
        return self.unpostable_reason(account_id) is None

    def require_postable(self, account_id: str) -> Account:
        reason = self.unpostable_reason(account_id)
        if reason:
            raise AccountNotPostable(account_id, reason)
        return self._accounts[account_id]

    def tree(self) -> list[dict[str, Any]]:
        """Accounts nested under their parents, ordered by code."""
        account_map = {}
        for a in self.all():
            account_map[a.id] = {"account": a, "children": []}

        roots = []
        for a in self.all():
            node = account_map[a.id]
            if a.parent_account_id and a.parent_account_id in account_map:
                account_map[a.parent_account_id]["children"].append(node)
            else:
                roots.append(node)
        return roots
