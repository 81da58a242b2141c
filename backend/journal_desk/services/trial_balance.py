"""Client-side trial balance check over account debit and credit balances."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from journal_desk.models.reports import TrialBalance
from journal_desk.services.balance import from_minor_units, to_minor_units

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class TrialBalanceSummary:
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool
    account_count: int


def summarize_trial_balance(rows: Iterable[Any]) -> TrialBalanceSummary:
    """Sum ``debit_balance`` and ``credit_balance`` across accounts.

    Unlike a single entry, a ledger with no activity is balanced.
    """
    grand_debits = 0
    grand_credits = 0
    count = 0
    for row in rows:
        grand_debits += to_minor_units(row.debit_balance)
        grand_credits += to_minor_units(row.credit_balance)
        count += 1

    return TrialBalanceSummary(
        total_debits=from_minor_units(grand_debits),
        total_credits=from_minor_units(grand_credits),
        difference=from_minor_units(abs(grand_debits - grand_credits)),
        is_balanced=grand_debits == grand_credits,
        account_count=count,
    )


def verify_trial_balance(report: TrialBalance) -> TrialBalanceSummary:
    """Recompute a server trial balance and flag disagreements with its totals."""
    summary = summarize_trial_balance(report.accounts)
    if summary.is_balanced != report.is_balanced:
        logger.warning(
            f"Trial balance as of {report.as_of_date} reported "
            f"is_balanced={report.is_balanced} but accounts sum to "
            f"{summary.total_debits} / {summary.total_credits}"
        )
    if (
        to_minor_units(report.total_debits) != to_minor_units(summary.total_debits)
        or to_minor_units(report.total_credits) != to_minor_units(summary.total_credits)
    ):
        logger.warning(
            f"Trial balance totals {report.total_debits} / {report.total_credits} "
            f"differ from account sums {summary.total_debits} / {summary.total_credits}"
        )
    return summary
