"""Balance computation for journal lines.

Amounts are ``Decimal`` end to end and sums are exact, so ``0.1 + 0.2``
style drift can never make a balanced entry look unbalanced.  Amounts typed
into a draft are rounded to the currency precision on entry, which keeps the
balance shown, the payload sent and the server's totals on the same figures.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from journal_desk.config import settings
from journal_desk.exceptions import Unbalanced
from journal_desk.models.base import ZERO


@dataclasses.dataclass(frozen=True)
class BalanceSummary:
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool


def parse_amount(value: Any) -> Decimal:
    """Coerce user input to a Decimal; blank or unparseable input is 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float)):
        value = str(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return amount if amount.is_finite() else ZERO


def _unit(decimals: int | None) -> Decimal:
    decimals = settings.CURRENCY_DECIMALS if decimals is None else decimals
    return Decimal(1).scaleb(-decimals)


def quantize_amount(value: Any, decimals: int | None = None) -> Decimal:
    """``parse_amount`` rounded half-up to the currency precision."""
    return parse_amount(value).quantize(_unit(decimals), rounding=ROUND_HALF_UP)


def fits_currency_precision(value: Any, decimals: int | None = None) -> bool:
    """False for amounts finer than the smallest currency unit (e.g. 100.004)."""
    amount = parse_amount(value)
    return amount == amount.quantize(_unit(decimals), rounding=ROUND_HALF_UP)


def to_minor_units(amount: Any, decimals: int | None = None) -> int:
    """Round an amount half-up to the currency precision and return it as an int."""
    decimals = settings.CURRENCY_DECIMALS if decimals is None else decimals
    return int(quantize_amount(amount, decimals).scaleb(decimals))


def from_minor_units(units: int, decimals: int | None = None) -> Decimal:
    decimals = settings.CURRENCY_DECIMALS if decimals is None else decimals
    return Decimal(units).scaleb(-decimals)


def _side(line: Any, field: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(field)
    return getattr(line, field, None)


def compute_balance(lines: Iterable[Any]) -> BalanceSummary:
    """Total the debit and credit sides of ``lines``.

    Lines may be draft lines, wire models or plain mappings; a missing
    amount counts as zero.  Totals are exact, with no per-line rounding, so
    the verdict matches what the ledger computes from the same payload.  An
    entry is balanced only when both sides are equal and greater than zero.
    """
    debits = ZERO
    credits = ZERO
    for line in lines:
        debits += parse_amount(_side(line, "debit_amount"))
        credits += parse_amount(_side(line, "credit_amount"))

    return BalanceSummary(
        total_debits=debits,
        total_credits=credits,
        difference=abs(debits - credits),
        is_balanced=debits == credits and debits > 0,
    )


def require_balanced(lines: Iterable[Any]) -> BalanceSummary:
    summary = compute_balance(lines)
    if not summary.is_balanced:
        raise Unbalanced(summary)
    return summary
