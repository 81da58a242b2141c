"""Base model utilities for journal-desk wire schemas.

The ledger API speaks camelCase JSON while the Python side uses snake_case
attributes, so every schema derives from ``CamelModel``.  Money travels as
a JSON number but is held as ``Decimal`` in memory.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

ZERO = Decimal("0")

Money = Annotated[
    Decimal,
    # floats go through str() so 99.99 stays 99.99 rather than its binary expansion
    BeforeValidator(lambda v: Decimal(str(v)) if isinstance(v, float) else v),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Pydantic base accepting both ``allowTransactions`` and ``allow_transactions``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
