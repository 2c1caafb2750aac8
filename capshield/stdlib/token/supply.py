"""
Supply cap guard: cumulative issuance against an immutable cap.

``total_minted`` only ever grows. Burns reduce total supply in the balance
ledger but never give headroom back here, so once ``total_minted == cap`` no
further issuance is possible.

Issuance is bucketed into named categories (``reward`` for AngelSEED; ``team``,
``treasury``, ``dao``, ``revenue`` for CAPX). The sum of the category counters
always equals ``total_minted``.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from ...errors import MaxSupplyExceeded, UnknownCategory
from ...runtime.storage_api import Journal, JournaledMap
from ..math import require_u256, u256_add
from . import require_amount


class SupplyCapGuard:
    def __init__(self, journal: Journal, cap: int, categories: Iterable[str]) -> None:
        require_u256(cap, field="cap")
        if cap == 0:
            raise ValueError("cap must be positive")
        self._cap = cap
        self._categories: Tuple[str, ...] = tuple(categories)
        if not self._categories:
            raise ValueError("at least one issuance category is required")
        self._minted: JournaledMap[str, int] = JournaledMap(journal, "minted", default=0)

    @property
    def cap(self) -> int:
        return self._cap

    @property
    def categories(self) -> Tuple[str, ...]:
        return self._categories

    def total_minted(self) -> int:
        return sum(self._minted[c] for c in self._categories)

    def headroom(self) -> int:
        return self._cap - self.total_minted()

    def allocation(self, category: str) -> int:
        self._require_category(category)
        return self._minted[category]

    def mint_allocation(self) -> Dict[str, int]:
        return {c: self._minted[c] for c in self._categories}

    def check(self, amount: int) -> int:
        """Raise MaxSupplyExceeded if ``amount`` does not fit; return the new total."""
        total = self.total_minted()
        new_total = total + amount
        if new_total > self._cap:
            raise MaxSupplyExceeded(
                "issuance would exceed the supply cap",
                context={"cap": self._cap, "total_minted": total, "amount": amount},
            )
        return new_total

    def reserve_issuance(self, amount: int, category: str) -> int:
        """Count ``amount`` against the cap under ``category``; returns new total_minted."""
        self._require_category(category)
        require_amount(amount)
        new_total = self.check(amount)
        self._minted[category] = u256_add(self._minted[category], amount)
        return new_total

    def _require_category(self, category: str) -> None:
        if category not in self._categories:
            raise UnknownCategory(
                f"unknown issuance category {category!r}",
                context={"category": category, "categories": list(self._categories)},
            )


__all__ = ["SupplyCapGuard"]
