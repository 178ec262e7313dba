"""
Contract entity and its lifecycle rules.

A contract belongs to one client, spans a period starting at ``start_date`` and
optionally ending at ``end_date``, and carries a cost. It is active at instant
``t`` iff it has no end date or its end date is strictly after ``t``.

Mutations go through explicit methods that update ``last_modified`` as part of
the same change; persistence is the store's job and happens only on ``save``.
Contracts are never deleted: closing one is a state transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from contract_ledger.domain.clock import DEFAULT_CLOCK, Clock, ensure_aware
from contract_ledger.domain.errors import InvalidPeriod
from contract_ledger.domain.money import Money, MoneyLike


def is_active(end_date: Optional[datetime], at: datetime) -> bool:
    """Active predicate shared by entities, stores and aggregators."""
    return end_date is None or end_date > at


@dataclass
class Contract:
    """
    Representation of a single row in the `contracts` table.

    ``id`` is None until the contract is saved for the first time.
    """

    client_id: UUID
    start_date: datetime
    end_date: Optional[datetime]
    cost_amount: Money
    last_modified: datetime
    id: Optional[UUID] = None

    @classmethod
    def create(
        cls,
        client_id: UUID,
        cost: MoneyLike,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        clock: Clock = DEFAULT_CLOCK,
    ) -> "Contract":
        """
        Build a new, unsaved contract.

        ``start`` defaults to now. Raises InvalidPeriod when ``end`` is given and
        not strictly after the effective start, InvalidCost for a bad amount.
        """
        if client_id is None:
            raise ValueError("client_id must not be None")
        now = clock.now()
        effective_start = ensure_aware(start) if start is not None else now
        if end is not None and ensure_aware(end) <= effective_start:
            raise InvalidPeriod(effective_start, end)
        return cls(
            client_id=client_id,
            start_date=effective_start,
            end_date=end,
            cost_amount=Money.of(cost),
            last_modified=now,
        )

    def is_active_at(self, at: datetime) -> bool:
        return is_active(self.end_date, at)

    def change_cost(self, new_cost: MoneyLike, clock: Clock = DEFAULT_CLOCK) -> None:
        """Replace the cost. The period is not re-checked."""
        self.cost_amount = Money.of(new_cost)
        self._touch(clock.now())

    def close_now(self, clock: Clock = DEFAULT_CLOCK) -> None:
        """
        End the contract at the current instant.

        Calling it again on a closed contract moves the end date forward;
        callers that need close-once semantics must check ``is_active_at`` first.
        """
        now = clock.now()
        self.end_date = now
        self._touch(now)

    def _touch(self, now: datetime) -> None:
        # last_modified never moves backwards, even if the clock does.
        self.last_modified = max(self.last_modified, now)


__all__ = ["Contract", "is_active"]
