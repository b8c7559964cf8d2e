"""Uniform obligation variants consumed by the cash-flow simulator.

An obligation is anything that produces dated cash movements:

* ``ExplicitObligation`` wraps a stored recurrence rule,
* ``SyntheticObligation`` wraps a rule or an installment schedule derived
  from account metadata,
* ``OneOffObligation`` (see entities) is a single unpaid bill or deposit.

All three expose ``obligation_id`` and ``occurrences(window_start, window_end)``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from forecastit.domain.entities import (
    ObligationOrigin,
    Occurrence,
    OneOffObligation,
    RecurrenceRule,
    ScheduledPayment,
    WeekendAdjustment,
)
from forecastit.domain.overrides import OverrideIndex, resolve
from forecastit.domain.recurrence import expand


@dataclass(frozen=True)
class ExplicitObligation:
    rule: RecurrenceRule

    @property
    def obligation_id(self) -> str:
        return self.rule.id

    @property
    def origin(self) -> ObligationOrigin:
        return ObligationOrigin.EXPLICIT

    def occurrences(
        self,
        window_start: date,
        window_end: date,
        overrides: Optional[OverrideIndex] = None,
    ) -> list[Occurrence]:
        return resolve(expand(self.rule, window_start, window_end), overrides or {})


@dataclass(frozen=True)
class SyntheticObligation:
    """Obligation derived from account state; never persisted.

    Exactly one of ``rule`` or ``installments`` drives the occurrences.
    Installments move money from ``source_account_id`` to
    ``destination_account_id`` on each installment date.
    """

    id: str
    origin: ObligationOrigin
    account_id: int
    description: str
    currency: str
    rule: Optional[RecurrenceRule] = None
    installments: tuple[ScheduledPayment, ...] = ()
    source_account_id: Optional[int] = None
    destination_account_id: Optional[int] = None
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.AFTER

    @property
    def obligation_id(self) -> str:
        return self.id

    def occurrences(
        self,
        window_start: date,
        window_end: date,
        overrides: Optional[OverrideIndex] = None,
    ) -> list[Occurrence]:
        if self.rule is not None:
            expanded = expand(self.rule, window_start, window_end, origin=self.origin)
            return resolve(expanded, overrides or {})

        occurrences: list[Occurrence] = []
        for payment in self.installments:
            if not window_start <= payment.date <= window_end or payment.total_payment <= 0:
                continue
            description = f"{self.description} #{payment.installment}"
            if self.source_account_id is not None:
                occurrences.append(
                    self._installment_leg(
                        payment, self.source_account_id, -payment.total_payment,
                        self.destination_account_id, description,
                    )
                )
            if self.destination_account_id is not None:
                occurrences.append(
                    self._installment_leg(
                        payment, self.destination_account_id, payment.total_payment,
                        self.source_account_id, description,
                    )
                )
        return occurrences

    def _installment_leg(
        self,
        payment: ScheduledPayment,
        account_id: int,
        amount: Decimal,
        counterparty: Optional[int],
        description: str,
    ) -> Occurrence:
        return Occurrence(
            obligation_id=self.id,
            account_id=account_id,
            date=payment.date,
            original_date=payment.date,
            amount=amount,
            currency=self.currency,
            description=description,
            origin=self.origin,
            counterparty_account_id=counterparty,
            weekend_adjustment=self.weekend_adjustment,
        )


Obligation = Union[ExplicitObligation, SyntheticObligation, OneOffObligation]
