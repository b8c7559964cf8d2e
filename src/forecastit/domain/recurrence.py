"""Recurrence rule validation and expansion."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from forecastit.domain.dates import step
from forecastit.domain.entities import (
    Frequency,
    ObligationOrigin,
    Occurrence,
    RecurrenceRule,
    TransactionKind,
)
from forecastit.domain.errors import InvalidRuleError, UnboundedExpansionError

logger = logging.getLogger(__name__)

MAX_EXPANSION_STEPS = 5000


def validate_rule(rule: RecurrenceRule) -> None:
    """Check that a rule can be expanded.

    Raises:
        InvalidRuleError: If interval is not a positive integer, frequency or
            kind is unknown, amount is negative, the pinned day is out of
            range, or the date fields are inconsistent
    """
    if isinstance(rule.interval, bool) or not isinstance(rule.interval, int) or rule.interval < 1:
        raise InvalidRuleError(rule.id, f"interval must be a positive integer, got {rule.interval!r}")

    try:
        Frequency(rule.frequency)
    except ValueError:
        raise InvalidRuleError(rule.id, f"unknown frequency {rule.frequency!r}") from None

    try:
        TransactionKind(rule.kind)
    except ValueError:
        raise InvalidRuleError(rule.id, f"unknown kind {rule.kind!r}") from None

    if rule.amount < 0:
        raise InvalidRuleError(rule.id, "amount must be a positive magnitude")

    if rule.pinned_day is not None and not 1 <= rule.pinned_day <= 31:
        raise InvalidRuleError(rule.id, f"pinned day {rule.pinned_day} is outside 1-31")

    if rule.end_date is not None and rule.end_date < rule.start_date:
        raise InvalidRuleError(
            rule.id, f"end date {rule.end_date} is before start date {rule.start_date}"
        )

    if rule.next_due_date is not None and rule.next_due_date < rule.start_date:
        raise InvalidRuleError(
            rule.id,
            f"next due date {rule.next_due_date} is before start date {rule.start_date}",
        )


def step_rule(rule: RecurrenceRule, current: date) -> date:
    """Return the occurrence date following ``current`` for a rule."""
    return step(
        current,
        Frequency(rule.frequency),
        rule.interval,
        pinned_day=rule.pinned_day or rule.start_date.day,
        anchor_month=rule.start_date.month,
    )


def _fast_forward(rule: RecurrenceRule, cursor: date, target: date, max_steps: int) -> date:
    """Advance ``cursor`` to the first cadence date on or after ``target``."""
    if cursor >= target:
        return cursor

    frequency = Frequency(rule.frequency)
    if frequency in (Frequency.DAILY, Frequency.WEEKLY):
        stride = rule.interval * (7 if frequency == Frequency.WEEKLY else 1)
        behind = (target - cursor).days
        return cursor + timedelta(days=-(-behind // stride) * stride)

    steps = 0
    while cursor < target:
        if rule.end_date is not None and cursor > rule.end_date:
            return cursor
        cursor = step_rule(rule, cursor)
        steps += 1
        if steps > max_steps:
            raise UnboundedExpansionError(rule.id, max_steps)
    return cursor


def _legs(
    rule: RecurrenceRule, when: date, origin: ObligationOrigin
) -> list[Occurrence]:
    """Build the per-account occurrences for one cadence date."""
    amount = Decimal(rule.amount)
    common = dict(
        obligation_id=rule.id,
        date=when,
        original_date=when,
        currency=rule.currency,
        description=rule.description,
        origin=origin,
        weekend_adjustment=rule.weekend_adjustment,
    )

    kind = TransactionKind(rule.kind)
    if kind == TransactionKind.INCOME:
        return [Occurrence(account_id=rule.account_id, amount=amount, **common)]
    if kind == TransactionKind.EXPENSE:
        return [Occurrence(account_id=rule.account_id, amount=-amount, **common)]

    legs = [
        Occurrence(
            account_id=rule.account_id,
            amount=-amount,
            counterparty_account_id=rule.destination_account_id,
            **common,
        )
    ]
    if rule.destination_account_id is not None:
        legs.append(
            Occurrence(
                account_id=rule.destination_account_id,
                amount=amount,
                counterparty_account_id=rule.account_id,
                **common,
            )
        )
    return legs


def expand(
    rule: RecurrenceRule,
    window_start: date,
    window_end: date,
    origin: Optional[ObligationOrigin] = None,
    max_steps: int = MAX_EXPANSION_STEPS,
) -> list[Occurrence]:
    """Expand a rule into its occurrences inside ``[window_start, window_end]``.

    Expansion starts from the rule's ``next_due_date`` cursor (or its start
    date when no cursor is set) and never mutates the rule, so calling it
    again with the same inputs yields the same sequence. Transfers produce
    an expense leg at the source account and an income leg at the
    destination account for every cadence date.

    Args:
        rule: Recurrence rule to expand
        window_start: First date of the window (inclusive)
        window_end: Last date of the window (inclusive)
        origin: Origin tag for the occurrences (defaults to explicit)
        max_steps: Hard cap on fast-forward and emission steps

    Returns:
        Occurrences ordered by date

    Raises:
        InvalidRuleError: If the rule fails validation
        UnboundedExpansionError: If either loop exceeds ``max_steps``
    """
    validate_rule(rule)
    if origin is None:
        origin = ObligationOrigin.EXPLICIT

    if window_end < window_start:
        return []

    cursor = rule.next_due_date or rule.start_date
    cursor = _fast_forward(rule, cursor, window_start, max_steps)

    occurrences: list[Occurrence] = []
    emitted = 0
    while cursor <= window_end and (rule.end_date is None or cursor <= rule.end_date):
        occurrences.extend(_legs(rule, cursor, origin))
        cursor = step_rule(rule, cursor)
        emitted += 1
        if emitted > max_steps:
            raise UnboundedExpansionError(rule.id, max_steps)

    logger.debug(
        "Expanded rule %s into %d cadence dates between %s and %s",
        rule.id,
        emitted,
        window_start,
        window_end,
    )
    return occurrences
