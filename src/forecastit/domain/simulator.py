"""Cash-flow simulator.

Merges explicit rules, synthetic obligations, unpaid one-off bills and goal
contributions into one chronological event stream in a base currency, then
walks it to produce balance trajectories and their lowest points.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Sequence

from forecastit.domain.currency import ConversionTable
from forecastit.domain.dates import adjust_for_weekend
from forecastit.domain.entities import (
    Account,
    ForecastEvent,
    ForecastIssue,
    ForecastSummary,
    Goal,
    LowestPoint,
    ObligationOrigin,
    Occurrence,
    OneOffObligation,
    Override,
    RecurrenceRule,
    TrajectoryPoint,
    TransactionKind,
)
from forecastit.domain.errors import (
    InvalidRuleError,
    MissingConversionRateError,
    UnboundedExpansionError,
    duplicate_override,
)
from forecastit.domain.obligations import ExplicitObligation, Obligation, SyntheticObligation

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Longest shift a weekend adjustment can make
WEEKEND_SLACK = timedelta(days=2)


class Trajectory:
    """Daily balance trajectory over a forecast window.

    Iterating yields one TrajectoryPoint per day, holding the balance after
    that day's events. Points are computed on demand from the event list;
    each iteration starts over, so the sequence can be consumed repeatedly.
    """

    def __init__(
        self,
        events: Sequence[ForecastEvent],
        starting_balance: Decimal,
        start_date: date,
        end_date: date,
        account_id: Optional[int] = None,
    ):
        self.events = events
        self.starting_balance = starting_balance
        self.start_date = start_date
        self.end_date = end_date
        self.account_id = account_id

    def __iter__(self) -> Iterator[TrajectoryPoint]:
        balance = self.starting_balance
        events = iter(self.events)
        pending = next(events, None)
        current = self.start_date
        while current <= self.end_date:
            while pending is not None and pending.date <= current:
                if self.account_id is None:
                    balance = pending.total_balance
                elif pending.account_id == self.account_id:
                    balance = pending.balance
                pending = next(events, None)
            yield TrajectoryPoint(date=current, balance=balance)
            current += timedelta(days=1)

    def __len__(self) -> int:
        if self.end_date < self.start_date:
            return 0
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class ForecastResult:
    """Outcome of a forecast run."""

    start_date: date
    end_date: date
    base_currency: str
    starting_balances: dict[int, Decimal]
    unassigned_balance: Decimal
    events: tuple[ForecastEvent, ...]
    lowest_point: LowestPoint
    account_lowest_points: dict[int, LowestPoint] = field(default_factory=dict)
    first_shortfall: Optional[date] = None
    issues: tuple[ForecastIssue, ...] = ()

    @property
    def starting_total(self) -> Decimal:
        return sum(self.starting_balances.values(), ZERO)

    @property
    def ending_total(self) -> Decimal:
        if self.events:
            return self.events[-1].total_balance
        return self.starting_total

    @property
    def trajectory(self) -> Trajectory:
        """Combined balance trajectory across all accounts."""
        return Trajectory(self.events, self.starting_total, self.start_date, self.end_date)

    def account_trajectory(self, account_id: int) -> Trajectory:
        """Balance trajectory of a single account."""
        return Trajectory(
            [e for e in self.events if e.account_id == account_id],
            self.starting_balances.get(account_id, ZERO),
            self.start_date,
            self.end_date,
            account_id=account_id,
        )

    def summary(self) -> ForecastSummary:
        return ForecastSummary(
            start_date=self.start_date,
            end_date=self.end_date,
            base_currency=self.base_currency,
            starting_balance=self.starting_total,
            ending_balance=self.ending_total,
            lowest_point=self.lowest_point,
            first_shortfall=self.first_shortfall,
            account_lowest_points=dict(self.account_lowest_points),
            issues=self.issues,
        )


@dataclass(frozen=True)
class _Pending:
    date: date
    account_id: Optional[int]
    amount: Decimal
    occurrence: Occurrence
    is_goal: bool


def _issue(subject_id: str, error: Exception) -> ForecastIssue:
    return ForecastIssue(subject_id=subject_id, error_type=type(error).__name__, message=str(error))


def _index_overrides(overrides: Iterable[Override], issues: list[ForecastIssue]) -> dict:
    """Index overrides by natural key, keeping the first of any duplicates."""
    index: dict = {}
    for override in overrides:
        if override.key in index:
            issues.append(
                ForecastIssue(
                    subject_id=override.rule_id,
                    error_type="ConflictError",
                    message=duplicate_override(override.rule_id, override.original_date),
                )
            )
            continue
        index[override.key] = override
    return index


def _goal_obligations(
    goals: Iterable[Goal],
    account_ids: set[int],
    known_obligation_ids: set[str],
    today: date,
    horizon_end: date,
) -> tuple[dict[str, Goal], list[Occurrence]]:
    """Split goals into rule-linked contributions and one-time target events."""
    linked: dict[str, Goal] = {}
    target_events: list[Occurrence] = []
    for goal in goals:
        if goal.payment_account_id is not None and goal.payment_account_id not in account_ids:
            continue
        if goal.linked_rule_id is not None:
            if goal.linked_rule_id in known_obligation_ids:
                linked[goal.linked_rule_id] = goal
            continue
        if goal.target_date is None or not today <= goal.target_date <= horizon_end:
            continue
        remaining = goal.remaining
        if remaining == 0:
            continue
        amount = -remaining if goal.kind == TransactionKind.EXPENSE else remaining
        target_events.append(
            Occurrence(
                obligation_id=f"goal-{goal.id}",
                account_id=goal.payment_account_id,
                date=goal.target_date,
                original_date=goal.target_date,
                amount=amount,
                currency=goal.currency,
                description=goal.name,
                origin=ObligationOrigin.GOAL,
            )
        )
    return linked, target_events


def forecast(
    accounts: Sequence[Account],
    rules: Iterable[RecurrenceRule] = (),
    synthetics: Iterable[SyntheticObligation] = (),
    one_offs: Iterable[OneOffObligation] = (),
    goals: Iterable[Goal] = (),
    horizon_end: Optional[date] = None,
    today: Optional[date] = None,
    overrides: Iterable[Override] = (),
    conversion: Optional[ConversionTable] = None,
    apply_weekend_adjustment: bool = True,
) -> ForecastResult:
    """Simulate account balances from ``today`` through ``horizon_end``.

    Every account balance and obligation amount is converted into the
    conversion table's base currency. Rules and synthetic obligations are
    expanded and resolved against ``overrides``; unpaid one-off bills and
    goal target events due in the window are added. Weekend adjustment, when
    enabled, moves only the settlement date used here, never a rule's
    cadence; occurrences whose cadence date sits just outside the window
    but settle inside it are included. Within a day, occurrences are applied
    outflows first, and both legs of a transfer settle together before the
    combined lowest point is checked.

    An invalid rule, an expansion that hits its cap, or a currency missing
    from the table excludes only the affected obligation or account; the
    problem is reported in ``issues`` and the rest of the forecast runs.

    Args:
        accounts: Accounts to simulate (their balances are the starting point)
        rules: Stored recurrence rules
        synthetics: Derived obligations (see ``derivers``)
        one_offs: One-off bills and deposits
        goals: Financial goals
        horizon_end: Last simulated date (inclusive)
        today: Reference date, first simulated date
        overrides: Per-occurrence overrides for rules and synthetic rules
        conversion: Static conversion table (defaults to EUR base)
        apply_weekend_adjustment: Shift weekend settlements per rule policy

    Returns:
        ForecastResult with events, lowest points and issues
    """
    if today is None or horizon_end is None:
        raise ValueError("Both today and horizon_end are required")
    table = conversion or ConversionTable()
    issues: list[ForecastIssue] = []

    starting_balances: dict[int, Decimal] = {}
    for account in accounts:
        try:
            starting_balances[account.id] = table.convert(account.balance, account.currency)
        except MissingConversionRateError as exc:
            logger.warning("Excluding account %s from forecast: %s", account.id, exc)
            issues.append(_issue(f"account-{account.id}", exc))

    account_ids = set(starting_balances)
    override_index = _index_overrides(overrides, issues)

    obligations: list[Obligation] = [ExplicitObligation(rule) for rule in rules]
    obligations.extend(synthetics)
    obligations.extend(one_offs)
    known_ids = {o.obligation_id for o in obligations}
    goals_by_rule, goal_events = _goal_obligations(goals, account_ids, known_ids, today, horizon_end)

    pending: list[_Pending] = []

    def collect(obligation_id: str, occurrences: list[Occurrence], is_goal: bool) -> None:
        converted: list[_Pending] = []
        try:
            for occ in occurrences:
                if occ.account_id is not None and occ.account_id not in account_ids:
                    continue
                when = occ.date
                if apply_weekend_adjustment:
                    when = adjust_for_weekend(when, occ.weekend_adjustment)
                    if occ.date >= today:
                        when = max(when, today)
                if not today <= when <= horizon_end:
                    continue
                converted.append(
                    _Pending(
                        date=when,
                        account_id=occ.account_id,
                        amount=table.convert(occ.amount, occ.currency),
                        occurrence=occ,
                        is_goal=is_goal,
                    )
                )
        except MissingConversionRateError as exc:
            logger.warning("Excluding %s from forecast: %s", obligation_id, exc)
            issues.append(_issue(obligation_id, exc))
            return
        pending.extend(converted)

    expand_start, expand_end = today, horizon_end
    if apply_weekend_adjustment:
        expand_start -= WEEKEND_SLACK
        expand_end += WEEKEND_SLACK

    for obligation in obligations:
        obligation_id = obligation.obligation_id
        try:
            if isinstance(obligation, OneOffObligation):
                occurrences = obligation.occurrences(expand_start, expand_end)
            else:
                occurrences = obligation.occurrences(expand_start, expand_end, override_index)
        except (InvalidRuleError, UnboundedExpansionError) as exc:
            logger.warning("Excluding %s from forecast: %s", obligation_id, exc)
            issues.append(_issue(obligation_id, exc))
            continue
        collect(obligation_id, occurrences, obligation_id in goals_by_rule)

    for occ in goal_events:
        collect(occ.obligation_id, [occ], True)

    # Legs of one occurrence settle together
    groups: dict[tuple, list[_Pending]] = {}
    for item in pending:
        key = (item.date, item.occurrence.obligation_id, item.occurrence.original_date)
        groups.setdefault(key, []).append(item)
    ordered = sorted(
        groups.items(),
        key=lambda kv: (kv[0][0], sum((p.amount for p in kv[1]), ZERO), kv[0][1], kv[0][2]),
    )

    balances = dict(starting_balances)
    total = sum(starting_balances.values(), ZERO)
    unassigned = ZERO
    lowest = LowestPoint(date=today, balance=total)
    account_lowest = {
        account_id: LowestPoint(date=today, balance=balance, account_id=account_id)
        for account_id, balance in starting_balances.items()
    }
    first_shortfall = today if total < 0 else None

    events: list[ForecastEvent] = []
    for (when, _, _), legs in ordered:
        legs.sort(key=lambda p: (p.amount, p.account_id or 0))
        total += sum((p.amount for p in legs), ZERO)
        for item in legs:
            if item.account_id is None:
                unassigned += item.amount
                balance = unassigned
            else:
                balances[item.account_id] += item.amount
                balance = balances[item.account_id]
                if balance < account_lowest[item.account_id].balance:
                    account_lowest[item.account_id] = LowestPoint(
                        date=when, balance=balance, account_id=item.account_id
                    )

            occ = item.occurrence
            events.append(
                ForecastEvent(
                    date=when,
                    account_id=item.account_id,
                    amount=item.amount,
                    balance=balance,
                    total_balance=total,
                    description=occ.description,
                    origin=occ.origin,
                    obligation_id=occ.obligation_id,
                    is_goal=item.is_goal,
                )
            )

        if total < lowest.balance:
            lowest = LowestPoint(date=when, balance=total, account_id=legs[0].account_id)
        if first_shortfall is None and total < 0:
            first_shortfall = when

    logger.debug(
        "Forecast %s..%s: %d events, %d issues", today, horizon_end, len(events), len(issues)
    )
    return ForecastResult(
        start_date=today,
        end_date=horizon_end,
        base_currency=table.base_currency,
        starting_balances=starting_balances,
        unassigned_balance=unassigned,
        events=tuple(events),
        lowest_point=lowest,
        account_lowest_points=account_lowest,
        first_shortfall=first_shortfall,
        issues=tuple(issues),
    )
