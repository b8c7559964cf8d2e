"""Per-occurrence exceptions applied on top of expanded recurrences."""

from dataclasses import replace
from datetime import date
from typing import Iterable, Mapping

from forecastit.domain.entities import Occurrence, Override
from forecastit.domain.errors import ConflictError, duplicate_override

OverrideIndex = Mapping[tuple[str, date], Override]


def build_override_index(overrides: Iterable[Override]) -> dict[tuple[str, date], Override]:
    """Index overrides by their (rule_id, original_date) natural key.

    Raises:
        ConflictError: If two overrides share the same key
    """
    index: dict[tuple[str, date], Override] = {}
    for override in overrides:
        if override.key in index:
            raise ConflictError(duplicate_override(override.rule_id, override.original_date))
        index[override.key] = override
    return index


def apply_override(occurrence: Occurrence, override: Override) -> Occurrence:
    """Merge an override's replacement fields into one occurrence."""
    changes: dict = {"is_override": True}
    if override.date is not None:
        changes["date"] = override.date
    if override.amount is not None:
        magnitude = abs(override.amount)
        changes["amount"] = -magnitude if occurrence.amount < 0 else magnitude
    if override.description:
        changes["description"] = override.description
    return replace(occurrence, **changes)


def resolve(
    occurrences: Iterable[Occurrence],
    overrides: OverrideIndex | Iterable[Override],
) -> list[Occurrence]:
    """Apply overrides to expanded occurrences.

    Skipped occurrences are dropped; replacements change date, amount or
    description while ``original_date`` keeps the override key, so
    resolving the same expansion again gives the same result. Both legs of
    a transfer share a key and are resolved together.

    Args:
        occurrences: Output of the recurrence expander
        overrides: Override index or plain iterable of overrides

    Returns:
        Resolved occurrences, ordered by (possibly moved) date

    Raises:
        ConflictError: If a plain iterable holds two overrides for one key
    """
    if not isinstance(overrides, Mapping):
        overrides = build_override_index(overrides)

    resolved: list[Occurrence] = []
    for occurrence in occurrences:
        override = overrides.get((occurrence.obligation_id, occurrence.original_date))
        if override is None:
            resolved.append(occurrence)
        elif not override.is_skipped:
            resolved.append(apply_override(occurrence, override))

    resolved.sort(key=lambda occ: occ.date)
    return resolved
