"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as two overrides for the same occurrence."""


class InvalidRuleError(ValidationError):
    """Recurrence rule that cannot be expanded (bad interval, frequency or dates)."""

    def __init__(self, rule_id: str, reason: str):
        self.rule_id = rule_id
        self.reason = reason
        super().__init__(f"Recurring rule {rule_id} is invalid: {reason}")


class UnboundedExpansionError(DomainError):
    """Expansion exceeded its hard iteration cap."""

    def __init__(self, rule_id: str, limit: int):
        self.rule_id = rule_id
        self.limit = limit
        super().__init__(
            f"Expansion of recurring rule {rule_id} exceeded {limit} steps"
        )


class MissingConversionRateError(DomainError):
    """Currency has no entry in the static conversion table."""

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"No conversion rate for currency '{currency}'")


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def rule_not_found(rule_id: str) -> str:
    """Return message for missing recurring rule."""
    return f"Recurring rule {rule_id} not found"


def duplicate_override(rule_id: str, original_date) -> str:
    """Return message for a second override on the same occurrence."""
    return (
        f"Recurring rule {rule_id} already has an override for the occurrence "
        f"on {original_date}"
    )


def account_type_mismatch(account_id: int, expected: str) -> str:
    """Return message when an operation needs a specific account type."""
    return f"Account {account_id} is not a {expected.replace('_', ' ')} account"
