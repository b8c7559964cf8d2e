"""Account domain service."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forecastit.database.base import Database
from forecastit.domain.entities import Account as AccountEntity, AccountType
from forecastit.domain.errors import ConflictError, NotFoundError, ValidationError, account_not_found


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        account_type: AccountType,
        balance: Decimal = Decimal("0"),
        currency: str = "EUR",
        **details: Any,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            account_type: Account type
            balance: Current signed balance in the account's currency
            currency: ISO currency code
            **details: Optional card, loan and property fields

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
            NotFoundError: If a referenced settlement or loan account does not exist
            ValidationError: If a day-of-month field is out of range
        """
        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        for key in ("statement_start_day", "payment_day", "payment_day_of_month"):
            day = details.get(key)
            if day is not None and not 1 <= day <= 31:
                raise ValidationError(f"{key.replace('_', ' ')} must be between 1 and 31, got {day}")

        for key in ("settlement_account_id", "linked_loan_id"):
            ref = details.get(key)
            if ref is not None and self.db.get_account(ref) is None:
                raise NotFoundError(account_not_found(ref))

        return self.db.create_account(
            name=name,
            account_type=account_type,
            balance=balance,
            currency=currency,
            **details,
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID, raising NotFoundError if it does not exist."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts()
