"""
Settlement Processor - record a payment against an existing debt.

Responsibilities:
- Validate the payment against the outstanding balance
- Append the immutable settlement record
- Reduce (or clear) the debt it pays off
"""
import logging
from typing import Any

from groupledger.errors import (
    ExcessAmountError,
    InvalidInputError,
    MembershipError,
    NoDebtError,
    PersistenceError,
    ValidationError,
)
from groupledger.settlements.models import Settlement
from groupledger.utils.money import from_cents, to_cents

logger = logging.getLogger(__name__)


class SettlementProcessor:

    def __init__(self, store):
        self.store = store

    def settle(self, group_id: str, payer_id: str, payee_id: str, amount: Any) -> Settlement:
        """
        Apply a payment from payer (the debtor) to payee (the creditor).

        Args:
            group_id: Group the debt belongs to
            payer_id: User paying off the debt
            payee_id: User receiving the payment
            amount: Amount paid; may not exceed what is owed

        Returns:
            The recorded settlement

        Raises:
            ValidationError: amount is not positive
            NoDebtError: payer owes payee nothing
            ExcessAmountError: amount exceeds the outstanding balance
            PersistenceError: the record was written but the balance was
                not reduced; ``error.record`` holds the settlement
        """
        amount_cents = to_cents(amount)
        if amount_cents <= 0:
            raise ValidationError("Settlement amount must be positive")
        if payer_id == payee_id:
            raise InvalidInputError("Payer and payee must be different users")
        for user_id in (payer_id, payee_id):
            if not self.store.is_member(group_id, user_id):
                raise MembershipError(f"User {user_id} is not a member of group {group_id}", user_id=user_id)

        with self.store.group_scope(group_id):
            balance = self.store.get_balance(group_id, payer_id, payee_id)
            if not balance or balance.amount_cents <= 0:
                logger.warning("Rejected settlement %s -> %s in group %s: no debt", payer_id, payee_id, group_id)
                raise NoDebtError("No outstanding balance to settle")

            if amount_cents > balance.amount_cents:
                outstanding = from_cents(balance.amount_cents)
                logger.warning(
                    "Rejected settlement %s -> %s in group %s: %.2f exceeds %.2f",
                    payer_id, payee_id, group_id, from_cents(amount_cents), outstanding,
                )
                raise ExcessAmountError(
                    f"Settlement amount cannot exceed the outstanding balance of ${outstanding:.2f}",
                    outstanding=outstanding,
                )

            settlement = self.store.create_settlement(group_id, payer_id, payee_id, amount_cents)

            try:
                self.store.set_balance(group_id, payer_id, payee_id, balance.amount_cents - amount_cents)
            except PersistenceError as e:
                logger.exception("Settlement %s recorded but balance update failed", settlement.id)
                raise PersistenceError("Settlement recorded but balance update failed", record=settlement) from e

        logger.info(
            "Settled %.2f from %s to %s in group %s", from_cents(amount_cents), payer_id, payee_id, group_id
        )
        return settlement
