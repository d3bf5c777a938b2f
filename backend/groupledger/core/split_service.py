"""
Split Calculator - per-participant shares of an expense.

Responsibilities:
- Calculate equal, exact and percentage splits
- Validate that custom splits add up before anything is written

Shares are integer cents rounded half-up. Equal shares are rounded
independently, so 100.00 across three people gives 33.33 each and the
leftover cent stays unassigned.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from groupledger.errors import InvalidInputError, LedgerError, SplitMismatchError
from groupledger.utils.enums import SplitType
from groupledger.utils.money import from_cents, to_cents, to_decimal

PERCENT_TOLERANCE = Decimal("0.01")


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class SplitCalculator:
    """Pure split arithmetic; no storage access."""

    @staticmethod
    def parse_split_type(split_type: Any) -> SplitType:
        try:
            return SplitType(split_type)
        except ValueError:
            allowed = ", ".join(t.value for t in SplitType)
            raise InvalidInputError(f"Unknown split type {split_type!r}, expected one of: {allowed}")

    @classmethod
    def calculate_split(
        cls,
        amount: Any,
        participant_ids: Sequence[str],
        split_type: Any,
        custom: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, int]:
        """
        Calculate what each participant owes.

        Args:
            amount: Expense total
            participant_ids: Ordered, non-empty, duplicate-free user IDs
            split_type: equal | exact | percentage
            custom: {user_id: amount} for exact, {user_id: percentage} for
                percentage; must cover exactly the participants

        Returns:
            {user_id: owed cents} in participant order

        Raises:
            InvalidInputError: malformed arguments
            SplitMismatchError: custom values do not add up
        """
        split_type = cls.parse_split_type(split_type)
        participants = list(participant_ids or [])
        if not participants:
            raise InvalidInputError("At least one participant is required")
        if len(participants) != len(set(participants)):
            raise InvalidInputError("Duplicate participants in split")

        total_cents = cls.check_split(amount, split_type, custom)

        if split_type == SplitType.EQUAL:
            return cls.calculate_equal_split(total_cents, participants)

        if set(custom) != set(participants):
            missing = sorted(set(participants) - set(custom))
            extra = sorted(set(custom) - set(participants))
            raise InvalidInputError(
                f"Custom split must cover exactly the participants (missing: {missing}, unexpected: {extra})"
            )

        if split_type == SplitType.EXACT:
            return cls.calculate_exact_split(participants, custom)
        return cls.calculate_percentage_split(total_cents, participants, custom)

    @classmethod
    def calculate_equal_split(cls, total_cents: int, participant_ids: List[str]) -> Dict[str, int]:
        share = _round_cents(Decimal(total_cents) / len(participant_ids))
        return {user_id: share for user_id in participant_ids}

    @classmethod
    def calculate_exact_split(cls, participant_ids: List[str], amounts: Mapping[str, Any]) -> Dict[str, int]:
        return {user_id: to_cents(amounts[user_id], f"amount for {user_id}") for user_id in participant_ids}

    @classmethod
    def calculate_percentage_split(
        cls,
        total_cents: int,
        participant_ids: List[str],
        percentages: Mapping[str, Any],
    ) -> Dict[str, int]:
        total = Decimal(total_cents)
        return {
            user_id: _round_cents(total * to_decimal(percentages[user_id], "percentage") / 100)
            for user_id in participant_ids
        }

    @classmethod
    def check_split(
        cls,
        amount: Any,
        split_type: Any,
        custom: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Raise if the split configuration is inconsistent; return total cents."""
        split_type = cls.parse_split_type(split_type)
        total_cents = to_cents(amount)
        if total_cents <= 0:
            raise InvalidInputError("Amount must be greater than zero")

        if split_type == SplitType.EQUAL:
            return total_cents

        if not custom:
            raise InvalidInputError(f"A {split_type.value} split needs per-participant values")

        if split_type == SplitType.EXACT:
            amounts = [to_cents(v, f"amount for {uid}") for uid, v in custom.items()]
            if any(a < 0 for a in amounts):
                raise InvalidInputError("Split amounts cannot be negative")
            amounts_sum = sum(amounts)
            if amounts_sum != total_cents:
                raise SplitMismatchError(
                    f"Amounts must sum to {from_cents(total_cents):.2f}. "
                    f"Current sum: {from_cents(amounts_sum):.2f}",
                    expected=from_cents(total_cents),
                    actual=from_cents(amounts_sum),
                )
            return total_cents

        percentages = [to_decimal(v, f"percentage for {uid}") for uid, v in custom.items()]
        if any(p < 0 for p in percentages):
            raise InvalidInputError("Percentages cannot be negative")
        total_pct = sum(percentages, Decimal("0"))
        if abs(total_pct - 100) > PERCENT_TOLERANCE:
            raise SplitMismatchError(
                f"Percentages must sum to 100%. Current sum: {total_pct:.2f}%",
                expected=100.0,
                actual=float(total_pct),
            )
        return total_cents

    @classmethod
    def validate_split(
        cls,
        amount: Any,
        split_type: Any,
        custom: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate a split configuration without calculating it.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            cls.check_split(amount, split_type, custom)
        except LedgerError as e:
            return False, e.message
        return True, None


calculate_split = SplitCalculator.calculate_split
validate_split = SplitCalculator.validate_split
