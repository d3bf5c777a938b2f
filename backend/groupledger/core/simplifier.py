"""Settlement suggestions - Splitwise-style debt minimization."""
from typing import List, Sequence

from groupledger.balances.models import NetBalance, Transfer


def simplify_debts(net_balances: Sequence[NetBalance]) -> List[Transfer]:
    """
    Calculate who should pay whom using greedy matching.

    The largest remaining debtor pays the largest remaining creditor until
    one side runs out. Deterministic for a given input order; not always
    the theoretical minimum number of transfers. Derived on every read and
    never stored.
    """
    # Whole cents: anything non-zero is an open position
    creditors = [[b.user_id, b.net_cents] for b in net_balances if b.net_cents > 0]
    debtors = [[b.user_id, -b.net_cents] for b in net_balances if b.net_cents < 0]

    # Stable sort keeps input order among equal amounts
    creditors.sort(key=lambda entry: -entry[1])
    debtors.sort(key=lambda entry: -entry[1])

    transfers = []
    i = j = 0
    while i < len(creditors) and j < len(debtors):
        creditor, debtor = creditors[i], debtors[j]
        amount = min(creditor[1], debtor[1])

        if amount > 0:
            transfers.append(Transfer(from_user=debtor[0], to_user=creditor[0], amount_cents=amount))

        creditor[1] -= amount
        debtor[1] -= amount

        if creditor[1] <= 0:
            i += 1
        if debtor[1] <= 0:
            j += 1

    return transfers
