from typing import List

from shop_payments.errors import NotFoundError
from shop_payments.ledger import LedgerStore
from shop_payments.models import Payment


def list_payments(ledger: LedgerStore, user_id: str) -> List[Payment]:
    return ledger.list_by_user(user_id)


def get_payment(ledger: LedgerStore, user_id: str, payment_id) -> Payment:
    try:
        payment_id = int(payment_id)
    except (TypeError, ValueError):
        raise NotFoundError("Payment not found")
    if not 0 < payment_id < 2 ** 63:
        raise NotFoundError("Payment not found")

    # Someone else's payment is reported exactly like a missing one
    payment = ledger.find_by_id(payment_id, user_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment
