import logging
import threading
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError

from shop_payments.errors import ConflictError
from shop_payments.models import Payment, PENDING, SUCCEEDED, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

APPLIED = "applied"
ALREADY_FINALIZED = "already_finalized"
NOT_FOUND = "not_found"


class StatusUpdate(NamedTuple):
    outcome: str                 # applied | already_finalized | not_found
    payment: Optional[Payment]


class LedgerStore:
    """Durable collection of payment records.

    Writes are serialized by a per-store lock and committed before they
    return. The terminal transition is also a conditional UPDATE, so it
    stays atomic when several processes share one database.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def append(self, payment: Payment) -> Payment:
        with self._lock, self._session_factory() as db:
            db.add(payment)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                logger.error("Duplicate provider intent id=%s rejected by ledger", payment.provider_intent_id)
                raise ConflictError(
                    f"Payment intent {payment.provider_intent_id} is already recorded"
                ) from exc
            db.refresh(payment)
            return payment

    def find_by_provider_intent_id(self, provider_intent_id: str) -> Optional[Payment]:
        with self._session_factory() as db:
            return db.query(Payment).filter_by(provider_intent_id=provider_intent_id).first()

    def find_by_id(self, payment_id: int, user_id: str) -> Optional[Payment]:
        with self._session_factory() as db:
            return db.query(Payment).filter_by(id=payment_id, user_id=str(user_id)).first()

    def list_by_user(self, user_id: str) -> List[Payment]:
        with self._session_factory() as db:
            return db.query(Payment).filter_by(user_id=str(user_id)).order_by(Payment.id).all()

    def update_status(self, provider_intent_id: str, status: str, timestamp) -> StatusUpdate:
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Cannot move a payment to non-terminal status {status!r}")

        stamp = Payment.paid_at if status == SUCCEEDED else Payment.failed_at

        with self._lock, self._session_factory() as db:
            applied = (
                db.query(Payment)
                .filter(Payment.provider_intent_id == provider_intent_id, Payment.status == PENDING)
                .update({Payment.status: status, stamp: timestamp}, synchronize_session=False)
            )
            db.commit()
            payment = db.query(Payment).filter_by(provider_intent_id=provider_intent_id).first()

        if payment is None:
            return StatusUpdate(NOT_FOUND, None)
        if applied:
            return StatusUpdate(APPLIED, payment)
        return StatusUpdate(ALREADY_FINALIZED, payment)
