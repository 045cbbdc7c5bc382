from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, Numeric, DateTime
from shop_payments.database import Base

PENDING = "pending"
SUCCEEDED = "succeeded"
FAILED = "failed"

TERMINAL_STATUSES = (SUCCEEDED, FAILED)


def utcnow():
    return datetime.now(timezone.utc)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)         # major currency unit
    currency = Column(String(3), nullable=False)
    description = Column(String, nullable=False, default="Payment")
    provider_intent_id = Column(String, unique=True, index=True, nullable=False)  # Stripe PaymentIntent ID
    status = Column(String, nullable=False, default=PENDING)  # pending | succeeded | failed
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Payment id={self.id} intent={self.provider_intent_id} status={self.status}>"
