import json
import logging
from typing import Optional

import stripe

from shop_payments.errors import AuthenticityError
from shop_payments.ledger import LedgerStore, APPLIED, NOT_FOUND
from shop_payments.models import SUCCEEDED, FAILED, utcnow

logger = logging.getLogger(__name__)

EVENT_OUTCOMES = {
    "payment_intent.succeeded": SUCCEEDED,
    "payment_intent.payment_failed": FAILED,
}

ACK = {"received": True}


class CallbackReconciler:
    def __init__(self, ledger: LedgerStore, webhook_secret: str, tolerance: int = 300):
        self.ledger = ledger
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def verify(self, payload: bytes, signature: Optional[str]) -> str:
        # Verified over the raw body as received, never a re-serialized one
        if not self.webhook_secret:
            logger.error("Webhook secret is not configured; rejecting delivery")
            raise AuthenticityError("Webhook secret is not configured")
        if not signature:
            raise AuthenticityError("Missing signature")

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise AuthenticityError("Invalid payload")

        try:
            stripe.WebhookSignature.verify_header(text, signature, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise AuthenticityError("Invalid signature") from exc
        return text

    def handle_callback(self, payload: bytes, signature: Optional[str]) -> dict:
        text = self.verify(payload, signature)

        try:
            event = json.loads(text)
        except ValueError:
            logger.warning("Verified webhook body is not valid JSON; acknowledging without changes")
            return ACK
        if not isinstance(event, dict):
            logger.warning("Verified webhook body is not an event object; acknowledging without changes")
            return ACK

        event_type = event.get("type")
        status = EVENT_OUTCOMES.get(event_type) if isinstance(event_type, str) else None
        if status is None:
            logger.info("Unhandled event type: %s", event_type)
            return ACK

        data = event.get("data")
        intent = data.get("object") if isinstance(data, dict) else None
        intent_id = intent.get("id") if isinstance(intent, dict) else None
        if not intent_id or not isinstance(intent_id, str):
            logger.warning("Event %s (%s) carries no payment intent id", event.get("id"), event_type)
            return ACK

        self._apply(event, intent, intent_id, status)
        return ACK

    def _apply(self, event, intent, intent_id, status):
        update = self.ledger.update_status(intent_id, status, utcnow())

        if update.outcome == NOT_FOUND:
            logger.warning(
                "Event %s (%s) references unknown payment intent=%s; no ledger change",
                event.get("id"), event["type"], intent_id,
            )
            return

        payment = update.payment
        metadata = intent.get("metadata")
        owner = metadata.get("userId") if isinstance(metadata, dict) else None
        if owner is not None and str(owner) != payment.user_id:
            logger.warning(
                "Intent=%s metadata userId=%s does not match ledger owner=%s",
                intent_id, owner, payment.user_id,
            )

        if update.outcome == APPLIED:
            logger.info("Payment id=%s intent=%s is now %s", payment.id, intent_id, status)
        elif payment.status == status:
            logger.info("Duplicate %s delivery for payment id=%s intent=%s", event["type"], payment.id, intent_id)
        else:
            logger.warning(
                "Conflicting %s event for payment id=%s intent=%s: already %s, ignoring %s",
                event["type"], payment.id, intent_id, payment.status, status,
            )
