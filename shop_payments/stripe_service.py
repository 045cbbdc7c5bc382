import logging
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple, Optional

import stripe

from shop_payments.errors import ProviderError, ValidationError
from shop_payments.ledger import LedgerStore
from shop_payments.models import Payment, PENDING

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Payment"

# Two-decimal currencies only; zero- and three-decimal currencies are not handled
MINOR_UNITS_PER_MAJOR = Decimal(100)


class IssuedIntent(NamedTuple):
    client_secret: str
    payment_id: int


def parse_amount(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("Valid amount is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Valid amount is required")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Valid amount is required")
    return amount


def to_minor_units(amount: Decimal) -> int:
    return int((amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_currency(currency: str) -> str:
    code = (currency or "").strip().lower()
    if len(code) != 3 or not code.isalpha():
        raise ValidationError(f"Invalid currency code: {currency!r}")
    return code


class IntentIssuer:
    def __init__(self, ledger: LedgerStore, api_key: str, timeout: float = 10.0, default_currency: str = "usd"):
        self.ledger = ledger
        self.default_currency = default_currency
        self.http_client = stripe.RequestsClient(timeout=timeout)
        self._api_key = api_key
        self._client = None

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            self._client = stripe.StripeClient(self._api_key, http_client=self.http_client)
        return self._client

    def create_intent(
        self,
        user_id: str,
        amount,
        currency: Optional[str] = None,
        description: Optional[str] = None,
        payment_method_type: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> IssuedIntent:
        major = parse_amount(amount)
        minor = to_minor_units(major)
        if minor <= 0:
            raise ValidationError("Amount is below the smallest currency unit")
        currency = normalize_currency(currency or self.default_currency)
        description = description or DEFAULT_DESCRIPTION
        user_id = str(user_id)

        intent = self._create_payment_intent(
            minor, currency, description, user_id, payment_method_type,
            idempotency_key or str(uuid.uuid4()),
        )

        payment = self.ledger.append(Payment(
            user_id=user_id,
            amount=Decimal(minor) / MINOR_UNITS_PER_MAJOR,
            currency=currency,
            description=description,
            provider_intent_id=intent.id,
            status=PENDING,
        ))
        logger.info(
            "Created payment id=%s intent=%s user=%s amount=%s %s status=pending",
            payment.id, payment.provider_intent_id, user_id, payment.amount, currency,
        )
        return IssuedIntent(client_secret=intent.client_secret, payment_id=payment.id)

    def _create_payment_intent(self, amount, currency, description, user_id, payment_method_type, idempotency_key):
        params = {
            "amount": amount,
            "currency": currency,
            "description": description,
            "metadata": {"userId": user_id},
        }
        if payment_method_type:
            params["payment_method_types"] = [payment_method_type]
        else:
            params["automatic_payment_methods"] = {"enabled": True}

        try:
            return self.client.payment_intents.create(
                params=params,
                options={"idempotency_key": idempotency_key},
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe intent creation failed for user=%s: %s", user_id, exc)
            raise ProviderError(f"Payment provider error: {exc.user_message or exc}") from exc
