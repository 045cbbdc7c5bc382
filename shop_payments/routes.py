from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from shop_payments.auth import verify_caller
from shop_payments.ledger import LedgerStore
from shop_payments.queries import get_payment, list_payments
from shop_payments.schemas import CreateIntentIn, CreateIntentOut, PaymentOut, WebhookAck
from shop_payments.stripe_service import IntentIssuer
from shop_payments.webhooks import CallbackReconciler

router = APIRouter(prefix="/payments", tags=["payments"])


def get_ledger(request: Request) -> LedgerStore:
    return request.app.state.ledger


def get_issuer(request: Request) -> IntentIssuer:
    return request.app.state.issuer


def get_reconciler(request: Request) -> CallbackReconciler:
    return request.app.state.reconciler


@router.post("/intents", response_model=CreateIntentOut, status_code=201)
def create_intent_api(
    body: CreateIntentIn,
    user_id: str = Depends(verify_caller),
    issuer: IntentIssuer = Depends(get_issuer),
    idempotency_key: Optional[str] = Header(None),
):
    issued = issuer.create_intent(
        user_id,
        body.amount,
        currency=body.currency,
        description=body.description,
        payment_method_type=body.payment_method_type,
        idempotency_key=idempotency_key,
    )
    return CreateIntentOut(client_secret=issued.client_secret, payment_id=issued.payment_id)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    reconciler: CallbackReconciler = Depends(get_reconciler),
):
    payload = await request.body()
    return await run_in_threadpool(reconciler.handle_callback, payload, stripe_signature)


@router.get("", response_model=List[PaymentOut])
def list_payments_api(user_id: str = Depends(verify_caller), ledger: LedgerStore = Depends(get_ledger)):
    return [PaymentOut.model_validate(p) for p in list_payments(ledger, user_id)]


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment_api(payment_id: str, user_id: str = Depends(verify_caller), ledger: LedgerStore = Depends(get_ledger)):
    return PaymentOut.model_validate(get_payment(ledger, user_id, payment_id))
