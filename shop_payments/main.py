import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shop_payments.config import Settings, get_settings
from shop_payments.database import init_db, make_engine, make_session_factory, ping
from shop_payments.errors import PaymentServiceError
from shop_payments.ledger import LedgerStore
from shop_payments.routes import router
from shop_payments.stripe_service import IntentIssuer
from shop_payments.webhooks import CallbackReconciler

logger = logging.getLogger("shop_payments")


async def payment_error_handler(request: Request, exc: PaymentServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine = make_engine(settings.database_url)
    session_factory = make_session_factory(engine)
    ledger = LedgerStore(session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        logger.info("Payment service ready (database=%s)", engine.url.render_as_string(hide_password=True))
        yield
        engine.dispose()

    app = FastAPI(title="Shop Payment Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.ledger = ledger
    app.state.issuer = IntentIssuer(
        ledger,
        settings.stripe_secret_key,
        timeout=settings.stripe_timeout_seconds,
        default_currency=settings.default_currency,
    )
    app.state.reconciler = CallbackReconciler(
        ledger,
        settings.stripe_webhook_secret,
        tolerance=settings.webhook_tolerance_seconds,
    )

    app.add_exception_handler(PaymentServiceError, payment_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    @app.get("/health")
    def health():
        try:
            ping(session_factory)
        except Exception as e:
            logger.exception("Health check failed: %s", e)
            raise HTTPException(status_code=503, detail="Database unreachable")
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("shop_payments.main:app", host="0.0.0.0", port=8000)
