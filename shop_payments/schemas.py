from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateIntentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Any = Field(None, description="Amount in the major unit, e.g. 49.99 or '49.99'")
    currency: Optional[str] = None
    description: Optional[str] = None
    payment_method_type: Optional[str] = Field(None, alias="paymentMethodType")


class CreateIntentOut(BaseModel):
    client_secret: str = Field(..., serialization_alias="clientSecret")
    payment_id: int = Field(..., serialization_alias="paymentId")


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str = Field(..., serialization_alias="userId")
    amount: float
    currency: str
    description: str
    provider_intent_id: str = Field(..., serialization_alias="providerIntentId")
    status: str
    created_at: datetime = Field(..., serialization_alias="createdAt")
    paid_at: Optional[datetime] = Field(None, serialization_alias="paidAt")
    failed_at: Optional[datetime] = Field(None, serialization_alias="failedAt")


class WebhookAck(BaseModel):
    received: bool = True
