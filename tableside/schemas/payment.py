import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tableside.models.payment import PaymentProvider, PaymentRecordStatus


class PaymentInitializeRequest(BaseModel):
    order_id: uuid.UUID


class PaymentInitializeResponse(BaseModel):
    authorization_url: str
    reference: str
    payment_id: uuid.UUID


class RefundRequest(BaseModel):
    payment_id: uuid.UUID


class RefundResponse(BaseModel):
    message: str
    payment_id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    reference: str


class PaymentResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    provider: PaymentProvider
    status: PaymentRecordStatus
    amount: Decimal
    reference: Optional[str] = None
    method: Optional[str] = None
    created_at: Optional[datetime] = None


class SubaccountRequest(BaseModel):
    """Payout account details, as the onboarding form sends them."""
    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: uuid.UUID = Field(..., alias="restaurantId")
    settlement_bank_code: str = Field(..., alias="settlementBankCode", min_length=1)
    account_number: str = Field(..., alias="accountNumber", min_length=1)
    country: str = Field(..., min_length=1)


class SubaccountResponse(BaseModel):
    restaurant_id: uuid.UUID
    subaccount_code: str


class SettlementProviderResponse(BaseModel):
    id: Optional[int] = None
    name: str
    code: str
    type: Optional[str] = None
