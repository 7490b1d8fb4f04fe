import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from tableside.api.deps import PaystackClient, get_actor_id, get_gateway
from tableside.core.errors import DomainError
from tableside.schemas.payment import (
    PaymentInitializeRequest,
    PaymentInitializeResponse,
    RefundRequest,
    RefundResponse,
    SettlementProviderResponse,
    SubaccountRequest,
    SubaccountResponse,
)
from tableside.schemas.response import SuccessResponse
from tableside.services.onboarding import create_restaurant_subaccount, list_settlement_providers
from tableside.services.payment_service import apply_gateway_event, initialize_payment, refund_payment

router = APIRouter()
log = logging.getLogger("tableside.api.payments")

SIGNATURE_HEADER = "x-paystack-signature"


@router.post("/initialize", response_model=SuccessResponse)
async def initialize_payment_endpoint(
    payload: PaymentInitializeRequest,
    gateway: PaystackClient = Depends(get_gateway),
):
    """
    Opens an online checkout for an order. The caller redirects the customer
    to the returned authorization_url.
    """
    try:
        checkout = await initialize_payment(payload.order_id, gateway)
        data = PaymentInitializeResponse(
            authorization_url=checkout.authorization_url,
            reference=checkout.reference,
            payment_id=checkout.payment_id,
        ).model_dump(mode="json")
        return SuccessResponse(data=data)
    except DomainError as e:
        log.error(f"Payment initialization for order {payload.order_id} failed: {e.message} ({e.details})")
        raise
    except Exception as e:
        log.error(f"Error initializing payment: {e}")
        raise HTTPException(status_code=500, detail="An internal error occurred during payment initialization")


@router.post("/webhook")
async def payment_webhook_endpoint(request: Request):
    """
    Gateway callback. The raw body is read untouched so the signature can be
    verified over the exact bytes that were signed.
    """
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    try:
        outcome = await apply_gateway_event(raw_body, signature)
    except DomainError as e:
        log.error(f"Webhook rejected: {e.message}")
        raise
    except Exception as e:
        log.error(f"Webhook processing error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    log.info(f"Webhook processed: {outcome.value}")
    return {"status": "ok"}


@router.post("/refund", response_model=SuccessResponse)
async def refund_payment_endpoint(
    payload: RefundRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    gateway: PaystackClient = Depends(get_gateway),
):
    """Refunds an online payment in full. Restaurant admins, staff and super-admins only."""
    try:
        receipt = await refund_payment(payload.payment_id, actor_id, gateway)
        data = RefundResponse(
            message=receipt.message,
            payment_id=receipt.payment_id,
            order_id=receipt.order_id,
            amount=receipt.amount,
            reference=receipt.reference,
        ).model_dump(mode="json")
        return SuccessResponse(data=data, message=receipt.message)
    except DomainError as e:
        log.error(f"Refund of payment {payload.payment_id} failed: {e.message}")
        raise
    except Exception as e:
        log.error(f"Error processing refund: {e}")
        raise HTTPException(status_code=500, detail="An internal error occurred")


@router.get("/banks", response_model=SuccessResponse)
async def list_banks_endpoint(
    country: Optional[str] = Query(None),
    gateway: PaystackClient = Depends(get_gateway),
):
    """Banks and mobile money providers available for restaurant payouts."""
    try:
        providers = await list_settlement_providers(gateway, country)
        data = [SettlementProviderResponse(**p).model_dump(mode="json") for p in providers]
        return SuccessResponse(data=data)
    except DomainError as e:
        log.error(f"Fetching settlement providers failed: {e.message} ({e.details})")
        raise
    except Exception as e:
        log.error(f"Error fetching settlement providers: {e}")
        raise HTTPException(status_code=500, detail="An internal error occurred while fetching payment providers")


@router.post("/create-subaccount", status_code=201, response_model=SuccessResponse)
async def create_subaccount_endpoint(
    payload: SubaccountRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    gateway: PaystackClient = Depends(get_gateway),
):
    """Registers the restaurant's payout account so it can take online payments."""
    try:
        restaurant = await create_restaurant_subaccount(
            payload.restaurant_id,
            actor_id,
            payload.settlement_bank_code,
            payload.account_number,
            payload.country,
            gateway,
        )
        data = SubaccountResponse(
            restaurant_id=restaurant.id,
            subaccount_code=restaurant.paystack_subaccount_code,
        ).model_dump(mode="json")
        return SuccessResponse(data=data, message="Payout account connected.")
    except DomainError as e:
        log.error(f"Subaccount creation for restaurant {payload.restaurant_id} failed: {e.message} ({e.details})")
        raise
    except Exception as e:
        log.error(f"Error creating subaccount: {e}")
        raise HTTPException(status_code=500, detail="An internal error occurred during subaccount creation")
