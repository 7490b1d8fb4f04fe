import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from tableside.core import config
from tableside.core.errors import GatewayError, NotAuthorized, RestaurantNotFound
from tableside.gateway.paystack import PaystackClient
from tableside.models.restaurant import Restaurant
from tableside.services.activity_log import log_activity
from tableside.services.actors import ActorRole, authorize_for_restaurant

log = logging.getLogger("tableside.onboarding")


async def list_settlement_providers(gateway: PaystackClient, country: Optional[str] = None) -> List[Dict[str, Any]]:
    """Active banks and mobile money providers a restaurant can be paid out to."""
    country = country or config.DEFAULT_BANK_COUNTRY
    providers = []
    for bank_type in config.SETTLEMENT_PROVIDER_TYPES:
        try:
            providers.extend(await gateway.list_banks(country, bank_type))
        except GatewayError as e:
            raise GatewayError(
                f"Failed to fetch {bank_type} providers from Paystack",
                details=e.details,
                status_code=e.upstream_status or 500,
                upstream_status=e.upstream_status,
            ) from e

    return [
        {"id": p.get("id"), "name": p.get("name"), "code": p.get("code"), "type": p.get("type")}
        for p in providers
        if p.get("active") is True
    ]


async def create_restaurant_subaccount(
    restaurant_id: UUID,
    actor_id: Optional[UUID],
    settlement_bank_code: str,
    account_number: str,
    country: str,
    gateway: PaystackClient,
) -> Restaurant:
    """
    Registers the restaurant's payout account with Paystack and stores the
    returned subaccount code, which online checkout requires.
    Restaurant admins and super-admins only.
    """
    restaurant = await Restaurant.get_or_none(id=restaurant_id)
    if not restaurant:
        raise RestaurantNotFound("Restaurant not found.")

    actor = await authorize_for_restaurant(actor_id, restaurant.id)
    if actor.role == ActorRole.STAFF:
        raise NotAuthorized("Only restaurant admins can set up payouts.")

    try:
        data = await gateway.create_subaccount(
            business_name=restaurant.name,
            settlement_bank=settlement_bank_code,
            account_number=account_number,
            country=country,
            percentage_charge=float(config.PLATFORM_COMMISSION_RATE * Decimal(100)),
        )
    except GatewayError as e:
        raise GatewayError("Failed to create subaccount", details=e.details, upstream_status=e.upstream_status) from e

    restaurant.paystack_subaccount_code = data["subaccount_code"]
    await restaurant.save(update_fields=["paystack_subaccount_code"])

    await log_activity(
        restaurant.id,
        actor.id,
        "PAYSTACK_SUBACCOUNT_CREATED",
        {"subaccount_code": restaurant.paystack_subaccount_code, "settlement_bank": settlement_bank_code},
    )
    log.info(f"Restaurant {restaurant.id} onboarded with subaccount {restaurant.paystack_subaccount_code}")
    return restaurant
