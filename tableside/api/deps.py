from typing import Optional
from uuid import UUID

from fastapi import Header

from tableside.gateway.paystack import PaystackClient, get_gateway

__all__ = ["get_actor_id", "get_gateway", "PaystackClient"]


async def get_actor_id(x_actor_id: Optional[UUID] = Header(default=None, alias="X-Actor-Id")) -> Optional[UUID]:
    """Id of the user authenticated by the auth layer in front of the service, if any."""
    return x_actor_id
