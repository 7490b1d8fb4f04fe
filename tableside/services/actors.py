from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from tableside.core.errors import NotAuthenticated, NotAuthorized
from tableside.models.restaurant import RestaurantAdmin, StaffMember, SuperAdmin


class ActorRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    RESTAURANT_ADMIN = "restaurant_admin"
    STAFF = "staff"


@dataclass(frozen=True)
class Actor:
    """An authenticated person acting on a restaurant's orders or payments."""
    id: UUID
    name: str
    role: ActorRole


async def authorize_for_restaurant(actor_id: Optional[UUID], restaurant_id: UUID) -> Actor:
    """
    Resolves the actor for a restaurant-scoped operation.

    Restaurant admins and staff of that restaurant, and super-admins of the
    platform, are allowed. Raises NotAuthenticated when no actor is given and
    NotAuthorized when the actor has no role for the restaurant.
    """
    if actor_id is None:
        raise NotAuthenticated()

    admin = await RestaurantAdmin.get_or_none(id=actor_id, restaurant_id=restaurant_id)
    if admin:
        return Actor(id=admin.id, name=admin.full_name, role=ActorRole.RESTAURANT_ADMIN)

    staff = await StaffMember.get_or_none(id=actor_id, restaurant_id=restaurant_id)
    if staff:
        return Actor(id=staff.id, name=staff.full_name, role=ActorRole.STAFF)

    super_admin = await SuperAdmin.get_or_none(id=actor_id)
    if super_admin:
        return Actor(id=super_admin.id, name=super_admin.full_name, role=ActorRole.SUPER_ADMIN)

    raise NotAuthorized()
