# tableside/scripts/seed_data.py
import asyncio
import logging
import uuid
from decimal import Decimal
from tableside.core.db import init_db, close_db
from tableside.models.restaurant import (
    CategoryType,
    MenuCategory,
    MenuItem,
    Restaurant,
    RestaurantAdmin,
    RestaurantTable,
    StaffMember,
)

log = logging.getLogger("tableside.seed")

DEMO_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-00000000a001")
DEMO_STAFF_ID = uuid.UUID("00000000-0000-0000-0000-00000000b001")


async def seed() -> Restaurant:
    """Creates (or refreshes) one demo restaurant with tables, a menu and two actors."""
    rest, _ = await Restaurant.get_or_create(
        name="Demo Restaurant",
        defaults={"email": "demo@tableside.example", "paystack_subaccount_code": "ACCT_demo"},
    )
    log.info(f"Restaurant: {rest.id}")

    for number in ("1", "2", "3"):
        await RestaurantTable.get_or_create(restaurant=rest, table_number=number)

    food, _ = await MenuCategory.get_or_create(restaurant=rest, name="Mains", defaults={"type": CategoryType.FOOD})
    drinks, _ = await MenuCategory.get_or_create(restaurant=rest, name="Drinks", defaults={"type": CategoryType.DRINK})

    m1, _ = await MenuItem.get_or_create(restaurant=rest, category=food, name="Burger", defaults={"price": Decimal("10.00")})
    m2, _ = await MenuItem.get_or_create(restaurant=rest, category=food, name="Jollof Rice", defaults={"price": Decimal("12.50")})
    m3, _ = await MenuItem.get_or_create(
        restaurant=rest, category=drinks, name="Coke",
        defaults={"price": Decimal("3.00"), "quantity_in_stock": 100, "low_stock_threshold": 10},
    )

    # If existing, reset stock (idempotent)
    m3.quantity_in_stock = 100
    await m3.save(update_fields=["quantity_in_stock", "updated_at"])
    log.info(f"Menu items: {m1.id}, {m2.id}, {m3.id}")

    await RestaurantAdmin.get_or_create(
        id=DEMO_ADMIN_ID, defaults={"restaurant": rest, "full_name": "Demo Admin", "email": "admin@tableside.example"}
    )
    await StaffMember.get_or_create(
        id=DEMO_STAFF_ID,
        defaults={"restaurant": rest, "full_name": "Demo Bartender", "email": "bar@tableside.example", "department": "bar"},
    )
    log.info("Seed data ready.")
    return rest


async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
