import pytest

from tableside.models.restaurant import MenuItem, RestaurantAdmin, RestaurantTable, StaffMember
from tableside.scripts.seed_data import DEMO_ADMIN_ID, DEMO_STAFF_ID, seed
from tableside.services.actors import authorize_for_restaurant
from tableside.services.stock_ledger import decrement


@pytest.mark.asyncio
async def test_seed_is_repeatable(db):
    restaurant = await seed()
    coke = await MenuItem.get(restaurant_id=restaurant.id, name="Coke")
    await decrement(coke.id, 40)

    again = await seed()

    assert again.id == restaurant.id
    assert await RestaurantTable.filter(restaurant_id=restaurant.id).count() == 3
    assert await MenuItem.filter(restaurant_id=restaurant.id).count() == 3
    assert (await MenuItem.get(id=coke.id)).quantity_in_stock == 100
    assert await RestaurantAdmin.filter(id=DEMO_ADMIN_ID).count() == 1


@pytest.mark.asyncio
async def test_seeded_actors_can_act_for_the_restaurant(db):
    restaurant = await seed()

    admin = await authorize_for_restaurant(DEMO_ADMIN_ID, restaurant.id)
    staff = await authorize_for_restaurant(DEMO_STAFF_ID, restaurant.id)

    assert admin.name == "Demo Admin"
    assert staff.name == "Demo Bartender"
    assert (await StaffMember.get(id=DEMO_STAFF_ID)).department == "bar"
