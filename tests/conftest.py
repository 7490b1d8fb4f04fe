import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from tableside.core.db import init_db, close_db
from tableside.main import app
from tableside.models.restaurant import (
    CategoryType,
    MenuCategory,
    MenuItem,
    Restaurant,
    RestaurantAdmin,
    RestaurantTable,
    StaffMember,
    SuperAdmin,
)


@pytest.fixture
def client():
    return TestClient(app)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test."""
    await init_db("sqlite://:memory:")
    yield
    await close_db()


@pytest_asyncio.fixture
async def catalog(db):
    """One restaurant with a table, a food and a drink category, and its people."""
    restaurant = await Restaurant.create(
        name="Chez Kofi", email="owner@chezkofi.example", paystack_subaccount_code="ACCT_chezkofi"
    )
    other_restaurant = await Restaurant.create(name="Other Place")
    table = await RestaurantTable.create(restaurant=restaurant, table_number="5")
    food = await MenuCategory.create(restaurant=restaurant, name="Mains", type=CategoryType.FOOD)
    drinks = await MenuCategory.create(restaurant=restaurant, name="Drinks", type=CategoryType.DRINK)

    burger = await MenuItem.create(restaurant=restaurant, category=food, name="Burger", price=Decimal("10.00"))
    coke = await MenuItem.create(
        restaurant=restaurant, category=drinks, name="Coke", price=Decimal("3.00"),
        quantity_in_stock=10, low_stock_threshold=2,
    )
    fish = await MenuItem.create(
        restaurant=restaurant, category=food, name="Grilled Fish", price=Decimal("15.00"), available=False
    )

    admin = await RestaurantAdmin.create(
        id=uuid.uuid4(), restaurant=restaurant, full_name="Ama Admin", email="ama@chezkofi.example"
    )
    staff = await StaffMember.create(
        id=uuid.uuid4(), restaurant=restaurant, full_name="Kojo Kitchen", email="kojo@chezkofi.example",
        department="kitchen",
    )
    super_admin = await SuperAdmin.create(id=uuid.uuid4(), full_name="Platform Root", email="root@tableside.example")
    outsider = await StaffMember.create(
        id=uuid.uuid4(), restaurant=other_restaurant, full_name="Someone Else", email="else@other.example"
    )

    return SimpleNamespace(
        restaurant=restaurant,
        other_restaurant=other_restaurant,
        table=table,
        burger=burger,
        coke=coke,
        fish=fish,
        admin=admin,
        staff=staff,
        super_admin=super_admin,
        outsider=outsider,
    )


@pytest.fixture
def cart(catalog):
    """Two burgers and a coke: 2 x 10.00 + 1 x 3.00."""
    return [
        {"menu_item_id": str(catalog.burger.id), "quantity": 2},
        {"menu_item_id": str(catalog.coke.id), "quantity": 1},
    ]
