from enum import Enum
from tortoise import fields, models
import uuid


class CategoryType(str, Enum):
    FOOD = "food"
    DRINK = "drink"  # Stock-tracked: inventory is decremented on every order


class Restaurant(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, null=True)
    is_active = fields.BooleanField(default=True)
    paystack_subaccount_code = fields.CharField(max_length=64, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "restaurants"
        indexes = [
            ("is_active",),  # For filtering active restaurants
        ]


class RestaurantTable(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="tables")
    table_number = fields.CharField(max_length=32)

    class Meta:
        table = "restaurant_tables"


class MenuCategory(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="menu_categories")
    name = fields.CharField(max_length=255)
    type = fields.CharEnumField(CategoryType, default=CategoryType.FOOD)

    class Meta:
        table = "menu_categories"


class MenuItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="menu_items")
    category = fields.ForeignKeyField("models.MenuCategory", related_name="menu_items")
    name = fields.CharField(max_length=255)
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    available = fields.BooleanField(default=True)
    quantity_in_stock = fields.IntField(default=0)
    low_stock_threshold = fields.IntField(default=5)  # For low stock alert
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "menu_items"
        indexes = [
            ("restaurant_id",),  # Fast restaurant menu queries
            ("restaurant_id", "available"),  # Composite: restaurant's orderable items
        ]

    @property
    def is_stock_tracked(self) -> bool:
        """Only drinks carry an inventory count. Requires the category to be fetched."""
        return self.category.type == CategoryType.DRINK


class RestaurantAdmin(models.Model):
    # Same id as the authenticated user
    id = fields.UUIDField(primary_key=True)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="admins")
    full_name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255)

    class Meta:
        table = "restaurant_admins"


class StaffMember(models.Model):
    id = fields.UUIDField(primary_key=True)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="staff_members")
    full_name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255)
    department = fields.CharField(max_length=64, null=True)  # e.g. kitchen, bar

    class Meta:
        table = "staff_members"


class SuperAdmin(models.Model):
    id = fields.UUIDField(primary_key=True)
    full_name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255)

    class Meta:
        table = "super_admins"
