# tableside/models/__init__.py
from .restaurant import (
    CategoryType,
    MenuCategory,
    MenuItem,
    Restaurant,
    RestaurantAdmin,
    RestaurantTable,
    StaffMember,
    SuperAdmin,
)
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .payment import Payment, PaymentProvider, PaymentRecordStatus, SettlementStatus, Transaction
from .activity import ActivityLog
from .outbox import OutboxEvent

# Export all models
__all__ = [
    "ActivityLog",
    "CategoryType",
    "MenuCategory",
    "MenuItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OutboxEvent",
    "Payment",
    "PaymentProvider",
    "PaymentRecordStatus",
    "PaymentStatus",
    "Restaurant",
    "RestaurantAdmin",
    "RestaurantTable",
    "SettlementStatus",
    "StaffMember",
    "SuperAdmin",
    "Transaction",
]
