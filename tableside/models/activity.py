from tortoise import fields, models
import uuid


class ActivityLog(models.Model):
    """Audit trail of operationally relevant mutations, shown to restaurant admins."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="activity_logs", null=True)
    staff_id = fields.UUIDField(null=True)  # Actor id, empty for customer/gateway actions
    action = fields.CharField(max_length=128)
    details = fields.JSONField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "activity_logs"
        indexes = [
            ("restaurant_id", "created_at"),
        ]
