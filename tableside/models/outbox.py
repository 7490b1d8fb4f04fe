from tortoise import fields, models
import uuid


class OutboxEvent(models.Model):
    """
    Change notifications written in the same transaction as the mutation that
    caused them. The outbox poller relays them to subscribers (dashboards,
    kitchen displays); no business rule depends on their delivery.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    aggregate_type = fields.CharField(max_length=64) # e.g., 'order', 'payment', 'menu_item'
    aggregate_id = fields.UUIDField(null=True) # ID of the entity that changed
    event_type = fields.CharField(max_length=128) # e.g., 'order.status_changed.v1'
    payload = fields.JSONField()
    published = fields.BooleanField(default=False)
    attempts = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "outbox_events"
