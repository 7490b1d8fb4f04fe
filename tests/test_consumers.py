import logging
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from tableside.consumers import subscribers
from tableside.consumers.outbox_poller import dispatch_event, poll_outbox_for_new_events
from tableside.consumers.subscribers import SUBSCRIBERS, handlers_for, subscribe
from tableside.events.outbox_utility import publish_change
from tableside.models.outbox import OutboxEvent


class TestSubscribers:
    def test_default_subscriptions(self):
        assert subscribers.announce_new_order in handlers_for("order.created.v1")
        assert subscribers.announce_payment in handlers_for("payment.succeeded.v1")
        assert subscribers.announce_payment in handlers_for("payment.refunded.v1")
        assert subscribers.alert_low_stock in handlers_for("inventory.low_stock_alert.v1")
        assert handlers_for("menu_item.renamed.v1") == []

    def test_wildcard_subscriber_sees_everything(self):
        with patch.dict(SUBSCRIBERS, {}):
            @subscribe("*")
            async def audit(payload):
                pass

            assert audit in handlers_for("order.created.v1")
            assert handlers_for("anything.v1") == [audit]
        assert audit not in handlers_for("anything.v1")

    @pytest.mark.asyncio
    async def test_low_stock_alert_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tableside.subscribers"):
            await subscribers.alert_low_stock(
                {"name": "Coke", "menu_item_id": "abc", "quantity_in_stock": 2, "threshold": 2}
            )
        assert "Coke" in caplog.text


class TestOutboxPoller:
    @pytest.mark.asyncio
    async def test_events_are_dispatched_once(self, db):
        handler = AsyncMock()
        event = await publish_change("order", "created", uuid4(), {"human_readable_id": "ABC1234"})

        with patch.dict(SUBSCRIBERS, {"order.created.v1": [handler]}):
            assert await poll_outbox_for_new_events() == 1
            assert await poll_outbox_for_new_events() == 0

        handler.assert_awaited_once_with({"human_readable_id": "ABC1234"})
        stored = await OutboxEvent.get(id=event.id)
        assert stored.published is True
        assert stored.event_type == "order.created.v1"

    @pytest.mark.asyncio
    async def test_failing_subscriber_counts_an_attempt(self, db):
        handler = AsyncMock(side_effect=RuntimeError("display offline"))
        event = await publish_change("payment", "succeeded", uuid4(), {"order_id": "x"})

        with patch.dict(SUBSCRIBERS, {"payment.succeeded.v1": [handler]}):
            assert await poll_outbox_for_new_events() == 0

        stored = await OutboxEvent.get(id=event.id)
        assert stored.published is False
        assert stored.attempts == 1

    @pytest.mark.asyncio
    async def test_event_without_subscribers_is_still_published(self, db):
        event = await publish_change("menu_item", "renamed", uuid4(), {})

        assert await dispatch_event(event) == 0
        assert await poll_outbox_for_new_events() == 1
