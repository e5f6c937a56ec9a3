import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from storefront.domain.order_status import OrderStatus
from storefront.domain.schemas import Order, OrderItem, ProductSnapshot
from storefront.services import sns_publisher
from storefront.services.notification_service import (
    ORDER_PLACED_SUBJECT,
    NotificationService,
    build_order_placed_event,
)
from storefront.services.sns_publisher import SnsPublisher
from storefront.tasks import notify

from tests.conftest import FakeTask


@pytest.fixture
def order():
    snapshot = ProductSnapshot(
        product_id="P1", title="Mug", price=10.0, stock=5, owner_id="store-1",
        created_at="2024-01-01T00:00:00+00:00", updated_at="2024-01-01T00:00:00+00:00",
    )
    return Order(
        order_id="o1",
        user_id="u1",
        items=[OrderItem(product_id="P1", quantity=2, product=snapshot)],
        status=OrderStatus.PENDING,
        created_at="2024-02-01T00:00:00+00:00",
        updated_at="2024-02-01T00:00:00+00:00",
    )


class TestOrderPlacedEvent:
    def test_event_shape(self, order):
        event = build_order_placed_event(order)

        assert event["subject"] == ORDER_PLACED_SUBJECT
        assert event["orderId"] == "o1"
        assert event["userId"] == "u1"
        assert event["status"] == "PENDING"
        assert event["total"] == 20.0
        assert event["items"] == [{"productId": "P1", "quantity": 2, "title": "Mug", "price": 10.0}]
        json.dumps(event)

    def test_send_queues_event(self, order):
        task = FakeTask()
        assert NotificationService(task).send_order_notification(order) is True
        assert task.events[0]["orderId"] == "o1"

    def test_queue_failure_returns_false(self, order):
        assert NotificationService(FakeTask(fail=True)).send_order_notification(order) is False


class TestSnsPublisher:
    def test_without_topic_nothing_is_sent(self):
        client = MagicMock()

        assert SnsPublisher(topic_arn="", client=client).publish({"type": "ORDER_PLACED"}) is None
        client.publish.assert_not_called()

    def test_publishes_json_message(self):
        client = MagicMock()
        client.publish.return_value = {"MessageId": "m-1"}
        event = {"type": "ORDER_PLACED", "subject": ORDER_PLACED_SUBJECT, "orderId": "o1"}

        message_id = SnsPublisher(topic_arn="arn:aws:sns:eu-west-1:1:orders", client=client).publish(event)

        assert message_id == "m-1"
        kwargs = client.publish.call_args.kwargs
        assert kwargs["TopicArn"] == "arn:aws:sns:eu-west-1:1:orders"
        assert kwargs["Subject"] == ORDER_PLACED_SUBJECT
        assert json.loads(kwargs["Message"]) == event

    def test_transient_error_is_retried(self, monkeypatch):
        monkeypatch.setattr("time.sleep", lambda _: None)
        client = MagicMock()
        client.publish.side_effect = [
            ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, "Publish"),
            {"MessageId": "m-2"},
        ]

        publisher = SnsPublisher(topic_arn="arn:topic", client=client)

        assert publisher.publish({"type": "ORDER_PLACED"}) == "m-2"
        assert client.publish.call_count == 2

    @pytest.mark.parametrize("code", ["AuthorizationError", "InvalidParameter", "NotFound"])
    def test_permanent_error_is_not_retried(self, monkeypatch, code):
        monkeypatch.setattr("time.sleep", lambda _: None)
        client = MagicMock()
        client.publish.side_effect = ClientError(
            {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": 400}}, "Publish"
        )

        with pytest.raises(ClientError):
            SnsPublisher(topic_arn="arn:topic", client=client).publish({"type": "ORDER_PLACED"})

        assert client.publish.call_count == 1

    def test_server_error_is_retried(self, monkeypatch):
        monkeypatch.setattr("time.sleep", lambda _: None)
        client = MagicMock()
        client.publish.side_effect = ClientError(
            {"Error": {"Code": "Unknown", "Message": "boom"}, "ResponseMetadata": {"HTTPStatusCode": 502}}, "Publish"
        )

        with pytest.raises(ClientError):
            SnsPublisher(topic_arn="arn:topic", client=client).publish({"type": "ORDER_PLACED"})

        assert client.publish.call_count == 3


class TestPublishTask:
    def test_task_publishes_event(self, monkeypatch):
        published = []

        class StubPublisher:
            def publish(self, event):
                published.append(event)
                return "m-3"

        monkeypatch.setattr(notify, "SnsPublisher", StubPublisher)

        result = notify.publish_event_task.run({"type": "ORDER_PLACED", "orderId": "o1"})

        assert published == [{"type": "ORDER_PLACED", "orderId": "o1"}]
        assert result == {"orderId": "o1", "messageId": "m-3", "status": "sent"}

    def test_publisher_module_uses_settings_topic(self, monkeypatch):
        monkeypatch.setattr(sns_publisher, "SNS_TOPIC_ARN", "arn:from-settings")
        assert SnsPublisher(client=MagicMock()).topic_arn == "arn:from-settings"
