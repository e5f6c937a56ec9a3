# storefront/services/notification_service.py
from typing import Any, Dict

from storefront.domain.schemas import Order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PLACED_SUBJECT = "Order Placed Successfully"


def build_order_placed_event(order: Order) -> Dict[str, Any]:
    return {
        "type": "ORDER_PLACED",
        "subject": ORDER_PLACED_SUBJECT,
        "orderId": order.order_id,
        "userId": order.user_id,
        "status": order.status.value,
        "total": order.total,
        "items": [
            {
                "productId": i.product_id,
                "quantity": i.quantity,
                "title": i.product.title,
                "price": i.product.price,
            }
            for i in order.items
        ],
        "createdAt": order.created_at,
    }


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Tylko wrzuca zdarzenie do kolejki Celery - publikację do SNS robi worker.
    Zamówienie jest już zapisane, więc błąd kolejki jest logowany i połykany.
    """

    def __init__(self, task=None):
        if task is None:
            from storefront.tasks.notify import publish_event_task
            task = publish_event_task
        self.task = task

    def send_order_notification(self, order: Order) -> bool:
        event = build_order_placed_event(order)
        try:
            self.task.delay(event)
        except Exception as e:
            logger.warning(f"Order {order.order_id} notification not queued: {e}")
            return False

        logger.info(f"Order {order.order_id} notification queued")
        return True
