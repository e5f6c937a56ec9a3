# storefront/tasks/notify.py
from storefront.celery_worker import celery_app
from storefront.services.sns_publisher import SnsPublisher
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.notify.publish_event_task")
def publish_event_task(event: dict):
    """
    Celery task - worker zdejmuje zdarzenie z kolejki i publikuje je do SNS.
    Dostarczanie dalej (e-mail itp.) to sprawa subskrybentów tematu.
    """
    logger.info(f"[NOTIFICATION] {event.get('type')} for order {event.get('orderId')}")

    message_id = SnsPublisher().publish(event)
    return {"orderId": event.get("orderId"), "messageId": message_id, "status": "sent"}
