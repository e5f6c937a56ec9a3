# storefront/services/sns_publisher.py
import json
from typing import Any, Dict

import boto3

from storefront.utils.retry import publish_retry
from storefront.utils.settings import AWS_REGION, SNS_TOPIC_ARN
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SnsPublisher:
    def __init__(self, topic_arn: str | None = None, client=None):
        self.topic_arn = SNS_TOPIC_ARN if topic_arn is None else topic_arn
        self.client = client or boto3.client("sns", region_name=AWS_REGION)

    @publish_retry()
    def publish(self, event: Dict[str, Any]) -> str | None:
        if not self.topic_arn:
            logger.info(f"SNS_TOPIC_ARN not set, dropping {event.get('type')} event")
            return None

        resp = self.client.publish(
            TopicArn=self.topic_arn,
            Subject=event.get("subject", event.get("type", "event"))[:100],
            Message=json.dumps(event),
        )
        logger.info(f"Published {event.get('type')} event, message {resp.get('MessageId')}")
        return resp.get("MessageId")
