from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

from botocore.exceptions import ClientError

from src.adapters.aws import sqs_client
from src.app.ports.output import IQueueService

logger = logging.getLogger(__name__)

_MISSING_QUEUE_CODES = frozenset(
    {"AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"}
)


def _decode_body(raw_body: str | None) -> dict[str, Any] | None:
    if raw_body is None:
        return None
    try:
        decoded = json.loads(raw_body)
    except json.JSONDecodeError:
        logger.warning("Dropping non-JSON report message: %.200s", raw_body)
        return None
    if not isinstance(decoded, dict):
        logger.warning("Dropping report message that is not an object")
        return None
    return decoded


@dataclass(slots=True)
class SQSQueueAdapter(IQueueService):
    """Carries device position reports over SQS (LocalStack via env).

    Env vars:
      - SQS_QUEUE_URL
      - ENDPOINT_URL / USE_LOCALSTACK / AWS_REGION (see src.adapters.aws)

    Reports are perishable: every received message is deleted, including
    ones that cannot be decoded, so nothing is redelivered.
    """

    queue_url: str | None = None

    def _url(self) -> str:
        url = self.queue_url or os.getenv("SQS_QUEUE_URL")
        if not url:
            raise RuntimeError("Missing SQS_QUEUE_URL")
        return url

    def publish_report(self, message: Mapping[str, Any]) -> str:
        attributes = {}
        vehicle_id = message.get("vehicle_id")
        if vehicle_id:
            attributes["vehicle_id"] = {
                "DataType": "String",
                "StringValue": str(vehicle_id),
            }
        resp = sqs_client().send_message(
            QueueUrl=self._url(),
            MessageBody=json.dumps(dict(message)),
            MessageAttributes=attributes,
        )
        return str(resp.get("MessageId", ""))

    def consume_reports(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[Mapping[str, Any]]:
        sqs = sqs_client()
        url = self._url()

        try:
            resp = sqs.receive_message(
                QueueUrl=url,
                MaxNumberOfMessages=max(1, min(10, int(max_messages))),
                WaitTimeSeconds=max(0, min(20, int(wait_time_s))),
            )
        except ClientError as exc:
            # The worker may start polling before the queue is provisioned.
            if exc.response.get("Error", {}).get("Code") in _MISSING_QUEUE_CODES:
                logger.info("Queue %s does not exist yet", url)
                return []
            raise

        messages = resp.get("Messages") or []
        receipts = [
            {"Id": str(n), "ReceiptHandle": m["ReceiptHandle"]}
            for n, m in enumerate(messages)
            if m.get("ReceiptHandle")
        ]
        if receipts:
            result = sqs.delete_message_batch(QueueUrl=url, Entries=receipts)
            for failed in result.get("Failed") or []:
                logger.warning(
                    "Could not delete report message %s: %s",
                    failed.get("Id"),
                    failed.get("Message"),
                )

        decoded = (_decode_body(m.get("Body")) for m in messages)
        return [body for body in decoded if body is not None]
