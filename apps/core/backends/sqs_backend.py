"""
SQS Channel Backend - Message channels on AWS SQS.

Each logical channel maps to an SQS queue of the same name. Queue URLs are
resolved once and cached per transport instance.

Usage:
    Set CHANNEL_BACKEND=sqs in your .env file.
    Requires:
    - AWS credentials configured
    - One SQS queue per channel (new-todo, get-todos by default)

Environment Variables:
    AWS_REGION: AWS region (default: ap-southeast-1)
    SQS_ENDPOINT_URL: Optional endpoint override (e.g. LocalStack)
"""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from apps.core.channels import ChannelMessage, ChannelTransport, encode_payload
from apps.core.exceptions import TransportFailure

logger = logging.getLogger(__name__)

# SQS hard limits
MAX_BATCH_SIZE = 10
MAX_WAIT_SECONDS = 20


class SQSChannelTransport(ChannelTransport):
    """
    Channels backed by SQS queues.

    Retries and timeouts are whatever the boto3 client is configured with;
    failures that survive them surface as TransportFailure.
    """

    def __init__(self, region_name: str = 'ap-southeast-1', endpoint_url: Optional[str] = None, client=None):
        super().__init__()
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._sqs_client = client
        self._queue_urls: Dict[str, str] = {}

    @property
    def sqs_client(self):
        """Lazy initialization of SQS client."""
        if self._sqs_client is None:
            import boto3
            self._sqs_client = boto3.client(
                'sqs',
                region_name=self._region_name,
                endpoint_url=self._endpoint_url,
            )
        return self._sqs_client

    def queue_url(self, channel: str) -> str:
        if channel not in self._queue_urls:
            try:
                response = self.sqs_client.get_queue_url(QueueName=channel)
            except (BotoCoreError, ClientError) as e:
                logger.exception(f"[SQS] Could not resolve queue URL for '{channel}': {e}")
                raise TransportFailure(channel, "resolve", e) from e
            self._queue_urls[channel] = response['QueueUrl']
        return self._queue_urls[channel]

    def send(self, channel: str, payload: Any) -> str:
        queue_url = self.queue_url(channel)
        try:
            response = self.sqs_client.send_message(
                QueueUrl=queue_url,
                MessageBody=encode_payload(payload),
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"[SQS] Failed to send to '{channel}': {e}")
            raise TransportFailure(channel, "send", e) from e

        logger.info(f"[SQS] Sent to '{channel}'. SQS MessageId: {response['MessageId']}")
        return response['MessageId']

    def receive_many(
        self,
        channel: str,
        max_messages: int = 10,
        wait_seconds: int = 0,
    ) -> List[ChannelMessage]:
        queue_url = self.queue_url(channel)
        try:
            response = self.sqs_client.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=max(1, min(max_messages, MAX_BATCH_SIZE)),
                WaitTimeSeconds=max(0, min(wait_seconds, MAX_WAIT_SECONDS)),
                AttributeNames=['ApproximateReceiveCount'],
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"[SQS] Failed to receive from '{channel}': {e}")
            raise TransportFailure(channel, "receive", e) from e

        return [
            ChannelMessage(
                message_id=raw['MessageId'],
                body=raw['Body'],
                receipt=raw['ReceiptHandle'],
                receive_count=int(raw.get('Attributes', {}).get('ApproximateReceiveCount', 1)),
            )
            for raw in response.get('Messages', [])
        ]

    def delete(self, channel: str, message: ChannelMessage) -> None:
        queue_url = self.queue_url(channel)
        try:
            self.sqs_client.delete_message(QueueUrl=queue_url, ReceiptHandle=message.receipt)
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"[SQS] Failed to delete message {message.message_id} from '{channel}': {e}")
            raise TransportFailure(channel, "delete", e) from e
