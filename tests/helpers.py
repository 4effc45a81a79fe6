"""Message builders and constants shared by the tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

INCOMING_URL = "https://sqs.us-east-2.amazonaws.com/123456789012/incoming"
OUTGOING_URL = "https://sqs.us-east-2.amazonaws.com/123456789012/outgoing"

MESSAGE_ID = "059f36b4-87a3-44ab-83d2-661975830a7d"
RECEIPT_HANDLE = "AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a..."
ORIGINAL_ID = "d3217307-c31f-42ad-a235-2d80def3f919"
# 2018-12-17T21:20:49.183Z
ORIGINAL_SENT_TIMESTAMP = 1545081649183
# 2018-12-17T21:37:29.183Z
SENT_TIMESTAMP = 1545082649183


def utc(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00")).astimezone(timezone.utc)


def api_message(
    *,
    message_id: str = MESSAGE_ID,
    body: str = "test",
    sent_timestamp: int | None = SENT_TIMESTAMP,
    message_attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """A message in the ReceiveMessage API shape."""
    raw: dict[str, Any] = {
        "MessageId": message_id,
        "ReceiptHandle": RECEIPT_HANDLE,
        "Body": body,
        "MD5OfBody": "098f6bcd4621d373cade4e832627b4f6",
        "Attributes": {
            "ApproximateReceiveCount": "1",
            "SenderId": "AIDAIENQZJOLO23YVJ4VO",
            "ApproximateFirstReceiveTimestamp": "1545082649185",
        },
    }
    if sent_timestamp is not None:
        raw["Attributes"]["SentTimestamp"] = str(sent_timestamp)
    if message_attributes is not None:
        raw["MessageAttributes"] = message_attributes
    return raw


def anchor_attributes(
    original_id: str = ORIGINAL_ID,
    original_sent: str = str(ORIGINAL_SENT_TIMESTAMP),
) -> dict[str, Any]:
    return {
        "OriginalMessageID": {"DataType": "String", "StringValue": original_id},
        "OriginalSentTimestamp": {"DataType": "Number", "StringValue": original_sent},
    }


def lambda_record(
    *,
    message_id: str = MESSAGE_ID,
    sent_timestamp: int = SENT_TIMESTAMP,
    message_attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """A record in the Lambda SQS event shape."""
    return {
        "messageId": message_id,
        "receiptHandle": RECEIPT_HANDLE,
        "body": "test",
        "attributes": {
            "ApproximateReceiveCount": "1",
            "SentTimestamp": str(sent_timestamp),
            "SenderId": "AIDAIENQZJOLO23YVJ4VO",
            "ApproximateFirstReceiveTimestamp": "1545082649185",
        },
        "messageAttributes": message_attributes or {},
        "md5OfBody": "098f6bcd4621d373cade4e832627b4f6",
        "eventSource": "aws:sqs",
        "eventSourceARN": "arn:aws:sqs:us-east-2:123456789012:my-queue",
        "awsRegion": "us-east-2",
    }


def lambda_anchor_attributes(
    original_id: str = ORIGINAL_ID,
    original_sent: str = str(ORIGINAL_SENT_TIMESTAMP),
) -> dict[str, Any]:
    return {
        "OriginalMessageID": {
            "stringValue": original_id,
            "stringListValues": [],
            "binaryListValues": [],
            "dataType": "String",
        },
        "OriginalSentTimestamp": {
            "stringValue": original_sent,
            "stringListValues": [],
            "binaryListValues": [],
            "dataType": "Number",
        },
    }
