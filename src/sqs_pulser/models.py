"""Wire models — queue messages, typed attribute values, anchor, batch response.

Both shapes SQS hands out are accepted: the ``ReceiveMessage`` API shape
(``MessageId``, ``MessageAttributes`` with ``DataType``/``StringValue``) and the
Lambda event record shape (``messageId``, ``messageAttributes`` with
``dataType``/``stringValue``). Attribute values always dump back to the
``SendMessage`` shape.
"""

from __future__ import annotations

import base64
import binascii
from typing import Annotated, Any, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class _AttributeValue(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_sqs(self) -> dict[str, Any]:
        """Return the ``SendMessage`` ``MessageAttributes`` entry."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StringAttributeValue(_AttributeValue):
    data_type: str = Field(
        default="String",
        pattern=r"^String(\..+)?$",
        validation_alias=AliasChoices("DataType", "dataType"),
        serialization_alias="DataType",
    )
    string_value: str = Field(
        validation_alias=AliasChoices("StringValue", "stringValue"),
        serialization_alias="StringValue",
    )


class NumberAttributeValue(_AttributeValue):
    data_type: str = Field(
        default="Number",
        pattern=r"^Number(\..+)?$",
        validation_alias=AliasChoices("DataType", "dataType"),
        serialization_alias="DataType",
    )
    string_value: str = Field(
        validation_alias=AliasChoices("StringValue", "stringValue"),
        serialization_alias="StringValue",
    )


class BinaryAttributeValue(_AttributeValue):
    data_type: str = Field(
        default="Binary",
        pattern=r"^Binary(\..+)?$",
        validation_alias=AliasChoices("DataType", "dataType"),
        serialization_alias="DataType",
    )
    binary_value: bytes = Field(
        validation_alias=AliasChoices("BinaryValue", "binaryValue"),
        serialization_alias="BinaryValue",
    )

    @field_validator("binary_value", mode="before")
    @classmethod
    def _decode_base64(cls, value: Any) -> Any:
        # Lambda event records carry binary attributes base64 encoded.
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise ValueError(f"binary attribute is not valid base64: {e}") from e
        return value


def _base_data_type(value: Any) -> str | None:
    """Return the base type (``String``/``Number``/``Binary``) of an attribute."""
    if isinstance(value, dict):
        data_type = value.get("DataType", value.get("dataType"))
    else:
        data_type = getattr(value, "data_type", None)
    if not isinstance(data_type, str):
        return None
    return data_type.split(".", 1)[0]


MessageAttributeValue = Annotated[
    Union[
        Annotated[StringAttributeValue, Tag("String")],
        Annotated[NumberAttributeValue, Tag("Number")],
        Annotated[BinaryAttributeValue, Tag("Binary")],
    ],
    Discriminator(_base_data_type),
]


class QueueMessage(BaseModel):
    """A message as received from the queue (API response or Lambda record)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("MessageId", "messageId"),
    )
    receipt_handle: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ReceiptHandle", "receiptHandle"),
    )
    body: str = Field(default="", validation_alias=AliasChoices("Body", "body"))
    attributes: dict[str, str] | None = Field(
        default=None,
        validation_alias=AliasChoices("Attributes", "attributes"),
    )
    message_attributes: dict[str, MessageAttributeValue] | None = Field(
        default=None,
        validation_alias=AliasChoices("MessageAttributes", "messageAttributes"),
    )


class OriginalAttributes(BaseModel):
    """The anchor: identity and send time of a logical message, fixed on first sight."""

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(min_length=1)
    sent_timestamp: int = Field(
        ge=INT64_MIN, le=INT64_MAX, description="Epoch milliseconds"
    )


class BatchItemFailure(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item_identifier: str = Field(
        validation_alias=AliasChoices("itemIdentifier", "ItemIdentifier"),
        serialization_alias="itemIdentifier",
    )


class BatchResponse(BaseModel):
    """Lambda partial batch response (``ReportBatchItemFailures``)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    batch_item_failures: list[BatchItemFailure] = Field(
        default_factory=list,
        validation_alias=AliasChoices("batchItemFailures", "BatchItemFailures"),
        serialization_alias="batchItemFailures",
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dict the Lambda runtime expects."""
        return self.model_dump(by_alias=True)
