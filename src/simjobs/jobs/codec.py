"""Queue message codec.

The body on the wire is a UTF-8 JSON object using the camelCase field
names clients already send (``simulationId``, ``agentCount``). The
transport moves raw bytes; this module is the only place that knows the
body format.
"""

from __future__ import annotations

import json

from pydantic import ValidationError as PydanticValidationError

from simjobs.core.errors import MessageDecodeError

from .models import QueueMessage

CONTENT_TYPE = "application/json"
CONTENT_ENCODING = "utf-8"


def encode_message(message: QueueMessage) -> bytes:
    """Serialize a message to its wire body. Absent optional fields are omitted."""
    payload = message.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, separators=(",", ":")).encode(CONTENT_ENCODING)


def decode_message(body: bytes | str) -> QueueMessage:
    """Parse a wire body.

    Raises:
        MessageDecodeError: If the body is not UTF-8 JSON, not an object,
            or lacks a required field.
    """
    try:
        text = body.decode(CONTENT_ENCODING) if isinstance(body, bytes) else body
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageDecodeError(f"Message body is not valid JSON: {e}", cause=e) from e

    if not isinstance(data, dict):
        raise MessageDecodeError(
            f"Message body must be a JSON object, got {type(data).__name__}"
        )

    try:
        return QueueMessage.model_validate(data)
    except PydanticValidationError as e:
        raise MessageDecodeError(
            f"Message body is missing or has invalid fields: {e.error_count()} error(s)",
            cause=e,
        ).with_context(simulation_id=_as_id(data.get("simulationId"))) from e


def _as_id(value: object) -> str | None:
    return None if value is None else str(value)


def body_preview(body: bytes | str, limit: int = 2000) -> str:
    """Best-effort text rendering of a body for dead letters and logs."""
    text = body.decode(CONTENT_ENCODING, errors="replace") if isinstance(body, bytes) else body
    return text[:limit]


__all__ = [
    "CONTENT_TYPE",
    "CONTENT_ENCODING",
    "encode_message",
    "decode_message",
    "body_preview",
]
