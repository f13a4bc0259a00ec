"""Request body validation for the submission endpoints."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from lead_api.core.config import settings
from lead_api.core.errors import PayloadTooLargeAppError, ValidationAppError

logger = logging.getLogger(__name__)


def _too_large(max_bytes: int) -> PayloadTooLargeAppError:
    return PayloadTooLargeAppError(
        code="payload_too_large",
        message=f"Request body too large. Maximum size: {max_bytes} bytes",
        details={"max_bytes": max_bytes},
    )


async def read_body_limited(request: Request, max_bytes: int | None = None) -> bytes:
    """Read the request body in chunks enforcing the max size limit.

    Rejects early on a declared ``Content-Length`` above the limit, then
    enforces the limit again while streaming, since the header may be
    absent or wrong.

    Args:
        request: Incoming request.
        max_bytes: Size limit; ``APP_MAX_BODY_BYTES`` when omitted.

    Returns:
        The raw body.

    Raises:
        PayloadTooLargeAppError: If the body exceeds the limit.
    """
    limit = max_bytes if max_bytes is not None else settings.app.max_body_bytes

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        logger.info(
            "body_validation.rejected_by_header",
            extra={"content_length": int(declared), "max_bytes": limit},
        )
        raise _too_large(limit)

    size = 0
    chunks: list[bytes] = []
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            logger.info(
                "body_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": limit},
            )
            raise _too_large(limit)
        chunks.append(chunk)

    return b"".join(chunks)


def decode_json_object(body: bytes) -> dict[str, Any]:
    """Decode ``body`` as a JSON object.

    Raises:
        ValidationAppError: ``invalid_json`` for malformed JSON or a
            non-object top-level value.
    """
    try:
        payload = json.loads(body.decode("utf-8")) if body.strip() else None
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be a valid JSON object.",
        ) from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be a valid JSON object.",
            details={"hint": "Send a JSON object body."},
        )
    return payload


async def read_json_object(request: Request) -> dict[str, Any]:
    """Read and decode the request body as a size-limited JSON object."""
    return decode_json_object(await read_body_limited(request))
