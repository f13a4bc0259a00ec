"""Validation and canonicalization of raw lead fields into records.

Two families of functions live here:

- ``normalize_consultation`` / ``normalize_phone_lead`` turn a submitted
  body into a record or raise ``ValidationAppError``. They are pure: id and
  timestamp are passed in by the caller.
- ``restore_consultation`` / ``restore_phone_lead`` rebuild records from
  stored rows (SQLite, legacy JSON). They are lenient about shape and fill
  gaps, but still refuse rows whose phone fails the format check.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from lead_api.core.errors import ValidationAppError
from lead_api.schemas.leads import UNKNOWN_SOURCE, ConsultationRecord, PhoneLeadRecord, Snapshot
from lead_api.utils.text_normalizer import is_valid_phone, normalize_text, normalize_text_list
from lead_api.utils.timestamps import format_timestamp

logger = logging.getLogger(__name__)

MAX_NAME_CHARS = 40
MAX_PHONE_CHARS = 20
MAX_PRODUCT_CHARS = 30
MAX_SOURCE_CHARS = 40
MAX_ID_CHARS = 100
MAX_TIMESTAMP_CHARS = 40


def normalize_phone(value: Any) -> str:
    """Trim a submitted phone number and validate its format.

    Raises:
        ValidationAppError: ``invalid_phone`` when the result is not ``^1[0-9]{10}$``.
    """
    phone = normalize_text(value, MAX_PHONE_CHARS)
    if not is_valid_phone(phone):
        raise ValidationAppError(
            code="invalid_phone",
            message="Phone must be an 11-digit mobile number starting with 1.",
            details={"field": "phone"},
        )
    return phone


def normalize_products(value: Any) -> tuple[str, ...]:
    """Normalize the intention products list.

    Raises:
        ValidationAppError: ``invalid_products`` when nothing remains after
            trimming, truncation and deduplication.
    """
    products = normalize_text_list(value, MAX_PRODUCT_CHARS) if isinstance(value, list) else []
    if not products:
        raise ValidationAppError(
            code="invalid_products",
            message="Select at least one product.",
            details={"field": "intentionProducts"},
        )
    return tuple(products)


def _source(value: Any) -> str:
    return normalize_text(value, MAX_SOURCE_CHARS) or UNKNOWN_SOURCE


def normalize_consultation(
    raw: Mapping[str, Any],
    *,
    record_id: str,
    created_at: datetime,
) -> ConsultationRecord:
    """Validate a consultation submission and build its record.

    Args:
        raw: Decoded request body.
        record_id: Identifier to assign.
        created_at: Acceptance time (timezone-aware).

    Returns:
        ConsultationRecord ready for the store.

    Raises:
        ValidationAppError: ``invalid_name``, ``invalid_phone`` or ``invalid_products``.
    """
    name = normalize_text(raw.get("name"), MAX_NAME_CHARS)
    if not name:
        raise ValidationAppError(
            code="invalid_name",
            message="Name is required.",
            details={"field": "name"},
        )

    return ConsultationRecord(
        id=record_id,
        name=name,
        phone=normalize_phone(raw.get("phone")),
        intention_products=normalize_products(raw.get("intentionProducts")),
        source_page=_source(raw.get("sourcePage")),
        created_at=format_timestamp(created_at),
    )


def normalize_phone_lead(
    raw: Mapping[str, Any],
    *,
    record_id: str,
    created_at: datetime,
) -> PhoneLeadRecord:
    """Validate a phone lead submission and build its record.

    Raises:
        ValidationAppError: ``invalid_phone``.
    """
    return PhoneLeadRecord(
        id=record_id,
        phone=normalize_phone(raw.get("phone")),
        source=_source(raw.get("source")),
        created_at=format_timestamp(created_at),
    )


def _stored_products(value: Any) -> tuple[str, ...]:
    # SQLite keeps the list as JSON text; legacy files store a real list
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return ()
    if not isinstance(value, list):
        return ()
    return tuple(normalize_text_list(value, MAX_PRODUCT_CHARS))


def _stored_common(row: Mapping[str, Any]) -> tuple[str, str, str] | None:
    phone = normalize_text(row.get("phone"), MAX_PHONE_CHARS)
    if not is_valid_phone(phone):
        logger.warning(
            "normalizer.stored_row_skipped",
            extra={"reason": "invalid_phone", "row_id": normalize_text(row.get("id"), MAX_ID_CHARS)},
        )
        return None
    record_id = normalize_text(row.get("id"), MAX_ID_CHARS) or str(uuid.uuid4())
    created_at = normalize_text(row.get("createdAt"), MAX_TIMESTAMP_CHARS) or format_timestamp(
        datetime.now(timezone.utc)
    )
    return record_id, phone, created_at


def restore_consultation(row: Mapping[str, Any]) -> ConsultationRecord | None:
    """Rebuild a consultation from a stored row, or ``None`` if its phone is unusable."""
    common = _stored_common(row)
    if common is None:
        return None
    record_id, phone, created_at = common
    return ConsultationRecord(
        id=record_id,
        name=normalize_text(row.get("name"), MAX_NAME_CHARS),
        phone=phone,
        intention_products=_stored_products(row.get("intentionProducts")),
        source_page=_source(row.get("sourcePage")),
        created_at=created_at,
    )


def restore_phone_lead(row: Mapping[str, Any]) -> PhoneLeadRecord | None:
    """Rebuild a phone lead from a stored row, or ``None`` if its phone is unusable."""
    common = _stored_common(row)
    if common is None:
        return None
    record_id, phone, created_at = common
    return PhoneLeadRecord(
        id=record_id,
        phone=phone,
        source=_source(row.get("source")),
        created_at=created_at,
    )


def restore_snapshot(raw: Any) -> Snapshot:
    """Rebuild a whole snapshot from ``{"consultations": [...], "phoneLeads": [...]}``.

    Missing or non-list collections are treated as empty. Rows that reuse an
    id already seen in the same collection get a fresh one, so the id
    uniqueness invariant holds for imported data too.
    """
    shaped = raw if isinstance(raw, Mapping) else {}

    def _rows(key: str) -> list[Mapping[str, Any]]:
        value = shaped.get(key)
        if not isinstance(value, list):
            return []
        return [row for row in value if isinstance(row, Mapping)]

    def _unique(records: list[Any]) -> tuple[Any, ...]:
        seen: set[str] = set()
        result = []
        for record in records:
            if record.id in seen:
                record = record.model_copy(update={"id": str(uuid.uuid4())})
            seen.add(record.id)
            result.append(record)
        return tuple(result)

    consultations = [r for r in map(restore_consultation, _rows("consultations")) if r is not None]
    phone_leads = [r for r in map(restore_phone_lead, _rows("phoneLeads")) if r is not None]
    return Snapshot(_unique(consultations), _unique(phone_leads))
