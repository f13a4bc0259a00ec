"""Lead record models and the store snapshot.

Records are immutable once created. They are serialized with camelCase
aliases (``intentionProducts``, ``sourcePage``, ``createdAt``) to keep the
wire format of the existing website forms and admin pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN_SOURCE = "unknown"


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ConsultationRecord(_Record):
    """A consultation request submitted from a product page."""

    id: str = Field(..., description="Opaque unique identifier.")
    name: str = Field(..., max_length=40, description="Contact name, trimmed.")
    phone: str = Field(..., pattern=r"^1[0-9]{10}$", description="11-digit mobile number starting with 1.")
    intention_products: tuple[str, ...] = Field(
        ...,
        description="Products the contact is interested in (deduplicated).",
    )
    source_page: str = Field(UNKNOWN_SOURCE, max_length=40, description="Page the form was submitted from.")
    created_at: str = Field(..., description="ISO-8601 acceptance timestamp.")


class PhoneLeadRecord(_Record):
    """A bare phone number left through a call-back widget."""

    id: str = Field(..., description="Opaque unique identifier.")
    phone: str = Field(..., pattern=r"^1[0-9]{10}$", description="11-digit mobile number starting with 1.")
    source: str = Field(UNKNOWN_SOURCE, max_length=40, description="Widget or page that captured the number.")
    created_at: str = Field(..., description="ISO-8601 acceptance timestamp.")


LeadRecord = ConsultationRecord | PhoneLeadRecord


@dataclass(frozen=True)
class Snapshot:
    """Complete, internally consistent collection of all records at an instant.

    Snapshots are values: writers build a new one and swap the reference,
    so a reader holding a snapshot never sees a half-applied write.
    """

    consultations: tuple[ConsultationRecord, ...] = field(default_factory=tuple)
    phone_leads: tuple[PhoneLeadRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.consultations and not self.phone_leads

    def __len__(self) -> int:
        return len(self.consultations) + len(self.phone_leads)

    def with_record(self, record: LeadRecord) -> Snapshot:
        """Return a new snapshot with ``record`` appended to its collection."""
        if isinstance(record, ConsultationRecord):
            return Snapshot(self.consultations + (record,), self.phone_leads)
        return Snapshot(self.consultations, self.phone_leads + (record,))
