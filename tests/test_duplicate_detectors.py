"""Unit tests for duplicate submission detectors."""

from datetime import datetime, timedelta, timezone

import pytest

from lead_api.adapters.duplicates import (
    InMemoryDuplicateDetector,
    SnapshotDuplicateDetector,
    create_duplicate_detector,
    equality_key,
)
from lead_api.core.config import StoreSettings
from lead_api.schemas.leads import ConsultationRecord, PhoneLeadRecord, Snapshot
from lead_api.utils.timestamps import format_timestamp

T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _consultation(record_id: str = "c1", at: datetime = T0, **overrides) -> ConsultationRecord:
    fields = {
        "id": record_id,
        "name": "Zhang San",
        "phone": "13800138000",
        "intention_products": ("A", "B"),
        "source_page": "home",
        "created_at": format_timestamp(at),
    }
    fields.update(overrides)
    return ConsultationRecord(**fields)


def _phone_lead(record_id: str = "p1", at: datetime = T0, **overrides) -> PhoneLeadRecord:
    fields = {"id": record_id, "phone": "13800138000", "source": "footer", "created_at": format_timestamp(at)}
    fields.update(overrides)
    return PhoneLeadRecord(**fields)


def test_equality_key_ignores_product_order_and_name() -> None:
    first = _consultation(intention_products=("A", "B"))
    second = _consultation("c2", name="Someone Else", intention_products=("B", "A"))

    assert equality_key(first) == equality_key(second)


def test_equality_key_differs_between_kinds() -> None:
    assert equality_key(_consultation()) != equality_key(_phone_lead())


class TestSnapshotDuplicateDetector:
    """History-scanning detector."""

    def test_out_of_range_stored_timestamp_is_not_recent(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(phone_leads=(_phone_lead(created_at="9999-12-31T23:59:59-01:00"),))

        assert detector.is_duplicate(_phone_lead("p2"), snapshot, T0) is False

    def test_same_consultation_within_window_is_duplicate(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(consultations=(_consultation(),))

        candidate = _consultation("c2", intention_products=("B", "A"))
        assert detector.is_duplicate(candidate, snapshot, T0 + timedelta(minutes=5)) is True

    def test_boundary_is_inclusive(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(consultations=(_consultation(),))

        assert detector.is_duplicate(_consultation("c2"), snapshot, T0 + timedelta(seconds=600)) is True
        assert detector.is_duplicate(_consultation("c2"), snapshot, T0 + timedelta(seconds=601)) is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"phone": "13800138001"},
            {"source_page": "pricing"},
            {"intention_products": ("A",)},
        ],
    )
    def test_different_key_is_not_duplicate(self, overrides) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(consultations=(_consultation(),))

        assert detector.is_duplicate(_consultation("c2", **overrides), snapshot, T0) is False

    def test_phone_lead_matches_on_phone_and_source(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(phone_leads=(_phone_lead(),))

        assert detector.is_duplicate(_phone_lead("p2"), snapshot, T0) is True
        assert detector.is_duplicate(_phone_lead("p2", source="header"), snapshot, T0) is False

    def test_consultation_does_not_match_phone_lead_history(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(phone_leads=(_phone_lead(),))

        assert detector.is_duplicate(_consultation(), snapshot, T0) is False

    def test_unparsable_history_timestamp_never_matches(self) -> None:
        detector = SnapshotDuplicateDetector(window_seconds=600)
        snapshot = Snapshot(consultations=(_consultation(created_at="garbage"),))

        assert detector.is_duplicate(_consultation("c2"), snapshot, T0) is False


class TestInMemoryDuplicateDetector:
    """Key -> last-accepted map detector."""

    def test_remembers_accepted_records(self) -> None:
        detector = InMemoryDuplicateDetector(window_seconds=600)
        empty = Snapshot()

        assert detector.is_duplicate(_consultation(), empty, T0) is False
        detector.remember(_consultation(), T0)

        assert detector.is_duplicate(_consultation("c2"), empty, T0 + timedelta(minutes=10)) is True
        assert detector.is_duplicate(_consultation("c2"), empty, T0 + timedelta(minutes=10, seconds=1)) is False

    def test_expired_keys_are_evicted(self) -> None:
        detector = InMemoryDuplicateDetector(window_seconds=600)
        detector.remember(_consultation(), T0)
        detector.remember(_phone_lead(), T0)
        assert len(detector) == 2

        detector.is_duplicate(_phone_lead("p2"), Snapshot(), T0 + timedelta(hours=1))
        assert len(detector) == 0


def test_invalid_window_raises() -> None:
    with pytest.raises(ValueError):
        SnapshotDuplicateDetector(window_seconds=0)


@pytest.mark.parametrize(
    "strategy, expected",
    [("snapshot", SnapshotDuplicateDetector), ("memory", InMemoryDuplicateDetector)],
)
def test_factory_selects_strategy(strategy: str, expected: type) -> None:
    detector = create_duplicate_detector(
        StoreSettings(duplicate_detector=strategy, duplicate_window_seconds=120)  # type: ignore[call-arg]
    )

    assert isinstance(detector, expected)
    assert detector.window == timedelta(seconds=120)
