from datetime import datetime, timezone
from decimal import Decimal

import pytest

from amlsentinel.core.errors import ValidationError
from amlsentinel.domain.validation import parse_iso_datetime, validate_batch


def test_parse_iso_datetime_variants():
    assert parse_iso_datetime("2025-12-21T18:48:00Z") == datetime(2025, 12, 21, 18, 48, tzinfo=timezone.utc)
    seven_digits = parse_iso_datetime("2025-12-21T18:48:00.4600072Z")
    assert seven_digits.microsecond == 460007
    assert parse_iso_datetime("2025-12-21").tzinfo is timezone.utc


def test_valid_batch_is_normalized_in_input_order():
    records = validate_batch(
        [
            {"amount": "10000", "from_account": " A ", "to_account": "B", "timestamp": "2026-03-01T10:00:00Z", "notes": "x"},
            {"amount": 12.5, "from_account": 1001, "to_account": "C", "transaction_type": "WIRE"},
        ]
    )

    assert [r.from_account for r in records] == ["A", "1001"]
    assert records[0].amount == Decimal("10000")
    assert records[1].amount == Decimal("12.5")
    assert records[0].transaction_type == "transfer"
    assert records[1].transaction_type == "wire"
    assert records[1].timestamp is None


def test_every_invalid_record_is_reported_with_index_and_field():
    with pytest.raises(ValidationError) as ei:
        validate_batch(
            [
                {"amount": "10", "from_account": "A", "to_account": "B"},
                {"amount": "-5", "from_account": "A", "to_account": "B"},
                {"amount": "abc", "from_account": "", "to_account": "B"},
                "not a record",
            ]
        )

    err = ei.value
    assert err.record_indexes == [1, 2, 3]
    fields = {(i.index, i.field) for i in err.issues}
    assert (1, "amount") in fields
    assert (2, "amount") in fields
    assert (2, "from_account") in fields
    assert (3, "record") in fields
    assert err.code == "VALIDATION_ERROR"


def test_missing_fields_are_reported():
    with pytest.raises(ValidationError) as ei:
        validate_batch([{"amount": "10"}])
    assert {i.field for i in ei.value.issues} == {"from_account", "to_account"}


def test_bad_timestamp_is_a_validation_issue():
    with pytest.raises(ValidationError) as ei:
        validate_batch([{"amount": "10", "from_account": "A", "to_account": "B", "timestamp": "yesterday"}])
    assert ei.value.issues[0].field == "timestamp"


def test_self_transfer_policy():
    raw = [{"amount": "10", "from_account": "A", "to_account": "A"}]

    with pytest.raises(ValidationError) as ei:
        validate_batch(raw)
    assert ei.value.issues[0].field == "to_account"

    assert validate_batch(raw, allow_self_transfers=True)[0].to_account == "A"


def test_empty_batch_is_valid():
    assert validate_batch([]) == []


def test_offset_timestamps_are_normalized_to_utc():
    (record,) = validate_batch([{"amount": "1", "from_account": "A", "to_account": "B", "timestamp": "2026-03-01T10:00:00+05:00"}])
    assert record.timestamp == datetime(2026, 3, 1, 5, 0, tzinfo=timezone.utc)
    assert record.timestamp.utcoffset().total_seconds() == 0
