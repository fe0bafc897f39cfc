from datetime import datetime, timezone

import pytest

from sqlrestore.errors import DecodeError
from sqlrestore.models.operation import BackupItem, Metadata, Operation, ResourceOutput, Version
from sqlrestore.models.timezone import format_display, parse_timestamp


def test_utc_timestamp_renders_in_taipei():
    moment = parse_timestamp("2024-01-01T00:00:00Z")

    assert format_display(moment) == "2024-01-01T08:00:00+08:00"


def test_offset_timestamp_is_normalized_to_taipei():
    moment = parse_timestamp("2024-06-30T20:30:00-04:00")

    assert format_display(moment) == "2024-07-01T08:30:00+08:00"


def test_fraction_is_truncated_and_dropped_from_display():
    moment = parse_timestamp("2024-01-01T00:00:00.123456789Z")

    assert moment == datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_display(moment) == "2024-01-01T08:00:00+08:00"


def test_short_fraction_is_accepted():
    assert parse_timestamp("2024-01-01T00:00:00.5Z").microsecond == 500000


def test_missing_timestamp_renders_empty():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert format_display(None) == ""


def test_naive_timestamp_is_rejected():
    with pytest.raises(ValueError):
        parse_timestamp("2024-01-01T00:00:00")


def test_operation_from_api_reads_wire_names(make_op):
    payload = make_op(
        "op-42",
        status="RUNNING",
        insert="2024-01-01T00:00:00Z",
        end="2024-01-01T01:00:00Z",
        backup_id="bk-7",
    )

    operation = Operation.from_api(payload)

    assert operation.operation_id == "op-42"
    assert operation.status == "RUNNING"
    assert operation.operation_type == "RESTORE_VOLUME"
    assert operation.target_id == "db1"
    assert operation.backup_id == "bk-7"
    assert operation.is_running
    assert operation.insert_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert operation.start_time is None


def test_operation_without_backup_context_has_empty_backup_id(make_op):
    assert Operation.from_api(make_op("op-1")).backup_id == ""


def test_operation_with_bad_timestamp_is_a_decode_error(make_op):
    payload = make_op("op-1")
    payload["insertTime"] = "hier"

    with pytest.raises(DecodeError):
        Operation.from_api(payload)


def test_operation_must_be_an_object():
    with pytest.raises(DecodeError):
        Operation.from_api(["op-1"])


def test_backup_item_accepts_numeric_id():
    backup = BackupItem.from_api({"id": 1700000000000, "enqueuedTime": "2024-01-01T00:00:00Z"})

    assert backup.backup_id == "1700000000000"


def test_backup_item_requires_id():
    with pytest.raises(DecodeError):
        BackupItem.from_api({"enqueuedTime": "2024-01-01T00:00:00Z"})


def test_resource_output_shape():
    output = ResourceOutput(Version("op-1"), [Metadata("status", "DONE")])

    assert output.to_dict() == {
        "version": {"operation_id": "op-1"},
        "metadata": [{"name": "status", "value": "DONE"}],
    }
    assert output.metadata_value("status") == "DONE"
    assert output.metadata_value("backup-id") is None
