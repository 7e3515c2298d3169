import pytest

from memo_app.core.exceptions import InvalidPriorityError, MemoValidationError
from memo_app.core.models import Memo, Priority


@pytest.mark.parametrize("raw", ["high", "HIGH", "High", "hIgH"])
def test_parse_is_case_insensitive(raw):
    assert Priority.parse(raw) is Priority.HIGH


@pytest.mark.parametrize("priority", list(Priority))
def test_parse_round_trips_canonical_names(priority):
    assert str(priority) == priority.name
    assert Priority.parse(str(priority)) is priority


def test_parse_none_defaults_to_none_priority():
    assert Priority.parse(None) is Priority.NONE


def test_parse_accepts_a_priority_instance():
    assert Priority.parse(Priority.LOW) is Priority.LOW


@pytest.mark.parametrize("raw", ["INVALID", "", " high", "urgent", 3])
def test_parse_rejects_unknown_values(raw):
    with pytest.raises(InvalidPriorityError) as exc_info:
        Priority.parse(raw)

    assert str(exc_info.value) == f"Invalid priority value: {raw}"
    assert exc_info.value.field == "priority"
    assert exc_info.value.rejected_value == raw


def test_invalid_priority_is_a_validation_error_and_value_error():
    with pytest.raises(MemoValidationError):
        Priority.parse("bogus")
    with pytest.raises(ValueError):
        Priority.parse("bogus")


def test_ranks():
    assert [p.rank for p in (Priority.NONE, Priority.LOW, Priority.MEDIUM, Priority.HIGH)] == [
        0,
        1,
        2,
        3,
    ]


def test_ordering_follows_rank():
    assert Priority.HIGH > Priority.MEDIUM > Priority.LOW > Priority.NONE
    assert Priority.NONE < Priority.LOW <= Priority.LOW
    assert sorted([Priority.MEDIUM, Priority.NONE, Priority.HIGH, Priority.LOW]) == [
        Priority.NONE,
        Priority.LOW,
        Priority.MEDIUM,
        Priority.HIGH,
    ]
    assert max(Priority) is Priority.HIGH


def test_priorities_are_hashable_and_equal_their_names():
    assert {Priority.HIGH: 1}[Priority.parse("high")] == 1
    assert Priority.MEDIUM == "MEDIUM"


def test_memo_is_persisted_only_with_an_id():
    memo = Memo(title="Draft")
    assert memo.priority is Priority.NONE
    assert not memo.is_persisted

    memo.id = 7
    assert memo.is_persisted
