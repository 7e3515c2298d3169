import pytest

from memo_app.core.models import Memo, Priority
from memo_app.db.repository import InMemoryMemoRepository


def test_save_new_memo_assigns_id_and_timestamps(repository, clock):
    saved = repository.save(Memo(title="Test Memo", content="Some content"))

    assert saved.id == 1
    assert saved.created_at == clock.now
    assert saved.updated_at == clock.now
    assert repository.find_by_id(1) == saved


def test_save_existing_memo_preserves_created_at(repository):
    saved = repository.save(Memo(title="Original"))
    saved.title = "Updated Title"

    updated = repository.save(saved)

    assert updated.id == saved.id
    assert updated.title == "Updated Title"
    assert updated.created_at == saved.created_at
    assert updated.updated_at > saved.updated_at
    assert repository.count() == 1


def test_returned_memos_do_not_alias_storage(repository):
    saved = repository.save(Memo(title="Original"))

    saved.title = "Mutated"
    fetched = repository.find_by_id(saved.id)
    fetched.priority = Priority.HIGH

    stored = repository.find_by_id(saved.id)
    assert stored.title == "Original"
    assert stored.priority is Priority.NONE


def test_find_by_id_missing_returns_none(repository):
    assert repository.find_by_id(999) is None


def test_find_all_by_ids_skips_unknown_and_duplicates(repository, seeded):
    memos = repository.find_all_by_ids([seeded[2].id, 999, seeded[0].id, seeded[2].id])

    assert [m.id for m in memos] == [seeded[0].id, seeded[2].id]


def test_exists_and_delete(repository, seeded):
    target = seeded[0].id
    assert repository.exists_by_id(target)

    repository.delete_by_id(target)

    assert not repository.exists_by_id(target)
    assert repository.count() == len(seeded) - 1


def test_delete_missing_id_is_a_no_op(repository, seeded):
    repository.delete_by_id(999)

    assert repository.count() == len(seeded)


def test_ids_are_not_reused_after_delete(repository, seeded):
    repository.delete_by_id(seeded[-1].id)

    assert repository.save(Memo(title="Next")).id == seeded[-1].id + 1


def test_count_by_priority(repository, seeded):
    assert repository.count_by_priority(Priority.HIGH) == 2
    assert repository.count_by_priority(Priority.MEDIUM) == 1
    assert repository.count_by_priority(Priority.NONE) == 1


def test_find_by_priorities_orders_highest_then_newest(repository, seeded):
    memos = repository.find_by_priorities({Priority.HIGH, Priority.NONE})

    assert [m.title for m in memos] == ["Release checklist", "Quarterly report", "Random thought"]


def test_find_all_ordered_by_priority(repository, seeded):
    descending = repository.find_all_ordered_by_priority(descending=True)
    ascending = repository.find_all_ordered_by_priority(descending=False)

    assert [m.priority for m in descending] == sorted(
        (m.priority for m in seeded), reverse=True
    )
    assert [m.priority for m in ascending] == sorted(m.priority for m in seeded)
    assert ascending[-2:] == descending[:2]


def test_transaction_rolls_back_on_error(repository, seeded):
    with pytest.raises(RuntimeError):
        with repository.transaction():
            repository.save(Memo(title="Inside"))
            repository.delete_by_id(seeded[0].id)
            raise RuntimeError("boom")

    assert repository.count() == len(seeded)
    assert repository.exists_by_id(seeded[0].id)
    assert repository.save(Memo(title="After")).id == len(seeded) + 1


def test_nested_transaction_joins_outer(repository):
    with pytest.raises(RuntimeError):
        with repository.transaction():
            with repository.transaction():
                repository.save(Memo(title="Nested"))
            raise RuntimeError("boom")

    assert repository.count() == 0


def test_transaction_commits_on_success(repository):
    with repository.transaction():
        repository.save(Memo(title="Kept"))

    assert repository.count() == 1


def test_health_check():
    assert InMemoryMemoRepository().health_check() is True
