"""
Unit tests for the in-memory user store.
"""
import pytest
import sys
import os
from concurrent.futures import ThreadPoolExecutor

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from store import UserNotFoundError, UserStore


@pytest.fixture
def store():
    store = UserStore()
    store.create("John Doe", "john@example.com")
    store.create("Jane Doe", "jane@example.com")
    return store


class TestCreate:
    """Tests for id assignment on create."""
    
    def test_ids_follow_creation_count(self):
        store = UserStore()
        assert [store.create(f"u{i}", f"u{i}@example.com").id for i in range(3)] == [1, 2, 3]
    
    def test_ids_monotonic_after_delete(self, store):
        """A deleted id is never handed out again."""
        store.delete(2)
        assert store.create("Jim", "jim@example.com").id == 3
        store.delete(1)
        assert store.create("Joe", "joe@example.com").id == 4


class TestRead:
    """Tests for list and get."""
    
    def test_list_in_creation_order(self, store):
        assert [u.name for u in store.list()] == ["John Doe", "Jane Doe"]
    
    def test_list_is_a_snapshot(self, store):
        users = store.list()
        store.create("Jim", "jim@example.com")
        assert len(users) == 2
        assert len(store) == 3
    
    def test_get_returns_created_record(self, store):
        user = store.create("Jim", "jim@example.com")
        assert store.get(user.id) == user
    
    def test_get_missing_raises(self, store):
        with pytest.raises(UserNotFoundError) as excinfo:
            store.get(999)
        assert excinfo.value.user_id == 999
        assert isinstance(excinfo.value, LookupError)


class TestUpdate:
    """Tests for in-place update."""
    
    def test_update_overwrites_in_place(self, store):
        user = store.get(1)
        updated = store.update(1, name="Johnny", email="johnny@example.com")
        assert updated is user
        assert (user.id, user.name, user.email) == (1, "Johnny", "johnny@example.com")
        assert store.get(2).name == "Jane Doe"
    
    def test_update_keeps_missing_fields(self, store):
        store.update(2, email="jane@work.example.com")
        assert store.get(2).name == "Jane Doe"
        assert store.get(2).email == "jane@work.example.com"
    
    def test_update_missing_leaves_store_unchanged(self, store):
        before = [u.model_dump() for u in store.list()]
        with pytest.raises(UserNotFoundError):
            store.update(999, name="Ghost")
        assert [u.model_dump() for u in store.list()] == before


class TestDelete:
    """Tests for delete."""
    
    def test_delete_removes_exactly_one(self, store):
        store.delete(1)
        assert len(store) == 1
        with pytest.raises(UserNotFoundError):
            store.get(1)
        assert store.get(2).name == "Jane Doe"
    
    def test_delete_missing_leaves_store_unchanged(self, store):
        with pytest.raises(UserNotFoundError):
            store.delete(999)
        assert len(store) == 2


class TestConcurrency:
    """Tests for the store lock under concurrent callers."""
    
    def test_concurrent_creates_get_distinct_ids(self):
        store = UserStore()
        with ThreadPoolExecutor(max_workers=16) as pool:
            users = list(pool.map(lambda i: store.create(f"u{i}", f"u{i}@example.com"), range(2000)))
        assert sorted(u.id for u in users) == list(range(1, 2001))
        assert len(store) == 2000
