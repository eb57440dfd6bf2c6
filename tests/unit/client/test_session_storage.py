"""
Unit tests for durable session storage and the observable base.
"""

import json

import pytest

from tvdom.client.observable import Observable
from tvdom.client.session_storage import (
    SESSION_STORAGE_KEY,
    USER_STORAGE_KEY,
    FileSessionStorage,
    MemorySessionStorage,
)


@pytest.mark.unit
@pytest.mark.client
class TestFileSessionStorage:
    def test_values_survive_a_new_instance(self, tmp_path):
        path = tmp_path / "session.json"
        FileSessionStorage(path).set(USER_STORAGE_KEY, {"id": 1, "username": "alice"})

        assert FileSessionStorage(path).get(USER_STORAGE_KEY) == {"id": 1, "username": "alice"}
        assert not (tmp_path / "session.json.tmp").exists()

    def test_clear_session_removes_file(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        storage = FileSessionStorage(path)
        storage.set(USER_STORAGE_KEY, {"id": 1})
        storage.set(SESSION_STORAGE_KEY, {"access_token": "tok"})

        storage.clear_session()

        assert not path.exists()
        assert storage.get(USER_STORAGE_KEY) is None

    def test_unreadable_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        storage = FileSessionStorage(path)

        assert storage.get(USER_STORAGE_KEY) is None

        storage.set(SESSION_STORAGE_KEY, {"access_token": "tok"})
        assert json.loads(path.read_text(encoding="utf-8")) == {
            SESSION_STORAGE_KEY: {"access_token": "tok"}
        }

    def test_memory_storage_is_isolated(self):
        first = MemorySessionStorage({USER_STORAGE_KEY: {"id": 1}})
        second = MemorySessionStorage()

        first.remove(USER_STORAGE_KEY)
        first.remove(USER_STORAGE_KEY)

        assert first.get(USER_STORAGE_KEY) is None
        assert second.get(USER_STORAGE_KEY) is None


@pytest.mark.unit
@pytest.mark.client
class TestObservable:
    def test_subscribe_replays_current_state(self):
        observable = Observable(1)
        seen = []

        unsubscribe = observable.subscribe(seen.append)
        observable._set_state(2)
        observable._set_state(2)
        unsubscribe()
        observable._set_state(3)

        assert seen == [1, 2]
        assert observable.state == 3

    def test_failing_listener_does_not_block_others(self):
        observable = Observable("a")
        seen = []

        def broken(state):
            if state != "a":
                raise RuntimeError("listener bug")

        observable.subscribe(broken)
        observable.subscribe(seen.append)
        observable._set_state("b")

        assert seen == ["a", "b"]
