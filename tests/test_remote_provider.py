import logging

import pytest
from sqlalchemy import select

from notes_api.codec import ms_to_iso
from notes_api.db import RemoteClient, RemoteProvider, notes_table
from notes_api.errors import RemoteUnavailableError

from conftest import make_note


@pytest.fixture
def remote(remote_client, local_provider):
    return RemoteProvider(remote_client, fallback=local_provider)


@pytest.fixture
def broken_remote(broken_remote_client, local_provider):
    return RemoteProvider(broken_remote_client, fallback=local_provider)


def remote_rows(client):
    with client.require().connect() as conn:
        rows = conn.execute(select(notes_table).order_by(notes_table.c.id)).mappings().all()
    return {row["id"]: dict(row) for row in rows}


class TestRowOperations:
    def test_create_returns_mapped_row(self, remote):
        created = remote.create(make_note("a", title="Hello", content="World", created=5000, updated=6000))
        assert created == {
            "id": "a",
            "title": "Hello",
            "content": "World",
            "createdAt": 5000,
            "updatedAt": 6000,
        }

    def test_create_duplicate_id_returns_none(self, remote):
        assert remote.create(make_note("a")) is not None
        assert remote.create(make_note("a")) is None

    def test_update_patches_only_given_fields(self, remote):
        remote.create(make_note("a", title="Old", content="Body", created=1000, updated=1000))
        updated = remote.update("a", {"title": "New"})
        assert updated is not None
        assert updated["title"] == "New"
        assert updated["content"] == "Body"
        assert updated["createdAt"] == 1000
        assert updated["updatedAt"] > 1000

    def test_update_with_null_field_keeps_stored_value(self, remote):
        remote.create(make_note("a", title="Kept", content="Body", created=1000, updated=1000))
        updated = remote.update("a", {"title": None, "content": "New"})
        assert updated is not None
        assert updated["title"] == "Kept"
        assert updated["content"] == "New"

    def test_update_missing_row_returns_none(self, remote):
        assert remote.update("nope", {"title": "x"}) is None

    def test_remove_deletes_row(self, remote, remote_client):
        remote.create(make_note("a"))
        remote.create(make_note("b"))
        assert remote.remove("a") is True
        assert set(remote_rows(remote_client)) == {"b"}

    def test_list_is_ordered_by_updated_at_desc(self, remote):
        remote.create(make_note("old", updated=1000))
        remote.create(make_note("new", updated=3000))
        remote.create(make_note("mid", updated=2000))
        result = remote.list()
        assert result.degraded is False
        assert [n["id"] for n in result.value] == ["new", "mid", "old"]


class TestReconciliation:
    def test_save_all_upserts_and_deletes_missing_rows(self, remote, remote_client):
        a = make_note("A", title="a", created=1000, updated=1000)
        b = make_note("B", title="b", created=2000, updated=2000)
        c = make_note("C", title="c", created=3000, updated=3000)
        for note in (a, b, c):
            remote.create(note)
        before = remote_rows(remote_client)

        a_prime = dict(a, title="a'", content="changed", updatedAt=9000)
        result = remote.save_all([a_prime, b])

        assert result.value is True
        assert result.degraded is False
        rows = remote_rows(remote_client)
        assert set(rows) == {"A", "B"}
        assert rows["A"]["title"] == "a'"
        assert rows["A"]["content"] == "changed"
        assert rows["A"]["updated_at"] == ms_to_iso(9000)
        # created_at is never replaced by the upsert
        assert rows["A"]["created_at"] == before["A"]["created_at"]
        assert rows["B"] == before["B"]

    def test_save_all_inserts_new_rows(self, remote, remote_client):
        remote.save_all([make_note("x", created=1000, updated=1500), make_note("y")])
        rows = remote_rows(remote_client)
        assert set(rows) == {"x", "y"}
        assert rows["x"]["created_at"] == ms_to_iso(1000)
        assert rows["x"]["updated_at"] == ms_to_iso(1500)

    def test_save_all_empty_clears_table(self, remote, remote_client):
        remote.save_all([make_note("x"), make_note("y")])
        remote.save_all([])
        assert remote_rows(remote_client) == {}

    def test_save_all_does_not_touch_local_slot(self, remote, local_provider):
        remote.save_all([make_note("x")])
        assert local_provider.list().value == []


class TestFallback:
    def test_save_all_with_unencodable_note_falls_back(self, remote, remote_client, local_provider, caplog):
        with caplog.at_level(logging.ERROR):
            result = remote.save_all([make_note("a", updated="2")])
        assert result.value is True
        assert result.degraded is True
        assert result.fallback.operation == "save_all"
        assert [n["id"] for n in local_provider.list().value] == ["a"]
        assert remote_rows(remote_client) == {}
        assert "falling back to local storage" in caplog.text

    def test_list_failure_serves_local_slot(self, broken_remote, local_provider, caplog):
        local_provider.save_all([make_note("local")])
        with caplog.at_level(logging.ERROR):
            result = broken_remote.list()
        assert [n["id"] for n in result.value] == ["local"]
        assert result.degraded is True
        assert result.fallback.operation == "list"
        assert "falling back to local storage" in caplog.text

    def test_list_failure_with_empty_slot_is_empty(self, broken_remote):
        result = broken_remote.list()
        assert result.value == []
        assert result.degraded is True

    def test_save_all_failure_writes_local_slot(self, broken_remote, local_provider):
        result = broken_remote.save_all([make_note("a"), make_note("b")])
        assert result.value is True
        assert result.fallback.operation == "save_all"
        assert [n["id"] for n in local_provider.list().value] == ["a", "b"]

    def test_row_operations_report_failure(self, broken_remote):
        assert broken_remote.create(make_note("a")) is None
        assert broken_remote.update("a", {"title": "x"}) is None
        assert broken_remote.remove("a") is False


class TestRemoteClient:
    def test_construction_failure_is_memoized(self, local_provider):
        calls = []

        def failing_factory(url, **kwargs):
            calls.append(url)
            raise ImportError("driver not installed")

        client = RemoteClient("postgresql://user@db.example.com/notes", "secret", engine_factory=failing_factory)
        assert client.acquire() is None
        assert client.acquire() is None
        assert client.available is False
        assert len(calls) == 1
        with pytest.raises(RemoteUnavailableError):
            client.require()

        provider = RemoteProvider(client, fallback=local_provider)
        local_provider.save_all([make_note("kept")])
        result = provider.list()
        assert [n["id"] for n in result.value] == ["kept"]
        assert result.degraded is True
        assert len(calls) == 1

    def test_unknown_driver_degrades(self):
        client = RemoteClient("postgresql+nosuchdriver://user@db.example.com/notes", "secret")
        assert client.acquire() is None

    def test_malformed_url_degrades(self):
        client = RemoteClient("not a database url", "secret")
        assert client.acquire() is None

    def test_engine_is_built_once_with_key_as_password(self):
        built = []

        def factory(url, **kwargs):
            built.append(url)
            return object()

        client = RemoteClient("postgresql://notes@db.example.com/notes", "secret", engine_factory=factory)
        first = client.acquire()
        assert client.acquire() is first
        assert len(built) == 1
        assert built[0].password == "secret"
        assert built[0].host == "db.example.com"

    def test_sqlite_url_gets_no_password(self, tmp_path):
        built = []

        def factory(url, **kwargs):
            built.append(url)
            return object()

        RemoteClient(f"sqlite:///{tmp_path / 'x.db'}", "secret", engine_factory=factory).acquire()
        assert built[0].password is None
