from typing import Optional

import pytest

from notes_api.db import RemoteClient
from notes_api.init_remote_schema import init_schema
from notes_api.kv_store import JsonFileSlotStore
from notes_api.repositories import LocalProvider
from notes_api.settings import Settings


class FakeClock:
    """Deterministic epoch-ms clock: returns start, start+step, ..."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


def make_settings(data_dir, remote_url: Optional[str] = None, remote_key: Optional[str] = None) -> Settings:
    return Settings(
        remote_url=remote_url,
        remote_key=remote_key,
        data_dir=str(data_dir),
        cors_allow_origins=["*"],
        log_level="INFO",
    )


def make_note(note_id, title="t", content="c", created=1000, updated=1000):
    return {
        "id": note_id,
        "title": title,
        "content": content,
        "createdAt": created,
        "updatedAt": updated,
    }


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def slot_store(tmp_path):
    return JsonFileSlotStore(tmp_path / "data")


@pytest.fixture
def local_provider(slot_store):
    return LocalProvider(slot_store)


@pytest.fixture
def remote_url(tmp_path):
    return f"sqlite:///{tmp_path / 'remote.db'}"


@pytest.fixture
def remote_client(remote_url):
    """Remote client over a SQLite file with the notes table created."""
    client = RemoteClient(remote_url, "test-key")
    init_schema(client.require())
    yield client
    client.dispose()


@pytest.fixture
def broken_remote_client(tmp_path):
    """Remote client whose database has no notes table, so every query fails."""
    client = RemoteClient(f"sqlite:///{tmp_path / 'empty.db'}", "test-key")
    yield client
    client.dispose()
