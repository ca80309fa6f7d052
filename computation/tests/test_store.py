"""Store tests: LocalStore on a temporary directory, InMemoryStore semantics."""

import os

import pytest

from computation.errors import StoreIOError
from computation.store import InMemoryStore, LocalStore
from computation.store import namespaces

from .helpers import FakeClock


@pytest.fixture
def local(tmp_path):
    return LocalStore(tmp_path / "store")


class TestLocalStore:

    def test_write_and_read(self, local):
        with local.stream_to("inst/00000/stats.json") as out:
            out.write(b"{}")
        with local.stream_from("inst/00000/stats.json") as f:
            assert f.read() == b"{}"
        assert local.exists("inst/00000/stats.json")
        assert local.exists("inst/00000/", is_file=False)
        assert not local.exists("inst/00000/", is_file=True)

    def test_list(self, local):
        local.mkdir("inst/00000/inbound/")
        local.touch("inst/00000/.done")
        local.touch("inst/.running")
        assert local.list("inst/") == ["inst/.running", "inst/00000/"]
        assert local.list("inst/", recursive=True) == ["inst/.running", "inst/00000/.done"]
        assert local.list("missing/") == []

    def test_size_recursive(self, local):
        with local.stream_to("a/b/one") as out:
            out.write(b"12345")
        with local.stream_to("a/two") as out:
            out.write(b"678")
        assert local.size_recursive("a/") == 8
        assert local.size_recursive("a/b/one") == 5
        assert local.size_recursive("nothing/") == 0

    def test_last_modified(self, local):
        local.touch("k")
        os.utime(local.root / "k", (1000, 1000))
        assert local.last_modified("k") == 1000

    def test_delete(self, local):
        local.touch("inst/x")
        local.delete("inst/x")
        assert not local.exists("inst/x")
        with pytest.raises(StoreIOError) as excinfo:
            local.delete("inst/x")
        assert excinfo.value.key == "inst/x"

    def test_recursive_delete(self, local):
        local.touch("inst/00000/inbound/a")
        local.touch("inst/00000/.done")
        local.recursive_delete("inst/00000/")
        assert not local.exists("inst/00000/", is_file=False)
        local.recursive_delete("inst/00000/")

    def test_missing_last_modified(self, local):
        with pytest.raises(StoreIOError):
            local.last_modified("nope")


class TestInMemoryStore:

    def test_child_updates_parent_mtime(self):
        clock = FakeClock()
        store = InMemoryStore(clock=clock)
        store.mkdir("inst/00001/inbound/")
        clock.advance(50)
        store.put("inst/00001/inbound/data", b"x")
        assert store.last_modified("inst/00001/inbound/") == clock.now
        assert store.last_modified("inst/00001/inbound") == clock.now

    def test_list_children(self):
        store = InMemoryStore()
        store.put("inst/00000/inbound/a", b"1")
        store.touch("inst/.running")
        assert store.list("inst/") == ["inst/.running", "inst/00000/"]
        assert store.list("inst/00000/", recursive=True) == ["inst/00000/inbound/a"]

    def test_stream_commits_on_close(self):
        store = InMemoryStore()
        out = store.stream_to("k")
        out.write(b"abc")
        assert not store.exists("k")
        out.close()
        assert store.read("k") == b"abc"

    def test_recursive_delete(self):
        store = InMemoryStore()
        store.put("inst/00000/inbound/a", b"1")
        store.recursive_delete("inst/00000/")
        assert store.list("inst/") == []
        assert not store.exists("inst/00000/", is_file=False)

    def test_missing_key(self):
        store = InMemoryStore()
        with pytest.raises(StoreIOError):
            store.last_modified("nope")
        with pytest.raises(StoreIOError):
            store.delete("nope")


class TestNamespaces:

    def test_generation_prefix(self):
        assert namespaces.generation_prefix("inst", 42) == "inst/00042/"
        assert namespaces.done_key("inst/", 7) == "inst/00007/.done"
        assert namespaces.inbound_prefix("inst", 0) == "inst/00000/inbound/"

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            namespaces.generation_prefix("inst", namespaces.MAX_GENERATION + 1)

    def test_last_non_empty_delimited(self):
        assert namespaces.last_non_empty_delimited("a/b/00007/") == "00007"
        assert namespaces.last_non_empty_delimited("") == ""
