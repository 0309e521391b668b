"""In-memory document store semantics."""
import pytest

from storage import InMemoryDocumentStore, join_path, split_path


class TestPaths:
    def test_split_ignores_empty_segments(self):
        assert split_path("/users//abc/stripe/") == ["users", "abc", "stripe"]

    def test_join(self):
        assert join_path("/events/ev1", "queue") == "/events/ev1/queue"


class TestInMemoryDocumentStore:
    async def test_absent_node_reads_none(self):
        store = InMemoryDocumentStore()
        assert await store.get("/events/missing") is None
        assert await store.exists("/events/missing") is False

    async def test_set_then_get_returns_copy(self):
        store = InMemoryDocumentStore()
        await store.set("/events/ev1", {"name": "Friday"})
        value = await store.get("/events/ev1")
        value["name"] = "changed"
        assert (await store.get("/events/ev1"))["name"] == "Friday"

    async def test_push_generates_ordered_unique_keys(self):
        store = InMemoryDocumentStore()
        keys = [await store.push("/events/ev1/queue", {"n": i}) for i in range(5)]
        assert len(set(keys)) == 5
        assert keys == sorted(keys)
        assert len(await store.get("/events/ev1/queue")) == 5

    async def test_remove_prunes_empty_parents(self):
        store = InMemoryDocumentStore({"users": {"u1": {"stripe": {"accountId": "a"}}}})
        await store.remove("/users/u1/stripe")
        assert store.snapshot() == {}

    async def test_setting_none_deletes(self):
        store = InMemoryDocumentStore({"events": {"ev1": {"a": 1}, "ev2": {"b": 2}}})
        await store.set("/events/ev1", None)
        assert store.snapshot() == {"events": {"ev2": {"b": 2}}}

    async def test_query_by_nested_child(self):
        store = InMemoryDocumentStore({"users": {
            "u1": {"stripe": {"accountId": "acct_1"}},
            "u2": {"stripe": {"accountId": "acct_2"}},
            "u3": {"profile": {}},
        }})
        matches = await store.query_by_child("/users", "stripe/accountId", "acct_2")
        assert list(matches) == ["u2"]

    async def test_writes_are_recorded(self):
        store = InMemoryDocumentStore()
        key = await store.push("/q", {"x": 1})
        await store.remove("/q")
        assert store.writes == [("push", f"/q/{key}"), ("remove", "/q")]


@pytest.mark.parametrize("path", ["/", ""])
async def test_root_write_replaces_tree(path):
    store = InMemoryDocumentStore({"a": 1})
    await store.set(path, {"b": 2})
    assert store.snapshot() == {"b": 2}
