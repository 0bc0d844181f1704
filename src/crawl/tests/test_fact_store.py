import json
import tempfile
from pathlib import Path
import unittest

from crawl.errors import CollaboratorError
from crawl.fact_store import FactStore, JsonFactBackend, MemoryFactBackend


class _BrokenBackend:
    def load_all(self) -> set[str]:
        return set()

    def persist(self, name: str, present: bool) -> None:
        raise OSError("disk full")


class TestFactStore(unittest.TestCase):
    def test_insert_contains_remove(self) -> None:
        store = FactStore()
        store.insert("party is lost")
        self.assertTrue(store.contains("party is lost"))
        store.remove("party is lost")
        self.assertFalse(store.contains("party is lost"))

    def test_operations_are_idempotent(self) -> None:
        store = FactStore()
        store.insert("x")
        store.insert("x")
        self.assertEqual(store.ephemeral, frozenset({"x"}))
        store.remove("x")
        store.remove("x")
        store.remove("never set")
        self.assertEqual(store.ephemeral, frozenset())

    def test_identity_is_exact_text(self) -> None:
        store = FactStore()
        store.insert("Party is lost")
        self.assertFalse(store.contains("party is lost"))
        self.assertFalse(store.contains("Party is lost "))

    def test_namespaces_are_disjoint(self) -> None:
        store = FactStore()
        store.insert("x", "persistent")
        self.assertFalse(store.contains("x", "ephemeral"))
        self.assertTrue(store.contains("x", "persistent"))
        store.insert("x", "ephemeral")
        store.remove("x", "persistent")
        self.assertTrue(store.contains("x"))

    def test_toggle(self) -> None:
        store = FactStore()
        self.assertTrue(store.toggle("door open"))
        self.assertFalse(store.toggle("door open"))
        self.assertFalse(store.contains("door open"))

    def test_unknown_persistence(self) -> None:
        with self.assertRaises(ValueError):
            FactStore().contains("x", "forever")

    def test_persistent_writes_go_to_backend(self) -> None:
        backend = MemoryFactBackend({"old"})
        store = FactStore(backend)
        self.assertTrue(store.contains("old", "persistent"))
        store.insert("new", "persistent")
        store.remove("old", "persistent")
        store.insert("scratch")
        self.assertEqual(backend.facts, {"new"})
        self.assertEqual(backend.writes, [("new", True), ("old", False)])

    def test_backend_failure_is_collaborator_error(self) -> None:
        store = FactStore(_BrokenBackend())
        with self.assertRaises(CollaboratorError) as ctx:
            store.insert("x", "persistent")
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertFalse(store.contains("x", "persistent"))


class TestJsonFactBackend(unittest.TestCase):
    def test_missing_file_is_empty_then_created(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state" / "facts.json"
            backend = JsonFactBackend(path)
            self.assertEqual(backend.load_all(), set())
            backend.persist("party was ambushed", True)
            payload = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(payload, {"version": 1, "facts": ["party was ambushed"]})

    def test_facts_survive_between_instances(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "facts.json"
            first = FactStore(JsonFactBackend(path))
            first.insert("b", "persistent")
            first.insert("a", "persistent")
            first.remove("b", "persistent")
            second = FactStore(JsonFactBackend(path))
            self.assertEqual(second.persistent, frozenset({"a"}))

    def test_duplicates_in_file_are_collapsed(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "facts.json"
            path.write_text('{"version": 1, "facts": ["a", "a", "b"]}', encoding="utf-8")
            self.assertEqual(JsonFactBackend(path).load_all(), {"a", "b"})

    def test_invalid_file_reports_resource(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "facts.json"
            path.write_text('{"version": 2, "facts": []}', encoding="utf-8")
            with self.assertRaises(CollaboratorError) as ctx:
                JsonFactBackend(path).load_all()
            self.assertEqual(ctx.exception.resource, str(path))

            path.write_text("not json", encoding="utf-8")
            with self.assertRaises(CollaboratorError):
                FactStore(JsonFactBackend(path))


if __name__ == "__main__":
    unittest.main()
