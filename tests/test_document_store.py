# FILE: tests/test_document_store.py
"""
Tests for the persistence boundary:
- full create/replace through the dialect upsert
- read-modify-write section updates guarded by the version column
- lost-update protection when a concurrent write lands mid-merge
"""

import pytest

from archdoc.document_locks import DocumentLockRegistry
from archdoc.errors import (
    DocumentNotFoundError,
    SectionHandledElsewhereError,
    StaleDocumentError,
    UnsupportedSectionError,
)
from archdoc.reconciler import ReconcileState


def _create(store, project_id, payload):
    result = store.reconciler.build_document(payload)
    return store.upsert_document(project_id, result, user_id="u-1")


# =============================================================================
# Reads
# =============================================================================

class TestReads:
    """load / check_existing on an empty and a populated store."""

    def test_missing_document(self, store):
        assert store.load("nope") is None
        assert store.check_existing("nope") == {"exists": False}

    def test_check_existing(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        check = store.check_existing("p1")
        assert check["exists"] is True
        assert check["name"] == "Task Tracker"
        assert check["summary"] == {"modules": 2, "endpoints": 2, "has_structure": True}


# =============================================================================
# Create / replace
# =============================================================================

class TestUpsert:
    """INSERT ... ON CONFLICT (project_id) DO UPDATE."""

    def test_create(self, store, ai_architecture):
        document, created, result = _create(store, "p1", ai_architecture)
        assert created is True
        assert result.state == ReconcileState.PERSISTED
        assert document["version"] == 1
        assert document["completeness_score"] == 100
        assert document["created_by"] == "u-1"
        assert document["status"] == "draft"
        assert [m["name"] for m in document["modules"]] == ["Auth", "Boards"]

    def test_replace_keeps_fields_the_payload_does_not_carry(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        document, created, result = _create(store, "p1", {"name": "Renamed", "tech_stack": {"backend": ["Go"]}})
        assert created is False
        assert document["version"] == 2
        assert document["project_name"] == "Renamed"
        assert document["tech_stack"]["backend"]["framework"] == "Go"
        assert document["tech_stack"]["frontend"]["framework"] == ""
        assert [m["name"] for m in document["modules"]] == ["Auth", "Boards"]
        assert document["completeness_score"] == 5 + 15 + 25 + 15 + 5 + 5 + 5

    def test_documents_are_per_project(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        _create(store, "p2", {"name": "Other"})
        assert store.load("p1")["project_name"] == "Task Tracker"
        assert store.load("p2")["project_name"] == "Other"
        assert store.load("p2")["modules"] == []

    def test_save(self, store):
        document = store.save("p1", {"project_name": "Direct", "status": "review", "version": 99})
        assert document["project_name"] == "Direct"
        assert document["status"] == "review"
        assert document["version"] == 1

    def test_save_rejects_non_objects(self, store):
        with pytest.raises(ValueError):
            store.save("p1", ["not", "a", "document"])


# =============================================================================
# Section updates
# =============================================================================

class TestSectionUpdates:
    """Merged writes on top of the stored document."""

    def test_module_merge_keeps_identity(self, store, ai_architecture):
        document, _, _ = _create(store, "p1", ai_architecture)
        auth_id = document["modules"][0]["id"]

        result, document = store.apply_section_update(
            "p1", "modules", [{"name": "auth", "status": "completed"}, {"name": "Billing"}], user_id="u-2"
        )
        assert result.state == ReconcileState.PERSISTED
        assert result.item_count == 3
        auth = document["modules"][0]
        assert auth["id"] == auth_id
        assert auth["name"] == "Auth"
        assert auth["status"] == "completed"
        assert auth["estimated_complexity"] == "high"
        assert document["modules"][2] == {"name": "Billing"}
        assert document["version"] == 2
        assert document["updated_by"] == "u-2"

    def test_structure_update(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        _, document = store.apply_section_update("p1", "structure", '{"backend": {"models": {"user.py": "User"}}}')
        assert document["directory_structure"]["backend"] == {"routes": "API routes", "models": {"user.py": "User"}}
        assert document["directory_structure"]["frontend"] == {"components": {"Board.tsx": "Board view"}}

    def test_missing_document(self, store):
        with pytest.raises(DocumentNotFoundError):
            store.apply_section_update("nope", "modules", [{"name": "Auth"}])

    def test_bad_sections(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        with pytest.raises(UnsupportedSectionError):
            store.apply_section_update("p1", "sprints", [])
        with pytest.raises(SectionHandledElsewhereError):
            store.apply_section_update("p1", "database", [{"entity": "User"}])
        assert store.load("p1")["version"] == 1

    def test_update_document_returns_extra(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        document, module = store.update_document(
            "p1", lambda doc: store.reconciler.add_module(doc, {"name": "Search"}), user_id="u-1"
        )
        assert module["name"] == "Search"
        assert [m["name"] for m in document["modules"]] == ["Auth", "Boards", "Search"]


# =============================================================================
# Concurrency
# =============================================================================

class TestVersionGuard:
    """A write that lands between read and write forces a re-merge."""

    def test_interleaved_write_is_not_lost(self, store):
        _create(store, "p1", {"name": "Shop", "modules": [{"name": "Auth"}]})
        calls = []

        def mutate(document):
            calls.append(document["version"])
            if len(calls) == 1:
                # same thread, so the re-entrant lock lets this through
                store.apply_section_update("p1", "modules", [{"name": "Search"}])
            result = store.reconciler.reconcile_section("modules", [{"name": "Billing"}], document)
            return {**document, "modules": result.merged_fragment}, result

        document, _ = store.update_document("p1", mutate)
        assert calls == [1, 2]
        assert [m["name"] for m in document["modules"]] == ["Auth", "Search", "Billing"]
        assert document["version"] == 3

    def test_gives_up_after_max_retries(self, store):
        _create(store, "p1", {"name": "Shop", "modules": [{"name": "Auth"}]})
        store.max_retries = 2
        calls = []

        def mutate(document):
            calls.append(document["version"])
            store.apply_section_update("p1", "modules", [{"name": f"Module {len(calls)}"}])
            return {**document, "project_name": "Never stored"}, None

        with pytest.raises(StaleDocumentError):
            store.update_document("p1", mutate)
        assert len(calls) == 2
        assert store.load("p1")["project_name"] == "Shop"


# =============================================================================
# Delete and locks
# =============================================================================

class TestDelete:

    def test_delete(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        assert store.delete("p1") is True
        assert store.delete("p1") is False
        assert store.load("p1") is None

    def test_delete_releases_the_document_lock(self, store, ai_architecture):
        _create(store, "p1", ai_architecture)
        _create(store, "p2", {"name": "Other"})
        assert sorted(store.locks.snapshot()) == ["p1", "p2"]
        store.delete("p1")
        assert store.locks.snapshot() == ["p2"]


class TestLockRegistry:

    def test_one_lock_per_document(self):
        locks = DocumentLockRegistry()
        assert locks.lock_for("a") is locks.lock_for("a")
        assert locks.lock_for("a") is not locks.lock_for("b")
        assert sorted(locks.snapshot()) == ["a", "b"]
        locks.forget("a")
        assert locks.snapshot() == ["b"]

    def test_held_is_reentrant(self):
        locks = DocumentLockRegistry()
        with locks.held("a"):
            with locks.held("a"):
                assert locks.snapshot() == ["a"]
