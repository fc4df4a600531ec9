# FILE: tests/test_path_injector.py
"""
Tests for slash-path injection into the frontend/backend/shared tree.
"""

import pytest

from archdoc.path_injector import classify_branch, empty_directory_tree, insert_path, split_path


class TestClassification:
    """First-segment keyword rules."""

    @pytest.mark.parametrize("segment,branch", [
        ("frontend", "frontend"),
        ("src", "frontend"),
        ("Client", "frontend"),
        ("backend", "backend"),
        ("server", "backend"),
        ("API", "backend"),
        ("shared", "shared"),
        ("common", "shared"),
        ("lib", "shared"),
        ("routes", "backend"),
        ("docs", "backend"),
    ])
    def test_branch(self, segment, branch):
        assert classify_branch(segment) == branch

    def test_split_drops_empty_segments(self):
        assert split_path("/frontend//components/ ") == ["frontend", "components"]
        assert split_path("///") == []
        assert split_path(None) == []


class TestInsertPath:
    """Walk-or-create with first-write-wins leaves."""

    def test_branch_segment_is_consumed(self):
        tree = insert_path({}, "frontend/components/auth", "Auth UI")
        assert tree == {"frontend": {"components": {"auth": "Auth UI"}}}

    def test_unknown_first_segment_goes_to_backend(self):
        tree = insert_path({}, "routes/users", "User routes")
        assert tree == {"backend": {"routes": {"users": "User routes"}}}

    def test_keyword_alias_is_kept_as_folder(self):
        tree = insert_path(empty_directory_tree(), "src/pages/home")
        assert tree["frontend"] == {"src": {"pages": {"home": "Module: home"}}}
        tree = insert_path(tree, "lib/utils")
        assert tree["shared"] == {"lib": {"utils": "Module: utils"}}

    def test_first_write_wins(self):
        tree = insert_path({}, "backend/services/mail", "Mailer")
        insert_path(tree, "backend/services/mail", "Something else")
        assert tree["backend"]["services"]["mail"] == "Mailer"

    def test_empty_leaf_is_filled(self):
        tree = {"backend": {"services": {"mail": ""}}}
        insert_path(tree, "backend/services/mail", "Mailer")
        assert tree["backend"]["services"]["mail"] == "Mailer"

    def test_leaf_in_the_way_becomes_folder(self):
        tree = {"frontend": {}, "backend": {"routes": "API routes"}, "shared": {}}
        insert_path(tree, "backend/routes/users", "Users")
        assert tree["backend"]["routes"] == {"users": "Users"}

    def test_branch_stored_as_leaf_is_replaced(self):
        tree = {"backend": "everything server side"}
        insert_path(tree, "server/app.py", "Entry point")
        assert tree["backend"] == {"server": {"app.py": "Entry point"}}

    def test_terminal_folder_is_not_overwritten(self):
        tree = {"backend": {"routes": {"users": "Users"}}}
        insert_path(tree, "backend/routes", "Routes")
        assert tree["backend"]["routes"] == {"users": "Users"}

    @pytest.mark.parametrize("path", ["", "///", None, 42])
    def test_noop_paths(self, path):
        tree = empty_directory_tree()
        assert insert_path(tree, path, "x") == empty_directory_tree()

    def test_branch_only_path_creates_branch(self):
        assert insert_path({}, "shared") == {"shared": {}}

    def test_returns_same_tree_object(self):
        tree = {}
        assert insert_path(tree, "api/health") is tree
