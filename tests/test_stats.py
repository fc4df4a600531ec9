# FILE: tests/test_stats.py
"""
Tests for completeness scoring, statistics and summaries.
"""

from archdoc.normalizer import normalize_document
from archdoc.stats import calculate_completeness, calculate_stats, check_summary, generate_summary, stack_summary


class TestCompleteness:
    """Weighted score over the defined parts of the document."""

    def test_full_document_scores_100(self, ai_architecture):
        document, _ = normalize_document(ai_architecture)
        assert calculate_completeness(document) == 100

    def test_empty_document(self):
        assert calculate_completeness({}) == 0
        assert calculate_completeness(None) == 0

    def test_partial(self):
        document = {
            "project_type": "spa",
            "tech_stack": {"frontend": {"framework": "Vue"}, "backend": {"framework": ""}},
            "modules": [{"name": "Core"}],
        }
        assert calculate_completeness(document) == 5 + 15 + 25


class TestStats:
    """Counts by status, type and method."""

    def test_counts(self):
        document = {
            "modules": [
                {"name": "A", "status": "completed", "type": "frontend"},
                {"name": "B", "status": "planned", "type": "backend"},
                {"name": "C", "status": "planned", "type": "backend"},
            ],
            "api_endpoints": [
                {"path": "/a", "method": "GET", "status": "implemented"},
                {"path": "/b", "method": "POST"},
            ],
            "integrations": [{"name": "Stripe", "status": "active"}, {"name": "Mailgun"}],
            "technical_roadmap": [
                {"phase": "Phase 1", "status": "completed"},
                {"phase": "Phase 2", "status": "in_progress"},
            ],
        }
        stats = calculate_stats(document)
        assert stats["modules"]["total"] == 3
        assert stats["modules"]["by_status"]["planned"] == 2
        assert stats["modules"]["by_type"]["backend"] == 2
        assert stats["endpoints"]["by_method"]["POST"] == 1
        assert stats["endpoints"]["implemented"] == 1
        assert stats["integrations"]["active"] == 1
        assert stats["roadmap"]["current_phase"] == "Phase 2"
        assert stats["roadmap"]["completed_phases"] == 1


class TestSummaries:
    """AI context and existence checks."""

    def test_stack_summary(self, ai_architecture):
        document, _ = normalize_document(ai_architecture)
        assert stack_summary(document) == {
            "frontend": "React + TypeScript",
            "backend": "Express + Node.js",
            "database": "PostgreSQL",
            "hosting": "Vercel",
        }

    def test_generate_summary_without_document(self):
        summary = generate_summary(None)
        assert summary["exists"] is False
        assert summary["needs_definition"] is True

    def test_generate_summary(self, ai_architecture):
        document, _ = normalize_document(ai_architecture)
        summary = generate_summary(document)["summary"]
        assert summary["project_name"] == "Task Tracker"
        assert [m["name"] for m in summary["modules"]["list"]] == ["Auth", "Boards"]
        assert summary["endpoints_count"] == 2
        assert summary["decisions_count"] == 1

    def test_check_summary(self):
        assert check_summary(None) == {"exists": False}
        result = check_summary({
            "id": "x",
            "project_name": "P",
            "modules": [{"name": "A"}],
            "api_endpoints": [],
            "directory_structure": {"frontend": {}, "backend": {"app.py": "entry"}, "shared": {}},
        })
        assert result["exists"] is True
        assert result["summary"] == {"modules": 1, "endpoints": 0, "has_structure": True}
        assert check_summary({"directory_structure": {"frontend": {}, "backend": {}, "shared": {}}})["summary"]["has_structure"] is False
