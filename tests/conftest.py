# FILE: tests/conftest.py
"""
Pytest configuration for the archdoc test suite.

Provides:
- a file-backed SQLite database per test
- a DocumentStore with its own lock registry
- sample AI payloads
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest

from archdoc.db_connection import DBConnection
from archdoc.document_locks import DocumentLockRegistry
from archdoc.document_store import DocumentStore


@pytest.fixture
def connection(tmp_path):
    conn = DBConnection(f"sqlite:///{tmp_path / 'architecture.db'}")
    conn.create_schema()
    yield conn
    conn.dispose()


@pytest.fixture
def store(connection):
    return DocumentStore(connection, locks=DocumentLockRegistry())


@pytest.fixture
def ai_architecture():
    """A full architecture as a model would typically emit it."""
    return {
        "name": "Task Tracker",
        "description": "Kanban board for small teams",
        "type": "web_app",
        "scale": "mvp",
        "tech_stack": {
            "frontend": ["React", "TypeScript", "Tailwind"],
            "backend": {"framework": "Express", "language": "Node.js"},
            "database": ["PostgreSQL", "Redis"],
            "devops": ["Vercel", "Render"],
        },
        "modules": [
            {"name": "Auth", "type": "backend", "complexity": "high", "technologies": ["JWT"]},
            {"module_name": "Boards", "type": "frontend", "status": "in-development"},
        ],
        "endpoints": [
            {"method": "post", "endpoint": "/auth/login", "summary": "Login"},
            "GET /boards",
        ],
        "integrations": ["Stripe"],
        "decisions": [{"title": "Use PostgreSQL", "rationale": "Relational data"}],
        "roadmap": ["Auth and boards", {"name": "Realtime", "status": "planned"}],
        "security": {"authentication": "JWT"},
        "project_structure": {
            "frontend": {"components": {"Board.tsx": "Board view"}},
            "backend": {"routes": "API routes"},
        },
    }
