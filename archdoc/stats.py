# archdoc/stats.py

from archdoc.constants import COMPLETENESS_WEIGHTS, HTTP_METHODS


def _get(document: dict, *path):
    node = document
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _items(document: dict, field: str) -> list:
    value = (document or {}).get(field)
    return value if isinstance(value, list) else []


def calculate_completeness(document: dict) -> int:
    """
    Weighted 0-100 score of how much of the architecture has been defined.
    """
    document = document or {}
    checks = {
        "project_type": bool(document.get("project_type")),
        "tech_stack_frontend": bool(_get(document, "tech_stack", "frontend", "framework")),
        "tech_stack_backend": bool(_get(document, "tech_stack", "backend", "framework")),
        "tech_stack_database": bool(_get(document, "tech_stack", "database", "primary")),
        "modules": bool(_items(document, "modules")),
        "api_endpoints": bool(_items(document, "api_endpoints")),
        "integrations": bool(_items(document, "integrations")),
        "roadmap": bool(_items(document, "technical_roadmap")),
        "security": bool(_get(document, "security", "authentication_method")),
    }
    return sum(COMPLETENESS_WEIGHTS[name] for name, passed in checks.items() if passed)


def _count_by(items: list, field: str, values) -> dict:
    return {value: sum(1 for item in items if isinstance(item, dict) and item.get(field) == value) for value in values}


def _current_phase(roadmap: list):
    for phase in roadmap:
        if isinstance(phase, dict) and phase.get("status") == "in_progress":
            return phase
    return None


def calculate_stats(document: dict) -> dict:
    modules = _items(document, "modules")
    endpoints = _items(document, "api_endpoints")
    integrations = _items(document, "integrations")
    roadmap = _items(document, "technical_roadmap")
    current = _current_phase(roadmap)

    return {
        "modules": {
            "total": len(modules),
            "by_status": _count_by(modules, "status", ("planned", "in_development", "completed", "deprecated", "blocked")),
            "by_type": _count_by(modules, "type", ("frontend", "backend", "shared", "infrastructure")),
        },
        "endpoints": {
            "total": len(endpoints),
            "by_method": _count_by(endpoints, "method", sorted(HTTP_METHODS)),
            "implemented": sum(1 for e in endpoints if isinstance(e, dict) and e.get("status") == "implemented"),
        },
        "integrations": {
            "total": len(integrations),
            "active": sum(1 for i in integrations if isinstance(i, dict) and i.get("status") == "active"),
        },
        "roadmap": {
            "total_phases": len(roadmap),
            "current_phase": current.get("phase") if current else None,
            "completed_phases": sum(1 for p in roadmap if isinstance(p, dict) and p.get("status") == "completed"),
        },
        "completeness": (document or {}).get("completeness_score") or 0,
    }


def _framework_label(category: dict | None) -> str | None:
    if not isinstance(category, dict) or not category.get("framework"):
        return None
    if category.get("language"):
        return f"{category['framework']} + {category['language']}"
    return category["framework"]


def stack_summary(document: dict) -> dict:
    stack = (document or {}).get("tech_stack") or {}
    infrastructure = stack.get("infrastructure") or {}
    return {
        "frontend": _framework_label(stack.get("frontend")),
        "backend": _framework_label(stack.get("backend")),
        "database": (stack.get("database") or {}).get("primary") or None,
        "hosting": infrastructure.get("hosting_frontend") or infrastructure.get("hosting_backend") or None,
    }


def generate_summary(document: dict | None) -> dict:
    """
    Compact view of the architecture for use as AI context.
    """
    if not document:
        return {
            "exists": False,
            "needs_definition": True,
            "message": "This project has no architecture defined yet. Define it before planning sprints or stories.",
        }

    stats = calculate_stats(document)
    modules = _items(document, "modules")
    return {
        "exists": True,
        "summary": {
            "project_name": document.get("project_name") or "Untitled",
            "project_type": document.get("project_type"),
            "scale": document.get("scale"),
            "status": document.get("status"),
            "completeness": document.get("completeness_score") or 0,
            "tech_stack": stack_summary(document),
            "modules": {
                "list": [
                    {
                        "name": m.get("name"),
                        "type": m.get("type"),
                        "status": m.get("status"),
                        "complexity": m.get("estimated_complexity"),
                    }
                    for m in modules if isinstance(m, dict)
                ],
                "stats": stats["modules"],
            },
            "current_phase": _current_phase(_items(document, "technical_roadmap")),
            "integrations": [
                {"name": i.get("name"), "type": i.get("type"), "status": i.get("status")}
                for i in _items(document, "integrations") if isinstance(i, dict)
            ],
            "endpoints_count": stats["endpoints"]["total"],
            "decisions_count": len(_items(document, "architecture_decisions")),
        },
    }


def _has_structure(tree) -> bool:
    if not isinstance(tree, dict):
        return False
    return any(bool(branch) for branch in tree.values())


def check_summary(document: dict | None) -> dict:
    if not document:
        return {"exists": False}
    return {
        "exists": True,
        "id": document.get("id"),
        "name": document.get("project_name"),
        "summary": {
            "modules": len(_items(document, "modules")),
            "endpoints": len(_items(document, "api_endpoints")),
            "has_structure": _has_structure(document.get("directory_structure")),
        },
        "last_updated": document.get("updated_at"),
    }
