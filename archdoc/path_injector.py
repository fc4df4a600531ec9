# archdoc/path_injector.py

import logging

from archdoc.constants import DEFAULT_BRANCH, PATH_BRANCH_KEYWORDS, PATH_SEPARATOR, TREE_BRANCHES

logger = logging.getLogger("archdoc")


def empty_directory_tree() -> dict:
    return {branch: {} for branch in TREE_BRANCHES}


def split_path(path_string) -> list[str]:
    if not isinstance(path_string, str):
        return []
    clean = path_string.strip().strip(PATH_SEPARATOR).strip()
    if not clean:
        return []
    return [part.strip() for part in clean.split(PATH_SEPARATOR) if part.strip()]


def classify_branch(segment: str) -> str:
    lowered = (segment or "").lower()
    for branch, keywords in PATH_BRANCH_KEYWORDS.items():
        if lowered in keywords:
            return branch
    return DEFAULT_BRANCH


def _is_empty_slot(value) -> bool:
    return value is None or value == ""


def insert_path(tree: dict, path_string, description: str = "") -> dict:
    """
    Insert a slash-delimited path under the frontend/backend/shared branch it belongs to.

    Mutates and returns tree. Intermediate leaves that are in the way are replaced
    by empty folders (their description is lost). The terminal node is only written
    when empty, so an existing description always wins.

    insert_path({}, "frontend/components/auth", "Auth UI")
        -> {"frontend": {"components": {"auth": "Auth UI"}}}
    insert_path({}, "routes/users", "User routes")
        -> {"backend": {"routes": {"users": "User routes"}}}
    """
    if not isinstance(tree, dict):
        return tree

    parts = split_path(path_string)
    if not parts:
        return tree

    branch = classify_branch(parts[0])
    if not isinstance(tree.get(branch), dict):
        tree[branch] = {}

    current = tree[branch]
    path_parts = parts[1:] if parts[0].lower() == branch else parts
    if not path_parts:
        return tree

    for idx, part in enumerate(path_parts):
        is_last = idx == len(path_parts) - 1
        if is_last:
            if _is_empty_slot(current.get(part)):
                current[part] = description or f"Module: {part}"
            else:
                logger.debug(f"[PATH] keeping existing value at {branch}/{'/'.join(path_parts)}")
        else:
            if not isinstance(current.get(part), dict):
                if isinstance(current.get(part), str) and current.get(part):
                    logger.debug(f"[PATH] replacing leaf '{part}' with a folder")
                current[part] = {}
            current = current[part]

    return tree
