# archdoc/key_resolver.py

from archdoc.constants import DEFAULT_KEY_FIELDS, SECTION_KEY_FIELDS


def key_fields_for(section: str) -> tuple:
    return SECTION_KEY_FIELDS.get(section, DEFAULT_KEY_FIELDS)


def resolve_key(section: str, item) -> str | None:
    """
    Value of the first candidate identity field that is present and truthy on item.
    Containers are never identities; the next candidate is tried instead.
    """
    if not isinstance(item, dict):
        return None
    for field in key_fields_for(section):
        value = item.get(field)
        if not value or isinstance(value, (dict, list, tuple, set)):
            continue
        if isinstance(value, str):
            if not value.strip():
                continue
            return value
        return str(value)
    return None


def normalize_key(value) -> str | None:
    # "Login" and "login" are the same entity
    if value is None:
        return None
    key = str(value).strip().lower()
    return key or None


def item_key(section: str, item) -> str | None:
    return normalize_key(resolve_key(section, item))


def same_identity(left, right) -> bool:
    a = normalize_key(left)
    return a is not None and a == normalize_key(right)
