# archdoc/normalizer.py
"""
Canonicalization of AI-authored architecture fragments.

Every entity type has a declared alias table in archdoc.constants. Two modes:

- create (required=True): full canonical shape, documented defaults filled in.
- patch (required=False): aliases resolved and present fields coerced, nothing
  defaulted. A default injected here would overwrite a stored value during the
  shallow list merge, so absent stays absent. Unknown keys are kept.

Nothing in this module mutates its input.
"""

import json
import logging
from uuid import uuid4

from archdoc.constants import (
    COMPLEXITY_LEVELS,
    DECISION_ALIASES,
    DECISION_STATUSES,
    DOCUMENT_ALIASES,
    ENDPOINT_ALIASES,
    ENDPOINT_STATUSES,
    ENTITY_ALIASES,
    FIELD_ALIASES,
    HTTP_METHODS,
    INTEGRATION_ALIASES,
    INTEGRATION_STATUSES,
    INTEGRATION_TYPES,
    MODULE_ALIASES,
    MODULE_STATUSES,
    MODULE_TYPES,
    PATTERN_ALIASES,
    PATTERN_SCOPES,
    PHASE_ALIASES,
    PHASE_STATUSES,
    PROJECT_SCALES,
    PROJECT_TYPES,
    REQUIRED_IDENTITY_FIELDS,
    SECTION_FIELD_MAP,
    STACK_CATEGORY_ALIASES,
    STACK_FIELDS,
)
from archdoc.errors import UnsupportedSectionError, ValidationError
from archdoc.mergers import merge_tree
from archdoc.path_injector import classify_branch, empty_directory_tree, insert_path

logger = logging.getLogger("archdoc")

_MISSING = object()
_INVALID = object()


# -----------------------
# Coercion helpers
# -----------------------

def _pick(item: dict, aliases) -> object:
    for alias in aliases:
        if alias in item and item[alias] is not None:
            return item[alias]
    return _MISSING


def _has_identity(item, aliases) -> bool:
    if isinstance(item, str):
        return bool(item.strip())
    if not isinstance(item, dict):
        return False
    value = _pick(item, aliases)
    if value is _MISSING:
        return False
    return bool(str(value).strip())


def _as_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    try:
        return json.dumps(value)
    except TypeError:
        return str(value).strip()


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, (tuple, set)):
        return list(value)
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [value]


def _as_str_list(value) -> list[str]:
    out = []
    for entry in _as_list(value):
        if isinstance(entry, dict):
            entry = entry.get("name") or entry.get("title") or json.dumps(entry)
        text = _as_str(entry)
        if text:
            out.append(text)
    return out


def _as_bool(value, default: bool) -> bool:
    if value is None or value is _MISSING:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "y", "1", "required"):
            return True
        if lowered in ("false", "no", "n", "0", "optional", ""):
            return False
        return default
    return bool(value)


def _as_int(value, default):
    if isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _enum_token(value) -> str:
    return _as_str(value).lower().replace("-", "_").replace(" ", "_")


def _enum(allowed):
    def coerce(value):
        token = _enum_token(value)
        return token if token in allowed else _INVALID
    return coerce


def _method(value):
    token = _as_str(value).upper()
    return token if token in HTTP_METHODS else _INVALID


def _build(item: dict, aliases, coercers: dict, defaults: dict, create: bool) -> dict:
    """
    Walk an alias table, coerce what is present and (create mode only) default what is not.
    """
    out = {}
    consumed = set()
    for field, names in aliases.items():
        raw = _pick(item, names)
        for name in names:
            if name in item:
                consumed.add(name)
        value = _INVALID if raw is _MISSING else coercers.get(field, _as_str)(raw)
        if value is _INVALID:
            if raw is not _MISSING:
                logger.debug(f"[NORMALIZE] dropping invalid value for '{field}': {raw!r}")
            if create and field in defaults:
                default = defaults[field]
                out[field] = default() if callable(default) else default
            continue
        out[field] = value

    if not create:
        for key, value in item.items():
            if key not in consumed and key not in out:
                out[key] = value
    return out


# -----------------------
# Tech stack
# -----------------------

def _stack_value(value) -> str:
    if isinstance(value, list):
        return ", ".join(_as_str_list(value))
    return _as_str(value)


def normalize_stack_category(raw, category: str, create: bool = True) -> dict:
    """
    A list of strings is mapped by position onto the category's field list;
    object entries inside that list are merged key-for-key. An object is passed
    through field-for-field.
    """
    fields = STACK_FIELDS.get(category, ())
    result = {field: "" for field in fields} if create else {}

    if isinstance(raw, str):
        raw = [raw]

    if isinstance(raw, list):
        for index, entry in enumerate(raw):
            if isinstance(entry, str):
                if index < len(fields):
                    result[fields[index]] = entry.strip()
            elif isinstance(entry, dict):
                for key, value in entry.items():
                    result[str(key)] = _stack_value(value)
    elif isinstance(raw, dict):
        for key, value in raw.items():
            result[str(key)] = _stack_value(value)
    return result


def normalize_tech_stack(raw, create: bool = True) -> dict:
    if not isinstance(raw, dict):
        raw = {}
    out = {}
    consumed = set()
    for category, names in STACK_CATEGORY_ALIASES.items():
        for name in names:
            if name in raw:
                consumed.add(name)
        value = _pick(raw, names)
        if value is _MISSING:
            if create:
                out[category] = normalize_stack_category(None, category, create=True)
            continue
        out[category] = normalize_stack_category(value, category, create=create)

    for key, value in raw.items():
        if key in consumed or key in out:
            continue
        out[str(key)] = normalize_stack_category(value, str(key), create=False)
    return out


# -----------------------
# Modules
# -----------------------

_MODULE_COERCERS = {
    "type": _enum(MODULE_TYPES),
    "status": _enum(MODULE_STATUSES),
    "dependencies": _as_str_list,
    "estimated_complexity": _enum(COMPLEXITY_LEVELS),
    "features": _as_str_list,
}

_MODULE_DEFAULTS = {
    "id": lambda: uuid4().hex,
    "description": "",
    "type": "backend",
    "status": "planned",
    "dependencies": list,
    "estimated_complexity": "medium",
    "features": list,
    "notes": "",
}


def normalize_module(item, index: int = 0, create: bool = False) -> dict:
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, dict):
        item = {}
    module = _build(item, MODULE_ALIASES, _MODULE_COERCERS, _MODULE_DEFAULTS, create)
    if create and not module.get("name"):
        module["name"] = f"Module {index + 1}"
    if create and not module.get("path"):
        module.pop("path", None)
    return module


# -----------------------
# Endpoints
# -----------------------

def _normalize_param(param, required_default: bool, with_extras: bool = False) -> dict:
    if isinstance(param, str):
        return {"name": param.strip(), "type": "String", "required": required_default, "description": ""}
    if not isinstance(param, dict):
        param = {}
    out = {
        "name": _as_str(param.get("name")),
        "type": _as_str(param.get("type")) or "String",
        "required": _as_bool(param.get("required"), required_default),
        "description": _as_str(param.get("description")),
    }
    if with_extras:
        if "default_value" in param or "default" in param:
            out["default_value"] = param.get("default_value", param.get("default"))
        if param.get("enum_values") or param.get("enum"):
            out["enum_values"] = param.get("enum_values") or param.get("enum")
    return out


def _normalize_path_params(value):
    return [_normalize_param(p, True) for p in _as_list(value)]


def _normalize_query_params(value):
    return [_normalize_param(p, False, with_extras=True) for p in _as_list(value)]


def _normalize_request_body(value) -> dict:
    if not isinstance(value, dict):
        return {
            "content_type": "application/json",
            "required": True,
            "description": "",
            "schema": value,
            "example": None,
        }
    return {
        "content_type": _as_str(value.get("content_type") or value.get("contentType")) or "application/json",
        "required": _as_bool(value.get("required"), True),
        "description": _as_str(value.get("description")),
        "schema": value.get("schema"),
        "example": value.get("example"),
    }


def _normalize_response(value) -> dict:
    if not isinstance(value, dict):
        return {
            "status_code": _as_int(value, 200),
            "description": "",
            "content_type": "application/json",
            "schema": None,
            "example": None,
        }
    code = value.get("status_code", value.get("statusCode", value.get("status")))
    return {
        "status_code": _as_int(code, 200),
        "description": _as_str(value.get("description")),
        "content_type": _as_str(value.get("content_type")) or "application/json",
        "schema": value.get("schema"),
        "example": value.get("example"),
    }


def _normalize_responses(value):
    if isinstance(value, dict):
        # {"200": {...}, "404": {...}} style
        out = []
        for code, body in value.items():
            entry = dict(body) if isinstance(body, dict) else {"description": _as_str(body)}
            entry.setdefault("status_code", code)
            out.append(_normalize_response(entry))
        return out
    return [_normalize_response(r) for r in _as_list(value)]


def _normalize_rate_limit(value) -> dict:
    if not isinstance(value, dict):
        return {"enabled": _as_bool(value, False), "max_requests": None, "window_ms": None}
    return {
        "enabled": _as_bool(value.get("enabled"), False),
        "max_requests": value.get("max_requests"),
        "window_ms": value.get("window_ms"),
    }


_ENDPOINT_COERCERS = {
    "method": _method,
    "tags": _as_str_list,
    "auth_required": lambda v: _as_bool(v, True),
    "roles_allowed": _as_str_list,
    "permissions": _as_str_list,
    "path_params": _normalize_path_params,
    "query_params": _normalize_query_params,
    "headers": _as_list,
    "request_body": _normalize_request_body,
    "responses": _normalize_responses,
    "rate_limit": _normalize_rate_limit,
    "status": _enum(ENDPOINT_STATUSES),
}

_ENDPOINT_DEFAULTS = {
    "method": "GET",
    "path": "/",
    "summary": "",
    "description": "",
    "module": "",
    "tags": list,
    "auth_required": True,
    "roles_allowed": list,
    "permissions": list,
    "status": "planned",
    "version": "v1",
    "related_entity": "",
}


def _endpoint_from_string(text: str) -> dict:
    # "GET /users/:id" or just "/users/:id"
    parts = text.strip().split(None, 1)
    if len(parts) == 2 and parts[0].upper() in HTTP_METHODS:
        return {"method": parts[0], "path": parts[1]}
    return {"path": text.strip()}


def normalize_endpoint(item, create: bool = False) -> dict:
    if isinstance(item, str):
        item = _endpoint_from_string(item)
    if not isinstance(item, dict):
        item = {}
    return _build(item, ENDPOINT_ALIASES, _ENDPOINT_COERCERS, _ENDPOINT_DEFAULTS, create)


# -----------------------
# Database entities
# -----------------------

_FIELD_OPTIONAL_KEYS = (
    "ref_field", "trim", "lowercase", "uppercase", "minlength", "maxlength", "match",
    "min", "max", "array_type", "array_max", "array_min", "example",
    "is_primary_key", "auto_generate", "is_sensitive", "exclude_from_response",
)


def normalize_field(field) -> dict:
    """
    One entity field; recurses through nested_fields.
    """
    if isinstance(field, str):
        return {"name": field.strip(), "type": "String", "required": False}
    if not isinstance(field, dict):
        field = {}

    name = _pick(field, FIELD_ALIASES["name"])
    field_type = _pick(field, FIELD_ALIASES["type"])
    out = {
        "name": ("" if name is _MISSING else _as_str(name)) or "unknown",
        "type": ("" if field_type is _MISSING else _as_str(field_type)) or "String",
        "required": _as_bool(field.get("required"), False),
        "unique": _as_bool(field.get("unique"), False),
        "index": _as_bool(field.get("index"), False),
        "sparse": _as_bool(field.get("sparse"), False),
        "description": _as_str(field.get("description")),
    }

    default = _pick(field, FIELD_ALIASES["default_value"])
    if default is not _MISSING:
        out["default_value"] = default

    reference = _pick(field, FIELD_ALIASES["reference"])
    if reference is not _MISSING and reference:
        out["reference"] = reference
        out["is_foreign_key"] = True

    enum_values = _pick(field, FIELD_ALIASES["enum_values"])
    if enum_values is not _MISSING and enum_values:
        out["enum_values"] = _as_list(enum_values)

    for key in _FIELD_OPTIONAL_KEYS:
        if key in field and field[key] is not None and field[key] is not False:
            out[key] = field[key]

    nested = field.get("nested_fields")
    if isinstance(nested, list):
        out["nested_fields"] = [normalize_field(nf) for nf in nested]

    return out


def _normalize_fields(value):
    if isinstance(value, dict):
        # {"email": {"type": "String"}, ...} style
        fields = []
        for name, spec in value.items():
            entry = dict(spec) if isinstance(spec, dict) else {"type": _as_str(spec)}
            entry.setdefault("name", name)
            fields.append(entry)
        value = fields
    return [normalize_field(f) for f in _as_list(value)]


def _normalize_timestamps(value):
    if not isinstance(value, dict):
        value = {"enabled": _as_bool(value, True)}
    return {
        "enabled": value.get("enabled") is not False,
        "created_at": _as_str(value.get("created_at")) or "createdAt",
        "updated_at": _as_str(value.get("updated_at")) or "updatedAt",
    }


def _normalize_soft_delete(value):
    if not isinstance(value, dict):
        value = {"enabled": _as_bool(value, False)}
    return {
        "enabled": _as_bool(value.get("enabled"), False),
        "field": _as_str(value.get("field")) or "deleted_at",
    }


def _normalize_index(value):
    if isinstance(value, str):
        return {"fields": [value], "unique": False}
    if not isinstance(value, dict):
        return {"fields": _as_str_list(value), "unique": False}
    fields = value.get("fields")
    if fields is None and value.get("field"):
        fields = [value.get("field")]
    return {
        "fields": _as_str_list(fields),
        "unique": _as_bool(value.get("unique"), False),
        "sparse": _as_bool(value.get("sparse"), False),
        "name": _as_str(value.get("name")),
    }


def _normalize_relationship(value):
    if isinstance(value, str):
        return {"type": "one-to-many", "target_entity": value, "field": value}
    if not isinstance(value, dict):
        value = {}
    return {
        "type": _as_str(value.get("type")) or "one-to-many",
        "target_entity": _as_str(value.get("target") or value.get("target_entity")),
        "field": _as_str(value.get("field")),
        "foreign_field": _as_str(value.get("foreign_field")),
        "cascade_delete": _as_bool(value.get("cascade_delete"), False),
        "description": _as_str(value.get("description")),
    }


def _normalize_hook(value):
    if isinstance(value, str):
        return {"event": "pre-save", "description": value}
    if not isinstance(value, dict):
        value = {}
    return {
        "event": _as_str(value.get("event")) or "pre-save",
        "description": _as_str(value.get("description")),
    }


_ENTITY_COERCERS = {
    "fields": _normalize_fields,
    "timestamps": _normalize_timestamps,
    "soft_delete": _normalize_soft_delete,
    "indexes": lambda v: [_normalize_index(i) for i in _as_list(v)],
    "relationships": lambda v: [_normalize_relationship(r) for r in _as_list(v)],
    "hooks": lambda v: [_normalize_hook(h) for h in _as_list(v)],
}

_ENTITY_DEFAULTS = {
    "entity": "Unknown",
    "description": "",
    "collection_name": "",
    "fields": list,
    "module": "",
}


def normalize_entity(item, create: bool = False) -> dict:
    if isinstance(item, str):
        item = {"entity": item}
    if not isinstance(item, dict):
        item = {}
    return _build(item, ENTITY_ALIASES, _ENTITY_COERCERS, _ENTITY_DEFAULTS, create)


# -----------------------
# Decisions, roadmap, integrations, patterns, security
# -----------------------

def normalize_decision(item, create: bool = False) -> dict:
    if isinstance(item, str):
        item = {"title": item, "decision": item}
    if not isinstance(item, dict):
        item = {}
    return _build(
        item,
        DECISION_ALIASES,
        {"status": _enum(DECISION_STATUSES), "alternatives_considered": _as_str_list},
        {
            "title": "Decision",
            "status": "accepted",
            "context": "",
            "decision": "",
            "consequences": "",
            "alternatives_considered": list,
        },
        create,
    )


def normalize_phase(item, index: int = 0, create: bool = False) -> dict:
    if isinstance(item, str):
        return {
            "phase": f"Phase {index + 1}",
            "name": item.strip(),
            "description": item.strip(),
            "status": "planned",
        }
    if not isinstance(item, dict):
        item = {}
    return _build(
        item,
        PHASE_ALIASES,
        {
            "modules_included": _as_str_list,
            "features": _as_str_list,
            "status": _enum(PHASE_STATUSES),
        },
        {
            "phase": f"Phase {index + 1}",
            "name": "",
            "description": "",
            "modules_included": list,
            "features": list,
            "status": "planned",
        },
        create,
    )


def normalize_integration(item, create: bool = False) -> dict:
    if isinstance(item, str):
        item = {"name": item}
    if not isinstance(item, dict):
        item = {}
    return _build(
        item,
        INTEGRATION_ALIASES,
        {"type": _enum(INTEGRATION_TYPES), "status": _enum(INTEGRATION_STATUSES)},
        {"name": "Integration", "type": "other", "provider": "", "status": "planned"},
        create,
    )


def normalize_pattern(item, create: bool = False) -> dict:
    if isinstance(item, str):
        item = {"pattern": item}
    if not isinstance(item, dict):
        item = {}
    return _build(
        item,
        PATTERN_ALIASES,
        {"applied_to": _enum(PATTERN_SCOPES)},
        {"pattern": "Unknown", "applied_to": "all", "description": ""},
        create,
    )


def normalize_security(raw, create: bool = True) -> dict:
    if raw is None or raw is _MISSING:
        return {}
    if isinstance(raw, str):
        raw = {"authentication": raw}
    if not isinstance(raw, dict):
        return {}
    return _build(
        raw,
        {
            "authentication_method": ("authentication_method", "authentication", "auth"),
            "authorization_model": ("authorization_model", "authorization"),
            "encryption_at_rest": ("encryption_at_rest",),
            "encryption_in_transit": ("encryption_in_transit",),
            "security_headers": ("security_headers",),
            "audit_logging": ("audit_logging",),
        },
        {
            "encryption_at_rest": lambda v: _as_bool(v, False),
            "encryption_in_transit": lambda v: _as_bool(v, True),
            "security_headers": lambda v: _as_bool(v, True),
            "audit_logging": lambda v: _as_bool(v, False),
        },
        {
            "authentication_method": "",
            "authorization_model": "",
            "encryption_at_rest": False,
            "encryption_in_transit": True,
            "security_headers": True,
            "audit_logging": False,
        },
        create,
    )


# -----------------------
# Directory structure
# -----------------------

def _normalize_tree_node(node):
    if isinstance(node, dict):
        out = {}
        for key, value in node.items():
            name = _as_str(key)
            if not name:
                continue
            out[name] = _normalize_tree_node(value)
        return out
    if isinstance(node, list):
        # a list of children becomes a folder; nodes are either leaves or maps
        folder = {}
        for entry in node:
            if isinstance(entry, dict):
                folder = merge_tree(folder, _normalize_tree_node(entry))
            else:
                name = _as_str(entry)
                if name and name not in folder:
                    folder[name] = ""
        return folder
    return _as_str(node)


def normalize_directory_structure(raw, create: bool = True) -> dict:
    """
    Tree input is re-homed under frontend/backend/shared using the same keyword rules
    as path injection; a list of paths (strings or {path, description}) is injected.
    """
    tree = empty_directory_tree() if create else {}

    if isinstance(raw, list):
        for entry in raw:
            if isinstance(entry, dict):
                insert_path(tree, entry.get("path"), _as_str(entry.get("description")))
            else:
                insert_path(tree, entry, "")
        return tree

    if not isinstance(raw, dict):
        return tree

    for key, value in _normalize_tree_node(raw).items():
        branch = classify_branch(key)
        if key.lower() == branch:
            # root branches are always folders
            incoming = value if isinstance(value, dict) else {}
        else:
            incoming = {key: value}
        current = tree.get(branch)
        tree[branch] = merge_tree(current if isinstance(current, dict) else {}, incoming)
    return tree


# -----------------------
# List dispatch
# -----------------------

def _as_item_list(raw) -> list:
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str) and raw.strip():
        return [raw]
    return []


def normalize_modules(raw, create: bool = False) -> list:
    return [normalize_module(m, idx, create) for idx, m in enumerate(_as_item_list(raw))]


def normalize_endpoints(raw, create: bool = False) -> list:
    return [normalize_endpoint(e, create) for e in _as_item_list(raw)]


def normalize_database_schema(raw, create: bool = False) -> list:
    return [normalize_entity(e, create) for e in _as_item_list(raw)]


def normalize_decisions(raw, create: bool = False) -> list:
    return [normalize_decision(d, create) for d in _as_item_list(raw)]


def normalize_roadmap(raw, create: bool = False) -> list:
    return [normalize_phase(p, idx, create) for idx, p in enumerate(_as_item_list(raw))]


def normalize_integrations(raw, create: bool = False) -> list:
    return [normalize_integration(i, create) for i in _as_item_list(raw)]


def normalize_patterns(raw, create: bool = False) -> list:
    return [normalize_pattern(p, create) for p in _as_item_list(raw)]


_KIND_ALIASES = {
    "structure": "directory_structure",
    "directory_structure": "directory_structure",
    "modules": "modules",
    "endpoints": "api_endpoints",
    "api_endpoints": "api_endpoints",
    "database": "database_schema",
    "database_schema": "database_schema",
    "entities": "database_schema",
    "tech_stack": "tech_stack",
    "decisions": "architecture_decisions",
    "architecture_decisions": "architecture_decisions",
    "roadmap": "technical_roadmap",
    "technical_roadmap": "technical_roadmap",
    "integrations": "integrations",
    "patterns": "architecture_patterns",
    "architecture_patterns": "architecture_patterns",
    "security": "security",
    "document": "document",
}

_NORMALIZERS = {
    "directory_structure": normalize_directory_structure,
    "modules": normalize_modules,
    "api_endpoints": normalize_endpoints,
    "database_schema": normalize_database_schema,
    "tech_stack": normalize_tech_stack,
    "architecture_decisions": normalize_decisions,
    "technical_roadmap": normalize_roadmap,
    "integrations": normalize_integrations,
    "architecture_patterns": normalize_patterns,
    "security": normalize_security,
}

_IDENTITY_ALIAS_TABLES = {
    "modules": MODULE_ALIASES,
    "api_endpoints": ENDPOINT_ALIASES,
}


def canonical_kind(kind: str) -> str:
    canonical = _KIND_ALIASES.get((kind or "").strip().lower())
    if canonical is None:
        raise UnsupportedSectionError(f"Unknown architecture fragment kind: {kind}")
    return canonical


def _validate_required_list(field: str, raw_items) -> None:
    identity = REQUIRED_IDENTITY_FIELDS.get(field)
    if not identity:
        return
    items = _as_item_list(raw_items)
    if not items:
        return
    aliases = _IDENTITY_ALIAS_TABLES[field][identity]
    if not any(_has_identity(item, aliases) for item in items):
        raise ValidationError(
            f"'{field}' has {len(items)} item(s) but none carries a '{identity}' "
            f"(accepted names: {', '.join(aliases)})"
        )


def normalize(kind: str, raw, required: bool = False, **kwargs):
    """
    normalize(kind, raw_fragment) -> canonical fragment.

    required=True switches to create mode (full shape, defaults, identity validation
    for lists that must be identifiable).
    """
    canonical = canonical_kind(kind)
    if canonical == "document":
        document, _ = normalize_document(raw, **kwargs)
        return document
    if required and canonical in REQUIRED_IDENTITY_FIELDS:
        _validate_required_list(canonical, raw)
    return _NORMALIZERS[canonical](raw, create=required)


# -----------------------
# Full document
# -----------------------

def _required_fields(required_sections) -> set[str]:
    fields = set()
    for section in required_sections or ():
        fields.add(SECTION_FIELD_MAP.get(section, section))
    return fields


def normalize_document(raw, context: dict | None = None, required_sections=("modules",)) -> tuple[dict, list[str]]:
    """
    Normalize a whole AI-authored architecture at once.

    Returns (document, present_fields) where present_fields lists the document
    fields that the payload actually carried (through any alias).
    """
    context = context or {}
    if not isinstance(raw, dict):
        raw = {}

    present = []
    values = {}
    for field, names in DOCUMENT_ALIASES.items():
        value = _pick(raw, names)
        values[field] = None if value is _MISSING else value
        if value is not _MISSING:
            present.append(field)

    required = _required_fields(required_sections)
    for field in required:
        _validate_required_list(field, values.get(field))

    product_name = _as_str(context.get("product_name") or context.get("project_name"))
    project_type = _enum(PROJECT_TYPES)(values["project_type"]) if values["project_type"] is not None else _INVALID
    scale = _enum(PROJECT_SCALES)(values["scale"]) if values["scale"] is not None else _INVALID

    document = {
        "project_name": _as_str(values["project_name"]) or product_name or "Project Architecture",
        "description": _as_str(values["description"]),
        "project_type": "web_app" if project_type is _INVALID else project_type,
        "scale": "mvp" if scale is _INVALID else scale,
        "tech_stack": normalize_tech_stack(values["tech_stack"], create=True),
        "modules": normalize_modules(values["modules"], create=True),
        "api_endpoints": normalize_endpoints(values["api_endpoints"], create=True),
        "directory_structure": normalize_directory_structure(values["directory_structure"], create=True),
        "integrations": normalize_integrations(values["integrations"], create=True),
        "architecture_decisions": normalize_decisions(values["architecture_decisions"], create=True),
        "technical_roadmap": normalize_roadmap(values["technical_roadmap"], create=True),
        "architecture_patterns": normalize_patterns(values["architecture_patterns"], create=True),
        "security": normalize_security(values["security"], create=True),
    }

    logger.info(
        f"[NORMALIZE] document '{document['project_name']}': "
        f"{len(document['modules'])} modules, {len(document['api_endpoints'])} endpoints, "
        f"fields present: {', '.join(present) or '-'}"
    )
    return document, present
