# archdoc/constants.py

from types import MappingProxyType


# -----------------------
# Tech stack
# -----------------------

# Positional field order used when the AI emits a category as a bare list of strings.
STACK_FIELDS = MappingProxyType({
    "frontend": ("framework", "language", "ui_library", "state_management", "routing", "build_tool", "testing"),
    "backend": ("framework", "language", "orm", "api_style", "auth", "testing"),
    "database": ("primary", "cache", "search", "file_storage"),
    "infrastructure": ("hosting_frontend", "hosting_backend", "ci_cd", "containers", "monitoring", "logging", "cdn"),
})

STACK_CATEGORY_ALIASES = MappingProxyType({
    "frontend": ("frontend",),
    "backend": ("backend",),
    "database": ("database",),
    "infrastructure": ("infrastructure", "devops"),
})


# -----------------------
# Sections
# -----------------------

SECTION_STRUCTURE = "structure"
SECTION_DATABASE = "database"
SECTION_ENDPOINTS = "endpoints"
SECTION_MODULES = "modules"

SECTION_FIELD_MAP = MappingProxyType({
    SECTION_STRUCTURE: "directory_structure",
    SECTION_DATABASE: "database_schema",
    SECTION_ENDPOINTS: "api_endpoints",
    SECTION_MODULES: "modules",
})

# database_schema lives in its own store; the architecture document never persists it.
PERSISTED_SECTIONS = frozenset({SECTION_STRUCTURE, SECTION_ENDPOINTS, SECTION_MODULES})

TREE_SECTIONS = frozenset({SECTION_STRUCTURE})

SECTION_TITLES = MappingProxyType({
    SECTION_STRUCTURE: "Project Structure",
    SECTION_DATABASE: "Database Schema",
    SECTION_ENDPOINTS: "API Endpoints",
    SECTION_MODULES: "System Modules",
})

# Ordered identity candidates per section; first present+truthy wins.
SECTION_KEY_FIELDS = MappingProxyType({
    SECTION_DATABASE: ("entity", "table_name", "name", "collection_name"),
    SECTION_ENDPOINTS: ("path", "endpoint", "route"),
    SECTION_MODULES: ("name", "module_name"),
})

DEFAULT_KEY_FIELDS = ("name",)


# -----------------------
# Directory tree
# -----------------------

TREE_BRANCHES = ("frontend", "backend", "shared")

PATH_BRANCH_KEYWORDS = MappingProxyType({
    "frontend": frozenset({"frontend", "src", "client"}),
    "backend": frozenset({"backend", "server", "api"}),
    "shared": frozenset({"shared", "common", "lib"}),
})

DEFAULT_BRANCH = "backend"
PATH_SEPARATOR = "/"


# -----------------------
# Enumerations
# -----------------------

PROJECT_TYPES = frozenset({
    "web_app", "spa", "mobile_app", "pwa", "api_only", "desktop", "microservices",
    "monolith", "serverless", "hybrid", "cli", "library", "other",
})
PROJECT_SCALES = frozenset({"prototype", "mvp", "small", "medium", "large", "enterprise"})
DOCUMENT_STATUSES = frozenset({"draft", "review", "approved", "active", "archived"})

MODULE_TYPES = frozenset({"frontend", "backend", "shared", "infrastructure", "mobile", "external"})
MODULE_STATUSES = frozenset({"planned", "in_development", "completed", "deprecated", "blocked"})
COMPLEXITY_LEVELS = frozenset({"trivial", "low", "medium", "high", "very_high"})

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})
ENDPOINT_STATUSES = frozenset({"planned", "in_development", "implemented", "testing", "deprecated"})

INTEGRATION_TYPES = frozenset({
    "payment", "auth", "email", "sms", "analytics", "storage", "ai", "maps", "social", "other",
})
INTEGRATION_STATUSES = frozenset({"planned", "configured", "active", "deprecated"})
DECISION_STATUSES = frozenset({"proposed", "accepted", "deprecated", "superseded"})
PHASE_STATUSES = frozenset({"planned", "in_progress", "completed", "delayed", "cancelled"})
PATTERN_SCOPES = frozenset({"frontend", "backend", "all", "database", "infrastructure"})


# -----------------------
# Alias tables (canonical field -> accepted input names, in priority order)
# -----------------------

MODULE_ALIASES = MappingProxyType({
    "id": ("id", "_id", "module_id"),
    "name": ("name", "module_name"),
    "description": ("description",),
    "type": ("type", "module_type"),
    "status": ("status",),
    "path": ("path", "directory"),
    "dependencies": ("dependencies", "depends_on"),
    "estimated_complexity": ("estimated_complexity", "estimatedComplexity", "complexity"),
    "features": ("features", "technologies"),
    "notes": ("notes",),
})

ENDPOINT_ALIASES = MappingProxyType({
    "method": ("method", "http_method", "verb"),
    "path": ("path", "endpoint", "route", "url"),
    "summary": ("summary",),
    "description": ("description",),
    "module": ("module",),
    "tags": ("tags",),
    "auth_required": ("auth_required", "authRequired", "requires_auth"),
    "roles_allowed": ("roles_allowed", "rolesAllowed", "roles"),
    "permissions": ("permissions",),
    "path_params": ("path_params", "pathParams"),
    "query_params": ("query_params", "queryParams"),
    "headers": ("headers",),
    "request_body": ("request_body", "requestBody", "body"),
    "responses": ("responses",),
    "rate_limit": ("rate_limit", "rateLimit"),
    "status": ("status",),
    "version": ("version",),
    "related_entity": ("related_entity", "relatedEntity"),
    "notes": ("notes",),
})

ENTITY_ALIASES = MappingProxyType({
    "entity": ("entity", "table_name", "name"),
    "description": ("description",),
    "collection_name": ("collection_name", "table_name"),
    "fields": ("fields", "columns"),
    "module": ("module",),
    "timestamps": ("timestamps",),
    "soft_delete": ("soft_delete",),
    "indexes": ("indexes",),
    "relationships": ("relationships", "relations"),
    "hooks": ("hooks",),
    "notes": ("notes",),
})

FIELD_ALIASES = MappingProxyType({
    "name": ("name", "field_name"),
    "type": ("type", "data_type"),
    "required": ("required",),
    "unique": ("unique",),
    "index": ("index",),
    "sparse": ("sparse",),
    "description": ("description",),
    "default_value": ("default_value", "default"),
    "reference": ("reference", "ref"),
    "enum_values": ("enum_values", "enum"),
})

DECISION_ALIASES = MappingProxyType({
    "title": ("title", "decision"),
    "status": ("status",),
    "context": ("context",),
    "decision": ("decision", "title"),
    "consequences": ("consequences", "rationale"),
    "alternatives_considered": ("alternatives_considered", "alternatives"),
})

PHASE_ALIASES = MappingProxyType({
    "phase": ("phase", "name"),
    "name": ("name", "phase"),
    "description": ("description",),
    "modules_included": ("modules_included", "modules"),
    "features": ("features",),
    "status": ("status",),
})

INTEGRATION_ALIASES = MappingProxyType({
    "name": ("name", "service"),
    "type": ("type", "category"),
    "provider": ("provider",),
    "status": ("status",),
})

PATTERN_ALIASES = MappingProxyType({
    "pattern": ("pattern", "name"),
    "applied_to": ("applied_to", "scope"),
    "description": ("description",),
})

DOCUMENT_ALIASES = MappingProxyType({
    "project_name": ("name", "project_name"),
    "description": ("description",),
    "project_type": ("project_type", "type"),
    "scale": ("scale",),
    "tech_stack": ("tech_stack", "stack"),
    "modules": ("modules",),
    "api_endpoints": ("api_endpoints", "endpoints"),
    "integrations": ("integrations",),
    "architecture_decisions": ("architecture_decisions", "decisions"),
    "technical_roadmap": ("roadmap", "technical_roadmap"),
    "architecture_patterns": ("patterns", "architecture_patterns"),
    "security": ("security",),
    "directory_structure": ("project_structure", "directory_structure", "folder_structure"),
})

# Always rewritten by a full create/replace, whether or not the payload names them.
GENERAL_DOCUMENT_FIELDS = ("project_name", "description", "project_type", "scale")

DOCUMENT_FIELDS = (
    "project_name",
    "description",
    "project_type",
    "scale",
    "tech_stack",
    "modules",
    "api_endpoints",
    "directory_structure",
    "integrations",
    "architecture_decisions",
    "technical_roadmap",
    "architecture_patterns",
    "security",
)

# Lists that must carry at least one identifiable item on full create, and the field that identifies them.
REQUIRED_IDENTITY_FIELDS = MappingProxyType({
    "modules": "name",
    "api_endpoints": "path",
})


# -----------------------
# Completeness
# -----------------------

COMPLETENESS_WEIGHTS = MappingProxyType({
    "project_type": 5,
    "tech_stack_frontend": 15,
    "tech_stack_backend": 15,
    "tech_stack_database": 10,
    "modules": 25,
    "api_endpoints": 15,
    "integrations": 5,
    "roadmap": 5,
    "security": 5,
})
