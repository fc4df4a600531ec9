# archdoc/reconciler.py

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from archdoc.constants import (
    GENERAL_DOCUMENT_FIELDS,
    PERSISTED_SECTIONS,
    SECTION_FIELD_MAP,
    SECTION_STRUCTURE,
    STACK_FIELDS,
    TREE_SECTIONS,
)
from archdoc.errors import (
    ArchitectureError,
    DocumentNotFoundError,
    ItemNotFoundError,
    MalformedPayloadError,
    SectionHandledElsewhereError,
    UnsupportedSectionError,
    ValidationError,
)
from archdoc.key_resolver import normalize_key, same_identity
from archdoc.mergers import merge_list, merge_tree
from archdoc.normalizer import (
    normalize,
    normalize_decision,
    normalize_document,
    normalize_endpoint,
    normalize_integration,
    normalize_module,
    normalize_phase,
    normalize_roadmap,
    normalize_tech_stack,
)
from archdoc.path_injector import empty_directory_tree, insert_path
from archdoc.stats import calculate_completeness
from archdoc.utils import Utils

logger = logging.getLogger("archdoc")


class ReconcileState(str, Enum):
    RECEIVED = "received"
    NORMALIZED = "normalized"
    MERGED = "merged"
    PERSISTED = "persisted"
    REJECTED = "rejected"


@dataclass
class ReconcileResult:
    state: ReconcileState
    section: str
    section_field_name: str
    merged_fragment: object
    item_count: int | str
    replaced_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "section": self.section,
            "section_field_name": self.section_field_name,
            "merged_fragment": self.merged_fragment,
            "item_count": self.item_count,
            "replaced_fields": list(self.replaced_fields),
        }


def _count(fragment) -> int | str:
    return len(fragment) if isinstance(fragment, list) else "object"


def _drop_blank_overwrites(existing, incoming):
    """
    Remove name-only leaves ("") from an incoming tree wherever the stored tree
    already holds a description or a folder under that name.
    """
    if not isinstance(incoming, dict) or not isinstance(existing, dict):
        return incoming
    kept = {}
    for key, value in incoming.items():
        current = existing.get(key)
        if value == "" and current not in (None, ""):
            continue
        kept[key] = _drop_blank_overwrites(current, value)
    return kept


class ArchitectureReconciler(Utils):
    """
    Entry point of the reconciliation core.

    Everything here is synchronous and side-effect free: documents come in as dicts
    and new dicts come out. Loading and storing belong to archdoc.document_store.
    """

    # -----------------------
    # Input
    # -----------------------

    def parse_payload(self, raw):
        if isinstance(raw, (dict, list)):
            return raw
        if isinstance(raw, (str, bytes)):
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            data = self.load_fault_tolerant_json(raw)
            if isinstance(data, (dict, list)):
                return data
            raise MalformedPayloadError(f"Payload parsed to {type(data).__name__}, expected an object or an array")
        raise MalformedPayloadError(f"Unsupported payload type: {type(raw).__name__}")

    def parse_envelope(self, raw) -> tuple[str, object]:
        """
        {"section": ..., "data": ...} (or "payload") -> (section, data).
        """
        envelope = self.parse_payload(raw)
        if not isinstance(envelope, dict) or not envelope.get("section"):
            raise MalformedPayloadError("Section update must be an object carrying a 'section'")
        data = envelope.get("data", envelope.get("payload"))
        if data is None:
            raise MalformedPayloadError(f"Section update for '{envelope.get('section')}' carries no data")
        return str(envelope["section"]).strip().lower(), data

    def field_for_section(self, section: str, persisted: bool = True) -> str:
        token = (section or "").strip().lower() if isinstance(section, str) else ""
        if token not in SECTION_FIELD_MAP:
            raise UnsupportedSectionError(
                f"Unknown section '{section}'. Expected one of: {', '.join(SECTION_FIELD_MAP)}"
            )
        if persisted and token not in PERSISTED_SECTIONS:
            raise SectionHandledElsewhereError(
                f"Section '{token}' is not stored in the architecture document; it is handled by the schema module"
            )
        return SECTION_FIELD_MAP[token]

    # -----------------------
    # Partial update path
    # -----------------------

    def merge_section_data(self, section: str, existing, incoming):
        field_name = self.field_for_section(section, persisted=False)
        section = section.strip().lower()
        if incoming is None:
            return existing
        if section in TREE_SECTIONS:
            return merge_tree(existing, _drop_blank_overwrites(existing, incoming))
        logger.debug(f"[MERGE] dispatching {section} -> {field_name} (list)")
        return merge_list(existing, incoming, section)

    def reconcile_section(self, section, raw_payload, existing_document, persisted: bool = True) -> ReconcileResult:
        """
        Normalize raw_payload for section and merge it into existing_document's field.

        existing_document is left untouched; the result carries the merged fragment
        and the field it belongs to.
        """
        state = ReconcileState.RECEIVED
        logger.info(f"[RECONCILE] section={section} state={state.value}")
        try:
            field_name = self.field_for_section(section, persisted=persisted)
            section = section.strip().lower()
            payload = self.parse_payload(raw_payload)
            if existing_document is None:
                raise DocumentNotFoundError(
                    f"No architecture document exists to merge '{section}' into; create it first"
                )

            existing = existing_document.get(field_name)
            if section == SECTION_STRUCTURE and isinstance(payload, list):
                # path entries land straight in the stored tree so existing descriptions win
                state = ReconcileState.NORMALIZED
                merged = copy.deepcopy(existing) if isinstance(existing, dict) else empty_directory_tree()
                for entry in payload:
                    if isinstance(entry, dict):
                        insert_path(merged, entry.get("path"), self._coerce_field_to_str(entry.get("description")))
                    else:
                        insert_path(merged, entry, "")
            else:
                normalized = normalize(section, payload, required=False)
                state = ReconcileState.NORMALIZED
                merged = self.merge_section_data(section, existing, normalized)
            state = ReconcileState.MERGED

            result = ReconcileResult(
                state=state,
                section=section,
                section_field_name=field_name,
                merged_fragment=merged,
                item_count=_count(merged),
            )
            logger.info(f"[RECONCILE] section={section} state={state.value} items={result.item_count}")
            return result
        except ArchitectureError as e:
            logger.info(f"[RECONCILE] section={section} state={ReconcileState.REJECTED.value} after {state.value}: {e}")
            raise

    def reconcile_envelope(self, raw_envelope, existing_document, persisted: bool = True) -> ReconcileResult:
        section, data = self.parse_envelope(raw_envelope)
        return self.reconcile_section(section, data, existing_document, persisted=persisted)

    # -----------------------
    # Full create / replace path
    # -----------------------

    def build_document(self, raw_payload, context: dict | None = None, required_sections=("modules",)) -> ReconcileResult:
        """
        Normalize a whole architecture in one go. This never merges: when a document
        already exists, the store overwrites the fields listed in replaced_fields.
        """
        logger.info(f"[RECONCILE] full document state={ReconcileState.RECEIVED.value}")
        try:
            payload = self.parse_payload(raw_payload)
            if not isinstance(payload, dict):
                raise MalformedPayloadError("A full architecture must be an object")
            if "section" in payload:
                raise MalformedPayloadError("Payload carries a 'section'; send it as a section update instead")

            document, present = normalize_document(payload, context=context, required_sections=required_sections)
        except ArchitectureError as e:
            logger.info(f"[RECONCILE] full document state={ReconcileState.REJECTED.value}: {e}")
            raise

        document["completeness_score"] = calculate_completeness(document)
        replaced = list(GENERAL_DOCUMENT_FIELDS) + [f for f in present if f not in GENERAL_DOCUMENT_FIELDS]
        return ReconcileResult(
            state=ReconcileState.NORMALIZED,
            section="document",
            section_field_name="document",
            merged_fragment=document,
            item_count=len(document["modules"]),
            replaced_fields=replaced,
        )

    # -----------------------
    # Modules
    # -----------------------

    def _require_document(self, document) -> dict:
        if document is None:
            raise DocumentNotFoundError("Architecture not found")
        return dict(document)

    def _find_module(self, modules: list, ref) -> int:
        ref_key = normalize_key(ref)
        if ref_key is None:
            raise ItemNotFoundError("A module id or name is required")
        for idx, module in enumerate(modules):
            if not isinstance(module, dict):
                continue
            if module.get("id") is not None and str(module.get("id")) == str(ref).strip():
                return idx
            if normalize_key(module.get("name")) == ref_key:
                return idx
        raise ItemNotFoundError(f"Module not found: {ref}")

    def _with_path(self, document: dict, path, description: str) -> dict:
        tree = document.get("directory_structure")
        tree = copy.deepcopy(tree) if isinstance(tree, dict) else empty_directory_tree()
        document["directory_structure"] = insert_path(tree, path, description)
        return document

    def add_module(self, document, module_data) -> tuple[dict, dict]:
        document = self._require_document(document)
        modules = list(document.get("modules") or [])
        module = normalize_module(module_data, len(modules), create=True)

        for existing in modules:
            if isinstance(existing, dict) and same_identity(existing.get("name"), module["name"]):
                raise ValidationError(f"Module '{module['name']}' already exists")

        modules.append(module)
        document["modules"] = modules
        if module.get("path"):
            self._with_path(document, module["path"], module.get("description") or f"Module: {module['name']}")
        logger.info(f"[MODULES] added '{module['name']}' ({len(modules)} total)")
        return document, module

    def update_module(self, document, module_ref, updates) -> tuple[dict, dict]:
        document = self._require_document(document)
        modules = list(document.get("modules") or [])
        idx = self._find_module(modules, module_ref)
        stored = modules[idx]

        patch = normalize_module(updates, idx, create=False)
        patch.pop("id", None)
        if patch.get("name") and not same_identity(patch["name"], stored.get("name")):
            for other_idx, other in enumerate(modules):
                if other_idx != idx and isinstance(other, dict) and same_identity(other.get("name"), patch["name"]):
                    raise ValidationError(f"Module '{patch['name']}' already exists")

        module = {**stored, **patch}
        modules[idx] = module
        document["modules"] = modules
        if patch.get("path"):
            description = patch.get("description") or stored.get("description") or f"Module: {module.get('name')}"
            self._with_path(document, patch["path"], description)
        return document, module

    def delete_module(self, document, module_ref) -> tuple[dict, dict]:
        document = self._require_document(document)
        modules = list(document.get("modules") or [])
        idx = self._find_module(modules, module_ref)
        removed = modules.pop(idx)
        document["modules"] = modules
        logger.info(f"[MODULES] deleted '{removed.get('name')}'")
        return document, removed

    # -----------------------
    # Other sections
    # -----------------------

    def update_tech_stack(self, document, stack_data) -> tuple[dict, dict]:
        document = self._require_document(document)
        incoming = normalize_tech_stack(self.parse_payload(stack_data), create=False)
        stack = dict(document.get("tech_stack") or {})
        for category, values in incoming.items():
            current = stack.get(category)
            if not isinstance(current, dict):
                current = {f: "" for f in STACK_FIELDS.get(category, ())}
            stack[category] = {**current, **values}
        document["tech_stack"] = stack
        return document, stack

    def add_endpoint(self, document, endpoint_data) -> tuple[dict, dict]:
        """
        Upsert by path: an endpoint already stored under the same path is updated in place.
        """
        document = self._require_document(document)
        endpoints = document.get("api_endpoints") or []
        created = normalize_endpoint(endpoint_data, create=True)
        patch = normalize_endpoint(endpoint_data, create=False)
        if not patch.get("path"):
            raise ValidationError("An endpoint needs a path")

        exists = any(isinstance(e, dict) and same_identity(e.get("path"), patch["path"]) for e in endpoints)
        merged = merge_list(endpoints, [patch if exists else created], "endpoints")
        document["api_endpoints"] = merged
        endpoint = next(e for e in merged if isinstance(e, dict) and same_identity(e.get("path"), patch["path"]))
        return document, endpoint

    def add_integration(self, document, integration_data) -> tuple[dict, dict]:
        document = self._require_document(document)
        integration = normalize_integration(integration_data, create=True)
        document["integrations"] = list(document.get("integrations") or []) + [integration]
        return document, integration

    def add_decision(self, document, decision_data, decided_by=None) -> tuple[dict, dict]:
        document = self._require_document(document)
        decision = normalize_decision(decision_data, create=True)
        decision["decided_by"] = decided_by
        decision["date"] = datetime.now(timezone.utc).isoformat()
        document["architecture_decisions"] = list(document.get("architecture_decisions") or []) + [decision]
        return document, decision

    def update_roadmap(self, document, phases) -> tuple[dict, list]:
        document = self._require_document(document)
        roadmap = normalize_roadmap(self.parse_payload(phases), create=True)
        document["technical_roadmap"] = roadmap
        return document, roadmap

    def _find_phase(self, roadmap: list, ref) -> int:
        if isinstance(ref, int) and not isinstance(ref, bool):
            if 0 <= ref < len(roadmap):
                return ref
            raise ItemNotFoundError(f"Roadmap phase not found: {ref}")
        ref_key = normalize_key(ref)
        for idx, phase in enumerate(roadmap):
            if not isinstance(phase, dict):
                continue
            if ref_key is not None and ref_key in (normalize_key(phase.get("phase")), normalize_key(phase.get("name"))):
                return idx
        raise ItemNotFoundError(f"Roadmap phase not found: {ref}")

    def update_roadmap_phase(self, document, phase_ref, updates) -> tuple[dict, dict]:
        document = self._require_document(document)
        roadmap = list(document.get("technical_roadmap") or [])
        idx = self._find_phase(roadmap, phase_ref)
        patch = normalize_phase(updates, idx, create=False)
        phase = {**roadmap[idx], **patch}
        roadmap[idx] = phase
        document["technical_roadmap"] = roadmap
        return document, phase

