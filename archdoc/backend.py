# archdoc/backend.py

import logging
import traceback

from archdoc.constants import SECTION_TITLES
from archdoc.document_store import DocumentStore
from archdoc.errors import ArchitectureError, DocumentNotFoundError, MalformedPayloadError
from archdoc.stats import calculate_stats, generate_summary
from archdoc.utils import Utils

logger = logging.getLogger("archdoc")


class Backend(Utils):
    def __init__(self, store: DocumentStore | None = None):
        self.store = store or DocumentStore()
        self.reconciler = self.store.reconciler

    def _process_request_data(self, request_data: dict) -> dict:
        """
        Core request handling logic.
        Takes a parsed JSON dict and returns the response_data dict.

        Taxonomy errors become {"status": "error", "error_type", "message"}; anything
        else is logged and re-raised.
        """
        try:
            request_type = request_data.get("type")
            payload = request_data.get("payload")
            project_id = str(request_data.get("project_id") or request_data.get("sender_id") or "")
            user_id = request_data.get("user_id")

            logger.debug(f"process_request request {self._preview(request_data, limit=2000)}")

            response_data = {
                "status": "success",
                "message": "",
                "project_id": project_id,
            }

            try:
                if not project_id:
                    raise MalformedPayloadError("project_id is required")

                if request_type == "check_architecture":
                    response_data["data"] = self.store.check_existing(project_id)

                elif request_type == "load_architecture":
                    response_data["data"] = self.handle_load_architecture(project_id)

                elif request_type == "get_section":
                    response_data["data"] = self.handle_get_section(project_id, payload)

                elif request_type == "update_section":
                    response_data["data"] = self.handle_update_section(project_id, user_id, payload)
                    response_data["message"] = "Section merged."

                elif request_type == "create_architecture":
                    response_data["data"] = self.handle_create_architecture(project_id, user_id, payload)
                    response_data["message"] = (
                        "Architecture created." if response_data["data"]["created"] else "Architecture replaced."
                    )

                elif request_type == "process_ai_response":
                    response_data["data"] = self.handle_process_ai_response(project_id, user_id, payload)

                elif request_type == "add_module":
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.add_module(doc, payload), "module"
                    )

                elif request_type == "update_module":
                    ref, updates = self._item_ref(payload, ("module_id", "module_name", "module"))
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.update_module(doc, ref, updates), "module"
                    )

                elif request_type == "delete_module":
                    ref, _ = self._item_ref(payload, ("module_id", "module_name", "module"))
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.delete_module(doc, ref), "module"
                    )
                    response_data["message"] = f"Module '{response_data['data']['module'].get('name')}' deleted."

                elif request_type == "update_tech_stack":
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.update_tech_stack(doc, payload), "tech_stack"
                    )

                elif request_type == "add_endpoint":
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.add_endpoint(doc, payload), "endpoint"
                    )

                elif request_type == "add_integration":
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.add_integration(doc, payload), "integration"
                    )

                elif request_type == "add_decision":
                    response_data["data"] = self._mutate(
                        project_id,
                        user_id,
                        lambda doc: self.reconciler.add_decision(doc, payload, decided_by=user_id),
                        "decision",
                    )

                elif request_type == "update_roadmap":
                    phases = payload.get("phases") if isinstance(payload, dict) else payload
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.update_roadmap(doc, phases), "roadmap"
                    )

                elif request_type == "update_roadmap_phase":
                    ref, updates = self._item_ref(payload, ("phase_index", "phase"))
                    response_data["data"] = self._mutate(
                        project_id, user_id, lambda doc: self.reconciler.update_roadmap_phase(doc, ref, updates), "phase"
                    )

                elif request_type == "get_summary":
                    response_data["data"] = generate_summary(self.store.load(project_id))

                elif request_type == "delete_architecture":
                    if not self.store.delete(project_id):
                        raise DocumentNotFoundError(f"Architecture not found for project {project_id}")
                    response_data["data"] = {"deleted": True}
                    response_data["message"] = "Architecture deleted."

                else:
                    response_data["status"] = "error"
                    response_data["message"] = f"Unknown request type: {request_type}"

            except ArchitectureError as e:
                logger.info(f"[{request_type}] rejected: {type(e).__name__}: {e}")
                response_data["status"] = "error"
                response_data["error_type"] = type(e).__name__
                response_data["message"] = str(e)

            logger.debug(f"response {self._preview(response_data, limit=2000)}")

            return response_data

        except Exception as e:
            logger.info(f"Error while processing request data: {e}")
            traceback.print_exc()
            raise

    # -----------------------
    # Handlers
    # -----------------------

    def handle_load_architecture(self, project_id: str) -> dict:
        document = self.store.load(project_id)
        if document is None:
            return {"exists": False, "architecture": None}
        return {"exists": True, "architecture": document, "stats": calculate_stats(document)}

    def handle_get_section(self, project_id: str, payload) -> dict:
        section = self._require_section(payload)
        field_name = self.reconciler.field_for_section(section)
        document = self.store.load(project_id)
        if document is None:
            raise DocumentNotFoundError(f"Architecture not found for project {project_id}")
        token = section.strip().lower()
        return {
            "section": token,
            "title": SECTION_TITLES[token],
            "data": document.get(field_name),
        }

    def handle_update_section(self, project_id: str, user_id, payload) -> dict:
        section, data = self.reconciler.parse_envelope(payload)
        result, document = self.store.apply_section_update(project_id, section, data, user_id)
        return {
            "section": result.section,
            "section_field_name": result.section_field_name,
            "item_count": result.item_count,
            "state": result.state.value,
            "architecture": document,
        }

    def handle_create_architecture(self, project_id: str, user_id, payload) -> dict:
        payload = self.reconciler.parse_payload(payload)
        context = None
        required_sections = ("modules",)
        if isinstance(payload, dict) and "architecture" in payload:
            context = payload.get("context")
            required_sections = tuple(payload.get("required_sections") or required_sections)
            payload = payload["architecture"]

        result = self.reconciler.build_document(payload, context=context, required_sections=required_sections)
        document, created, result = self.store.upsert_document(project_id, result, user_id)
        return {
            "created": created,
            "replaced_fields": result.replaced_fields,
            "item_count": result.item_count,
            "state": result.state.value,
            "architecture": document,
        }

    def handle_process_ai_response(self, project_id: str, user_id, payload) -> dict:
        """
        Route raw model output: a section update, a full architecture, or plain text.
        """
        text = payload.get("text") if isinstance(payload, dict) else payload
        if not isinstance(text, str):
            raise MalformedPayloadError("process_ai_response needs the model output as text")
        context = payload.get("context") if isinstance(payload, dict) else None

        action = self.classify_ai_response(text)
        _, clean_text = self.extract_marker(text)
        response = {"action": action, "text": clean_text}
        if action is None:
            return response

        block = self.extract_json_block(text)
        if block is None:
            raise MalformedPayloadError(f"Model requested an architecture {action} without a JSON block")

        if action == "update":
            section, data = self.reconciler.parse_envelope(block)
            result, document = self.store.apply_section_update(project_id, section, data, user_id)
            response.update({
                "section": result.section,
                "item_count": result.item_count,
                "architecture": document,
            })
        else:
            result = self.reconciler.build_document(block, context=context)
            document, created, result = self.store.upsert_document(project_id, result, user_id)
            response.update({
                "created": created,
                "replaced_fields": result.replaced_fields,
                "architecture": document,
            })
        return response

    # -----------------------
    # Helpers
    # -----------------------

    def _mutate(self, project_id: str, user_id, operation, item_label: str) -> dict:
        document, item = self.store.update_document(project_id, operation, user_id)
        return {item_label: item, "architecture": document}

    def _require_section(self, payload) -> str:
        section = payload.get("section") if isinstance(payload, dict) else payload
        if not isinstance(section, str) or not section.strip():
            raise MalformedPayloadError("A section name is required")
        return section

    def _item_ref(self, payload, ref_keys) -> tuple:
        if not isinstance(payload, dict):
            raise MalformedPayloadError(f"Expected an object carrying one of: {', '.join(ref_keys)}")
        for key in ref_keys:
            if payload.get(key) is not None:
                return payload[key], payload.get("updates") or {}
        raise MalformedPayloadError(f"Expected one of: {', '.join(ref_keys)}")
