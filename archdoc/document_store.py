# archdoc/document_store.py

import logging
from dataclasses import replace
from typing import Callable
from uuid import uuid4

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from archdoc.constants import DOCUMENT_FIELDS
from archdoc.db_connection import DBConnection
from archdoc.document_locks import DOCUMENT_LOCKS, DocumentLockRegistry
from archdoc.entities import ArchitectureDocument
from archdoc.errors import DocumentNotFoundError, StaleDocumentError
from archdoc.reconciler import ArchitectureReconciler, ReconcileResult, ReconcileState
from archdoc.stats import calculate_completeness, check_summary
from archdoc.utils import Utils

logger = logging.getLogger("archdoc")

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# Writable through save/update; everything else is managed by the store.
WRITABLE_FIELDS = DOCUMENT_FIELDS + ("status",)


class DocumentStore(Utils):
    """
    Load/store boundary for architecture documents.

    Full create/replace is a single INSERT ... ON CONFLICT (project_id) DO UPDATE.
    Partial updates are read-modify-write cycles: the pure merge runs on the loaded
    document and the result is written with UPDATE ... WHERE version = :seen. A miss
    means someone else wrote first, so the cycle is re-run on a fresh read.
    """

    def __init__(self, connection: DBConnection | None = None, locks: DocumentLockRegistry | None = None):
        self.connection = connection or DBConnection()
        self.SessionFactory = self.connection.build_db_session_factory()
        self.max_retries = self.connection.MAX_MERGE_RETRIES
        self.locks = locks or DOCUMENT_LOCKS
        self.reconciler = ArchitectureReconciler()

    def _query(self, session, project_id: str):
        return (
            session.query(ArchitectureDocument)
            .filter(ArchitectureDocument.project_id == str(project_id))
            .one_or_none()
        )

    # -----------------------
    # Reads
    # -----------------------

    def load(self, project_id: str) -> dict | None:
        session = self.SessionFactory()
        try:
            row = self._query(session, project_id)
            return row.to_document() if row else None
        finally:
            session.close()

    def check_existing(self, project_id: str) -> dict:
        return check_summary(self.load(project_id))

    # -----------------------
    # Create / replace
    # -----------------------

    def _upsert(self, project_id: str, values: dict, replaced_fields, user_id=None) -> tuple[dict, bool]:
        with self.locks.held(project_id):
            session = self.SessionFactory()
            try:
                dialect = session.get_bind().dialect.name
                insert = _INSERTS.get(dialect)
                if insert is None:
                    raise RuntimeError(f"Upsert is not supported on dialect '{dialect}'")

                row_values = {
                    "id": str(uuid4()),
                    "project_id": str(project_id),
                    "version": 1,
                    "created_by": user_id,
                    "updated_by": user_id,
                    **values,
                }
                stmt = insert(ArchitectureDocument).values(**row_values)
                table = ArchitectureDocument.__table__
                set_ = {field: stmt.excluded[field] for field in replaced_fields if field in values}
                set_["updated_by"] = stmt.excluded.updated_by
                set_["version"] = table.c.version + 1
                set_["updated_at"] = func.now()
                stmt = stmt.on_conflict_do_update(index_elements=[table.c.project_id], set_=set_)
                session.execute(stmt)

                row = self._query(session, project_id)
                # the score depends on fields the payload may not have replaced
                row.completeness_score = calculate_completeness(row.to_document())
                session.commit()
                session.refresh(row)

                created = row.version == 1
                logger.info(
                    f"[STORE] {'created' if created else 'replaced'} architecture for {project_id} "
                    f"(version {row.version}, fields: {', '.join(sorted(set_))})"
                )
                return row.to_document(), created
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def upsert_document(self, project_id: str, result: ReconcileResult, user_id=None) -> tuple[dict, bool, ReconcileResult]:
        """
        Persist a full-document ReconcileResult. An existing document only has its
        replaced_fields overwritten; everything else it holds is kept.
        """
        document = result.merged_fragment
        values = {field: document.get(field) for field in DOCUMENT_FIELDS}
        values["completeness_score"] = document.get("completeness_score") or 0
        stored, created = self._upsert(project_id, values, result.replaced_fields, user_id)
        return stored, created, replace(result, state=ReconcileState.PERSISTED)

    def save(self, project_id: str, document: dict, user_id=None) -> dict:
        """
        Store the fields document carries, creating the row if needed.
        """
        if not isinstance(document, dict):
            raise ValueError("save content must be a JSON object (dict)")
        values = {field: document[field] for field in WRITABLE_FIELDS if field in document}
        stored, _ = self._upsert(project_id, values, list(values), user_id)
        return stored

    # -----------------------
    # Read-modify-write
    # -----------------------

    def _update_with_retry(self, project_id: str, mutate: Callable[[dict], tuple[dict, object]], user_id=None):
        """
        mutate(current_document) -> (new_document, extra). Must be pure: it can run more than once.
        """
        with self.locks.held(project_id):
            for attempt in range(1, self.max_retries + 1):
                session = self.SessionFactory()
                try:
                    row = self._query(session, project_id)
                    if row is None:
                        raise DocumentNotFoundError(f"Architecture not found for project {project_id}")
                    seen = row.version
                    current = row.to_document()

                    new_document, extra = mutate(current)

                    changes = {
                        field: new_document.get(field)
                        for field in WRITABLE_FIELDS
                        if field in new_document and new_document.get(field) != current.get(field)
                    }
                    changes["completeness_score"] = calculate_completeness({**current, **changes})
                    changes["updated_by"] = user_id
                    changes["version"] = seen + 1
                    changes["updated_at"] = func.now()

                    outcome = session.execute(
                        update(ArchitectureDocument)
                        .where(
                            ArchitectureDocument.project_id == str(project_id),
                            ArchitectureDocument.version == seen,
                        )
                        .values(**changes)
                        .execution_options(synchronize_session=False)
                    )
                    if outcome.rowcount == 1:
                        session.commit()
                        session.refresh(row)
                        logger.info(
                            f"[STORE] updated {project_id} to version {row.version} "
                            f"(fields: {', '.join(k for k in changes if k in WRITABLE_FIELDS) or '-'})"
                        )
                        return row.to_document(), extra

                    session.rollback()
                    logger.info(
                        f"[STORE] version {seen} of {project_id} went stale "
                        f"(attempt {attempt}/{self.max_retries}), re-running merge"
                    )
                except Exception:
                    session.rollback()
                    raise
                finally:
                    session.close()

        raise StaleDocumentError(
            f"Architecture for project {project_id} kept changing; gave up after {self.max_retries} attempts"
        )

    def update_document(self, project_id: str, mutate, user_id=None):
        return self._update_with_retry(project_id, mutate, user_id)

    def apply_section_update(self, project_id: str, section: str, raw_payload, user_id=None) -> tuple[ReconcileResult, dict]:
        # reject bad input before touching storage
        self.reconciler.field_for_section(section)
        payload = self.reconciler.parse_payload(raw_payload)

        def mutate(document: dict):
            result = self.reconciler.reconcile_section(section, payload, document)
            new_document = dict(document)
            new_document[result.section_field_name] = result.merged_fragment
            return new_document, result

        document, result = self._update_with_retry(project_id, mutate, user_id)
        return replace(result, state=ReconcileState.PERSISTED), document

    # -----------------------
    # Delete
    # -----------------------

    def delete(self, project_id: str) -> bool:
        with self.locks.held(project_id):
            session = self.SessionFactory()
            try:
                removed = (
                    session.query(ArchitectureDocument)
                    .filter(ArchitectureDocument.project_id == str(project_id))
                    .delete(synchronize_session=False)
                )
                session.commit()
            finally:
                session.close()
        self.locks.forget(project_id)
        if removed:
            logger.info(f"[STORE] deleted architecture for {project_id}")
        return bool(removed)
