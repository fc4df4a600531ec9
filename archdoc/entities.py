# archdoc/entities.py
from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from typing import TypeAlias
UUID: TypeAlias = str
Base = declarative_base()

# JSONB on postgres, plain JSON everywhere else (sqlite for local runs and tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

# Columns holding one section each, in document order.
SECTION_COLUMNS = (
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

SCALAR_COLUMNS = ("project_name", "description", "project_type", "scale", "status", "completeness_score")


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ArchitectureDocument(Base, TimestampMixin):
    __tablename__ = "architecture_document"

    id: Mapped[UUID] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # one document per project
    project_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    project_name: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    description: Mapped[str | None] = mapped_column(Text)
    project_type: Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'web_app'"))
    scale: Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'mvp'"))
    status: Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'draft'"))

    tech_stack: Mapped[dict[str, object]] = mapped_column(JSONDocument, nullable=False, default=dict)
    modules: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    api_endpoints: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    directory_structure: Mapped[dict[str, object]] = mapped_column(JSONDocument, nullable=False, default=dict)
    integrations: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    architecture_decisions: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    technical_roadmap: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    architecture_patterns: Mapped[list[object]] = mapped_column(JSONDocument, nullable=False, default=list)
    security: Mapped[dict[str, object]] = mapped_column(JSONDocument, nullable=False, default=dict)

    completeness_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    # bumped on every write; UPDATE ... WHERE version = :seen guards read-modify-write
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))

    created_by: Mapped[str | None] = mapped_column(String(255))
    updated_by: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        Index("ix_architecture_document_status", "status"),
    )

    def to_document(self) -> dict:
        document = {
            "id": self.id,
            "project_id": self.project_id,
        }
        for column in SCALAR_COLUMNS:
            document[column] = getattr(self, column)
        for column in SECTION_COLUMNS:
            document[column] = getattr(self, column)
        document["version"] = self.version
        document["created_by"] = self.created_by
        document["updated_by"] = self.updated_by
        document["created_at"] = self.created_at.isoformat() if self.created_at else None
        document["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return document
