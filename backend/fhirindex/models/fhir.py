"""SQLAlchemy models for FHIR resources."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fhirindex.database import Base

if TYPE_CHECKING:
    from fhirindex.models.search_index import SearchIndexEntry


class FhirResource(Base):
    """FHIR resource stored with raw JSON data.

    The row id is a PostgreSQL-side UUID; fhir_id is the resource's logical
    id, unique per resource type.
    """

    __tablename__ = "fhir_resources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Identifiers
    fhir_id: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # The FHIR resource itself; search index rows are derived from it
    data: Mapped[dict] = mapped_column(JSONB, nullable=False)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    search_index_entries: Mapped[list["SearchIndexEntry"]] = relationship(
        back_populates="fhir_resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_fhir_data_gin", "data", postgresql_using="gin"),
        Index("idx_fhir_id_type", "fhir_id", "resource_type", unique=True),
    )

    def __repr__(self) -> str:
        return f"<FhirResource(id={self.id}, type={self.resource_type}, fhir_id={self.fhir_id})>"
