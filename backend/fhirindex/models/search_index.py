"""Search index model.

One row per extracted search value. The canonical data lives in
fhir_resources.data; this table is derived from it and is rebuilt whenever
the resource changes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy import text as sql_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fhirindex.database import Base

if TYPE_CHECKING:
    from fhirindex.models.fhir import FhirResource

# Width of every value column; extraction truncates to this
VALUE_LENGTH = 750


class SearchIndexEntry(Base):
    """Search index row for a stored FHIR resource.

    Linked to FhirResource via foreign key with cascade delete. Chained rows
    (param_name "subject.name") belong to the referencing resource.
    """

    __tablename__ = "resource_search_index"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    fhir_resource_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("fhir_resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Denormalized for tag and type-scoped queries
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)

    param_name: Mapped[str] = mapped_column(String(255), nullable=False)
    param_type: Mapped[str] = mapped_column(String(20), nullable=False)

    value: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    value_upper: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    value_high: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    system: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    code: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    text: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    text_upper: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    kind: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Local-timezone renderings; display only, never used for ordering
    value_local: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)
    value_high_local: Mapped[str | None] = mapped_column(String(VALUE_LENGTH), nullable=True)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=sql_text("now()"),
        nullable=False,
    )

    fhir_resource: Mapped["FhirResource"] = relationship(back_populates="search_index_entries")

    __table_args__ = (
        Index("idx_search_param_value", "resource_type", "param_name", "value"),
        Index("idx_search_param_value_upper", "resource_type", "param_name", "value_upper"),
        Index("idx_search_param_system", "param_name", "system", "value"),
    )

    def __repr__(self) -> str:
        return f"<SearchIndexEntry(resource={self.fhir_resource_id}, {self.param_name}={self.value})>"
