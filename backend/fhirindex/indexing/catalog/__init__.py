"""Per-resource-type search parameter tables.

Each module builds IndexConfigs for a group of related resource types and
registers them with the IndexRegistry. Call register_all_indexes() once at
startup.
"""

import logging

from fhirindex.indexing.catalog.administrative import register_administrative_indexes
from fhirindex.indexing.catalog.clinical import register_clinical_indexes
from fhirindex.indexing.catalog.diagnostics import register_diagnostic_indexes
from fhirindex.indexing.catalog.foundation import register_foundation_indexes
from fhirindex.indexing.catalog.genomics import register_genomics_indexes
from fhirindex.indexing.catalog.medications import register_medication_indexes
from fhirindex.indexing.catalog.scheduling import register_scheduling_indexes
from fhirindex.indexing.catalog.workflow import register_workflow_indexes
from fhirindex.indexing.registry import IndexRegistry

logger = logging.getLogger(__name__)


def register_all_indexes() -> None:
    """Register every resource type's search parameter table."""
    register_foundation_indexes()
    register_administrative_indexes()
    register_scheduling_indexes()
    register_clinical_indexes()
    register_diagnostic_indexes()
    register_medication_indexes()
    register_workflow_indexes()
    register_genomics_indexes()
    logger.info("Registered search indexes for %d resource types", len(IndexRegistry.all_configs()))


__all__ = ["register_all_indexes"]
