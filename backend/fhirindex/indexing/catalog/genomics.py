"""Search parameter table for MolecularSequence.

Coordinate composites are "<code>:<start>$<end>" with both positions
zero-padded to nine digits, so a lexicographic range scan over the
composite agrees with numeric coordinate order. Open bounds pad to
000000000 (start) and 999999999 (end).
"""

import logging
from typing import Iterator

from fhirindex.indexing import encoders, fields
from fhirindex.indexing.constants import COORDINATE_PREFIX_DELIMITER
from fhirindex.indexing.registry import FieldContext, IndexConfig, IndexRegistry, SearchParameter
from fhirindex.indexing.rows import RowKind, RowValue

logger = logging.getLogger(__name__)


def _first_code(concept: dict | None) -> str | None:
    codings = (concept or {}).get("coding") or []
    return codings[0].get("code") if codings else None


def is_zero_based(sequence: dict) -> bool:
    """coordinateSystem 0 (or absent) shifts start positions down by one."""
    return sequence.get("coordinateSystem", 0) == 0


def coordinate(code: str, start: int | None, end: int | None, zero_based: bool) -> RowValue:
    """Encode one "<code>:<start>$<end>" coordinate composite."""
    return RowValue(
        value=f"{code}{COORDINATE_PREFIX_DELIMITER}{encoders.coordinate_range(start, end, zero_based)}",
        kind=RowKind.COMPOSITE,
    )


def window_coordinate(code_element: str) -> SearchParameter:
    """<chromosome|referenceseqid>-window-coordinate over referenceSeq."""

    def extract(sequence: dict, context: FieldContext) -> Iterator[RowValue | None]:
        reference_seq = sequence.get("referenceSeq")
        if not reference_seq:
            return
        code = _first_code(reference_seq.get(code_element))
        if code:
            yield coordinate(
                code,
                reference_seq.get("windowStart"),
                reference_seq.get("windowEnd"),
                is_zero_based(sequence),
            )

    name = "chromosome" if code_element == "chromosome" else "referenceseqid"
    return fields.custom(f"{name}-window-coordinate", "composite", extract)


def variant_coordinate(code_element: str) -> SearchParameter:
    """<chromosome|referenceseqid>-variant-coordinate, one row per variant."""

    def extract(sequence: dict, context: FieldContext) -> Iterator[RowValue | None]:
        code = _first_code((sequence.get("referenceSeq") or {}).get(code_element))
        if not code:
            return
        for variant in sequence.get("variant", []):
            yield coordinate(code, variant.get("start"), variant.get("end"), is_zero_based(sequence))

    name = "chromosome" if code_element == "chromosome" else "referenceseqid"
    return fields.custom(f"{name}-variant-coordinate", "composite", extract)


def molecular_sequence_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MolecularSequence",
        parameters=[
            fields.identifier(),
            fields.token("type", "type"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.concept("chromosome", "referenceSeq.chromosome"),
            fields.concept("referenceseqid", "referenceSeq.referenceSeqId"),
            fields.number("window-start", "referenceSeq.windowStart"),
            fields.number("window-end", "referenceSeq.windowEnd"),
            fields.number("variant-start", "variant.start"),
            fields.number("variant-end", "variant.end"),
            window_coordinate("chromosome"),
            window_coordinate("referenceSeqId"),
            variant_coordinate("chromosome"),
            variant_coordinate("referenceSeqId"),
        ],
    )


def register_genomics_indexes() -> None:
    """Register the MolecularSequence table."""
    config = molecular_sequence_index()
    IndexRegistry.register(config)
    logger.debug("Registered search index for %s", config.resource_type)
