"""Shared constants for search indexing.

Centralizes parameter names, delimiters, and extension URLs used across
encoders, the engine, and the per-type catalog.
"""

# Common parameters present on every resource type
PARAM_ID = "_id"
PARAM_LANGUAGE = "_language"
PARAM_LAST_UPDATED = "_lastUpdated"
PARAM_TAG = "_tag"
PARAM_PROFILE = "_profile"
PARAM_SECURITY = "_security"

# Composite encoding: "|" joins system and code within one component,
# "$" joins components
SYSTEM_CODE_DELIMITER = "|"
COMPONENT_DELIMITER = "$"

# Chained parameter names are "<reference param>.<target param>"
CHAIN_SEPARATOR = "."
# Typed reference modifier: "<reference param>:<ResourceType>"
TYPE_MODIFIER_SEPARATOR = ":"

# Sequence coordinates are zero-padded to a fixed width so string order
# agrees with numeric order
COORDINATE_WIDTH = 9
COORDINATE_OPEN_LOW = "0" * COORDINATE_WIDTH
COORDINATE_OPEN_HIGH = "9" * COORDINATE_WIDTH
# Separates the chromosome / reference sequence id from its coordinate range
COORDINATE_PREFIX_DELIMITER = ":"

# Canonical sortable date form (UTC)
DATETIME_SORT_FORMAT = "%Y%m%d%H%M%S"

# Extension URLs
EXT_US_CORE_RACE = "http://hl7.org/fhir/StructureDefinition/us-core-race"
EXT_US_CORE_ETHNICITY = "http://hl7.org/fhir/StructureDefinition/us-core-ethnicity"
EXT_MOTHERS_MAIDEN_NAME = "http://hl7.org/fhir/StructureDefinition/patient-mothersMaidenName"

# Absolute reference schemes; references with these prefixes are never qualified
ABSOLUTE_REFERENCE_PREFIXES = (
    "http:",
    "https:",
    "urn:uuid:",
    "urn:oid:",
    "urn:iso:",
    "urn:iso-iec:",
    "urn:iso-cie:",
    "urn:iso-astm:",
    "urn:iso-ieee:",
    "urn:iec:",
)
