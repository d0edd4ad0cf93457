"""Search index registry and configuration.

The index system maps FHIR resource types to a declarative table of search
parameters. Each parameter names an extractor that pulls encoded values
from the resource JSON; one generic engine interprets every table.
"""

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Any, Callable, Iterable

from fhirindex.indexing.exceptions import UnknownResourceTypeError
from fhirindex.indexing.rows import RowValue


@dataclass(frozen=True)
class FieldContext:
    """Per-call settings extractors need to encode values."""

    local_tz: tzinfo = timezone.utc


@dataclass(frozen=True)
class ReferenceValue:
    """A reference found by an extractor, resolved later by the engine.

    Args:
        reference: Raw reference string ("Patient/42", "#med1", "http://...").
        type_hint: Reference.type, when the document declares it.
        embedded: Already-parsed target document, when the referencing
            document carries it (Bundle entries).
    """

    reference: str
    type_hint: str | None = None
    embedded: dict | None = None


Extracted = RowValue | ReferenceValue


@dataclass
class SearchParameter:
    """Maps FHIR element(s) to one search parameter.

    Args:
        name: Search parameter name (e.g. 'identifier').
        param_type: FHIR search type (token, string, date, reference, ...).
        extractor: Function yielding encoded values from the resource JSON.
        targets: Declared target resource types for reference parameters.
        narrowing: Resolved target type -> narrower parameter name that
            should also be emitted (e.g. {'Patient': 'patient'}).
    """

    name: str
    param_type: str
    extractor: Callable[[dict, FieldContext], Iterable[Extracted]]
    targets: tuple[str, ...] = ()
    narrowing: dict[str, str] = field(default_factory=dict)

    @property
    def is_reference(self) -> bool:
        return self.param_type == "reference"

    def extract(self, resource: dict, context: FieldContext) -> list[Extracted]:
        """Run the extractor, dropping absent values."""
        return [value for value in self.extractor(resource, context) if value is not None]


@dataclass
class IndexConfig:
    """Search parameter table for one resource type."""

    resource_type: str
    parameters: list[SearchParameter] = field(default_factory=list)


# Module-level storage (not class-level to avoid shared mutable state)
_registry_configs: dict[str, IndexConfig] = {}


class IndexRegistry:
    """Registry of search index configurations by resource type.

    Populated once at startup and read-only afterwards, so dispatch is
    side-effect-free and safe to re-enter during chained extraction.
    """

    @classmethod
    def register(cls, config: IndexConfig) -> None:
        """Register an index configuration.

        Args:
            config: The index configuration to register.
        """
        _registry_configs[config.resource_type] = config

    @classmethod
    def get(cls, resource_type: str) -> IndexConfig | None:
        """Get index configuration for a resource type.

        Args:
            resource_type: FHIR resource type (e.g., 'Patient').

        Returns:
            IndexConfig if registered, None otherwise.
        """
        return _registry_configs.get(resource_type)

    @classmethod
    def dispatch(cls, resource_type: Any) -> IndexConfig:
        """Select the configuration for a resource type.

        Raises:
            UnknownResourceTypeError: If the type is not registered.
        """
        config = _registry_configs.get(resource_type) if isinstance(resource_type, str) else None
        if config is None:
            raise UnknownResourceTypeError(resource_type)
        return config

    @classmethod
    def has_index(cls, resource_type: str) -> bool:
        """Check if a resource type has a registered index configuration."""
        return resource_type in _registry_configs

    @classmethod
    def all_configs(cls) -> dict[str, IndexConfig]:
        """Get all registered index configurations.

        Returns:
            Dictionary mapping resource types to configs.
        """
        return _registry_configs.copy()

    @classmethod
    def _clear_for_testing(cls) -> None:
        """Clear all registered configurations. Internal use in tests only."""
        _registry_configs.clear()
