"""Read-only, ordered registry of provider definitions."""

from collections.abc import Iterable, Iterator

from .models import ProviderDefinition


class ProviderRegistry:
    """Ordered collection of provider definitions keyed by id.

    The registry is fixed at construction; detection code only reads from it.
    """

    def __init__(self, definitions: Iterable[ProviderDefinition]) -> None:
        self._definitions: dict[str, ProviderDefinition] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Duplicate provider id '{definition.id}'")
            self._definitions[definition.id] = definition

    def get(self, provider_id: str) -> ProviderDefinition | None:
        return self._definitions.get(provider_id)

    def ids(self) -> list[str]:
        return list(self._definitions)

    def detectable(self) -> list[ProviderDefinition]:
        """Definitions that take part in connectivity detection."""
        return [d for d in self._definitions.values() if d.detectable]

    def __iter__(self) -> Iterator[ProviderDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._definitions


def default_registry() -> ProviderRegistry:
    """Registry of the detectable providers from the built-in catalog."""
    from .catalog import PROVIDER_CATALOG

    return ProviderRegistry(d for d in PROVIDER_CATALOG if d.detectable)
