"""Protocol definitions for entry persistence.

The engine reads back state right after each call, so implementations must
apply writes synchronously.
"""

from typing import Iterable, Protocol, runtime_checkable

from imoveis.models.entry import FinancialEntry, StatusImovel

COPY_SUFFIX = "(Cópia)"


@runtime_checkable
class EntryStore(Protocol):
    def all_entries(self) -> list[FinancialEntry]:
        """Every stored entry, in insertion order."""
        ...

    def add_entry(self, entry: FinancialEntry) -> FinancialEntry:
        """Insert a new entry and return it with its assigned id."""
        ...

    def update_entry(self, entry: FinancialEntry) -> None:
        """Replace the stored entry with the same id."""
        ...

    def delete_entries_by_imovel(self, imovel: str) -> None:
        """Remove every entry of a property, across scenarios."""
        ...

    def restore_entries(self, entries: Iterable[FinancialEntry]) -> None:
        """Reinsert previously deleted entries, keeping their ids."""
        ...

    def duplicate_imovel(self, imovel: str) -> str:
        """Clone a property's entries under a new unique name and return it."""
        ...

    def update_imovel_status(self, imovel: str, status: StatusImovel) -> None:
        ...

    def rename_imovel_global(self, old_name: str, new_name: str) -> None:
        """Rename a property on every entry and every property-keyed link."""
        ...


@runtime_checkable
class PropertyLinkStore(Protocol):
    """Links between a property and records of an external integration."""

    def link_property(self, imovel: str, provider: str, external_id: str) -> None:
        ...

    def links_for(self, imovel: str) -> dict[str, str]:
        """provider -> external id for one property."""
        ...
