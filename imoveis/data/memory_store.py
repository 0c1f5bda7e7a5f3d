"""In-memory entry store, used by tests and as the default session backend."""

import logging
import uuid
from dataclasses import replace
from typing import Iterable

from imoveis.data.base import COPY_SUFFIX
from imoveis.models.entry import FinancialEntry, StatusImovel, unique_name

logger = logging.getLogger(__name__)


class InMemoryEntryStore:
    def __init__(self, entries: Iterable[FinancialEntry] = ()):
        self._entries: dict[str, FinancialEntry] = {}
        self._links: dict[str, dict[str, str]] = {}
        for entry in entries:
            self.add_entry(entry)

    def all_entries(self) -> list[FinancialEntry]:
        return list(self._entries.values())

    def add_entry(self, entry: FinancialEntry) -> FinancialEntry:
        if entry.id is None or entry.id in self._entries:
            entry = replace(entry, id=uuid.uuid4().hex)
        self._entries[entry.id] = entry
        return entry

    def update_entry(self, entry: FinancialEntry) -> None:
        if entry.id not in self._entries:
            raise KeyError(f"Entry {entry.id} not found")
        self._entries[entry.id] = entry

    def delete_entries_by_imovel(self, imovel: str) -> None:
        doomed = [key for key, e in self._entries.items() if e.imovel == imovel]
        for key in doomed:
            del self._entries[key]
        logger.debug("Deleted %d entries of %s", len(doomed), imovel)

    def restore_entries(self, entries: Iterable[FinancialEntry]) -> None:
        for entry in entries:
            self._entries[entry.id] = entry

    def duplicate_imovel(self, imovel: str) -> str:
        names = {e.imovel for e in self._entries.values()}
        new_name = unique_name(f"{imovel} {COPY_SUFFIX}", names)
        for entry in [e for e in self._entries.values() if e.imovel == imovel]:
            self.add_entry(replace(entry, imovel=new_name, id=None))
        return new_name

    def update_imovel_status(self, imovel: str, status: StatusImovel) -> None:
        for key, entry in self._entries.items():
            if entry.imovel == imovel:
                self._entries[key] = replace(entry, status_imovel=status)

    def rename_imovel_global(self, old_name: str, new_name: str) -> None:
        for key, entry in self._entries.items():
            if entry.imovel == old_name:
                self._entries[key] = replace(entry, imovel=new_name)
        if old_name in self._links:
            self._links[new_name] = self._links.pop(old_name)

    # Property links

    def link_property(self, imovel: str, provider: str, external_id: str) -> None:
        self._links.setdefault(imovel, {})[provider] = external_id

    def links_for(self, imovel: str) -> dict[str, str]:
        return dict(self._links.get(imovel, {}))
