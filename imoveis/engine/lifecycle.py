"""Property-level operations: create, rename, duplicate, delete/undo, status, metadata.

These act on every entry of a property at once and never run the derivation
formulas themselves.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Protocol

from dateutil.relativedelta import relativedelta

from imoveis.config import settings
from imoveis.engine.accessor import ZERO, EntryAccessor
from imoveis.models.entry import (
    DEFAULT_PROPERTY_NAME,
    METADATA_FIELDS,
    Cenario,
    FieldLabel,
    FinancialEntry,
    StatusImovel,
    TipoCompra,
    TipoDespesa,
    unique_name,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "placeholder"


class PropertyNameConflictError(ValueError):
    """Raised when renaming a property to a name already in use."""


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def thread_timer(delay: float, callback: Callable[[], None]) -> Cancellable:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class DeletedProperty:
    imovel: str
    entries: tuple[FinancialEntry, ...]


def next_active_after_delete(names: list[str], deleted: str) -> str | None:
    """Property to select once `deleted` is gone: its predecessor, else the first left."""
    remaining = [n for n in names if n != deleted]
    if not remaining:
        return None
    index = names.index(deleted) if deleted in names else 0
    return remaining[index - 1] if index > 0 else remaining[0]


def default_sale_date(data_compra: date, offset_years: int | None = None) -> date:
    years = settings.sale_date_offset_years if offset_years is None else offset_years
    return data_compra + relativedelta(years=years)


class LifecycleManager:
    def __init__(
        self,
        accessor: EntryAccessor,
        scheduler: Scheduler | None = None,
        grace_seconds: float | None = None,
    ):
        self.accessor = accessor
        self.scheduler = scheduler or thread_timer
        self.grace_seconds = settings.undo_grace_seconds if grace_seconds is None else grace_seconds
        self._deleted: DeletedProperty | None = None
        self._timer: Cancellable | None = None

    @property
    def store(self):
        return self.accessor.store

    @property
    def pending_undo(self) -> DeletedProperty | None:
        return self._deleted

    # ---- Create / rename / duplicate ----

    def create_property(self, today: date | None = None) -> str:
        name = unique_name(DEFAULT_PROPERTY_NAME, self.accessor.property_names())
        self.store.add_entry(
            FinancialEntry(
                imovel=name,
                cenario=Cenario.PROJETADO,
                tipo_despesa=TipoDespesa.CUSTO_AQUISICAO,
                descricao=FieldLabel.ENTRADA.value,
                fluxo_caixa=ZERO,
                cota=ZERO,
                tipo_compra=TipoCompra.A_VISTA,
                data_compra=today or date.today(),
                status_imovel=StatusImovel.EM_ANDAMENTO,
            )
        )
        logger.info("Created property %s", name)
        return name

    def rename_property(self, old_name: str, new_name: str) -> str:
        """Rename across both scenarios and linked records; returns the name now in effect.

        An empty or unchanged name is a no-op. Raises PropertyNameConflictError,
        without touching anything, when another property already has the name.
        """
        new_name = (new_name or "").strip()
        if not old_name or not new_name or new_name == old_name:
            return old_name
        if new_name in self.accessor.property_names():
            logger.warning("Rename of %s rejected: %s already exists", old_name, new_name)
            raise PropertyNameConflictError(f"Já existe um imóvel com este nome: {new_name}")
        self.store.rename_imovel_global(old_name, new_name)
        logger.info("Renamed property %s -> %s", old_name, new_name)
        return new_name

    def duplicate_property(self, imovel: str) -> str:
        new_name = self.store.duplicate_imovel(imovel)
        logger.info("Duplicated property %s as %s", imovel, new_name)
        return new_name

    # ---- Delete with undo ----

    def delete_property(self, imovel: str) -> str | None:
        """Delete every entry of a property; returns the property to select next.

        The deleted entries stay recoverable through `undo_delete` until the
        grace period ends. Only the latest deletion is kept.
        """
        names = self.accessor.property_names()
        snapshot = DeletedProperty(imovel, tuple(self.accessor.property_entries(imovel)))
        self.store.delete_entries_by_imovel(imovel)

        self._cancel_timer()
        self._deleted = snapshot
        self._timer = self.scheduler(self.grace_seconds, lambda: self._expire(snapshot))
        logger.info("Deleted property %s (%d entries)", imovel, len(snapshot.entries))
        return next_active_after_delete(names, imovel)

    def undo_delete(self) -> str | None:
        """Restore the last deleted property; None once the grace period is over."""
        if self._deleted is None:
            return None
        restored = self._deleted
        self.store.restore_entries(restored.entries)
        self._deleted = None
        self._cancel_timer()
        logger.info("Restored property %s", restored.imovel)
        return restored.imovel

    def _expire(self, snapshot: DeletedProperty) -> None:
        # A stale timer must not drop a newer deletion.
        if self._deleted is snapshot:
            self._deleted = None
            self._timer = None
            logger.debug("Undo window closed for %s", snapshot.imovel)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ---- Status ----

    def set_status(self, imovel: str, status: StatusImovel) -> None:
        self.store.update_imovel_status(imovel, status)

    def toggle_status(self, imovel: str) -> StatusImovel:
        entries = self.accessor.property_entries(imovel)
        current = entries[0].status_imovel if entries else StatusImovel.EM_ANDAMENTO
        new_status = (
            StatusImovel.FINALIZADO
            if current == StatusImovel.EM_ANDAMENTO
            else StatusImovel.EM_ANDAMENTO
        )
        self.set_status(imovel, new_status)
        return new_status

    # ---- Metadata ----

    def update_metadata(
        self,
        imovel: str,
        changes: dict[str, Any],
        cenario: Cenario = Cenario.PROJETADO,
    ) -> None:
        """Apply metadata changes to every entry of the property, both scenarios.

        A new purchase date moves the sale date to one year later, unless the
        stored sale date was set on its own (neither empty nor one year after
        the old purchase date). A new quota count recomputes every `cota`.
        """
        unknown = set(changes) - set(METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Not property metadata: {sorted(unknown)}")

        updates = dict(changes)
        if "num_cotistas" in updates:
            updates["num_cotistas"] = max(1, int(updates["num_cotistas"] or 1))

        current = self.accessor.stored_metadata(imovel, cenario)
        new_purchase = updates.get("data_compra")
        if new_purchase and "data_venda" not in updates:
            sale = current.data_venda
            follows_purchase = sale is None or (
                current.data_compra is not None
                and sale == default_sale_date(current.data_compra)
            )
            if follows_purchase:
                updates["data_venda"] = default_sale_date(new_purchase)

        entries = self.accessor.property_entries(imovel)
        for entry in entries:
            updated = replace(entry, **updates)
            if "num_cotistas" in updates:
                updated = replace(updated, cota=entry.fluxo_caixa / updated.num_cotistas)
            self.store.update_entry(updated)

        if not entries:
            placeholder = FinancialEntry(
                imovel=imovel,
                cenario=cenario,
                tipo_despesa=TipoDespesa.CUSTO_AQUISICAO,
                descricao=PLACEHOLDER_LABEL,
            ).with_metadata(replace(current, **updates))
            self.store.add_entry(placeholder)

        logger.debug("Updated metadata of %s: %s", imovel, sorted(updates))
