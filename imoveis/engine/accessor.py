"""Read-only views over the entry store, plus the single field write path."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation

from imoveis.data.base import EntryStore
from imoveis.models.entry import (
    Cenario,
    FieldLabel,
    FinancialEntry,
    PropertyMetadata,
    StatusImovel,
    TipoDespesa,
    category_for,
    is_reference_only,
    label_value,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Largest amount the entries table holds (Numeric(14, 2)).
MAX_AMOUNT = Decimal("999999999999.99")


def to_decimal(value) -> Decimal:
    """Coerce user input to Decimal. Anything unparsable or out of range counts as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite() or abs(result) > MAX_AMOUNT:
        return ZERO
    return result


def signed_amount(label: FieldLabel | str, magnitude: Decimal) -> Decimal:
    """Cash-flow sign for a field: sale positive, costs negative, references zero."""
    if is_reference_only(label):
        return ZERO
    if label_value(label) == FieldLabel.VENDA.value:
        return abs(magnitude)
    return -abs(magnitude)


class EntryAccessor:
    def __init__(self, store: EntryStore):
        self.store = store

    # ---- Views ----

    def property_entries(self, imovel: str) -> list[FinancialEntry]:
        return [e for e in self.store.all_entries() if e.imovel == imovel]

    def entries(self, imovel: str, cenario: Cenario) -> list[FinancialEntry]:
        return [e for e in self.property_entries(imovel) if e.cenario == cenario]

    def find(self, imovel: str, cenario: Cenario, label: FieldLabel | str) -> FinancialEntry | None:
        text = label_value(label)
        return next((e for e in self.entries(imovel, cenario) if e.descricao == text), None)

    def magnitude(self, imovel: str, cenario: Cenario, label: FieldLabel | str) -> Decimal:
        entry = self.find(imovel, cenario, label)
        return entry.magnitude if entry else ZERO

    def magnitudes(self, imovel: str, cenario: Cenario) -> dict[str, Decimal]:
        """descricao -> unsigned amount for every stored line of the scenario."""
        return {e.descricao: e.magnitude for e in self.entries(imovel, cenario)}

    def property_names(self) -> list[str]:
        return sorted({e.imovel for e in self.store.all_entries()})

    def names_by_status(self) -> dict[StatusImovel, list[str]]:
        status_of: dict[str, StatusImovel] = {}
        for entry in self.store.all_entries():
            status_of[entry.imovel] = entry.status_imovel
        groups: dict[StatusImovel, list[str]] = {status: [] for status in StatusImovel}
        for name in sorted(status_of):
            groups[status_of[name]].append(name)
        return groups

    def metadata(self, imovel: str, cenario: Cenario, today: date | None = None) -> PropertyMetadata:
        """Property metadata for display; a missing purchase date reads as today."""
        meta = self.stored_metadata(imovel, cenario)
        if meta.data_compra is None:
            meta = replace(meta, data_compra=today or date.today())
        return meta

    def stored_metadata(self, imovel: str, cenario: Cenario) -> PropertyMetadata:
        """Metadata to copy onto a new entry: what the property already carries."""
        entries = self.entries(imovel, cenario) or self.property_entries(imovel)
        if entries:
            return entries[0].metadata
        return PropertyMetadata()

    # ---- Writes ----

    def write_field(
        self,
        imovel: str,
        cenario: Cenario,
        label: FieldLabel | str,
        magnitude: Decimal,
        tipo_despesa: TipoDespesa | None = None,
    ) -> FinancialEntry:
        """Set one field's value, creating its entry on first write."""
        text = label_value(label)
        entry = self.find(imovel, cenario, text)
        meta = entry.metadata if entry else self.stored_metadata(imovel, cenario)
        num_cotistas = meta.num_cotistas or 1

        fluxo_caixa = signed_amount(text, magnitude)
        valor_referencia = abs(magnitude) if is_reference_only(text) else None
        cota = fluxo_caixa / num_cotistas

        if entry is not None:
            updated = replace(
                entry,
                fluxo_caixa=fluxo_caixa,
                cota=cota,
                num_cotistas=num_cotistas,
                valor_referencia=valor_referencia,
            )
            self.store.update_entry(updated)
            return updated

        new_entry = FinancialEntry(
            imovel=imovel,
            cenario=cenario,
            tipo_despesa=tipo_despesa or category_for(text),
            descricao=text,
            fluxo_caixa=fluxo_caixa,
            cota=cota,
            valor_referencia=valor_referencia,
        ).with_metadata(meta)
        logger.debug("Creating %s entry for %s/%s", text, imovel, cenario.value)
        return self.store.add_entry(new_entry)
