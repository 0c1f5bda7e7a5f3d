"""Editing session: one active (property, scenario) and the edit -> recompute -> summary flow.

Every mutation runs an explicit, bounded recompute of the derived fields
before returning, so views and summaries always see a settled entry set.
Switching property or scenario starts a fresh override set and resets the
rates to their defaults.
"""

import logging
from datetime import date
from decimal import Decimal

from imoveis.config import settings
from imoveis.data.base import EntryStore
from imoveis.engine.accessor import EntryAccessor, signed_amount, to_decimal
from imoveis.engine.derivation import DerivationEngine
from imoveis.engine.lifecycle import LifecycleManager, Scheduler
from imoveis.engine.overrides import OverrideTracker
from imoveis.engine.replication import ScenarioReplicator
from imoveis.engine.summary import compute_summary
from imoveis.models.entry import (
    FIELD_GROUPS,
    HIDDEN_FIELDS,
    MANUAL_FIELDS,
    MONTHLY_FIELDS,
    READ_ONLY_FIELDS,
    Cenario,
    FieldLabel,
    PropertyMetadata,
    StatusImovel,
    TipoCompra,
    label_value,
)
from imoveis.models.rates import RATE_TARGETS, DerivationRates
from imoveis.models.results import FieldView, PropertyView, Summary

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal("12")


def default_rates() -> DerivationRates:
    return DerivationRates(
        itbi_pct=settings.itbi_pct,
        entrada_financiado_pct=settings.entrada_financiado_pct,
        ganho_capital_pct=settings.ganho_capital_pct,
        comissao_corretor_pct=settings.comissao_corretor_pct,
        comissao_leiloeiro_pct=settings.comissao_leiloeiro_pct,
    )


def is_manual(label: FieldLabel | str, tipo_compra: TipoCompra) -> bool:
    text = label_value(label)
    if any(member.value == text for member in MANUAL_FIELDS):
        return True
    return tipo_compra == TipoCompra.A_VISTA and text == FieldLabel.ENTRADA.value


class EditingSession:
    def __init__(
        self,
        store: EntryStore,
        scheduler: Scheduler | None = None,
        max_passes: int | None = None,
    ):
        self.accessor = EntryAccessor(store)
        self.overrides = OverrideTracker()
        self.replicator = ScenarioReplicator(self.accessor)
        self.engine = DerivationEngine(
            self.accessor, self.overrides, self.replicator, max_passes=max_passes
        )
        self.lifecycle = LifecycleManager(self.accessor, scheduler=scheduler)
        self.imovel: str | None = None
        self.cenario = Cenario.PROJETADO
        self.rates = default_rates()

        names = self.accessor.property_names()
        if names:
            self.select_property(names[0])

    # ---- Selection ----

    def select_property(self, imovel: str | None) -> None:
        if imovel is not None and imovel not in self.accessor.property_names():
            raise KeyError(f"Property {imovel} not found")
        self.imovel = imovel
        self._rebind()

    def select_scenario(self, cenario: Cenario) -> None:
        self.cenario = Cenario(cenario)
        self._rebind()

    def _rebind(self) -> None:
        if self.overrides.bind(self.imovel, self.cenario):
            self.rates = default_rates()

    @property
    def metadata(self) -> PropertyMetadata:
        if self.imovel is None:
            return PropertyMetadata(data_compra=date.today())
        return self.accessor.metadata(self.imovel, self.cenario)

    # ---- Edits ----

    def edit_value(self, label: FieldLabel | str, value) -> None:
        """Store a user-typed value for a field and pin it against recompute."""
        if self.imovel is None:
            return
        magnitude = abs(to_decimal(value))
        self.accessor.write_field(self.imovel, self.cenario, label, magnitude)
        self.overrides.mark_overridden(label)
        self.recompute()

    def edit_monthly_value(self, label: FieldLabel | str, monthly_value) -> None:
        """Monthly amount for Prestação/Condomínio, stored as the yearly total."""
        text = label_value(label)
        if not any(member.value == text for member in MONTHLY_FIELDS):
            raise ValueError(f"{text} is not a monthly field")
        self.edit_value(text, abs(to_decimal(monthly_value)) * MONTHS_PER_YEAR)

    def set_rate(self, name: str, value) -> None:
        """Change a percentage and let the field it drives follow it again."""
        self.rates = self.rates.with_rate(name, to_decimal(value))
        self.overrides.clear_override(RATE_TARGETS[name])
        self.recompute()

    def update_metadata(self, **changes) -> None:
        if self.imovel is None:
            return
        if "tipo_compra" in changes:
            changes["tipo_compra"] = TipoCompra(changes["tipo_compra"])
            if changes["tipo_compra"] != self.metadata.tipo_compra:
                self.overrides.reset()
        if "status_imovel" in changes:
            changes["status_imovel"] = StatusImovel(changes["status_imovel"])
        self.lifecycle.update_metadata(self.imovel, changes, self.cenario)
        self.recompute()

    def recompute(self) -> int:
        if self.imovel is None:
            return 0
        return self.engine.recompute(
            self.imovel, self.cenario, self.metadata.tipo_compra, self.rates
        )

    # ---- Views ----

    def summary(self, as_of: date | None = None) -> Summary:
        if self.imovel is None:
            return Summary()
        meta = self.metadata
        return compute_summary(
            self.accessor.magnitudes(self.imovel, self.cenario),
            num_cotistas=meta.num_cotistas,
            data_compra=meta.data_compra,
            data_venda=meta.data_venda,
            as_of=as_of,
        )

    def view(self, as_of: date | None = None) -> PropertyView:
        if self.imovel is None:
            return PropertyView(
                imovel=None,
                cenario=self.cenario,
                metadata=self.metadata,
                rates=self.rates,
            )

        meta = self.metadata
        tipo = meta.tipo_compra
        fields: list[FieldView] = []
        for tipo_despesa, labels in FIELD_GROUPS.items():
            for label in labels:
                if label in HIDDEN_FIELDS[tipo]:
                    continue
                valor, inherited = self.replicator.resolve(self.imovel, self.cenario, label)
                fields.append(
                    FieldView(
                        descricao=label.value,
                        tipo_despesa=tipo_despesa,
                        valor=valor,
                        cota=signed_amount(label, valor) / meta.num_cotistas,
                        manual=is_manual(label, tipo),
                        editable=label not in READ_ONLY_FIELDS[tipo],
                        overridden=self.overrides.is_overridden(label),
                        inherited=inherited,
                        monthly=label in MONTHLY_FIELDS,
                    )
                )

        return PropertyView(
            imovel=self.imovel,
            cenario=self.cenario,
            metadata=meta,
            rates=self.rates,
            fields=tuple(fields),
            summary=self.summary(as_of),
        )

    def property_groups(self) -> dict[StatusImovel, list[str]]:
        return self.accessor.names_by_status()

    def property_names(self) -> list[str]:
        return self.accessor.property_names()

    # ---- Lifecycle ----

    def create_property(self) -> str:
        name = self.lifecycle.create_property()
        self.cenario = Cenario.PROJETADO
        self.select_property(name)
        return name

    def rename_property(self, new_name: str, imovel: str | None = None) -> str:
        """Rename (the active property by default). Conflicts raise and change nothing."""
        old_name = imovel or self.imovel
        if old_name is None:
            return ""
        result = self.lifecycle.rename_property(old_name, new_name)
        if old_name == self.imovel and result != old_name:
            self.select_property(result)
        return result

    def duplicate_property(self, imovel: str | None = None) -> str:
        source = imovel or self.imovel
        if source is None:
            raise KeyError("No property to duplicate")
        new_name = self.lifecycle.duplicate_property(source)
        self.select_property(new_name)
        return new_name

    def delete_property(self, imovel: str | None = None) -> str | None:
        target = imovel or self.imovel
        if target is None:
            return self.imovel
        next_active = self.lifecycle.delete_property(target)
        if target == self.imovel:
            self.select_property(next_active)
        return self.imovel

    def undo_delete(self) -> str | None:
        restored = self.lifecycle.undo_delete()
        if restored is not None:
            self.select_property(restored)
        return restored

    def set_status(self, status: StatusImovel, imovel: str | None = None) -> None:
        target = imovel or self.imovel
        if target is not None:
            self.lifecycle.set_status(target, StatusImovel(status))

    def toggle_status(self, imovel: str | None = None) -> StatusImovel | None:
        target = imovel or self.imovel
        if target is None:
            return None
        return self.lifecycle.toggle_status(target)
