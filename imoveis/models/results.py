from dataclasses import dataclass, field
from decimal import Decimal

from imoveis.models.entry import Cenario, PropertyMetadata, TipoDespesa
from imoveis.models.rates import DerivationRates


@dataclass(frozen=True)
class Summary:
    lucro_total: Decimal = Decimal("0")
    lucro_por_cota: Decimal = Decimal("0")
    roi_total: Decimal = Decimal("0")  # Percent
    roi_mensal: Decimal = Decimal("0")  # Percent, compound monthly equivalent

    # Intermediate values
    custo_investimento_realizado: Decimal = Decimal("0")
    duration_months: Decimal = Decimal("1")


@dataclass(frozen=True)
class FieldView:
    descricao: str
    tipo_despesa: TipoDespesa
    valor: Decimal  # Magnitude
    cota: Decimal
    manual: bool  # Never written by a formula
    editable: bool
    overridden: bool
    inherited: bool = False  # Value read through from Projetado
    monthly: bool = False


@dataclass(frozen=True)
class PropertyView:
    """Aggregate view of one property in one scenario."""
    imovel: str | None
    cenario: Cenario
    metadata: PropertyMetadata
    rates: DerivationRates
    fields: tuple[FieldView, ...] = ()
    summary: Summary = field(default_factory=Summary)

    def get_field(self, descricao: str) -> FieldView | None:
        return next((f for f in self.fields if f.descricao == descricao), None)
