"""Financial entry data types: one labeled cash-flow line per property/scenario."""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum


class Cenario(str, Enum):
    PROJETADO = "Projetado"
    EXECUTADO = "Executado"


class TipoCompra(str, Enum):
    A_VISTA = "AVista"
    FINANCIADO = "Financiado"


class TipoDespesa(str, Enum):
    CUSTO_AQUISICAO = "Custo Aquisição"
    CUSTO_MANUTENCAO = "Custo Manutenção"
    VENDA = "Venda"


class StatusImovel(str, Enum):
    EM_ANDAMENTO = "em_andamento"
    FINALIZADO = "finalizado"


class FieldLabel(str, Enum):
    """Known `descricao` values. Entries may still carry free-form labels."""

    VENDA = "Venda"
    ENTRADA = "Entrada"
    VALOR_AQUISICAO = "Valor Aquisição"
    ITBI = "ITBI"
    REGISTRO = "Registro"
    DESPACHANTE = "Despachante"
    COMISSAO_LEILOEIRO = "Comissão Leiloeiro"
    TAXA_FINANCIAMENTO = "Taxa Financiamento/Escritura"
    REFORMA = "Reforma"
    DESOCUPACAO = "Desocupação"
    DIVIDA = "Dívida"
    PRESTACAO = "Prestação"
    CONDOMINIO = "Condomínio"
    IPTU = "IPTU"
    COMISSAO_CORRETOR = "Comissão Corretor"
    IMPOSTO_GANHO_CAPITAL = "Imposto de Ganho de Capital"
    SALDO_DEVEDOR = "Saldo Devedor"


FIELD_GROUPS: dict[TipoDespesa, tuple[FieldLabel, ...]] = {
    TipoDespesa.CUSTO_AQUISICAO: (
        FieldLabel.VALOR_AQUISICAO,
        FieldLabel.ENTRADA,
        FieldLabel.ITBI,
        FieldLabel.REGISTRO,
        FieldLabel.DESPACHANTE,
        FieldLabel.COMISSAO_LEILOEIRO,
        FieldLabel.TAXA_FINANCIAMENTO,
    ),
    TipoDespesa.CUSTO_MANUTENCAO: (
        FieldLabel.REFORMA,
        FieldLabel.DESOCUPACAO,
        FieldLabel.DIVIDA,
        FieldLabel.PRESTACAO,
        FieldLabel.CONDOMINIO,
        FieldLabel.IPTU,
    ),
    TipoDespesa.VENDA: (
        FieldLabel.VENDA,
        FieldLabel.COMISSAO_CORRETOR,
        FieldLabel.IMPOSTO_GANHO_CAPITAL,
        FieldLabel.SALDO_DEVEDOR,
    ),
}

# Fields only ever typed in by the user, never written by a formula.
MANUAL_FIELDS: frozenset[FieldLabel] = frozenset({
    FieldLabel.VENDA,
    FieldLabel.REFORMA,
    FieldLabel.DESOCUPACAO,
    FieldLabel.DIVIDA,
    FieldLabel.DESPACHANTE,
    FieldLabel.IPTU,
    FieldLabel.SALDO_DEVEDOR,
    FieldLabel.VALOR_AQUISICAO,
})

# Entered as a monthly amount, stored annualized.
MONTHLY_FIELDS: frozenset[FieldLabel] = frozenset({
    FieldLabel.PRESTACAO,
    FieldLabel.CONDOMINIO,
})

# Kept as a base for Financiado percentages; contributes nothing to cash flow.
REFERENCE_ONLY_FIELDS: frozenset[FieldLabel] = frozenset({FieldLabel.VALOR_AQUISICAO})

HIDDEN_FIELDS: dict[TipoCompra, frozenset[FieldLabel]] = {
    TipoCompra.A_VISTA: frozenset({
        FieldLabel.SALDO_DEVEDOR,
        FieldLabel.PRESTACAO,
        FieldLabel.VALOR_AQUISICAO,
    }),
    TipoCompra.FINANCIADO: frozenset(),
}

READ_ONLY_FIELDS: dict[TipoCompra, frozenset[FieldLabel]] = {
    TipoCompra.A_VISTA: frozenset({FieldLabel.IMPOSTO_GANHO_CAPITAL}),
    TipoCompra.FINANCIADO: frozenset({FieldLabel.ENTRADA, FieldLabel.COMISSAO_LEILOEIRO}),
}

DEFAULT_PROPERTY_NAME = "Novo Imóvel"
DEFAULT_ESTADO = "SP"


def label_value(label: "FieldLabel | str") -> str:
    """Plain string form of a label, whether given as enum member or raw text."""
    if isinstance(label, FieldLabel):
        return label.value
    return label


def category_for(label: "FieldLabel | str") -> TipoDespesa:
    """Expense category a label belongs to (acquisition cost when unknown)."""
    text = label_value(label)
    for tipo, labels in FIELD_GROUPS.items():
        if any(member.value == text for member in labels):
            return tipo
    return TipoDespesa.CUSTO_AQUISICAO


def is_reference_only(label: "FieldLabel | str") -> bool:
    text = label_value(label)
    return any(member.value == text for member in REFERENCE_ONLY_FIELDS)


def unique_name(base: str, taken) -> str:
    """First of `base`, `base 2`, `base 3`, ... not present in `taken`."""
    taken = set(taken)
    candidate = base
    counter = 2
    while candidate in taken:
        candidate = f"{base} {counter}"
        counter += 1
    return candidate


@dataclass(frozen=True)
class PropertyMetadata:
    """Property-level attributes duplicated on every entry of an imovel."""

    estado: str = DEFAULT_ESTADO
    cidade: str = ""
    tipo_compra: TipoCompra = TipoCompra.A_VISTA
    vendido: bool = False
    num_cotistas: int = 1
    data_compra: date | None = None
    data_venda: date | None = None
    status_imovel: StatusImovel = StatusImovel.EM_ANDAMENTO


METADATA_FIELDS: tuple[str, ...] = (
    "estado",
    "cidade",
    "tipo_compra",
    "vendido",
    "num_cotistas",
    "data_compra",
    "data_venda",
    "status_imovel",
)


@dataclass(frozen=True)
class FinancialEntry:
    imovel: str
    cenario: Cenario
    tipo_despesa: TipoDespesa
    descricao: str
    fluxo_caixa: Decimal = Decimal("0")  # Negative = outflow
    cota: Decimal = Decimal("0")  # fluxo_caixa / num_cotistas

    # Property metadata
    estado: str = DEFAULT_ESTADO
    cidade: str = ""
    tipo_compra: TipoCompra = TipoCompra.A_VISTA
    vendido: bool = False
    num_cotistas: int = 1
    data_compra: date | None = None
    data_venda: date | None = None
    status_imovel: StatusImovel = StatusImovel.EM_ANDAMENTO

    # Magnitude of reference-only fields (fluxo_caixa stays 0 for those)
    valor_referencia: Decimal | None = None

    id: str | None = field(default=None, compare=False)

    @property
    def metadata(self) -> PropertyMetadata:
        return PropertyMetadata(**{name: getattr(self, name) for name in METADATA_FIELDS})

    @property
    def magnitude(self) -> Decimal:
        """Unsigned amount shown for this line."""
        if is_reference_only(self.descricao):
            return self.valor_referencia or Decimal("0")
        return abs(self.fluxo_caixa)

    def with_metadata(self, metadata: PropertyMetadata) -> "FinancialEntry":
        return replace(self, **{name: getattr(metadata, name) for name in METADATA_FIELDS})
